"""Integration tests for the reservation operator API."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.reservations.models import Reservation
from apps.reservations.services import ReservationRequest, create_reservation


class ReservationAPITests(APITestCase):
    def setUp(self) -> None:
        User = get_user_model()
        self.operator = User.objects.create_user(
            username="operator",
            password="OperatorPass123",
            is_staff=True,
        )
        self.reservation = create_reservation(
            ReservationRequest(
                name="John Doe",
                phone="0812345678",
                date="2025-12-01",
                start_time="2:00 PM",
                duration=1,
                party_size=2,
            )
        )
        self.other = create_reservation(
            ReservationRequest(
                name="Jane Roe",
                email="jane@example.com",
                date="2025-12-01",
                start_time="2:00 PM",
                duration=1,
                party_size=1,
            )
        )
        self.list_url = reverse("reservation-list")

    def test_requires_staff(self) -> None:
        response = self.client.get(self.list_url)
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

        guest = get_user_model().objects.create_user(username="guest", password="GuestPass123")
        self.client.force_authenticate(guest)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters_by_unit(self) -> None:
        self.client.force_authenticate(self.operator)

        response = self.client.get(self.list_url, {"unit": "Bay 4"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 1)
        row = response.data["results"][0]
        self.assertEqual(row["id"], self.other.id)
        self.assertEqual(row["end_time"], "15:00")
        self.assertIsNone(row["customer_code"])

    def test_operator_can_cancel(self) -> None:
        self.client.force_authenticate(self.operator)
        cancel_url = reverse("reservation-cancel", args=[self.reservation.id])

        response = self.client.post(cancel_url, {"reason": "Called to cancel"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Reservation.Status.CANCELLED)
        self.assertEqual(response.data["cancelled_by"], "operator")
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.cancellation_reason, "Called to cancel")

    def test_cancel_requires_reason(self) -> None:
        self.client.force_authenticate(self.operator)
        cancel_url = reverse("reservation-cancel", args=[self.reservation.id])

        response = self.client.post(cancel_url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancelled_reservation_cannot_be_cancelled_again(self) -> None:
        self.client.force_authenticate(self.operator)
        cancel_url = reverse("reservation-cancel", args=[self.reservation.id])
        self.client.post(cancel_url, {"reason": "first"}, format="json")

        response = self.client.post(cancel_url, {"reason": "second"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_reservation_is_404(self) -> None:
        self.client.force_authenticate(self.operator)
        cancel_url = reverse("reservation-cancel", args=["BK000000001"])

        response = self.client.post(cancel_url, {"reason": "x"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
