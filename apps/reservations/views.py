"""API views for the reservation ledger."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.exceptions import NotFound

from .filters import ReservationFilterSet
from .models import Reservation
from .serializers import ReservationCancelSerializer, ReservationSerializer
from .services import cancel_reservation


class ReservationViewSet(viewsets.ReadOnlyModelViewSet):
    """Staff view of the ledger; reservations are created by the ingest pipeline."""

    queryset = Reservation.objects.select_related("customer").all()
    serializer_class = ReservationSerializer
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = ReservationFilterSet
    ordering_fields = ["date", "start_minute", "created_at", "unit"]

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()  # type: ignore
        serializer = ReservationCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cancelled_by = serializer.validated_data.get("cancelled_by") or request.user.get_username()
        try:
            reservation = cancel_reservation(
                reservation.pk,
                serializer.validated_data["reason"],
                cancelled_by,
            )
        except NotFound:
            return Response(
                {"detail": "Only confirmed reservations can be cancelled."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(ReservationSerializer(reservation).data, status=status.HTTP_200_OK)
