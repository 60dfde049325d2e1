"""Tests for applying extracted requests to the ledger."""

from __future__ import annotations

from unittest.mock import patch

from django.test import SimpleTestCase, TestCase

from apps.customers.models import Customer
from apps.customers.services import create_customer
from apps.ingest import pipeline, tasks
from apps.ingest.events import IngestFailed, NoCapacityReported, ReservationCancelled, ReservationCreated
from apps.ingest.handlers import register_handlers
from apps.ingest.models import ProcessedMessage
from apps.ingest.services import mark_processed
from apps.reservations.models import Reservation
from shared.application.message_bus import message_bus
from shared.domain.exceptions import InvalidArgument


def booking_request(**overrides) -> pipeline.BookingRequest:
    fields = {
        "name": "John Doe",
        "phone": "0812345678",
        "date": "2025-12-01",
        "start_time": "2:00 PM",
        "duration": 1,
        "party_size": 2,
        "external_key": "CP-1",
    }
    fields.update(overrides)
    return pipeline.BookingRequest(**fields)


class PipelineTestCase(TestCase):
    def setUp(self) -> None:
        self.events: list = []
        message_bus.clear()
        for event_type in (ReservationCreated, ReservationCancelled, NoCapacityReported, IngestFailed):
            message_bus.register_event_handler(event_type, self.events.append)
        self.addCleanup(register_handlers)
        self.addCleanup(message_bus.clear)


class ApplyBookingRequestTests(PipelineTestCase):
    def test_blank_message_id_is_rejected_before_any_write(self) -> None:
        for message_id in ("", "   "):
            with self.subTest(message_id=message_id):
                with self.assertRaises(InvalidArgument):
                    pipeline.apply_booking_request(message_id, "classpass", booking_request())

        self.assertFalse(Customer.objects.exists())
        self.assertFalse(Reservation.objects.exists())
        self.assertFalse(ProcessedMessage.objects.exists())

    def test_creates_reservation_and_records_message(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            outcome = pipeline.apply_booking_request(
                "msg-1",
                "classpass",
                booking_request(),
                metadata={"subject": "You're booked", "date": "Mon, 01 Dec 2025 09:00:00 +0700"},
            )

        self.assertEqual(outcome.action, "reservation_created")
        reservation = outcome.reservation
        assert reservation is not None
        self.assertEqual(reservation.id, "BK251201001")
        self.assertEqual(reservation.unit, "Bay 2")
        self.assertEqual(reservation.source_channel, "ClassPass")
        self.assertEqual(reservation.external_key, "CP-1")
        self.assertEqual(reservation.customer.customer_code, "CUS-001")

        record = ProcessedMessage.objects.get(message_id="msg-1")
        self.assertEqual(record.action_taken, "reservation_created")
        self.assertEqual(record.reservation, reservation)
        self.assertEqual(record.subject, "You're booked")

        self.assertEqual(len(self.events), 1)
        self.assertIsInstance(self.events[0], ReservationCreated)
        self.assertEqual(self.events[0].reservation_id, "BK251201001")

    def test_events_wait_for_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            pipeline.apply_booking_request("msg-1", "resos", booking_request())

        self.assertEqual(self.events, [])
        self.assertEqual(len(callbacks), 1)

    def test_processed_message_is_skipped(self) -> None:
        first = pipeline.apply_booking_request("msg-1", "classpass", booking_request())
        second = pipeline.apply_booking_request("msg-1", "classpass", booking_request(start_time="18:00"))

        self.assertFalse(first.skipped)
        self.assertTrue(second.skipped)
        self.assertIsNone(second.action)
        self.assertEqual(Reservation.objects.count(), 1)
        self.assertEqual(ProcessedMessage.objects.count(), 1)

    def test_no_capacity_is_recorded(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            outcome = pipeline.apply_booking_request("msg-1", "resos", booking_request(party_size=6))

        self.assertEqual(outcome.action, "no_capacity")
        self.assertEqual(outcome.request["party_size"], 6)
        self.assertFalse(Reservation.objects.exists())
        self.assertEqual(ProcessedMessage.objects.get().action_taken, "no_capacity")
        self.assertIsInstance(self.events[0], NoCapacityReported)
        self.assertTrue(Customer.objects.filter(normalized_phone="812345678").exists())

    def test_invalid_request_is_recorded_as_error(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            outcome = pipeline.apply_booking_request("msg-1", "website", booking_request(start_time="teatime"))

        self.assertEqual(outcome.action, "error")
        record = ProcessedMessage.objects.get()
        self.assertEqual(record.action_taken, "error")
        self.assertIn("teatime", record.error_message)
        self.assertIsNone(record.reservation)
        self.assertIsInstance(self.events[0], IngestFailed)

    def test_unexpected_failure_is_recorded_then_raised(self) -> None:
        with patch("apps.ingest.pipeline.create_reservation", side_effect=RuntimeError("store unavailable")):
            with self.assertRaises(RuntimeError):
                pipeline.apply_booking_request("msg-1", "resos", booking_request())

        record = ProcessedMessage.objects.get()
        self.assertEqual(record.action_taken, "error")
        self.assertEqual(record.error_message, "store unavailable")

    def test_concurrent_claim_rolls_back_reservation(self) -> None:
        mark_processed("msg-1", "classpass", "error", error_message="other worker")

        with patch("apps.ingest.pipeline.is_processed", return_value=False):
            outcome = pipeline.apply_booking_request("msg-1", "classpass", booking_request())

        self.assertTrue(outcome.skipped)
        self.assertFalse(Reservation.objects.exists())
        self.assertEqual(ProcessedMessage.objects.get().error_message, "other worker")

    def test_fuzzy_name_matching_follows_source_type(self) -> None:
        existing = create_customer("Somchai Jaidee", "0899999999")
        request = booking_request(name="Somchai Jaidee", phone=None, email="somchai@example.com")

        classpass = pipeline.apply_booking_request("msg-1", "classpass", request)
        resos = pipeline.apply_booking_request("msg-2", "resos", request)

        assert classpass.reservation is not None and resos.reservation is not None
        self.assertEqual(classpass.reservation.customer, existing)
        self.assertEqual(classpass.reservation.phone_number, "0899999999")
        self.assertNotEqual(resos.reservation.customer, existing)
        self.assertEqual(resos.reservation.customer.email, "somchai@example.com")


class ApplyCancellationRequestTests(PipelineTestCase):
    def setUp(self) -> None:
        super().setUp()
        created = pipeline.apply_booking_request("msg-1", "classpass", booking_request())
        self.reservation = created.reservation
        self.events.clear()

    def test_cancels_by_external_key(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            outcome = pipeline.apply_cancellation_request(
                "msg-2",
                "classpass",
                pipeline.CancellationRequest(external_key="CP-1"),
            )

        self.assertEqual(outcome.action, "reservation_cancelled")
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(self.reservation.cancellation_reason, "Customer cancelled via ClassPass")
        self.assertEqual(self.reservation.cancelled_by, "Email Automation")
        record = ProcessedMessage.objects.get(message_id="msg-2")
        self.assertEqual(record.reservation, self.reservation)
        self.assertIsInstance(self.events[0], ReservationCancelled)

    def test_falls_back_to_details_across_channels(self) -> None:
        outcome = pipeline.apply_cancellation_request(
            "msg-2",
            "resos",
            pipeline.CancellationRequest(
                name="john doe",
                date="2025-12-01",
                start_time="14:00",
                external_key="unknown",
            ),
        )

        self.assertEqual(outcome.action, "reservation_cancelled")
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.cancellation_reason, "Customer cancelled via ResOS")

    def test_missing_reservation_is_recorded_as_error(self) -> None:
        outcome = pipeline.apply_cancellation_request(
            "msg-2",
            "classpass",
            pipeline.CancellationRequest(name="Nobody", date="2025-12-01", start_time="9:00 AM"),
        )

        self.assertEqual(outcome.action, "error")
        record = ProcessedMessage.objects.get(message_id="msg-2")
        self.assertEqual(record.error_message, "No matching reservation found for cancellation")
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.status, Reservation.Status.CONFIRMED)


class ApplyBatchTests(PipelineTestCase):
    def test_one_failure_does_not_stop_siblings(self) -> None:
        outcomes = pipeline.apply_batch(
            [
                pipeline.IngestMessage("msg-1", "classpass", booking_request()),
                pipeline.IngestMessage("msg-2", "fax", booking_request(name="Jane Roe", phone="0899999999")),
                pipeline.IngestMessage("msg-3", "resos", booking_request(name="Jim Poe", phone="0877777777")),
                pipeline.IngestMessage("msg-4", "classpass", pipeline.CancellationRequest(external_key="CP-1")),
            ]
        )

        self.assertEqual(
            [outcome.action for outcome in outcomes],
            ["reservation_created", "error", "reservation_created", "reservation_cancelled"],
        )
        self.assertIn("fax", outcomes[1].error)
        self.assertFalse(ProcessedMessage.objects.filter(message_id="msg-2").exists())


class IngestTaskTests(PipelineTestCase):
    def test_booking_task_accepts_upstream_payload(self) -> None:
        payload = {
            "customerName": "Jane Roe",
            "email": "jane@example.com",
            "date": "2025-12-01",
            "startTime": "6:00 PM",
            "durationHours": 1.5,
            "partySize": 3,
            "channel": "Website",
            "ignored": "value",
        }

        result = tasks.apply_booking_request.apply(args=["msg-1", "website", payload]).get()

        self.assertEqual(result["action"], "reservation_created")
        self.assertEqual(result["reservation_id"], "BK251201001")
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.end_time, "19:30")
        self.assertRegex(reservation.phone_number, r"^0000\d{8}$")

    def test_cancellation_task(self) -> None:
        pipeline.apply_booking_request("msg-1", "classpass", booking_request())

        result = tasks.apply_cancellation_request.apply(
            args=["msg-2", "classpass", {"reservationKey": "CP-1"}],
        ).get()

        self.assertEqual(result["action"], "reservation_cancelled")
        self.assertEqual(result["reservation_id"], "BK251201001")


class EventSerializationTests(SimpleTestCase):
    def test_no_capacity_echoes_request(self) -> None:
        request = {"name": "Jane Roe", "party_size": 6}

        data = NoCapacityReported(message_id="msg-1", source_type="resos", request=request).to_dict()

        self.assertEqual(data["event_type"], "NoCapacityReported")
        self.assertEqual(data["message_id"], "msg-1")
        self.assertEqual(data["source_type"], "resos")
        self.assertEqual(data["request"], request)
        self.assertIsNot(data["request"], request)

    def test_failure_carries_error(self) -> None:
        data = IngestFailed(message_id="msg-2", source_type="website", error="boom", request={}).to_dict()

        self.assertEqual(data["error"], "boom")
        self.assertEqual(data["request"], {})
        self.assertIn("event_id", data)
        self.assertIn("occurred_at", data)

    def test_reservation_events_carry_reservation_id(self) -> None:
        cancelled = ReservationCancelled(
            message_id="msg-3",
            source_type="classpass",
            reservation_id="BK251201001",
            reason="Customer cancelled via ClassPass",
            cancelled_by="Email Automation",
        ).to_dict()
        created = ReservationCreated(
            message_id="msg-4",
            source_type="classpass",
            reservation_id="BK251201002",
            customer_code="CUS-001",
            unit="Bay 2",
            date="2025-12-01",
            start_time="14:00",
        ).to_dict()

        self.assertEqual(cancelled["reservation_id"], "BK251201001")
        self.assertEqual(cancelled["cancelled_by"], "Email Automation")
        self.assertEqual(created["customer_code"], "CUS-001")
        self.assertEqual(created["unit"], "Bay 2")
