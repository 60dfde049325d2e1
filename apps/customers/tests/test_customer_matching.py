"""Tests for customer matching and registration services."""

from __future__ import annotations

from unittest.mock import patch

from django.test import TestCase

from apps.customers import services
from apps.customers.models import Customer, CustomerCodeSequence
from shared.domain.exceptions import CodeCollision, DuplicateContact, InvalidArgument


class CreateCustomerTests(TestCase):
    def test_codes_come_from_sequence(self) -> None:
        first = services.create_customer("John Doe", "0812345678")
        second = services.create_customer("Jane Roe", email="jane@example.com")

        self.assertEqual(first.customer_code, "CUS-001")
        self.assertEqual(second.customer_code, "CUS-002")
        self.assertEqual(CustomerCodeSequence.objects.get().last_value, 2)

    def test_phone_is_normalized_on_save(self) -> None:
        customer = services.create_customer("John Doe", "+66 81 234 5678")

        self.assertEqual(customer.normalized_phone, "812345678")
        self.assertEqual(customer.preferred_contact_method, Customer.ContactMethod.PHONE)

    def test_email_only_customer_prefers_email(self) -> None:
        customer = services.create_customer("Jane Roe", email="jane@example.com")

        self.assertIsNone(customer.normalized_phone)
        self.assertEqual(customer.preferred_contact_method, Customer.ContactMethod.EMAIL)

    def test_requires_name_and_contact(self) -> None:
        with self.assertRaises(InvalidArgument):
            services.create_customer("  ", "0812345678")
        with self.assertRaises(InvalidArgument):
            services.create_customer("John Doe")
        self.assertFalse(Customer.objects.exists())

    def test_overlong_fields_are_invalid(self) -> None:
        with self.assertRaises(InvalidArgument):
            services.create_customer("x" * 256, "0812345678")
        with self.assertRaises(InvalidArgument):
            services.create_customer("John Doe", "0812345678" * 4)
        self.assertFalse(Customer.objects.exists())
        self.assertFalse(CustomerCodeSequence.objects.exists())

    def test_duplicate_phone_raises(self) -> None:
        services.create_customer("John Doe", "0812345678")

        with self.assertRaises(DuplicateContact):
            services.create_customer("Johnny", "+66812345678")
        self.assertEqual(Customer.objects.count(), 1)

    def test_inactive_customer_releases_phone(self) -> None:
        old = services.create_customer("John Doe", "0812345678")
        old.is_active = False
        old.save(update_fields=["is_active"])

        new = services.create_customer("John Doe", "0812345678")

        self.assertNotEqual(old.pk, new.pk)
        self.assertEqual(new.normalized_phone, old.normalized_phone)

    def test_code_collision_is_retried(self) -> None:
        services.create_customer("John Doe", "0812345678")

        with patch(
            "apps.customers.services.generate_customer_code",
            side_effect=["CUS-001", "CUS-777"],
        ) as generate:
            customer = services.create_customer("Jane Roe", email="jane@example.com")

        self.assertEqual(customer.customer_code, "CUS-777")
        self.assertEqual(generate.call_count, 2)

    def test_code_collision_gives_up_after_bounded_attempts(self) -> None:
        services.create_customer("John Doe", "0812345678")

        with patch(
            "apps.customers.services.generate_customer_code",
            return_value="CUS-001",
        ) as generate:
            with self.assertRaises(CodeCollision):
                services.create_customer("Jane Roe", email="jane@example.com")

        self.assertEqual(generate.call_count, 5)
        self.assertEqual(Customer.objects.count(), 1)


class MatchCustomerTests(TestCase):
    def setUp(self) -> None:
        self.by_phone = services.create_customer("Alice Phone", "0812345678", "alice@example.com")
        self.by_email = services.create_customer("Bob Email", email="bob@example.com")

    def test_phone_wins_over_email(self) -> None:
        match = services.match_customer("Someone", "+66812345678", "bob@example.com")

        assert match is not None
        self.assertEqual(match.customer, self.by_phone)
        self.assertEqual(match.matched_by, "phone")
        self.assertEqual(match.confidence, "high")

    def test_email_is_case_insensitive(self) -> None:
        match = services.match_customer("Someone", None, "BOB@Example.com")

        assert match is not None
        self.assertEqual(match.customer, self.by_email)
        self.assertEqual(match.matched_by, "email")

    def test_inactive_customers_are_ignored(self) -> None:
        Customer.objects.filter(pk=self.by_email.pk).update(is_active=False)

        self.assertIsNone(services.match_customer("Bob Email", None, "bob@example.com"))

    def test_fuzzy_name_requires_opt_in(self) -> None:
        self.assertIsNone(services.match_customer("alice phone", None, None))

        match = services.match_customer("alice phone", None, None, allow_fuzzy_name=True)

        assert match is not None
        self.assertEqual(match.customer, self.by_phone)
        self.assertEqual(match.matched_by, "fuzzy_name")
        self.assertEqual(match.confidence, "medium")

    def test_fuzzy_name_below_threshold_is_no_match(self) -> None:
        self.assertIsNone(services.find_by_fuzzy_name("Alice Phon"))
        self.assertEqual(services.find_by_fuzzy_name("Alice Phon", threshold=0.5), self.by_phone)

    def test_ambiguous_fuzzy_name_is_no_match(self) -> None:
        services.create_customer("Alice Phone", "0899999999")

        with self.assertLogs("apps.customers.services", level="WARNING") as logs:
            match = services.match_customer("Alice Phone", None, None, allow_fuzzy_name=True)

        self.assertIsNone(match)
        self.assertIn("Ambiguous fuzzy name match", logs.output[0])

    def test_short_phone_never_matches(self) -> None:
        self.assertIsNone(services.find_by_phone("5678"))


class GetOrCreateCustomerTests(TestCase):
    def test_creates_then_reuses(self) -> None:
        created = services.get_or_create_customer({"name": "John Doe", "phone": "0812345678"})
        reused = services.get_or_create_customer({"name": "J. Doe", "phone": "+66812345678"})

        self.assertTrue(created["is_new"])
        self.assertIsNone(created["matched_by"])
        self.assertFalse(reused["is_new"])
        self.assertEqual(reused["customer"], created["customer"])
        self.assertEqual(reused["matched_by"], "phone")
        self.assertEqual(reused["confidence"], "high")

    def test_recovers_from_concurrent_insert(self) -> None:
        existing = services.create_customer("John Doe", "0812345678")

        with patch(
            "apps.customers.services.find_by_phone",
            side_effect=[None, existing],
        ):
            result = services.get_or_create_customer({"name": "John Doe", "phone": "0812345678"})

        self.assertFalse(result["is_new"])
        self.assertEqual(result["customer"], existing)
        self.assertEqual(result["matched_by"], "phone")
        self.assertEqual(Customer.objects.count(), 1)
