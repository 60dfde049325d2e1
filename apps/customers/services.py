"""Customer matching and registration services."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Mapping

from django.conf import settings  # type: ignore
from django.db import IntegrityError, connection, transaction  # type: ignore

from shared.domain.exceptions import (
    AmbiguousMatch,
    CodeCollision,
    DuplicateContact,
    InvalidArgument,
)
from shared.infrastructure.db import check_max_length, is_violation_of

from .models import Customer, CustomerCodeSequence
from .similarity import similarity
from .utils import clean_text, normalize_phone

logger = logging.getLogger(__name__)


class MatchConfidence:
    HIGH = "high"
    MEDIUM = "medium"


class MatchedBy:
    PHONE = "phone"
    EMAIL = "email"
    FUZZY_NAME = "fuzzy_name"


@dataclass(frozen=True)
class CustomerMatch:
    customer: Customer
    confidence: str
    matched_by: str


def _active_customers():
    return Customer.objects.filter(is_active=True)


def find_by_phone(phone: str | None) -> Customer | None:
    """Return the active customer owning the normalized phone, if any."""

    normalized = normalize_phone(phone)
    if not normalized:
        if phone:
            logger.warning(f"Phone number too short for matching: {phone!r}")
        return None

    customer = _active_customers().filter(normalized_phone=normalized).first()
    if customer is not None:
        logger.debug(f"Customer {customer.customer_code} found by phone {normalized}")
    return customer


def find_by_email(email: str | None) -> Customer | None:
    """Case-insensitive exact email lookup among active customers."""

    email = clean_text(email)
    if not email:
        return None

    customer = _active_customers().filter(email__iexact=email).order_by("created_at", "pk").first()
    if customer is not None:
        logger.debug(f"Customer {customer.customer_code} found by email {email}")
    return customer


def find_customers_by_fuzzy_name(name: str, threshold: float) -> list[tuple[Customer, float]]:
    """Active customers whose name similarity is at least ``threshold``.

    Best score first. PostgreSQL ranks with ``pg_trgm``; other backends
    compute the same trigram score in Python.
    """

    if connection.vendor == "postgresql":
        from django.contrib.postgres.search import TrigramSimilarity  # type: ignore

        queryset = (
            _active_customers()
            .annotate(similarity=TrigramSimilarity("customer_name", name))
            .filter(similarity__gte=threshold)
            .order_by("-similarity", "pk")
        )
        return [(customer, float(customer.similarity)) for customer in queryset]

    scored = []
    for customer in _active_customers().order_by("pk"):
        score = similarity(name, customer.customer_name)
        if score >= threshold:
            scored.append((customer, score))
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored


def _single_candidate(name: str, candidates: list[tuple[Customer, float]]) -> tuple[Customer, float] | None:
    if not candidates:
        return None
    if len(candidates) > 1:
        raise AmbiguousMatch(
            f"{len(candidates)} customers have names similar to {name!r}",
            candidates=candidates,
        )
    return candidates[0]


def find_by_fuzzy_name(name: str | None, threshold: float | None = None) -> Customer | None:
    """Accept a fuzzy name match only when exactly one candidate qualifies."""

    name = clean_text(name)
    if not name:
        return None
    if threshold is None:
        threshold = settings.FUZZY_NAME_THRESHOLD

    candidates = find_customers_by_fuzzy_name(name, threshold)
    try:
        found = _single_candidate(name, candidates)
    except AmbiguousMatch as exc:
        top = ", ".join(f"{c.customer_name} ({score:.2f})" for c, score in exc.candidates[:3])
        logger.warning(f"Ambiguous fuzzy name match for {name!r}: {exc}. Top matches: {top}")
        return None

    if found is None:
        return None
    customer, score = found
    logger.debug(f"Customer {customer.customer_code} found by fuzzy name {name!r} (similarity {score:.2f})")
    return customer


def match_customer(
    name: str | None,
    phone: str | None,
    email: str | None,
    allow_fuzzy_name: bool = False,
) -> CustomerMatch | None:
    """Match by phone, then email, then (when allowed) fuzzy name."""

    if phone:
        customer = find_by_phone(phone)
        if customer is not None:
            return CustomerMatch(customer, MatchConfidence.HIGH, MatchedBy.PHONE)

    if email:
        customer = find_by_email(email)
        if customer is not None:
            return CustomerMatch(customer, MatchConfidence.HIGH, MatchedBy.EMAIL)

    if allow_fuzzy_name and name:
        customer = find_by_fuzzy_name(name)
        if customer is not None:
            return CustomerMatch(customer, MatchConfidence.MEDIUM, MatchedBy.FUZZY_NAME)

    logger.debug(f"No matching customer for name={name!r} phone={phone!r} email={email!r}")
    return None


def generate_customer_code() -> str:
    value = CustomerCodeSequence.next_value()
    return f"{settings.CUSTOMER_CODE_PREFIX}-{value:03d}"


def create_customer(name: str | None, phone: str | None = None, email: str | None = None) -> Customer:
    """Register a new customer under a freshly generated code.

    Raises ``DuplicateContact`` when the normalized phone already belongs
    to an active customer and ``CodeCollision`` when every generated code
    was already taken.
    """

    name = clean_text(name)
    phone = clean_text(phone)
    email = clean_text(email)

    if not name:
        raise InvalidArgument("Customer name is required")
    if not phone and not email:
        raise InvalidArgument("At least one contact method (phone or email) is required")
    check_max_length(Customer, customer_name=name, contact_number=phone, email=email)

    max_attempts = settings.CUSTOMER_CODE_MAX_ATTEMPTS
    for attempt in range(1, max_attempts + 1):
        customer_code = generate_customer_code()
        try:
            with transaction.atomic():
                customer = Customer.objects.create(
                    customer_code=customer_code,
                    customer_name=name,
                    contact_number=phone,
                    email=email,
                    preferred_contact_method=(
                        Customer.ContactMethod.PHONE if phone else Customer.ContactMethod.EMAIL
                    ),
                )
        except IntegrityError as exc:
            if is_violation_of(exc, "normalized_phone"):
                logger.warning(f"Customer with phone {phone!r} already exists")
                raise DuplicateContact(f"Phone {phone} already belongs to an active customer") from exc
            if not is_violation_of(exc, "customer_code"):
                raise
            logger.warning(f"Customer code collision on {customer_code} (attempt {attempt}/{max_attempts})")
            if attempt < max_attempts:
                time.sleep(random.uniform(0, settings.RETRY_BACKOFF_MAX_SECONDS))
            continue

        logger.info(
            f"Customer {customer.customer_code} created for {customer.customer_name} "
            f"after {attempt} attempt(s)"
        )
        return customer

    logger.error(f"Failed to generate a unique customer code after {max_attempts} attempts")
    raise CodeCollision(f"Failed to generate a unique customer code after {max_attempts} attempts")


def get_or_create_customer(data: Mapping[str, Any], allow_fuzzy_name: bool = False) -> dict[str, Any]:
    """Match an existing customer or register a new one.

    Returns ``{"customer", "is_new", "matched_by", "confidence"}``.
    """

    name, phone, email = data.get("name"), data.get("phone"), data.get("email")

    match = match_customer(name, phone, email, allow_fuzzy_name)
    if match is not None:
        return {
            "customer": match.customer,
            "is_new": False,
            "matched_by": match.matched_by,
            "confidence": match.confidence,
        }

    try:
        customer = create_customer(name, phone, email)
    except DuplicateContact:
        # A concurrent writer registered the same phone between match and insert.
        match = match_customer(name, phone, email)
        if match is None:
            raise
        logger.info(f"Reusing customer {match.customer.customer_code} created concurrently")
        return {
            "customer": match.customer,
            "is_new": False,
            "matched_by": match.matched_by,
            "confidence": match.confidence,
        }

    return {"customer": customer, "is_new": True, "matched_by": None, "confidence": None}
