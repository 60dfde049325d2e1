"""Ingest app package.

Applies booking and cancellation requests extracted from third-party
notifications to the ledger exactly once per upstream message. The
``ProcessedMessage`` table is the idempotency barrier and the audit trail
operators use to reprocess failures by hand.
"""
