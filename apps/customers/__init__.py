"""Customers app package.

This app owns the customer registry used to deduplicate identities coming
from third-party booking notifications. Matching is priority-ordered
(phone, email, then optionally fuzzy name) and creation relies on store
constraints plus bounded retries, never on client-side scans.
"""
