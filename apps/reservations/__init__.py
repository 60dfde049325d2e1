"""Reservations app package.

Holds the bay reservation ledger. Allocation walks a party-size dependent
preference list of bays; the overlap check is a fast path and the real
guarantee against double allocation is the store-level exclusion
constraint installed on PostgreSQL.
"""
