"""
Shared Kernel

Base classes and helpers shared by the customers, reservations and ingest
apps: the domain error taxonomy, the time slot value object, domain events
and the message bus that delivers them after commit.
"""
