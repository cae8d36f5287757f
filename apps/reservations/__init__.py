"""Reservations app package.

This app owns the booking core: a reservation is accepted only when no
other non-cancelled reservation of the same property overlaps its dates.
The check and the insert run in one database transaction with the
property row locked, and PostgreSQL additionally enforces the rule with
an exclusion constraint.
"""
