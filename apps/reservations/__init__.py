"""Reservations app package.

A reservation is a running aggregate of independently priced line items
(hotel stays, flight segments, package enrollments and additional
services). The command handlers in ``application`` own its status and
totals.
"""
