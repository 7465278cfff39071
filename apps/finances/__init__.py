"""Finances app package.

Invoices issued against confirmed reservations and the payments that
settle them. Reconciliation keeps invoice and reservation balances in
step with the approved payments.
"""
