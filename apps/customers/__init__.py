"""Customers app package.

Holds the client and employee records that reservations point at.
Management happens through the Django admin.
"""
