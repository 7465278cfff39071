"""Catalog app package.

Hotels, flights, tour packages and additional services that reservation
line items are priced against, plus the provider used to reserve and
release their finite capacity.
"""
