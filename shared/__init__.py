"""
Shared kernel

Domain building blocks, the error taxonomy, the unit of work and the
message bus used by the reservations and finances apps.
"""
