"""HR attendance package.

Feature modules (attendance, backfill, shifts, workdays, geofence, ...) sit
behind a thin Flask controller layer, with service and repository layers
wired together in ``container.py``.
"""
