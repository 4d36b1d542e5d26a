"""
Device-side sync for the shared contact CRM.

Registers a device account against the backend, pushes the device call log
and contacts, and pulls the shared contact book incrementally.
"""
