"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks used by every feature (DB wiring,
settings, logging). Feature-specific SQL and business logic live in the
feature package (e.g. `entries/`).
"""
