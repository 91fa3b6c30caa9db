"""
Pydantic schema definitions for API payloads.

Each domain (users, contests, payments, creator applications) defines
its own request and response models.  Schemas are separated from the
SQLite rows so the API representation can evolve independently of
persistence.
"""
