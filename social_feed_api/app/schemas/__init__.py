"""
Pydantic schema definitions for API payloads.

Each domain (users, posts) defines its own Pydantic models for request
and response bodies.  Schemas are separated from the database tables to
decouple API representation from persistence.
"""
