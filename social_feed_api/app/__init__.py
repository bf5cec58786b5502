"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Each domain (users, posts) has a service in ``services``,
schemas in ``schemas`` and a router in ``api/v1/endpoints``.
Versioning is handled by grouping routers under ``api/<version>/``.
"""

from .main import app  # noqa: F401
