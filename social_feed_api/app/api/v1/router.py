"""
Top-level router for version 1 of the API.

This router aggregates the domain routers (users, posts) under a
unified prefix.  When new domains are introduced, update this file to
include their routers.
"""

from fastapi import APIRouter

from .endpoints import posts, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(posts.router, prefix="/posts", tags=["posts"])
