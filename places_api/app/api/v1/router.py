"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.
"""

from fastapi import APIRouter

from .endpoints import places, users

router = APIRouter()

router.include_router(places.router, prefix="/places", tags=["places"])
router.include_router(users.router, prefix="/users", tags=["users"])
