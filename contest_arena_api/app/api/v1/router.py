"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers.  The public paths are the
ones web clients and the checkout redirect already use, so most
routers are included without an extra prefix and declare their own
paths (``/contests``, ``/create-checkout-session``, ``/declare-winner``).
"""

from fastapi import APIRouter

from .endpoints import contests, creators, payments, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(contests.router, tags=["contests"])
router.include_router(payments.router, tags=["payments"])
router.include_router(creators.router, prefix="/creator", tags=["creators"])
