"""API routes."""

from fastapi import APIRouter

from fuelcredit.api import auth

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
