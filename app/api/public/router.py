"""
Public API Router

Unauthenticated endpoints, mounted under /api/public.
"""

from fastapi import APIRouter

from app.api.public import forms

public_router = APIRouter()

public_router.include_router(forms.router, prefix="/forms", tags=["public"])
