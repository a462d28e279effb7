"""
Main API router for ChatShare

This module aggregates all API routes from individual modules.
"""

from fastapi import APIRouter

from chatshare.api.parse import router as parse_router

router = APIRouter(prefix="/api")

router.include_router(parse_router)
