"""
API Routes
"""

from fastapi import APIRouter

from .generate import router as generate_router

api_router = APIRouter()

api_router.include_router(generate_router, prefix="/generate", tags=["Generation"])
