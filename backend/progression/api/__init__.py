"""
API module for FastAPI routes.
"""
from fastapi import APIRouter

from progression.api.routes import achievements

api_router = APIRouter()

api_router.include_router(achievements.router)
