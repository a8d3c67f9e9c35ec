"""API router aggregation."""

from fastapi import APIRouter

from .endpoints import health, specifications

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(specifications.router, prefix="/specifications", tags=["specifications"])
