"""
API v1 Router
Aggregates all v1 API routes
"""
from fastapi import APIRouter

from app.api.v1.projects import router as projects_router
from app.api.v1.difficulty import router as difficulty_router

# Main v1 router
api_router = APIRouter(prefix="/api/v1")

# Include sub-routers
api_router.include_router(projects_router)
api_router.include_router(difficulty_router)
