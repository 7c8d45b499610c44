from fastapi import APIRouter

from cicd_dashboard.api.routes import dashboard, health

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
