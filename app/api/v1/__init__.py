"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1 import automation, forms, health

api_router = APIRouter()

# Include module routers
api_router.include_router(health.router)
api_router.include_router(automation.router, prefix="/automation", tags=["automation"])
api_router.include_router(forms.router, prefix="/forms", tags=["forms"])
