"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from vehicle_storage.api.v1.endpoints import storage

api_router = APIRouter()

# Include storage administration endpoints
api_router.include_router(storage.router)

__all__ = ["api_router"]
