"""API router aggregation"""
from fastapi import APIRouter
from app.api.endpoints import auth_endpoints

api_router = APIRouter()

api_router.include_router(auth_endpoints.router, prefix="/auth", tags=["Authentication"])
