from __future__ import annotations

from fastapi import APIRouter

from app.api.routes import admin, customers

api_router = APIRouter()

api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
