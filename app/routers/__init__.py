from fastapi import APIRouter
from app.routers.student import student_router
from app.routers.admin import admin_router
from app.routers.public import public_router

# Create API router with prefix
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(student_router)
api_router.include_router(admin_router)
api_router.include_router(public_router)
