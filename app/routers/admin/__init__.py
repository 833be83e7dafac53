from fastapi import APIRouter
from app.routers.admin.auth import admin_auth_router
from app.routers.admin.applicants import applicants_router
from app.routers.admin.contacts import contacts_router

# Create admin router with prefix
admin_router = APIRouter(prefix="/admin")

# Include all admin routers
admin_router.include_router(admin_auth_router)
admin_router.include_router(applicants_router)
admin_router.include_router(contacts_router)

__all__ = ["admin_router"]
