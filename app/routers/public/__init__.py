from fastapi import APIRouter
from app.routers.public.contact import contact_router

# Create public router with prefix
public_router = APIRouter(prefix="/public")

public_router.include_router(contact_router)

__all__ = ["public_router"]
