from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.workflow.states import AdminRole


class AdminUpdatePasswordRequest(BaseModel):
    """Request to update admin password (current + new)."""
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, description="New password (min 8 characters)")


class AdminLoginRequest(BaseModel):
    """Admin login request; ``username`` may also be the account email."""
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)


class AdminLoginResponse(BaseModel):
    admin_id: UUID
    token: str
    role: AdminRole
    name: Optional[str] = None
    last_login: Optional[datetime] = None


class AdminMeResponse(BaseModel):
    """Current admin account information."""
    id: UUID
    username: str
    email: str
    name: Optional[str] = None
    role: AdminRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminMeUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None


class AdminCreateRequest(BaseModel):
    """Superadmin-only: create another admin account."""
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    name: Optional[str] = Field(None, max_length=150)
    password: str = Field(..., min_length=8)
    role: AdminRole = AdminRole.ADMIN
