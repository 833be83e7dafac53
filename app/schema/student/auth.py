from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime


class StudentRegisterRequest(BaseModel):
    """Student self-registration."""
    name: str = Field(..., min_length=1, max_length=150, description="Full name")
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    confirm_password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class StudentLoginRequest(BaseModel):
    """Student login request (email + password)."""
    email: EmailStr
    password: str = Field(..., min_length=1, description="Password")


class StudentUpdatePasswordRequest(BaseModel):
    """Request to update student password (current + new)."""
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, description="New password (min 8 characters)")


class StudentLoginResponse(BaseModel):
    """Student login / registration response."""
    student_id: UUID
    token: str
    name: str
    email: str
    last_login: Optional[datetime] = None


class StudentMeResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
