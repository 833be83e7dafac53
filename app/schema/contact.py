from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.database.models.contact import ContactStatus


class ContactCreateRequest(BaseModel):
    """Public contact form submission."""
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


class ContactResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str
    subject: str
    message: str
    status: ContactStatus
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    items: List[ContactResponse]
    total: int
    page: int
    limit: int


class ContactUpdateRequest(BaseModel):
    status: ContactStatus
