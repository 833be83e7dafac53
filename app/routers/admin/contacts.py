from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database.config.db import get_db
from app.database.models.auth import Admin
from app.database.models.contact import Contact, ContactStatus
from app.schema.contact import ContactListResponse, ContactResponse, ContactUpdateRequest
from app.utils.auth import get_current_admin

contacts_router = APIRouter(prefix="/contacts", tags=["Admin - Contacts"])


@contacts_router.get("", response_model=ContactListResponse)
def list_contacts(
    status_filter: Optional[ContactStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Contact)
    if status_filter is not None:
        query = query.filter(Contact.status == status_filter)

    total = query.count()
    items = (
        query.order_by(Contact.submitted_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ContactListResponse(
        items=[ContactResponse.model_validate(c) for c in items],
        total=total,
        page=page,
        limit=limit,
    )


@contacts_router.patch("/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: UUID,
    body: ContactUpdateRequest,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Move an enquiry to contacted or resolved.
    """
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact enquiry not found",
        )

    contact.status = body.status
    db.commit()
    db.refresh(contact)
    return contact
