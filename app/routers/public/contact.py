import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database.config.db import get_db
from app.database.models.contact import Contact
from app.schema.contact import ContactCreateRequest, ContactResponse

logger = logging.getLogger(__name__)

contact_router = APIRouter(prefix="/contact", tags=["Public - Contact"])


@contact_router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def submit_contact(
    body: ContactCreateRequest,
    db: Session = Depends(get_db),
):
    """
    Public enquiry form. No login required.
    """
    contact = Contact(
        name=body.name.strip(),
        email=body.email.strip().lower(),
        phone=body.phone.strip(),
        subject=body.subject.strip(),
        message=body.message.strip(),
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    logger.info("Contact enquiry %s received", contact.id)
    return contact
