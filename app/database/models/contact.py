import enum
import uuid
from sqlalchemy import Column, String, DateTime, Text, Uuid, Enum as SQLEnum
from sqlalchemy.sql import func

from app.database.config.db import Base, enum_values


class ContactStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    RESOLVED = "resolved"


class Contact(Base):
    """Enquiry submitted through the public contact form."""
    __tablename__ = "contacts"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(
        SQLEnum(ContactStatus, name="contactstatus", values_callable=enum_values),
        nullable=False,
        default=ContactStatus.NEW,
        index=True,
    )
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
