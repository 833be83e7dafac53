import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, DateTime, Text, Integer, Uuid,
    ForeignKey, Enum as SQLEnum, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database.config.db import Base, enum_values
from app.workflow.states import PaymentMethod, PaymentRecordStatus


class Payment(Base):
    """Ledger entry for one payment attempt. Rows are never deleted."""
    __tablename__ = "payments"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    applicant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("applicants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_email = Column(String(255), nullable=False, index=True)

    # ==================== AMOUNT ====================
    method = Column(
        SQLEnum(PaymentMethod, name="paymentmethod", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    amount = Column(Integer, nullable=False)  # major currency unit
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(
        SQLEnum(PaymentRecordStatus, name="paymentrecordstatus", values_callable=enum_values),
        nullable=False,
        default=PaymentRecordStatus.PENDING,
        index=True,
    )

    # ==================== GATEWAY ====================
    order_ref = Column(String(100), nullable=True, unique=True)
    transaction_ref = Column(String(100), nullable=True)
    signature = Column(String(255), nullable=True)

    # ==================== MANUAL TRANSFER ====================
    transfer_ref = Column(String(50), nullable=True, index=True)
    proof_ref = Column(String(500), nullable=True)

    # ==================== REVIEW ====================
    paid_at = Column(DateTime(timezone=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    reviewer_note = Column(Text, nullable=True)
    reviewed_by = Column(String(150), nullable=True)

    # Workflow clock when the snapshot carries one
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    applicant = relationship("Applicant", back_populates="payments")

    __table_args__ = (
        Index("ix_payment_applicant_created", "applicant_id", "created_at"),
    )
