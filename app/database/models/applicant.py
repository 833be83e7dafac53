import uuid
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, Text, Integer, Float, Uuid,
    ForeignKey, Enum as SQLEnum, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database.config.db import Base, enum_values
from app.workflow.states import (
    ApplicantStatus,
    PaymentStatus,
    PaymentMethod,
    GenderType,
)


class Applicant(Base):
    """One admission attempt, from first draft save to the final decision."""
    __tablename__ = "applicants"

    # Primary Key
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )

    # Human-readable application number (e.g., "SU202600001"), set on submission
    application_id = Column(String(20), unique=True, nullable=True, index=True)

    # Optimistic lock counter, checked on every UPDATE
    version = Column(Integer, nullable=False, default=1)

    # ==================== IDENTITY ====================
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)

    # ==================== PROFILE ====================
    full_name = Column(String(150), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(SQLEnum(GenderType, name="gendertype", values_callable=enum_values), nullable=True)
    address = Column(Text, nullable=True)

    qualification = Column(String(100), nullable=True)
    institution = Column(String(255), nullable=True)
    passing_year = Column(Integer, nullable=True)
    percentage = Column(Float, nullable=True)

    program_type = Column(String(100), nullable=True)
    course_name = Column(String(255), nullable=True)

    # ==================== DOCUMENTS (locators) ====================
    photo_ref = Column(String(500), nullable=True)
    id_proof_ref = Column(String(500), nullable=True)
    certificate_ref = Column(String(500), nullable=True)

    # ==================== STATUS & WORKFLOW ====================
    is_draft = Column(Boolean, nullable=False, default=True, index=True)
    current_step = Column(Integer, nullable=False, default=1)
    status = Column(
        SQLEnum(ApplicantStatus, name="applicantstatus", values_callable=enum_values),
        nullable=False,
        default=ApplicantStatus.DRAFT,
        index=True,
    )

    # ==================== PAYMENT ====================
    payment_status = Column(
        SQLEnum(PaymentStatus, name="paymentstatus", values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    payment_method = Column(
        SQLEnum(PaymentMethod, name="paymentmethod", values_callable=enum_values),
        nullable=True,
    )
    application_fee = Column(Integer, nullable=True)
    transfer_ref = Column(String(50), nullable=True)
    payment_proof_ref = Column(String(500), nullable=True)

    # ==================== DATES ====================
    last_saved_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # ==================== RELATIONSHIPS ====================
    notes = relationship(
        "ApplicantNote",
        back_populates="applicant",
        order_by="ApplicantNote.created_at",
        cascade="all, delete-orphan",
    )
    payments = relationship("Payment", back_populates="applicant")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("current_step BETWEEN 1 AND 6", name="ck_applicant_current_step"),
        CheckConstraint(
            "(is_draft AND application_id IS NULL) OR (NOT is_draft AND application_id IS NOT NULL)",
            name="ck_applicant_draft_application_id",
        ),
        Index("ix_applicant_email_draft_saved", "email", "is_draft", "last_saved_at"),
        Index("ix_applicant_created", "created_at"),
    )


class ApplicantNote(Base):
    """Append-only admin note on an applicant."""
    __tablename__ = "applicant_notes"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    applicant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("applicants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    note = Column(Text, nullable=False)
    author_name = Column(String(150), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    applicant = relationship("Applicant", back_populates="notes")
