"""
Immutable snapshots the workflow engine reads and returns.

The ORM rows in app.database.models are loaded into these with
``model_validate(row)`` (from_attributes) and written back by the stores.
"""
import enum
from datetime import date, datetime
from typing import Optional, Tuple
from uuid import UUID

from pydantic import BaseModel


# ==================== ENUMS ====================

class ApplicantStatus(str, enum.Enum):
    """Where the applicant is in the admission process."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"
    PENDING_VERIFICATION = "pending_verification"


class PaymentStatus(str, enum.Enum):
    """Fee status as seen on the applicant record."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    UNDER_VERIFICATION = "under_verification"
    VERIFIED = "verified"


class PaymentRecordStatus(str, enum.Enum):
    """Status of a single payment attempt in the ledger."""
    CREATED = "created"
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    UNDER_VERIFICATION = "under_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    GATEWAY = "gateway"
    MANUAL_TRANSFER = "manual_transfer"


class GenderType(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActorKind(str, enum.Enum):
    STUDENT = "student"
    ADMIN = "admin"


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


TERMINAL_STATUSES = frozenset({ApplicantStatus.ACCEPTED, ApplicantStatus.REJECTED})
SETTLED_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.VERIFIED})
ACTIVE_PAYMENT_STATUSES = SETTLED_PAYMENT_STATUSES | {PaymentStatus.UNDER_VERIFICATION}
OPEN_GATEWAY_STATUSES = frozenset({PaymentRecordStatus.CREATED, PaymentRecordStatus.PENDING})

# Required on submission, in form order
PROFILE_FIELDS = (
    "full_name",
    "phone",
    "date_of_birth",
    "gender",
    "address",
    "qualification",
    "institution",
    "passing_year",
    "percentage",
    "program_type",
    "course_name",
)
DOCUMENT_FIELDS = ("photo_ref", "id_proof_ref", "certificate_ref")

MIN_STEP = 1
MAX_STEP = 6
PAYMENT_STEP = 5
VERIFICATION_STEP = 6


# ==================== SNAPSHOTS ====================

class Actor(BaseModel):
    """Identity resolved from a bearer token."""
    kind: ActorKind
    id: UUID
    email: str
    name: Optional[str] = None
    role: Optional[AdminRole] = None

    class Config:
        frozen = True


class AdminNote(BaseModel):
    note: str
    author_name: str
    created_at: datetime

    class Config:
        frozen = True
        from_attributes = True


class ApplicantState(BaseModel):
    id: Optional[UUID] = None
    version: Optional[int] = None

    email: str
    phone: Optional[str] = None

    # Profile
    full_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[GenderType] = None
    address: Optional[str] = None
    qualification: Optional[str] = None
    institution: Optional[str] = None
    passing_year: Optional[int] = None
    percentage: Optional[float] = None
    program_type: Optional[str] = None
    course_name: Optional[str] = None

    # Document locators
    photo_ref: Optional[str] = None
    id_proof_ref: Optional[str] = None
    certificate_ref: Optional[str] = None

    # Workflow
    is_draft: bool = True
    current_step: int = MIN_STEP
    status: ApplicantStatus = ApplicantStatus.DRAFT
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    application_id: Optional[str] = None
    application_fee: Optional[int] = None
    transfer_ref: Optional[str] = None
    payment_proof_ref: Optional[str] = None
    last_saved_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    notes: Tuple[AdminNote, ...] = ()

    class Config:
        frozen = True
        from_attributes = True

    @property
    def has_all_documents(self) -> bool:
        return all(getattr(self, name) for name in DOCUMENT_FIELDS)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class PaymentState(BaseModel):
    id: Optional[UUID] = None
    applicant_id: Optional[UUID] = None
    student_email: str
    method: PaymentMethod
    amount: int
    currency: str
    status: PaymentRecordStatus

    # Gateway
    order_ref: Optional[str] = None
    transaction_ref: Optional[str] = None
    signature: Optional[str] = None

    # Manual transfer
    transfer_ref: Optional[str] = None
    proof_ref: Optional[str] = None

    paid_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    reviewer_note: Optional[str] = None
    reviewed_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        frozen = True
        from_attributes = True
