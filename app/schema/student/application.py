from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime, date

from app.workflow.events import ProfileFields
from app.workflow.projection import StepView
from app.workflow.states import (
    ApplicantStatus,
    GenderType,
    MAX_STEP,
    MIN_STEP,
    PaymentMethod,
    PaymentRecordStatus,
    PaymentStatus,
)


class DraftSaveRequest(ProfileFields):
    """Partial form data; blank fields never overwrite saved values."""
    step: int = Field(MIN_STEP, description=f"Form step the student is on ({MIN_STEP}-{MAX_STEP})")


class ApplicationResponse(BaseModel):
    """Applicant record as the student sees it."""
    id: UUID
    application_id: Optional[str] = None
    email: str
    phone: Optional[str] = None

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

    photo_ref: Optional[str] = None
    id_proof_ref: Optional[str] = None
    certificate_ref: Optional[str] = None

    is_draft: bool
    current_step: int
    status: ApplicantStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    application_fee: Optional[int] = None
    transfer_ref: Optional[str] = None
    last_saved_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DraftResponse(BaseModel):
    draft: Optional[ApplicationResponse] = None


class ClearDraftResponse(BaseModel):
    deleted: int


class ApplicationStatusResponse(BaseModel):
    application: ApplicationResponse
    view: StepView


class PaymentResponse(BaseModel):
    id: UUID
    method: PaymentMethod
    amount: int
    currency: str
    status: PaymentRecordStatus
    order_ref: Optional[str] = None
    transaction_ref: Optional[str] = None
    transfer_ref: Optional[str] = None
    proof_ref: Optional[str] = None
    paid_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    reviewer_note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]


class GatewayOrderResponse(BaseModel):
    order_ref: str
    amount: int
    currency: str
    key_id: Optional[str] = None
    application_id: str
    payment_id: UUID

    class Config:
        from_attributes = True


class GatewayVerifyRequest(BaseModel):
    """Fields the checkout widget hands back after a payment."""
    order_ref: str = Field(..., min_length=1)
    transaction_ref: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class PaymentResultResponse(BaseModel):
    application: ApplicationResponse
    payment: PaymentResponse
