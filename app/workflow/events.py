"""Events accepted by the workflow engine."""
import enum
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from app.workflow.states import GenderType, MIN_STEP


class ReviewDecision(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    HOLD = "hold"


class VerificationDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class ProfileFields(BaseModel):
    """Applicant profile fields; ranges are checked by the engine, not here."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[GenderType] = None
    address: Optional[str] = None
    qualification: Optional[str] = None
    institution: Optional[str] = None
    passing_year: Optional[int] = None
    percentage: Optional[float] = None
    program_type: Optional[str] = None
    course_name: Optional[str] = None


class DocumentRefs(BaseModel):
    photo_ref: Optional[str] = None
    id_proof_ref: Optional[str] = None
    certificate_ref: Optional[str] = None


class SaveDraft(BaseModel):
    fields: ProfileFields = Field(default_factory=ProfileFields)
    step: int = MIN_STEP


class SubmitApplication(BaseModel):
    fields: ProfileFields = Field(default_factory=ProfileFields)
    documents: DocumentRefs = Field(default_factory=DocumentRefs)


class InitiateGatewayPayment(BaseModel):
    pass


class ConfirmGatewayPayment(BaseModel):
    order_ref: str
    transaction_ref: Optional[str] = None
    signature: Optional[str] = None
    signature_valid: bool


class SubmitManualTransfer(BaseModel):
    transfer_ref: str
    proof_ref: Optional[str] = None


class AdminReview(BaseModel):
    decision: ReviewDecision
    note: Optional[str] = None


class AdminVerifyPayment(BaseModel):
    decision: VerificationDecision
    note: Optional[str] = None
