from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.schema.student.application import ApplicationResponse, PaymentResponse
from app.workflow.events import ReviewDecision, VerificationDecision


class AdminNoteResponse(BaseModel):
    note: str
    author_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicantListItem(ApplicationResponse):
    created_at: Optional[datetime] = None


class ApplicantListResponse(BaseModel):
    items: List[ApplicantListItem]
    total: int
    page: int
    limit: int
    pages: int


class ApplicantStatsResponse(BaseModel):
    """Dashboard counters. ``paid`` counts paid and verified applicants."""
    total: int
    paid: int
    pending: int
    under_verification: int
    accepted: int
    rejected: int
    revenue: int


class PaymentDetail(PaymentResponse):
    reviewed_by: Optional[str] = None
    signature: Optional[str] = None


class ApplicantDetailResponse(BaseModel):
    applicant: ApplicantListItem
    payments: List[PaymentDetail]
    notes: List[AdminNoteResponse]


class ReviewRequest(BaseModel):
    decision: ReviewDecision
    note: Optional[str] = Field(None, max_length=2000)


class PaymentVerifyRequest(BaseModel):
    decision: VerificationDecision
    note: Optional[str] = Field(None, max_length=2000)


class PaymentVerifyResponse(BaseModel):
    applicant: ApplicantListItem
    payment: PaymentDetail
