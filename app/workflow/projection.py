"""
Derived view state for the multi-step application form.

This is the only place the "which step should the UI show" rule lives; the
cached ``current_step`` column is refreshed from it after every transition.
"""
from typing import Optional

from pydantic import BaseModel

from app.workflow.states import (
    ApplicantState,
    ApplicantStatus,
    PaymentStatus,
    SETTLED_PAYMENT_STATUSES,
    MIN_STEP,
    MAX_STEP,
    PAYMENT_STEP,
    VERIFICATION_STEP,
)

REDIRECT_PAYMENT = "payment"
REDIRECT_VERIFICATION = "verification"
REDIRECT_COMPLETE = "complete"


class StepView(BaseModel):
    status: str
    payment_status: Optional[PaymentStatus] = None
    current_step: int
    redirect_to: Optional[str] = None
    is_complete: bool = False
    application_id: Optional[str] = None
    has_documents: bool = False
    has_photo: bool = False
    has_id_proof: bool = False
    has_certificate: bool = False


def project_step(applicant: Optional[ApplicantState]) -> StepView:
    """Compute the step view for an applicant, or for a student with no record yet."""
    if applicant is None:
        return StepView(status="new", current_step=MIN_STEP)

    current_step = applicant.current_step or MIN_STEP
    redirect_to = None
    is_complete = False

    if applicant.is_draft:
        current_step = applicant.current_step or MIN_STEP
    elif applicant.status == ApplicantStatus.SUBMITTED and applicant.has_all_documents:
        current_step = PAYMENT_STEP
        redirect_to = REDIRECT_PAYMENT
    elif (
        applicant.status == ApplicantStatus.UNDER_REVIEW
        and applicant.payment_status == PaymentStatus.UNDER_VERIFICATION
    ):
        current_step = VERIFICATION_STEP
        redirect_to = REDIRECT_VERIFICATION
    elif (
        applicant.payment_status in SETTLED_PAYMENT_STATUSES
        or applicant.status == ApplicantStatus.ACCEPTED
    ):
        current_step = MAX_STEP
        redirect_to = REDIRECT_COMPLETE
        is_complete = True

    return StepView(
        status=applicant.status.value,
        payment_status=applicant.payment_status,
        current_step=current_step,
        redirect_to=redirect_to,
        is_complete=is_complete,
        application_id=applicant.application_id,
        has_documents=applicant.has_all_documents,
        has_photo=bool(applicant.photo_ref),
        has_id_proof=bool(applicant.id_proof_ref),
        has_certificate=bool(applicant.certificate_ref),
    )
