import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status

from app.schema.student.application import (
    ApplicationResponse,
    ApplicationStatusResponse,
    ClearDraftResponse,
    DraftResponse,
    DraftSaveRequest,
    GatewayOrderResponse,
    GatewayVerifyRequest,
    PaymentListResponse,
    PaymentResponse,
    PaymentResultResponse,
)
from app.services.admissions import AdmissionService, get_admission_service
from app.services.gateway import GatewayError, RazorpayGateway, get_gateway
from app.services.storage import DOCUMENT, PAYMENT_PROOF, LocalFileStorage, StorageError, get_storage
from app.utils.auth import get_student_actor
from app.utils.notifications import notify_application_submitted
from app.workflow import StepView, project_step
from app.workflow.errors import WorkflowError
from app.workflow.events import DocumentRefs, ProfileFields
from app.workflow.states import Actor, GenderType, PaymentRecordStatus

logger = logging.getLogger(__name__)

application_router = APIRouter(
    prefix="/application",
    tags=["Student - Application"],
)


def _require_gateway(gateway: RazorpayGateway = Depends(get_gateway)) -> RazorpayGateway:
    if not gateway.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Online payment is currently unavailable. Please pay by bank transfer.",
        )
    return gateway


def _store_uploads(storage: LocalFileStorage, uploads: dict, kind: str) -> dict:
    """Store each provided upload; on a rejected file remove the ones already written."""
    stored = {}
    try:
        for name, upload in uploads.items():
            if upload is not None and upload.filename:
                stored[name] = storage.save(upload, kind)
    except StorageError as e:
        for locator in stored.values():
            storage.delete(locator)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return stored


# ==================== STATUS ====================

@application_router.get("/check-status", response_model=StepView)
def check_status(
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    """
    Which form step the student should see, and where to redirect them.
    """
    return service.check_status(actor.email)


@application_router.get("/status", response_model=ApplicationStatusResponse)
def application_status(
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    applicant = service.current_application(actor.email)
    return ApplicationStatusResponse(
        application=ApplicationResponse.model_validate(applicant),
        view=project_step(applicant),
    )


# ==================== DRAFTS ====================

@application_router.get("/draft", response_model=DraftResponse)
def get_draft(
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    draft = service.current_draft(actor.email)
    return DraftResponse(draft=ApplicationResponse.model_validate(draft) if draft else None)


@application_router.post("/draft", response_model=ApplicationResponse)
def save_draft(
    body: DraftSaveRequest,
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    """
    Save form progress. Only provided, non-blank fields are updated.
    """
    fields = ProfileFields(**body.model_dump(exclude={"step"}))
    return service.save_draft(actor, fields, body.step)


@application_router.delete("/draft", response_model=ClearDraftResponse)
def clear_draft(
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    return ClearDraftResponse(deleted=service.clear_drafts(actor.email))


# ==================== SUBMISSION ====================

@application_router.post(
    "/submit", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED
)
def submit_application(
    background_tasks: BackgroundTasks,
    full_name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    date_of_birth: Optional[date] = Form(None),
    gender: Optional[GenderType] = Form(None),
    address: Optional[str] = Form(None),
    qualification: Optional[str] = Form(None),
    institution: Optional[str] = Form(None),
    passing_year: Optional[int] = Form(None),
    percentage: Optional[float] = Form(None),
    program_type: Optional[str] = Form(None),
    course_name: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    id_proof: Optional[UploadFile] = File(None),
    certificate: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
    storage: LocalFileStorage = Depends(get_storage),
):
    """
    Submit the application with its documents (PNG, JPG or PDF, 2MB each).

    Missing fields are taken from the saved draft. On success the application
    id is assigned and the student moves on to payment.
    """
    fields = ProfileFields(
        full_name=full_name,
        phone=phone,
        date_of_birth=date_of_birth,
        gender=gender,
        address=address,
        qualification=qualification,
        institution=institution,
        passing_year=passing_year,
        percentage=percentage,
        program_type=program_type,
        course_name=course_name,
    )
    stored = _store_uploads(
        storage,
        {"photo_ref": photo, "id_proof_ref": id_proof, "certificate_ref": certificate},
        DOCUMENT,
    )

    try:
        applicant = service.submit(actor, fields, DocumentRefs(**stored))
    except WorkflowError:
        for locator in stored.values():
            storage.delete(locator)
        raise

    logger.info("Application %s submitted by %s", applicant.application_id, actor.id)
    notify_application_submitted(background_tasks, applicant)
    return applicant


# ==================== PAYMENTS ====================

@application_router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    payments = service.payment_history(actor.email)
    return PaymentListResponse(payments=[PaymentResponse.model_validate(p) for p in payments])


@application_router.post("/payment/order", response_model=GatewayOrderResponse)
def create_payment_order(
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
    gateway: RazorpayGateway = Depends(_require_gateway),
):
    """
    Create a gateway order for the application fee.
    """
    try:
        order = service.start_gateway_payment(actor, gateway)
    except GatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return GatewayOrderResponse.model_validate(order)


@application_router.post("/payment/verify", response_model=PaymentResultResponse)
def verify_gateway_payment(
    body: GatewayVerifyRequest,
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
    gateway: RazorpayGateway = Depends(_require_gateway),
):
    """
    Confirm a gateway payment with the signature returned by the checkout.

    Replaying a confirmation for an already-paid order succeeds without changes.
    """
    applicant, payment = service.confirm_gateway_payment(
        actor, gateway, body.order_ref, body.transaction_ref, body.signature
    )
    if payment.status == PaymentRecordStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment verification failed",
        )
    return PaymentResultResponse(
        application=ApplicationResponse.model_validate(applicant),
        payment=PaymentResponse.model_validate(payment),
    )


@application_router.post(
    "/payment/manual", response_model=PaymentResultResponse, status_code=status.HTTP_201_CREATED
)
def submit_manual_payment(
    transfer_ref: str = Form(..., description="Bank transfer reference (UTR), at least 12 characters"),
    proof: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_student_actor),
    service: AdmissionService = Depends(get_admission_service),
    storage: LocalFileStorage = Depends(get_storage),
):
    """
    Record a bank transfer for admin verification, with an optional screenshot (5MB).
    """
    stored = _store_uploads(storage, {"proof_ref": proof}, PAYMENT_PROOF)
    proof_ref = stored.get("proof_ref")

    try:
        applicant, payment = service.submit_manual_transfer(actor, transfer_ref, proof_ref)
    except WorkflowError:
        storage.delete(proof_ref)
        raise

    return PaymentResultResponse(
        application=ApplicationResponse.model_validate(applicant),
        payment=PaymentResponse.model_validate(payment),
    )
