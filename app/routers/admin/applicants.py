import csv
import io
import logging
import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import Response

from app.schema.admin.applicant import (
    AdminNoteResponse,
    ApplicantDetailResponse,
    ApplicantListItem,
    ApplicantListResponse,
    ApplicantStatsResponse,
    PaymentDetail,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    ReviewRequest,
)
from app.services.admissions import AdmissionService, get_admission_service
from app.utils.auth import get_admin_actor, utc_now
from app.utils.notifications import notify_payment_reviewed, notify_review_decision
from app.workflow.states import Actor, ApplicantStatus, PaymentStatus

logger = logging.getLogger(__name__)

applicants_router = APIRouter(prefix="/applicants", tags=["Admin - Applicants"])

EXPORT_COLUMNS = [
    "Name",
    "Email",
    "Phone",
    "Application ID",
    "Qualification",
    "Course",
    "Payment Status",
    "Status",
    "Created At",
]


@applicants_router.get("", response_model=ApplicantListResponse)
def list_applicants(
    status_filter: Optional[ApplicantStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_admin_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    """
    Submitted applications, newest first.

    Filter by status and payment status; ``search`` matches name, email,
    phone or application id.
    """
    items, total = service.applicants.query(
        status=status_filter,
        payment_status=payment_status,
        search=search,
        page=page,
        limit=limit,
    )
    return ApplicantListResponse(
        items=[ApplicantListItem.model_validate(item) for item in items],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@applicants_router.get("/stats", response_model=ApplicantStatsResponse)
def applicant_stats(
    actor: Actor = Depends(get_admin_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    return ApplicantStatsResponse(**service.stats())


@applicants_router.get("/export")
def export_applicants(
    status_filter: Optional[ApplicantStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    actor: Actor = Depends(get_admin_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    """
    Download the (filtered) applicant list as CSV.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_COLUMNS)
    for applicant in service.applicants.all(status_filter, payment_status, search):
        writer.writerow([
            applicant.full_name or "",
            applicant.email,
            applicant.phone or "",
            applicant.application_id or "",
            applicant.qualification or "",
            applicant.course_name or "",
            applicant.payment_status.value,
            applicant.status.value,
            applicant.created_at.isoformat() if applicant.created_at else "",
        ])

    filename = f"applicants_{utc_now():%Y%m%d}.csv"
    return Response(
        content=output.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@applicants_router.get("/{applicant_id}", response_model=ApplicantDetailResponse)
def get_applicant(
    applicant_id: UUID,
    actor: Actor = Depends(get_admin_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    applicant, payments = service.applicant_detail(applicant_id)
    return ApplicantDetailResponse(
        applicant=ApplicantListItem.model_validate(applicant),
        payments=[PaymentDetail.model_validate(p) for p in payments],
        notes=[AdminNoteResponse.model_validate(n) for n in applicant.notes],
    )


@applicants_router.post("/{applicant_id}/review", response_model=ApplicantDetailResponse)
def review_applicant(
    applicant_id: UUID,
    body: ReviewRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_admin_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    """
    Accept, reject or hold an application. The note is appended to its log.
    """
    applicant = service.review(actor, applicant_id, body.decision, body.note)
    notify_review_decision(background_tasks, applicant)

    _, payments = service.applicant_detail(applicant_id)
    return ApplicantDetailResponse(
        applicant=ApplicantListItem.model_validate(applicant),
        payments=[PaymentDetail.model_validate(p) for p in payments],
        notes=[AdminNoteResponse.model_validate(n) for n in applicant.notes],
    )


@applicants_router.post(
    "/payments/{payment_id}/verify",
    response_model=PaymentVerifyResponse,
    status_code=status.HTTP_200_OK,
)
def verify_manual_payment(
    payment_id: UUID,
    body: PaymentVerifyRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_admin_actor),
    service: AdmissionService = Depends(get_admission_service),
):
    """
    Approve or reject a bank transfer awaiting verification.
    """
    applicant, payment = service.verify_payment(actor, payment_id, body.decision, body.note)
    notify_payment_reviewed(background_tasks, applicant, payment)
    return PaymentVerifyResponse(
        applicant=ApplicantListItem.model_validate(applicant),
        payment=PaymentDetail.model_validate(payment),
    )
