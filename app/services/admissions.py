"""
Admission workflow host.

Loads applicant and payment snapshots from the stores, builds the engine
context, applies the event and persists whatever the engine returns. Every
public method commits on success; on error nothing is committed.
"""
import logging
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from fastapi import Depends
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import settings
from app.database.config.db import get_db
from app.database.models.applicant import Applicant
from app.services.gateway import RazorpayGateway
from app.services.stores import ApplicantStore, PaymentStore
from app.utils.auth import utc_now
from app.workflow import (
    StepView,
    TransitionResult,
    WorkflowContext,
    apply_event,
    new_draft,
    open_gateway_payment,
    project_step,
)
from app.workflow.errors import ConflictError, NotFoundError
from app.workflow.events import (
    AdminReview,
    AdminVerifyPayment,
    ConfirmGatewayPayment,
    DocumentRefs,
    InitiateGatewayPayment,
    ProfileFields,
    ReviewDecision,
    SaveDraft,
    SubmitApplication,
    SubmitManualTransfer,
    VerificationDecision,
)
from app.workflow.states import (
    Actor,
    ApplicantState,
    ApplicantStatus,
    PaymentState,
    PaymentStatus,
    SETTLED_PAYMENT_STATUSES,
)

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 3


class GatewayOrder(BaseModel):
    """What the checkout widget needs to open a payment."""
    order_ref: str
    amount: int
    currency: str
    key_id: Optional[str] = None
    application_id: str
    payment_id: UUID


class AdmissionService:
    def __init__(self, db: Session, clock: Callable = utc_now):
        self.db = db
        self.clock = clock
        self.applicants = ApplicantStore(db)
        self.payments = PaymentStore(db)

    def _context(self, actor: Actor, applicant: Optional[ApplicantState], **extra) -> WorkflowContext:
        return WorkflowContext(
            actor=actor,
            applicant=applicant,
            now=self.clock(),
            application_fee=settings.APPLICATION_FEE,
            currency=settings.CURRENCY,
            id_prefix=settings.APPLICATION_ID_PREFIX,
            **extra,
        )

    def _persist(self, before: ApplicantState, result: TransitionResult) -> Tuple[ApplicantState, Optional[PaymentState]]:
        payment = result.payment
        if payment is not None:
            payment = self.payments.create(payment) if payment.id is None else self.payments.update(payment)
        applicant = before
        if result.applicant != before:
            applicant = self.applicants.save(result.applicant)
        return applicant, payment

    def _submitted_for(self, email: str) -> ApplicantState:
        applicant = self.applicants.latest_submitted(email)
        if applicant is None:
            if self.applicants.latest_draft(email) is not None:
                raise ConflictError("Application has not been submitted yet")
            raise NotFoundError("Application not found")
        return applicant

    # ==================== STUDENT: READS ====================

    def check_status(self, email: str) -> StepView:
        return project_step(self.applicants.latest(email))

    def current_draft(self, email: str) -> Optional[ApplicantState]:
        return self.applicants.latest_draft(email)

    def current_application(self, email: str) -> ApplicantState:
        applicant = self.applicants.latest(email)
        if applicant is None:
            raise NotFoundError("Application not found")
        return applicant

    def payment_history(self, email: str) -> List[PaymentState]:
        applicant = self.applicants.latest_submitted(email)
        if applicant is None:
            return []
        return self.payments.for_applicant(applicant.id)

    # ==================== STUDENT: DRAFTS ====================

    def save_draft(self, actor: Actor, fields: ProfileFields, step: int) -> ApplicantState:
        now = self.clock()
        applicant = (
            self.applicants.latest_draft(actor.email)
            or self.applicants.latest_submitted(actor.email)
            or new_draft(actor.email, now)
        )
        result = apply_event(self._context(actor, applicant), SaveDraft(fields=fields, step=step))
        saved, _ = self._persist(applicant, result)
        self.db.commit()
        return saved

    def clear_drafts(self, email: str) -> int:
        deleted = self.applicants.delete_drafts(email)
        self.db.commit()
        logger.info("Cleared %d draft(s) for %s", deleted, email)
        return deleted

    # ==================== STUDENT: SUBMISSION ====================

    def submit(self, actor: Actor, fields: ProfileFields, documents: DocumentRefs) -> ApplicantState:
        """
        Finalise the latest draft and assign its application id.

        A concurrent submission may take the same sequence number; the unique
        index rejects it and the id is recomputed from a fresh count.
        """
        event = SubmitApplication(fields=fields, documents=documents)
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            applicant = (
                self.applicants.latest_draft(actor.email)
                or self.applicants.latest_submitted(actor.email)
                or new_draft(actor.email, self.clock())
            )
            ctx = self._context(
                actor,
                applicant,
                issued_id_count=self.applicants.count_issued_ids(),
                active_application_exists=self.applicants.has_active_application(
                    actor.email, exclude_id=applicant.id
                ),
            )
            result = apply_event(ctx, event)
            try:
                saved, _ = self._persist(applicant, result)
                self.applicants.delete_drafts(actor.email, keep_id=saved.id)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    "Application id %s already taken (attempt %d/%d)",
                    result.applicant.application_id, attempt, MAX_ID_ATTEMPTS,
                )
                continue
            return saved

        raise ConflictError("Could not assign an application id, please retry")

    # ==================== STUDENT: PAYMENTS ====================

    def start_gateway_payment(self, actor: Actor, gateway: RazorpayGateway) -> GatewayOrder:
        applicant = self._submitted_for(actor.email)
        result = apply_event(self._context(actor, applicant), InitiateGatewayPayment())

        request = result.order_request
        order = gateway.create_order(
            amount=request.amount,
            currency=request.currency,
            receipt=request.receipt,
            notes=request.notes,
        )
        payment = self.payments.create(
            open_gateway_payment(applicant, request, order["id"], self.clock())
        )
        self.db.commit()
        return GatewayOrder(
            order_ref=payment.order_ref,
            amount=payment.amount,
            currency=payment.currency,
            key_id=gateway.key_id,
            application_id=applicant.application_id,
            payment_id=payment.id,
        )

    def confirm_gateway_payment(
        self,
        actor: Actor,
        gateway: RazorpayGateway,
        order_ref: str,
        transaction_ref: str,
        signature: str,
    ) -> Tuple[ApplicantState, PaymentState]:
        payment = self.payments.find_by_reference(order_ref)
        if payment is None:
            raise NotFoundError("Payment order not found")
        applicant = self.applicants.load(payment.applicant_id)

        event = ConfirmGatewayPayment(
            order_ref=order_ref,
            transaction_ref=transaction_ref,
            signature=signature,
            signature_valid=gateway.verify_signature(order_ref, transaction_ref, signature),
        )
        result = apply_event(self._context(actor, applicant, payment=payment), event)
        if result.payment == payment:
            return result.applicant, payment

        applicant, payment = self._persist(applicant, result)
        self.db.commit()
        return applicant, payment

    def submit_manual_transfer(
        self, actor: Actor, transfer_ref: str, proof_ref: Optional[str] = None
    ) -> Tuple[ApplicantState, PaymentState]:
        applicant = self._submitted_for(actor.email)
        event = SubmitManualTransfer(transfer_ref=transfer_ref, proof_ref=proof_ref)
        result = apply_event(self._context(actor, applicant), event)
        applicant, payment = self._persist(applicant, result)
        self.db.commit()
        return applicant, payment

    # ==================== ADMIN: READS ====================

    def applicant_detail(self, applicant_id: UUID) -> Tuple[ApplicantState, List[PaymentState]]:
        applicant = self.applicants.load(applicant_id)
        if applicant is None:
            raise NotFoundError("Application not found")
        return applicant, self.payments.for_applicant(applicant_id)

    def stats(self) -> dict:
        count = self.applicants.count_by
        return {
            "total": count(),
            "paid": count(Applicant.payment_status.in_(list(SETTLED_PAYMENT_STATUSES))),
            "pending": count(Applicant.payment_status == PaymentStatus.PENDING),
            "under_verification": count(
                Applicant.payment_status == PaymentStatus.UNDER_VERIFICATION
            ),
            "accepted": count(Applicant.status == ApplicantStatus.ACCEPTED),
            "rejected": count(Applicant.status == ApplicantStatus.REJECTED),
            "revenue": self.payments.revenue(),
        }

    # ==================== ADMIN: DECISIONS ====================

    def review(
        self, actor: Actor, applicant_id: UUID, decision: ReviewDecision, note: Optional[str] = None
    ) -> ApplicantState:
        applicant = self.applicants.load(applicant_id)
        result = apply_event(
            self._context(actor, applicant), AdminReview(decision=decision, note=note)
        )
        applicant, _ = self._persist(applicant, result)
        self.db.commit()
        return applicant

    def verify_payment(
        self,
        actor: Actor,
        payment_id: UUID,
        decision: VerificationDecision,
        note: Optional[str] = None,
    ) -> Tuple[ApplicantState, PaymentState]:
        payment = self.payments.load(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        applicant = self.applicants.load(payment.applicant_id)
        result = apply_event(
            self._context(actor, applicant, payment=payment),
            AdminVerifyPayment(decision=decision, note=note),
        )
        applicant, payment = self._persist(applicant, result)
        self.db.commit()
        return applicant, payment


def get_admission_service(db: Session = Depends(get_db)) -> AdmissionService:
    """Dependency: one service per request, sharing the request session."""
    return AdmissionService(db)
