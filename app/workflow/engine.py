"""
Admission workflow engine.

Pure transition functions over ApplicantState/PaymentState. Each event type
has one handler registered with ``@transition``; ``apply_event`` dispatches to
it and returns a TransitionResult or raises a WorkflowError. Nothing here
touches the database, the gateway or the file system.
"""
import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from app.workflow.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.workflow.events import (
    AdminReview,
    AdminVerifyPayment,
    ConfirmGatewayPayment,
    InitiateGatewayPayment,
    ProfileFields,
    ReviewDecision,
    SaveDraft,
    SubmitApplication,
    SubmitManualTransfer,
    VerificationDecision,
)
from app.workflow.projection import project_step
from app.workflow.states import (
    Actor,
    ActorKind,
    AdminNote,
    ApplicantState,
    ApplicantStatus,
    DOCUMENT_FIELDS,
    MAX_STEP,
    MIN_STEP,
    OPEN_GATEWAY_STATUSES,
    PAYMENT_STEP,
    PROFILE_FIELDS,
    PaymentMethod,
    PaymentRecordStatus,
    PaymentState,
    PaymentStatus,
    SETTLED_PAYMENT_STATUSES,
)

logger = logging.getLogger(__name__)

MIN_TRANSFER_REF_LENGTH = 12
MIN_PASSING_YEAR = 1990
APPLICATION_ID_PREFIX_PATTERN = re.compile(r"^[A-Z]{2}$")

REVIEW_OUTCOMES = {
    ReviewDecision.ACCEPT: ApplicantStatus.ACCEPTED,
    ReviewDecision.REJECT: ApplicantStatus.REJECTED,
    ReviewDecision.HOLD: ApplicantStatus.ON_HOLD,
}


class WorkflowContext(BaseModel):
    """Everything a transition may read. Built by the host for each call."""
    actor: Actor
    applicant: Optional[ApplicantState] = None
    payment: Optional[PaymentState] = None
    now: datetime
    issued_id_count: int = 0
    active_application_exists: bool = False
    application_fee: int = 500
    currency: str = "INR"
    id_prefix: str = "SU"

    class Config:
        frozen = True


class OrderRequest(BaseModel):
    """Order the host must create with the payment gateway."""
    amount: int
    currency: str
    receipt: str
    notes: Dict[str, str]


class TransitionResult(BaseModel):
    applicant: ApplicantState
    payment: Optional[PaymentState] = None
    order_request: Optional[OrderRequest] = None


TransitionHandler = Callable[[WorkflowContext, BaseModel], TransitionResult]
TRANSITION_HANDLERS: Dict[Type[BaseModel], TransitionHandler] = {}


def transition(event_type: Type[BaseModel]):
    def _decorator(fn: TransitionHandler):
        TRANSITION_HANDLERS[event_type] = fn
        return fn

    return _decorator


# ==================== PUBLIC API ====================

def new_draft(email: str, now: datetime, phone: Optional[str] = None) -> ApplicantState:
    """Initial (draft, pending) state for a student's first save."""
    return ApplicantState(
        email=email.strip().lower(),
        phone=phone.strip() if phone else None,
        last_saved_at=now,
    )


def format_application_id(prefix: str, year: int, sequence: int) -> str:
    """Format: two-letter prefix + 4-digit year + 5-digit sequence, e.g. SU202600001."""
    if not APPLICATION_ID_PREFIX_PATTERN.match(prefix):
        raise ValueError(f"Application id prefix must be two uppercase letters, got {prefix!r}")
    return f"{prefix}{year:04d}{sequence:05d}"


def open_gateway_payment(
    applicant: ApplicantState, order: OrderRequest, order_ref: str, now: datetime
) -> PaymentState:
    """Ledger entry for an order the gateway has just created."""
    return PaymentState(
        applicant_id=applicant.id,
        student_email=applicant.email,
        method=PaymentMethod.GATEWAY,
        amount=order.amount,
        currency=order.currency,
        status=PaymentRecordStatus.CREATED,
        order_ref=order_ref,
        created_at=now,
    )


def apply_event(ctx: WorkflowContext, event: BaseModel) -> TransitionResult:
    """
    Apply one event to the applicant in ``ctx``.

    Returns the resulting states; raises ValidationError, ConflictError,
    NotFoundError or AuthorizationError without producing any partial result.
    """
    handler = TRANSITION_HANDLERS.get(type(event))
    if handler is None:
        raise ValidationError([f"Unsupported workflow event: {type(event).__name__}"])
    if ctx.applicant is None:
        raise NotFoundError("Application not found")

    result = handler(ctx, event)

    step = project_step(result.applicant).current_step
    if step != result.applicant.current_step:
        result = result.model_copy(
            update={"applicant": result.applicant.model_copy(update={"current_step": step})}
        )

    logger.info(
        "%s by %s %s: applicant %s now (%s, %s)",
        type(event).__name__,
        ctx.actor.kind.value,
        ctx.actor.id,
        result.applicant.application_id or result.applicant.id or result.applicant.email,
        result.applicant.status.value,
        result.applicant.payment_status.value,
    )
    return result


# ==================== GUARDS ====================

def _require_owner(ctx: WorkflowContext) -> None:
    if ctx.actor.kind != ActorKind.STUDENT:
        raise AuthorizationError("Student login required")
    if ctx.actor.email.strip().lower() != ctx.applicant.email.strip().lower():
        raise AuthorizationError("Unauthorized access to this application")


def _require_admin(ctx: WorkflowContext) -> None:
    if ctx.actor.kind != ActorKind.ADMIN:
        raise AuthorizationError("Access denied. Admin privileges required.")


def _require_open(applicant: ApplicantState) -> None:
    if applicant.is_terminal:
        raise ConflictError(
            f"Application is already {applicant.status.value}; no further changes are allowed"
        )


def _require_submitted(applicant: ApplicantState) -> None:
    if applicant.is_draft:
        raise ConflictError("Application has not been submitted yet")


def _require_unpaid(applicant: ApplicantState) -> None:
    if applicant.payment_status in SETTLED_PAYMENT_STATUSES:
        raise ConflictError("Payment already completed for this application")


def _require_payment_of(ctx: WorkflowContext) -> PaymentState:
    payment = ctx.payment
    if payment is None or (
        payment.applicant_id is not None
        and ctx.applicant.id is not None
        and payment.applicant_id != ctx.applicant.id
    ):
        raise NotFoundError("Payment not found for this application")
    return payment


# ==================== HELPERS ====================

def _profile_updates(fields: ProfileFields) -> dict:
    """Provided, non-blank fields only; blanks never erase saved values."""
    updates = {}
    for name, value in fields.model_dump(exclude_none=True).items():
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        updates[name] = value
    return updates


def _missing_or_invalid(applicant: ApplicantState, now: datetime) -> List[str]:
    errors = []
    for name in ("email",) + PROFILE_FIELDS + DOCUMENT_FIELDS:
        value = getattr(applicant, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"{name} is required")

    if applicant.percentage is not None and not 0 <= applicant.percentage <= 100:
        errors.append("percentage must be between 0 and 100")
    if applicant.passing_year is not None and not (
        MIN_PASSING_YEAR <= applicant.passing_year <= now.year
    ):
        errors.append(f"passing_year must be between {MIN_PASSING_YEAR} and {now.year}")
    return errors


def _note(ctx: WorkflowContext, text: str) -> AdminNote:
    return AdminNote(
        note=text,
        author_name=ctx.actor.name or ctx.actor.email,
        created_at=ctx.now,
    )


# ==================== TRANSITIONS ====================

@transition(SaveDraft)
def handle_save_draft(ctx: WorkflowContext, event: SaveDraft) -> TransitionResult:
    applicant = ctx.applicant
    _require_owner(ctx)
    if not applicant.is_draft:
        raise ConflictError("Application already submitted; the draft can no longer be edited")

    updates = _profile_updates(event.fields)
    updates.update(
        current_step=min(max(event.step, MIN_STEP), MAX_STEP),
        status=ApplicantStatus.DRAFT,
        last_saved_at=ctx.now,
    )
    return TransitionResult(applicant=applicant.model_copy(update=updates))


@transition(SubmitApplication)
def handle_submit_application(ctx: WorkflowContext, event: SubmitApplication) -> TransitionResult:
    applicant = ctx.applicant
    _require_owner(ctx)
    _require_open(applicant)
    if not applicant.is_draft:
        raise ConflictError("Application has already been submitted")
    if ctx.active_application_exists:
        raise ConflictError("You have already completed an application payment")

    updates = _profile_updates(event.fields)
    updates.update(event.documents.model_dump(exclude_none=True))
    candidate = applicant.model_copy(update=updates)

    errors = _missing_or_invalid(candidate, ctx.now)
    if errors:
        raise ValidationError(errors, message="Application is incomplete")

    submitted = candidate.model_copy(
        update={
            "is_draft": False,
            "status": ApplicantStatus.SUBMITTED,
            "payment_status": PaymentStatus.PENDING,
            "application_id": format_application_id(
                ctx.id_prefix, ctx.now.year, ctx.issued_id_count + 1
            ),
            "application_fee": ctx.application_fee,
            "current_step": PAYMENT_STEP,
            "submitted_at": ctx.now,
            "last_saved_at": ctx.now,
        }
    )
    return TransitionResult(applicant=submitted)


@transition(InitiateGatewayPayment)
def handle_initiate_gateway_payment(
    ctx: WorkflowContext, event: InitiateGatewayPayment
) -> TransitionResult:
    applicant = ctx.applicant
    _require_owner(ctx)
    _require_open(applicant)
    _require_submitted(applicant)
    _require_unpaid(applicant)

    order = OrderRequest(
        amount=applicant.application_fee or ctx.application_fee,
        currency=ctx.currency,
        receipt=f"receipt_{applicant.application_id}",
        notes={
            "application_id": applicant.application_id,
            "student_email": applicant.email,
        },
    )
    return TransitionResult(applicant=applicant, order_request=order)


@transition(ConfirmGatewayPayment)
def handle_confirm_gateway_payment(
    ctx: WorkflowContext, event: ConfirmGatewayPayment
) -> TransitionResult:
    applicant = ctx.applicant
    _require_owner(ctx)
    payment = _require_payment_of(ctx)
    if payment.method != PaymentMethod.GATEWAY or payment.order_ref != event.order_ref:
        raise NotFoundError("Payment order not found")

    # Replayed confirmation of a settled order
    if payment.status == PaymentRecordStatus.PAID and event.signature_valid:
        return TransitionResult(applicant=applicant, payment=payment)

    _require_open(applicant)
    if payment.status not in OPEN_GATEWAY_STATUSES:
        raise ConflictError(f"Payment is already {payment.status.value}")
    _require_unpaid(applicant)

    gateway_refs = {
        "transaction_ref": event.transaction_ref,
        "signature": event.signature,
    }
    if not event.signature_valid:
        failed = payment.model_copy(update={**gateway_refs, "status": PaymentRecordStatus.FAILED})
        return TransitionResult(applicant=applicant, payment=failed)

    paid = payment.model_copy(
        update={**gateway_refs, "status": PaymentRecordStatus.PAID, "paid_at": ctx.now}
    )
    updated = applicant.model_copy(
        update={
            "payment_status": PaymentStatus.PAID,
            "status": ApplicantStatus.UNDER_REVIEW,
            "payment_method": PaymentMethod.GATEWAY,
        }
    )
    return TransitionResult(applicant=updated, payment=paid)


@transition(SubmitManualTransfer)
def handle_submit_manual_transfer(
    ctx: WorkflowContext, event: SubmitManualTransfer
) -> TransitionResult:
    applicant = ctx.applicant
    _require_owner(ctx)
    _require_open(applicant)
    _require_submitted(applicant)
    _require_unpaid(applicant)

    transfer_ref = event.transfer_ref.strip()
    if len(transfer_ref) < MIN_TRANSFER_REF_LENGTH:
        raise ValidationError(
            [f"transfer_ref must be at least {MIN_TRANSFER_REF_LENGTH} characters"]
        )

    payment = PaymentState(
        applicant_id=applicant.id,
        student_email=applicant.email,
        method=PaymentMethod.MANUAL_TRANSFER,
        amount=applicant.application_fee or ctx.application_fee,
        currency=ctx.currency,
        status=PaymentRecordStatus.UNDER_VERIFICATION,
        transfer_ref=transfer_ref,
        proof_ref=event.proof_ref,
        created_at=ctx.now,
    )
    updated = applicant.model_copy(
        update={
            "payment_status": PaymentStatus.UNDER_VERIFICATION,
            "status": ApplicantStatus.UNDER_REVIEW,
            "payment_method": PaymentMethod.MANUAL_TRANSFER,
            "transfer_ref": transfer_ref,
            "payment_proof_ref": event.proof_ref,
        }
    )
    return TransitionResult(applicant=updated, payment=payment)


@transition(AdminReview)
def handle_admin_review(ctx: WorkflowContext, event: AdminReview) -> TransitionResult:
    applicant = ctx.applicant
    _require_admin(ctx)
    _require_open(applicant)
    if applicant.is_draft:
        raise ConflictError("Draft applications cannot be reviewed")

    status = REVIEW_OUTCOMES[event.decision]
    text = (event.note or "").strip() or f"Status changed to {status.value}"
    updated = applicant.model_copy(
        update={"status": status, "notes": applicant.notes + (_note(ctx, text),)}
    )
    return TransitionResult(applicant=updated)


@transition(AdminVerifyPayment)
def handle_admin_verify_payment(
    ctx: WorkflowContext, event: AdminVerifyPayment
) -> TransitionResult:
    applicant = ctx.applicant
    _require_admin(ctx)
    payment = _require_payment_of(ctx)
    _require_open(applicant)
    if payment.status != PaymentRecordStatus.UNDER_VERIFICATION:
        raise ConflictError(f"Payment is {payment.status.value}, not awaiting verification")

    note = (event.note or "").strip() or None
    reviewer = ctx.actor.name or ctx.actor.email
    review = {"verified_at": ctx.now, "reviewer_note": note, "reviewed_by": reviewer}

    if event.decision == VerificationDecision.APPROVE:
        payment = payment.model_copy(update={**review, "status": PaymentRecordStatus.VERIFIED})
        applicant_updates = {"payment_status": PaymentStatus.VERIFIED}
        outcome = "verified"
    else:
        payment = payment.model_copy(update={**review, "status": PaymentRecordStatus.REJECTED})
        applicant_updates = {}
        # Another transfer may already have been verified
        if applicant.payment_status == PaymentStatus.UNDER_VERIFICATION:
            applicant_updates = {"payment_status": PaymentStatus.PENDING}
            # A hold placed by an admin survives the rejection
            if applicant.status == ApplicantStatus.UNDER_REVIEW:
                applicant_updates["status"] = ApplicantStatus.SUBMITTED
        outcome = "rejected"

    text = f"Payment {payment.transfer_ref or payment.id} {outcome}"
    if note:
        text = f"{text}: {note}"
    applicant_updates["notes"] = applicant.notes + (_note(ctx, text),)
    return TransitionResult(applicant=applicant.model_copy(update=applicant_updates), payment=payment)
