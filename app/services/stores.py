"""
Repositories between the ORM rows and the workflow snapshots.

Stores only flush; the caller owns the transaction and commits.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.database.models.applicant import Applicant, ApplicantNote
from app.database.models.payment import Payment
from app.workflow.errors import ConflictError, NotFoundError
from app.workflow.states import (
    ACTIVE_PAYMENT_STATUSES,
    ApplicantState,
    ApplicantStatus,
    PaymentRecordStatus,
    PaymentState,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

# Columns written back from a snapshot; identity, version, notes and created_at are not
APPLICANT_COLUMNS = tuple(
    name for name in ApplicantState.model_fields if name not in ("id", "version", "notes", "created_at")
)
PAYMENT_COLUMNS = tuple(name for name in PaymentState.model_fields if name not in ("id", "created_at"))


class ApplicantStore:
    def __init__(self, db: Session):
        self.db = db

    # ==================== READS ====================

    def row(self, applicant_id: UUID) -> Optional[Applicant]:
        return self.db.query(Applicant).filter(Applicant.id == applicant_id).first()

    def load(self, applicant_id: UUID) -> Optional[ApplicantState]:
        return self._state(self.row(applicant_id))

    def load_by_application_id(self, application_id: str) -> Optional[ApplicantState]:
        row = (
            self.db.query(Applicant)
            .filter(Applicant.application_id == application_id.strip().upper())
            .first()
        )
        return self._state(row)

    def latest_draft(self, email: str) -> Optional[ApplicantState]:
        """The most recently saved draft is the authoritative one."""
        row = (
            self.db.query(Applicant)
            .filter(Applicant.email == _normalize(email), Applicant.is_draft == True)
            .order_by(Applicant.last_saved_at.desc(), Applicant.created_at.desc())
            .first()
        )
        return self._state(row)

    def latest_submitted(self, email: str) -> Optional[ApplicantState]:
        row = (
            self.db.query(Applicant)
            .filter(Applicant.email == _normalize(email), Applicant.is_draft == False)
            .order_by(Applicant.submitted_at.desc())
            .first()
        )
        return self._state(row)

    def latest(self, email: str) -> Optional[ApplicantState]:
        """Submitted application if there is one, otherwise the latest draft."""
        return self.latest_submitted(email) or self.latest_draft(email)

    def count_issued_ids(self) -> int:
        return (
            self.db.query(func.count(Applicant.id))
            .filter(Applicant.application_id.isnot(None))
            .scalar()
        )

    def has_active_application(self, email: str, exclude_id: Optional[UUID] = None) -> bool:
        query = self.db.query(Applicant.id).filter(
            Applicant.email == _normalize(email),
            Applicant.is_draft == False,
            Applicant.payment_status.in_(list(ACTIVE_PAYMENT_STATUSES)),
        )
        if exclude_id is not None:
            query = query.filter(Applicant.id != exclude_id)
        return query.first() is not None

    def query(
        self,
        status: Optional[ApplicantStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        search: Optional[str] = None,
        include_drafts: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[ApplicantState], int]:
        """Filtered, newest-first page of applicants and the total match count."""
        query = self._filtered(status, payment_status, search, include_drafts)
        total = query.count()
        rows = (
            query.order_by(Applicant.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [self._state(row) for row in rows], total

    def all(
        self,
        status: Optional[ApplicantStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        search: Optional[str] = None,
    ) -> List[ApplicantState]:
        query = self._filtered(status, payment_status, search, include_drafts=False)
        return [self._state(row) for row in query.order_by(Applicant.created_at.desc()).all()]

    def count_by(self, *criteria) -> int:
        return (
            self.db.query(func.count(Applicant.id))
            .filter(Applicant.is_draft == False, *criteria)
            .scalar()
        )

    # ==================== WRITES ====================

    def save(self, state: ApplicantState) -> ApplicantState:
        """
        Insert a new applicant or update an existing one.

        Updates are conditional on ``state.version``; a stale snapshot raises
        ConflictError. Notes beyond those already stored are appended.
        """
        if state.id is None:
            row = Applicant()
            self.db.add(row)
        else:
            row = self.row(state.id)
            if row is None:
                raise NotFoundError("Application not found")
            if state.version is not None and row.version != state.version:
                raise ConflictError("Application was modified concurrently, please reload and retry")

        for name in APPLICANT_COLUMNS:
            setattr(row, name, getattr(state, name))

        stored = len(row.notes)
        for note in state.notes[stored:]:
            row.notes.append(
                ApplicantNote(note=note.note, author_name=note.author_name, created_at=note.created_at)
            )

        try:
            self.db.flush()
        except StaleDataError:
            raise ConflictError("Application was modified concurrently, please reload and retry")

        self.db.refresh(row)
        return self._state(row)

    def delete_drafts(self, email: str, keep_id: Optional[UUID] = None) -> int:
        query = self.db.query(Applicant).filter(
            Applicant.email == _normalize(email), Applicant.is_draft == True
        )
        if keep_id is not None:
            query = query.filter(Applicant.id != keep_id)
        rows = query.all()
        for row in rows:
            self.db.delete(row)
        self.db.flush()
        return len(rows)

    # ==================== INTERNAL ====================

    def _filtered(self, status, payment_status, search, include_drafts):
        query = self.db.query(Applicant)
        if not include_drafts:
            query = query.filter(Applicant.is_draft == False)
        if status is not None:
            query = query.filter(Applicant.status == status)
        if payment_status is not None:
            query = query.filter(Applicant.payment_status == payment_status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Applicant.full_name.ilike(pattern),
                    Applicant.email.ilike(pattern),
                    Applicant.phone.ilike(pattern),
                    Applicant.application_id.ilike(pattern),
                )
            )
        return query

    @staticmethod
    def _state(row: Optional[Applicant]) -> Optional[ApplicantState]:
        return ApplicantState.model_validate(row) if row is not None else None


class PaymentStore:
    def __init__(self, db: Session):
        self.db = db

    def row(self, payment_id: UUID) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def load(self, payment_id: UUID) -> Optional[PaymentState]:
        return self._state(self.row(payment_id))

    def find_by_reference(self, reference: str) -> Optional[PaymentState]:
        """Latest payment whose gateway order or bank transfer reference matches."""
        row = (
            self.db.query(Payment)
            .filter(or_(Payment.order_ref == reference, Payment.transfer_ref == reference))
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .first()
        )
        return self._state(row)

    def for_applicant(self, applicant_id: UUID) -> List[PaymentState]:
        rows = (
            self.db.query(Payment)
            .filter(Payment.applicant_id == applicant_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )
        return [self._state(row) for row in rows]

    def create(self, state: PaymentState) -> PaymentState:
        values = {name: getattr(state, name) for name in PAYMENT_COLUMNS}
        if state.created_at is not None:
            values["created_at"] = state.created_at
        row = Payment(**values)
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        logger.info(
            "Payment %s created (%s, %s) for applicant %s",
            row.id, row.method.value, row.status.value, row.applicant_id,
        )
        return self._state(row)

    def update(self, state: PaymentState) -> PaymentState:
        row = self.row(state.id)
        if row is None:
            raise NotFoundError("Payment not found")
        for name in PAYMENT_COLUMNS:
            setattr(row, name, getattr(state, name))
        self.db.flush()
        self.db.refresh(row)
        return self._state(row)

    def revenue(self) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.status.in_([PaymentRecordStatus.PAID, PaymentRecordStatus.VERIFIED]))
            .scalar()
        )
        return int(total or 0)

    @staticmethod
    def _state(row: Optional[Payment]) -> Optional[PaymentState]:
        return PaymentState.model_validate(row) if row is not None else None


def _normalize(email: str) -> str:
    return email.strip().lower()
