"""
Tests for the derived form-step view
"""
from app.workflow.projection import project_step
from app.workflow.states import ApplicantState, ApplicantStatus, PaymentStatus

DOCS = {
    "photo_ref": "/uploads/applications/a.png",
    "id_proof_ref": "/uploads/applications/b.pdf",
    "certificate_ref": "/uploads/applications/c.jpg",
}


def applicant(**fields):
    return ApplicantState(email="asha@example.com", **fields)


def test_no_record_starts_at_step_one():
    view = project_step(None)
    assert view.status == "new"
    assert view.current_step == 1
    assert view.redirect_to is None


def test_draft_keeps_stored_step():
    view = project_step(applicant(current_step=4))
    assert view.status == "draft"
    assert view.current_step == 4
    assert view.is_complete is False


def test_submitted_with_documents_goes_to_payment():
    view = project_step(
        applicant(is_draft=False, status=ApplicantStatus.SUBMITTED, application_id="SU202600001", current_step=4, **DOCS)
    )
    assert view.current_step == 5
    assert view.redirect_to == "payment"
    assert view.has_documents is True
    assert view.application_id == "SU202600001"


def test_manual_transfer_awaits_verification():
    view = project_step(
        applicant(
            is_draft=False,
            status=ApplicantStatus.UNDER_REVIEW,
            payment_status=PaymentStatus.UNDER_VERIFICATION,
            application_id="SU202600001",
            **DOCS,
        )
    )
    assert view.current_step == 6
    assert view.redirect_to == "verification"
    assert view.is_complete is False


def test_paid_or_accepted_is_complete():
    for fields in (
        {"status": ApplicantStatus.UNDER_REVIEW, "payment_status": PaymentStatus.PAID},
        {"status": ApplicantStatus.ON_HOLD, "payment_status": PaymentStatus.VERIFIED},
        {"status": ApplicantStatus.ACCEPTED, "payment_status": PaymentStatus.PENDING},
    ):
        view = project_step(applicant(is_draft=False, application_id="SU202600001", **fields, **DOCS))
        assert view.is_complete is True
        assert view.redirect_to == "complete"


def test_other_states_keep_stored_step_without_redirect():
    view = project_step(
        applicant(is_draft=False, status=ApplicantStatus.REJECTED, application_id="SU202600001", current_step=5, **DOCS)
    )
    assert view.current_step == 5
    assert view.redirect_to is None
    assert view.has_photo and view.has_id_proof and view.has_certificate
