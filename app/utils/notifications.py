"""
Applicant notification mails, queued on FastAPI background tasks.
"""
from fastapi import BackgroundTasks

from app.utils.smtp import mail_enabled, send_mail
from app.workflow.states import ApplicantState, PaymentRecordStatus, PaymentState


def _greeting(applicant: ApplicantState) -> str:
    return f"<p>Dear {applicant.full_name or 'Applicant'},</p>"


def notify_application_submitted(background_tasks: BackgroundTasks, applicant: ApplicantState) -> None:
    if not mail_enabled():
        return
    body = (
        _greeting(applicant)
        + f"<p>Your application has been submitted. Your application ID is "
        f"<strong>{applicant.application_id}</strong>.</p>"
        f"<p>Please complete the application fee payment to proceed.</p>"
    )
    background_tasks.add_task(
        send_mail, applicant.email, f"Application {applicant.application_id} received", body
    )


def notify_payment_reviewed(
    background_tasks: BackgroundTasks, applicant: ApplicantState, payment: PaymentState
) -> None:
    if not mail_enabled():
        return
    if payment.status == PaymentRecordStatus.VERIFIED:
        outcome = "has been verified"
    else:
        outcome = "could not be verified. Please submit a new payment"
    body = _greeting(applicant) + f"<p>Your payment with reference {payment.transfer_ref} {outcome}.</p>"
    if payment.reviewer_note:
        body += f"<p>Note: {payment.reviewer_note}</p>"
    background_tasks.add_task(
        send_mail, applicant.email, f"Payment update for {applicant.application_id}", body
    )


def notify_review_decision(background_tasks: BackgroundTasks, applicant: ApplicantState) -> None:
    if not mail_enabled():
        return
    status = applicant.status.value.replace("_", " ")
    body = _greeting(applicant) + (
        f"<p>The status of your application <strong>{applicant.application_id}</strong> "
        f"is now: <strong>{status}</strong>.</p>"
    )
    background_tasks.add_task(
        send_mail, applicant.email, f"Application {applicant.application_id}: {status}", body
    )
