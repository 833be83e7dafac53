"""
SMTP email utility using fastapi-mail.
"""
import logging
from typing import List, Union

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType

from app import settings

logger = logging.getLogger(__name__)


def mail_enabled() -> bool:
    return bool(settings.MAIL_SERVER)


def _get_mail_config() -> ConnectionConfig:
    """Build ConnectionConfig from application settings."""
    return ConnectionConfig(
        MAIL_USERNAME=settings.MAIL_USERNAME,
        MAIL_PASSWORD=settings.MAIL_PASSWORD,
        MAIL_FROM=settings.MAIL_FROM,
        MAIL_PORT=settings.MAIL_PORT,
        MAIL_SERVER=settings.MAIL_SERVER,
        MAIL_STARTTLS=settings.MAIL_STARTTLS,
        MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
        USE_CREDENTIALS=bool(settings.MAIL_USERNAME),
    )


async def send_mail(
    recipients: Union[List[str], str],
    subject: str,
    body: str,
    *,
    subtype: MessageType = MessageType.html,
) -> None:
    """
    Deliver one applicant mail. Queued on BackgroundTasks, so delivery
    failures are logged instead of reaching the request that queued it.
    """
    if isinstance(recipients, str):
        recipients = [recipients]
    if not mail_enabled():
        logger.debug("MAIL_SERVER not set; skipping mail %r to %s", subject, recipients)
        return

    message = MessageSchema(
        subject=subject,
        recipients=recipients,
        body=body,
        subtype=subtype,
    )
    fm = FastMail(_get_mail_config())
    try:
        await fm.send_message(message)
    except Exception:
        logger.exception("Failed to send mail %r to %s", subject, recipients)
        return
    logger.info("Mail %r sent to %s", subject, recipients)
