import logging
from datetime import datetime

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.config import settings
from storefront.models.email import EmailLog
from storefront.services import email_service

logger = logging.getLogger(__name__)


def _claim(session: Session, email_id: int) -> bool:
    # 🔒 only one drain moves a row out of queued
    result = session.execute(
        update(EmailLog)
        .where(EmailLog.id == email_id)
        .where(EmailLog.status == "queued")
        .values(status="sending", attempts=EmailLog.attempts + 1)
    )
    session.commit()
    return result.rowcount == 1


def deliver_pending_emails(session: Session, limit: int = 50) -> dict:
    """
    Drain the outbox.

    Each row is claimed (queued -> sending) before the provider is called, so
    concurrent drains never send the same row twice. A failed row goes back to
    queued until it reaches settings.email_max_attempts, then it is parked as
    failed.
    """
    pending = session.exec(
        select(EmailLog.id)
        .where(EmailLog.status == "queued")
        .order_by(EmailLog.created_at, EmailLog.id)
        .limit(limit)
    ).all()

    sent = failed = 0
    for email_id in pending:
        if not _claim(session, email_id):
            logger.info(f"Email {email_id} already claimed by another run")
            continue

        email = session.get(EmailLog, email_id)
        try:
            ok = email_service.send_email(to=email.to_email, subject=email.subject, html=email.html)
            error = None if ok else "provider rejected the message"
        except Exception as e:
            logger.exception(f"Email {email.id} raised during delivery")
            ok, error = False, str(e)

        if ok:
            email.status = "sent"
            email.sent_at = datetime.utcnow()
            email.last_error = None
            sent += 1
        else:
            email.last_error = error
            if email.attempts >= settings.email_max_attempts:
                email.status = "failed"
                logger.error(f"Email {email.id} to {email.to_email} permanently failed: {error}")
            else:
                email.status = "queued"
            failed += 1

        session.add(email)
        session.commit()

    return {"sent": sent, "failed": failed}


def deliver_outbox() -> None:
    from storefront.database import engine

    with Session(engine) as session:
        result = deliver_pending_emails(session)
    if result["sent"] or result["failed"]:
        logger.info(f"Outbox run: {result['sent']} sent, {result['failed']} failed")


def schedule_email_delivery(background_tasks) -> None:
    """Drain the outbox after the response has gone out."""
    background_tasks.add_task(deliver_outbox)
