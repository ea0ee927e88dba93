import json
import logging

from fastapi import APIRouter, Depends, Request, BackgroundTasks
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.notifications.delivery import schedule_email_delivery
from storefront.services.paystack_client import verify_webhook_signature
from storefront.services.webhook_service import handle_paystack_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/paystack")
async def paystack_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    # signature covers the exact bytes Paystack sent
    raw_body = await request.body()
    signature = request.headers.get("x-paystack-signature")

    if not verify_webhook_signature(settings.webhook_secret, signature, raw_body):
        logger.warning("Invalid Paystack webhook signature")
        return JSONResponse({"message": "Invalid signature"}, status_code=403)

    try:
        event = json.loads(raw_body)
    except ValueError:
        logger.warning("Paystack webhook body is not valid JSON")
        return JSONResponse({"message": "Invalid payload"}, status_code=400)

    if not isinstance(event, dict):
        return JSONResponse({"message": "Invalid payload"}, status_code=400)

    try:
        await run_in_threadpool(handle_paystack_event, session, event)
    except Exception:
        session.rollback()
        logger.exception(f"Webhook processing error for {event.get('event')}")
        return JSONResponse({"error": "Webhook processing failed"}, status_code=500)

    schedule_email_delivery(background_tasks)
    return {"status": "ok"}
