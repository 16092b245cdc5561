"""
Stripe webhook endpoint. Authenticated by signature, not by session.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from insurance_analyzer.dependencies import get_db
from insurance_analyzer.services import billing_service
from insurance_analyzer.services.billing_service import BillingError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = billing_service.construct_event(payload, signature)
    except BillingError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    logger.info(f"Stripe webhook received: {event['type']} ({event.get('id')})")
    try:
        handled = await run_in_threadpool(billing_service.handle_webhook_event, db, event)
    except BillingError as e:
        db.rollback()
        logger.error(f"Failed to process Stripe event {event['type']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to process webhook")

    return {"received": True, "handled": handled}
