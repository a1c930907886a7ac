"""POST /api/webhook - Stripe event receiver"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from donation_gateway.api.v1.schemas import WebhookResponse
from donation_gateway.api.dependencies import get_event_store, get_processor, get_request_id
from donation_gateway.infrastructure.clients.processor import StripeProcessor
from donation_gateway.infrastructure.database.repositories import ProcessedEventRepository
from donation_gateway.infrastructure.database.session import get_db
from donation_gateway.services.webhooks import EventDispatcher
from donation_gateway.domain.exceptions import SignatureVerificationError, ValidationError
from donation_gateway.infrastructure.observability.metrics import record_webhook_event

router = APIRouter()

SIGNATURE_HEADER = "stripe-signature"


@router.post("/webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def receive_webhook(
    request: Request,
    db: Session = Depends(get_db),
    processor: StripeProcessor = Depends(get_processor),
    event_store: Optional[ProcessedEventRepository] = Depends(get_event_store),
):
    """
    Verify a Stripe event and run its follow-up billing.

    Flow:
    1. Verify signature over the raw body (400, no side effects on failure)
    2. Skip already handled events
    3. For a succeeded charge: create price, then schedule or subscription
    4. Record the event and acknowledge

    A 500 leaves the event unrecorded so Stripe's redelivery can retry it.
    """
    request_id = get_request_id(request)
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    dispatcher = EventDispatcher(processor, event_store=event_store)

    try:
        # Stripe calls block, keep them off the event loop
        result = await run_in_threadpool(dispatcher.dispatch, payload, signature)
        db.commit()

    except SignatureVerificationError as e:
        record_webhook_event("unknown", "rejected")
        logging.error(f"Webhook signature verification failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail="Invalid signature")

    except ValidationError as e:
        record_webhook_event("unknown", "rejected")
        logging.error(f"Webhook payload rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail="Invalid payload")

    except Exception as e:
        db.rollback()
        record_webhook_event("unknown", "failed")
        logging.error(f"Webhook handler error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Webhook handler failed")

    if result.duplicate:
        record_webhook_event(result.event.type, "duplicate")
        return WebhookResponse(duplicate=True)

    record_webhook_event(result.event.type, "handled")
    return WebhookResponse()
