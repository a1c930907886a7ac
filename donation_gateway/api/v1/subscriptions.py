"""POST /api/create-subscription - bill an existing customer directly"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from donation_gateway.api.v1.schemas import SubscriptionRequest
from donation_gateway.api.dependencies import get_processor, get_request_id
from donation_gateway.infrastructure.clients.processor import StripeProcessor
from donation_gateway.services.subscriptions import start_subscription

router = APIRouter()


@router.post("/create-subscription")
def create_subscription(
    request_body: SubscriptionRequest,
    request: Request,
    processor: StripeProcessor = Depends(get_processor),
):
    """
    Attach a payment method and start recurring billing.

    Returns:
        {"schedule": ...} when endAfterMonths > 0, else {"subscription": ...}
    """
    request_id = get_request_id(request)

    try:
        kind, created = start_subscription(
            processor,
            customer_id=request_body.customer_id,
            price_id=request_body.price_id,
            payment_method_id=request_body.payment_method_id,
            end_after_months=request_body.end_after_months,
        )
    except Exception as e:
        logging.error(f"Error creating subscription: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to create subscription")

    logging.info(
        "Subscription created",
        extra={"request_id": request_id, "kind": kind, "customer_id": request_body.customer_id},
    )
    return {kind: created}
