"""POST /api/create-payment-intent - prepare the initial donation charge"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from donation_gateway.api.v1.schemas import PaymentIntentRequest, PaymentIntentResponse
from donation_gateway.api.dependencies import get_processor, get_request_id
from donation_gateway.infrastructure.clients.processor import StripeProcessor
from donation_gateway.services.donations import create_donation_intent, plan_label
from donation_gateway.domain.exceptions import InvalidAmountError, ProcessorError
from donation_gateway.infrastructure.observability.metrics import record_donation_intent
from donation_gateway.infrastructure.observability.logging import log_donation_intent

router = APIRouter()


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    request_body: PaymentIntentRequest,
    request: Request,
    processor: StripeProcessor = Depends(get_processor),
):
    """
    Prepare the initial charge for a donation.

    Flow:
    1. Validate amount
    2. Decide first charge amount and follow-up metadata
    3. Create a customer when follow-up billing is needed
    4. Create the payment intent
    5. Return the client secret for the payment form
    """
    start_time = time.time()
    request_id = get_request_id(request)
    donation = request_body.to_domain()

    try:
        params, charge = create_donation_intent(donation, processor)

    except InvalidAmountError as e:
        logging.warning(f"Rejected donation: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail="Invalid amount")

    except ProcessorError as e:
        logging.error(f"Error creating payment intent: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to create payment intent")

    except Exception as e:
        logging.error(f"Unexpected error creating payment intent: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to create payment intent")

    duration_ms = (time.time() - start_time) * 1000
    plan = plan_label(params)
    record_donation_intent(donation.donation_type.value, plan)
    log_donation_intent(request_id, charge.id, donation.donation_type.value, plan, charge.amount_cents, duration_ms)

    return PaymentIntentResponse(client_secret=charge.client_secret)
