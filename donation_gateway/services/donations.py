"""Initial charge preparation for donations"""

import logging
from typing import Tuple

from donation_gateway.domain.follow_up import INSTALLMENT_PLAN, TYPE_KEY
from donation_gateway.domain.installments import rounding_drift
from donation_gateway.domain.intents import build_charge_intent
from donation_gateway.domain.models import ChargeIntent, ChargeIntentParams, DonationRequest
from donation_gateway.infrastructure.clients.processor import StripeProcessor

SINGLE_PAYMENT = "single"


def plan_label(params: ChargeIntentParams) -> str:
    """Follow-up kind of a prepared charge, for metrics and logs"""
    return params.metadata.get(TYPE_KEY, SINGLE_PAYMENT)


def create_donation_intent(
    request: DonationRequest,
    processor: StripeProcessor,
) -> Tuple[ChargeIntentParams, ChargeIntent]:
    """
    Prepare the initial charge for a donation.

    Charges that lead to follow-up billing are bound to a new customer built
    from the donor contact fields, so the webhook can bill that customer later.

    Raises:
        InvalidAmountError: Amount is missing or not positive
        ProcessorError: Stripe rejected a call
    """
    params = build_charge_intent(request, currency=processor.currency)

    if params.has_follow_up:
        params.customer_id = processor.create_customer(request.donor_name, request.donor_email)

    if plan_label(params) == INSTALLMENT_PLAN:
        drift = rounding_drift(request.amount_cents, request.installment_months)
        if drift:
            logging.info(
                "Installment rounding exceeds pledge",
                extra={"total_cents": request.amount_cents, "drift_cents": drift},
            )

    return params, processor.create_payment_intent(params)
