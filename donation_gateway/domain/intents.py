"""Initial charge decision for a donation request"""

from donation_gateway.domain.exceptions import InvalidAmountError
from donation_gateway.domain.follow_up import InstallmentPlan, SubscriptionSetup, encode_follow_up
from donation_gateway.domain.installments import installment_amount
from donation_gateway.domain.models import ChargeIntentParams, DonationRequest, DonationType


def build_charge_intent(request: DonationRequest, currency: str = "usd") -> ChargeIntentParams:
    """
    Decide the initial charge amount and the follow-up metadata it carries.

    - monthly: charge the full amount now, subscription set up on success
    - one-time with installments: charge the first installment now,
      schedule the rest on success
    - otherwise: charge the full amount, nothing follows

    Follow-up charges keep the payment method for off-session reuse.

    Raises:
        InvalidAmountError: Amount is missing or not positive
    """
    amount = request.amount_cents
    if not amount or amount <= 0:
        raise InvalidAmountError("Invalid amount")

    params = ChargeIntentParams(
        amount_cents=amount,
        currency=currency,
        metadata={"donation_type": request.donation_type.value},
        receipt_email=request.donor_email or None,
    )

    if request.donation_type == DonationType.MONTHLY:
        intent = SubscriptionSetup(
            monthly_amount=amount,
            end_after_months=request.recurring_end_months or None,
        )
        params.metadata.update(encode_follow_up(intent))
        params.off_session = True

    elif request.donation_type == DonationType.ONE_TIME and request.installment_months > 0:
        first_payment = installment_amount(amount, request.installment_months)
        intent = InstallmentPlan(
            total_amount=amount,
            installments=request.installment_months,
            installment_amount=first_payment,
        )
        params.amount_cents = first_payment
        params.metadata.update(encode_follow_up(intent))
        params.off_session = True

    return params
