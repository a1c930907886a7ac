"""Follow-up billing intent carried on the initial charge and the plan derived from it

The intent is a tagged variant serialized as JSON under a single metadata key, so
the webhook side can deserialize and switch on ``type`` instead of parsing loose
strings. Charges created before the versioned format carry the legacy
string keys, which are still decoded.
"""

from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from donation_gateway.domain.exceptions import FollowUpMetadataError
from donation_gateway.domain.installments import installment_amount, remaining_iterations
from donation_gateway.domain.models import (
    BoundedSchedule,
    FollowUpPlan,
    OngoingSubscription,
    PriceRequest,
)

FOLLOW_UP_SCHEMA_VERSION = 1
FOLLOW_UP_KEY = "follow_up"
TYPE_KEY = "type"
LEGACY_ONGOING = "ongoing"

SUBSCRIPTION_SETUP = "subscription_setup"
INSTALLMENT_PLAN = "installment_plan"


class SubscriptionSetup(BaseModel):
    """Monthly donation: bill monthly_amount every month after the first charge"""

    type: Literal["subscription_setup"] = SUBSCRIPTION_SETUP
    schema_version: int = FOLLOW_UP_SCHEMA_VERSION
    monthly_amount: int = Field(..., gt=0)
    end_after_months: Optional[int] = Field(None, gt=0)  # None = ongoing


class InstallmentPlan(BaseModel):
    """One-time donation split into equal monthly installments"""

    type: Literal["installment_plan"] = INSTALLMENT_PLAN
    schema_version: int = FOLLOW_UP_SCHEMA_VERSION
    total_amount: int = Field(..., gt=0)
    installments: int = Field(..., gt=0)
    installment_amount: int = Field(..., gt=0)


FollowUpIntent = Annotated[Union[SubscriptionSetup, InstallmentPlan], Field(discriminator="type")]

_follow_up_adapter = TypeAdapter(FollowUpIntent)


def encode_follow_up(intent: Union[SubscriptionSetup, InstallmentPlan]) -> Dict[str, str]:
    """Metadata entries for a follow-up intent. ``type`` stays readable for dashboards."""
    return {
        TYPE_KEY: intent.type,
        FOLLOW_UP_KEY: intent.model_dump_json(),
    }


def decode_follow_up(metadata: Dict[str, str]) -> Optional[Union[SubscriptionSetup, InstallmentPlan]]:
    """
    Read the follow-up intent from charge metadata.

    Returns:
        The intent, or None for a plain one-time donation

    Raises:
        FollowUpMetadataError: Metadata names a follow-up but cannot be parsed
    """
    raw = metadata.get(FOLLOW_UP_KEY)
    if raw is None:
        return _decode_legacy(metadata)

    try:
        intent = _follow_up_adapter.validate_json(raw)
    except ValueError as e:
        raise FollowUpMetadataError(f"Invalid follow-up metadata: {e}") from e

    if intent.schema_version != FOLLOW_UP_SCHEMA_VERSION:
        raise FollowUpMetadataError(f"Unsupported follow-up schema version {intent.schema_version}")
    return intent


def _decode_legacy(metadata: Dict[str, str]) -> Optional[Union[SubscriptionSetup, InstallmentPlan]]:
    kind = metadata.get(TYPE_KEY)
    try:
        if kind == SUBSCRIPTION_SETUP:
            end = metadata.get("end_after_months", LEGACY_ONGOING)
            return SubscriptionSetup(
                monthly_amount=int(metadata["monthly_amount"]),
                end_after_months=None if end in (LEGACY_ONGOING, "", "0") else int(end),
            )
        if kind == INSTALLMENT_PLAN:
            total = int(metadata["total_amount"])
            installments = int(metadata["installments"])
            return InstallmentPlan(
                total_amount=total,
                installments=installments,
                installment_amount=installment_amount(total, installments),
            )
    except (KeyError, ValueError) as e:
        raise FollowUpMetadataError(f"Malformed {kind} metadata: {e}") from e
    return None


def price_for(intent: Union[SubscriptionSetup, InstallmentPlan]) -> Optional[PriceRequest]:
    """
    Monthly price the follow-up bills at, or None when nothing is left to bill.

    The installment amount is recomputed from the total rather than trusted
    from metadata.
    """
    if isinstance(intent, SubscriptionSetup):
        return PriceRequest(unit_amount_cents=intent.monthly_amount, product_name="Monthly Donation")

    if remaining_iterations(intent.installments) == 0:
        return None
    return PriceRequest(
        unit_amount_cents=installment_amount(intent.total_amount, intent.installments),
        product_name=f"Installment Payment ({intent.installments} total)",
    )


def plan_follow_up(
    intent: Union[SubscriptionSetup, InstallmentPlan],
    customer_id: str,
    payment_method_id: str,
    price_id: str,
) -> FollowUpPlan:
    """
    Map a follow-up intent to the billing object to create.

    - Monthly with an end → schedule of end_after_months iterations
    - Monthly without an end → ongoing subscription
    - Installments → schedule of the remaining installments-1 iterations,
      the first installment was the initial charge
    """
    if isinstance(intent, SubscriptionSetup):
        if intent.end_after_months:
            return BoundedSchedule(
                customer_id=customer_id,
                price_id=price_id,
                payment_method_id=payment_method_id,
                iterations=intent.end_after_months,
            )
        return OngoingSubscription(
            customer_id=customer_id,
            price_id=price_id,
            payment_method_id=payment_method_id,
        )

    return BoundedSchedule(
        customer_id=customer_id,
        price_id=price_id,
        payment_method_id=payment_method_id,
        iterations=remaining_iterations(intent.installments),
    )
