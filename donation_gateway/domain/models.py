"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union


class DonationType(str, Enum):
    """Donation frequency chosen on the form"""

    ONE_TIME = "one-time"
    MONTHLY = "monthly"


@dataclass
class DonationRequest:
    """Donation submitted by the form, amounts in cents"""

    amount_cents: Optional[int]
    donation_type: DonationType = DonationType.ONE_TIME
    installment_months: int = 0  # one-time only, 0 = pay in full
    recurring_end_months: int = 0  # monthly only, 0 = ongoing
    donor_name: Optional[str] = None
    donor_email: Optional[str] = None


@dataclass
class ChargeIntentParams:
    """Initial charge to prepare at the processor"""

    amount_cents: int
    currency: str
    metadata: Dict[str, str] = field(default_factory=dict)
    off_session: bool = False  # reuse the payment method for follow-up billing
    customer_id: Optional[str] = None
    receipt_email: Optional[str] = None

    @property
    def has_follow_up(self) -> bool:
        return "type" in self.metadata


@dataclass
class ChargeIntent:
    """Charge prepared by the processor"""

    id: str
    client_secret: str
    amount_cents: int


@dataclass
class PriceRequest:
    """Monthly recurring price to create before a follow-up"""

    unit_amount_cents: int
    product_name: str


@dataclass
class OngoingSubscription:
    """Open-ended monthly subscription"""

    customer_id: str
    price_id: str
    payment_method_id: str


@dataclass
class BoundedSchedule:
    """Subscription schedule that cancels after a fixed number of iterations"""

    customer_id: str
    price_id: str
    payment_method_id: str
    iterations: int


FollowUpPlan = Union[OngoingSubscription, BoundedSchedule]
