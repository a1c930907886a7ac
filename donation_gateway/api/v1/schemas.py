"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from donation_gateway.domain.models import DonationRequest, DonationType


class PaymentIntentRequest(BaseModel):
    """Request body for POST /api/create-payment-intent"""

    model_config = ConfigDict(populate_by_name=True)

    # Amount is checked by the domain so a missing or non-positive value reads "Invalid amount"
    amount: Optional[int] = Field(None, description="Donation amount in cents")
    donation_type: DonationType = Field(DonationType.ONE_TIME, alias="donationType")
    installment_months: int = Field(0, ge=0, alias="installmentMonths", description="0 = pay in full")
    monthly_end_date: int = Field(0, ge=0, alias="monthlyEndDate", description="Months until a monthly donation ends, 0 = ongoing")
    name: Optional[str] = None
    email: Optional[str] = None

    def to_domain(self) -> DonationRequest:
        return DonationRequest(
            amount_cents=self.amount,
            donation_type=self.donation_type,
            installment_months=self.installment_months,
            recurring_end_months=self.monthly_end_date,
            donor_name=self.name,
            donor_email=self.email,
        )


class PaymentIntentResponse(BaseModel):
    """Response for POST /api/create-payment-intent"""

    client_secret: str = Field(..., serialization_alias="clientSecret")


class SubscriptionRequest(BaseModel):
    """Request body for POST /api/create-subscription"""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(..., min_length=1, alias="customerId")
    price_id: str = Field(..., min_length=1, alias="priceId")
    payment_method_id: str = Field(..., min_length=1, alias="paymentMethodId")
    end_after_months: Optional[int] = Field(None, alias="endAfterMonths")


class WebhookResponse(BaseModel):
    """Response for POST /api/webhook"""

    received: bool = True
    duplicate: Optional[bool] = None
