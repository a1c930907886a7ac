"""Stripe payment processor client"""

from typing import Any, Callable, Dict, Optional

import stripe

from donation_gateway.config import settings
from donation_gateway.domain.exceptions import ProcessorError, SignatureVerificationError
from donation_gateway.domain.models import (
    BoundedSchedule,
    ChargeIntent,
    ChargeIntentParams,
    FollowUpPlan,
    PriceRequest,
)
from donation_gateway.infrastructure.observability.metrics import (
    processor_failure_counter,
    processor_latency_histogram,
)


class StripeProcessor:
    """
    Client for the Stripe API.

    Credentials are passed on every request instead of being set on the global
    ``stripe`` module, so several instances can coexist and tests can swap in a
    fake. Calls block until Stripe answers and are never retried here.
    """

    def __init__(
        self,
        api_key: str | None = None,
        webhook_secret: str | None = None,
        api_version: str | None = None,
        currency: str | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        self.api_version = api_version or settings.stripe_api_version
        self.currency = currency or settings.currency

    def _call(self, operation: str, method: Callable[..., Any], *args: Any, **params: Any) -> Any:
        try:
            with processor_latency_histogram.labels(operation=operation).time():
                return method(*args, api_key=self.api_key, stripe_version=self.api_version, **params)
        except stripe.StripeError as e:
            processor_failure_counter.labels(operation=operation).inc()
            raise ProcessorError(operation, str(e)) from e

    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> None:
        """
        Check the Stripe-Signature header against the raw body.

        Raises:
            SignatureVerificationError: Missing secret or header, bad signature,
                stale timestamp, or unparseable payload
        """
        if not self.webhook_secret:
            raise SignatureVerificationError("Webhook signing secret is not configured")
        if not signature:
            raise SignatureVerificationError("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            raise SignatureVerificationError(str(e)) from e

    def create_customer(self, name: Optional[str], email: Optional[str]) -> str:
        """Create a customer to own the follow-up billing, returns its id"""
        params: Dict[str, Any] = {}
        if name:
            params["name"] = name
        if email:
            params["email"] = email
        customer = self._call("create_customer", stripe.Customer.create, **params)
        return customer.id

    def create_payment_intent(self, intent: ChargeIntentParams) -> ChargeIntent:
        params: Dict[str, Any] = {
            "amount": intent.amount_cents,
            "currency": intent.currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": intent.metadata,
        }
        if intent.off_session:
            params["setup_future_usage"] = "off_session"
        if intent.customer_id:
            params["customer"] = intent.customer_id
        if intent.receipt_email:
            params["receipt_email"] = intent.receipt_email

        payment_intent = self._call("create_payment_intent", stripe.PaymentIntent.create, **params)
        return ChargeIntent(
            id=payment_intent.id,
            client_secret=payment_intent.client_secret,
            amount_cents=payment_intent.amount,
        )

    def create_monthly_price(self, price: PriceRequest) -> str:
        """Create a monthly recurring price with an inline product, returns its id"""
        created = self._call(
            "create_price",
            stripe.Price.create,
            unit_amount=price.unit_amount_cents,
            currency=self.currency,
            recurring={"interval": "month"},
            product_data={"name": price.product_name},
        )
        return created.id

    def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None:
        self._call("attach_payment_method", stripe.PaymentMethod.attach, payment_method_id, customer=customer_id)

    def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        self._call(
            "set_default_payment_method",
            stripe.Customer.modify,
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str] = None,
        save_payment_method: bool = False,
    ) -> Dict[str, Any]:
        """
        Create an open-ended subscription.

        save_payment_method asks Stripe to keep the card used for the first
        invoice as the subscription default, and expands the invoice secret so
        the caller can confirm it.
        """
        params: Dict[str, Any] = {
            "customer": customer_id,
            "items": [{"price": price_id}],
        }
        if payment_method_id:
            params["default_payment_method"] = payment_method_id
        if save_payment_method:
            params["payment_settings"] = {
                "payment_method_types": ["card"],
                "save_default_payment_method": "on_subscription",
            }
            params["expand"] = ["latest_invoice.confirmation_secret"]

        subscription = self._call("create_subscription", stripe.Subscription.create, **params)
        return subscription.to_dict()

    def create_subscription_schedule(
        self,
        customer_id: str,
        price_id: str,
        iterations: int,
        payment_method_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a schedule starting now that cancels after ``iterations`` billing cycles"""
        params: Dict[str, Any] = {
            "customer": customer_id,
            "start_date": "now",
            "end_behavior": "cancel",
            "phases": [
                {
                    "items": [{"price": price_id}],
                    "iterations": iterations,
                }
            ],
        }
        if payment_method_id:
            params["default_settings"] = {"default_payment_method": payment_method_id}

        schedule = self._call("create_subscription_schedule", stripe.SubscriptionSchedule.create, **params)
        return schedule.to_dict()

    def create_follow_up(self, plan: FollowUpPlan) -> Dict[str, Any]:
        """Submit a follow-up plan as a schedule or a subscription"""
        if isinstance(plan, BoundedSchedule):
            return self.create_subscription_schedule(
                plan.customer_id,
                plan.price_id,
                plan.iterations,
                payment_method_id=plan.payment_method_id,
            )
        return self.create_subscription(
            plan.customer_id,
            plan.price_id,
            payment_method_id=plan.payment_method_id,
        )
