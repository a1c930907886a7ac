"""Processor webhook dispatch: verification, classification and follow-up billing"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from donation_gateway.domain.exceptions import FollowUpMetadataError, ValidationError
from donation_gateway.domain.follow_up import decode_follow_up, plan_follow_up, price_for
from donation_gateway.domain.models import BoundedSchedule
from donation_gateway.infrastructure.clients.processor import StripeProcessor
from donation_gateway.infrastructure.database.repositories import ProcessedEventRepository
from donation_gateway.infrastructure.observability.logging import log_follow_up
from donation_gateway.infrastructure.observability.metrics import follow_up_counter
from donation_gateway.utils.money import cents_to_dollars

CHARGE_SUCCEEDED = "payment_intent.succeeded"


class WebhookEventData(BaseModel):
    object: Dict[str, Any]


class WebhookEvent(BaseModel):
    """Envelope of a Stripe event, only the fields routing needs"""

    id: str
    type: str
    data: WebhookEventData


class PaymentIntentObject(BaseModel):
    """Succeeded charge as delivered in the event body"""

    id: str
    amount: int
    customer: Optional[str] = None
    payment_method: Optional[str] = None
    receipt_email: Optional[str] = None
    metadata: Dict[str, str] = {}


@dataclass
class DispatchResult:
    event: WebhookEvent
    duplicate: bool = False


class EventDispatcher:
    """
    Single-shot handler for one inbound webhook delivery.

    Flow:
    1. Verify the signature (nothing else happens on failure)
    2. Skip events already handled, when an event store is given
    3. Route by event type; succeeded charges may create follow-up billing
    4. Record the event as handled

    Without an event store a redelivered event repeats its side effects.
    """

    def __init__(self, processor: StripeProcessor, event_store: Optional[ProcessedEventRepository] = None):
        self.processor = processor
        self.event_store = event_store
        self.handlers: Dict[str, Callable[[WebhookEvent], None]] = {
            CHARGE_SUCCEEDED: self._handle_charge_succeeded,
            "customer.subscription.created": self._handle_subscription_event,
            "customer.subscription.updated": self._handle_subscription_event,
            "customer.subscription.deleted": self._handle_subscription_event,
            "invoice.payment_succeeded": self._handle_invoice_paid,
            "invoice.payment_failed": self._handle_invoice_failed,
        }

    def dispatch(self, payload: bytes, signature: Optional[str]) -> DispatchResult:
        """
        Verify and handle one delivery.

        Returns:
            The parsed event, flagged when it was a skipped redelivery

        Raises:
            SignatureVerificationError: Signature check failed
            ValidationError: Verified body is not a Stripe event
            FollowUpMetadataError, ProcessorError: Follow-up billing failed
        """
        self.processor.verify_webhook(payload, signature)

        try:
            event = WebhookEvent.model_validate_json(payload)
        except ValueError as e:
            raise ValidationError(f"Malformed event payload: {e}") from e

        if self.is_duplicate(event):
            logging.info("Duplicate webhook event skipped", extra={"event_id": event.id, "event_type": event.type})
            return DispatchResult(event, duplicate=True)

        handler = self.handlers.get(event.type)
        if handler:
            handler(event)
        else:
            logging.info("Unhandled webhook event type", extra={"event_id": event.id, "event_type": event.type})

        if self.event_store is not None:
            self.event_store.mark_processed(event.id, event.type)
        return DispatchResult(event)

    def is_duplicate(self, event: WebhookEvent) -> bool:
        return self.event_store is not None and self.event_store.is_processed(event.id)

    # Event handlers

    def _handle_charge_succeeded(self, event: WebhookEvent) -> None:
        charge = PaymentIntentObject.model_validate(event.data.object)
        intent = decode_follow_up(charge.metadata)

        if intent is None:
            self._record_one_time_donation(charge)
            return

        price = price_for(intent)
        if price is None:
            logging.info(
                "Installment plan fully collected by initial charge",
                extra={"event_id": event.id, "charge_id": charge.id},
            )
            return

        if not charge.customer or not charge.payment_method:
            raise FollowUpMetadataError(f"Charge {charge.id} has no customer or payment method for {intent.type}")

        price_id = self.processor.create_monthly_price(price)
        plan = plan_follow_up(intent, charge.customer, charge.payment_method, price_id)
        self.processor.create_follow_up(plan)

        kind = "schedule" if isinstance(plan, BoundedSchedule) else "subscription"
        follow_up_counter.labels(kind=kind).inc()
        log_follow_up(
            event_id=event.id,
            charge_id=charge.id,
            kind=kind,
            customer_id=charge.customer,
            unit_amount_cents=price.unit_amount_cents,
            iterations=plan.iterations if isinstance(plan, BoundedSchedule) else None,
        )

    def _record_one_time_donation(self, charge: PaymentIntentObject) -> None:
        # Receipts and donor CRM updates happen outside this service
        logging.info(
            "One-time donation received",
            extra={
                "charge_id": charge.id,
                "amount": cents_to_dollars(charge.amount),
                "customer": charge.customer,
                "receipt_email": charge.receipt_email,
            },
        )

    def _handle_subscription_event(self, event: WebhookEvent) -> None:
        logging.info(
            "Subscription event",
            extra={"event_type": event.type, "subscription_id": event.data.object.get("id")},
        )

    def _handle_invoice_paid(self, event: WebhookEvent) -> None:
        logging.info("Invoice paid", extra={"invoice_id": event.data.object.get("id")})

    def _handle_invoice_failed(self, event: WebhookEvent) -> None:
        logging.warning("Invoice payment failed", extra={"invoice_id": event.data.object.get("id")})
