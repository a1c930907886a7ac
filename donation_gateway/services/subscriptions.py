"""Direct subscription setup for an existing customer and price"""

from typing import Any, Dict, Optional, Tuple

from donation_gateway.infrastructure.clients.processor import StripeProcessor


def start_subscription(
    processor: StripeProcessor,
    customer_id: str,
    price_id: str,
    payment_method_id: str,
    end_after_months: Optional[int] = None,
) -> Tuple[str, Dict[str, Any]]:
    """
    Attach the payment method, make it the customer's default, then bill.

    Steps run strictly in order and stop at the first failure. A payment
    method attached before a later failure stays attached.

    Returns:
        ("schedule", schedule) when end_after_months > 0, else
        ("subscription", subscription)

    Raises:
        ProcessorError: Any Stripe call failed
    """
    processor.attach_payment_method(payment_method_id, customer_id)
    processor.set_default_payment_method(customer_id, payment_method_id)

    if end_after_months and end_after_months > 0:
        schedule = processor.create_subscription_schedule(
            customer_id,
            price_id,
            end_after_months,
            payment_method_id=payment_method_id,
        )
        return "schedule", schedule

    subscription = processor.create_subscription(
        customer_id,
        price_id,
        payment_method_id=payment_method_id,
        save_payment_method=True,
    )
    return "subscription", subscription
