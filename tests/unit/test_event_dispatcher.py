"""Unit tests for webhook dispatch and follow-up billing"""

import pytest
from conftest import FakeProcessor, charge_object, make_event, sign_payload
from donation_gateway.domain.exceptions import (
    FollowUpMetadataError,
    ProcessorError,
    SignatureVerificationError,
    ValidationError,
)
from donation_gateway.domain.follow_up import InstallmentPlan, SubscriptionSetup, encode_follow_up
from donation_gateway.domain.models import PriceRequest
from donation_gateway.infrastructure.database.repositories import ProcessedEventRepository
from donation_gateway.services.webhooks import EventDispatcher


def _dispatch(dispatcher: EventDispatcher, body: str):
    return dispatcher.dispatch(body.encode("utf-8"), sign_payload(body))


def _charge_succeeded(intent=None, **charge_kwargs) -> str:
    metadata = {"donation_type": "one-time"}
    if intent is not None:
        metadata.update(encode_follow_up(intent))
    return make_event("payment_intent.succeeded", charge_object(metadata, **charge_kwargs))


def test_monthly_ongoing_creates_subscription(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)

    _dispatch(dispatcher, _charge_succeeded(SubscriptionSetup(monthly_amount=2600)))

    assert processor.operations() == ["create_price", "create_subscription"]
    assert processor.calls_to("create_price")[0]["price"] == PriceRequest(2600, "Monthly Donation")
    subscription = processor.calls_to("create_subscription")[0]
    assert subscription["customer_id"] == "cus_donor"
    assert subscription["payment_method_id"] == "pm_card"
    assert subscription["price_id"].startswith("price_")


def test_monthly_with_end_creates_schedule(processor: FakeProcessor):
    """Test 2600 monthly ending after 12 months"""
    dispatcher = EventDispatcher(processor)

    _dispatch(dispatcher, _charge_succeeded(SubscriptionSetup(monthly_amount=2600, end_after_months=12), amount=2600))

    assert processor.operations() == ["create_price", "create_subscription_schedule"]
    schedule = processor.calls_to("create_subscription_schedule")[0]
    assert schedule["iterations"] == 12
    assert schedule["payment_method_id"] == "pm_card"
    assert processor.calls_to("create_price")[0]["price"].unit_amount_cents == 2600


def test_installments_schedule_remaining(processor: FakeProcessor):
    """Test 5000 over 3: schedule 2 more at 1667"""
    dispatcher = EventDispatcher(processor)
    intent = InstallmentPlan(total_amount=5000, installments=3, installment_amount=1667)

    _dispatch(dispatcher, _charge_succeeded(intent, amount=1667))

    assert processor.operations() == ["create_price", "create_subscription_schedule"]
    assert processor.calls_to("create_price")[0]["price"] == PriceRequest(1667, "Installment Payment (3 total)")
    assert processor.calls_to("create_subscription_schedule")[0]["iterations"] == 2


def test_legacy_metadata_still_creates_follow_up(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)
    metadata = {"type": "subscription_setup", "monthly_amount": "2600", "end_after_months": "ongoing"}

    _dispatch(dispatcher, make_event("payment_intent.succeeded", charge_object(metadata)))

    assert processor.operations() == ["create_price", "create_subscription"]


def test_one_time_donation_has_no_follow_up(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)

    result = _dispatch(dispatcher, _charge_succeeded())

    assert processor.calls == []
    assert result.event.type == "payment_intent.succeeded"
    assert result.duplicate is False


def test_single_installment_has_no_follow_up(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)
    intent = InstallmentPlan(total_amount=5000, installments=1, installment_amount=5000)

    _dispatch(dispatcher, _charge_succeeded(intent))

    assert processor.calls == []


@pytest.mark.parametrize(
    "event_type",
    [
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
        "invoice.payment_succeeded",
        "invoice.payment_failed",
        "charge.refunded",
    ],
)
def test_other_events_only_observed(processor: FakeProcessor, event_type: str):
    dispatcher = EventDispatcher(processor)

    _dispatch(dispatcher, make_event(event_type, {"id": "obj_1"}))

    assert processor.calls == []


def test_bad_signature_has_no_side_effects(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)
    body = _charge_succeeded(SubscriptionSetup(monthly_amount=2600))

    with pytest.raises(SignatureVerificationError):
        dispatcher.dispatch(body.encode("utf-8"), sign_payload(body, secret="whsec_wrong"))

    assert processor.calls == []


def test_tampered_body_rejected(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)
    body = _charge_succeeded(SubscriptionSetup(monthly_amount=2600))
    signature = sign_payload(body)
    tampered = body.replace("2600", "9900")

    with pytest.raises(SignatureVerificationError):
        dispatcher.dispatch(tampered.encode("utf-8"), signature)

    assert processor.calls == []


def test_missing_signature_rejected(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)

    with pytest.raises(SignatureVerificationError):
        dispatcher.dispatch(_charge_succeeded().encode("utf-8"), None)


def test_signed_non_event_payload_rejected(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)

    with pytest.raises(ValidationError):
        _dispatch(dispatcher, '{"hello": "world"}')


def test_follow_up_without_customer_fails_before_side_effects(processor: FakeProcessor):
    dispatcher = EventDispatcher(processor)

    with pytest.raises(FollowUpMetadataError):
        _dispatch(dispatcher, _charge_succeeded(SubscriptionSetup(monthly_amount=2600), customer=None))

    assert processor.calls == []


def test_schedule_failure_after_price_propagates(processor: FakeProcessor):
    """Test price stays created when the schedule call fails"""
    dispatcher = EventDispatcher(processor)
    processor.fail_on = "create_subscription_schedule"

    with pytest.raises(ProcessorError):
        _dispatch(dispatcher, _charge_succeeded(SubscriptionSetup(monthly_amount=2600, end_after_months=6)))

    assert processor.operations() == ["create_price"]


def test_redelivery_without_event_store_duplicates_follow_up(processor: FakeProcessor):
    """Test known duplication risk: no de-duplication means two subscriptions"""
    dispatcher = EventDispatcher(processor)
    body = _charge_succeeded(SubscriptionSetup(monthly_amount=2600))

    _dispatch(dispatcher, body)
    _dispatch(dispatcher, body)

    assert processor.operations().count("create_subscription") == 2


def test_redelivery_with_event_store_is_skipped(processor: FakeProcessor, db):
    dispatcher = EventDispatcher(processor, event_store=ProcessedEventRepository(db))
    body = _charge_succeeded(SubscriptionSetup(monthly_amount=2600))

    first = _dispatch(dispatcher, body)
    second = _dispatch(dispatcher, body)

    assert first.duplicate is False
    assert second.duplicate is True
    assert processor.operations().count("create_subscription") == 1


def test_failed_event_is_not_recorded(processor: FakeProcessor, db):
    """Test a failed attempt stays eligible for redelivery"""
    store = ProcessedEventRepository(db)
    dispatcher = EventDispatcher(processor, event_store=store)
    processor.fail_on = "create_price"

    with pytest.raises(ProcessorError):
        _dispatch(dispatcher, _charge_succeeded(SubscriptionSetup(monthly_amount=2600)))

    assert store.is_processed("evt_test_1") is False
