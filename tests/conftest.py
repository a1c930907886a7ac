"""Pytest fixtures for testing"""

import hashlib
import hmac
import json
import time
from itertools import count
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from donation_gateway.api.main import create_app
from donation_gateway.api.dependencies import get_processor
from donation_gateway.domain.exceptions import ProcessorError
from donation_gateway.domain.models import ChargeIntent, ChargeIntentParams, PriceRequest
from donation_gateway.infrastructure.clients.processor import StripeProcessor
from donation_gateway.infrastructure.database.models import Base
from donation_gateway.infrastructure.database.session import get_db


WEBHOOK_SECRET = "whsec_test_secret"

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeProcessor(StripeProcessor):
    """
    Records Stripe calls instead of sending them.

    Signature verification is inherited, so webhook tests exercise the real
    Stripe signing scheme. Set ``fail_on`` to an operation name to make that
    call raise ProcessorError.
    """

    def __init__(self):
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET, currency="usd")
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_on: Optional[str] = None
        self._ids = count(1)

    def _record(self, operation: str, **params: Any) -> str:
        if operation == self.fail_on:
            raise ProcessorError(operation, "simulated outage")
        self.calls.append((operation, params))
        return f"{operation}_{next(self._ids)}"

    def operations(self) -> List[str]:
        return [operation for operation, _ in self.calls]

    def calls_to(self, operation: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == operation]

    def create_customer(self, name, email):
        return "cus_" + self._record("create_customer", name=name, email=email)

    def create_payment_intent(self, intent: ChargeIntentParams) -> ChargeIntent:
        intent_id = self._record("create_payment_intent", intent=intent)
        return ChargeIntent(id=intent_id, client_secret=f"{intent_id}_secret", amount_cents=intent.amount_cents)

    def create_monthly_price(self, price: PriceRequest) -> str:
        return "price_" + self._record("create_price", price=price)

    def attach_payment_method(self, payment_method_id, customer_id):
        self._record("attach_payment_method", payment_method_id=payment_method_id, customer_id=customer_id)

    def set_default_payment_method(self, customer_id, payment_method_id):
        self._record("set_default_payment_method", customer_id=customer_id, payment_method_id=payment_method_id)

    def create_subscription(self, customer_id, price_id, payment_method_id=None, save_payment_method=False):
        sub_id = self._record(
            "create_subscription",
            customer_id=customer_id,
            price_id=price_id,
            payment_method_id=payment_method_id,
            save_payment_method=save_payment_method,
        )
        return {"id": "sub_" + sub_id, "customer": customer_id, "status": "active"}

    def create_subscription_schedule(self, customer_id, price_id, iterations, payment_method_id=None):
        sched_id = self._record(
            "create_subscription_schedule",
            customer_id=customer_id,
            price_id=price_id,
            iterations=iterations,
            payment_method_id=payment_method_id,
        )
        return {"id": "sub_sched_" + sched_id, "customer": customer_id, "end_behavior": "cancel"}


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook deliveries"""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def make_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1") -> str:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": obj},
        }
    )


def charge_object(
    metadata: Dict[str, str],
    amount: int = 5000,
    customer: Optional[str] = "cus_donor",
    payment_method: Optional[str] = "pm_card",
) -> Dict[str, Any]:
    return {
        "id": "pi_test_1",
        "object": "payment_intent",
        "amount": amount,
        "currency": "usd",
        "customer": customer,
        "payment_method": payment_method,
        "receipt_email": "donor@example.org",
        "metadata": metadata,
    }


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, processor: FakeProcessor) -> TestClient:
    """Create FastAPI test client with test database and fake processor"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_processor] = lambda: processor
    return TestClient(app)


@pytest.fixture
def post_event(client: TestClient) -> Callable[..., Any]:
    """POST a signed event body to the webhook endpoint"""

    def _post(body: str, signature: Optional[str] = None):
        headers = {"Stripe-Signature": signature if signature is not None else sign_payload(body)}
        return client.post("/api/webhook", content=body, headers=headers)

    return _post
