"""Prometheus metrics for donation intents, follow-up billing and processor calls"""

from prometheus_client import Counter, Histogram

# Donation metrics
donation_intent_counter = Counter(
    "donation_intents_total",
    "Initial charges prepared",
    ["donation_type", "plan"],  # plan: single | subscription_setup | installment_plan
)

follow_up_counter = Counter(
    "follow_up_created_total",
    "Follow-up billing objects created from succeeded charges",
    ["kind"],  # subscription | schedule
)

# Webhook metrics
webhook_event_counter = Counter(
    "webhook_events_total",
    "Inbound processor webhook events",
    ["event_type", "outcome"],  # handled | duplicate | failed | rejected
)

# Processor metrics
processor_failure_counter = Counter(
    "processor_failures_total",
    "Failed payment processor calls",
    ["operation"],
)

processor_latency_histogram = Histogram(
    "processor_call_latency_seconds",
    "Payment processor call latency",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_donation_intent(donation_type: str, plan: str) -> None:
    """Record a prepared initial charge by frequency and follow-up plan"""
    donation_intent_counter.labels(donation_type=donation_type, plan=plan).inc()


def record_webhook_event(event_type: str, outcome: str) -> None:
    webhook_event_counter.labels(event_type=event_type, outcome=outcome).inc()
