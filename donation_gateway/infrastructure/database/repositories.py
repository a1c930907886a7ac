"""Data access layer for processed webhook events"""

from sqlalchemy.orm import Session
from donation_gateway.infrastructure.database.models import ProcessedWebhookEvent


class ProcessedEventRepository:
    """Remembers which webhook events already produced their side effects"""

    def __init__(self, db: Session):
        self.db = db

    def is_processed(self, event_id: str) -> bool:
        return self.db.get(ProcessedWebhookEvent, event_id) is not None

    def mark_processed(self, event_id: str, event_type: str) -> None:
        """Record a handled event. Caller commits."""
        self.db.add(ProcessedWebhookEvent(event_id=event_id, event_type=event_type))
        self.db.flush()
