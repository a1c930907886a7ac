"""SQLAlchemy ORM models"""

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ProcessedWebhookEvent(Base):
    """Processor webhook event that was handled to completion"""

    __tablename__ = "processed_webhook_event"

    event_id = Column(Text, primary_key=True)
    event_type = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
