"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from donation_gateway.config import settings
from donation_gateway.infrastructure.clients.processor import StripeProcessor
from donation_gateway.infrastructure.database.repositories import ProcessedEventRepository
from donation_gateway.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_processor() -> StripeProcessor:
    """Provide Stripe client instance"""
    return StripeProcessor()


def get_event_store(db: Session = Depends(get_db)) -> Optional[ProcessedEventRepository]:
    """Provide processed-event store, or None when de-duplication is disabled"""
    if not settings.webhook_dedupe_enabled:
        return None
    return ProcessedEventRepository(db)
