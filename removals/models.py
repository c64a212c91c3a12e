from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
from .database import Base
import enum


class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    ACCEPTED = "accepted"


class QuoteSession(Base):
    """One customer's quote — the QuoteRecord document lives in record_json."""
    __tablename__ = "quote_sessions"

    id = Column(String, primary_key=True)  # UUID
    stage = Column(String, default="inventory")  # Mirrors record_json["stage"] for listing
    status = Column(String, default=SessionStatus.ACTIVE.value)  # 'active' | 'accepted'
    quote_reference = Column(String, nullable=True, index=True)
    record_json = Column(JSON, default=dict)
    accepted_quote_json = Column(JSON, nullable=True)  # Export snapshot frozen at acceptance
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
