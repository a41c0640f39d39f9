"""Base models shared across entities."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Address:
    """Postal address of an applicant or investor."""

    line1: str
    city: str
    state: str
    postal_code: str
    line2: str = ""
    country: str = "IN"


@dataclass
class Event:
    """Standard event envelope for lifecycle notifications."""

    event_id: str
    event_type: str  # entity.action (e.g., loan.disbursed)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Entity key affected
    data: dict
    metadata: dict = field(default_factory=dict)
