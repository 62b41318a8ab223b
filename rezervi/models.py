# rezervi/models.py

import uuid
from typing import Optional
from datetime import datetime, timezone, date as Date

from sqlalchemy import UniqueConstraint
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

SLOT_CONSTRAINT = "uq_business_slot_ordinal"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # client or business
    full_name: str = ""
    phone: Optional[str] = None


class Business(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, unique=True)

    name: str
    type: str
    location: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BusinessSettings(SQLModel, table=True):
    business_id: int = Field(foreign_key="business.id", primary_key=True)
    slot_duration_minutes: int = 30
    working_hours: dict = Field(sa_column=Column(JSON, nullable=False))  # weekday -> {enabled, open, close}
    max_simultaneous_bookings: int = 1
    online_payment_enabled: bool = False
    accept_walkins: bool = False
    updated_at: datetime = Field(default_factory=utcnow)


class Reservation(SQLModel, table=True):
    # Each active reservation holds one ordinal in [0, max_simultaneous_bookings);
    # cancelled ones release it by setting slot_ordinal to NULL.
    __table_args__ = (
        UniqueConstraint("business_id", "date", "time", "slot_ordinal", name=SLOT_CONSTRAINT),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    business_id: int = Field(foreign_key="business.id", index=True)
    client_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    date: Date = Field(index=True)
    time: str  # HH:MM
    slot_ordinal: Optional[int] = None

    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    notes: Optional[str] = None

    payment_status: str = "unpaid"  # unpaid or paid
    status: str = "pending"
    decline_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
