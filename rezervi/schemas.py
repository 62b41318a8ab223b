# rezervi/schemas.py

import uuid
from datetime import datetime, date as Date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .core import WEEKDAYS, TimeOfDay
from .exceptions import ValidationError as BookingValidationError


class UserRole(str, Enum):
    client = "client"
    business = "business"


class BusinessType(str, Enum):
    barbershop = "barbershop"
    beauty_salon = "beauty_salon"
    restaurant = "restaurant"
    cafe = "cafe"
    gym = "gym"
    spa = "spa"
    tennis_court = "tennis_court"
    football_field = "football_field"
    doctor = "doctor"
    dentist = "dentist"
    car_wash = "car_wash"
    other = "other"


class ReservationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class PaymentStatus(str, Enum):
    unpaid = "unpaid"
    paid = "paid"


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.client
    full_name: str = ""
    phone: Optional[str] = None


class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole
    full_name: str = ""
    phone: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[UserPublic] = None


class BusinessCreate(BaseModel):
    name: str = Field(min_length=1)
    type: BusinessType
    location: str = ""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    phone: Optional[str] = None
    description: Optional[str] = None


class BusinessUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[BusinessType] = None
    location: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    phone: Optional[str] = None
    description: Optional[str] = None


class BusinessPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    type: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DayHours(BaseModel):
    enabled: bool = True
    open: str = "09:00"
    close: str = "17:00"

    @field_validator("open", "close")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        try:
            return str(TimeOfDay.parse(v))
        except BookingValidationError as exc:
            raise ValueError(exc.message)


class SettingsUpdate(BaseModel):
    slot_duration_minutes: int = Field(default=30, gt=0, le=24 * 60)
    working_hours: Dict[str, DayHours]
    max_simultaneous_bookings: int = Field(default=1, ge=1)
    online_payment_enabled: bool = False
    accept_walkins: bool = False

    @model_validator(mode="after")
    def all_weekdays_present(self):
        days = {d.lower() for d in self.working_hours}
        missing = [d for d in WEEKDAYS if d not in days]
        unknown = sorted(days - set(WEEKDAYS))
        if missing:
            raise ValueError(f"working_hours is missing: {', '.join(missing)}")
        if unknown:
            raise ValueError(f"working_hours has unknown days: {', '.join(unknown)}")
        self.working_hours = {d.lower(): h for d, h in self.working_hours.items()}
        return self


class SettingsPublic(SettingsUpdate):
    model_config = ConfigDict(from_attributes=True)

    business_id: Optional[int] = None
    updated_at: Optional[datetime] = None


class SettingsResponse(BaseModel):
    settings: SettingsPublic
    is_default: bool = False


class SlotPublic(BaseModel):
    time: str
    available: bool
    booked: int
    max: int


class AvailabilityResponse(BaseModel):
    business_id: int
    date: Date
    slots: List[SlotPublic]


class BookingCreate(BaseModel):
    # Required-field checks happen in the booking service so they report
    # the same error shape as the other booking rejections.
    business_id: Optional[int] = None
    date: Optional[str] = Field(default=None, validation_alias=AliasChoices("date", "booking_date"))
    time: Optional[str] = Field(default=None, validation_alias=AliasChoices("time", "booking_time"))
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    payment_method: Optional[str] = "cash"


class RescheduleRequest(BaseModel):
    date: Optional[str] = Field(default=None, validation_alias=AliasChoices("date", "booking_date"))
    time: Optional[str] = Field(default=None, validation_alias=AliasChoices("time", "booking_time"))


class BookingPublic(BaseModel):
    id: uuid.UUID
    business_id: int
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    client_id: Optional[int] = None
    date: Date
    time: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    payment_status: PaymentStatus
    status: ReservationStatus
    decline_reason: Optional[str] = None
    created_at: datetime


class BookingResponse(BaseModel):
    booking: BookingPublic
    confirmationCode: str
    message: str = "Reservation created successfully"


class ReservationUpdate(BaseModel):
    status: Optional[ReservationStatus] = None
    payment_status: Optional[PaymentStatus] = None


class DeclineRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class ReservationStats(BaseModel):
    total: int
    pending: int
    confirmed: int
    cancelled: int
    completed: int
    today: int
    this_month: int


def booking_public(reservation, business=None) -> BookingPublic:
    return BookingPublic(
        id=reservation.id,
        business_id=reservation.business_id,
        business_name=business.name if business is not None else None,
        business_type=business.type if business is not None else None,
        client_id=reservation.client_id,
        date=reservation.date,
        time=reservation.time,
        customer_name=reservation.customer_name,
        customer_phone=reservation.customer_phone,
        customer_email=reservation.customer_email,
        notes=reservation.notes,
        payment_status=reservation.payment_status,
        status=reservation.status,
        decline_reason=reservation.decline_reason,
        created_at=reservation.created_at,
    )
