"""
Tests for booking admission, using an in-memory store.
"""
from datetime import date

import pytest

from rezervi.booking import BookingRequest, BookingService, Principal, confirmation_code
from rezervi.exceptions import ConflictError, NotFoundError, SlotUnavailableError, ValidationError
from rezervi.models import Business

from conftest import week

MONDAY = date(2024, 11, 25)
TUESDAY = date(2024, 11, 26)


class FakeStore:
    """ReservationStore keeping everything in lists, with the same ordinal rule as the database."""

    def __init__(self, settings=None):
        self.businesses = {1: Business(id=1, user_id=10, name="Fade Lab", type="barbershop")}
        self.settings = settings
        self.reservations = []

    def get_business(self, business_id):
        return self.businesses.get(business_id)

    def get_settings(self, business_id):
        return self.settings

    def get_reservations(self, business_id, on_date):
        return [
            r for r in self.reservations
            if r.business_id == business_id and r.date == on_date and r.slot_ordinal is not None
        ]

    def active_ordinals(self, business_id, on_date, time):
        return {r.slot_ordinal for r in self.get_reservations(business_id, on_date) if r.time == time}

    def _check_free(self, business_id, on_date, time, ordinal, moving=None):
        clash = any(
            (r.business_id, r.date, r.time, r.slot_ordinal) == (business_id, on_date, time, ordinal)
            for r in self.reservations
            if r is not moving
        )
        if clash:
            raise SlotUnavailableError("This time slot is no longer available")

    def insert_reservation(self, reservation):
        self._check_free(reservation.business_id, reservation.date, reservation.time, reservation.slot_ordinal)
        self.reservations.append(reservation)
        return reservation

    def move_reservation(self, reservation, on_date, time, slot_ordinal):
        self._check_free(reservation.business_id, on_date, time, slot_ordinal, moving=reservation)
        reservation.date, reservation.time, reservation.slot_ordinal = on_date, time, slot_ordinal
        return reservation


class StaleStore(FakeStore):
    """Reports no existing bookings, as if another request committed after the check."""

    def active_ordinals(self, business_id, on_date, time):
        return set()


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def booking_created(self, reservation, business):
        self.calls.append((reservation, business))


class BrokenNotifier:
    def booking_created(self, reservation, business):
        raise RuntimeError("smtp down")


class RecordingPayments:
    provider_name = "recording"

    def __init__(self):
        self.charged = []

    def process(self, reservation):
        self.charged.append(reservation)


def monday_settings(max_bookings=1):
    return {
        "slot_duration_minutes": 30,
        "working_hours": week(monday=("09:00", "10:00")),
        "max_simultaneous_bookings": max_bookings,
    }


def request(time="09:30", on_date=MONDAY, **overrides):
    fields = {
        "business_id": 1,
        "date": on_date,
        "time": time,
        "customer_name": "Ana",
        "customer_phone": "+38970000000",
    }
    fields.update(overrides)
    return BookingRequest(**fields)


@pytest.fixture
def store():
    return FakeStore(settings=monday_settings())


@pytest.fixture
def service(store):
    return BookingService(store)


class TestBookingService:

    def test_second_booking_for_same_slot_is_rejected(self, service, store):
        service.book(request("09:00"))
        assert [str(s.time) for s in service.availability(1, MONDAY)] == ["09:30"]

        confirmation = service.book(request("09:30"))

        assert confirmation.reservation.time == "09:30"
        assert confirmation.confirmation_code.startswith("RZ")

        with pytest.raises(SlotUnavailableError):
            service.book(request("09:30", customer_name="Ben"))
        assert len(store.reservations) == 2

    def test_missing_phone_without_account(self, service, store):
        with pytest.raises(ValidationError):
            service.book(request(customer_phone=None))
        assert store.reservations == []

    @pytest.mark.parametrize("field", ["business_id", "date", "time"])
    def test_missing_required_field(self, service, field):
        with pytest.raises(ValidationError):
            service.book(request(**{field: None}))

    def test_accepts_iso_date_string(self, service):
        confirmation = service.book(request(on_date="2024-11-25"))
        assert confirmation.reservation.date == MONDAY

    def test_unknown_business(self, service):
        with pytest.raises(NotFoundError):
            service.book(request(business_id=99))

    @pytest.mark.parametrize("time", ["09:15", "10:00", "08:30"])
    def test_time_must_be_on_the_slot_grid(self, service, store, time):
        with pytest.raises(ValidationError):
            service.book(request(time))
        assert store.reservations == []

    def test_closed_day(self, service):
        with pytest.raises(ValidationError):
            service.book(request(on_date=TUESDAY))

    def test_principal_profile_supplies_contact(self, service):
        principal = Principal(id=7, name="Ana Profile", phone="+389111", email="ana@example.com")

        reservation = service.book(request(customer_name=None, customer_phone=None), principal).reservation

        assert reservation.client_id == 7
        assert reservation.customer_name == "Ana Profile"
        assert reservation.customer_phone == "+389111"
        assert reservation.customer_email == "ana@example.com"

    def test_principal_without_phone_needs_request_phone(self, service):
        principal = Principal(id=7, name="Ana", phone=None, email="ana@example.com")

        with pytest.raises(ValidationError):
            service.book(request(customer_phone=None), principal)

        reservation = service.book(request(customer_phone="+389222"), principal).reservation
        assert reservation.customer_phone == "+389222"
        assert reservation.customer_name == "Ana"

    def test_payment_status_follows_payment_method(self, store):
        payments = RecordingPayments()
        service = BookingService(store, payments=payments)

        online = service.book(request("09:00", payment_method="online")).reservation
        cash = service.book(request("09:30", payment_method="cash")).reservation

        assert online.payment_status == "paid"
        assert cash.payment_status == "unpaid"
        assert online.status == cash.status == "pending"
        assert payments.charged == [online]

    def test_unknown_payment_method(self, service):
        with pytest.raises(ValidationError):
            service.book(request(payment_method="crypto"))

    def test_default_settings_when_business_has_none(self):
        service = BookingService(FakeStore(settings=None))

        reservation = service.book(request("16:30", on_date=TUESDAY)).reservation

        assert reservation.time == "16:30"

    def test_capacity_two_hands_out_both_ordinals(self, store):
        store.settings = monday_settings(max_bookings=2)
        service = BookingService(store)

        first = service.book(request("09:00")).reservation
        second = service.book(request("09:00")).reservation

        assert {first.slot_ordinal, second.slot_ordinal} == {0, 1}
        with pytest.raises(SlotUnavailableError):
            service.book(request("09:00"))

    def test_freed_ordinal_is_reused(self, store):
        store.settings = monday_settings(max_bookings=2)
        service = BookingService(store)
        first = service.book(request("09:00")).reservation
        service.book(request("09:00"))

        first.slot_ordinal = None  # cancelled

        assert service.book(request("09:00")).reservation.slot_ordinal == 0

    def test_racing_insert_is_rejected(self):
        store = StaleStore(settings=monday_settings())
        service = BookingService(store)
        service.book(request("09:00"))

        with pytest.raises(SlotUnavailableError):
            service.book(request("09:00", customer_name="Ben"))
        assert len(store.reservations) == 1

    def test_notifier_is_called(self, store):
        notifier = RecordingNotifier()
        service = BookingService(store, notifier=notifier)

        confirmation = service.book(request())

        assert notifier.calls == [(confirmation.reservation, confirmation.business)]

    def test_failing_notifier_does_not_undo_booking(self, store):
        service = BookingService(store, notifier=BrokenNotifier())

        confirmation = service.book(request())

        assert store.reservations == [confirmation.reservation]


class TestReschedule:

    def test_moves_to_free_slot_and_frees_the_old_one(self, service):
        reservation = service.book(request("09:00")).reservation

        moved = service.reschedule(reservation, "2024-11-25", "09:30")

        assert (moved.date, moved.time, moved.slot_ordinal) == (MONDAY, "09:30", 0)
        assert moved.status == "pending"
        assert [str(s.time) for s in service.availability(1, MONDAY)] == ["09:00"]

    def test_target_slot_full(self, service):
        reservation = service.book(request("09:00")).reservation
        service.book(request("09:30", customer_name="Ben"))

        with pytest.raises(SlotUnavailableError):
            service.reschedule(reservation, MONDAY, "09:30")
        assert reservation.time == "09:00"

    def test_racing_move_is_rejected(self):
        store = StaleStore(settings=monday_settings())
        service = BookingService(store)
        reservation = service.book(request("09:00")).reservation
        service.book(request("09:30", customer_name="Ben"))

        with pytest.raises(SlotUnavailableError):
            service.reschedule(reservation, MONDAY, "09:30")
        assert reservation.time == "09:00"

    @pytest.mark.parametrize("on_date,time", [(MONDAY, "09:10"), (MONDAY, "10:00"), (TUESDAY, "09:00")])
    def test_new_time_must_be_bookable(self, service, on_date, time):
        reservation = service.book(request("09:00")).reservation

        with pytest.raises(ValidationError):
            service.reschedule(reservation, on_date, time)

    @pytest.mark.parametrize("on_date,time", [(None, "09:30"), (MONDAY, None), (MONDAY, " ")])
    def test_date_and_time_required(self, service, on_date, time):
        reservation = service.book(request("09:00")).reservation

        with pytest.raises(ValidationError):
            service.reschedule(reservation, on_date, time)

    def test_cancelled_reservation_cannot_move(self, service):
        reservation = service.book(request("09:00")).reservation
        reservation.status, reservation.slot_ordinal = "cancelled", None

        with pytest.raises(ConflictError):
            service.reschedule(reservation, MONDAY, "09:30")

    def test_same_slot_is_a_no_op(self, service, store):
        reservation = service.book(request("09:00")).reservation

        assert service.reschedule(reservation, MONDAY, "09:00") is reservation
        assert reservation.slot_ordinal == 0


def test_confirmation_code_shape():
    code = confirmation_code("3f2b8c1e-0d4a-4e8b-9a51-7c6d5e4fab12")
    assert code == "RZ4FAB12"
    assert len(code) == 8
