"""Shared fixtures: an in-memory database wired into the FastAPI app."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from rezervi.core import WEEKDAYS
from rezervi.db import get_session, init_db
from rezervi.main import app

MONDAY = "2024-11-25"
TUESDAY = "2024-11-26"
SUNDAY = "2024-11-24"


def week(**days):
    """working_hours with every day closed except the ones given."""
    hours = {day: {"enabled": False, "open": "09:00", "close": "17:00"} for day in WEEKDAYS}
    for day, (opens, closes) in days.items():
        hours[day] = {"enabled": True, "open": opens, "close": closes}
    return hours


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    """Create FastAPI test client backed by the in-memory database."""
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def signup(client, email, role="client", full_name="", phone=None, password="secret123"):
    response = client.post(
        "/users",
        json={"email": email, "password": password, "role": role, "full_name": full_name, "phone": phone},
    )
    assert response.status_code == 201, response.text
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def owner(client):
    return signup(client, "owner@example.com", role="business", full_name="Dana Owner")


@pytest.fixture
def business_id(client, owner):
    response = client.post(
        "/api/business/register",
        json={"name": "Fade Lab", "type": "barbershop", "location": "Main St 1", "latitude": 42.0, "longitude": 21.4},
        headers=owner,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def monday_hour(client, owner, business_id):
    """Open Mondays 09:00-10:00 only, 30-minute slots, one booking per slot."""
    response = client.put(
        "/api/business/settings",
        json={
            "slot_duration_minutes": 30,
            "working_hours": week(monday=("09:00", "10:00")),
            "max_simultaneous_bookings": 1,
        },
        headers=owner,
    )
    assert response.status_code == 200, response.text
    return business_id
