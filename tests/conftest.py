"""Shared test fixtures."""
import json

import pytest
import requests
from unittest.mock import Mock

from medicore.http_client import ApiClient
from medicore.models import Identity, QueueSnapshot, Role, Session, Visit
from medicore.notifications import Notifier
from medicore.storage import MemoryStorage


def make_response(status_code: int = 200, body=None) -> requests.Response:
    """Build a real requests.Response carrying a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    if body is None:
        response._content = b""
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    return response


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def storage():
    """Empty in-memory token storage."""
    return MemoryStorage()


@pytest.fixture
def http_session():
    """Mock requests.Session; set .request.return_value/side_effect per test."""
    return Mock(spec=requests.Session)


@pytest.fixture
def api_client(http_session):
    """ApiClient with no retries and a fixed token."""
    return ApiClient(
        base_url="http://clinic.test/api",
        token_provider=lambda: "tok-123",
        timeout=5,
        retries=0,
        session=http_session,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier(clock):
    return Notifier(ttl=3.0, clock=clock)


@pytest.fixture
def doctor_identity() -> Identity:
    return Identity(
        id="doc-1",
        email="doctor@clinic.lk",
        role=Role.DOCTOR,
        name="Dr. Perera",
        clinic_name="Sunrise Clinic",
    )


@pytest.fixture
def counter_identity() -> Identity:
    return Identity(id="cnt-1", email="counter@clinic.lk", role=Role.COUNTER, name="Nimal")


@pytest.fixture
def make_session():
    """Create a Session for a role."""
    def _create(role: Role = Role.DOCTOR, token: str = "tok-123", **fields) -> Session:
        return Session(
            id=fields.pop("id", f"{role.value}-1"),
            email=fields.pop("email", f"{role.value}@clinic.lk"),
            role=role,
            access_token=token,
            **fields
        )
    return _create


@pytest.fixture
def make_visit():
    """Create a Visit with sensible defaults."""
    def _create(number: int = 1, **fields) -> Visit:
        data = {
            "_id": f"visit-{number}",
            "patientName": f"Patient {number}",
            "age": 30,
            "phone": "0771234567",
            "appointmentNumber": number,
        }
        data.update(fields)
        return Visit.model_validate(data)
    return _create


@pytest.fixture
def make_snapshot():
    """Create a QueueSnapshot with ``total`` patients registered today."""
    def _create(total: int = 0, completed=None, current=None) -> QueueSnapshot:
        return QueueSnapshot(
            current_patient=current,
            completed_list=completed or [],
            total_today=total,
        )
    return _create


@pytest.fixture
def json_response():
    """Factory for JSON responses: json_response(status, body)."""
    return make_response
