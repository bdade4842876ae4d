"""End-to-end flows through MediCoreClient against an in-process fake clinic API."""
import asyncio
import threading
from urllib.parse import urlparse

import pytest
import requests
from unittest.mock import Mock

from medicore import MediCoreClient
from medicore.guard import Decision
from medicore.storage import MemoryStorage


class FakeClinicBackend:
    """Just enough of the clinic API to drive the client flows."""

    def __init__(self, respond):
        self.respond = respond
        self.users = {
            "counter@clinic.lk": {"_id": "cnt-1", "email": "counter@clinic.lk",
                                  "role": "counter", "name": "Nimal", "password": "Secret1!"},
            "doctor@clinic.lk": {"_id": "doc-1", "email": "doctor@clinic.lk",
                                 "roles": ["doctor"], "name": "Dr. Perera", "password": "Secret1!"},
        }
        self.tokens = {}
        self.visits = []
        self.status_gate = None
        self.requests = []

    def __call__(self, method, url, headers=None, timeout=None, **kwargs):
        path = urlparse(url).path.replace("/api", "", 1)
        self.requests.append((method, path))
        token = (headers or {}).get("Authorization", "").replace("Bearer ", "")

        if (method, path) == ("POST", "/auth/login"):
            body = kwargs["json"]
            user = self.users.get(body["email"])
            if user is None or user["password"] != body["password"]:
                return self.respond(401, {"message": "Invalid credentials"})
            access = f"acc-{user['_id']}"
            self.tokens[access] = user["email"]
            return self.respond(200, {"accessToken": access, "refreshToken": f"ref-{user['_id']}",
                                      **self._public(user)})

        user = self.users.get(self.tokens.get(token))
        if user is None:
            return self.respond(401, {"message": "jwt expired"})

        if (method, path) == ("GET", "/auth/me"):
            return self.respond(200, {"data": self._public(user)})
        if (method, path) == ("POST", "/visits/create"):
            body = kwargs["json"]
            visit = {"_id": f"v{len(self.visits) + 42}", "patientName": body["patientName"],
                     "age": body["age"], "phone": body["phone"],
                     "appointmentNumber": len(self.visits) + 42, "status": "pending"}
            self.visits.append(visit)
            return self.respond(201, {"appointmentNumber": visit["appointmentNumber"]})
        if (method, path) == ("GET", "/visits/today"):
            return self.respond(200, self.visits)
        if (method, path) == ("GET", "/visits/status"):
            if self.status_gate is not None:
                self.status_gate.wait(timeout=5)
            return self.respond(200, {"currentPatient": None, "completedList": [],
                                      "totalToday": len(self.visits)})
        return self.respond(404, {"message": "Not found"})

    @staticmethod
    def _public(user):
        return {k: v for k, v in user.items() if k != "password"}

    def count(self, method, path):
        return self.requests.count((method, path))


@pytest.fixture
def backend(json_response):
    return FakeClinicBackend(json_response)


@pytest.fixture
def make_client(backend):
    def _create(storage=None):
        http_session = Mock(spec=requests.Session)
        http_session.request.side_effect = backend
        return MediCoreClient(
            base_url="http://clinic.test/api",
            storage=storage if storage is not None else MemoryStorage(),
            http_session=http_session,
            retries=0,
        )
    return _create


def test_counter_login_opens_counter_dashboard(make_client):
    """Counter logs in; the counter dashboard renders, the doctor's does not."""
    client = make_client()
    client.initialize()
    assert client.guard("/counter-dashboard") == Decision.REDIRECT_LOGIN

    result = client.actions.login("counter@clinic.lk", "Secret1!")

    assert result.ok
    assert result.data == "/counter-dashboard"
    assert client.guard("/counter-dashboard") == Decision.ALLOW
    assert client.guard("/doctor-dashboard") == Decision.REDIRECT_HOME
    assert client.storage.get("accessToken") == "acc-cnt-1"


def test_session_survives_restart(make_client):
    storage = MemoryStorage()
    make_client(storage).actions.login("doctor@clinic.lk", "Secret1!")

    client = make_client(storage)
    session = client.initialize()

    assert session.name == "Dr. Perera"
    assert client.guard("/prescription-templates") == Decision.ALLOW


def test_expired_token_at_startup(make_client):
    """A stale token is rejected: no session, tokens gone, login redirect."""
    storage = MemoryStorage({"accessToken": "expired", "refreshToken": "expired-ref"})
    client = make_client(storage)

    assert client.initialize() is None

    assert "accessToken" not in storage
    assert "refreshToken" not in storage
    assert client.guard("/counter-dashboard") == Decision.REDIRECT_LOGIN


def test_server_rejecting_token_mid_session_logs_out(make_client, backend):
    client = make_client()
    client.actions.login("counter@clinic.lk", "Secret1!")
    listener = Mock()
    client.store.subscribe(listener)
    backend.tokens.clear()

    result = client.actions.today_visits()

    assert not result.ok
    assert client.session is None
    listener.assert_called_once_with(None)
    assert client.guard("/counter-dashboard") == Decision.REDIRECT_LOGIN


@pytest.mark.asyncio
async def test_registered_patient_shows_up_in_next_poll(make_client):
    """Register a patient; the next poll and today's list both include them."""
    client = make_client()
    client.actions.login("counter@clinic.lk", "Secret1!")
    poller = client.queue_poller(interval=60, min_refresh_display=0)
    before = await poller.refresh()

    result = client.actions.register_patient("A. Silva", "34", "0771234567")
    after = await poller.refresh()

    assert result.data == 42
    assert client.notifier.active()[-1].message == "Registered! Token Number: 42"
    assert after.total_today == before.total_today + 1
    today = client.actions.today_visits().data
    assert [v.appointment_number for v in today] == [42]
    poller.stop()


@pytest.mark.asyncio
async def test_manual_refresh_during_poll_applies_once(make_client, backend):
    """Refresh pressed while a poll is in flight: one request, one snapshot."""
    client = make_client()
    client.actions.login("counter@clinic.lk", "Secret1!")
    backend.status_gate = threading.Event()
    on_snapshot = Mock()
    poller = client.queue_poller(on_snapshot=on_snapshot, interval=60, min_refresh_display=0)

    poller.start()
    await asyncio.sleep(0.01)
    refresh = asyncio.create_task(poller.refresh())
    await asyncio.sleep(0.01)
    backend.status_gate.set()
    snapshot = await refresh
    poller.stop()

    assert snapshot.total_today == 0
    assert backend.count("GET", "/visits/status") == 1
    assert on_snapshot.call_count == 1
    assert poller.applied_count == 1
