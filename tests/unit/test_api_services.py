"""Test the typed API wrappers against a mocked transport."""
import pytest

from medicore.api import ClinicApi
from medicore.models import Role, VisitStatus


@pytest.fixture
def api(api_client):
    return ClinicApi(api_client)


def sent(http_session):
    """(method, url suffix, kwargs) of the last request."""
    args, kwargs = http_session.request.call_args
    return args[0], args[1].replace("http://clinic.test/api", ""), kwargs


class TestAuthService:

    def test_login(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {
            "accessToken": "acc", "refreshToken": "ref",
            "_id": "u1", "email": "c@clinic.lk", "role": "counter",
        })

        result = api.auth.login("c@clinic.lk", "pw")

        assert result.access_token == "acc"
        assert result.role == Role.COUNTER
        assert sent(http_session)[:2] == ("POST", "/auth/login")
        assert "Authorization" not in sent(http_session)[2]["headers"]

    def test_me_is_single_attempt_get(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {
            "data": {"_id": "d1", "email": "d@clinic.lk", "roles": ["doctor"]}
        })

        identity = api.auth.me()

        assert identity.role == Role.DOCTOR
        assert sent(http_session)[:2] == ("GET", "/auth/me")

    def test_register_doctor_sends_confirmation_id(self, api, http_session, json_response):
        http_session.request.return_value = json_response(201, {"message": "ok"})

        api.auth.register_doctor("Dr A", "d@clinic.lk", "Secret1!", "CID-9")

        method, path, kwargs = sent(http_session)
        assert (method, path) == ("POST", "/auth/register-doctor")
        assert kwargs["json"]["confirmationId"] == "CID-9"

    def test_update_profile_is_multipart(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {
            "_id": "d1", "email": "d@clinic.lk", "role": "doctor", "clinicName": "New",
        })

        identity = api.auth.update_profile("Dr A", "New", "Colombo", ("me.png", b"\x89PNG"))

        method, path, kwargs = sent(http_session)
        assert (method, path) == ("PUT", "/auth/profile/update")
        assert kwargs["data"]["clinicName"] == "New"
        assert kwargs["files"] == {"profileImage": ("me.png", b"\x89PNG")}
        assert identity.clinic_name == "New"

    def test_password_calls(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {"message": "ok"})

        api.auth.change_password("old", "New1!pass")
        assert sent(http_session)[:2] == ("PUT", "/auth/password/change")

        api.auth.send_forgot_password_otp("d@clinic.lk")
        assert sent(http_session)[:2] == ("POST", "/auth/password/forgot/otp")

        api.auth.reset_password("d@clinic.lk", "1234", "New1!pass")
        method, path, kwargs = sent(http_session)
        assert path == "/auth/password/reset"
        assert kwargs["json"] == {"email": "d@clinic.lk", "otp": "1234", "newPassword": "New1!pass"}


class TestVisitService:

    def test_create(self, api, http_session, json_response):
        http_session.request.return_value = json_response(201, {"appointmentNumber": 42})

        created = api.visits.create("A. Silva", 34, "0771234567")

        method, path, kwargs = sent(http_session)
        assert (method, path) == ("POST", "/visits/create")
        assert kwargs["json"] == {"patientName": "A. Silva", "age": 34, "phone": "0771234567"}
        assert created.appointment_number == 42

    def test_queue_status(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {
            "currentPatient": None, "completedList": [], "totalToday": 12,
        })

        snapshot = api.visits.queue_status()

        assert snapshot.total_today == 12
        assert sent(http_session)[:2] == ("GET", "/visits/status")

    def test_today_and_history(self, api, http_session, json_response):
        visit = {"_id": "v1", "patientName": "A", "age": 3, "phone": "1",
                 "appointmentNumber": 1, "status": "completed"}
        http_session.request.return_value = json_response(200, [visit])

        assert api.visits.today()[0].status == VisitStatus.COMPLETED
        assert api.visits.history("0771")[0].id == "v1"
        assert sent(http_session)[1] == "/visits/history/0771"

    def test_next_patient_empty_queue(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200)
        assert api.visits.next_patient() is None

    def test_complete(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {
            "_id": "v1", "patientName": "A", "age": 3, "phone": "1",
            "appointmentNumber": 1, "status": "completed", "diagnosis": "Flu",
        })

        visit = api.visits.complete("v1", "Flu", "Rest")

        assert visit.diagnosis == "Flu"
        assert sent(http_session)[:2] == ("PUT", "/visits/complete/v1")


class TestTemplateAndStaffServices:

    def test_template_calls(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, [{"_id": "t1", "name": "Panadol"}])
        assert api.templates.list()[0].name == "Panadol"

        http_session.request.return_value = json_response(200, {"imageUrl": "http://img/p.png"})
        assert api.templates.search_image("Panadol") == "http://img/p.png"

        http_session.request.return_value = json_response(200, ["Panadol", "Panadeine"])
        assert api.templates.suggestions("Pana") == ["Panadol", "Panadeine"]
        assert sent(http_session)[2]["params"] == {"q": "Pana"}

        http_session.request.return_value = json_response(200)
        api.templates.delete("t1")
        assert sent(http_session)[:2] == ("DELETE", "/templates/t1")

    def test_staff_calls(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {
            "_id": "s1", "name": "N", "email": "n@clinic.lk", "isActive": False,
        })

        member = api.staff.toggle_status("s1")

        assert member.is_active is False
        assert sent(http_session)[:2] == ("PATCH", "/staff/status/s1")


class TestPaymentService:

    def test_initiate_and_verify(self, api, http_session, json_response):
        http_session.request.return_value = json_response(200, {"order_id": "o1", "amount": "5000.00"})
        assert api.payment.initiate()["order_id"] == "o1"

        http_session.request.return_value = json_response(200, {"message": "verified"})
        api.payment.verify("o1")

        method, path, kwargs = sent(http_session)
        assert (method, path) == ("POST", "/payment/verify-manual")
        assert kwargs["json"] == {"order_id": "o1"}
