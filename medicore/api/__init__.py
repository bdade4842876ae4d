"""Typed wrappers for the clinic REST API."""
from medicore.api.auth import AuthService
from medicore.api.payment import PaymentService
from medicore.api.staff import StaffService
from medicore.api.templates import TemplateService
from medicore.api.visits import VisitService
from medicore.http_client import ApiClient


class ClinicApi:
    """All API services sharing one ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
        self.auth = AuthService(client)
        self.visits = VisitService(client)
        self.templates = TemplateService(client)
        self.payment = PaymentService(client)
        self.staff = StaffService(client)


__all__ = [
    "AuthService",
    "ClinicApi",
    "PaymentService",
    "StaffService",
    "TemplateService",
    "VisitService",
]
