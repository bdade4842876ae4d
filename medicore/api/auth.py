"""Authentication and account endpoints (/auth/*)."""
from typing import Optional, Tuple

from medicore.http_client import ApiClient
from medicore.models import Identity, LoginResult


class AuthService:
    """Wraps login, registration, identity, password and profile calls."""

    def __init__(self, client: ApiClient):
        self.client = client

    def login(self, email: str, password: str) -> LoginResult:
        # Credentials only: a 401 here is a bad password, not a rejected session
        body = self.client.post(
            "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        return LoginResult.model_validate(body)

    def register_doctor(self, name: str, email: str, password: str, confirmation_id: str) -> None:
        self.client.post("/auth/register-doctor", json={
            "name": name,
            "email": email,
            "password": password,
            "confirmationId": confirmation_id,
        }, authenticated=False)

    def register_counter(self, name: str, email: str, password: str) -> None:
        self.client.post("/auth/register-counter", json={
            "name": name,
            "email": email,
            "password": password,
        })

    def me(self) -> Identity:
        """Look up the identity behind the current bearer token."""
        # Startup check: one attempt, any failure means "not authenticated"
        return Identity.model_validate(self.client.get("/auth/me", retry=False))

    def change_password(self, old_password: str, new_password: str) -> None:
        self.client.put("/auth/password/change", json={
            "oldPassword": old_password,
            "newPassword": new_password,
        })

    def send_forgot_password_otp(self, email: str) -> None:
        self.client.post("/auth/password/forgot/otp", json={"email": email}, authenticated=False)

    def reset_password(self, email: str, otp: str, new_password: str) -> None:
        self.client.post("/auth/password/reset", json={
            "email": email,
            "otp": otp,
            "newPassword": new_password,
        }, authenticated=False)

    def update_profile(
        self,
        name: str,
        clinic_name: str,
        clinic_address: str,
        profile_image: Optional[Tuple[str, bytes]] = None,
    ) -> Identity:
        """
        Update display fields with a multipart form.

        Args:
            name: Display name
            clinic_name: Clinic name printed on bills
            clinic_address: Clinic address printed on bills
            profile_image: Optional (filename, content) pair

        Returns:
            The updated identity
        """
        data = {
            "name": name,
            "clinicName": clinic_name,
            "clinicAddress": clinic_address,
        }
        files = {"profileImage": profile_image} if profile_image else None
        body = self.client.put("/auth/profile/update", data=data, files=files)
        return Identity.model_validate(body)
