"""Counter staff management endpoints (/staff/*), doctor only."""
from typing import List

from medicore.http_client import ApiClient
from medicore.models import StaffMember


class StaffService:
    def __init__(self, client: ApiClient):
        self.client = client

    def list(self) -> List[StaffMember]:
        return [StaffMember.model_validate(s) for s in self.client.get("/staff/all") or []]

    def create(self, name: str, email: str, password: str) -> StaffMember:
        body = self.client.post("/staff/create", json={
            "name": name,
            "email": email,
            "password": password,
        })
        return StaffMember.model_validate(body)

    def delete(self, staff_id: str) -> None:
        self.client.delete(f"/staff/delete/{staff_id}")

    def toggle_status(self, staff_id: str) -> StaffMember:
        return StaffMember.model_validate(self.client.patch(f"/staff/status/{staff_id}"))
