"""Visit and queue endpoints (/visits/*)."""
from typing import List, Optional

from medicore.http_client import ApiClient
from medicore.models import CreatedVisit, QueueSnapshot, Visit


class VisitService:
    """Counter registration, queue status and the doctor's treatment flow."""

    def __init__(self, client: ApiClient):
        self.client = client

    def create(self, patient_name: str, age: int, phone: str) -> CreatedVisit:
        """Register a patient at the counter; the server assigns the token number."""
        body = self.client.post("/visits/create", json={
            "patientName": patient_name,
            "age": age,
            "phone": phone,
        })
        return CreatedVisit.model_validate(body)

    def queue_status(self) -> QueueSnapshot:
        # Polled every few seconds; a failed tick is simply dropped
        return QueueSnapshot.model_validate(self.client.get("/visits/status", retry=False))

    def details(self, visit_id: str) -> Visit:
        """Full visit including diagnosis and prescription (bill printing)."""
        return Visit.model_validate(self.client.get(f"/visits/details/{visit_id}"))

    def today(self) -> List[Visit]:
        return [Visit.model_validate(v) for v in self.client.get("/visits/today") or []]

    def next_patient(self) -> Optional[Visit]:
        body = self.client.post("/visits/next", json={})
        return Visit.model_validate(body) if body else None

    def complete(self, visit_id: str, diagnosis: str, prescription: str) -> Visit:
        body = self.client.put(f"/visits/complete/{visit_id}", json={
            "diagnosis": diagnosis,
            "prescription": prescription,
        })
        return Visit.model_validate(body)

    def history(self, phone: str) -> List[Visit]:
        return [Visit.model_validate(v) for v in self.client.get(f"/visits/history/{phone}") or []]
