"""License payment endpoints (/payment/*)."""
from typing import Any, Dict

from medicore.http_client import ApiClient


class PaymentService:
    def __init__(self, client: ApiClient):
        self.client = client

    def initiate(self) -> Dict[str, Any]:
        """Ask the server for a provider-specific payment-session payload."""
        return self.client.post("/payment/pay") or {}

    def verify(self, order_id: str) -> None:
        self.client.post("/payment/verify-manual", json={"order_id": order_id})
