"""Prescription template endpoints (/templates/*)."""
from typing import List, Optional

from medicore.http_client import ApiClient
from medicore.models import Template


class TemplateService:
    def __init__(self, client: ApiClient):
        self.client = client

    def create(self, name: str, image_url: Optional[str] = None) -> Template:
        body = self.client.post("/templates/create", json={"name": name, "imageUrl": image_url})
        return Template.model_validate(body)

    def list(self) -> List[Template]:
        return [Template.model_validate(t) for t in self.client.get("/templates/all") or []]

    def delete(self, template_id: str) -> None:
        self.client.delete(f"/templates/{template_id}")

    def search_image(self, query: str) -> Optional[str]:
        """Find a reference image URL for a medicine name."""
        body = self.client.post("/templates/search-image", json={"query": query})
        return (body or {}).get("imageUrl")

    def suggestions(self, query: str) -> List[str]:
        return list(self.client.get("/templates/suggestions", params={"q": query}) or [])
