"""MediCoreClient: wires one session store to every consumer.

There is exactly one SessionStore per client. The HTTP layer reads the
bearer token from it and reports 401s to it; the guard, the checkout
adapter and the console all read it.
"""
from typing import Any, Callable, Optional

import requests

from medicore import config
from medicore.actions import ClinicActions
from medicore.api import ClinicApi
from medicore.checkout import CheckoutAdapter
from medicore.guard import Decision, guard_route
from medicore.http_client import ApiClient
from medicore.models import QueueSnapshot, Session
from medicore.notifications import Notifier
from medicore.poller import QueuePoller
from medicore.session_store import SessionStore
from medicore.storage import KeyValueStorage, SqlStorage
from medicore.theme import ThemePreference


class MediCoreClient:
    """Entry point for applications built on the clinic API."""

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        storage: Optional[KeyValueStorage] = None,
        notifier: Optional[Notifier] = None,
        http_session: Optional[requests.Session] = None,
        timeout: float = config.REQUEST_TIMEOUT,
        retries: int = config.REQUEST_RETRIES,
    ):
        """
        Build the client.

        Args:
            base_url: API root, e.g. http://localhost:5000/api
            storage: Token/theme storage (default: SqlStorage at STORAGE_URL)
            notifier: Notification sink for user actions
            http_session: Pre-configured requests.Session (tests inject mocks)
            timeout: Per-request timeout in seconds
            retries: Retry attempts for idempotent requests
        """
        self.storage = storage if storage is not None else SqlStorage(config.STORAGE_URL)
        self.store = SessionStore(self.storage)
        self.http = ApiClient(
            base_url=base_url,
            token_provider=lambda: self.store.access_token,
            timeout=timeout,
            retries=retries,
            session=http_session,
        )
        self.http.on_unauthorized = self.store.handle_unauthorized
        self.api = ClinicApi(self.http)
        self.store.auth = self.api.auth

        self.notifier = notifier or Notifier()
        self.actions = ClinicActions(self.api, self.store, self.notifier)
        self.theme = ThemePreference(self.storage)

    @property
    def session(self) -> Optional[Session]:
        return self.store.get_session()

    def initialize(self) -> Optional[Session]:
        """Restore the persisted session (once per application load)."""
        return self.store.initialize()

    def guard(self, path: str) -> Decision:
        """Decide whether the view at ``path`` may render."""
        return guard_route(path, self.store.loading, self.store.get_session())

    def queue_poller(
        self,
        on_snapshot: Optional[Callable[[QueueSnapshot], None]] = None,
        **kwargs
    ) -> QueuePoller:
        """Create a poller for a queue view; start() it inside the event loop."""
        return QueuePoller.for_visits(self.api.visits, on_snapshot=on_snapshot, **kwargs)

    def checkout(self, widget: Any, timeout: Optional[float] = None) -> CheckoutAdapter:
        return CheckoutAdapter(widget, self.api.payment, self.store, timeout=timeout)
