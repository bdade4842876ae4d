"""Session store: the single authoritative "who is logged in" for a client.

Responsibilities:
- Restore the session from a persisted access token at startup
- Persist and remove the bearer tokens (no other component writes them)
- Notify subscribers (guard, header display, payment refresh) on change

Pattern: Observer. Consumers subscribe instead of keeping their own copy.
"""
import asyncio
import threading
from typing import Callable, List, Optional, Tuple

import pydantic

from medicore import config
from medicore.api.auth import AuthService
from medicore.errors import AuthenticationError, MediCoreError
from medicore.logging_config import bind_user_context, get_logger
from medicore.models import Identity, Session
from medicore.storage import KeyValueStorage

logger = get_logger(__name__)

SessionListener = Callable[[Optional[Session]], None]


class SessionStore:
    """
    Holds the current Session and owns the token lifecycle.

    After ``initialize()`` returns, exactly one of these holds: a Session is
    present and its access token is persisted, or no Session is present and
    neither token is persisted.
    """

    def __init__(self, storage: KeyValueStorage, auth: Optional[AuthService] = None):
        """
        Initialize the store.

        Args:
            storage: Persistent key-value storage for the tokens
            auth: Auth API wrapper; required for initialize/login/refresh
        """
        self.storage = storage
        self.auth = auth
        self._session: Optional[Session] = None
        self._loading = False
        self._initialized = False
        self._listeners: List[Tuple[SessionListener, Optional[asyncio.AbstractEventLoop]]] = []
        self._lock = threading.RLock()

    @property
    def loading(self) -> bool:
        """True while the startup identity check is running."""
        return self._loading

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def access_token(self) -> Optional[str]:
        return self.storage.get(config.ACCESS_TOKEN_KEY) or None

    @property
    def refresh_token(self) -> Optional[str]:
        return self.storage.get(config.REFRESH_TOKEN_KEY) or None

    def get_session(self) -> Optional[Session]:
        return self._session

    def initialize(self) -> Optional[Session]:
        """
        Restore the session once per application load.

        With a persisted access token, looks up the identity. Any failure
        (expired or revoked token, network error, malformed body) is treated
        as "not authenticated": both tokens are removed and the session is
        absent. Later calls return the current session without a lookup.

        Returns:
            The restored session, or None
        """
        with self._lock:
            if self._initialized or self._loading:
                return self._session
            self._loading = True

        session = None
        try:
            token = self.access_token
            if token:
                session = self._restore(token)
        finally:
            with self._lock:
                self._loading = False
                self._initialized = True
                if session is None:
                    self._remove_tokens()
            self._replace(session)

        logger.info("session_initialized", authenticated=session is not None)
        return session

    def set_session(self, session: Optional[Session]) -> None:
        """Replace the session directly. Does not touch persisted tokens."""
        self._replace(session)

    def clear(self) -> None:
        """Remove both tokens and drop the session. Safe to call repeatedly."""
        with self._lock:
            self._remove_tokens()
        self._replace(None)

    def login(self, email: str, password: str) -> Session:
        """
        Log in, persist both tokens and publish the new session.

        The identity lookup after login fills in the display fields; if only
        that lookup fails (and not with a 401), the login body is used.

        Raises:
            AuthenticationError: Bad credentials or token rejected
            MediCoreError: Any other API failure during login
        """
        result = self.auth.login(email, password)

        with self._lock:
            self.storage.set(config.ACCESS_TOKEN_KEY, result.access_token)
            if result.refresh_token:
                self.storage.set(config.REFRESH_TOKEN_KEY, result.refresh_token)
            else:
                self.storage.remove(config.REFRESH_TOKEN_KEY)

        try:
            identity = self.auth.me()
            session = Session.from_identity(identity, result.access_token, result.refresh_token)
        except AuthenticationError:
            self.clear()
            raise
        except (MediCoreError, pydantic.ValidationError) as e:
            logger.warning("identity_lookup_after_login_failed", error=str(e))
            session = result.to_session()

        self._replace(session)
        logger.info("login_succeeded", user_id=session.id, role=session.role.value)
        return session

    def logout(self) -> None:
        self.clear()
        logger.info("logout")

    def refresh_identity(self) -> Optional[Session]:
        """
        Re-read the identity (e.g. after a license payment).

        A rejected token clears the session. A transient failure keeps the
        current session and propagates to the caller.

        Returns:
            The refreshed session, or None when no longer authenticated
        """
        token = self.access_token
        if not token:
            self.clear()
            return None

        try:
            identity = self.auth.me()
        except AuthenticationError:
            self.clear()
            return None

        current = self._session
        if current is not None:
            session = current.with_profile(identity)
        else:
            session = Session.from_identity(identity, token, self.refresh_token)
        self._replace(session)
        return session

    def apply_profile(self, identity: Identity) -> Optional[Session]:
        """Replace display fields after a profile update; tokens are kept."""
        current = self._session
        if current is None:
            return None
        session = current.with_profile(identity)
        self._replace(session)
        return session

    def handle_unauthorized(self) -> None:
        """Called by the HTTP layer when an authenticated request gets a 401."""
        if self._session is not None or self.access_token:
            logger.warning("session_rejected_by_server")
        self.clear()

    def subscribe(
        self,
        listener: SessionListener,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> Callable[[], None]:
        """
        Register a listener called with the new session after each change.

        A 401 seen by a poll running in a worker thread clears the session
        on that thread. Pass the event loop a listener belongs to and it is
        always called on that loop; without a loop it is called on whichever
        thread made the change.

        Args:
            listener: Called with the new session (or None)
            loop: Event loop to deliver on

        Returns:
            Function that removes the listener
        """
        entry = (listener, loop)
        with self._lock:
            self._listeners.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    def _restore(self, token: str) -> Optional[Session]:
        try:
            identity = self.auth.me()
        except (MediCoreError, pydantic.ValidationError) as e:
            logger.info("session_restore_failed", reason=type(e).__name__)
            return None
        return Session.from_identity(identity, token, self.refresh_token)

    def _remove_tokens(self):
        self.storage.remove(config.ACCESS_TOKEN_KEY)
        self.storage.remove(config.REFRESH_TOKEN_KEY)

    def _replace(self, session: Optional[Session]):
        with self._lock:
            changed = session != self._session
            self._session = session
            listeners = list(self._listeners)

        if not changed:
            return
        if session is None:
            bind_user_context(None)
        else:
            bind_user_context(session.id, session.role.value)
        for listener, loop in listeners:
            self._deliver(listener, loop, session)

    @staticmethod
    def _deliver(listener: SessionListener, loop, session: Optional[Session]):
        if loop is None:
            listener(session)
            return
        try:
            on_loop = asyncio.get_running_loop() is loop
        except RuntimeError:
            on_loop = False
        if on_loop:
            listener(session)
        elif loop.is_closed():
            logger.debug("session_listener_loop_closed")
        else:
            loop.call_soon_threadsafe(listener, session)
