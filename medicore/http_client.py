"""HTTP client for the clinic REST API with retry and connection pooling.

Purpose: Centralize HTTP configuration, bearer credentials and error
mapping for every API call.

Pattern: requests.Session with urllib3 connection pooling, tenacity retry
for idempotent reads, and a bounded timeout on every request.
"""
import logging
from typing import Any, Callable, Optional

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.util.retry import Retry

from medicore import config
from medicore.errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    TransientNetworkError,
)
from medicore.logging_config import generate_request_id, get_logger

logger = get_logger(__name__)
retry_logger = logging.getLogger(__name__)


def create_http_session(pool_size: int = 10) -> requests.Session:
    """
    Create HTTP session with connection pooling.

    Connection-level retries are left to tenacity in ApiClient so the
    poller can opt out of them; urllib3 only retries failed connects.

    Args:
        pool_size: Connections kept per host (default: 10)

    Returns:
        Configured requests.Session
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=0,
        connect=1,
        read=False,
        status=False,
        raise_on_status=False,
    )

    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=pool_size,
        pool_maxsize=pool_size,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})

    return session


def unwrap(body: Any) -> Any:
    """Strip the ``{"data": ...}`` envelope some endpoints use."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class ApiClient:
    """
    Low-level client for the clinic API.

    Attaches the bearer token from ``token_provider`` to every request and
    calls ``on_unauthorized`` when an authenticated request gets a 401, so
    the session owner can clear itself.
    """

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: float = config.REQUEST_TIMEOUT,
        retries: int = config.REQUEST_RETRIES,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or (lambda: None)
        self.on_unauthorized: Optional[Callable[[], None]] = None
        self.timeout = timeout
        self.retries = retries
        self.http = session or create_http_session()

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)

    def request(
        self,
        method: str,
        path: str,
        retry: Optional[bool] = None,
        authenticated: bool = True,
        **kwargs
    ) -> Any:
        """
        Send a request and return the unwrapped JSON body.

        Args:
            method: HTTP method
            path: API path, e.g. "/visits/status"
            retry: Retry transient failures (default: GET only)
            authenticated: Send the bearer token; a 401 then means the
                           token was rejected. Credential endpoints
                           (login, sign-up, password reset) pass False.
            **kwargs: json, data, files, params for requests

        Returns:
            Decoded response body with any ``data`` envelope removed,
            or None for an empty body

        Raises:
            AuthenticationError: 401
            AuthorizationError: 403
            TransientNetworkError: connection error, timeout or 5xx
            ApiError: any other non-2xx status
        """
        if retry is None:
            retry = method.upper() == "GET"

        if not retry or self.retries <= 0:
            return self._send(method, path, authenticated, **kwargs)

        retrying = Retrying(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(TransientNetworkError),
            before_sleep=before_sleep_log(retry_logger, logging.WARNING),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._send(method, path, authenticated, **kwargs)

    def _send(self, method: str, path: str, authenticated: bool, **kwargs) -> Any:
        request_id = generate_request_id()
        headers = {"X-Request-ID": request_id}
        token = self.token_provider() if authenticated else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        log = logger.bind(request_id=request_id, method=method.upper(), path=path)

        try:
            response = self.http.request(
                method.upper(),
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.Timeout as e:
            log.warning("api_request_timeout", timeout=self.timeout)
            raise TransientNetworkError(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            log.warning("api_connection_error", error=str(e))
            raise TransientNetworkError("Could not connect to the clinic server") from e
        except requests.exceptions.RequestException as e:
            log.warning("api_request_failed", error=str(e))
            raise TransientNetworkError(str(e)) from e

        if response.status_code >= 400:
            log.info("api_request_rejected", status=response.status_code)
            self._raise_for_status(response, authenticated=bool(token))

        log.debug("api_request_ok", status=response.status_code)

        if not response.content:
            return None
        try:
            return unwrap(response.json())
        except ValueError as e:
            raise ApiError("Malformed response from server", response.status_code) from e

    def _raise_for_status(self, response: requests.Response, authenticated: bool):
        status = response.status_code
        message = self._error_message(response)

        if status == 401:
            if authenticated and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise AuthenticationError(message or "Authentication required", status)
        if status == 403:
            raise AuthorizationError(message or "Not allowed", status)
        if status >= 500:
            raise TransientNetworkError(message or f"Server error ({status})", status)
        raise ApiError(message or f"Request failed with status {status}", status)

    @staticmethod
    def _error_message(response: requests.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("message") or body.get("error")
        return None
