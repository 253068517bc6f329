"""
GymPro HTTP access layer.

Thin wrapper over a requests.Session that every screen, the session
context, the report aggregator and the payment flows go through:

  - base URL from config ([api] base_url / GYMPRO_API_URL)
  - bearer token from SessionStorage when one is present
  - request bodies and query params snake_cased, responses camelCased
  - 401 → stored credentials wiped, navigation forced to /login,
    UnauthorizedError raised (a side effect, never a retry)
  - any other non-2xx → HttpError with the server's detail message,
    or "API error: <reason>" when the body has none
  - network failure → TransportError

No timeout and no retry: each call resolves once or raises once.

Usage:
    from core.http_client import ApiClient

    client = ApiClient("http://localhost:8000", storage, navigator)
    members = client.get("/members")
    client.post("/plans", {"name": "Gold", "duration": 3, "price": 4999})
"""

import logging
from typing import Any, Callable

import requests

from core.casing import keys_to_camel, keys_to_snake
from core.errors import ApiError, HttpError, TransportError, UnauthorizedError
from core.navigation import ROUTE_LOGIN, Navigator
from core.storage import SessionStorage

logger = logging.getLogger("gympro.http")

DEFAULT_TOKEN_KEY = "gympro_token"
DEFAULT_USER_KEY = "gympro_user"


# ---------------------------------------------------------------------------
# ApiClient
# ---------------------------------------------------------------------------

class ApiClient:
    """Synchronous JSON client for the GymPro backend.

    Calls are blocking; concurrent fetches run them through
    asyncio.to_thread (see core.batch).

    Args:
        base_url:  Backend root, e.g. "http://localhost:8000".
        storage:   Where the bearer token and identity live.
        navigator: Receives the forced /login navigation on 401.
        http:      requests.Session (or compatible) to send through.
        token_key: Storage key of the bearer token.
        user_key:  Storage key of the serialized identity.
    """

    def __init__(
        self,
        base_url: str,
        storage: SessionStorage,
        navigator: Navigator | None = None,
        http: requests.Session | None = None,
        token_key: str = DEFAULT_TOKEN_KEY,
        user_key: str = DEFAULT_USER_KEY,
    ):
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        self.navigator = navigator
        self.token_key = token_key
        self.user_key = user_key
        self._http = http if http is not None else requests.Session()
        self._unauthorized_listeners: list[Callable[[], None]] = []

    # -------------------------------------------------------------------
    # Verbs
    # -------------------------------------------------------------------

    def get(self, endpoint: str, params: dict | None = None, **kwargs) -> Any:
        return self.request("GET", endpoint, params=params, **kwargs)

    def post(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return self.request("POST", endpoint, data=data, **kwargs)

    def put(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return self.request("PUT", endpoint, data=data, **kwargs)

    def delete(self, endpoint: str, **kwargs) -> Any:
        return self.request("DELETE", endpoint, **kwargs)

    # -------------------------------------------------------------------
    # Core request
    # -------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        params: dict | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Send one request and return the camelCased JSON body.

        Args:
            method:        HTTP verb.
            endpoint:      Path starting with "/", appended to base_url.
            data:          JSON body in client (camelCase) convention.
            params:        Query parameters in client convention.
            authenticated: False skips the bearer header and the 401
                           side effect (login, register, password reset).

        Returns:
            Decoded response body, or None for an empty body.

        Raises:
            TransportError, HttpError, UnauthorizedError, ApiError.
        """
        url = f"{self.base_url}{endpoint}"
        headers = {"Content-Type": "application/json"}
        if authenticated:
            token = self.storage.get_item(self.token_key)
            if token:
                headers["Authorization"] = f"Bearer {token}"

        body = keys_to_snake(data) if data is not None else None
        query = keys_to_snake(params) if params else None

        try:
            response = self._http.request(
                method, url, headers=headers, json=body, params=query,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            raise TransportError(f"Network error: {e}") from e

        logger.debug("%s %s → %d", method, endpoint, response.status_code)

        if response.status_code == 401 and authenticated:
            self._handle_unauthorized()
            raise UnauthorizedError(_error_message(response))

        if not response.ok:
            message = _error_message(response)
            logger.warning("%s %s → %d: %s", method, endpoint, response.status_code, message)
            raise HttpError(response.status_code, message)

        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {endpoint}") from e
        return keys_to_camel(payload)

    # -------------------------------------------------------------------
    # 401 handling
    # -------------------------------------------------------------------

    def add_unauthorized_listener(self, callback: Callable[[], None]):
        """Register callback() to run after credentials are wiped on a 401."""
        self._unauthorized_listeners.append(callback)

    def _handle_unauthorized(self):
        """Clear stored credentials and force the login route."""
        logger.warning("401 from backend, clearing stored session")
        self.storage.remove_item(self.token_key)
        self.storage.remove_item(self.user_key)
        for callback in self._unauthorized_listeners:
            callback()
        if self.navigator is not None:
            self.navigator.go(ROUTE_LOGIN)

    def close(self):
        self._http.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_message(response) -> str:
    """Server-provided detail when the body has one, else the status text."""
    detail = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")

    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list) and detail:
        # FastAPI validation errors: [{"loc": [...], "msg": "...", ...}, ...]
        parts = [str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail]
        return "; ".join(parts)
    return f"API error: {response.reason or response.status_code}"
