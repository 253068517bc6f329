"""
GymPro Session Context

Holds the authenticated identity for one client session. It is built
explicitly at start-up (SessionContext.start restores a persisted
identity), passed to every screen, and ends at logout().

  - login()   POST /auth/login; persists token + identity; returns a bool.
              Wrong credentials → False. Only network failure raises.
  - logout()  best-effort POST /auth/logout, then an unconditional local
              clear, whatever the server said.
  - gate()    role check used by screens: returns the route to redirect
              to, or None when the visitor may stay.

Usage:
    from core.session import SessionContext

    session = SessionContext.start(client, storage, navigator)
    if session.login("owner@gympro.com", "admin123"):
        navigator.go(session.landing_route)
"""

import json
import logging

from core.casing import keys_to_camel
from core.errors import ApiError, HttpError, TransportError, ValidationError
from core.http_client import ApiClient
from core.models import User
from core.navigation import ROUTE_LOGIN, Navigator, landing_route_for
from core.storage import SessionStorage

logger = logging.getLogger("gympro.session")

MIN_PASSWORD_LENGTH = 6


class SessionContext:
    """Current identity plus the auth operations that change it.

    Args:
        client:    ApiClient used for /auth/* calls.
        storage:   Where token and identity are persisted.
        navigator: Route state (used for post-logout navigation).
    """

    def __init__(self, client: ApiClient, storage: SessionStorage, navigator: Navigator):
        self.client = client
        self.storage = storage
        self.navigator = navigator
        self.user: User | None = None
        self.closed = False
        client.add_unauthorized_listener(self._on_unauthorized)

    @classmethod
    def start(cls, client: ApiClient, storage: SessionStorage, navigator: Navigator) -> "SessionContext":
        """Create a session and restore any identity left in storage."""
        session = cls(client, storage, navigator)
        session.restore()
        return session

    # -------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.storage.get_item(self.client.token_key))

    @property
    def role(self) -> str | None:
        return self.user.role if self.user else None

    @property
    def landing_route(self) -> str:
        return landing_route_for(self.role)

    def restore(self):
        """Load the persisted identity. Unreadable data means signed out."""
        raw = self.storage.get_item(self.client.user_key)
        if not raw:
            return
        try:
            self.user = User.from_dict(keys_to_camel(json.loads(raw)))
            logger.info("Restored session for %s (%s)", self.user.email, self.user.role)
        except (json.JSONDecodeError, AttributeError, TypeError) as e:
            logger.warning("Stored identity unreadable (%s), clearing", e)
            self._clear_local()

    def gate(self, required_role: str | None = None) -> str | None:
        """Where to send the visitor instead, or None if they may stay.

        Unauthenticated → login. Wrong role → that role's landing route.
        """
        if self.user is None:
            return ROUTE_LOGIN
        if required_role and self.user.role != required_role:
            return landing_route_for(self.user.role)
        return None

    # -------------------------------------------------------------------
    # Auth operations
    # -------------------------------------------------------------------

    def login(self, email: str, password: str) -> bool:
        """Sign in. Returns False on rejected credentials.

        Raises:
            TransportError: the backend could not be reached.
        """
        try:
            data = self.client.post(
                "/auth/login", {"email": email, "password": password},
                authenticated=False,
            )
        except HttpError as e:
            logger.info("Login rejected for %s (%d)", email, e.status)
            return False
        except TransportError:
            raise
        except ApiError as e:
            logger.warning("Login response unusable: %s", e)
            return False

        if not data or not data.get("accessToken") or not data.get("user"):
            logger.warning("Login response missing token or user")
            return False
        self._persist(data["accessToken"], data["user"])
        logger.info("Logged in as %s (%s)", self.user.email, self.user.role)
        return True

    def register(self, name: str, email: str, password: str, phone: str = "") -> User:
        """Create an owner account and sign in as it.

        Raises:
            ValidationError, HttpError (server detail, e.g. email taken), TransportError.
        """
        errors = []
        if not name.strip():
            errors.append("Name is required.")
        if not email.strip():
            errors.append("Email is required.")
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if errors:
            raise ValidationError(errors)

        data = self.client.post(
            "/auth/register",
            {"name": name.strip(), "email": email.strip(), "password": password, "phone": phone.strip()},
            authenticated=False,
        )
        if not data or not data.get("accessToken") or not data.get("user"):
            raise ApiError("Registration failed")
        self._persist(data["accessToken"], data["user"])
        logger.info("Registered owner account %s", self.user.email)
        return self.user

    def logout(self):
        """Best-effort server invalidation, then always clear locally."""
        token = self.storage.get_item(self.client.token_key)
        try:
            if token:
                self.client.post("/auth/logout", authenticated=True)
        except ApiError as e:
            logger.warning("Server-side logout failed: %s", e)
        finally:
            email = self.user.email if self.user else "?"
            self._clear_local()
            self.closed = True
            self.navigator.go(ROUTE_LOGIN)
            logger.info("Logged out %s", email)

    def forgot_password(self, email: str):
        if not email.strip():
            raise ValidationError("Email is required.")
        self.client.post("/auth/forgot-password", {"email": email.strip()}, authenticated=False)

    def reset_password(self, token: str, password: str, confirm: str):
        if password != confirm:
            raise ValidationError("Passwords do not match")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        self.client.post("/auth/reset-password", {"token": token, "password": password}, authenticated=False)

    def change_password(self, current: str, new: str, confirm: str):
        if not current:
            raise ValidationError("Current password is required.")
        if new != confirm:
            raise ValidationError("Passwords do not match")
        if len(new) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        self.client.post("/auth/change-password", {"currentPassword": current, "newPassword": new})

    def refresh_user(self, user: User):
        """Replace the held identity after a profile edit."""
        self.user = user
        self.storage.set_item(self.client.user_key, json.dumps(user.to_dict()))

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------

    def _persist(self, token: str, user_data: dict):
        self.user = User.from_dict(user_data)
        self.storage.set_item(self.client.token_key, token)
        self.storage.set_item(self.client.user_key, json.dumps(self.user.to_dict()))
        self.closed = False

    def _clear_local(self):
        self.user = None
        self.storage.remove_item(self.client.user_key)
        self.storage.remove_item(self.client.token_key)

    def _on_unauthorized(self):
        self.user = None
