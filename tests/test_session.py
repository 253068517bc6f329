import asyncio
import json

import pytest

from core.errors import UnauthorizedError, ValidationError
from core.navigation import (
    ROLE_MEMBER,
    ROLE_OWNER,
    ROUTE_HOME,
    ROUTE_LOGIN,
    ROUTE_MEMBER_HOME,
    ROUTE_OWNER_HOME,
    Navigator,
    landing_route_for,
)
from core.session import SessionContext
from core.storage import SessionStorage
from screens.auth import INVALID_CREDENTIALS, LoginScreen, RegisterScreen, ResetPasswordScreen
from tests.conftest import MEMBER, OWNER, FakeResponse


def _login_ok(user):
    return {"access_token": "tok-new", "user": user}


# ---------------------------------------------------------------------------
# SessionContext
# ---------------------------------------------------------------------------

def test_restore_from_storage(owner_session):
    assert owner_session.user.email == OWNER["email"]
    assert owner_session.role == "owner"
    assert owner_session.is_authenticated


def test_unreadable_identity_starts_signed_out(client, storage, navigator):
    storage.set_item("gympro_token", "t")
    storage.set_item("gympro_user", "{not json")
    session = SessionContext.start(client, storage, navigator)
    assert session.user is None
    assert storage.get_item("gympro_token") is None


def test_login_persists_token_and_user(http, session, storage):
    http.route("POST", "/auth/login", _login_ok(OWNER))
    assert session.login("owner@gym.test", "secret1") is True
    assert storage.get_item("gympro_token") == "tok-new"
    assert json.loads(storage.get_item("gympro_user"))["role"] == "owner"


def test_login_rejected_returns_false(http, session, storage):
    http.route("POST", "/auth/login", FakeResponse(401, {"detail": "Invalid credentials"}))
    assert session.login("owner@gym.test", "wrong") is False
    assert session.user is None
    assert storage.get_item("gympro_token") is None


def test_gate(owner_session):
    assert owner_session.gate("owner") is None
    assert owner_session.gate("member") == ROUTE_OWNER_HOME


def test_gate_signed_out(session):
    assert session.gate() == ROUTE_LOGIN


def test_logout_clears_even_when_server_fails(http, owner_session, storage, navigator):
    http.route("POST", "/auth/logout", FakeResponse(500))
    owner_session.logout()
    assert owner_session.user is None
    assert owner_session.closed
    assert storage.get_item("gympro_token") is None
    assert navigator.current == ROUTE_LOGIN


def test_change_password_checks_locally_first(http, owner_session):
    with pytest.raises(ValidationError):
        owner_session.change_password("old", "newpass", "different")
    assert http.calls == []


def test_change_password_sends_snake_case(http, owner_session):
    http.route("POST", "/auth/change-password", {"ok": True})
    owner_session.change_password("oldpass", "newpass", "newpass")
    assert http.calls[0].json == {"current_password": "oldpass", "new_password": "newpass"}


def test_persisted_session_survives_restart(tmp_path, client, navigator, http):
    path = tmp_path / "session.json"
    storage = SessionStorage(path)
    client.storage = storage
    http.route("POST", "/auth/login", _login_ok(MEMBER))
    SessionContext(client, storage, navigator).login("member@gym.test", "secret1")

    reopened = SessionStorage(path)
    client.storage = reopened
    restored = SessionContext.start(client, reopened, navigator)
    assert restored.user.email == MEMBER["email"]


# ---------------------------------------------------------------------------
# Navigator
# ---------------------------------------------------------------------------

def test_navigator_tracks_only_the_current_route():
    navigator = Navigator()
    assert navigator.current == ROUTE_HOME
    navigator.go(ROUTE_LOGIN)
    navigator.go(ROUTE_LOGIN)
    navigator.go(ROUTE_OWNER_HOME)
    assert navigator.current == ROUTE_OWNER_HOME


def test_landing_routes():
    assert landing_route_for(ROLE_OWNER) == ROUTE_OWNER_HOME
    assert landing_route_for(ROLE_MEMBER) == ROUTE_MEMBER_HOME
    assert landing_route_for(None) == ROUTE_LOGIN


def test_expired_session_lands_on_login(http, owner_session, navigator):
    http.route("GET", "/members", FakeResponse(401, {"detail": "expired"}))
    navigator.go(ROUTE_OWNER_HOME)
    with pytest.raises(UnauthorizedError):
        owner_session.client.get("/members")
    assert navigator.current == ROUTE_LOGIN


# ---------------------------------------------------------------------------
# Login / register / reset screens
# ---------------------------------------------------------------------------

def test_owner_login_lands_on_dashboard(http, session, notices, navigator):
    http.route("POST", "/auth/login", _login_ok(OWNER))
    screen = LoginScreen(session, notices)
    result = asyncio.run(screen.submit("owner@gympro.com", "admin123"))
    assert http.calls[0].json == {"email": "owner@gympro.com", "password": "admin123"}
    assert result.ok
    assert navigator.current == ROUTE_OWNER_HOME
    assert notices.latest.title == "Login Successful"


def test_member_login_lands_on_member_home(http, session, notices, navigator):
    http.route("POST", "/auth/login", _login_ok(MEMBER))
    result = asyncio.run(LoginScreen(session, notices).submit("member@gym.test", "secret1"))
    assert result.ok
    assert navigator.current == ROUTE_MEMBER_HOME


def test_wrong_password_shows_error_and_stays(http, session, notices, navigator):
    http.route("POST", "/auth/login", FakeResponse(401, {"detail": "nope"}))
    navigator.go(ROUTE_LOGIN)
    screen = LoginScreen(session, notices)

    result = asyncio.run(screen.submit("owner@gym.test", "bad"))

    assert not result.ok
    assert screen.error == INVALID_CREDENTIALS
    assert navigator.current == ROUTE_LOGIN
    assert notices.latest.is_error


def test_login_requires_both_fields(http, session, notices):
    result = asyncio.run(LoginScreen(session, notices).submit("", ""))
    assert not result.ok
    assert http.calls == []


def test_register_password_mismatch(http, session, notices):
    result = asyncio.run(RegisterScreen(session, notices).submit("A", "a@b.c", "secret1", "secret2"))
    assert not result.ok
    assert notices.latest.message == "Passwords do not match"
    assert http.calls == []


def test_reset_password_goes_to_login(http, session, notices, navigator):
    http.route("POST", "/auth/reset-password", {"ok": True})
    screen = ResetPasswordScreen(session, notices, token="reset-tok")
    result = asyncio.run(screen.submit("newpass", "newpass"))
    assert result.ok
    assert http.calls[0].json == {"token": "reset-tok", "password": "newpass"}
    assert navigator.current == ROUTE_LOGIN
