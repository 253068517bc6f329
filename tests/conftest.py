"""
Shared fixtures: a scripted stand-in for requests.Session plus a wired
client / session / notice board on top of it.

FakeHttp answers from a route table keyed by (METHOD, path). Values are
FakeResponse objects, plain JSON bodies (served as 200), exceptions to
raise, or callables taking the recorded call. Every call is recorded so
tests can assert on what went over the wire.
"""

import json
import threading

import pytest
import requests

from core.http_client import ApiClient
from core.navigation import Navigator
from core.notices import NoticeBoard
from core.session import SessionContext
from core.storage import SessionStorage

BASE_URL = "http://gym.test"


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="", text=None):
        self.status_code = status_code
        self.reason = reason or ("OK" if status_code < 400 else "Error")
        self._body = body
        if text is not None:
            self.text = text
        elif body is None:
            self.text = ""
        else:
            self.text = json.dumps(body)
        self.content = self.text.encode("utf-8")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")


class Call:
    def __init__(self, method, path, headers=None, json=None, params=None):
        self.method = method
        self.path = path
        self.headers = headers or {}
        self.json = json
        self.params = params

    def __repr__(self):
        return f"Call({self.method} {self.path})"


class FakeHttp:
    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls: list[Call] = []
        self.closed = False
        self._lock = threading.Lock()

    def route(self, method, path, answer):
        self.routes[(method.upper(), path)] = answer

    def _answer(self, call):
        answer = self.routes.get((call.method, call.path))
        if answer is None:
            return FakeResponse(404, {"detail": f"No route for {call.method} {call.path}"}, reason="Not Found")
        if callable(answer) and not isinstance(answer, FakeResponse):
            answer = answer(call)
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(200, answer)

    def request(self, method, url, headers=None, json=None, params=None):
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        call = Call(method.upper(), path, headers, json, params)
        with self._lock:
            self.calls.append(call)
        return self._answer(call)

    def get(self, url, **kwargs):
        return self.request("GET", url)

    def close(self):
        self.closed = True

    def sent(self, method, path):
        return [c for c in self.calls if c.method == method and c.path == path]


OWNER = {"id": "u1", "email": "owner@gym.test", "name": "Olive Owner", "role": "owner"}
MEMBER = {"id": "u2", "email": "member@gym.test", "name": "Manu Member", "role": "member", "phone": "9000000000"}


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def storage():
    return SessionStorage(None)


@pytest.fixture
def navigator():
    return Navigator()


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def client(http, storage, navigator):
    return ApiClient(BASE_URL, storage, navigator, http=http)


@pytest.fixture
def session(client, storage, navigator):
    return SessionContext.start(client, storage, navigator)


def sign_in(storage, user, token="tok-123"):
    """Seed storage as if a previous login had persisted an identity."""
    storage.set_item("gympro_token", token)
    storage.set_item("gympro_user", json.dumps(user))


@pytest.fixture
def owner_session(client, storage, navigator):
    sign_in(storage, OWNER)
    return SessionContext.start(client, storage, navigator)


@pytest.fixture
def member_session(client, storage, navigator):
    sign_in(storage, MEMBER)
    return SessionContext.start(client, storage, navigator)
