import json
import threading
import time
from urllib.parse import parse_qs

import httpx
import pytest

from brettgraph import GraphClient

TENANT = "contoso-tenant"
APP = "app-id"
SECRET = "s3cret"


class FakeGraph():
    """
    Stand-in for login.microsoftonline.com and graph.microsoft.com.
    Counts token requests and tracks how many requests overlap so tests
    can check the call lock.
    """

    def __init__(self) -> None:
        self.expires_in = 3600
        self.token_status = 200
        self.token_body: str|None = None
        self.routes: dict[tuple[str, str], tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []
        self.token_requests: list[dict] = []
        self.delay = 0.0
        self._lock = threading.Lock()
        self._token_in_flight = 0
        self._in_flight = 0
        self.max_token_in_flight = 0
        self.max_in_flight = 0
        self._issued = 0

    def route(self, method: str, path: str, status: int = 200, body: object = None) -> None:
        self.routes[(method, path)] = (status, body)

    @property
    def token_calls(self) -> int:
        return len(self.token_requests)

    def _enter(self, token: bool) -> None:
        with self._lock:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            if token:
                self._token_in_flight += 1
                self.max_token_in_flight = max(self.max_token_in_flight, self._token_in_flight)

    def _leave(self, token: bool) -> None:
        with self._lock:
            self._in_flight -= 1
            if token:
                self._token_in_flight -= 1

    def handler(self, request: httpx.Request) -> httpx.Response:
        is_token = request.url.host == "login.microsoftonline.com"
        self._enter(is_token)
        try:
            if self.delay:
                time.sleep(self.delay)
            with self._lock:
                self.requests.append(request)
            if is_token:
                return self._token(request)
            return self._api(request)
        finally:
            self._leave(is_token)

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        with self._lock:
            self.token_requests.append(form)
            self._issued += 1
            n = self._issued
        if self.token_body is not None:
            return httpx.Response(self.token_status, text=self.token_body)
        now = int(time.time())
        return httpx.Response(self.token_status, json={
            "token_type": "Bearer",
            "expires_in": str(self.expires_in),
            "ext_expires_in": str(self.expires_in),
            "expires_on": str(now + self.expires_in),
            "not_before": str(now - 5),
            "resource": "https://graph.microsoft.com",
            "access_token": f"token-{n}",
        })

    def _api(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v1.0"):
            path = path[len("/v1.0"):]
        status, body = self.routes.get((request.method, path), (404, {"error": {"code": "NotFound"}}))
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, content=json.dumps(body).encode())

    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host != "login.microsoftonline.com"]


@pytest.fixture
def graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def transport(graph) -> httpx.MockTransport:
    return httpx.MockTransport(graph.handler)


@pytest.fixture
def client(transport):
    c = GraphClient(TENANT, APP, SECRET, transport=transport)
    yield c
    c.close()
