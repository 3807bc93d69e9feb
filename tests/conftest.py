from __future__ import annotations

import json
import logging
import textwrap
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, List, Optional

import httpx
import pytest

from runtime_host.runtime_api import RuntimeApiClient

BASE_URL = "http://127.0.0.1:9001/2018-06-01/runtime"


class EventsExhausted(Exception):
    """Raised by the fake endpoint once every queued event has been served."""


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Dict[str, str]
    body: bytes
    raw_path: bytes = b""

    def json(self):
        return json.loads(self.body)


@dataclass
class FakeRuntimeApi:
    """In-memory control endpoint: serves queued events, records posts."""

    events: Deque[httpx.Response] = field(default_factory=deque)
    requests: List[RecordedRequest] = field(default_factory=list)
    post_status: int = 202

    def queue(self, payload: bytes, request_id: Optional[str] = "req-1", **headers: str) -> None:
        h = {"Lambda-Runtime-Deadline-Ms": "1700000000000"}
        if request_id is not None:
            h["Lambda-Runtime-Aws-Request-Id"] = request_id
        h.update(headers)
        self.events.append(httpx.Response(200, headers=h, content=payload))

    def queue_status(self, status: int, body: bytes = b"") -> None:
        self.events.append(httpx.Response(status, content=body))

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.split("/runtime", 1)[1]
        self.requests.append(
            RecordedRequest(request.method, path, dict(request.headers), request.read(), request.url.raw_path)
        )
        if request.method == "GET" and path == "/invocation/next":
            if not self.events:
                raise EventsExhausted()
            return self.events.popleft()
        return httpx.Response(self.post_status, json={"status": "OK"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def posts(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def fake_api() -> FakeRuntimeApi:
    return FakeRuntimeApi()


@pytest.fixture
def client(fake_api: FakeRuntimeApi):
    with RuntimeApiClient(BASE_URL, transport=fake_api.transport) as c:
        yield c


@pytest.fixture
def task_root(tmp_path: Path) -> Path:
    """Task root holding the echo handler used across tests."""
    (tmp_path / "function.py").write_text(
        textwrap.dedent(
            """
            def handler(payload):
                return "Echoing request: '" + payload.decode("utf-8") + "'"
            """
        ),
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture(autouse=True)
def _isolate_trace_env(monkeypatch):
    monkeypatch.delenv("_X_AMZN_TRACE_ID", raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # configure_logging() swaps the root handlers; put pytest's back afterwards
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
