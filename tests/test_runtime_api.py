from __future__ import annotations

import httpx
import pytest

from runtime_host.errors import MissingRequestIdError, RuntimeApiError
from runtime_host.models import ErrorResponse
from runtime_host.runtime_api import RuntimeApiClient

from .conftest import BASE_URL


def test_next_invocation(fake_api, client):
    fake_api.queue(b'{"text":"Hello"}', request_id="abc123")
    inv = client.next_invocation()
    assert inv.request_id == "abc123"
    assert inv.payload == b'{"text":"Hello"}'
    assert [(r.method, r.path) for r in fake_api.requests] == [("GET", "/invocation/next")]


def test_next_invocation_without_request_id(fake_api, client):
    fake_api.queue(b"{}", request_id=None)
    with pytest.raises(MissingRequestIdError):
        client.next_invocation()


def test_post_response_targets_request_id(fake_api, client):
    client.post_response("abc123", b"result bytes")
    (req,) = fake_api.posts()
    assert req.path == "/invocation/abc123/response"
    assert req.body == b"result bytes"


def test_post_error_document(fake_api, client):
    client.post_error("r-9", ErrorResponse(error_message="bad", error_type="ValueError", stack_trace=["frame"]))
    (req,) = fake_api.posts()
    assert req.path == "/invocation/r-9/error"
    assert req.headers["lambda-runtime-function-error-type"] == "ValueError"
    assert req.headers["content-type"] == "application/json"
    assert req.json() == {"errorMessage": "bad", "errorType": "ValueError", "stackTrace": ["frame"]}


def test_post_init_error(fake_api, client):
    client.post_init_error(ErrorResponse(error_message="no module", error_type="HandlerLoadError"))
    (req,) = fake_api.posts()
    assert req.path == "/init/error"
    assert req.json()["errorType"] == "HandlerLoadError"


def test_http_error_status_raises(fake_api, client):
    fake_api.queue_status(500, b"internal")
    with pytest.raises(RuntimeApiError) as ei:
        client.next_invocation()
    assert ei.value.status == 500
    assert ei.value.url.endswith("/invocation/next")
    assert "internal" in str(ei.value)


def test_post_rejected_raises(fake_api, client):
    fake_api.post_status = 413
    with pytest.raises(RuntimeApiError) as ei:
        client.post_response("abc", b"x" * 10)
    assert ei.value.status == 413


def test_transport_failure_raises():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with RuntimeApiClient(BASE_URL, transport=httpx.MockTransport(refuse)) as c:
        with pytest.raises(RuntimeApiError) as ei:
            c.next_invocation()
    assert ei.value.status is None
    assert isinstance(ei.value.__cause__, httpx.ConnectError)


def test_empty_base_url():
    with pytest.raises(ValueError):
        RuntimeApiClient("")


@pytest.mark.parametrize(
    "request_id,encoded",
    [("a#b", b"a%23b"), ("a?b", b"a%3Fb"), ("a/b", b"a%2Fb"), ("plain-id-123", b"plain-id-123")],
)
def test_request_id_is_one_path_segment(fake_api, client, request_id, encoded):
    client.post_response(request_id, b"r")
    client.post_error(request_id, ErrorResponse(error_message="e", error_type="E"))

    resp, err = fake_api.posts()
    assert resp.raw_path == b"/2018-06-01/runtime/invocation/" + encoded + b"/response"
    assert err.raw_path == b"/2018-06-01/runtime/invocation/" + encoded + b"/error"
