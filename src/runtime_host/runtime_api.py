from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from .errors import RuntimeApiError
from .models import ERROR_TYPE_HEADER, ErrorResponse, Invocation

log = logging.getLogger("runtime_host.runtime_api")


def _path_id(request_id: str) -> str:
    # one opaque path segment; "#", "?" and "/" must not reshape the URL
    return quote(request_id, safe="")


class RuntimeApiClient:
    """
    Thin synchronous client for the provider's runtime API.

    Endpoints used:
      - GET  /invocation/next
      - POST /invocation/{request_id}/response
      - POST /invocation/{request_id}/error
      - POST /init/error
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        if not self.base_url:
            raise ValueError("runtime API base url is empty")
        # timeout=None: /next is a long poll and may block until the next event arrives
        self._client = httpx.Client(base_url=self.base_url, timeout=httpx.Timeout(timeout), transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RuntimeApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ─────────────────────────────────────────────────────────────
    # Low-level request helper
    # ─────────────────────────────────────────────────────────────
    def _request(
        self,
        method: str,
        path: str,
        *,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = self._client.request(method, path, content=content, headers=headers)
        except httpx.HTTPError as e:
            raise RuntimeApiError(method=method, url=url, body=repr(e)) from e
        if resp.status_code >= 400:
            raise RuntimeApiError(method=method, url=url, status=resp.status_code, body=resp.text)
        return resp

    # ─────────────────────────────────────────────────────────────
    # Public methods
    # ─────────────────────────────────────────────────────────────
    def next_invocation(self) -> Invocation:
        resp = self._request("GET", "/invocation/next")
        return Invocation.from_response(resp.headers, resp.content)

    def post_response(self, request_id: str, body: bytes) -> None:
        resp = self._request("POST", f"/invocation/{_path_id(request_id)}/response", content=body)
        log.debug("runtime_api.response", extra={"request_id": request_id, "status": resp.status_code})

    def post_error(self, request_id: str, error: ErrorResponse) -> None:
        self._request(
            "POST",
            f"/invocation/{_path_id(request_id)}/error",
            content=error.to_json(),
            headers={"Content-Type": "application/json", ERROR_TYPE_HEADER: error.error_type},
        )

    def post_init_error(self, error: ErrorResponse) -> None:
        self._request(
            "POST",
            "/init/error",
            content=error.to_json(),
            headers={"Content-Type": "application/json", ERROR_TYPE_HEADER: error.error_type},
        )
