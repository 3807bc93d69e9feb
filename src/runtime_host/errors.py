from __future__ import annotations

from typing import Optional


class RuntimeHostError(RuntimeError):
    pass


class ConfigError(RuntimeHostError):
    pass


class HandlerLoadError(RuntimeHostError):
    pass


class HandlerResultError(RuntimeHostError):
    """Handler returned something that is not bytes, str or None."""


class MissingRequestIdError(RuntimeHostError):
    pass


class RuntimeApiError(RuntimeHostError):
    def __init__(self, *, method: str, url: str, status: Optional[int] = None, body: str = ""):
        what = f"HTTP {status}" if status is not None else "request failed"
        super().__init__(f"runtime-api {what}: {method} {url} :: {body[:500]}")
        self.method = method
        self.url = url
        self.status = status
        self.body = body
