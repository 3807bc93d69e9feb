from __future__ import annotations

from .config import Config
from .errors import (
    ConfigError,
    HandlerLoadError,
    HandlerResultError,
    MissingRequestIdError,
    RuntimeApiError,
    RuntimeHostError,
)
from .handler import load_handler
from .models import ErrorResponse, Invocation
from .poller import Poller
from .runtime_api import RuntimeApiClient

__all__ = [
    "Config",
    "ConfigError",
    "ErrorResponse",
    "HandlerLoadError",
    "HandlerResultError",
    "Invocation",
    "MissingRequestIdError",
    "Poller",
    "RuntimeApiClient",
    "RuntimeApiError",
    "RuntimeHostError",
    "load_handler",
]
