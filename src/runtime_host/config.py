from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError
from .logging import is_level

DEFAULT_API_VERSION = "2018-06-01"


def control_endpoint_from_env(environ: Mapping[str, str]) -> Optional[str]:
    """Base URL of the runtime API, or None when AWS_LAMBDA_RUNTIME_API is unset."""
    runtime_api = (environ.get("AWS_LAMBDA_RUNTIME_API") or "").strip()
    # tolerate a scheme, the provider hands out bare host:port
    if "://" in runtime_api:
        runtime_api = runtime_api.split("://", 1)[1]
    runtime_api = runtime_api.rstrip("/")
    if not runtime_api:
        return None
    api_version = environ.get("RUNTIME_API_VERSION") or DEFAULT_API_VERSION
    return f"http://{runtime_api}/{api_version}/runtime"


@dataclass(frozen=True)
class Config:
    control_endpoint: str     # http://<host:port>/<api-version>/runtime
    handler: str              # "<module-path>.<function>"
    task_root: str
    timeout_seconds: Optional[float]   # None = block forever on /next
    log_level: str
    log_level_httpx: str

    @staticmethod
    def load(
        environ: Optional[Mapping[str, str]] = None,
        *,
        handler: Optional[str] = None,
        task_root: Optional[str] = None,
    ) -> "Config":
        env = os.environ if environ is None else environ

        endpoint = control_endpoint_from_env(env)
        if not endpoint:
            raise ConfigError("AWS_LAMBDA_RUNTIME_API is not set")

        handler_ref = (handler or env.get("_HANDLER") or "").strip()
        if not handler_ref:
            raise ConfigError("_HANDLER is not set")

        raw_timeout = (env.get("RUNTIME_API_TIMEOUT_SECONDS") or "").strip()
        timeout: Optional[float] = None
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ConfigError(f"RUNTIME_API_TIMEOUT_SECONDS is not a number: {raw_timeout!r}") from e
            if timeout <= 0:
                timeout = None

        level = (env.get("LOG_LEVEL") or "INFO").upper()
        httpx_level = (env.get("LOG_LEVEL_HTTPX") or level).upper()
        for var, value in (("LOG_LEVEL", level), ("LOG_LEVEL_HTTPX", httpx_level)):
            if not is_level(value):
                raise ConfigError(f"{var} is not a logging level: {value!r}")

        return Config(
            control_endpoint=endpoint,
            handler=handler_ref,
            task_root=task_root or env.get("LAMBDA_TASK_ROOT") or os.getcwd(),
            timeout_seconds=timeout,
            log_level=level,
            log_level_httpx=httpx_level,
        )
