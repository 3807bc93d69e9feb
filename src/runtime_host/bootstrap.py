from __future__ import annotations

import argparse
import logging
import os
import sys
from importlib.metadata import PackageNotFoundError, version as pkg_version
from typing import List, Mapping, Optional

import httpx

from .config import Config, control_endpoint_from_env
from .errors import RuntimeApiError, RuntimeHostError
from .handler import describe, load_handler
from .logging import configure_logging, is_level
from .models import ErrorResponse
from .poller import Poller
from .runtime_api import RuntimeApiClient

log = logging.getLogger("runtime_host.bootstrap")

# /init/error is posted before the process exits; do not hang on it
INIT_ERROR_TIMEOUT_SECONDS = 10.0


def _version() -> str:
    try:
        return pkg_version("runtime-host")
    except PackageNotFoundError:
        return "0.0.0"


def _report_init_error(client: RuntimeApiClient, exc: BaseException) -> None:
    try:
        client.post_init_error(ErrorResponse.from_exception(exc))
    except RuntimeApiError as e:
        log.warning("init_error.report_failed: %s", e)


def build_poller(cfg: Config, client: RuntimeApiClient) -> Poller:
    handler = load_handler(cfg.handler, cfg.task_root)
    return Poller(client, handler)


def main(
    argv: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> None:
    parser = argparse.ArgumentParser(description="Custom runtime host: polls the runtime API and dispatches to a handler")
    parser.add_argument("--handler", help="Handler reference <module>.<function> (default: $_HANDLER)")
    parser.add_argument("--task-root", help="Directory holding handler code (default: $LAMBDA_TASK_ROOT)")
    args = parser.parse_args(argv)

    env = os.environ if environ is None else environ
    # real levels are validated by Config.load; until then an unknown name means INFO
    early_level = env.get("LOG_LEVEL") if is_level(env.get("LOG_LEVEL")) else "INFO"
    early_httpx = env.get("LOG_LEVEL_HTTPX") if is_level(env.get("LOG_LEVEL_HTTPX")) else None
    configure_logging(early_level, httpx_level=early_httpx)

    try:
        cfg = Config.load(env, handler=args.handler, task_root=args.task_root)
    except RuntimeHostError as e:
        log.error("init.config_failed: %s", e)
        endpoint = control_endpoint_from_env(env)
        if endpoint:
            with RuntimeApiClient(endpoint, timeout=INIT_ERROR_TIMEOUT_SECONDS, transport=transport) as client:
                _report_init_error(client, e)
        sys.exit(1)

    configure_logging(cfg.log_level, httpx_level=cfg.log_level_httpx)
    log.info("runtime-host %s starting", _version(), extra={"handler": cfg.handler})

    with RuntimeApiClient(cfg.control_endpoint, cfg.timeout_seconds, transport=transport) as client:
        try:
            poller = build_poller(cfg, client)
        except RuntimeHostError as e:
            log.error("init.handler_failed: %s", e)
            _report_init_error(client, e)
            sys.exit(1)

        log.info("init.done", extra={"handler": describe(poller.handler)})
        try:
            poller.run()
        except RuntimeHostError as e:
            log.exception("runtime.fatal: %s", e)
            sys.exit(1)
        except KeyboardInterrupt:
            log.info("runtime.interrupted")


if __name__ == "__main__":
    main()
