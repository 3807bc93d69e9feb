from __future__ import annotations

import logging
import os

from .handler import Handler, invoke
from .models import ErrorResponse, Invocation
from .runtime_api import RuntimeApiClient

log = logging.getLogger("runtime_host.poller")

TRACE_ENV = "_X_AMZN_TRACE_ID"


class Poller:
    """
    Pulls one invocation at a time from the runtime API, hands the payload to
    the handler and posts the result back under the same request id.

    Control-endpoint failures and events without a request id propagate out
    of run() and end the process. Handler failures are reported to
    /invocation/{id}/error and the loop carries on.
    """

    def __init__(self, client: RuntimeApiClient, handler: Handler) -> None:
        self._client = client
        self._handler = handler

    @property
    def handler(self) -> Handler:
        return self._handler

    def run_once(self) -> Invocation:
        inv = self._client.next_invocation()
        log.info(
            "invocation.received",
            extra={"request_id": inv.request_id, "bytes": len(inv.payload), "deadline_ms": inv.deadline_ms},
        )

        if inv.trace_id:
            os.environ[TRACE_ENV] = inv.trace_id
        else:
            os.environ.pop(TRACE_ENV, None)

        try:
            result = invoke(self._handler, inv.payload)
        except Exception as e:
            err = ErrorResponse.from_exception(e)
            log.exception("invocation.handler_failed", extra={"request_id": inv.request_id, "error_type": err.error_type})
            self._client.post_error(inv.request_id, err)
            return inv

        self._client.post_response(inv.request_id, result)
        log.info("invocation.response_sent", extra={"request_id": inv.request_id, "bytes": len(result)})
        return inv

    def run(self) -> None:
        while True:
            self.run_once()
