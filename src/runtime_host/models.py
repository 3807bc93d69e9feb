from __future__ import annotations

import traceback
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import MissingRequestIdError

# ─────────────────────────────────────────────────────────────
# Runtime API headers
# ─────────────────────────────────────────────────────────────
REQUEST_ID_HEADER = "Lambda-Runtime-Aws-Request-Id"
DEADLINE_HEADER = "Lambda-Runtime-Deadline-Ms"
FUNCTION_ARN_HEADER = "Lambda-Runtime-Invoked-Function-Arn"
TRACE_ID_HEADER = "Lambda-Runtime-Trace-Id"
CLIENT_CONTEXT_HEADER = "Lambda-Runtime-Client-Context"
COGNITO_IDENTITY_HEADER = "Lambda-Runtime-Cognito-Identity"
ERROR_TYPE_HEADER = "Lambda-Runtime-Function-Error-Type"


class Invocation(BaseModel):
    """One event pulled from /invocation/next. Lives for a single loop iteration."""

    request_id: str
    payload: bytes = b""
    deadline_ms: Optional[int] = Field(default=None, description="Epoch milliseconds.")
    function_arn: Optional[str] = None
    trace_id: Optional[str] = None
    client_context: Optional[str] = None
    cognito_identity: Optional[str] = None

    @classmethod
    def from_response(cls, headers: Mapping[str, str], payload: bytes) -> "Invocation":
        request_id = (headers.get(REQUEST_ID_HEADER) or "").strip()
        if not request_id:
            raise MissingRequestIdError(f"event has no {REQUEST_ID_HEADER} header")

        deadline: Optional[int] = None
        raw_deadline = headers.get(DEADLINE_HEADER)
        if raw_deadline:
            try:
                deadline = int(raw_deadline)
            except ValueError:
                deadline = None

        return cls(
            request_id=request_id,
            payload=payload,
            deadline_ms=deadline,
            function_arn=headers.get(FUNCTION_ARN_HEADER) or None,
            trace_id=headers.get(TRACE_ID_HEADER) or None,
            client_context=headers.get(CLIENT_CONTEXT_HEADER) or None,
            cognito_identity=headers.get(COGNITO_IDENTITY_HEADER) or None,
        )


class ErrorResponse(BaseModel):
    """Error document accepted by /invocation/{id}/error and /init/error."""

    model_config = ConfigDict(populate_by_name=True)

    error_message: str = Field(..., alias="errorMessage")
    error_type: str = Field(..., alias="errorType")
    stack_trace: List[str] = Field(default_factory=list, alias="stackTrace")

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorResponse":
        return cls(
            error_message=str(exc),
            error_type=type(exc).__name__,
            stack_trace=[line.rstrip("\n") for line in traceback.format_tb(exc.__traceback__)],
        )

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")
