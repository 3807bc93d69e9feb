from __future__ import annotations

import importlib.util
import logging
import re
import sys
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from .errors import HandlerLoadError, HandlerResultError

log = logging.getLogger("runtime_host.handler")

Payload = bytes
HandlerResult = Union[bytes, bytearray, str, None]
Handler = Callable[[Payload], HandlerResult]


def parse_handler_ref(ref: str) -> Tuple[str, str]:
    """
    "function.handler"         -> ("function", "handler")
    "lib/app.main.handler"     -> ("lib/app/main", "handler")
    """
    ref = (ref or "").strip()
    module_part, sep, func_name = ref.rpartition(".")
    segments = re.split(r"[./]", module_part)
    if not sep or not func_name.isidentifier() or not all(segments):
        raise HandlerLoadError(f"bad handler reference {ref!r}: expected <module>.<function>")
    return "/".join(segments), func_name


def _module_name(rel_path: str) -> str:
    return rel_path.strip("/").replace("/", ".")


def load_handler(ref: str, task_root: str) -> Handler:
    """
    Resolve the handler once at startup. The module file is
    <task_root>/<module-path>.py; the task root goes on sys.path so the
    handler can import its siblings.
    """
    rel_path, func_name = parse_handler_ref(ref)
    root = Path(task_root).resolve()
    file_p = (root / f"{rel_path}.py").resolve()
    if root not in file_p.parents:
        raise HandlerLoadError(f"handler module escapes task root: {rel_path}")
    if not file_p.is_file():
        raise HandlerLoadError(f"handler module not found: {file_p}")

    if str(root) not in sys.path:
        sys.path.insert(0, str(root))

    # private key so a task-root "json.py" cannot replace the real json module
    mod_name = f"_runtime_handler.{_module_name(rel_path)}"
    spec = importlib.util.spec_from_file_location(mod_name, file_p)
    if spec is None or spec.loader is None:
        raise HandlerLoadError(f"cannot load handler module: {file_p}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(mod_name, None)
        raise HandlerLoadError(f"importing {file_p} failed: {type(e).__name__}: {e}") from e

    fn = getattr(module, func_name, None)
    if fn is None:
        raise HandlerLoadError(f"handler {func_name!r} not found in {file_p}")
    if not callable(fn):
        raise HandlerLoadError(f"handler {func_name!r} in {file_p} is not callable")

    log.info("handler.loaded", extra={"handler": ref})
    return fn


def to_payload(result: HandlerResult) -> bytes:
    if result is None:
        return b""
    if isinstance(result, (bytes, bytearray)):
        return bytes(result)
    if isinstance(result, str):
        return result.encode("utf-8")
    raise HandlerResultError(f"handler returned {type(result).__name__}; expected bytes, str or None")


def invoke(handler: Handler, payload: bytes) -> bytes:
    return to_payload(handler(payload))


def describe(handler: Handler) -> Optional[str]:
    mod = getattr(handler, "__module__", None)
    name = getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None)
    if mod and name:
        return f"{mod}.{name}"
    return name
