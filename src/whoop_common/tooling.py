from __future__ import annotations

import functools
import inspect
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from whoop_common.context import get_request_id, new_request_id, set_request_id
from whoop_common.errors import error_code
from whoop_common.telemetry import TELEMETRY_FILE, log_event, redact_secrets

R = TypeVar("R")

# ---------------------------------------------------------------------------
# Shared helpers for MCP tool handlers
# ---------------------------------------------------------------------------

# Runtime collaborators are bound positionally but are not tool arguments.
_UNLOGGED_PARAMS = {"self", "ctx"}


def sanitize_args_for_log(args: dict | None) -> dict:
    """Drop runtime objects and redact secrets (telemetry layer also redacts)."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        if k in _UNLOGGED_PARAMS:
            continue
        if hasattr(v, "model_dump"):
            v = v.model_dump(exclude_none=True)
        out[str(k)] = v
    return redact_secrets(out)


def _bound_args(fn: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    """Bind positional/keyword args to parameter names for logging."""
    try:
        sig = inspect.signature(fn)
        bound = sig.bind_partial(*args, **kwargs)
        return dict(bound.arguments)
    except TypeError:
        d: dict[str, Any] = dict(kwargs)
        if args:
            d["_args"] = list(args)
        return d


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    telemetry_file: str = TELEMETRY_FILE
    # a fresh corr_id for every call, even inside an existing request scope
    new_corr_id_per_call: bool = False


def instrument_sync_tool(cfg: InstrumentConfig):
    """
    Decorator for sync tool handlers: times the call and appends a telemetry
    record. Exceptions are recorded with their error code and re-raised; the
    dispatcher turns them into the tool-error envelope.
    """

    def decorator(fn: Callable[..., R]) -> Callable[..., R]:
        fn_sig = inspect.signature(fn)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> R:
            corr_id = get_request_id()
            if cfg.new_corr_id_per_call:
                corr_id = new_request_id()
            elif not corr_id:
                corr_id = new_request_id()
                set_request_id(corr_id)

            t0 = time.perf_counter()
            args_for_log = {"args": sanitize_args_for_log(_bound_args(fn, args, kwargs))}
            err: str | None = None

            try:
                return fn(*args, **kwargs)
            except Exception as e:
                err = error_code(e)
                raise
            finally:
                ms = int((time.perf_counter() - t0) * 1000)
                log_event(
                    cfg.kind,
                    cfg.name,
                    args_for_log,
                    ok=err is None,
                    ms=ms,
                    corr_id=corr_id,
                    error=err,
                    telemetry_file=cfg.telemetry_file,
                )

        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator
