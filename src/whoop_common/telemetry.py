from __future__ import annotations

import datetime as _dt
import json
import logging
from typing import Any

from whoop_common.context import get_request_id
from whoop_common.errors import REDACT_TOKEN
from whoop_config.settings import telemetry_dir, telemetry_disabled

log = logging.getLogger(__name__)

TELEMETRY_FILE = "mcp-telemetry.jsonl"

_SECRET_KEYS = {
    "authorization",
    "access_token",
    "refresh_token",
    "client_secret",
    "code",
    "state",
    "token",
    "api_key",
}


def redact_secrets(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                if isinstance(v, str) and v.strip().lower().startswith("bearer "):
                    out[k] = "Bearer " + REDACT_TOKEN
                else:
                    out[k] = REDACT_TOKEN
            else:
                out[k] = redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [redact_secrets(x) for x in obj]
    return obj


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    corr_id: str | None = None,
    error: str | None = None,
    telemetry_file: str = TELEMETRY_FILE,
) -> None:
    """
    Append one JSONL telemetry record for a tool call.

    Secrets (tokens, authorization codes, OAuth state) are redacted before
    anything touches disk. Write failures are logged and swallowed so that
    telemetry can never fail a tool call.
    """
    if telemetry_disabled():
        return

    rid = get_request_id()
    rec = {
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "name": name,
        "request_id": rid,
        "corr_id": corr_id or rid,
        "args": {} if args is None else dict(args),
        "ok": bool(ok),
        "ms": int(ms),
    }
    if error:
        rec["error"] = error

    safe = redact_secrets(rec)
    directory = telemetry_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with (directory / telemetry_file).open("a", encoding="utf-8") as f:
            f.write(json.dumps(safe, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        log.warning("Could not write telemetry to %s: %s", directory, e)
