"""
Token persistence and expiry detection.

The token file is the sole source of truth across process restarts: it is
read once at startup and rewritten on every exchange/refresh.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from whoop_mcp.constants import EXPIRY_BUFFER_MS

log = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class TokenRecord(BaseModel):
    """OAuth token response as persisted on disk.

    Extra provider fields are kept so the file mirrors what the server sent.
    """

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    # some providers send a fractional lifetime
    expires_in: Optional[Union[int, float]] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    stored_at: Optional[int] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class TokenStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.record: TokenRecord | None = None

    def load(self) -> TokenRecord | None:
        """Read the token file if present. Missing or unreadable file = no tokens."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            log.debug("No token file at %s", self.path)
            return None
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable token file %s: %s", self.path, e)
            return None

        try:
            self.record = TokenRecord.model_validate(raw)
        except ValidationError as e:
            log.warning("Ignoring malformed token file %s: %s", self.path, e)
            return None
        return self.record

    def save(self, record: TokenRecord) -> TokenRecord:
        """Stamp stored_at and atomically replace the token file."""
        stamped = record.model_copy(update={"stored_at": now_ms()})

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".tokens-", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(stamped.to_json_dict(), f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

        self.record = stamped
        log.info("Stored WHOOP tokens at %s", self.path)
        return stamped

    def is_expired(self, now: int | None = None) -> bool:
        rec = self.record
        if rec is None or not rec.stored_at or not rec.expires_in:
            return True
        current = now_ms() if now is None else now
        expires_at = rec.stored_at + rec.expires_in * 1000
        return current > expires_at - EXPIRY_BUFFER_MS

    @property
    def access_token(self) -> str | None:
        return self.record.access_token if self.record else None

    @property
    def refresh_token(self) -> str | None:
        return self.record.refresh_token if self.record else None
