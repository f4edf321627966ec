from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers.fakes import FakeSession
from tests.helpers.mcp_runtime import build_test_env
from whoop_config.settings import WhoopSettings
from whoop_mcp.app_context import build_context
from whoop_mcp.http_client import HttpClient
from whoop_mcp.tokens import TokenRecord, now_ms


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep every test away from the real home directory and telemetry files."""
    monkeypatch.setenv("WHOOP_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("WHOOP_DISABLE_TELEMETRY", "1")
    for name in ("WHOOP_TOKEN_PATH", "WHOOP_TELEMETRY_DIR", "WHOOP_CLIENT_ID", "WHOOP_CLIENT_SECRET",
                 "WHOOP_REDIRECT_URI", "WHOOP_SCOPES"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path) -> WhoopSettings:
    return WhoopSettings(
        client_id="client-123",
        client_secret="secret-456",
        token_path=Path(tmp_path) / "home" / ".whoop-mcp" / "tokens.json",
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def ctx(settings, session):
    return build_context(settings, http=HttpClient(session=session), load_tokens=False)


@pytest.fixture
def seed_tokens(ctx):
    """Put a token record in the store without going through save()."""

    def _seed(age_ms: int = 0, **fields):
        data = {
            "access_token": "a",
            "refresh_token": "r",
            "expires_in": 3600,
            "token_type": "bearer",
            "stored_at": now_ms() - age_ms,
        }
        data.update(fields)
        ctx.store.record = TokenRecord(**data)
        return ctx.store.record

    return _seed


@pytest.fixture
def whoop_env(tmp_path) -> dict[str, str]:
    """Subprocess env for the WHOOP MCP server.

    Tests open the stdio session themselves so the client cancel scope is
    entered and exited in the same task.
    """
    return build_test_env(tmp_path, extra={"WHOOP_CLIENT_ID": "integration-client"})
