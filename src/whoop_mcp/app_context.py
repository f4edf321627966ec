from __future__ import annotations

from dataclasses import dataclass

from whoop_config.settings import WhoopSettings
from whoop_mcp.api import WhoopApi
from whoop_mcp.auth import AuthFlow
from whoop_mcp.http_client import HttpClient
from whoop_mcp.tokens import TokenStore


@dataclass
class ServerContext:
    """Everything a tool handler needs; one instance per server process."""

    settings: WhoopSettings
    store: TokenStore
    http: HttpClient
    auth: AuthFlow
    api: WhoopApi


def build_context(
    settings: WhoopSettings | None = None,
    *,
    http: HttpClient | None = None,
    load_tokens: bool = True,
) -> ServerContext:
    settings = settings or WhoopSettings.from_env()
    http = http or HttpClient(timeout=settings.timeout)
    store = TokenStore(settings.token_path)
    if load_tokens:
        store.load()
    auth = AuthFlow(settings, store, http)
    api = WhoopApi(auth, http)
    return ServerContext(settings=settings, store=store, http=http, auth=auth, api=api)
