"""
OAuth2 authorization-code flow against the WHOOP authorization server.

State machine over the token store:
  no tokens --exchange--> valid --(time)--> expired --refresh--> valid
Only `refresh()` is triggered implicitly, by `ensure_valid()` before data calls.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from whoop_common.errors import AuthStateError, ConfigurationError, TokenResponseError, ToolInputError
from whoop_config.settings import WhoopSettings
from whoop_mcp.constants import AUTH_BASE_URL, AUTHORIZE_PATH, TOKEN_PATH
from whoop_mcp.http_client import HttpClient
from whoop_mcp.tokens import TokenRecord, TokenStore, now_ms

log = logging.getLogger(__name__)

NOT_AUTHENTICATED = (
    "Not authenticated. Please authenticate first using whoop_auth_url and whoop_exchange_token."
)


def generate_state() -> str:
    return f"whoop_auth_{now_ms()}_{secrets.token_urlsafe(12)}"


def parse_token_response(data: dict[str, Any], action: str) -> TokenRecord:
    try:
        return TokenRecord.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ("body",)
        field = str(loc[0])
        raise TokenResponseError(f"{action}: invalid {field} in token response ({first.get('msg')})") from e


class AuthFlow:
    def __init__(
        self,
        settings: WhoopSettings,
        store: TokenStore,
        http: HttpClient,
        *,
        auth_base_url: str = AUTH_BASE_URL,
    ) -> None:
        self.settings = settings
        self.store = store
        self.http = http
        self.auth_base_url = auth_base_url.rstrip("/")

    @property
    def token_url(self) -> str:
        return f"{self.auth_base_url}{TOKEN_PATH}"

    def _client_credentials(self) -> tuple[str, str]:
        if not self.settings.client_id:
            raise ConfigurationError("WHOOP_CLIENT_ID is not configured")
        if not self.settings.client_secret:
            raise ConfigurationError("WHOOP_CLIENT_SECRET is not configured")
        return self.settings.client_id, self.settings.client_secret

    def build_auth_url(self, state: str | None = None) -> dict[str, str]:
        if not self.settings.client_id:
            raise ConfigurationError("WHOOP_CLIENT_ID is not configured")

        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.settings.client_id,
                "redirect_uri": self.settings.redirect_uri,
                "scope": self.settings.scopes,
                "state": state or generate_state(),
            }
        )
        return {"authUrl": f"{self.auth_base_url}{AUTHORIZE_PATH}?{query}"}

    def exchange_code(self, code: str) -> dict[str, Any]:
        if not code:
            raise ToolInputError("Authorization code is required")
        client_id, client_secret = self._client_credentials()

        data = self.http.post_form(
            self.token_url,
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": self.settings.redirect_uri,
            },
            action="Token exchange failed",
        )
        self.store.save(parse_token_response(data, "Token exchange failed"))
        log.info("Exchanged authorization code for WHOOP tokens")
        return {"success": True, **data}

    def refresh(self) -> dict[str, Any]:
        previous = self.store.refresh_token
        if not previous:
            raise AuthStateError("No refresh token available")
        client_id, client_secret = self._client_credentials()

        data = self.http.post_form(
            self.token_url,
            {
                "grant_type": "refresh_token",
                "refresh_token": previous,
                "client_id": client_id,
                "client_secret": client_secret,
            },
            action="Token refresh failed",
        )

        # Some providers omit refresh_token on refresh; keep the one we have.
        record = parse_token_response(
            {**data, "refresh_token": data.get("refresh_token") or previous}, "Token refresh failed"
        )
        self.store.save(record)
        log.info("Refreshed WHOOP access token")
        return {"success": True, **data}

    def ensure_valid(self) -> str:
        """Return a usable access token, refreshing it first when expired.

        An expired token without a refresh token is returned as is; the
        upstream API then answers 401.
        """
        if not self.store.access_token:
            raise AuthStateError(NOT_AUTHENTICATED)

        if self.store.is_expired() and self.store.refresh_token:
            log.info("Access token expired; refreshing")
            self.refresh()

        return self.store.access_token  # type: ignore[return-value]
