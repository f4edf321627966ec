"""
Centralized constants to avoid string drift across the codebase.

These are fixed identifiers of the upstream WHOOP API and of this server.
"""

SERVER_NAME: str = "whoop-mcp-server"
SERVER_VERSION: str = "1.0.0"

AUTH_BASE_URL: str = "https://api.prod.whoop.com/oauth"
API_BASE_URL: str = "https://api.prod.whoop.com/developer/v2"

AUTHORIZE_PATH: str = "/oauth2/auth"
TOKEN_PATH: str = "/oauth2/token"

DEFAULT_REDIRECT_URI: str = "http://localhost:3000/callback"
DEFAULT_SCOPES: str = (
    "offline read:profile read:body_measurement read:cycles "
    "read:recovery read:sleep read:workout"
)

CONFIG_DIRNAME: str = ".whoop-mcp"
TOKEN_FILENAME: str = "tokens.json"

# Tokens are treated as expired this long before their real expiry.
EXPIRY_BUFFER_MS: int = 60_000

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "AUTH_BASE_URL",
    "API_BASE_URL",
    "AUTHORIZE_PATH",
    "TOKEN_PATH",
    "DEFAULT_REDIRECT_URI",
    "DEFAULT_SCOPES",
    "CONFIG_DIRNAME",
    "TOKEN_FILENAME",
    "EXPIRY_BUFFER_MS",
]
