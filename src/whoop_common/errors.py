from __future__ import annotations

REDACT_TOKEN = "***redacted***"


class WhoopError(Exception):
    """Base class for errors surfaced to MCP callers as tool errors."""

    code = "internal"


class ConfigurationError(WhoopError):
    """A required environment value (client id/secret) is missing."""

    code = "config_error"


class ToolInputError(WhoopError):
    """A required tool input is missing or malformed."""

    code = "bad_request"


class AuthStateError(WhoopError):
    """No usable credentials are stored."""

    code = "not_authenticated"


class UpstreamError(WhoopError):
    """Non-2xx response from the WHOOP API or its OAuth server."""

    code = "upstream_error"

    def __init__(self, action: str, status: int, body: str) -> None:
        self.action = action
        self.status = status
        self.body = body
        super().__init__(f"{action}: {status} - {body}")


class TransportError(WhoopError):
    """Network-level failure (DNS, connection reset, timeout...)."""

    code = "transport_error"


class TokenResponseError(WhoopError):
    """The OAuth server answered 2xx with a body that is not a token record."""

    code = "upstream_error"


def error_code(exc: BaseException) -> str:
    return exc.code if isinstance(exc, WhoopError) else "internal"
