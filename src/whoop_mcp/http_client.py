"""
Lightweight shared HTTP client.

Goals:
- Centralize timeouts and error logging for WHOOP calls.
- Keep dependencies limited to `requests`.
- Turn non-2xx responses into UpstreamError (status + raw body) and
  network failures into TransportError.

No retries: a failed call fails the tool call.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import requests
from requests import Response

from whoop_common.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "whoop-mcp-server/1.0"


class HttpClient:
    """A small wrapper around `requests.Session` with sane defaults."""

    def __init__(
        self,
        *,
        timeout: tuple[float, float] | float = (3.05, 30.0),
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Response:
        """Perform an HTTP request; raise UpstreamError for non-2xx responses.

        `action` prefixes the error message, e.g. "Failed to get profile".
        """
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                params=dict(params) if params else None,
                data=dict(data) if data else None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            ms = int((time.perf_counter() - t0) * 1000)
            logger.warning("HTTP %s %s transport failure (ms=%s): %s", method.upper(), url, ms, e)
            raise TransportError(str(e)) from e

        ms = int((time.perf_counter() - t0) * 1000)
        if not resp.ok:
            logger.warning("HTTP %s %s failed (status=%s, ms=%s)", method.upper(), url, resp.status_code, ms)
            raise UpstreamError(action, resp.status_code, resp.text)

        logger.debug("HTTP %s %s ok (status=%s, ms=%s)", method.upper(), url, resp.status_code, ms)
        return resp

    def get_json(
        self,
        url: str,
        *,
        action: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        return self.request("GET", url, action=action, headers=headers, params=params).json()

    def post_form(
        self,
        url: str,
        data: Mapping[str, Any],
        *,
        action: str,
    ) -> Any:
        """POST application/x-www-form-urlencoded and return the JSON body."""
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        return self.request("POST", url, action=action, headers=headers, data=data).json()
