"""Source markup fetching with a rendering-proxy fallback.

Responsibilities:
- Fetch article markup directly with browser-like headers.
- Fall back to a JavaScript-rendering proxy when the direct attempt fails or
  returns a suspiciously small body.
- Report which strategy produced the markup.
"""

from __future__ import annotations

import requests

from ..errors import FetchError, FetchTimeoutError
from ..models.datatypes import FetchResult


STRATEGY_DIRECT = "direct"
STRATEGY_RENDER_PROXY = "render_proxy"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class _AttemptFailed(Exception):
    """One fetch attempt failed; carries a reason and whether it timed out."""

    def __init__(self, reason: str, *, timed_out: bool = False) -> None:
        super().__init__(reason)
        self.reason = reason
        self.timed_out = timed_out


class SourceFetcher:
    """Two-step fetch strategy: direct request, then rendering proxy."""

    def __init__(
        self,
        *,
        render_proxy_url: str = "https://r.jina.ai/",
        render_proxy_api_key: str | None = None,
        direct_timeout_seconds: float = 30.0,
        render_proxy_timeout_seconds: float = 45.0,
        min_direct_body_chars: int = 500,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize fetch endpoints, timeouts, and the HTTP session."""

        self.render_proxy_url = render_proxy_url
        self.render_proxy_api_key = render_proxy_api_key
        self.direct_timeout_seconds = direct_timeout_seconds
        self.render_proxy_timeout_seconds = render_proxy_timeout_seconds
        self.min_direct_body_chars = min_direct_body_chars
        self.session = session if session is not None else requests.Session()

    def fetch(self, url: str) -> FetchResult:
        """Fetch markup for `url`.

        Raises:
            FetchTimeoutError: When both attempts timed out.
            FetchError: When both attempts failed for any other reason.
        """

        try:
            return self._fetch_direct(url)
        except _AttemptFailed as direct_failure:
            try:
                return self._fetch_render_proxy(url)
            except _AttemptFailed as proxy_failure:
                reason = (
                    f"direct: {direct_failure.reason}; render proxy: {proxy_failure.reason}"
                )
                if direct_failure.timed_out and proxy_failure.timed_out:
                    raise FetchTimeoutError(url, reason) from proxy_failure
                raise FetchError(url, reason) from proxy_failure

    def _fetch_direct(self, url: str) -> FetchResult:
        """Fetch the page directly, rejecting short bodies."""

        response = self._get(url, headers=BROWSER_HEADERS, timeout=self.direct_timeout_seconds)
        body = response.text
        if len(body) < self.min_direct_body_chars:
            raise _AttemptFailed(
                f"body too short ({len(body)} chars, min {self.min_direct_body_chars})"
            )
        return FetchResult(
            url=url,
            markup=body,
            strategy=STRATEGY_DIRECT,
            status_code=response.status_code,
        )

    def _fetch_render_proxy(self, url: str) -> FetchResult:
        """Fetch rendered markup through the proxy."""

        headers = {"Accept": "text/html", "X-Return-Format": "html"}
        if self.render_proxy_api_key:
            headers["Authorization"] = f"Bearer {self.render_proxy_api_key}"
        response = self._get(
            f"{self.render_proxy_url}{url}",
            headers=headers,
            timeout=self.render_proxy_timeout_seconds,
        )
        body = response.text
        if not body.strip():
            raise _AttemptFailed("empty body")
        return FetchResult(
            url=url,
            markup=body,
            strategy=STRATEGY_RENDER_PROXY,
            status_code=response.status_code,
        )

    def _get(self, url: str, *, headers: dict[str, str], timeout: float) -> requests.Response:
        """Issue one GET and translate transport failures into attempt failures."""

        try:
            response = self.session.get(url, headers=headers, timeout=timeout)
        except requests.Timeout as exc:
            raise _AttemptFailed(f"timed out after {timeout:g}s", timed_out=True) from exc
        except requests.RequestException as exc:
            raise _AttemptFailed(f"transport error: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise _AttemptFailed(f"HTTP {response.status_code}")
        return response
