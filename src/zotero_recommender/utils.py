"""Shared HTTP infrastructure for the Semantic Scholar clients.

Includes the API endpoints, a sliding-window rate limiter and a thin
``httpx`` wrapper that turns every network or HTTP failure into a
``TransportError``.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any

import httpx

from zotero_recommender.exceptions import TransportError

logger = logging.getLogger(__name__)

# ------------- Constants -------------

S2_API = "https://api.semanticscholar.org/graph/v1"
S2_REC_API = "https://api.semanticscholar.org/recommendations/v1"
S2_MATCH_URL = f"{S2_API}/paper/search/match"
S2_RECOMMENDATIONS_URL = f"{S2_REC_API}/papers/"

# Semantic Scholar caps the positive paper list of a recommendation request.
S2_MAX_INPUT_PAPERS = 100
S2_MAX_RESULT_LIMIT = 500

USER_AGENT = "zotero-recommender/0.1 (+https://www.semanticscholar.org/product/api)"


# ------------- Rate Limiting -------------


class RateLimiter:
    """Thread-safe rate limiter for API requests."""

    def __init__(self, req_per_min: int) -> None:
        self.req_per_min = max(req_per_min, 1)
        self.lock = threading.Lock()
        self.timestamps: list[float] = []

    def wait(self) -> None:
        """Block until a request can be made within the rate limit."""
        with self.lock:
            now = time.time()
            window = 60.0
            self.timestamps = [t for t in self.timestamps if now - t < window]
            if len(self.timestamps) >= self.req_per_min:
                earliest = min(self.timestamps)
                sleep_for = window - (now - earliest) + 0.01
                if sleep_for > 0:
                    logger.debug("Rate limit reached, sleeping %.1fs", sleep_for)
                    time.sleep(sleep_for)
                    now = time.time()
                    self.timestamps = [t for t in self.timestamps if now - t < window]
            self.timestamps.append(time.time())


# ------------- HTTP Client -------------


class HttpClient:
    """Rate-limited Semantic Scholar HTTP client.

    Every request is a single attempt. Failures surface as ``TransportError``
    so that callers decide how to degrade.
    """

    def __init__(
        self,
        timeout: float,
        user_agent: str,
        rate_limiter: RateLimiter | None = None,
        s2_api_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            rate_limiter: Optional RateLimiter shared by all requests
            s2_api_key: Optional Semantic Scholar API key for authenticated requests
            transport: Optional httpx transport (tests pass an ``httpx.MockTransport``)
        """
        self.client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )
        self.rate_limiter = rate_limiter
        self.s2_api_key = s2_api_key

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
    ) -> Any:
        """Make one HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            params: Query parameters
            json_body: JSON body for POST requests

        Raises:
            TransportError: On network errors, non-2xx statuses or a body that
                is not valid JSON.
        """
        if self.rate_limiter is not None:
            self.rate_limiter.wait()
        headers = {"Accept": "application/json"}
        if self.s2_api_key:
            headers["x-api-key"] = self.s2_api_key
        try:
            resp = self.client.request(method, url, params=params, headers=headers, json=json_body)
        except httpx.HTTPError as e:
            raise TransportError(url, f"{type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise TransportError(url, _error_message(resp), status_code=resp.status_code)
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(url, f"invalid JSON response: {e}", status_code=resp.status_code) from e

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", url, params=params)

    def post_json(
        self, url: str, json_body: dict[str, Any] | list[Any], params: dict[str, Any] | None = None
    ) -> Any:
        return self._request("POST", url, params=params, json_body=json_body)


def _error_message(resp: httpx.Response) -> str:
    """Extract the API error text from a failed response, if it has one."""
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase or "request failed"
    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
    return resp.reason_phrase or "request failed"
