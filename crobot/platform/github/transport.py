"""HTTP transport for the GitHub REST API: auth, retries, pagination, errors."""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import requests

from crobot.version import VERSION

DEFAULT_BASE_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
MAX_RETRIES = 3
MAX_BACKOFF_SECONDS = 30
MAX_BODY_BYTES = 10 << 20
DEFAULT_TIMEOUT = 30.0
_TRUNCATE_AT = 512

_LINK_NEXT_RE = re.compile(r'<([^>]+)>;\s*rel="next"')


class GitHubError(Exception):
    """A request to the GitHub API failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class GitHubConfig:
    """Settings for a GitHub API connection.

    owner is the default repository owner; base_url overrides the public API
    endpoint, for testing or GitHub Enterprise Server.
    """

    token: str = ""
    owner: str = ""
    base_url: str = ""
    session: requests.Session | None = None
    timeout: float = DEFAULT_TIMEOUT


def _header(headers: Mapping[str, str] | None, name: str) -> str:
    if not headers:
        return ""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return ""


def parse_link_next(headers: Mapping[str, str] | None) -> str:
    """Return the "next" URL from a Link header, or "" if there is none."""
    link = _header(headers, "Link")
    if not link:
        return ""
    match = _LINK_NEXT_RE.search(link)
    return match.group(1) if match else ""


def should_retry(status_code: int, headers: Mapping[str, str] | None) -> bool:
    """Return True if a response signals a rate limit worth retrying."""
    if status_code == 429:
        return True
    return status_code == 403 and _header(headers, "X-Ratelimit-Remaining") == "0"


def truncate_body(body: bytes) -> str:
    """Return at most 512 bytes of a response body for error messages."""
    if len(body) > _TRUNCATE_AT:
        return body[:_TRUNCATE_AT].decode("utf-8", errors="replace") + "..."
    return body.decode("utf-8", errors="replace")


def map_http_error(status_code: int, body: bytes) -> GitHubError | None:
    """Return the error matching an HTTP status, or None for a 2xx status."""
    if 200 <= status_code < 300:
        return None
    text = truncate_body(body)
    messages = {
        401: f"github: authentication failed (401): {text}",
        403: f"github: access denied (403): {text}",
        404: f"github: resource not found (404): {text}",
        422: f"github: validation failed (422): {text}",
    }
    message = messages.get(status_code, f"github: unexpected status {status_code}: {text}")
    return GitHubError(message, status_code)


def format_per_page(path: str) -> str:
    """Append per_page=100 to a URL path."""
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}per_page=100"


def retry_with_backoff(attempt_fn: Callable[[int], bool]) -> None:
    """Call attempt_fn up to MAX_RETRIES times, backing off while it returns False.

    attempt_fn receives the zero-based attempt number and returns True when
    done; exceptions it raises propagate at once. Raises GitHubError when every
    attempt was rate limited.
    """
    last_error: GitHubError | None = None
    for attempt in range(MAX_RETRIES):
        if attempt_fn(attempt):
            return
        last_error = GitHubError(f"github: rate limited (attempt {attempt + 1}/{MAX_RETRIES})")
        time.sleep(min(2**attempt, MAX_BACKOFF_SECONDS))
    if last_error is not None:
        raise last_error


class GitHubAPI:
    """Authenticated access to the GitHub REST API."""

    def __init__(self, config: GitHubConfig | None) -> None:
        if config is None:
            raise GitHubError("github: config must not be None")
        if not config.token:
            raise GitHubError("github: token must not be empty")
        self.base_url = config.base_url or DEFAULT_BASE_URL
        self.owner = config.owner
        self.user_agent = f"CRoBot/{VERSION}"
        self._token = config.token
        self._session = config.session or requests.Session()
        self._timeout = config.timeout

    def resolve_owner(self, owner: str) -> str:
        """Return owner if given, otherwise the configured default owner."""
        return owner or self.owner

    def _headers(self, accept: str = "") -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": accept or "application/vnd.github+json",
            "User-Agent": self.user_agent,
            "X-GitHub-Api-Version": API_VERSION,
        }

    def _send(
        self, method: str, url: str, body: bytes | None = None, accept: str = ""
    ) -> requests.Response:
        headers = self._headers(accept)
        if body is not None:
            headers["Content-Type"] = "application/json"
        try:
            return self._session.request(
                method, url, data=body, headers=headers, timeout=self._timeout
            )
        except requests.RequestException as exc:
            raise GitHubError(f"github: executing request: {exc}") from exc

    def _fetch(
        self, method: str, url: str, body: bytes | None = None
    ) -> tuple[bytes, Mapping[str, str]]:
        outcome: list[tuple[bytes, Mapping[str, str]]] = []

        def attempt(_: int) -> bool:
            response = self._send(method, url, body)
            content = response.content[:MAX_BODY_BYTES]
            if should_retry(response.status_code, response.headers):
                return False
            error = map_http_error(response.status_code, content)
            if error is not None:
                raise error
            outcome.append((content, response.headers))
            return True

        retry_with_backoff(attempt)
        return outcome[0]

    def request(
        self, method: str, path: str, body: bytes | None = None
    ) -> tuple[bytes, Mapping[str, Any]]:
        """Send a request to a path under the base URL; return body and headers."""
        return self._fetch(method, self.base_url + path, body)

    def request_raw(self, method: str, path: str, accept: str = "") -> requests.Response:
        """Send a request with an optional Accept header and return the response."""
        outcome: list[requests.Response] = []

        def attempt(_: int) -> bool:
            response = self._send(method, self.base_url + path, accept=accept)
            if should_retry(response.status_code, response.headers):
                response.close()
                return False
            if response.status_code >= 400:
                content = response.content[:MAX_BODY_BYTES]
                response.close()
                error = map_http_error(response.status_code, content)
                if error is not None:
                    raise error
            outcome.append(response)
            return True

        retry_with_backoff(attempt)
        return outcome[0]

    def request_url(self, raw_url: str) -> tuple[bytes, Mapping[str, Any]]:
        """GET an absolute URL, such as a pagination link, on the base host only."""
        try:
            host = urlsplit(raw_url).netloc
        except ValueError as exc:
            raise GitHubError(f"github: parsing pagination URL: {exc}") from exc
        try:
            base_host = urlsplit(self.base_url).netloc
        except ValueError as exc:
            raise GitHubError(f"github: parsing base URL: {exc}") from exc
        if host != base_host:
            raise GitHubError(
                f'github: pagination URL host "{host}" does not match base host "{base_host}"'
            )
        return self._fetch("GET", raw_url)