"""Parsing of pull request URLs."""

from __future__ import annotations

import json
import re
from urllib.parse import unquote, urlsplit

from crobot.platform.types import PRRequest

_INTEGER = re.compile(r"[+-]?[0-9]+")


class PRURLError(ValueError):
    """A pull request URL could not be understood."""


def _host(raw_url: str) -> str:
    netloc = urlsplit(raw_url).netloc
    return netloc.rpartition("@")[2]


def _pr_number(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    number = int(text)
    return number if number > 0 else None


def _parse_segments(segments: list[str], label: str, marker: str, shape: str) -> PRRequest:
    if len(segments) < 4 or segments[2] != marker:
        raise PRURLError(f"invalid {label} PR URL: expected {shape}")
    number = _pr_number(segments[3])
    if number is None:
        raise PRURLError(
            f"invalid {label} PR URL: {json.dumps(segments[3])} is not a valid PR number"
        )
    return PRRequest(workspace=segments[0], repo=segments[1], pr_number=number)


def parse_pr_url(raw_url: str) -> PRRequest:
    """Extract workspace, repository and PR number from a Bitbucket or GitHub URL."""
    try:
        parts = urlsplit(raw_url)
        host = _host(raw_url)
    except ValueError as exc:
        raise PRURLError(f"invalid PR URL: {exc}") from exc

    path = unquote(parts.path)
    if path.endswith("/"):
        path = path[:-1]
    if path.startswith("/"):
        path = path[1:]
    segments = path.split("/")

    if host == "bitbucket.org":
        return _parse_segments(
            segments, "Bitbucket", "pull-requests", "/{workspace}/{repo}/pull-requests/{id}"
        )
    if host == "github.com":
        # The GitHub owner plays the role of the workspace.
        return _parse_segments(segments, "GitHub", "pull", "/{owner}/{repo}/pull/{number}")
    raise PRURLError(
        f"unsupported PR URL host {json.dumps(host)} (supported: bitbucket.org, github.com)"
    )


def is_pr_url(text: str) -> bool:
    """Return True if text starts with http:// or https://."""
    return text.startswith(("http://", "https://"))


def platform_from_url(raw_url: str) -> str:
    """Return "bitbucket" or "github" for a PR URL, or "" if unrecognised."""
    try:
        host = _host(raw_url)
    except ValueError:
        return ""
    return {"bitbucket.org": "bitbucket", "github.com": "github"}.get(host, "")