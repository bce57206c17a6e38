"""Pull request operations against the GitHub REST API."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import quote, quote_plus

from crobot.platform.github.transport import (
    MAX_BODY_BYTES,
    GitHubAPI,
    GitHubConfig,
    GitHubError,
    format_per_page,
    parse_link_next,
)
from crobot.platform.types import ChangedFile, Comment, FileRequest, InlineComment, PRRequest
from crobot.review.render import extract_fingerprint

RAW_CONTENT_TYPE = "application/vnd.github.raw+json"

_FILE_STATUSES = {
    "added": "added",
    "removed": "deleted",
    "modified": "modified",
    "renamed": "renamed",
    "copied": "added",
    "changed": "modified",
    "unchanged": "",
}


def normalize_file_status(status: str) -> str:
    """Map a GitHub file status to the standard set; "" means skip the file."""
    return _FILE_STATUSES.get(status, status)


def map_pr_state(state: str, merged: bool) -> str:
    """Map GitHub's state and merged flag to a normalized state string."""
    if state == "open":
        return "OPEN"
    if state == "closed":
        return "MERGED" if merged else "CLOSED"
    return state


def _escape(segment: str) -> str:
    return quote(segment, safe="$&+=:@")


@contextmanager
def _context(prefix: str) -> Iterator[None]:
    """Prefix the message of a GitHubError raised inside the block."""
    try:
        yield
    except GitHubError as exc:
        if not prefix:
            raise
        raise GitHubError(f"{prefix}: {exc}", exc.status_code) from exc


def _decode(data: bytes, what: str) -> Any:
    try:
        return json.loads(data)
    except ValueError as exc:
        raise GitHubError(f"decoding {what}: {exc}") from exc


def _decode_objects(data: bytes, what: str) -> list[dict[str, Any]]:
    value = _decode(data, what)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise GitHubError(f"decoding {what}: expected a JSON array of objects")
    return value


def _decode_object(data: bytes, what: str) -> dict[str, Any]:
    value = _decode(data, what)
    if not isinstance(value, dict):
        raise GitHubError(f"decoding {what}: expected a JSON object")
    return value


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _number(value: Any) -> int:
    return int(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else 0


def _comment(raw: dict[str, Any]) -> Comment:
    user = raw.get("user") or {}
    body = _text(raw.get("body"))
    return Comment(
        id=str(_number(raw.get("id"))),
        path=_text(raw.get("path")),
        line=_number(raw.get("line")),
        body=body,
        author=_text(user.get("login")),
        created_at=_text(raw.get("created_at")),
        fingerprint=extract_fingerprint(body),
    )


class GitHubClient:
    """Reads and writes pull request data on GitHub."""

    def __init__(self, config: GitHubConfig | None) -> None:
        self.api = GitHubAPI(config)

    def _pulls_path(self, request: PRRequest) -> str:
        owner = self.api.resolve_owner(request.workspace)
        return f"/repos/{_escape(owner)}/{_escape(request.repo)}/pulls/{request.pr_number}"

    def _pages(self, path: str, what: str, first_error: str) -> Iterator[dict[str, Any]]:
        """Yield the objects of every page of a paginated listing."""
        with _context(first_error):
            data, headers = self.api.request("GET", format_per_page(path))
        while True:
            yield from _decode_objects(data, f"{what} page")
            next_url = parse_link_next(headers)
            if not next_url:
                return
            with _context(f"fetching {what} next page"):
                data, headers = self.api.request_url(next_url)

    def changed_files(self, request: PRRequest) -> list[ChangedFile]:
        """Return the files changed by a pull request, following pagination."""
        files = []
        path = self._pulls_path(request) + "/files"
        for entry in self._pages(path, "files", "fetching changed files"):
            status = normalize_file_status(_text(entry.get("status")))
            if not status:
                continue
            filename = _text(entry.get("filename"))
            previous = _text(entry.get("previous_filename"))
            files.append(
                ChangedFile(
                    path=filename,
                    status=status,
                    old_path=previous if previous and previous != filename else "",
                )
            )
        return files

    def get_file_content(self, request: FileRequest) -> bytes:
        """Return the raw content of a file at a commit."""
        owner = self.api.resolve_owner(request.workspace)
        path = (
            f"/repos/{_escape(owner)}/{_escape(request.repo)}/contents/{request.path}"
            f"?ref={quote_plus(request.commit, safe='')}"
        )
        with _context("fetching file content"):
            response = self.api.request_raw("GET", path, RAW_CONTENT_TYPE)
        with response:
            return response.content[:MAX_BODY_BYTES]

    def list_bot_comments(self, request: PRRequest) -> list[Comment]:
        """Return the review comments that carry a bot fingerprint."""
        path = self._pulls_path(request) + "/comments"
        comments = []
        for raw in self._pages(path, "comments", "listing PR comments"):
            comment = _comment(raw)
            if not comment.fingerprint:
                continue
            comment.is_bot = True
            comments.append(comment)
        return comments

    def list_pr_comments(self, request: PRRequest) -> list[Comment]:
        """Return every review comment on a pull request.

        The REST API does not report thread resolution, so is_resolved is
        always False.
        """
        path = self._pulls_path(request) + "/comments"
        comments = []
        for raw in self._pages(path, "comments", "listing PR comments"):
            comment = _comment(raw)
            user = raw.get("user") or {}
            comment.is_bot = user.get("type") == "Bot" or bool(comment.fingerprint)
            parent = raw.get("in_reply_to_id")
            if parent is not None:
                comment.parent_id = str(_number(parent))
            comments.append(comment)
        return comments

    def head_commit(self, owner: str, repo: str, pr_number: int) -> str:
        """Return the head commit SHA of a pull request."""
        path = f"/repos/{_escape(owner)}/{_escape(repo)}/pulls/{pr_number}"
        with _context("fetching PR for head commit"):
            data, _ = self.api.request("GET", path)
        pr = _decode_object(data, "PR for head commit")
        sha = _text((pr.get("head") or {}).get("sha"))
        if not sha:
            raise GitHubError("github: PR head commit SHA is empty")
        return sha

    def create_inline_comment(self, request: PRRequest, comment: InlineComment) -> Comment:
        """Post an inline review comment on the pull request's head commit."""
        owner = self.api.resolve_owner(request.workspace)
        side = "LEFT" if comment.side == "old" else "RIGHT"
        with _context("getting head commit for comment"):
            sha = self.head_commit(owner, request.repo, request.pr_number)

        payload = {
            "body": comment.body,
            "commit_id": sha,
            "path": comment.path,
            "line": comment.line,
            "side": side,
        }
        with _context("creating inline comment"):
            data, _ = self.api.request(
                "POST", self._pulls_path(request) + "/comments", json.dumps(payload).encode()
            )
        created = _comment(_decode_object(data, "created comment"))
        created.is_bot = True
        return created

    def delete_comment(self, request: PRRequest, comment_id: str) -> None:
        """Delete a review comment; the path does not include the PR number."""
        owner = self.api.resolve_owner(request.workspace)
        path = (
            f"/repos/{_escape(owner)}/{_escape(request.repo)}/pulls/comments/{_escape(comment_id)}"
        )
        with _context("deleting comment"):
            self.api.request("DELETE", path)