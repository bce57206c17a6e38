"""Shared data types exchanged with code-hosting platforms."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

VALID_SIDES = ("new", "old")
VALID_SEVERITIES = ("info", "warning", "error")


class FindingValidationError(ValueError):
    """A review finding failed basic field validation."""


class EmptyPathError(FindingValidationError):
    """The finding has no file path."""


class InvalidLineError(FindingValidationError):
    """The finding's line number is not positive."""


class InvalidSideError(FindingValidationError):
    """The finding's side is neither "new" nor "old"."""


class InvalidSeverityError(FindingValidationError):
    """The finding's severity is not a known level."""


class EmptyMessageError(FindingValidationError):
    """The finding has no message."""


@dataclass
class PRRequest:
    """Identifies a pull request on a platform."""

    workspace: str = ""
    repo: str = ""
    pr_number: int = 0


@dataclass
class FileRequest:
    """Identifies a specific file at a specific commit."""

    workspace: str = ""
    repo: str = ""
    commit: str = ""
    path: str = ""


@dataclass
class ChangedFile:
    """A file modified in a pull request."""

    path: str = ""
    status: str = ""
    old_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path}
        if self.old_path:
            data["old_path"] = self.old_path
        data["status"] = self.status
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangedFile:
        return cls(
            path=data.get("path") or "",
            status=data.get("status") or "",
            old_path=data.get("old_path") or "",
        )


@dataclass
class DiffHunk:
    """A single hunk from a unified diff."""

    path: str = ""
    old_start: int = 0
    old_lines: int = 0
    new_start: int = 0
    new_lines: int = 0
    body: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "old_start": self.old_start,
            "old_lines": self.old_lines,
            "new_start": self.new_start,
            "new_lines": self.new_lines,
            "body": self.body,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiffHunk:
        return cls(
            path=data.get("path") or "",
            old_start=int(data.get("old_start") or 0),
            old_lines=int(data.get("old_lines") or 0),
            new_start=int(data.get("new_start") or 0),
            new_lines=int(data.get("new_lines") or 0),
            body=data.get("body") or "",
        )


@dataclass
class PRContext:
    """Normalized metadata, changed files and diff hunks of a pull request."""

    id: int = 0
    title: str = ""
    description: str = ""
    author: str = ""
    source_branch: str = ""
    target_branch: str = ""
    state: str = ""
    head_commit: str = ""
    base_commit: str = ""
    files: list[ChangedFile] = field(default_factory=list)
    diff_hunks: list[DiffHunk] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "author": self.author,
            "source_branch": self.source_branch,
            "target_branch": self.target_branch,
            "state": self.state,
            "head_commit": self.head_commit,
            "base_commit": self.base_commit,
            "files": [f.to_dict() for f in self.files],
            "diff_hunks": [h.to_dict() for h in self.diff_hunks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PRContext:
        return cls(
            id=int(data.get("id") or 0),
            title=data.get("title") or "",
            description=data.get("description") or "",
            author=data.get("author") or "",
            source_branch=data.get("source_branch") or "",
            target_branch=data.get("target_branch") or "",
            state=data.get("state") or "",
            head_commit=data.get("head_commit") or "",
            base_commit=data.get("base_commit") or "",
            files=[ChangedFile.from_dict(f) for f in data.get("files") or []],
            diff_hunks=[DiffHunk.from_dict(h) for h in data.get("diff_hunks") or []],
        )


@dataclass
class InlineComment:
    """A comment to be posted on a specific line of a file in a pull request."""

    path: str = ""
    line: int = 0
    side: str = ""
    body: str = ""
    fingerprint: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "line": self.line,
            "side": self.side,
            "body": self.body,
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InlineComment:
        return cls(
            path=data.get("path") or "",
            line=int(data.get("line") or 0),
            side=data.get("side") or "",
            body=data.get("body") or "",
            fingerprint=data.get("fingerprint") or "",
        )


@dataclass
class Comment:
    """An existing comment on a pull request."""

    id: str = ""
    path: str = ""
    line: int = 0
    body: str = ""
    author: str = ""
    created_at: str = ""
    is_bot: bool = False
    is_resolved: bool = False
    fingerprint: str = ""
    parent_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "path": self.path,
            "line": self.line,
            "body": self.body,
            "author": self.author,
            "created_at": self.created_at,
            "is_bot": self.is_bot,
            "is_resolved": self.is_resolved,
        }
        if self.fingerprint:
            data["fingerprint"] = self.fingerprint
        if self.parent_id:
            data["parent_id"] = self.parent_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Comment:
        return cls(
            id=data.get("id") or "",
            path=data.get("path") or "",
            line=int(data.get("line") or 0),
            body=data.get("body") or "",
            author=data.get("author") or "",
            created_at=data.get("created_at") or "",
            is_bot=bool(data.get("is_bot", False)),
            is_resolved=bool(data.get("is_resolved", False)),
            fingerprint=data.get("fingerprint") or "",
            parent_id=data.get("parent_id") or "",
        )


@dataclass
class ReviewFinding:
    """A single issue reported by a reviewer against a line of a pull request."""

    path: str = ""
    line: int = 0
    side: str = ""
    severity: str = ""
    severity_score: int = 0
    category: str = ""
    criteria: list[str] = field(default_factory=list)
    message: str = ""
    suggestion: str = ""
    fingerprint: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "line": self.line,
            "side": self.side,
            "severity": self.severity,
        }
        if self.severity_score:
            data["severity_score"] = self.severity_score
        data["category"] = self.category
        if self.criteria:
            data["criteria"] = list(self.criteria)
        data["message"] = self.message
        if self.suggestion:
            data["suggestion"] = self.suggestion
        data["fingerprint"] = self.fingerprint
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewFinding:
        return cls(
            path=data.get("path") or "",
            line=int(data.get("line") or 0),
            side=data.get("side") or "",
            severity=data.get("severity") or "",
            severity_score=int(data.get("severity_score") or 0),
            category=data.get("category") or "",
            criteria=list(data.get("criteria") or []),
            message=data.get("message") or "",
            suggestion=data.get("suggestion") or "",
            fingerprint=data.get("fingerprint") or "",
        )

    def validate(self) -> None:
        """Raise a FindingValidationError subclass if a required field is bad."""
        if not self.path:
            raise EmptyPathError("path must not be empty")
        if self.line <= 0:
            raise InvalidLineError(f"line must be positive, got {self.line}")
        if self.side not in VALID_SIDES:
            raise InvalidSideError(f'side must be "new" or "old", got {json.dumps(self.side)}')
        if self.severity not in VALID_SEVERITIES:
            raise InvalidSeverityError(
                f"severity must be one of info, warning, error, got {json.dumps(self.severity)}"
            )
        if not self.message:
            raise EmptyMessageError("message must not be empty")


def parse_findings(data: str | bytes) -> list[ReviewFinding]:
    """Parse a JSON array of review findings."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"parsing findings JSON: {exc}") from exc
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("parsing findings JSON: expected an array of findings")
    findings = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError("parsing findings JSON: each finding must be an object")
        findings.append(ReviewFinding.from_dict(item))
    return findings