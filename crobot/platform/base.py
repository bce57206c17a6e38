"""The contract every code-hosting integration satisfies."""

from __future__ import annotations

import abc

from crobot.platform.types import (
    Comment,
    FileRequest,
    InlineComment,
    PRContext,
    PRRequest,
)


class Platform(abc.ABC):
    """A code-hosting platform that review findings can be posted to."""

    @abc.abstractmethod
    def get_pr_context(self, request: PRRequest) -> PRContext:
        """Return metadata, changed files and diff hunks of a pull request."""

    @abc.abstractmethod
    def get_file_content(self, request: FileRequest) -> bytes:
        """Return the raw content of a file at a specific commit."""

    @abc.abstractmethod
    def list_bot_comments(self, request: PRRequest) -> list[Comment]:
        """Return the comments this bot has already posted on a pull request."""

    @abc.abstractmethod
    def list_pr_comments(self, request: PRRequest) -> list[Comment]:
        """Return all inline comments on a pull request."""

    @abc.abstractmethod
    def create_inline_comment(self, request: PRRequest, comment: InlineComment) -> Comment:
        """Post a single inline comment and return it as stored."""

    @abc.abstractmethod
    def delete_comment(self, request: PRRequest, comment_id: str) -> None:
        """Remove a previously posted comment."""