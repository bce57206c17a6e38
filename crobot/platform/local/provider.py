"""A platform backed by the local git repository, for pre-push reviews."""

from __future__ import annotations

import os
import subprocess

from crobot.platform.types import ChangedFile, Comment, FileRequest, InlineComment, PRRequest

_SIMPLE_STATUSES = {"A": "added", "D": "deleted", "M": "modified"}


class LocalModeError(RuntimeError):
    """An operation in local mode failed or is not supported."""


def parse_name_status(output: str) -> list[ChangedFile]:
    """Parse `git diff --name-status` output into changed files."""
    files: list[ChangedFile] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        status, path = parts[0], parts[-1]
        changed = ChangedFile(path=path)
        if status in _SIMPLE_STATUSES:
            changed.status = _SIMPLE_STATUSES[status]
        elif status.startswith("R"):
            changed.status = "renamed"
            if len(parts) >= 3:
                changed.old_path = parts[1]
                changed.path = parts[2]
        else:
            changed.status = "modified"
        files.append(changed)
    return files


class LocalProvider:
    """Reads review data from a local git working tree.

    By default changes are taken against the merge-base of base_branch; with
    uncommitted set, only staged and unstaged changes against HEAD count.
    Posting and deleting comments is not supported.
    """

    def __init__(self, base_branch: str, repo_dir: str = ".", uncommitted: bool = False) -> None:
        self.base_branch = base_branch
        self.repo_dir = repo_dir
        self.uncommitted = uncommitted
        # A working tree carries no review comments.
        self._comments: tuple[Comment, ...] = ()

    @classmethod
    def for_uncommitted(cls, repo_dir: str = ".") -> LocalProvider:
        """Return a provider that reviews only uncommitted changes."""
        return cls("", repo_dir, uncommitted=True)

    def _git(self, *args: str) -> bytes:
        """Run git in the repository and return its stripped standard output."""
        try:
            completed = subprocess.run(
                ["git", *args],
                cwd=self.repo_dir,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise LocalModeError(f"git {args[0]}: {exc}") from exc
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise LocalModeError(f"git {args[0]}: {stderr}")
        return completed.stdout.strip()

    @staticmethod
    def _refuse(action: str) -> LocalModeError:
        """Build the error for an action that local mode cannot perform."""
        return LocalModeError(f"local mode does not support {action}")

    def get_file_content(self, request: FileRequest) -> bytes:
        """Return a file's content at a commit, as shown by git."""
        try:
            return self._git("show", f"{request.commit}:{request.path}")
        except LocalModeError as exc:
            raise LocalModeError(
                f"reading {request.path} at {request.commit}: {exc}"
            ) from exc

    def list_bot_comments(self, request: PRRequest) -> list[Comment]:
        """Return the bot's comments; local mode has none."""
        return [comment for comment in self.list_pr_comments(request) if comment.is_bot]

    def list_pr_comments(self, request: PRRequest) -> list[Comment]:
        """Return all comments; local mode has none."""
        return list(self._comments)

    def create_inline_comment(self, request: PRRequest, comment: InlineComment) -> Comment:
        """Always raise: comments cannot be posted in local mode."""
        raise self._refuse("posting comments")

    def delete_comment(self, request: PRRequest, comment_id: str) -> None:
        """Always raise: comments cannot be deleted in local mode."""
        raise self._refuse("deleting comments")

    def repo_name(self) -> str:
        """Return the base name of the repository directory."""
        try:
            absolute = os.path.abspath(self.repo_dir)
        except OSError:
            return "local"
        return os.path.basename(absolute.rstrip(os.sep)) or absolute