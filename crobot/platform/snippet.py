"""Extraction of line-centred snippets from file content."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any


class SnippetError(ValueError):
    """A snippet could not be extracted."""


@dataclass
class Snippet:
    """A slice of a file around a line of interest."""

    path: str
    commit: str
    start_line: int
    end_line: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_snippet(
    content: bytes | str, path: str, commit: str, line: int, context_size: int
) -> Snippet:
    """Return the lines around a 1-based line, context_size lines either side."""
    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    if not lines:
        raise SnippetError(f"file {json.dumps(path)} is empty")
    if line > len(lines):
        raise SnippetError(f"line {line} is out of range (file has {len(lines)} lines)")

    start_line = max(line - context_size, 1)
    end_line = min(line + context_size, len(lines))
    if end_line < start_line - 1:
        raise SnippetError(f"line {line} is out of range (file has {len(lines)} lines)")

    return Snippet(
        path=path,
        commit=commit,
        start_line=start_line,
        end_line=end_line,
        content="\n".join(lines[start_line - 1 : end_line]),
    )