"""Validation of review findings against a pull request's diff."""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from crobot.platform.types import (
    DiffHunk,
    FindingValidationError,
    PRContext,
    ReviewFinding,
)

SEVERITY_RANK = {"info": 0, "warning": 1, "error": 2}


@dataclass
class RejectedFinding:
    """A finding paired with the reason it was rejected."""

    finding: ReviewFinding
    reason: str


def _line_in_hunks(line: int, side: str, hunks: Iterable[DiffHunk]) -> bool:
    for hunk in hunks:
        if side == "new" and hunk.new_start <= line < hunk.new_start + hunk.new_lines:
            return True
        if side == "old" and hunk.old_start <= line < hunk.old_start + hunk.old_lines:
            return True
    return False


def validate_findings(
    findings: Iterable[ReviewFinding] | None,
    context: PRContext,
    severity_threshold: str,
) -> tuple[list[ReviewFinding], list[RejectedFinding]]:
    """Split findings into those that can be posted and those that cannot.

    A finding is valid when its fields validate, its severity meets the
    threshold, its path is a changed file and its line lies within a diff hunk
    for that path on the finding's side.
    """
    changed = {f.path for f in context.files}
    hunks_by_path: dict[str, list[DiffHunk]] = defaultdict(list)
    for hunk in context.diff_hunks:
        hunks_by_path[hunk.path].append(hunk)

    threshold_rank = SEVERITY_RANK.get(severity_threshold.lower(), 0)

    valid: list[ReviewFinding] = []
    rejected: list[RejectedFinding] = []
    for finding in findings or ():
        reason = None
        try:
            finding.validate()
        except FindingValidationError as exc:
            reason = f"validation error: {exc}"
        else:
            rank = SEVERITY_RANK.get(finding.severity)
            if rank is None:
                reason = f"unknown severity: {json.dumps(finding.severity)}"
            elif rank < threshold_rank:
                reason = (
                    f"severity {json.dumps(finding.severity)} below threshold "
                    f"{json.dumps(severity_threshold)}"
                )
            elif finding.path not in changed:
                reason = f"path {json.dumps(finding.path)} not in changed files"
            elif not _line_in_hunks(finding.line, finding.side, hunks_by_path.get(finding.path, ())):
                reason = (
                    f"line {finding.line} (side {json.dumps(finding.side)}) not within any "
                    f"diff hunk for {json.dumps(finding.path)}"
                )

        if reason is None:
            valid.append(finding)
        else:
            rejected.append(RejectedFinding(finding=finding, reason=reason))

    return valid, rejected