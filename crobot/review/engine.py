"""The review engine: validate, dedupe, render and post findings."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from crobot.platform.base import Platform
from crobot.platform.types import InlineComment, PRContext, PRRequest, ReviewFinding
from crobot.review.dedupe import dedupe_findings, generate_fingerprint
from crobot.review.render import render_comment
from crobot.review.validate import validate_findings

DRY_RUN_ID = "dry-run"
DUPLICATE_REASON = "duplicate: fingerprint already exists"
MAX_COMMENTS_REASON = "max comments limit reached"


@dataclass
class EngineConfig:
    """Settings of a review run.

    max_comments of 0 means no limit. severity_threshold is one of
    "info", "warning" or "error".
    """

    max_comments: int = 0
    dry_run: bool = False
    bot_label: str = ""
    severity_threshold: str = ""


@dataclass
class PostedComment:
    """A finding that was posted, or would be in a dry run."""

    finding: ReviewFinding
    comment_id: str
    rendered_body: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "finding": self.finding.to_dict(),
            "comment_id": self.comment_id,
            "rendered_body": self.rendered_body,
        }


@dataclass
class SkippedComment:
    """A finding that was not posted, with the reason."""

    finding: ReviewFinding
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"finding": self.finding.to_dict(), "reason": self.reason}


@dataclass
class FailedComment:
    """A finding whose post attempt failed."""

    finding: ReviewFinding
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"finding": self.finding.to_dict(), "error": self.error}


@dataclass
class ReviewSummary:
    """Aggregate counts of a review run."""

    total: int = 0
    posted: int = 0
    skipped: int = 0
    failed: int = 0
    duplicate: int = 0
    max_capped: bool = False
    agent: str = ""
    model: str = ""
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "total": self.total,
            "posted": self.posted,
            "skipped": self.skipped,
            "failed": self.failed,
            "duplicate": self.duplicate,
            "max_capped": self.max_capped,
        }
        if self.agent:
            data["agent"] = self.agent
        if self.model:
            data["model"] = self.model
        if self.duration_ms:
            data["duration_ms"] = self.duration_ms
        return data


@dataclass
class ReviewResult:
    """The outcome of a review run."""

    posted: list[PostedComment] = field(default_factory=list)
    skipped: list[SkippedComment] = field(default_factory=list)
    failed: list[FailedComment] = field(default_factory=list)
    summary: ReviewSummary = field(default_factory=ReviewSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "posted": [p.to_dict() for p in self.posted],
            "skipped": [s.to_dict() for s in self.skipped],
            "failed": [f.to_dict() for f in self.failed],
            "summary": self.summary.to_dict(),
        }


class Engine:
    """Runs the full review pipeline against a platform."""

    def __init__(self, platform: Platform, config: EngineConfig) -> None:
        self.platform = platform
        self.config = config

    def run(self, request: PRRequest, findings: Sequence[ReviewFinding]) -> ReviewResult:
        """Fetch the PR context, then run the pipeline."""
        context = self.platform.get_pr_context(request)
        return self.run_with_context(request, context, findings)

    def run_with_context(
        self,
        request: PRRequest,
        context: PRContext,
        findings: Sequence[ReviewFinding],
    ) -> ReviewResult:
        """Run the pipeline with an already fetched PR context."""
        findings = list(findings or ())
        result = ReviewResult()
        result.summary.total = len(findings)

        validated, rejected = validate_findings(findings, context, self.config.severity_threshold)
        result.skipped.extend(SkippedComment(r.finding, r.reason) for r in rejected)

        existing = self.platform.list_bot_comments(request)

        new_findings, duplicates = dedupe_findings(validated, existing)
        result.summary.duplicate = len(duplicates)
        result.skipped.extend(SkippedComment(d, DUPLICATE_REASON) for d in duplicates)

        limit = self.config.max_comments
        if limit > 0 and len(new_findings) > limit:
            result.summary.max_capped = True
            result.skipped.extend(
                SkippedComment(f, MAX_COMMENTS_REASON) for f in new_findings[limit:]
            )
            new_findings = new_findings[:limit]

        for finding in new_findings:
            body = render_comment(finding, self.config.bot_label)

            if self.config.dry_run:
                result.posted.append(PostedComment(finding, DRY_RUN_ID, body))
                continue

            if not finding.fingerprint:
                finding = dataclasses.replace(finding, fingerprint=generate_fingerprint(finding))

            comment = InlineComment(
                path=finding.path,
                line=finding.line,
                side=finding.side,
                body=body,
                fingerprint=finding.fingerprint,
            )
            try:
                posted = self.platform.create_inline_comment(request, comment)
            except Exception as exc:  # noqa: BLE001 - each failure is recorded, not fatal
                result.failed.append(FailedComment(finding, str(exc)))
                continue
            result.posted.append(PostedComment(finding, posted.id, body))

        result.summary.posted = len(result.posted)
        result.summary.skipped = len(result.skipped)
        result.summary.failed = len(result.failed)
        return result