"""Fingerprinting and deduplication of review findings."""

from __future__ import annotations

import dataclasses
import hashlib
from collections.abc import Iterable

from crobot.platform.types import Comment, ReviewFinding
from crobot.review.render import extract_fingerprint


def generate_fingerprint(finding: ReviewFinding) -> str:
    """Return "path:side:line:hash", hashing the trimmed message."""
    digest = hashlib.sha256(finding.message.strip().encode("utf-8")).digest()
    return f"{finding.path}:{finding.side}:{finding.line}:{digest[:4].hex()}"


def dedupe_findings(
    findings: Iterable[ReviewFinding], existing: Iterable[Comment] | None
) -> tuple[list[ReviewFinding], list[ReviewFinding]]:
    """Split findings into those not yet posted and those already posted.

    Every returned finding carries a fingerprint, generated when missing.
    """
    known = set()
    for comment in existing or ():
        fingerprint = comment.fingerprint or extract_fingerprint(comment.body)
        if fingerprint:
            known.add(fingerprint)

    new_findings: list[ReviewFinding] = []
    duplicates: list[ReviewFinding] = []
    for finding in findings:
        if not finding.fingerprint:
            finding = dataclasses.replace(finding, fingerprint=generate_fingerprint(finding))
        if finding.fingerprint in known:
            duplicates.append(finding)
        else:
            new_findings.append(finding)
    return new_findings, duplicates