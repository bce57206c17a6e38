"""Rendering of review findings as markdown comment bodies."""

from __future__ import annotations

import re

from crobot.platform.types import ReviewFinding

SEVERITY_ICONS = {
    "error": "\U0001F534",
    "warning": "\U0001F7E0",
    "info": "\U0001F535",
}

CATEGORY_ICONS = {
    "security": "\U0001F512",
    "bug": "\U0001F41B",
    "performance": "\u26A1",
    "style": "\U0001F3A8",
    "maintainability": "\U0001F527",
    "readability": "\U0001F4D6",
    "formatting": "\U0001F4D0",
    "documentation": "\U0001F4DD",
    "docs": "\U0001F4DD",
    "error-handling": "\U0001F6E1\uFE0F",
    "complexity": "\U0001F9E9",
}

DEFAULT_CATEGORY_ICON = "\U0001F4CC"

_CRITERIA_ICON = "\U0001F4CB"

_FINGERPRINT_RE = re.compile(r'\[//\]: # "crobot:fp=([^"]+)"')


def _category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category.lower(), DEFAULT_CATEGORY_ICON)


def extract_fingerprint(body: str) -> str:
    """Return the hidden fingerprint embedded in a comment body, or ""."""
    match = _FINGERPRINT_RE.search(body)
    return match.group(1) if match else ""


def render_comment(finding: ReviewFinding, bot_label: str) -> str:
    """Return the markdown body of an inline comment for a finding."""
    # Imported here because the fingerprint module reads rendered bodies.
    from crobot.review.dedupe import generate_fingerprint

    parts = [f"{SEVERITY_ICONS.get(finding.severity, '')} **{finding.severity}**"]
    if finding.severity_score > 0:
        parts.append(f" ({finding.severity_score}/10)")
    if finding.category:
        parts.append(f" | {_category_icon(finding.category)} {finding.category}")
    parts.append("\n\n")

    if finding.criteria:
        parts.append(f"{_CRITERIA_ICON} **Criteria:** {', '.join(finding.criteria)}\n\n")

    parts.append(finding.message)
    parts.append("\n")

    if finding.suggestion:
        parts.append(f"\n```suggestion\n{finding.suggestion}\n```\n")

    fingerprint = finding.fingerprint or generate_fingerprint(finding)
    parts.append(f'\n[//]: # "crobot:fp={fingerprint}"')

    if bot_label:
        parts.append(f'\n[//]: # "crobot:bot={bot_label}"')

    return "".join(parts)