import pytest

from crobot.platform.types import ReviewFinding
from crobot.review.render import extract_fingerprint, render_comment

RED = "\U0001F534"
ORANGE = "\U0001F7E0"
BLUE = "\U0001F535"
LOCK = "\U0001F512"
BUG = "\U0001F41B"
ZAP = "\u26A1"
PALETTE = "\U0001F3A8"
CLIPBOARD = "\U0001F4CB"
PIN = "\U0001F4CC"


@pytest.mark.parametrize(
    "finding, expected",
    [
        (
            ReviewFinding(
                path="src/auth.ts",
                line=42,
                side="new",
                severity="warning",
                severity_score=7,
                category="security",
                criteria=["Security", "Maintainability"],
                message="Logging the raw token can leak credentials.",
                suggestion='log.Info("auth completed")',
                fingerprint="src/auth.ts:new:42:token-log",
            ),
            f"{ORANGE} **warning** (7/10) | {LOCK} security\n\n"
            f"{CLIPBOARD} **Criteria:** Security, Maintainability\n\n"
            "Logging the raw token can leak credentials.\n"
            '\n```suggestion\nlog.Info("auth completed")\n```\n'
            '\n[//]: # "crobot:fp=src/auth.ts:new:42:token-log"'
            '\n[//]: # "crobot:bot=crobot"',
        ),
        (
            ReviewFinding(
                path="main.go",
                line=15,
                side="new",
                severity="error",
                severity_score=9,
                category="bug",
                criteria=["Reliability"],
                message="Nil pointer dereference on line 15.",
                fingerprint="main.go:new:15:nil-deref",
            ),
            f"{RED} **error** (9/10) | {BUG} bug\n\n"
            f"{CLIPBOARD} **Criteria:** Reliability\n\n"
            "Nil pointer dereference on line 15.\n"
            '\n[//]: # "crobot:fp=main.go:new:15:nil-deref"'
            '\n[//]: # "crobot:bot=crobot"',
        ),
        (
            ReviewFinding(
                path="util.go",
                line=8,
                side="new",
                severity="info",
                severity_score=3,
                category="style",
                criteria=["Readability"],
                message="Consider using a constant here.",
                fingerprint="util.go:new:8:use-const",
            ),
            f"{BLUE} **info** (3/10) | {PALETTE} style\n\n"
            f"{CLIPBOARD} **Criteria:** Readability\n\n"
            "Consider using a constant here.\n"
            '\n[//]: # "crobot:fp=util.go:new:8:use-const"'
            '\n[//]: # "crobot:bot=crobot"',
        ),
        (
            ReviewFinding(
                path="special.go",
                line=10,
                side="new",
                severity="warning",
                severity_score=5,
                category="performance",
                criteria=["Performance", "Maintainability"],
                message='String contains "special" <chars> & entities.',
                suggestion="use &amp; properly",
                fingerprint="special.go:new:10:special-fp",
            ),
            f"{ORANGE} **warning** (5/10) | {ZAP} performance\n\n"
            f"{CLIPBOARD} **Criteria:** Performance, Maintainability\n\n"
            'String contains "special" <chars> & entities.\n'
            "\n```suggestion\nuse &amp; properly\n```\n"
            '\n[//]: # "crobot:fp=special.go:new:10:special-fp"'
            '\n[//]: # "crobot:bot=crobot"',
        ),
    ],
    ids=["warning_with_suggestion", "error_no_suggestion", "info_no_suggestion", "special_chars"],
)
def test_render_comment_golden(finding, expected):
    assert render_comment(finding, "crobot") == expected


def test_render_comment_no_fingerprint_generates_one():
    finding = ReviewFinding(
        path="a.go", line=1, side="new", severity="info", category="style", message="test msg"
    )
    got = render_comment(finding, "crobot")
    assert '[//]: # "crobot:fp=' in got
    assert extract_fingerprint(got).startswith("a.go:new:1:")


def test_render_comment_no_category():
    finding = ReviewFinding(
        path="a.go",
        line=1,
        side="new",
        severity="warning",
        category="",
        message="no category here",
        fingerprint="fp-1",
    )
    got = render_comment(finding, "crobot")
    assert " | " not in got
    assert "**warning**" in got


def test_render_comment_without_bot_label_has_no_bot_line():
    finding = ReviewFinding(
        path="a.go", line=1, side="new", severity="info", message="m", fingerprint="fp-9"
    )
    got = render_comment(finding, "")
    assert "crobot:bot=" not in got
    assert got.endswith('[//]: # "crobot:fp=fp-9"')


def test_render_comment_unknown_category_uses_pin_and_is_case_insensitive():
    unknown = ReviewFinding(
        path="a.go", line=1, side="new", severity="info", category="weird", message="m",
        fingerprint="fp",
    )
    upper = ReviewFinding(
        path="a.go", line=1, side="new", severity="info", category="BUG", message="m",
        fingerprint="fp",
    )
    assert render_comment(unknown, "").startswith(f"{BLUE} **info** | {PIN} weird\n\n")
    assert render_comment(upper, "").startswith(f"{BLUE} **info** | {BUG} BUG\n\n")


@pytest.mark.parametrize(
    "body, expected",
    [
        ('some text\n\n[//]: # "crobot:fp=abc123"', "abc123"),
        ('text [//]: # "crobot:fp=path.go:new:42:deadbeef"', "path.go:new:42:deadbeef"),
        ("just a plain comment", ""),
        ("", ""),
    ],
)
def test_extract_fingerprint(body, expected):
    assert extract_fingerprint(body) == expected


def test_extract_fingerprint_round_trips_rendered_body():
    finding = ReviewFinding(
        path="x.go", line=3, side="old", severity="error", message="m", fingerprint="x.go:old:3:ff"
    )
    assert extract_fingerprint(render_comment(finding, "crobot")) == "x.go:old:3:ff"