import pytest

from crobot.platform.base import Platform
from crobot.platform.types import (
    ChangedFile,
    Comment,
    DiffHunk,
    PRContext,
    PRRequest,
    ReviewFinding,
)
from crobot.review.engine import Engine, EngineConfig


def _context():
    return PRContext(
        id=1,
        title="Test PR",
        source_branch="feature",
        target_branch="main",
        head_commit="abc123",
        base_commit="def456",
        files=[
            ChangedFile(path="src/main.go", status="modified"),
            ChangedFile(path="src/util.go", status="added"),
            ChangedFile(path="src/old.go", status="deleted"),
        ],
        diff_hunks=[
            DiffHunk(path="src/main.go", old_start=10, old_lines=5, new_start=10, new_lines=7),
            DiffHunk(path="src/main.go", old_start=50, old_lines=3, new_start=52, new_lines=4),
            DiffHunk(path="src/util.go", old_start=0, old_lines=0, new_start=1, new_lines=20),
            DiffHunk(path="src/old.go", old_start=1, old_lines=10, new_start=0, new_lines=0),
        ],
    )


class FakePlatform(Platform):
    def __init__(self):
        self.pr_context = _context()
        self.pr_context_error = None
        self.bot_comments = []
        self.bot_comments_error = None
        self.posted_comments = []
        self.post_error = None

    def get_pr_context(self, request):
        if self.pr_context_error:
            raise self.pr_context_error
        return self.pr_context

    def get_file_content(self, request):
        return b""

    def list_bot_comments(self, request):
        if self.bot_comments_error:
            raise self.bot_comments_error
        return self.bot_comments

    def list_pr_comments(self, request):
        return []

    def create_inline_comment(self, request, comment):
        if self.post_error:
            raise self.post_error
        self.posted_comments.append(comment)
        return Comment(
            id=f"comment-{len(self.posted_comments)}",
            path=comment.path,
            line=comment.line,
            body=comment.body,
        )

    def delete_comment(self, request, comment_id):
        return None


def _request():
    return PRRequest(workspace="team", repo="repo", pr_number=1)


def _findings():
    return [
        ReviewFinding(
            path="src/main.go", line=12, side="new", severity="warning", category="style",
            message="Consider renaming.", fingerprint="fp-1",
        ),
        ReviewFinding(
            path="src/main.go", line=14, side="new", severity="error", category="bug",
            message="Possible nil deref.", fingerprint="fp-2",
        ),
    ]


def _config(**overrides):
    values = dict(max_comments=25, dry_run=False, bot_label="crobot", severity_threshold="info")
    values.update(overrides)
    return EngineConfig(**values)


def test_dry_run_posts_nothing():
    fake = FakePlatform()
    result = Engine(fake, _config(dry_run=True)).run(_request(), _findings())
    assert fake.posted_comments == []
    assert result.summary.posted == 2
    assert [p.comment_id for p in result.posted] == ["dry-run", "dry-run"]
    assert all('crobot:fp=' in p.rendered_body for p in result.posted)


def test_write_mode_posts_comments():
    fake = FakePlatform()
    result = Engine(fake, _config()).run(_request(), _findings())
    assert len(fake.posted_comments) == 2
    assert result.summary.posted == 2
    assert result.summary.total == 2
    assert [p.comment_id for p in result.posted] == ["comment-1", "comment-2"]
    assert [c.fingerprint for c in fake.posted_comments] == ["fp-1", "fp-2"]
    assert all(p.rendered_body for p in result.posted)
    assert fake.posted_comments[0].body == result.posted[0].rendered_body


def test_max_comments_cap():
    fake = FakePlatform()
    result = Engine(fake, _config(max_comments=1)).run(_request(), _findings())
    assert len(fake.posted_comments) == 1
    assert result.summary.posted == 1
    assert result.summary.max_capped is True
    assert any(s.reason == "max comments limit reached" for s in result.skipped)


def test_all_findings_rejected_by_threshold():
    fake = FakePlatform()
    findings = [
        ReviewFinding(
            path="src/main.go", line=12, side="new", severity="warning", category="style",
            message="Style issue.", fingerprint="fp-1",
        ),
        ReviewFinding(
            path="src/main.go", line=14, side="new", severity="info", category="docs",
            message="Docs note.", fingerprint="fp-2",
        ),
    ]
    result = Engine(fake, _config(severity_threshold="error")).run(_request(), findings)
    assert fake.posted_comments == []
    assert result.summary.posted == 0
    assert result.summary.skipped == 2


def test_duplicates_are_skipped():
    fake = FakePlatform()
    fake.bot_comments = [
        Comment(id="existing-1", body='text [//]: # "crobot:fp=fp-1"', is_bot=True)
    ]
    result = Engine(fake, _config()).run(_request(), _findings())
    assert len(fake.posted_comments) == 1
    assert result.summary.duplicate == 1
    assert result.summary.posted == 1
    assert result.skipped[0].reason == "duplicate: fingerprint already exists"


def test_post_error_records_failures():
    fake = FakePlatform()
    fake.post_error = RuntimeError("API rate limited")
    result = Engine(fake, _config()).run(_request(), _findings())
    assert result.summary.failed == 2
    assert result.summary.posted == 0
    assert [f.error for f in result.failed] == ["API rate limited", "API rate limited"]


def test_get_pr_context_error_propagates():
    fake = FakePlatform()
    fake.pr_context_error = LookupError("not found")
    with pytest.raises(LookupError, match="not found"):
        Engine(fake, _config()).run(_request(), _findings())


def test_list_bot_comments_error_propagates():
    fake = FakePlatform()
    fake.bot_comments_error = RuntimeError("API error")
    with pytest.raises(RuntimeError, match="API error"):
        Engine(fake, _config()).run(_request(), _findings())


def test_empty_findings():
    fake = FakePlatform()
    result = Engine(fake, _config()).run(_request(), [])
    assert result.summary.total == 0
    assert result.summary.posted == 0


def test_max_comments_zero_means_unlimited():
    fake = FakePlatform()
    result = Engine(fake, _config(max_comments=0)).run(_request(), _findings())
    assert len(fake.posted_comments) == 2
    assert result.summary.max_capped is False


def test_missing_fingerprint_is_generated_before_posting():
    fake = FakePlatform()
    finding = ReviewFinding(
        path="src/main.go", line=12, side="new", severity="warning", category="style",
        message="No fingerprint.",
    )
    result = Engine(fake, _config()).run(_request(), [finding])
    assert fake.posted_comments[0].fingerprint.startswith("src/main.go:new:12:")
    assert result.posted[0].finding.fingerprint == fake.posted_comments[0].fingerprint


def test_result_to_dict():
    fake = FakePlatform()
    result = Engine(fake, _config(dry_run=True, max_comments=1)).run(_request(), _findings())
    data = result.to_dict()
    assert data["summary"] == {
        "total": 2,
        "posted": 1,
        "skipped": 1,
        "failed": 0,
        "duplicate": 0,
        "max_capped": True,
    }
    assert data["posted"][0]["comment_id"] == "dry-run"
    assert data["posted"][0]["finding"]["fingerprint"] == "fp-1"
    assert data["skipped"][0]["reason"] == "max comments limit reached"
    assert data["failed"] == []