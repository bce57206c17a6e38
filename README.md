# crobot

A library for turning code-review findings into inline pull request
comments. It checks findings against the diff hunks of a pull request, drops
the ones already posted, caps how many are posted, renders each one as
markdown with a hidden fingerprint, and posts it through a platform backend.

## Installation

```
pip install crobot
```

## Findings

A finding is a `ReviewFinding` from `crobot.platform.types`: path, line,
side (`"new"` or `"old"`), severity (`"info"`, `"warning"`, `"error"`),
optional severity score, category, criteria, message, optional suggestion
and fingerprint. `ReviewFinding.validate()` raises a subclass of
`FindingValidationError` (`EmptyPathError`, `InvalidLineError`,
`InvalidSideError`, `InvalidSeverityError`, `EmptyMessageError`) when a
field is bad. `parse_findings` loads a JSON array of findings:

```python
from crobot.platform.types import parse_findings

with open("findings.json", "rb") as fh:
    findings = parse_findings(fh.read())
```

All types in `crobot.platform.types` have `to_dict` and `from_dict` for JSON
exchange.

## Running a review

`crobot.review.engine.Engine` validates, deduplicates, caps, renders and
posts findings. It takes a platform object and an `EngineConfig`
(`max_comments`, where 0 means no limit; `dry_run`; `bot_label`;
`severity_threshold`).

`Engine.run_with_context` works from a `PRContext` you supply, and needs only
`list_bot_comments` and `create_inline_comment` from the platform. Both
backends below provide those.

```python
from crobot.platform.github.client import GitHubClient
from crobot.platform.github.transport import GitHubConfig
from crobot.platform.prurl import parse_pr_url
from crobot.platform.types import DiffHunk, PRContext
from crobot.review.engine import Engine, EngineConfig

client = GitHubClient(GitHubConfig(token="token"))
request = parse_pr_url("https://github.com/owner/repo/pull/42")

context = PRContext(
    id=request.pr_number,
    files=client.changed_files(request),
    diff_hunks=[DiffHunk(path="src/main.py", old_start=10, old_lines=5,
                         new_start=10, new_lines=7)],
)

engine = Engine(client, EngineConfig(
    max_comments=25,
    dry_run=True,
    bot_label="crobot",
    severity_threshold="info",
))
result = engine.run_with_context(request, context, findings)
print(result.to_dict()["summary"])
```

With `dry_run=True` nothing is posted: every accepted finding appears in
`result.posted` with the comment id `"dry-run"` and its rendered body.
Rejected, duplicate and over-the-limit findings go to `result.skipped` with
a reason; failed posts go to `result.failed`.

`Engine.run` fetches the context itself through the platform's
`get_pr_context`, so it needs a platform that has one, such as a subclass of
`crobot.platform.base.Platform`.

The review steps are also available on their own:

- `crobot.review.validate.validate_findings(findings, context, severity_threshold)`
  returns valid findings and `RejectedFinding` entries.
- `crobot.review.dedupe.dedupe_findings(findings, existing)` splits findings
  into new ones and duplicates; `generate_fingerprint` gives a stable
  `path:side:line:hash` fingerprint.
- `crobot.review.render.render_comment(finding, bot_label)` produces the
  comment markdown and `extract_fingerprint(body)` reads the fingerprint back.

## GitHub

`crobot.platform.github.client.GitHubClient` talks to the GitHub REST API
using a bearer token (`GitHubConfig`: `token`, default `owner`, `base_url`,
`session`, `timeout`). It offers `changed_files`, `head_commit`,
`get_file_content`, `list_bot_comments`, `list_pr_comments`,
`create_inline_comment` and `delete_comment`. Listings follow `Link`
pagination (only on the configured host); rate-limited responses are retried
up to three times with backoff. Failures raise `GitHubError`, which carries
the HTTP `status_code` where there is one.

## Local repository

`crobot.platform.local.provider.LocalProvider(base_branch, repo_dir)` reads
from a local git repository: `get_file_content` shows a file at a commit via
`git show`, `repo_name()` returns the repository directory's name, and the
comment listings are always empty. `LocalProvider.for_uncommitted(repo_dir)`
builds one for uncommitted changes. Posting or deleting comments raises
`LocalModeError`. `parse_name_status` parses `git diff --name-status`
output into `ChangedFile` entries.

## Other helpers

- `crobot.platform.prurl`: `parse_pr_url` for Bitbucket and GitHub pull
  request URLs (raises `PRURLError`), `is_pr_url`, `platform_from_url`.
- `crobot.platform.snippet.extract_snippet(content, path, commit, line, context_size)`
  returns a `Snippet` of the lines around a line (raises `SnippetError`).

## What this package does not do

- It does not parse unified diffs. Neither `GitHubClient` nor
  `LocalProvider` builds a full `PRContext`: you supply the diff hunks
  yourself and call `Engine.run_with_context`.
- It has no Bitbucket backend; Bitbucket URLs can be parsed but not acted on.
- It has no command-line program and no server; it is a library only.