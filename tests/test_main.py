import json

import pytest

from workflow_notify.errors import ApiError, RunLookupError, TransportError
from workflow_notify.main import run, set_failed
from workflow_notify.types.run import ResolvedStatus

class DummyGitHub:
    def __init__(self, jobs=None, fail=False, fail_run=None, fail_jobs=None):
        self._jobs = jobs or []
        self._fail = fail
        self._fail_run = fail_run
        self._fail_jobs = fail_jobs
        self.calls = 0
        self.closed = False

    async def get_workflow_run(self, owner, repo, run_id):
        self.calls += 1
        if self._fail:
            raise ApiError("GET /repos/org/repo/actions/runs/42 returned 401")
        if self._fail_run:
            raise self._fail_run
        return {"html_url": "https://x/actions/runs/42"}

    async def list_jobs_for_workflow_run(self, owner, repo, run_id):
        self.calls += 1
        if self._fail_jobs:
            raise self._fail_jobs
        return {"jobs": self._jobs}

    async def close(self):
        self.closed = True

class DummySender:
    def __init__(self, fail=False):
        self.sent = []
        self._fail = fail

    async def __call__(self, uri, payload, timeout=15.0):
        if self._fail:
            raise TransportError("webhook returned 500")
        self.sent.append((uri, payload))

def _env(tmp_path, event=None, **overrides):
    path = tmp_path / "event.json"
    path.write_text(json.dumps(event or {"repository": {"html_url": "https://x", "full_name": "org/repo"}}))
    env = {
        "INPUT_GITHUB-TOKEN": "tok",
        "INPUT_WEBHOOK-URI": "https://hook.test/abc",
        "INPUT_TYPE": "start",
        "INPUT_NAME": "Mona",
        "INPUT_MESSAGE": "deploying",
        "GITHUB_REPOSITORY": "org/repo",
        "GITHUB_RUN_ID": "42",
        "GITHUB_RUN_NUMBER": "7",
        "GITHUB_WORKFLOW": "CI",
        "GITHUB_EVENT_NAME": "push",
        "GITHUB_REF": "refs/heads/main",
        "GITHUB_ACTOR": "octocat",
        "GITHUB_JOB": "build",
        "GITHUB_EVENT_PATH": str(path),
    }
    env.update(overrides)
    return {k: v for k, v in env.items() if v is not None}

def _facts(payload):
    return {f.name: f.value for f in payload.facts}

@pytest.mark.asyncio
async def test_start_notification(tmp_path):
    gh, sender = DummyGitHub(), DummySender()
    code = await run(_env(tmp_path), lambda s: gh, sender)
    assert code == 0
    assert gh.calls == 1 and gh.closed
    uri, payload = sender.sent[0]
    assert uri == "https://hook.test/abc"
    assert _facts(payload) == {
        "Branch": "[https://x/tree/refs/heads/main](https://x/tree/refs/heads/main)",
        "Workflow run details": "[https://x/actions/runs/42](https://x/actions/runs/42)",
    }

@pytest.mark.asyncio
async def test_finish_success_publishes_site(tmp_path):
    jobs = [{"name": "build", "steps": [
        {"name": "a", "status": "completed", "conclusion": "success"},
        {"name": "b", "status": "completed", "conclusion": "success"},
    ]}]
    gh, sender = DummyGitHub(jobs), DummySender()
    env = _env(tmp_path, INPUT_TYPE="finish", INPUT_STATUS="failure",
               **{"INPUT_PUBLISH-URL": "https://site.example"})
    assert await run(env, lambda s: gh, sender) == 0
    _uri, payload = sender.sent[0]
    facts = _facts(payload)
    assert facts["Published site"] == "[https://site.example](https://site.example)"
    assert "Workflow run details" not in facts
    assert payload.summary.endswith(ResolvedStatus.SUCCEEDED.label)

@pytest.mark.asyncio
async def test_finish_pull_request(tmp_path):
    event = {
        "repository": {"html_url": "https://x", "full_name": "org/repo"},
        "pull_request": {"html_url": "https://x/pull/3"},
    }
    jobs = [{"name": "build", "steps": [{"name": "a", "status": "completed", "conclusion": "failure"}]}]
    gh, sender = DummyGitHub(jobs), DummySender()
    env = _env(tmp_path, event=event, INPUT_TYPE="finish", INPUT_STATUS="failure",
               GITHUB_EVENT_NAME="pull_request")
    assert await run(env, lambda s: gh, sender) == 0
    _uri, payload = sender.sent[0]
    assert list(_facts(payload)) == ["Pull request", "Workflow run details"]
    assert payload.theme_color == "C23B23"

@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["INPUT_GITHUB-TOKEN", "INPUT_WEBHOOK-URI"])
async def test_missing_required_input_makes_no_calls(tmp_path, capsys, missing):
    gh, sender = DummyGitHub(), DummySender()
    env = _env(tmp_path, **{missing: None})
    assert await run(env, lambda s: gh, sender) == 1
    assert gh.calls == 0
    assert sender.sent == []
    assert "::error::" in capsys.readouterr().out

@pytest.mark.asyncio
async def test_api_error_reported_and_nothing_sent(tmp_path, capsys):
    gh, sender = DummyGitHub(fail=True), DummySender()
    assert await run(_env(tmp_path), lambda s: gh, sender) == 1
    assert sender.sent == []
    assert gh.closed
    assert "::error::GET /repos/org/repo/actions/runs/42 returned 401" in capsys.readouterr().out

@pytest.mark.asyncio
async def test_transport_error_reported(tmp_path, capsys):
    gh, sender = DummyGitHub(), DummySender(fail=True)
    assert await run(_env(tmp_path), lambda s: gh, sender) == 1
    assert "::error::webhook returned 500" in capsys.readouterr().out

@pytest.mark.asyncio
async def test_finish_jobs_listing_error_sends_nothing(tmp_path, capsys):
    gh, sender = DummyGitHub(fail_jobs=ApiError("jobs listing for run 42 failed")), DummySender()
    env = _env(tmp_path, INPUT_TYPE="finish", INPUT_STATUS="success")
    assert await run(env, lambda s: gh, sender) == 1
    assert sender.sent == []
    assert gh.closed
    assert "::error::jobs listing for run 42 failed" in capsys.readouterr().out

@pytest.mark.asyncio
async def test_finish_run_lookup_error_sends_nothing(tmp_path, capsys):
    error = RunLookupError("workflow run 42 lookup failed: GET returned 404")
    gh, sender = DummyGitHub(fail_run=error), DummySender()
    env = _env(tmp_path, INPUT_TYPE="finish", INPUT_STATUS="success")
    assert await run(env, lambda s: gh, sender) == 1
    assert sender.sent == []
    assert gh.closed
    assert "::error::workflow run 42 lookup failed" in capsys.readouterr().out

def test_set_failed_escapes_command_data(capsys):
    set_failed("line1\r\nline2 100%")
    assert capsys.readouterr().out == "::error::line1%0D%0Aline2 100%25\n"
