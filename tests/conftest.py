"""Shared fixtures: a scripted HTTP session and a sandboxed config."""

import json
from dataclasses import replace
from pathlib import Path

import pytest

from config import PipelineConfig


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        return json.loads(self.text)


def page(issues, total):
    return FakeResponse(200, {"startAt": 0, "maxResults": 50, "total": total, "issues": issues})


class FakeSession:
    """Replays scripted responses; an Exception instance in the script is raised."""

    def __init__(self, script, repeat_last=False):
        self.script = list(script)
        self.repeat_last = repeat_last
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        if not self.script:
            raise AssertionError(f"Unexpected request #{len(self.calls)}: {params}")
        item = self.script[0] if self.repeat_last and len(self.script) == 1 else self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        pass

    @property
    def offsets(self):
        return [call["params"]["startAt"] for call in self.calls]


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    """Config with every path inside tmp_path and a small page size."""
    return replace(
        PipelineConfig(),
        projects=("TEST",),
        base_url="https://jira.example.org/rest/api/2/search",
        page_size=2,
        output_dir=str(tmp_path / "data"),
        checkpoint_file=str(tmp_path / "checkpoint.json"),
        corpus_file=str(tmp_path / "corpus.jsonl"),
        log_file=str(tmp_path / "pipeline.log"),
    )


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


def make_issue(key, summary="S", description="D", issuetype="Bug", comments=()):
    return {
        "key": key,
        "fields": {
            "summary": summary,
            "description": description,
            "issuetype": {"name": issuetype},
            "comment": {"comments": [{"body": body} for body in comments]},
        },
    }


def read_jsonl(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
