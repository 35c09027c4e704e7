"""Shared fixtures: a temp job store and scripted stand-ins for the external tools."""
from __future__ import annotations

import copy
from pathlib import Path

import pytest

from autoapply.config import DEFAULT_SETTINGS
from autoapply.errors import ExternalToolError
from autoapply.store import JobStore


class FakeCapture:
    """Writes a placeholder PNG instead of launching a browser."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[str] = []

    def capture(self, url: str, dest: Path) -> Path:
        self.calls.append(url)
        if url in self.fail_on or "invalid" in url:
            raise ExternalToolError(f"Render failed for {url}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(b"\x89PNG\r\n\x1a\nfake")
        return dest


class FakeOCR:
    name = "fake"

    def __init__(self, text: str = "Apply now. Why do you want to work here?") -> None:
        self.text = text
        self.calls: list[Path] = []

    def extract_text(self, image_path: Path) -> str:
        self.calls.append(image_path)
        return self.text


class FakeLLM:
    """Answers by prompt kind; ``errors`` maps a kind to an exception to raise."""

    name = "fake"

    def __init__(self, questions_response: str | None = None, errors: dict | None = None) -> None:
        self.questions_response = questions_response or (
            'Sure:\n[{"question": "Why do you want to work here?", "answer": "Mission fit."}]'
        )
        self.errors = errors or {}
        self.prompts: list[str] = []

    @staticmethod
    def kind(prompt: str) -> str:
        if prompt.startswith("Based on this job posting"):
            return "resume"
        if prompt.startswith("Write a professional cover letter"):
            return "cover_letter"
        return "questions"

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        kind = self.kind(prompt)
        if kind in self.errors:
            raise self.errors[kind]
        if kind == "resume":
            return "TAILORED RESUME"
        if kind == "cover_letter":
            return "Dear Hiring Team, ..."
        return self.questions_response


@pytest.fixture
def store(tmp_path) -> JobStore:
    return JobStore(tmp_path / "jobs.json")


@pytest.fixture
def resume_file(tmp_path) -> Path:
    path = tmp_path / "resume.txt"
    path.write_text("Jane Doe\nPython, Go, PostgreSQL. 6 years building APIs.", encoding="utf-8")
    return path


@pytest.fixture
def config(resume_file) -> dict:
    cfg = copy.deepcopy(DEFAULT_SETTINGS)
    cfg["llm"].update(provider="groq", api_key="test-key", model="llama3-8b-8192")
    cfg["resume"]["path"] = str(resume_file)
    return cfg


@pytest.fixture
def fake_capture() -> FakeCapture:
    return FakeCapture()


@pytest.fixture
def fake_ocr() -> FakeOCR:
    return FakeOCR()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()
