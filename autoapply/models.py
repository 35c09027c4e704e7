"""Data models for queued jobs and search candidates."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"
STATUSES: tuple[str, ...] = (PENDING, PROCESSING, COMPLETED, FAILED)

_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {PROCESSING},
    PROCESSING: {COMPLETED, FAILED},
    COMPLETED: set(),
    FAILED: set(),
}

RESULT_FIELDS: tuple[str, ...] = ("tailored_resume", "cover_letter", "questions", "screenshot")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def is_valid_url(url: str) -> bool:
    """Absolute http(s) URL with a host."""
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass
class QuestionAnswer:
    question: str
    answer: str


@dataclass
class CandidateJob:
    """A search hit that has not been deduplicated or stored yet."""

    title: str
    company: str
    url: str
    source: str = "unknown"
    location: str | None = None
    description: str | None = None
    salary: str | None = None
    job_type: str | None = None
    posted_date: str | None = None

    def key(self) -> tuple[str, str]:
        return title_company_key(self.title, self.company)


@dataclass
class Job:
    id: str
    title: str
    company: str
    url: str
    status: str = PENDING
    date_added: str = field(default_factory=utc_now)
    source: str | None = None
    location: str | None = None
    description: str | None = None
    salary: str | None = None
    job_type: str | None = None
    posted_date: str | None = None
    tailored_resume: str | None = None
    cover_letter: str | None = None
    questions: list[QuestionAnswer] | None = None
    screenshot: str | None = None

    def key(self) -> tuple[str, str]:
        return title_company_key(self.title, self.company)

    def transition(self, status: str) -> "Job":
        """Return a copy moved to ``status``; illegal moves raise ValueError.

        Leaving for anything but ``completed`` drops the result fields.
        """
        if status not in _TRANSITIONS.get(self.status, set()):
            raise ValueError(f"Job {self.id}: cannot move {self.status} → {status}")
        moved = replace(self, status=status)
        if status != COMPLETED:
            moved = moved.without_results()
        return moved

    def complete(
        self,
        *,
        tailored_resume: str,
        cover_letter: str,
        questions: list[QuestionAnswer],
        screenshot: str,
    ) -> "Job":
        done = self.transition(COMPLETED)
        return replace(
            done,
            tailored_resume=tailored_resume,
            cover_letter=cover_letter,
            questions=list(questions),
            screenshot=screenshot,
        )

    def without_results(self) -> "Job":
        return replace(self, **{name: None for name in RESULT_FIELDS})

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        """Rebuild a stored record; raises ValueError when it is not a usable job."""
        missing = [name for name in ("id", "title", "company", "url") if not data.get(name)]
        if missing:
            raise ValueError(f"job record missing {', '.join(missing)}")
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if kwargs.get("status", PENDING) not in STATUSES:
            raise ValueError(f"unknown status {kwargs['status']!r}")
        if kwargs.get("questions") is not None:
            kwargs["questions"] = [_question_from(q) for q in kwargs["questions"]]
        return cls(**kwargs)


def _question_from(item: Any) -> QuestionAnswer:
    if isinstance(item, QuestionAnswer):
        return item
    if not isinstance(item, dict):
        raise ValueError(f"question entry is not an object: {item!r}")
    return QuestionAnswer(str(item.get("question", "")), str(item.get("answer", "")))


def title_company_key(title: str, company: str) -> tuple[str, str]:
    return ((title or "").strip().lower(), (company or "").strip().lower())
