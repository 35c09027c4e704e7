"""Job queue persisted as a JSON document, with advisory file locking.

Every read-modify-write cycle holds an exclusive ``fcntl`` lock on a sidecar
``.lock`` file and rewrites the document through a temp file, so ``replace``
only ever overwrites its own record. Writers that bypass this class get
last-writer-wins over the whole document. Requires a Unix platform (``fcntl``).
"""
from __future__ import annotations

import fcntl
import json
import os
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from autoapply.config import JOBS_PATH
from autoapply.log import get_logger
from autoapply.models import PENDING, PROCESSING, Job, is_valid_url, utc_now

log = get_logger(__name__)

PROVENANCE_FIELDS: tuple[str, ...] = (
    "source", "location", "description", "salary", "job_type", "posted_date",
)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def new_job_id() -> str:
    return uuid.uuid4().hex


class JobStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or JOBS_PATH)
        self._lock_path = self.path.with_suffix(self.path.suffix + ".lock")

    @contextmanager
    def _locked(self, exclusive: bool = True) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "a+") as lf:
            _lock(lf, exclusive=exclusive)
            try:
                yield
            finally:
                _unlock(lf)

    def _load(self) -> tuple[list[Job], list[Any]]:
        """Parsed jobs plus any raw records that could not be parsed.

        Unparseable records are carried through writes untouched. A document
        that is not a JSON list is moved aside to ``<name>.corrupt``.
        """
        if not self.path.exists():
            return [], []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            log.error("Error reading jobs from %s: %s", self.path, exc)
            self._quarantine()
            return [], []
        if not isinstance(raw, list):
            log.error("Jobs document %s is not a list", self.path)
            self._quarantine()
            return [], []

        jobs: list[Job] = []
        unreadable: list[Any] = []
        for item in raw:
            try:
                if not isinstance(item, dict):
                    raise ValueError("record is not an object")
                jobs.append(Job.from_dict(item))
            except (TypeError, ValueError) as exc:
                log.error("Skipping unreadable job record in %s: %s", self.path, exc)
                unreadable.append(item)
        return jobs, unreadable

    def _quarantine(self) -> None:
        aside = self.path.with_suffix(self.path.suffix + ".corrupt")
        os.replace(self.path, aside)
        log.error("Moved unreadable jobs document to %s", aside)

    def _read(self) -> list[Job]:
        return self._load()[0]

    def _write(self, jobs: list[Job], unreadable: list[Any] | None = None) -> None:
        records = [j.to_dict() for j in jobs] + list(unreadable or [])
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def list_all(self) -> list[Job]:
        with self._locked(exclusive=False):
            return self._read()

    def get(self, job_id: str) -> Job | None:
        for job in self.list_all():
            if job.id == job_id:
                return job
        return None

    def append(self, title: str, company: str, url: str, **provenance: str | None) -> Job:
        """Create a pending job. Title, company and an absolute URL are required."""
        title, company, url = ((value or "").strip() for value in (title, company, url))
        if not title or not company or not url:
            raise ValueError("title, company and url are required")
        if not is_valid_url(url):
            raise ValueError(f"Not an absolute http(s) URL: {url!r}")
        unknown = set(provenance) - set(PROVENANCE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")

        job = Job(
            id=new_job_id(),
            title=title,
            company=company,
            url=url,
            status=PENDING,
            date_added=utc_now(),
            **provenance,
        )
        with self._locked():
            jobs, unreadable = self._load()
            jobs.append(job)
            self._write(jobs, unreadable)
        log.info("Added job %s: %s @ %s", job.id, job.title, job.company)
        return job

    def add_many(self, new_jobs: list[Job]) -> list[Job]:
        if not new_jobs:
            return []
        with self._locked():
            jobs, unreadable = self._load()
            taken = {j.id for j in jobs}
            clashes = [j.id for j in new_jobs if j.id in taken]
            if clashes:
                raise ValueError(f"Duplicate job ids: {', '.join(clashes)}")
            jobs.extend(new_jobs)
            self._write(jobs, unreadable)
        log.debug("Appended %d job(s)", len(new_jobs))
        return new_jobs

    def replace(self, job: Job) -> bool:
        """Overwrite the record with ``job.id``. Returns False (and logs) if it is gone."""
        with self._locked():
            jobs, unreadable = self._load()
            for i, existing in enumerate(jobs):
                if existing.id == job.id:
                    jobs[i] = job
                    self._write(jobs, unreadable)
                    log.debug("Updated %s → %s", job.id, job.status)
                    return True
        log.warning("Cannot update job %s: not in store", job.id)
        return False

    def claim(self, job_id: str) -> Job | None:
        """Move a pending job to processing and persist it, in one locked step.

        Returns None when the job is missing or no longer pending, so two runs
        never pick up the same record.
        """
        with self._locked():
            jobs, unreadable = self._load()
            for i, existing in enumerate(jobs):
                if existing.id != job_id:
                    continue
                if existing.status != PENDING:
                    log.debug("Job %s is %s, not claiming it", job_id, existing.status)
                    return None
                claimed = existing.transition(PROCESSING)
                jobs[i] = claimed
                self._write(jobs, unreadable)
                return claimed
        return None

    def requeue(self, job_id: str) -> Job:
        """Reset any job back to pending, dropping its results."""
        job = self.get(job_id)
        if job is None:
            raise KeyError(job_id)
        reset = job.without_results()
        reset.status = PENDING
        self.replace(reset)
        log.info("Requeued job %s (was %s)", job_id, job.status)
        return reset
