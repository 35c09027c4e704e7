"""Sample postings for boards that cannot be scraped directly (LinkedIn, Indeed).

Output depends only on the query, location and today's date, so repeated runs
on the same day produce the same URLs and import as duplicates.
"""
from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

from autoapply.log import get_logger
from autoapply.models import CandidateJob
from autoapply.sources.base import JobSearchBase

log = get_logger(__name__)


def _posting_id(*parts: str, length: int = 9) -> str:
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return hashlib.sha256("|".join((today,) + parts).encode()).hexdigest()[:length]


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat(timespec="seconds")


class LinkedInMockSource(JobSearchBase):
    name = "linkedin"

    _COMPANIES = (
        "Tech Innovations Inc",
        "Digital Solutions Corp",
        "Future Systems Ltd",
        "Advanced Technologies",
        "Global Tech Partners",
    )

    def search(self, query: str, location: str, limit: int = 10) -> list[CandidateJob]:
        log.info("Generating LinkedIn jobs for %r in %r", query, location)
        titles = [f"Senior {query}", f"{query} Specialist", f"Lead {query}"]
        jobs: list[CandidateJob] = []
        for i, title in enumerate(titles):
            posting = int(_posting_id("linkedin", query, location, str(i)), 16) % 1_000_000
            jobs.append(
                CandidateJob(
                    title=title,
                    company=self._COMPANIES[i],
                    url=f"https://www.linkedin.com/jobs/view/{posting}",
                    source="LinkedIn",
                    location=location,
                    description=(
                        f"We are seeking a talented {title.lower()} to join our dynamic team. "
                        "This role involves working with cutting-edge technologies and collaborating "
                        "with cross-functional teams to deliver innovative solutions."
                    ),
                    salary=f"${60000 + i * 20000:,} - ${80000 + i * 20000:,}",
                    job_type="Full-time",
                    posted_date=_days_ago(i),
                )
            )
        return jobs[:limit]


class IndeedMockSource(JobSearchBase):
    name = "indeed"

    def search(self, query: str, location: str, limit: int = 10) -> list[CandidateJob]:
        log.info("Generating Indeed jobs for %r in %r", query, location)
        jobs = [
            CandidateJob(
                title=f"{query} Professional",
                company="Enterprise Solutions",
                url=f"https://www.indeed.com/viewjob?jk={_posting_id('indeed', query, location, '0')}",
                source="Indeed",
                location=location,
                description=(
                    f"We are seeking an experienced {query.lower()} to join our growing team. "
                    "The ideal candidate will have strong problem-solving skills and experience "
                    "with modern technologies and methodologies."
                ),
                salary="$70,000 - $100,000",
                job_type="Full-time",
                posted_date=_days_ago(2),
            ),
            CandidateJob(
                title=f"Remote {query}",
                company="Digital Workspace",
                url=f"https://www.indeed.com/viewjob?jk={_posting_id('indeed', query, location, '1')}",
                source="Indeed",
                location="Remote",
                description=(
                    f"Remote opportunity for a skilled {query.lower()}. Work from anywhere while "
                    "contributing to exciting projects and collaborating with a distributed team."
                ),
                salary="$65,000 - $95,000",
                job_type="Full-time",
                posted_date=_days_ago(3),
            ),
        ]
        return jobs[:limit]
