"""SerpAPI Google Jobs search."""
from __future__ import annotations

import requests

from autoapply.log import get_logger
from autoapply.models import CandidateJob, is_valid_url
from autoapply.retry import retry
from autoapply.sources.base import JobSearchBase

log = get_logger(__name__)

API_URL = "https://serpapi.com/search"


def _best_apply_link(hit: dict) -> str:
    for opts_key in ("apply_options", "related_links"):
        opts = hit.get(opts_key, [])
        if opts and isinstance(opts, list):
            for opt in opts:
                link = opt.get("link", "")
                if link:
                    return link
    return hit.get("share_link", "") or hit.get("link", "")


class GoogleJobsSource(JobSearchBase):
    name = "google"

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    @retry(max_attempts=3, base_delay=2.0, retryable=(requests.RequestException, OSError))
    def _fetch(self, query: str, location: str) -> dict:
        r = requests.get(
            API_URL,
            params={
                "engine": "google_jobs",
                "q": query,
                "location": location,
                "api_key": self.api_key,
            },
            timeout=10,
        )
        r.raise_for_status()
        return r.json()

    def search(self, query: str, location: str, limit: int = 10) -> list[CandidateJob]:
        if not self.api_key:
            log.info("No SerpAPI key provided, skipping Google Jobs")
            return []

        data = self._fetch(query, location)
        jobs: list[CandidateJob] = []
        for hit in data.get("jobs_results", [])[:limit]:
            url = _best_apply_link(hit)
            if not is_valid_url(url):
                log.debug("Dropping Google Jobs hit without a usable link: %s", hit.get("title"))
                continue
            extensions = hit.get("detected_extensions", {}) or {}
            jobs.append(
                CandidateJob(
                    title=hit.get("title") or "Unknown Title",
                    company=hit.get("company_name") or "Unknown Company",
                    url=url,
                    source="Google Jobs",
                    location=hit.get("location") or location,
                    description=hit.get("description") or None,
                    salary=extensions.get("salary"),
                    job_type=extensions.get("schedule_type"),
                    posted_date=extensions.get("posted_at"),
                )
            )
        return jobs
