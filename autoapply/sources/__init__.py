from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from autoapply.log import get_logger
from autoapply.models import CandidateJob, Job, is_valid_url, title_company_key
from autoapply.store import JobStore, new_job_id

from .base import JobSearchBase
from .mock import IndeedMockSource, LinkedInMockSource
from .serpapi import GoogleJobsSource

log = get_logger(__name__)

__all__ = [
    "JobSearchBase", "GoogleJobsSource", "LinkedInMockSource", "IndeedMockSource",
    "SOURCE_NAMES", "get_sources", "search", "import_new", "scrape_and_import",
]

SOURCE_NAMES: tuple[str, ...] = ("google", "linkedin", "indeed")


def get_sources(names: list[str], config: dict) -> list[JobSearchBase]:
    """Instantiate the requested sources; unknown names are logged and skipped."""
    search_cfg = config.get("job_search") or {}
    sources: list[JobSearchBase] = []
    for name in dict.fromkeys(n.strip().lower() for n in names):
        if name == "google":
            sources.append(GoogleJobsSource(str(search_cfg.get("serpapi_key") or "")))
        elif name == "linkedin":
            sources.append(LinkedInMockSource())
        elif name == "indeed":
            sources.append(IndeedMockSource())
        else:
            log.warning("Unknown job source %r, skipping", name)
    return sources


def _search_source(source: JobSearchBase, query: str, location: str, limit: int) -> list[CandidateJob]:
    try:
        results = source.search(query, location, limit=limit)
        log.info("[%s] returned %d jobs", source.name, len(results))
        return results
    except Exception as exc:
        log.error("[%s] FAILED: %s", source.name, exc)
        return []


def dedupe(candidates: list[CandidateJob]) -> list[CandidateJob]:
    """First occurrence wins per case-insensitive (title, company)."""
    seen: set[tuple[str, str]] = set()
    unique: list[CandidateJob] = []
    for c in candidates:
        if c.key() in seen:
            continue
        seen.add(c.key())
        unique.append(c)
    return unique


def search(
    query: str,
    location: str,
    sources: list[str] | None = None,
    config: dict | None = None,
    *,
    limit: int = 10,
) -> list[CandidateJob]:
    """Query each source independently; a failing source contributes nothing."""
    config = config or {}
    chosen = get_sources(list(sources or SOURCE_NAMES), config)
    if not chosen:
        return []

    log.info("Searching %d source(s) for %r in %r", len(chosen), query, location)
    with ThreadPoolExecutor(max_workers=len(chosen)) as pool:
        futures = [pool.submit(_search_source, src, query, location, limit) for src in chosen]
        found = [job for future in futures for job in future.result()]

    unique = dedupe(found)
    log.info("Found %d unique jobs total", len(unique))
    return unique


def import_new(candidates: list[CandidateJob], store: JobStore | None = None) -> list[Job]:
    """Append candidates not already in the store (by url or title+company) as pending jobs."""
    store = store or JobStore()
    existing = store.list_all()
    seen_urls = {j.url for j in existing}
    seen_keys = {j.key() for j in existing}

    new_jobs: list[Job] = []
    for c in candidates:
        key = title_company_key(c.title, c.company)
        if c.url in seen_urls or key in seen_keys:
            continue
        if not c.title or not c.company or not is_valid_url(c.url):
            log.debug("Skipping incomplete candidate %r @ %r", c.title, c.company)
            continue
        seen_urls.add(c.url)
        seen_keys.add(key)
        new_jobs.append(
            Job(
                id=new_job_id(),
                title=c.title,
                company=c.company,
                url=c.url,
                source=c.source,
                location=c.location,
                description=c.description,
                salary=c.salary,
                job_type=c.job_type,
                posted_date=c.posted_date,
            )
        )

    if new_jobs:
        store.add_many(new_jobs)
        log.info("Added %d new jobs to the queue", len(new_jobs))
    else:
        log.info("No new jobs found")
    return new_jobs


def scrape_and_import(
    query: str | None = None,
    location: str | None = None,
    sources: list[str] | None = None,
    *,
    config: dict,
    store: JobStore | None = None,
) -> list[Job]:
    search_cfg = config.get("job_search") or {}
    return import_new(
        search(
            query or search_cfg.get("default_query") or "software engineer",
            location or search_cfg.get("default_location") or "",
            sources or search_cfg.get("sources") or list(SOURCE_NAMES),
            config,
        ),
        store,
    )
