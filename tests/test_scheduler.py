"""Tests for the scrape-then-process cycle."""
from __future__ import annotations

from unittest.mock import patch

from autoapply import scheduler
from autoapply.models import COMPLETED, FAILED, PROCESSING


def test_run_cycle_summary(store, config):
    job = store.append("T", "C", "https://c.example/1")
    done = job.transition(PROCESSING).transition(FAILED)
    with patch.object(scheduler, "scrape_and_import", return_value=[job]) as scrape, \
            patch.object(scheduler, "process_all", return_value=[done]) as process:
        summary = scheduler.run_cycle(config, store)
    scrape.assert_called_once_with(config=config, store=store)
    process.assert_called_once_with(config, store)
    assert summary == {"jobs_added": 1, "processed": 1, "completed": 0, "failed": 1}


def test_run_cycle_processes_scraped_jobs(store, config, fake_capture, fake_ocr, fake_llm, tmp_path):
    config["job_search"]["sources"] = ["indeed"]
    with patch("autoapply.processor.PageCapture", return_value=fake_capture), \
            patch("autoapply.processor.get_ocr_provider", return_value=fake_ocr), \
            patch("autoapply.processor.get_llm_provider", return_value=fake_llm), \
            patch("autoapply.processor.SCREENSHOTS_DIR", tmp_path / "shots"):
        summary = scheduler.run_cycle(config, store)
    assert summary["jobs_added"] == 2
    assert summary["completed"] == 2
    assert all(j.status == COMPLETED for j in store.list_all())


def test_interval_hours():
    assert scheduler.interval_hours({"job_search": {"scrape_interval": 6}}) == 6.0
    assert scheduler.interval_hours({"job_search": {"scrape_interval": "soon"}}) == 24.0
    assert scheduler.interval_hours({"job_search": {"scrape_interval": 0}}) == 0.25
    assert scheduler.interval_hours({}) == 24.0
