"""Tests for the command-line interface."""
from __future__ import annotations

import smtplib
from unittest.mock import patch

import pytest
import yaml

from autoapply import cli
from autoapply.models import COMPLETED, FAILED, PROCESSING


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    path = tmp_path / "config" / "settings.yaml"
    monkeypatch.setattr("autoapply.config.SETTINGS_PATH", path)
    monkeypatch.setattr(cli, "SETTINGS_PATH", path)
    return path


def test_add_and_list(store, capsys):
    assert cli.main(["add", "Backend Engineer", "Acme", "https://acme.example/apply"], store=store) == 0
    assert len(store.list_all()) == 1
    assert cli.main(["list"], store=store) == 0
    out = capsys.readouterr().out
    assert "]  Backend Engineer @ Acme" in out
    assert "pending" in out


def test_add_rejects_bad_url(store, capsys):
    assert cli.main(["add", "T", "C", "acme.example/apply"], store=store) == 2
    assert store.list_all() == []


def test_list_filters_by_status(store, capsys):
    store.append("One", "A", "https://a.example/1")
    second = store.append("Two", "B", "https://b.example/2")
    store.replace(second.transition(PROCESSING).transition(FAILED))
    cli.main(["list", "--status", "failed"], store=store)
    out = capsys.readouterr().out
    assert "]  Two @ B" in out
    assert "]  One @ A" not in out


def test_show_unknown_job(store):
    assert cli.main(["show", "missing"], store=store) == 1


def test_requeue(store):
    job = store.append("T", "C", "https://c.example/1")
    store.replace(job.transition(PROCESSING).transition(FAILED))
    assert cli.main(["requeue", job.id], store=store) == 0
    assert store.get(job.id).status == "pending"
    assert cli.main(["requeue", "missing"], store=store) == 1


def test_process_unknown_provider_exits_3(store, config):
    config["llm"]["provider"] = "openrouter"
    store.append("T", "C", "https://c.example/1")
    with patch.object(cli, "read_config", return_value=config):
        assert cli.main(["process"], store=store) == 3
    assert store.list_all()[0].status == "pending"


def test_process_one_exit_code_follows_status(store, config):
    job = store.append("T", "C", "https://c.example/1")
    with patch.object(cli, "read_config", return_value=config), \
            patch("autoapply.processor.process_job", return_value=job.transition(PROCESSING).transition(FAILED)):
        assert cli.main(["process-one", job.id], store=store) == 1


def test_process_one_reports_email_failure(store, config, fake_capture, fake_ocr, fake_llm, tmp_path, capsys):
    config["email"].update(smtp_host="smtp.example.com", user="me@example.com", password="secret")
    job = store.append("T", "C", "https://c.example/1")
    with patch.object(cli, "read_config", return_value=config), \
            patch("autoapply.processor.PageCapture", return_value=fake_capture), \
            patch("autoapply.processor.get_ocr_provider", return_value=fake_ocr), \
            patch("autoapply.processor.get_llm_provider", return_value=fake_llm), \
            patch("autoapply.processor.SCREENSHOTS_DIR", tmp_path / "shots"), \
            patch("autoapply.notifier.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "down")), \
            patch("autoapply.retry.time.sleep"):
        code = cli.main(["process-one", job.id, "--email", "me@example.com"], store=store)

    assert code == 1
    out = capsys.readouterr().out
    assert "Email failed" in out
    assert f"still {COMPLETED}" in out
    assert store.get(job.id).status == COMPLETED


def test_config_set_keeps_numeric_secret_as_string(store, settings_path):
    assert cli.main(["config", "--set", "llm.api_key=12345", "email.password=yes"], store=store) == 0
    saved = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    assert saved["llm"]["api_key"] == "12345"
    assert saved["email"]["password"] == "yes"


def test_send_not_ready_exits_1(store, config, capsys):
    job = store.append("T", "C", "https://c.example/1")
    with patch.object(cli, "read_config", return_value=config):
        assert cli.main(["send", job.id], store=store) == 1
    assert COMPLETED in capsys.readouterr().out


def test_config_set_writes_only_stored_values(store, settings_path, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "env-secret")
    assert cli.main(["config", "--set", "llm.provider=together", "job_search.scrape_interval=6"], store=store) == 0
    saved = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    assert saved["llm"]["provider"] == "together"
    assert saved["job_search"]["scrape_interval"] == 6
    assert saved["llm"]["api_key"] == ""


def test_config_set_requires_equals(store, settings_path):
    assert cli.main(["config", "--set", "llm.provider"], store=store) == 2
    assert not settings_path.exists()
