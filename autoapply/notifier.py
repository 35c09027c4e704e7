"""Email a completed job's generated documents (HTML body plus attachments)."""
from __future__ import annotations

import html
import smtplib
from email.mime.application import MIMEApplication
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

from autoapply.config import read_config
from autoapply.errors import ConfigurationError, JobNotReady
from autoapply.log import get_logger
from autoapply.models import COMPLETED, Job
from autoapply.retry import retry
from autoapply.store import JobStore

log = get_logger(__name__)


def _plain_body(job: Job) -> str:
    lines = [
        f"Application package for {job.title} at {job.company}",
        f"Posting: {job.url}",
        "",
        "Attached: tailored resume, cover letter" + (", page screenshot" if job.screenshot else "") + ".",
    ]
    if job.questions:
        lines += ["", "Application questions:"]
        for i, qa in enumerate(job.questions, 1):
            lines += [f"{i}. {qa.question}", f"   {qa.answer}"]
    return "\n".join(lines)


def _html_body(job: Job) -> str:
    esc = html.escape
    parts = [
        f'<h2 style="margin:0 0 8px;color:#2c3e50">{esc(job.title)} @ {esc(job.company)}</h2>',
        f'<p style="margin:4px 0"><a href="{esc(job.url, quote=True)}" style="color:#1a73e8">Open posting</a></p>',
    ]
    if job.questions:
        parts.append('<h3 style="margin:16px 0 4px;color:#1a1a1a">Application questions</h3>')
        for qa in job.questions:
            parts.append(f'<p style="margin:8px 0 2px"><strong>{esc(qa.question)}</strong></p>')
            parts.append(f'<p style="margin:0 0 8px 12px">{esc(qa.answer)}</p>')
    parts.append(
        '<hr style="border:none;border-top:1px solid #e0e0e0;margin:20px 0 8px">'
        '<p style="font-size:11px;color:#999">Sent by autoapply</p>'
    )
    return (
        "<div style=\"font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;"
        'max-width:900px;margin:0 auto;padding:16px;color:#333">'
        + "\n".join(parts)
        + "</div>"
    )


def build_message(job: Job, from_addr: str, to_addr: str) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["Subject"] = f"Application package: {job.title} at {job.company}"
    msg["From"] = from_addr
    msg["To"] = to_addr

    body = MIMEMultipart("alternative")
    body.attach(MIMEText(_plain_body(job), "plain", "utf-8"))
    body.attach(MIMEText(_html_body(job), "html", "utf-8"))
    msg.attach(body)

    for filename, content in (
        ("tailored_resume.txt", job.tailored_resume or ""),
        ("cover_letter.txt", job.cover_letter or ""),
    ):
        part = MIMEApplication(content.encode("utf-8"), Name=filename)
        part["Content-Disposition"] = f'attachment; filename="{filename}"'
        msg.attach(part)

    if job.screenshot and Path(job.screenshot).is_file():
        img = MIMEImage(Path(job.screenshot).read_bytes(), _subtype="png")
        img["Content-Disposition"] = f'attachment; filename="{job.id}.png"'
        msg.attach(img)
    elif job.screenshot:
        log.warning("Screenshot %s missing, sending without it", job.screenshot)
    return msg


@retry(max_attempts=3, base_delay=3.0, retryable=(smtplib.SMTPException, OSError))
def _smtp_send(
    host: str, port: int, user: str, password: str,
    from_addr: str, to_addr: str, msg: MIMEMultipart,
) -> None:
    with smtplib.SMTP(host, port, timeout=30) as server:
        server.starttls()
        server.login(user, password)
        server.sendmail(from_addr, [to_addr], msg.as_string())


def send_job_email(
    job_id: str,
    to_email: str | None = None,
    *,
    store: JobStore | None = None,
    config: dict | None = None,
) -> None:
    """Send the job's artifacts. Raises JobNotReady unless the job is completed."""
    store = store or JobStore()
    config = config if config is not None else read_config()

    job = store.get(job_id)
    if job is None:
        raise KeyError(job_id)
    if job.status != COMPLETED:
        raise JobNotReady(f"Job {job_id} is {job.status}, not {COMPLETED}")

    settings = config.get("email") or {}
    host = str(settings.get("smtp_host") or "").strip()
    user = str(settings.get("user") or "").strip()
    password = str(settings.get("password") or "").strip()
    from_addr = str(settings.get("from_email") or user).strip()
    to_addr = (to_email or str(settings.get("to_email") or "")).strip()
    if not all([host, user, password, to_addr]):
        raise ConfigurationError("SMTP not configured (email.smtp_host, user, password and a recipient)")

    try:
        port = int(settings.get("smtp_port") or 587)
    except (TypeError, ValueError):
        port = 587

    msg = build_message(job, from_addr, to_addr)
    _smtp_send(host, port, user, password, from_addr, to_addr, msg)
    log.info("Email for job %s sent to %s", job_id, to_addr)
