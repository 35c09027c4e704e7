"""
Job processor: render → OCR → tailored resume → cover letter → questions.

Runs one job at a time, one step at a time. Per-job failures end in a
``failed`` record; only a ``ConfigurationError`` escapes, and it is raised
while the providers are resolved, before any job is touched.
"""
from __future__ import annotations

from pathlib import Path

from autoapply.capture import PageCapture
from autoapply.config import SCREENSHOTS_DIR, read_config
from autoapply.errors import AutoApplyError, ConfigurationError
from autoapply.llm import LLMProvider, get_llm_provider
from autoapply.log import get_logger
from autoapply.models import COMPLETED, FAILED, PENDING, PROCESSING, Job, QuestionAnswer
from autoapply.notifier import send_job_email
from autoapply.ocr import OCRProvider, get_ocr_provider
from autoapply.prompts import cover_letter_prompt, parse_questions, questions_prompt, resume_prompt
from autoapply.resume import load_resume_text
from autoapply.store import JobStore

log = get_logger(__name__)


class JobProcessor:
    def __init__(
        self,
        config: dict,
        *,
        store: JobStore | None = None,
        capture: PageCapture | None = None,
        ocr: OCRProvider | None = None,
        llm: LLMProvider | None = None,
        screenshots_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.store = store or JobStore()
        self.capture = capture or PageCapture()
        self.ocr = ocr or get_ocr_provider(config)
        self.llm = llm or get_llm_provider(config)
        self.screenshots_dir = Path(screenshots_dir or SCREENSHOTS_DIR)

    def process_one(self, job: Job) -> Job:
        """Run the pipeline for ``job`` and return its terminal copy (completed or failed)."""
        if job.status == PENDING:
            job = job.transition(PROCESSING)
        elif job.status != PROCESSING:
            raise ValueError(f"Job {job.id} is already {job.status}")
        log.info("Processing job: %s at %s", job.title, job.company)

        screenshot = self.screenshots_dir / f"{job.id}.png"
        try:
            return self._run(job, screenshot)
        except ConfigurationError:
            raise
        except AutoApplyError as exc:
            log.error("Error processing job %s: %s", job.id, exc)
        except Exception:
            log.exception("Unexpected error processing job %s", job.id)

        screenshot.unlink(missing_ok=True)
        return job.transition(FAILED)

    def _run(self, job: Job, screenshot: Path) -> Job:
        self.capture.capture(job.url, screenshot)
        log.info("Screenshot taken, processing with OCR (%s)...", self.ocr.name)

        page_text = self.ocr.extract_text(screenshot) or ""
        log.info("OCR completed (%d chars), generating tailored documents...", len(page_text))

        resume = load_resume_text(self.config.get("resume", {}).get("path"))

        tailored_resume = self.llm.generate(resume_prompt(job, page_text, resume))
        cover_letter = self.llm.generate(cover_letter_prompt(job, page_text, resume))
        questions = self._answer_questions(page_text, resume)

        return job.complete(
            tailored_resume=tailored_resume,
            cover_letter=cover_letter,
            questions=questions,
            screenshot=str(screenshot),
        )

    def _answer_questions(self, page_text: str, resume: str) -> list[QuestionAnswer]:
        response = self.llm.generate(questions_prompt(page_text, resume))
        questions = parse_questions(response)
        log.debug("Parsed %d application question(s)", len(questions))
        return questions

    def process_all(self) -> list[Job]:
        """Process every pending job in store order, persisting each status change."""
        pending = [j for j in self.store.list_all() if j.status == PENDING]
        log.info("Found %d pending jobs", len(pending))
        if not pending:
            return []

        processed: list[Job] = []
        for job in pending:
            claimed = self.store.claim(job.id)
            if claimed is None:
                log.info("Skipping %s: picked up elsewhere or removed", job.id)
                continue
            result = self.process_one(claimed)
            self.store.replace(result)
            processed.append(result)
            log.info("Finished job %s: %s [%s]", result.id, result.title, result.status)

        failed = sum(1 for j in processed if j.status == FAILED)
        log.info("Job processing completed: %d processed, %d failed", len(processed), failed)
        return processed

    def process_job(self, job_id: str) -> Job:
        """Process a single pending job by id. Non-pending jobs come back unchanged."""
        claimed = self.store.claim(job_id)
        if claimed is None:
            current = self.store.get(job_id)
            if current is None:
                raise KeyError(job_id)
            log.warning("Job %s is %s, not processing it", job_id, current.status)
            return current
        result = self.process_one(claimed)
        self.store.replace(result)
        return result


def process_one(job: Job, config: dict) -> Job:
    """Run the pipeline for a single job without touching the store."""
    return JobProcessor(config).process_one(job)


def process_all(config: dict | None = None, store: JobStore | None = None) -> list[Job]:
    config = config if config is not None else read_config()
    return JobProcessor(config, store=store).process_all()


def process_job(
    job_id: str,
    email: str | None = None,
    *,
    config: dict | None = None,
    store: JobStore | None = None,
) -> Job:
    """Process one job and, when it completes and ``email`` is given, mail the results."""
    config = config if config is not None else read_config()
    store = store or JobStore()
    result = JobProcessor(config, store=store).process_job(job_id)
    if email and result.status == COMPLETED:
        send_job_email(result.id, to_email=email, store=store, config=config)
    return result
