"""Prompt templates for the three generation steps, and the questions parser."""
from __future__ import annotations

import json

from autoapply.errors import ParseError
from autoapply.log import get_logger
from autoapply.models import Job, QuestionAnswer

log = get_logger(__name__)

OCR_EXCERPT_CHARS = 2000
OCR_FULL_CHARS = 6000
RESUME_EXCERPT_CHARS = 1000

_RESUME_PROMPT = """\
Based on this job posting and my current resume, create a tailored version that highlights relevant skills and experience.

Job Title: {title}
Company: {company}
Job Description (from OCR): {page_text}

My Current Resume:
{resume}

Please provide a tailored resume that emphasizes the most relevant qualifications for this specific role."""

_COVER_LETTER_PROMPT = """\
Write a professional cover letter for this job application.

Job Title: {title}
Company: {company}
Job Description (from OCR): {page_text}

My Resume: {resume}

Create a compelling cover letter that shows enthusiasm for the role and highlights how my experience matches their needs."""

_QUESTIONS_PROMPT = """\
Analyze this job application page content and identify any application questions that might need to be answered.

Page Content: {page_text}

For each question you identify, provide a professional answer based on this resume: {resume}

Format your response as a JSON array with this structure:
[
  {{
    "question": "Question text here",
    "answer": "Your answer here"
  }}
]

If no questions are found, return an empty array: []"""


def resume_prompt(job: Job, page_text: str, resume: str) -> str:
    return _RESUME_PROMPT.format(
        title=job.title,
        company=job.company,
        page_text=page_text[:OCR_EXCERPT_CHARS],
        resume=resume,
    )


def cover_letter_prompt(job: Job, page_text: str, resume: str) -> str:
    return _COVER_LETTER_PROMPT.format(
        title=job.title,
        company=job.company,
        page_text=page_text[:OCR_EXCERPT_CHARS],
        resume=resume[:RESUME_EXCERPT_CHARS],
    )


def questions_prompt(page_text: str, resume: str) -> str:
    return _QUESTIONS_PROMPT.format(
        page_text=page_text[:OCR_FULL_CHARS],
        resume=resume[:RESUME_EXCERPT_CHARS],
    )


def _balanced_end(text: str, start: int) -> int:
    """Index just past the ``]`` closing the ``[`` at ``start``; -1 if unbalanced.

    Brackets inside JSON string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def extract_json_array(text: str) -> list:
    """First balanced ``[...]`` substring of ``text`` that parses as a JSON array.

    Raises ParseError when there is none.
    """
    pos = text.find("[")
    while pos != -1:
        end = _balanced_end(text, pos)
        if end != -1:
            try:
                value = json.loads(text[pos:end])
            except json.JSONDecodeError:
                value = None
            if isinstance(value, list):
                return value
        pos = text.find("[", pos + 1)
    raise ParseError("no JSON array in response")


def parse_questions(text: str) -> list[QuestionAnswer]:
    """Question/answer pairs from a raw LLM response; [] when nothing usable is found."""
    try:
        items = extract_json_array(text or "")
    except ParseError as exc:
        log.debug("Questions response not parseable: %s", exc)
        return []

    pairs: list[QuestionAnswer] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        question = item.get("question")
        if not isinstance(question, str) or not question.strip():
            continue
        answer = item.get("answer")
        pairs.append(QuestionAnswer(question=question.strip(), answer="" if answer is None else str(answer).strip()))
    return pairs
