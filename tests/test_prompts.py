"""Tests for prompt building and the questions parser."""
from __future__ import annotations

import pytest

from autoapply.errors import ParseError
from autoapply.models import Job, QuestionAnswer
from autoapply.prompts import (
    OCR_EXCERPT_CHARS,
    RESUME_EXCERPT_CHARS,
    cover_letter_prompt,
    extract_json_array,
    parse_questions,
    questions_prompt,
    resume_prompt,
)


class TestParseQuestions:
    def test_array_after_prose(self):
        text = 'Here are the questions:\n[{"question":"Why us?","answer":"Because..."}]'
        assert parse_questions(text) == [QuestionAnswer("Why us?", "Because...")]

    def test_no_array_gives_empty(self):
        assert parse_questions("There are no application questions on this page.") == []

    def test_empty_and_none(self):
        assert parse_questions("") == []
        assert parse_questions(None) == []

    def test_empty_array(self):
        assert parse_questions("[]") == []

    def test_prose_on_both_sides(self):
        text = (
            "Sure! I found two.\n```json\n"
            '[{"question": "Salary expectations?", "answer": "Negotiable."},\n'
            ' {"question": "Start date?", "answer": "Two weeks."}]\n```\nGood luck!'
        )
        assert [q.question for q in parse_questions(text)] == ["Salary expectations?", "Start date?"]

    def test_skips_bracketed_prose_before_json(self):
        text = 'Note [see below]: [{"question": "Visa?", "answer": "No sponsorship needed."}]'
        assert parse_questions(text) == [QuestionAnswer("Visa?", "No sponsorship needed.")]

    def test_brackets_inside_strings(self):
        text = '[{"question": "List [three] skills", "answer": "Python ] Go"}] trailing ]'
        assert parse_questions(text) == [QuestionAnswer("List [three] skills", "Python ] Go")]

    def test_malformed_json_gives_empty(self):
        assert parse_questions('[{"question": "Why us?", "answer": }]') == []

    def test_unbalanced_gives_empty(self):
        assert parse_questions('[{"question": "Why us?"') == []

    def test_drops_entries_without_question(self):
        text = '[{"question": "Why us?", "answer": 42}, {"answer": "orphan"}, "stray", {"question": "  "}]'
        assert parse_questions(text) == [QuestionAnswer("Why us?", "42")]

    def test_missing_answer_becomes_empty_string(self):
        assert parse_questions('[{"question": "Portfolio link?"}]') == [QuestionAnswer("Portfolio link?", "")]


class TestExtractJsonArray:
    def test_returns_first_parseable_array(self):
        assert extract_json_array("a [1, 2] b [3]") == [1, 2]

    def test_nested_arrays(self):
        assert extract_json_array("x [[1], [2, [3]]] y") == [[1], [2, [3]]]

    def test_raises_parse_error(self):
        with pytest.raises(ParseError):
            extract_json_array("nothing here")


class TestPrompts:
    @pytest.fixture
    def job(self):
        return Job(id="j1", title="Backend Engineer", company="Acme", url="https://acme.example/apply")

    def test_resume_prompt_uses_full_resume(self, job):
        resume = "R" * 5000
        prompt = resume_prompt(job, "page", resume)
        assert resume in prompt
        assert "Backend Engineer" in prompt and "Acme" in prompt

    def test_cover_letter_prompt_caps_inputs(self, job):
        prompt = cover_letter_prompt(job, "P" * 5000, "R" * 5000)
        assert "P" * OCR_EXCERPT_CHARS in prompt
        assert "P" * (OCR_EXCERPT_CHARS + 1) not in prompt
        assert "R" * RESUME_EXCERPT_CHARS in prompt
        assert "R" * (RESUME_EXCERPT_CHARS + 1) not in prompt

    def test_questions_prompt_asks_for_json_array(self):
        prompt = questions_prompt("Why do you want this job?", "resume")
        assert "JSON array" in prompt
        assert "return an empty array" in prompt
        assert "Why do you want this job?" in prompt
