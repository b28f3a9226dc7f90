"""Unit tests for grounded quiz question generation."""

import json
from types import SimpleNamespace

import openai
import pytest

from lectern.ai.quiz_generator import (
    generate_quiz_question,
    lesson_too_short,
    select_grounded,
    single_correct,
)
from lectern.config import get_settings
from lectern.engines.quiz.validation import CleanQuestion, keywords

GROUNDED = {
    "prompt": "How many edges does a tree with n vertices have?",
    "options": ["n", "n minus one", "n plus one", "2n"],
    "answerIndex": 1,
    "explanation": 'The lesson says "a tree with n vertices always has exactly n minus one edges".',
}

OFF_TOPIC = {
    "prompt": "What color is the sky?",
    "options": ["Blue", "Red", "Green", "Gray"],
    "answerIndex": 0,
    "explanation": "It is blue.",
}


class _FakeCompletions:
    def __init__(self, payloads):
        self.payloads = list(payloads)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        content = json.dumps(self.payloads.pop(0))
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(prompt_tokens=100, completion_tokens=40),
        )


def _use_fake_openai(monkeypatch, payloads) -> _FakeCompletions:
    completions = _FakeCompletions(payloads)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(openai, "AsyncOpenAI", lambda **kwargs: client)
    return completions


def _question(answer_index: int = 1) -> CleanQuestion:
    return CleanQuestion(prompt="p", options=["a", "b", "c", "d"], answer_index=answer_index, explanation="e")


class TestSelectGrounded:
    """Tests for cleaning plus grounding of raw questions."""

    def test_keeps_only_grounded_questions(self, lecture_text):
        kept = select_grounded([OFF_TOPIC, GROUNDED, "junk", {"prompt": "broken"}], lecture_text, keywords(lecture_text))
        assert len(kept) == 1
        assert kept[0].prompt == GROUNDED["prompt"]
        assert kept[0].answer_index == 1

    def test_non_list_is_empty(self, lecture_text):
        assert select_grounded(None, lecture_text, keywords(lecture_text)) == []
        assert select_grounded({"prompt": "x"}, lecture_text, keywords(lecture_text)) == []


class TestSingleCorrect:
    """Tests for the audit verdict check."""

    def test_exactly_the_answer(self):
        assert single_correct({"correctIndices": [1]}, _question(1)) is True
        assert single_correct({"correctIndices": [1.0]}, _question(1)) is True

    def test_rejects_other_verdicts(self):
        q = _question(1)
        assert single_correct({"correctIndices": [0]}, q) is False
        assert single_correct({"correctIndices": [1, 2]}, q) is False
        assert single_correct({"correctIndices": [1, 1]}, q) is False
        assert single_correct({"correctIndices": []}, q) is False
        assert single_correct({"correctIndices": ["1"]}, q) is False
        assert single_correct({"correctIndices": [True]}, q) is False
        assert single_correct({"other": [1]}, q) is False
        assert single_correct([1], q) is False


class TestLessonLength:
    def test_minimum_is_fifty_characters(self):
        assert lesson_too_short("x" * 49) is True
        assert lesson_too_short("  " + "x" * 49 + "  ") is True
        assert lesson_too_short("x" * 50) is False


class TestGenerateQuizQuestion:
    """Tests for the OpenAI path, the retry and the lesson fallback."""

    @pytest.mark.asyncio
    async def test_without_key_uses_lesson_fallback(self, lecture_text):
        quiz = await generate_quiz_question(lecture_text)
        assert quiz.fallback is True
        assert quiz.model == "stub"
        assert quiz.tokens_input == 0
        assert len(quiz.questions) == 1
        assert quiz.questions[0].prompt.startswith("According to the lesson")

    @pytest.mark.asyncio
    async def test_grounded_and_audited_question_is_returned(self, monkeypatch, lecture_text):
        completions = _use_fake_openai(monkeypatch, [
            {"questions": [OFF_TOPIC, GROUNDED]},
            {"correctIndices": [1]},
        ])

        quiz = await generate_quiz_question(lecture_text, subtopic_title="Trees", use_ai=True)

        assert quiz.fallback is False
        assert quiz.model == get_settings().openai_model
        assert [q.prompt for q in quiz.questions] == [GROUNDED["prompt"]]
        assert quiz.tokens_input == 200
        assert quiz.tokens_output == 80
        assert 'subtopic "Trees"' in completions.calls[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_ungrounded_first_attempt_is_retried(self, monkeypatch, lecture_text):
        completions = _use_fake_openai(monkeypatch, [
            {"questions": [OFF_TOPIC]},
            {"questions": [GROUNDED]},
            {"correctIndices": [1]},
        ])

        quiz = await generate_quiz_question(lecture_text, use_ai=True)

        assert quiz.fallback is False
        assert len(completions.calls) == 3
        assert "rejected" in completions.calls[1]["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_failed_audits_fall_back_to_lesson(self, monkeypatch, lecture_text):
        _use_fake_openai(monkeypatch, [
            {"questions": [GROUNDED]},
            {"correctIndices": [0, 1]},
            {"questions": [GROUNDED]},
            {"correctIndices": []},
        ])

        quiz = await generate_quiz_question(lecture_text, use_ai=True)

        assert quiz.fallback is True
        assert quiz.questions[0].prompt.startswith("According to the lesson")
        assert quiz.tokens_input == 400

    @pytest.mark.asyncio
    async def test_provider_errors_fall_back_to_lesson(self, monkeypatch, lecture_text):
        class _Down:
            async def create(self, **kwargs):
                raise RuntimeError("network down")

        client = SimpleNamespace(chat=SimpleNamespace(completions=_Down()))
        monkeypatch.setattr(openai, "AsyncOpenAI", lambda **kwargs: client)

        quiz = await generate_quiz_question(lecture_text, use_ai=True)

        assert quiz.fallback is True
        assert quiz.tokens_input == 0
