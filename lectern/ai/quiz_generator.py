"""
Grounded quiz question for a lesson.

One multiple-choice question is asked for, cleaned, and kept only if it is
grounded in the lesson (keyword overlap plus a verbatim quote in the
explanation) and an audit call agrees that exactly its answer is correct.
One stricter retry is made; after that, or without a usable key, the
deterministic True/False question from the lesson is returned.
"""

from typing import Any, List, Optional, Sequence

from pydantic import BaseModel

from lectern.ai.breakdown_generator import STUB_MODEL, chat_json
from lectern.config import get_settings
from lectern.engines.quiz.validation import (
    CleanQuestion,
    clean_question,
    fallback_from_lesson,
    is_grounded,
    keywords,
)
from lectern.logging_config import get_logger

logger = get_logger(__name__)

MIN_LESSON_CHARS = 50
LESSON_KEYWORDS = 12


class GeneratedQuiz(BaseModel):
    questions: List[CleanQuestion]
    model: str = STUB_MODEL
    fallback: bool = False
    tokens_input: int = 0
    tokens_output: int = 0


QUESTION_SYSTEM_PROMPT = (
    "You are an exacting exam writer. Using ONLY the lesson you are given, write "
    "exactly ONE multiple-choice question. Respond with one JSON object: "
    "{\"questions\": [{\"prompt\", \"options\": [4 strings], \"answerIndex\": 0-3, "
    "\"explanation\"}]}. The explanation MUST include a short direct quote "
    "(6-12 words) from the lesson in double quotes. Do not invent facts, do not "
    "prefix options with letters, and make exactly one option correct. Avoid "
    "\"All/None of the above\"."
)

RETRY_SYSTEM_PROMPT = (
    "Your previous question was rejected for not being grounded in the lesson. "
    "Write ONE multiple-choice question again, consistent with the lesson only. "
    "Use at least TWO of these keywords in the prompt or explanation: {keywords}. "
    "Quote 6-12 words of the lesson verbatim, in double quotes, in the explanation. "
    "Exactly one option must be correct. Return the same JSON shape: "
    "{{\"questions\": [{{\"prompt\", \"options\", \"answerIndex\", \"explanation\"}}]}}."
)

AUDIT_SYSTEM_PROMPT = (
    "You audit multiple-choice questions for strict single-correctness. Using ONLY "
    "the lesson, list the options that are explicitly and unambiguously supported "
    "by it. Return ONLY JSON: {\"correctIndices\": [0-based integers]}. Include "
    "every option that could be correct; return an empty list if none is."
)


def _question_request(lesson: str, subtopic_title: str, difficulty: str, kws: Sequence[str]) -> str:
    focus = (
        f'The question must specifically test the subtopic "{subtopic_title}".'
        if subtopic_title
        else "The question must test the lesson's core idea."
    )
    rigor = (
        "Make it application-level with a subtle trap for superficial readers."
        if difficulty == "hard"
        else "Keep it focused and fair, not trivial."
    )
    hint = f"Keywords to touch naturally: {', '.join(kws[:8])}." if kws else ""
    return f"{focus}\n{rigor}\n{hint}\n\nLESSON:\n{lesson}"


def select_grounded(raw_questions: Any, lesson: str, kws: Sequence[str]) -> List[CleanQuestion]:
    """Clean raw question dicts and keep the ones grounded in `lesson`."""
    if not isinstance(raw_questions, list):
        return []
    kept: List[CleanQuestion] = []
    for raw in raw_questions:
        if not isinstance(raw, dict):
            continue
        question = clean_question(raw)
        if question is not None and is_grounded(question, lesson, list(kws)):
            kept.append(question)
    return kept


def single_correct(payload: Any, question: CleanQuestion) -> bool:
    """True when the audit lists exactly one valid index and it is the answer."""
    indices = payload.get("correctIndices") if isinstance(payload, dict) else None
    if not isinstance(indices, list):
        return False
    valid: List[int] = []
    for value in indices:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if isinstance(value, float) and not value.is_integer():
            continue
        if 0 <= int(value) < len(question.options):
            valid.append(int(value))
    return valid == [question.answer_index]


class _Usage:
    def __init__(self) -> None:
        self.tokens_input = 0
        self.tokens_output = 0

    def add(self, tokens_in: int, tokens_out: int) -> None:
        self.tokens_input += tokens_in
        self.tokens_output += tokens_out


async def _ask(client, model: str, system: str, user: str, usage: _Usage) -> Any:
    payload, tokens_in, tokens_out = await chat_json(client, model, system, user)
    usage.add(tokens_in, tokens_out)
    return payload


async def _audited(
    client,
    model: str,
    candidates: List[CleanQuestion],
    lesson: str,
    usage: _Usage,
) -> List[CleanQuestion]:
    passed: List[CleanQuestion] = []
    for question in candidates:
        request = (
            f"LESSON:\n{lesson}\n\nQUESTION:\n{question.prompt}\n\n"
            f"OPTIONS (0-based):\n" + "\n".join(f"{i}. {o}" for i, o in enumerate(question.options))
        )
        try:
            verdict = await _ask(client, model, AUDIT_SYSTEM_PROMPT, request, usage)
        except Exception:
            logger.warning("Question audit failed, rejecting the question", exc_info=True)
            continue
        if single_correct(verdict, question):
            passed.append(question)
    return passed


async def _attempt(
    client,
    model: str,
    system: str,
    request: str,
    lesson: str,
    kws: Sequence[str],
    usage: _Usage,
) -> List[CleanQuestion]:
    try:
        payload = await _ask(client, model, system, request, usage)
    except Exception:
        logger.warning("Quiz generation call failed", exc_info=True)
        return []
    raw = payload.get("questions") if isinstance(payload, dict) else None
    grounded = select_grounded(raw, lesson, kws)
    return await _audited(client, model, grounded, lesson, usage)


async def _generate_with_openai(lesson: str, subtopic_title: str, difficulty: str) -> GeneratedQuiz:
    settings = get_settings()

    from openai import AsyncOpenAI
    client = AsyncOpenAI(api_key=settings.openai_api_key.strip(), timeout=settings.openai_timeout_seconds)

    model = settings.openai_model
    kws = keywords(lesson, LESSON_KEYWORDS)
    usage = _Usage()
    request = _question_request(lesson, subtopic_title, difficulty, kws)

    passed = await _attempt(client, model, QUESTION_SYSTEM_PROMPT, request, lesson, kws, usage)
    if not passed:
        retry_system = RETRY_SYSTEM_PROMPT.format(keywords=", ".join(kws))
        passed = await _attempt(client, model, retry_system, request, lesson, kws, usage)

    if passed:
        questions, fallback = [passed[0]], False
    else:
        logger.info("No generated question passed grounding, using the lesson fallback")
        questions, fallback = [fallback_from_lesson(lesson)], True
    return GeneratedQuiz(
        questions=questions,
        model=model,
        fallback=fallback,
        tokens_input=usage.tokens_input,
        tokens_output=usage.tokens_output,
    )


async def generate_quiz_question(
    lesson: str,
    *,
    subtopic_title: str = "",
    difficulty: str = "hard",
    use_ai: Optional[bool] = None,
) -> GeneratedQuiz:
    """
    One grounded question for `lesson`.

    Args:
        lesson: Lesson text (markdown is fine)
        subtopic_title: Optional subtopic the question should target
        difficulty: "hard" asks for application-level questions
        use_ai: Force (True) or skip (False) the OpenAI path; defaults to
            whether a real key is configured
    """
    if use_ai is None:
        use_ai = get_settings().ai_configured
    if not use_ai:
        return GeneratedQuiz(questions=[fallback_from_lesson(lesson)], fallback=True)

    try:
        return await _generate_with_openai(lesson, subtopic_title.strip(), (difficulty or "hard").lower())
    except Exception:
        logger.exception("OpenAI quiz generation failed, using the lesson fallback")
    return GeneratedQuiz(questions=[fallback_from_lesson(lesson)], fallback=True)


def lesson_too_short(lesson: str) -> bool:
    return len(lesson.strip()) < MIN_LESSON_CHARS
