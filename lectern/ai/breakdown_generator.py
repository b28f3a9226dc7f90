"""
Lecture breakdown generator.

Turns raw lecture text into a topic, ordered subtopics and one
multiple-choice question per subtopic. Uses OpenAI JSON mode when a real key
is configured; otherwise (or when the call fails) builds a deterministic
breakdown from the text itself.
"""

import json
import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from lectern.config import get_settings
from lectern.engines.quiz.validation import clean_question, fallback_from_lesson, pick_declarative_sentence
from lectern.logging_config import get_logger

logger = get_logger(__name__)

STUB_MODEL = "stub"
MAX_STUB_SUBTOPICS = 6
SENTENCES_PER_STUB_SUBTOPIC = 3


class BreakdownSubtopic(BaseModel):
    title: str
    importance: str = "medium"
    difficulty: int = 1
    overview: str = ""

    @field_validator("importance")
    @classmethod
    def _importance(cls, v: str) -> str:
        v = (v or "").strip().lower()
        return v if v in ("high", "medium", "low") else "medium"

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty(cls, v) -> int:
        try:
            return min(3, max(1, int(v)))
        except (TypeError, ValueError):
            return 1


class Breakdown(BaseModel):
    topic: str = "Untitled"
    subtopics: List[BreakdownSubtopic] = Field(default_factory=list)


class BreakdownQuestion(BaseModel):
    prompt: str
    options: List[str]
    answer_index: int
    explanation: str = ""
    subtopic_title: str = ""


class GeneratedLecture(BaseModel):
    breakdown: Breakdown
    questions: List[BreakdownQuestion]
    model: str = STUB_MODEL
    tokens_input: int = 0
    tokens_output: int = 0


def link_questions_to_subtopics(
    subtopic_titles: Sequence[str],
    questions: Sequence[BreakdownQuestion],
) -> List[Optional[int]]:
    """
    Subtopic index for each question, matched by the question's subtopic_title.

    Tries an exact case-insensitive title, then the first title containing
    the requested one, then the first subtopic. None only when there are no
    subtopics.
    """
    titles = [t.strip().lower() for t in subtopic_titles]
    exact = {}
    for i, t in enumerate(titles):
        exact.setdefault(t, i)

    links: List[Optional[int]] = []
    for q in questions:
        wanted = (q.subtopic_title or "").strip().lower()
        idx = exact.get(wanted)
        if idx is None:
            idx = next((i for i, t in enumerate(titles) if wanted in t), None)
        if idx is None and titles:
            idx = 0
        links.append(idx)
    return links


# ---------------------------------------------------------------------------
# Deterministic stub
# ---------------------------------------------------------------------------

def _sentences(text: str) -> List[str]:
    flat = re.sub(r"\s+", " ", text).strip()
    found = [s.strip() for s in re.findall(r"[^.?!]+[.?!]?", flat)]
    return [s for s in found if s]


def _chunks(text: str) -> List[str]:
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs[:MAX_STUB_SUBTOPICS]
    sentences = _sentences(text)
    groups = [
        " ".join(sentences[i:i + SENTENCES_PER_STUB_SUBTOPIC])
        for i in range(0, len(sentences), SENTENCES_PER_STUB_SUBTOPIC)
    ]
    return groups[:MAX_STUB_SUBTOPICS] or [text.strip()]


def _title_from(chunk: str, max_words: int = 6) -> str:
    words = re.sub(r"[^\w\s'-]", " ", chunk).split()
    title = " ".join(words[:max_words]).strip()
    return title[:1].upper() + title[1:] if title else "Overview"


def stub_lecture(text: str) -> GeneratedLecture:
    """Split the text into paragraph (or sentence-group) subtopics with T/F questions."""
    chunks = _chunks(text)
    subtopics: List[BreakdownSubtopic] = []
    questions: List[BreakdownQuestion] = []
    seen = set()
    for i, chunk in enumerate(chunks):
        title = _title_from(chunk)
        if title.lower() in seen:
            title = f"{title} ({i + 1})"
        seen.add(title.lower())
        subtopics.append(
            BreakdownSubtopic(
                title=title,
                importance="high" if i == 0 else "medium",
                difficulty=min(3, 1 + i // 2),
                overview=chunk[:280],
            )
        )
        q = fallback_from_lesson(chunk)
        questions.append(
            BreakdownQuestion(
                prompt=q.prompt,
                options=q.options,
                answer_index=q.answer_index,
                explanation=q.explanation,
                subtopic_title=title,
            )
        )

    first = _sentences(text)
    topic = first[0].rstrip(".?!")[:80] if first else "Untitled"
    return GeneratedLecture(breakdown=Breakdown(topic=topic or "Untitled", subtopics=subtopics), questions=questions)


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------

BREAKDOWN_SYSTEM_PROMPT = (
    "As an expert instructional designer, analyze the text and break it down "
    "into a structured learning path. Output JSON with keys \"topic\" and "
    "\"subtopics\". Each subtopic: {\"title\", \"importance\": \"high\"|\"medium\"|\"low\", "
    "\"difficulty\": 1|2|3, \"overview\": string}."
)

QUIZ_SYSTEM_PROMPT = (
    "You are an expert in educational assessments. Generate a quiz based on the "
    "subtopics. Respond with a single JSON object with key \"questions\". For each "
    "subtopic create exactly one multiple-choice question: {\"prompt\", \"options\": "
    "[4 strings], \"answerIndex\": 0-3, \"explanation\", \"subtopicTitle\"}."
)


async def chat_json(client, model: str, system: str, user: str):
    response = await client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        response_format={"type": "json_object"},
        temperature=0.4,
    )
    content = (response.choices[0].message.content or "").strip()
    usage = response.usage
    tokens_in = getattr(usage, "prompt_tokens", 0) or 0
    tokens_out = getattr(usage, "completion_tokens", 0) or 0
    return json.loads(content or "{}"), tokens_in, tokens_out


def _lesson_for(subtopic: BreakdownSubtopic, text: str) -> str:
    return subtopic.overview if pick_declarative_sentence(subtopic.overview) else text


def fill_missing_questions(
    breakdown: Breakdown,
    questions: List[BreakdownQuestion],
    text: str,
) -> List[BreakdownQuestion]:
    """
    Give every subtopic at least one question.

    Subtopics that no question links to get a True/False question built from
    their overview, or from the whole text when the overview has no sentence.
    """
    titles = [s.title for s in breakdown.subtopics]
    covered = set(link_questions_to_subtopics(titles, questions))
    filled = list(questions)
    for i, subtopic in enumerate(breakdown.subtopics):
        if i in covered:
            continue
        q = fallback_from_lesson(_lesson_for(subtopic, text))
        filled.append(
            BreakdownQuestion(
                prompt=q.prompt,
                options=q.options,
                answer_index=q.answer_index,
                explanation=q.explanation,
                subtopic_title=subtopic.title,
            )
        )
    return filled


async def _generate_with_openai(text: str) -> GeneratedLecture:
    settings = get_settings()

    from openai import AsyncOpenAI
    client = AsyncOpenAI(api_key=settings.openai_api_key.strip(), timeout=settings.openai_timeout_seconds)

    raw_bd, in1, out1 = await chat_json(client, settings.openai_model, BREAKDOWN_SYSTEM_PROMPT, text)
    breakdown = Breakdown.model_validate(raw_bd)
    if not breakdown.subtopics:
        raise ValueError("Breakdown returned no subtopics")

    raw_quiz, in2, out2 = await chat_json(
        client,
        settings.openai_model,
        QUIZ_SYSTEM_PROMPT,
        json.dumps([s.model_dump() for s in breakdown.subtopics], indent=2),
    )
    questions: List[BreakdownQuestion] = []
    for raw in raw_quiz.get("questions") or []:
        if not isinstance(raw, dict):
            continue
        clean = clean_question(raw)
        if clean is None:
            continue
        questions.append(
            BreakdownQuestion(
                **clean.model_dump(),
                subtopic_title=str(raw.get("subtopicTitle") or raw.get("subtopic_title") or ""),
            )
        )

    filled = fill_missing_questions(breakdown, questions, text)
    if len(filled) > len(questions):
        logger.info(
            "Breakdown questions back-filled",
            extra={"generated": len(questions), "filled": len(filled) - len(questions)},
        )

    return GeneratedLecture(
        breakdown=breakdown,
        questions=filled,
        model=settings.openai_model,
        tokens_input=in1 + in2,
        tokens_output=out1 + out2,
    )


async def generate_lecture(text: str, *, use_ai: Optional[bool] = None) -> GeneratedLecture:
    """
    Break lecture text into subtopics and questions.

    Args:
        text: Lecture source text
        use_ai: Force (True) or skip (False) the OpenAI path; defaults to
            whether a real key is configured
    """
    if use_ai is None:
        use_ai = get_settings().ai_configured
    if not use_ai:
        return stub_lecture(text)

    try:
        return await _generate_with_openai(text)
    except Exception:
        logger.exception("OpenAI breakdown failed, using the built-in breakdown")
    return stub_lecture(text)
