"""
Question hygiene and grounding checks.

Generated questions are normalized with clean_question() and then accepted
only if they are grounded in the lesson text: they must touch the lesson's
keywords and their explanation must quote the lesson verbatim.
"""

import re
from collections import Counter
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

_WORD_RE = re.compile(r"[a-z0-9]+")
_SENTENCE_RE = re.compile(r"[^.?!]+[.?!]")

STOP = frozenset({
    "the", "a", "an", "and", "or", "of", "for", "to", "in", "on", "at", "by", "is", "are", "was",
    "were", "be", "with", "as", "that", "this", "it", "its", "from", "into", "than", "then",
    "but", "not", "if", "any", "all", "no", "one", "two", "there", "their", "between", "you",
    "can", "will", "have", "has", "had", "which",
})

FALLBACK_SENTENCE = "A tree has exactly one unique path between any two distinct vertices."


class CleanQuestion(BaseModel):
    """A validated four-option question."""

    prompt: str
    options: List[str]
    answer_index: int
    explanation: str


def clean_question(raw: Mapping[str, Any]) -> Optional[CleanQuestion]:
    """
    Normalize a raw question dict.

    Accepts `question` for `prompt`, `explain` for `explanation` and
    `answerIndex` for `answer_index`. Returns None unless the prompt and
    explanation are non-empty, there are exactly four non-empty options, and
    the answer index is an integer in 0..3.
    """
    prompt = str(raw.get("prompt") or raw.get("question") or "").strip()
    explanation = str(raw.get("explanation") or raw.get("explain") or "").strip()
    options_raw = raw.get("options")
    options = (
        [str(o).strip() for o in options_raw if o is not None and str(o).strip()]
        if isinstance(options_raw, (list, tuple))
        else []
    )
    answer = raw.get("answer_index", raw.get("answerIndex"))

    if not prompt or not explanation:
        return None
    if len(options) != 4:
        return None
    if isinstance(answer, bool):
        return None
    if isinstance(answer, float) and answer.is_integer():
        answer = int(answer)
    if not isinstance(answer, int) or not 0 <= answer <= 3:
        return None
    return CleanQuestion(prompt=prompt, options=options, answer_index=answer, explanation=explanation)


def words(text: str) -> List[str]:
    return _WORD_RE.findall(text.lower())


def keywords(text: str, max_keywords: int = 12) -> List[str]:
    """Most frequent non-stopword words of four or more characters."""
    freq = Counter(w for w in words(text) if len(w) >= 4 and w not in STOP)
    return [w for w, _ in freq.most_common(max_keywords)]


def contains_ngram_quote(explanation: str, lesson: str, n: int = 4) -> bool:
    """True if some n-word run of the lesson (at least 18 chars) appears in the explanation."""
    lesson_words = words(lesson)
    expl_words = words(explanation)
    if len(lesson_words) < n or len(expl_words) < n:
        return False
    expl_text = " ".join(expl_words)
    for i in range(len(lesson_words) - n + 1):
        gram = " ".join(lesson_words[i:i + n])
        if len(gram) >= 18 and gram in expl_text:
            return True
    return False


def overlap_count(text: str, kws: List[str]) -> int:
    present = set(words(text))
    return sum(1 for k in kws if k in present)


def is_grounded(question: CleanQuestion, lesson: str, kws: List[str]) -> bool:
    text = " ".join([question.prompt, question.explanation, *question.options])
    has_keywords = overlap_count(text, kws) >= min(2, len(kws))
    return has_keywords and contains_ngram_quote(question.explanation, lesson, 4)


def pick_declarative_sentence(lesson: str) -> Optional[str]:
    """First sentence of 8-24 words not ending in a colon, else the first sentence."""
    flat = re.sub(r"\s+", " ", lesson).strip()
    pieces = [p.strip() for p in _SENTENCE_RE.findall(flat)]
    for piece in pieces:
        if 8 <= len(words(piece)) <= 24 and not piece.endswith(":"):
            return piece
    return pieces[0] if pieces else None


def fallback_from_lesson(lesson: str) -> CleanQuestion:
    """Deterministic True/False question quoting the lesson."""
    sentence = pick_declarative_sentence(lesson) or FALLBACK_SENTENCE
    return CleanQuestion(
        prompt=f"According to the lesson, is the following statement true?\n\n“{sentence}”",
        options=["True", "False", "Not stated", "Only in a special case"],
        answer_index=0,
        explanation=f"This sentence appears in (or is directly implied by) the lesson: “{sentence}”.",
    )
