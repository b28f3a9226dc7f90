"""
Quiz Engine - question hygiene, grounding checks and learner quiz state.
"""

from lectern.engines.quiz.validation import (
    CleanQuestion,
    clean_question,
    keywords,
    contains_ngram_quote,
    is_grounded,
    fallback_from_lesson,
)
from lectern.engines.quiz.quiz_service import QuizService, REQUIRED_QUESTIONS

__all__ = [
    "CleanQuestion",
    "clean_question",
    "keywords",
    "contains_ngram_quote",
    "is_grounded",
    "fallback_from_lesson",
    "QuizService",
    "REQUIRED_QUESTIONS",
]
