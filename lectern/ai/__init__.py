"""
AI Isolation Zone - every model call goes through here.

Calls fall back to deterministic stubs when no OpenAI key is configured or
the provider fails, so ingestion and quizzes never depend on the network.
"""

from lectern.ai.breakdown_generator import (
    Breakdown,
    BreakdownSubtopic,
    BreakdownQuestion,
    GeneratedLecture,
    generate_lecture,
    stub_lecture,
)
from lectern.ai.quiz_generator import GeneratedQuiz, generate_quiz_question

__all__ = [
    "Breakdown",
    "BreakdownSubtopic",
    "BreakdownQuestion",
    "GeneratedLecture",
    "GeneratedQuiz",
    "generate_lecture",
    "generate_quiz_question",
    "stub_lecture",
]
