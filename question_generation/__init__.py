from __future__ import annotations  # Re-export question_generation public API

from .question_generation import (  # noqa: F401 F403
    QuestionList,
    QuestionRequest,
    generate_questions,
    parse_questions,
)

__all__ = [
    "QuestionList",
    "QuestionRequest",
    "generate_questions",
    "parse_questions",
]
