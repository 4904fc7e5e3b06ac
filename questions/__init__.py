from __future__ import annotations  # Re-export questions public API

from .questions import (  # noqa: F401
    QuestionProfile,
    fallback_questions,
    generate_questions,
    pad_questions,
    parse_questions,
)

__all__ = [
    "QuestionProfile",
    "fallback_questions",
    "generate_questions",
    "pad_questions",
    "parse_questions",
]
