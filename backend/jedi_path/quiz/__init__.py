from .questions import QUESTIONS
from .types import (
    RANKS,
    AnswerSet,
    Question,
    RankedAnswer,
    answers_to_payload,
    available_options,
    empty_answers,
    is_complete,
    matches_questions,
    set_rank,
)

__all__ = [
    "QUESTIONS",
    "RANKS",
    "AnswerSet",
    "Question",
    "RankedAnswer",
    "answers_to_payload",
    "available_options",
    "empty_answers",
    "is_complete",
    "matches_questions",
    "set_rank",
]
