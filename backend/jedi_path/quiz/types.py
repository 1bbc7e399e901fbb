"""Ranked-choice answer model."""
from dataclasses import dataclass, replace
from typing import Optional, Sequence

RANKS = ("first", "second", "third")
OPTIONS_PER_QUESTION = 4


@dataclass(frozen=True)
class Question:
    text: str
    options: tuple[str, ...]

    def __post_init__(self):
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(f"Question needs exactly {OPTIONS_PER_QUESTION} options, got {len(self.options)}")
        if len(set(self.options)) != len(self.options):
            raise ValueError(f"Question options must be distinct: {self.options}")

    def to_dict(self) -> dict:
        return {"text": self.text, "options": list(self.options)}


@dataclass(frozen=True)
class RankedAnswer:
    first: Optional[str] = None
    second: Optional[str] = None
    third: Optional[str] = None

    @property
    def ranks(self) -> tuple[Optional[str], Optional[str], Optional[str]]:
        return (self.first, self.second, self.third)

    @property
    def is_complete(self) -> bool:
        """All three ranks set to different options."""
        ranks = self.ranks
        return all(r is not None for r in ranks) and len(set(ranks)) == len(ranks)

    def to_dict(self) -> dict:
        return {"first": self.first, "second": self.second, "third": self.third}


AnswerSet = tuple[RankedAnswer, ...]


def empty_answers(questions: Sequence[Question]) -> AnswerSet:
    """One unset answer per question."""
    return tuple(RankedAnswer() for _ in questions)


def set_rank(answers: AnswerSet, question_index: int, rank: str, value: Optional[str]) -> AnswerSet:
    """Return a copy of ``answers`` with one rank of one question changed.

    ``value=None`` clears the rank. Duplicate options across ranks are not
    rejected here; ``is_complete`` refuses them and ``available_options``
    keeps a UI from offering them.
    """
    if rank not in RANKS:
        raise ValueError(f"Unknown rank {rank!r}; expected one of {RANKS}")
    if not 0 <= question_index < len(answers):
        raise IndexError(f"Question index {question_index} out of range for {len(answers)} answers")
    updated = list(answers)
    updated[question_index] = replace(answers[question_index], **{rank: value})
    return tuple(updated)


def is_complete(answers: Sequence[RankedAnswer]) -> bool:
    """True when every question has three distinct ranks. Gates submission."""
    return len(answers) > 0 and all(a.is_complete for a in answers)


def available_options(question: Question, answer: RankedAnswer, rank: str) -> list[str]:
    """Options selectable for ``rank`` given the other two ranks of the answer."""
    if rank not in RANKS:
        raise ValueError(f"Unknown rank {rank!r}; expected one of {RANKS}")
    used = {getattr(answer, r) for r in RANKS if r != rank}
    return [opt for opt in question.options if opt not in used]


def answers_to_payload(answers: Sequence[RankedAnswer]) -> list[dict]:
    return [a.to_dict() for a in answers]


def matches_questions(answers: Sequence[RankedAnswer], questions: Sequence[Question]) -> bool:
    """One answer per question, in order, each rank drawn from that question's options."""
    if len(answers) != len(questions):
        return False
    return all(
        all(r is None or r in q.options for r in a.ranks)
        for a, q in zip(answers, questions)
    )
