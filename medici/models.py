"""
models.py - In-memory course dataset

Course -> Question -> Option ownership tree, plus the Evaluation set
derived from the evaluation names referenced by a course's questions.

Every entity carries a `hash` (hex sha256, empty until hashed). Back
references (`course_key`, `question_id`) are bound by the differ and never
take part in a hash.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List, NamedTuple, Optional

EVALUATION_KEY_SEPARATOR = "/"

MIN_OPTIONS = 2
MAX_OPTIONS = 5


class EvaluationKey(NamedTuple):
    """Composite identity of an evaluation inside a course."""
    course_key: str
    name: str


def format_evaluation_key(key: EvaluationKey) -> str:
    """Serialize an evaluation key for the remote store ("course/name")."""
    return f"{key.course_key}{EVALUATION_KEY_SEPARATOR}{key.name}"


def parse_evaluation_key(raw: str) -> EvaluationKey:
    """
    Parse a "course/name" key coming from the remote store.

    Course keys never contain the separator, so splitting on the first one
    is unambiguous even when the evaluation name does.

    Raises:
        ValueError: If the key has no separator or an empty part
    """
    course_key, sep, name = raw.partition(EVALUATION_KEY_SEPARATOR)
    if not sep or not course_key or not name:
        raise ValueError(f"Invalid evaluation key: {raw!r}")
    return EvaluationKey(course_key, name)


@dataclass
class Option:
    id: uuid.UUID
    text: str
    correct: bool = False
    explanation: Optional[str] = None
    question_id: Optional[uuid.UUID] = None
    hash: str = ""

    def content_key(self) -> tuple:
        """Fields that make two options duplicates of each other."""
        return (self.text, self.correct, self.explanation)


@dataclass
class Question:
    id: uuid.UUID
    text: str
    evaluation: str
    options: List[Option] = field(default_factory=list)
    source: Optional[str] = None
    asked_at: Optional[date] = None
    image: Optional[str] = None
    course_key: Optional[str] = None
    hash: str = ""

    @property
    def evaluation_key(self) -> Optional[EvaluationKey]:
        """Fully-qualified evaluation reference, once the course is bound."""
        if self.course_key is None:
            return None
        return EvaluationKey(self.course_key, self.evaluation)

    def content_key(self) -> tuple:
        """Fields that make two questions duplicates (options unordered)."""
        return (
            self.text,
            self.evaluation,
            frozenset(option.content_key() for option in self.options),
        )


@dataclass
class Evaluation:
    course_key: str
    name: str
    display_name: str
    hash: str = ""

    @property
    def key(self) -> EvaluationKey:
        return EvaluationKey(self.course_key, self.name)


@dataclass
class Course:
    key: str
    name: str
    short_name: str
    aliases: List[str] = field(default_factory=list)
    year: Optional[int] = None
    questions: List[Question] = field(default_factory=list)
    evaluations: List[Evaluation] = field(default_factory=list)
    # Display names declared in the course file, keyed by evaluation name
    declared_evaluations: dict = field(default_factory=dict)
    hash: str = ""

    def iter_options(self):
        for question in self.questions:
            for option in question.options:
                yield question, option
