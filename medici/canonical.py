"""
canonical.py - Deterministic normalization of a course tree

Semantically equal course files must produce identical trees (and so
identical hashes). Canonicalization:

- trims question and option text
- orders options: correct first, then by text, then by id
- drops duplicate options (same text, correctness and explanation)
- orders questions by evaluation, ask date (undated first), text, id
- drops duplicate questions (same text, evaluation and option set)
- derives the course's evaluations from the questions that survive

Every step keeps the first occurrence in canonical order, so running
canonicalize_course twice is the same as running it once. Inputs are
never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, TypeVar

from medici.models import Course, Evaluation, Option, Question

logger = logging.getLogger(__name__)

T = TypeVar("T", Option, Question)


def option_sort_key(option: Option) -> tuple:
    return (not option.correct, option.text, option.id)


def question_sort_key(question: Question) -> tuple:
    # Undated questions sort before dated ones
    asked_at = question.asked_at or date.min
    return (question.evaluation, question.asked_at is not None, asked_at, question.text, question.id)


def dedupe(items: Iterable[T]) -> List[T]:
    """Keep the first item of every group sharing a content_key()."""
    seen = set()
    result = []
    for item in items:
        key = item.content_key()
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def canonicalize_options(options: Iterable[Option]) -> List[Option]:
    trimmed = [replace(option, text=option.text.strip()) for option in options]
    return dedupe(sorted(trimmed, key=option_sort_key))


def canonicalize_question(question: Question) -> Question:
    return replace(
        question,
        text=question.text.strip(),
        options=canonicalize_options(question.options),
    )


def derive_evaluations(course: Course, questions: List[Question]) -> List[Evaluation]:
    """One Evaluation per distinct evaluation name the questions reference."""
    names = sorted({question.evaluation for question in questions})

    unused = set(course.declared_evaluations) - set(names)
    if unused:
        logger.debug("[canonical] %s: unreferenced evaluations not synced: %s", course.key, sorted(unused))

    return [
        Evaluation(
            course_key=course.key,
            name=name,
            display_name=course.declared_evaluations.get(name, name),
        )
        for name in names
    ]


def canonicalize_course(course: Course) -> Course:
    questions = [canonicalize_question(question) for question in course.questions]
    questions = dedupe(sorted(questions, key=question_sort_key))

    dropped = len(course.questions) - len(questions)
    if dropped:
        logger.info("[canonical] %s: removed %d duplicate question(s)", course.key, dropped)

    return replace(
        course,
        questions=questions,
        evaluations=derive_evaluations(course, questions),
    )
