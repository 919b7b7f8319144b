"""
validate.py - Structural checks run before canonicalization

A question must have between 2 and 5 options with exactly one marked
correct. The first violation aborts the run, so nothing invalid is ever
hashed, written or synced.
"""

from typing import Optional

from medici.errors import correct_count_error, option_count_error
from medici.models import MAX_OPTIONS, MIN_OPTIONS, Course, Question


def validate_question(question: Question, course_key: Optional[str] = None) -> None:
    """
    Raises:
        ValidationError: naming the question id and the violated rule
    """
    count = len(question.options)
    if count < MIN_OPTIONS or count > MAX_OPTIONS:
        raise option_count_error(question.id, count, course_key=course_key)

    correct = sum(1 for option in question.options if option.correct)
    if correct != 1:
        raise correct_count_error(question.id, correct, course_key=course_key)


def validate_course(course: Course) -> None:
    """Validate every question of a course, stopping at the first failure."""
    for question in course.questions:
        validate_question(question, course_key=course.key)
