"""
raw_data.py - Read and write course files

Each course lives in <data_path>/<course_key>.json:

    {
      "name": "Cálculo I",
      "short_name": "Cálculo",
      "aliases": ["MAT1610"],
      "year": 2022,
      "evaluations": [{"key": "i1", "name": "Interrogación 1"}],
      "questions": [
        {
          "id": "5b0b5cde-...",          # optional, generated when absent
          "text": "¿Cuánto es 2 + 2?",
          "options": [
            {"id": "...", "text": "4", "correct": true, "explanation": "..."},
            {"id": "...", "text": "5"}
          ],
          "evaluation": "i1",
          "source": "...",               # optional
          "asked_at": "2022-04-01",      # optional
          "image": "https://..."         # optional
        }
      ]
    }

Unknown keys are rejected so typos never silently drop content.
"""

from __future__ import annotations

import json
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from medici.errors import course_file_error, data_dir_error
from medici.models import EVALUATION_KEY_SEPARATOR, Course, Option, Question

COURSE_FILE_SUFFIX = ".json"

COURSE_FIELDS = {"name", "short_name", "aliases", "year", "evaluations", "questions"}
EVALUATION_FIELDS = {"key", "name"}
QUESTION_FIELDS = {"id", "text", "options", "evaluation", "source", "asked_at", "image"}
OPTION_FIELDS = {"id", "text", "correct", "explanation"}


# ============================================================================
# Directory walk
# ============================================================================

def iter_course_files(data_path: Path) -> List[Path]:
    """
    List course files in the data directory, sorted by name.

    Raises:
        LoadError: If the directory is missing or holds a sub-directory
    """
    data_path = Path(data_path)
    try:
        data_path = data_path.resolve(strict=True)
    except OSError as e:
        raise data_dir_error(data_path, "directory does not exist", cause=e)

    if not data_path.is_dir():
        raise data_dir_error(data_path, "not a directory")

    files = []
    for entry in sorted(data_path.iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            raise data_dir_error(data_path, f"unexpected sub-directory {entry.name}")
        if entry.suffix == COURSE_FILE_SUFFIX:
            files.append(entry)
    return files


# ============================================================================
# Parsing
# ============================================================================

def _check_fields(path: Path, data: Any, allowed: set, where: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise course_file_error(path, f"{where} must be an object", field=where)
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise course_file_error(path, f"unknown field(s) {', '.join(unknown)} in {where}", field=where)
    return data


def _require(path: Path, data: Dict[str, Any], key: str, expected_type: type, where: str) -> Any:
    if data.get(key) is None:
        raise course_file_error(path, f"missing '{key}' in {where}", field=f"{where}.{key}")
    return _optional(path, data, key, expected_type, where)


def _optional(path: Path, data: Dict[str, Any], key: str, expected_type: type, where: str,
              default: Any = None) -> Any:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; never accept it where a number is expected
    if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
        raise course_file_error(
            path,
            f"'{key}' in {where} must be {expected_type.__name__}, got {type(value).__name__}",
            field=f"{where}.{key}",
        )
    return value


def _parse_id(path: Path, raw: Optional[str], where: str) -> uuid.UUID:
    if raw is None:
        return uuid.uuid4()
    try:
        return uuid.UUID(raw)
    except ValueError as e:
        raise course_file_error(path, f"invalid id {raw!r} in {where}", field=f"{where}.id", cause=e)


def _parse_date(path: Path, raw: Optional[str], where: str) -> Optional[date]:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise course_file_error(path, f"invalid date {raw!r} in {where}", field=f"{where}.asked_at", cause=e)


def parse_option(path: Path, raw: Any, where: str) -> Option:
    data = _check_fields(path, raw, OPTION_FIELDS, where)
    return Option(
        id=_parse_id(path, _optional(path, data, "id", str, where), where),
        text=_require(path, data, "text", str, where),
        correct=_optional(path, data, "correct", bool, where, default=False),
        explanation=_optional(path, data, "explanation", str, where),
    )


def parse_question(path: Path, raw: Any, where: str) -> Question:
    data = _check_fields(path, raw, QUESTION_FIELDS, where)
    raw_options = _require(path, data, "options", list, where)
    evaluation = _require(path, data, "evaluation", str, where)
    if not evaluation.strip():
        raise course_file_error(path, f"empty 'evaluation' in {where}", field=f"{where}.evaluation")
    return Question(
        id=_parse_id(path, _optional(path, data, "id", str, where), where),
        text=_require(path, data, "text", str, where),
        evaluation=evaluation,
        options=[
            parse_option(path, raw_option, f"{where}.options[{i}]")
            for i, raw_option in enumerate(raw_options)
        ],
        source=_optional(path, data, "source", str, where),
        asked_at=_parse_date(path, _optional(path, data, "asked_at", str, where), where),
        image=_optional(path, data, "image", str, where),
    )


def parse_course(key: str, raw: Any, path: Path) -> Course:
    """Build a Course from decoded JSON. Ids missing in the file are generated."""
    if EVALUATION_KEY_SEPARATOR in key:
        raise course_file_error(path, f"course key may not contain '{EVALUATION_KEY_SEPARATOR}'")

    data = _check_fields(path, raw, COURSE_FIELDS, "course")

    aliases = _optional(path, data, "aliases", list, "course", default=[])
    for alias in aliases:
        if not isinstance(alias, str):
            raise course_file_error(path, "aliases must be strings", field="course.aliases")

    declared = {}
    for i, raw_eval in enumerate(_optional(path, data, "evaluations", list, "course", default=[])):
        where = f"evaluations[{i}]"
        eval_data = _check_fields(path, raw_eval, EVALUATION_FIELDS, where)
        declared[_require(path, eval_data, "key", str, where)] = _require(path, eval_data, "name", str, where)

    raw_questions = _require(path, data, "questions", list, "course")

    return Course(
        key=key,
        name=_require(path, data, "name", str, "course"),
        short_name=_require(path, data, "short_name", str, "course"),
        aliases=list(aliases),
        year=_optional(path, data, "year", int, "course"),
        questions=[
            parse_question(path, raw_question, f"questions[{i}]")
            for i, raw_question in enumerate(raw_questions)
        ],
        declared_evaluations=declared,
    )


def load_course(path: Path) -> Course:
    """
    Read one course file. The course key is the file stem.

    Raises:
        LoadError: If the file is unreadable or does not match the schema
    """
    path = Path(path)
    try:
        raw_text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise course_file_error(path, "file cannot be read", cause=e)

    try:
        raw = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise course_file_error(path, f"invalid JSON at line {e.lineno}", cause=e)

    return parse_course(path.stem, raw, path)


# ============================================================================
# Writing
# ============================================================================

def option_to_raw(option: Option) -> Dict[str, Any]:
    raw: Dict[str, Any] = {"id": str(option.id), "text": option.text}
    if option.correct:
        raw["correct"] = True
    if option.explanation is not None:
        raw["explanation"] = option.explanation
    return raw


def question_to_raw(question: Question) -> Dict[str, Any]:
    raw: Dict[str, Any] = {
        "id": str(question.id),
        "text": question.text,
        "options": [option_to_raw(option) for option in question.options],
        "evaluation": question.evaluation,
    }
    if question.source is not None:
        raw["source"] = question.source
    if question.asked_at is not None:
        raw["asked_at"] = question.asked_at.isoformat()
    if question.image is not None:
        raw["image"] = question.image
    return raw


def course_to_raw(course: Course) -> Dict[str, Any]:
    """Inverse of parse_course, with a fixed key order."""
    raw: Dict[str, Any] = {
        "name": course.name,
        "short_name": course.short_name,
        "aliases": list(course.aliases),
    }
    if course.year is not None:
        raw["year"] = course.year
    # Declared evaluations are kept even before any question uses them
    display_names = dict(course.declared_evaluations)
    display_names.update((e.name, e.display_name) for e in course.evaluations)
    if display_names:
        raw["evaluations"] = [
            {"key": name, "name": display_names[name]}
            for name in sorted(display_names)
        ]
    raw["questions"] = [question_to_raw(question) for question in course.questions]
    return raw


def dump_course(course: Course) -> str:
    return json.dumps(course_to_raw(course), indent=2, ensure_ascii=False) + "\n"
