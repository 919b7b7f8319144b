"""
differ.py - Reconcile the local course tree against the remote snapshot

The remote store reports what it holds as independent id -> hash maps
(courses, questions, options) plus the set of evaluation keys it knows.
compute_changeset walks the canonical, hashed local tree once and returns
everything that has to be upserted or deleted to make the remote match:

- an entity is upserted when the remote has no hash for it, or a
  different one
- an id is deleted when the remote has it but the local walk never saw it
- an evaluation is deleted when no surviving question references it

Each level reconciles to an explicit Decision. Deletions are plain set
differences (remote ids - seen ids) computed after the walk; the snapshot
is never mutated.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from medici.errors import malformed_snapshot_error
from medici.models import (
    Course,
    Evaluation,
    EvaluationKey,
    Option,
    Question,
    format_evaluation_key,
    parse_evaluation_key,
)


class Decision(Enum):
    UNCHANGED = "unchanged"
    UPSERT = "upsert"


def reconcile(local_hash: str, remote_hash: Optional[str]) -> Decision:
    if remote_hash is not None and remote_hash == local_hash:
        return Decision.UNCHANGED
    return Decision.UPSERT


# ============================================================================
# Remote snapshot
# ============================================================================

@dataclass(frozen=True)
class SyncMetadata:
    """Point-in-time view of what the remote store holds."""
    courses: Mapping[str, str] = field(default_factory=dict)
    questions: Mapping[uuid.UUID, str] = field(default_factory=dict)
    options: Mapping[uuid.UUID, str] = field(default_factory=dict)
    evaluations: frozenset = frozenset()

    @classmethod
    def from_dict(cls, data: Any) -> "SyncMetadata":
        """
        Parse the wire form:

            {"courses_metadata": {key: hash},
             "questions_metadata": {uuid: hash},
             "options_metadata": {uuid: hash},
             "evaluations_metadata": ["course/name", ...]}

        Raises:
            SnapshotError: If any collection is missing or malformed
        """
        if not isinstance(data, dict):
            raise malformed_snapshot_error("expected a JSON object")

        courses = _hash_map(data, "courses_metadata", key_parser=_course_key)
        questions = _hash_map(data, "questions_metadata", key_parser=uuid.UUID)
        options = _hash_map(data, "options_metadata", key_parser=uuid.UUID)

        raw_evaluations = data.get("evaluations_metadata")
        if not isinstance(raw_evaluations, list):
            raise malformed_snapshot_error("'evaluations_metadata' must be a list")
        try:
            evaluations = frozenset(parse_evaluation_key(raw) for raw in raw_evaluations)
        except (TypeError, ValueError, AttributeError) as e:
            raise malformed_snapshot_error("invalid evaluation key in 'evaluations_metadata'", cause=e)

        return cls(courses=courses, questions=questions, options=options, evaluations=evaluations)


def _course_key(raw: str) -> str:
    if not raw:
        raise ValueError("empty course key")
    return raw


def _hash_map(data: Dict[str, Any], name: str, key_parser) -> Dict[Any, str]:
    raw = data.get(name)
    if not isinstance(raw, dict):
        raise malformed_snapshot_error(f"'{name}' must be an object")

    result = {}
    for raw_key, raw_hash in raw.items():
        if not isinstance(raw_hash, str):
            raise malformed_snapshot_error(f"hash for {raw_key!r} in '{name}' is not a string")
        try:
            result[key_parser(raw_key)] = raw_hash
        except (TypeError, ValueError) as e:
            raise malformed_snapshot_error(f"invalid key {raw_key!r} in '{name}'", cause=e)
    return result


# ============================================================================
# Changeset
# ============================================================================

@dataclass
class Changeset:
    courses_to_sync: List[Course] = field(default_factory=list)
    courses_to_delete: List[str] = field(default_factory=list)

    questions_to_sync: List[Question] = field(default_factory=list)
    questions_to_delete: List[uuid.UUID] = field(default_factory=list)

    options_to_sync: List[Option] = field(default_factory=list)
    options_to_delete: List[uuid.UUID] = field(default_factory=list)

    evaluations_to_sync: List[Evaluation] = field(default_factory=list)
    evaluations_to_delete: List[EvaluationKey] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any((
            self.courses_to_sync, self.courses_to_delete,
            self.questions_to_sync, self.questions_to_delete,
            self.options_to_sync, self.options_to_delete,
            self.evaluations_to_sync, self.evaluations_to_delete,
        ))

    def counts(self) -> Dict[str, Dict[str, int]]:
        return {
            "courses": {"sync": len(self.courses_to_sync), "delete": len(self.courses_to_delete)},
            "questions": {"sync": len(self.questions_to_sync), "delete": len(self.questions_to_delete)},
            "options": {"sync": len(self.options_to_sync), "delete": len(self.options_to_delete)},
            "evaluations": {"sync": len(self.evaluations_to_sync), "delete": len(self.evaluations_to_delete)},
        }

    def summary(self) -> str:
        """Get a human-readable summary."""
        if self.is_empty:
            return "Remote store is up to date"
        lines = ["Changeset"]
        for level, count in self.counts().items():
            lines.append(f"  {level:<12} sync: {count['sync']:>5}   delete: {count['delete']:>5}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form sent to the remote store."""
        return {
            "courses_to_sync": [course_payload(c) for c in self.courses_to_sync],
            "courses_to_delete": list(self.courses_to_delete),
            "questions_to_sync": [question_payload(q) for q in self.questions_to_sync],
            "questions_to_delete": [str(i) for i in self.questions_to_delete],
            "options_to_sync": [option_payload(o) for o in self.options_to_sync],
            "options_to_delete": [str(i) for i in self.options_to_delete],
            "evaluations_to_sync": [evaluation_payload(e) for e in self.evaluations_to_sync],
            "evaluations_to_delete": [format_evaluation_key(k) for k in self.evaluations_to_delete],
        }


def course_payload(course: Course) -> Dict[str, Any]:
    return {
        "key": course.key,
        "name": course.name,
        "short_name": course.short_name,
        "aliases": list(course.aliases),
        "year": course.year,
        "hash": course.hash,
    }


def question_payload(question: Question) -> Dict[str, Any]:
    return {
        "id": str(question.id),
        "course_key": question.course_key,
        "evaluation": format_evaluation_key(question.evaluation_key) if question.course_key else None,
        "text": question.text,
        "source": question.source,
        "asked_at": question.asked_at.isoformat() if question.asked_at else None,
        "image_url": question.image,
        "hash": question.hash,
    }


def option_payload(option: Option) -> Dict[str, Any]:
    return {
        "id": str(option.id),
        "question_id": str(option.question_id) if option.question_id else None,
        "text": option.text,
        "correct": option.correct,
        "explanation": option.explanation,
        "hash": option.hash,
    }


def evaluation_payload(evaluation: Evaluation) -> Dict[str, Any]:
    return {
        "key": format_evaluation_key(evaluation.key),
        "course_key": evaluation.course_key,
        "name": evaluation.display_name,
        "hash": evaluation.hash,
    }


# ============================================================================
# Diff
# ============================================================================

@dataclass
class _Walk:
    """Ids seen and references made while walking the local tree."""
    courses: Set[str] = field(default_factory=set)
    questions: Set[uuid.UUID] = field(default_factory=set)
    options: Set[uuid.UUID] = field(default_factory=set)
    evaluations: Set[EvaluationKey] = field(default_factory=set)


def _reconcile_options(question: Question, snapshot: SyncMetadata, walk: _Walk,
                       changeset: Changeset) -> None:
    for option in question.options:
        bound = replace(option, question_id=question.id)
        walk.options.add(bound.id)
        if reconcile(bound.hash, snapshot.options.get(bound.id)) is Decision.UPSERT:
            changeset.options_to_sync.append(bound)


def _reconcile_question(question: Question, course_key: str, snapshot: SyncMetadata,
                        walk: _Walk, changeset: Changeset) -> Decision:
    bound = replace(question, course_key=course_key)
    walk.questions.add(bound.id)
    # The evaluation is in use whether or not the question itself changed
    walk.evaluations.add(bound.evaluation_key)

    decision = reconcile(bound.hash, snapshot.questions.get(bound.id))
    if decision is Decision.UPSERT:
        changeset.questions_to_sync.append(bound)

    _reconcile_options(bound, snapshot, walk, changeset)
    return decision


def _reconcile_course(course: Course, snapshot: SyncMetadata, walk: _Walk,
                      changeset: Changeset) -> Decision:
    walk.courses.add(course.key)
    decision = reconcile(course.hash, snapshot.courses.get(course.key))
    if decision is Decision.UPSERT:
        changeset.courses_to_sync.append(course)

    for question in course.questions:
        _reconcile_question(question, course.key, snapshot, walk, changeset)

    for evaluation in course.evaluations:
        # An evaluation's digest is folded into its course's, so an unchanged
        # course that the remote already lists needs nothing sent
        if decision is Decision.UPSERT or evaluation.key not in snapshot.evaluations:
            changeset.evaluations_to_sync.append(evaluation)

    return decision


def compute_changeset(courses: Iterable[Course], snapshot: SyncMetadata) -> Changeset:
    """
    Diff canonical, hashed courses against a remote snapshot.

    The courses must form the complete local dataset: anything the remote
    holds that they do not produce ends up in the delete lists.
    """
    changeset = Changeset()
    walk = _Walk()

    for course in courses:
        if course.key in walk.courses:
            raise ValueError(f"Duplicate course key: {course.key}")
        _reconcile_course(course, snapshot, walk, changeset)

    changeset.courses_to_delete = sorted(set(snapshot.courses) - walk.courses)
    changeset.questions_to_delete = sorted(set(snapshot.questions) - walk.questions)
    changeset.options_to_delete = sorted(set(snapshot.options) - walk.options)
    changeset.evaluations_to_delete = sorted(snapshot.evaluations - walk.evaluations)
    return changeset
