"""
pipeline.py - format and sync workflows

    load -> validate -> canonicalize -> hash          (prepare_course)
    every course, then snapshot, then diff            (plan_sync)
    plan_sync, then push                              (sync_data_dir)

The whole dataset is prepared before the remote snapshot is read, and the
changeset is only computed once both are complete. Any error aborts the
run before anything is written or pushed.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Dict, List, Tuple

from medici.canonical import canonicalize_course
from medici.differ import Changeset, compute_changeset
from medici.errors import duplicate_id_error
from medici.hashing import hash_course
from medici.models import Course
from medici.raw_data import dump_course, iter_course_files, load_course
from medici.remote_client import RemoteStore
from medici.validate import validate_course

logger = logging.getLogger(__name__)


def prepare_course(path: Path) -> Course:
    """Load, validate, canonicalize and hash one course file."""
    course = load_course(path)
    validate_course(course)
    course = hash_course(canonicalize_course(course))
    logger.debug("[load] %s: %d question(s), hash %s", course.key, len(course.questions), course.hash[:12])
    return course


def check_unique_ids(prepared: List[Tuple[Path, Course]]) -> None:
    """
    Question and option ids must be unique across the whole dataset.

    Runs after canonicalization, so exact copies already collapsed into one.

    Raises:
        LoadError: naming the id and the files that share it
    """
    owners: Dict[Tuple[str, uuid.UUID], Path] = {}

    def claim(kind: str, entity_id: uuid.UUID, path: Path):
        key = (kind, entity_id)
        if key in owners:
            raise duplicate_id_error(kind, entity_id, [owners[key], path])
        owners[key] = path

    for path, course in prepared:
        for question in course.questions:
            claim("question", question.id, path)
            for option in question.options:
                claim("option", option.id, path)


def prepare_data_dir(data_path: Path) -> List[Tuple[Path, Course]]:
    prepared = [(path, prepare_course(path)) for path in iter_course_files(data_path)]
    check_unique_ids(prepared)
    return prepared


def load_dataset(data_path: Path) -> List[Course]:
    courses = [course for _, course in prepare_data_dir(data_path)]
    logger.info(
        "[load] %d course(s), %d question(s), %d option(s)",
        len(courses),
        sum(len(course.questions) for course in courses),
        sum(1 for course in courses for _ in course.iter_options()),
    )
    return courses


def format_data_dir(data_path: Path) -> List[Path]:
    """
    Rewrite every course file in canonical form.

    All files are prepared before the first one is written, so an invalid
    file leaves the whole directory untouched.

    Returns:
        Paths whose content changed
    """
    prepared = prepare_data_dir(data_path)

    changed = []
    for path, course in prepared:
        formatted = dump_course(course)
        if path.read_text(encoding="utf-8") == formatted:
            continue
        path.write_text(formatted, encoding="utf-8")
        changed.append(path)
        logger.info("[format] Rewrote %s", path.name)

    logger.info("[format] %d of %d file(s) changed", len(changed), len(prepared))
    return changed


def plan_sync(data_path: Path, store: RemoteStore) -> Changeset:
    courses = load_dataset(data_path)
    snapshot = store.fetch_snapshot()
    return compute_changeset(courses, snapshot)


def sync_data_dir(data_path: Path, store: RemoteStore, dry_run: bool = False) -> Changeset:
    """
    Compute the changeset for data_path and push it unless dry_run.

    Raises:
        LoadError, ValidationError, SnapshotError, TransportError
    """
    changeset = plan_sync(data_path, store)
    logger.info("[sync] %s", changeset.summary())

    if dry_run:
        logger.info("[sync] Dry run - nothing pushed")
    elif not changeset.is_empty:
        store.push_changeset(changeset)
        logger.info("[sync] Changeset pushed")

    return changeset
