"""
hashing.py - Bottom-up content hashes (Option -> Question -> Course)

Each digest is sha256 over an order-fixed, field-tagged, length-prefixed
encoding of the entity's own fields followed by its children's digests:

    field   = tag (1 byte) + 0x01 + length (8 bytes, big endian) + payload
    absent  = tag (1 byte) + 0x00

so neighbouring fields can never run into each other ("ab" + "c" and
"a" + "bc" encode differently), and an absent optional field differs from
an empty one.

Back-references (course_key, question_id) are never hashed; a hash only
depends on what the entity contains.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import replace
from typing import Iterable, List, Optional, Union

from medici.models import Course, Evaluation, Option, Question

# Field tags. Values are part of the hash format; never renumber.
TAG_ID = 0x01
TAG_TEXT = 0x02
TAG_CORRECT = 0x03
TAG_EXPLANATION = 0x04
TAG_IMAGE = 0x05
TAG_OPTIONS = 0x06
TAG_EVALUATION = 0x07
TAG_SOURCE = 0x08
TAG_ASKED_AT = 0x09
TAG_NAME = 0x0A
TAG_KEY = 0x0B
TAG_SHORT_NAME = 0x0C
TAG_ALIASES = 0x0D
TAG_YEAR = 0x0E
TAG_QUESTIONS = 0x0F
TAG_EVALUATIONS = 0x10

_PRESENT = b"\x01"
_ABSENT = b"\x00"


def encode_field(tag: int, value: Optional[Union[str, bytes]]) -> bytes:
    if value is None:
        return bytes([tag]) + _ABSENT
    if isinstance(value, str):
        value = value.encode("utf-8")
    return bytes([tag]) + _PRESENT + struct.pack(">Q", len(value)) + value


def encode_digests(tag: int, digests: Iterable[str]) -> bytes:
    """Child digests (hex) packed as one field of raw 32-byte digests."""
    return encode_field(tag, b"".join(bytes.fromhex(d) for d in digests))


def digest(*fields: bytes) -> str:
    return hashlib.sha256(b"".join(fields)).hexdigest()


# ============================================================================
# Per-entity digests
# ============================================================================

def option_digest(option: Option) -> str:
    return digest(
        encode_field(TAG_ID, option.id.bytes),
        encode_field(TAG_TEXT, option.text),
        encode_field(TAG_CORRECT, b"\x01" if option.correct else b"\x00"),
        encode_field(TAG_EXPLANATION, option.explanation),
    )


def question_digest(question: Question) -> str:
    """Assumes every option already carries its hash."""
    asked_at = question.asked_at.isoformat() if question.asked_at else None
    return digest(
        encode_field(TAG_ID, question.id.bytes),
        encode_field(TAG_TEXT, question.text),
        encode_field(TAG_IMAGE, question.image),
        encode_digests(TAG_OPTIONS, (option.hash for option in question.options)),
        encode_field(TAG_EVALUATION, question.evaluation),
        encode_field(TAG_SOURCE, question.source),
        encode_field(TAG_ASKED_AT, asked_at),
    )


def evaluation_digest(evaluation: Evaluation) -> str:
    # Name only: the digest must not depend on which course references it
    return digest(encode_field(TAG_NAME, evaluation.display_name))


def course_digest(course: Course) -> str:
    """Assumes every question and evaluation already carries its hash."""
    aliases = b"".join(encode_field(TAG_TEXT, alias) for alias in course.aliases)
    year = str(course.year) if course.year is not None else None
    return digest(
        encode_field(TAG_KEY, course.key),
        encode_field(TAG_NAME, course.name),
        encode_field(TAG_SHORT_NAME, course.short_name),
        encode_field(TAG_ALIASES, aliases),
        encode_field(TAG_YEAR, year),
        encode_digests(TAG_QUESTIONS, (question.hash for question in course.questions)),
        encode_digests(TAG_EVALUATIONS, (evaluation.hash for evaluation in course.evaluations)),
    )


# ============================================================================
# Tree hashing
# ============================================================================

def hash_option(option: Option) -> Option:
    return replace(option, hash=option_digest(option))


def hash_question(question: Question) -> Question:
    options: List[Option] = [hash_option(option) for option in question.options]
    hashed = replace(question, options=options)
    return replace(hashed, hash=question_digest(hashed))


def hash_evaluation(evaluation: Evaluation) -> Evaluation:
    return replace(evaluation, hash=evaluation_digest(evaluation))


def hash_course(course: Course) -> Course:
    """
    Return a copy of the course tree with every hash filled in.

    Children are hashed first and each digest is computed exactly once; a
    parent only reads its children's finished digests.
    """
    hashed = replace(
        course,
        questions=[hash_question(question) for question in course.questions],
        evaluations=[hash_evaluation(evaluation) for evaluation in course.evaluations],
    )
    return replace(hashed, hash=course_digest(hashed))
