# tests/conftest.py
"""
Pytest configuration and shared fixtures for Medici tests
"""
import json
import uuid
from pathlib import Path

import pytest

from medici.models import Course, Option, Question


def uid(n: int) -> uuid.UUID:
    """Deterministic ids so hashes are stable across test runs"""
    return uuid.UUID(int=n)


@pytest.fixture
def make_option():
    def factory(n, text, correct=False, explanation=None):
        return Option(id=uid(n), text=text, correct=correct, explanation=explanation)
    return factory


@pytest.fixture
def make_question(make_option):
    def factory(n, text="What is 2 + 2?", evaluation="midterm", options=None, **kwargs):
        if options is None:
            options = [
                make_option(n * 10 + 1, "4", correct=True),
                make_option(n * 10 + 2, "5"),
                make_option(n * 10 + 3, "3"),
            ]
        return Question(id=uid(n), text=text, evaluation=evaluation, options=options, **kwargs)
    return factory


@pytest.fixture
def make_course(make_question):
    def factory(key="c1", questions=None, **kwargs):
        if questions is None:
            questions = [make_question(1), make_question(2, text="What is 3 + 3?", evaluation="final")]
        kwargs.setdefault("name", "Calculus I")
        kwargs.setdefault("short_name", "Calculus")
        return Course(key=key, questions=questions, **kwargs)
    return factory


SAMPLE_COURSE = {
    "name": "Calculus I",
    "short_name": "Calculus",
    "aliases": ["MAT1610"],
    "year": 2022,
    "evaluations": [
        {"key": "i1", "name": "Interrogación 1"},
        {"key": "ex", "name": "Examen"},
    ],
    "questions": [
        {
            "id": str(uid(2)),
            "text": "  Derivative of x^2?  ",
            "options": [
                {"id": str(uid(21)), "text": "x"},
                {"id": str(uid(22)), "text": "2x ", "correct": True, "explanation": "Power rule"},
            ],
            "evaluation": "i1",
            "asked_at": "2022-04-01",
        },
        {
            "id": str(uid(1)),
            "text": "Integral of 2x?",
            "options": [
                {"id": str(uid(11)), "text": "x^2 + C", "correct": True},
                {"id": str(uid(12)), "text": "2"},
                {"id": str(uid(13)), "text": "2"},
            ],
            "evaluation": "i1",
            "source": "Stewart 5.3",
        },
    ],
}


@pytest.fixture
def sample_course_data():
    """A fresh deep copy of the sample course file content"""
    return json.loads(json.dumps(SAMPLE_COURSE))


@pytest.fixture
def data_dir(tmp_path: Path, sample_course_data) -> Path:
    """A data directory with one course file (calculus.json)"""
    path = tmp_path / "data"
    path.mkdir()
    (path / "calculus.json").write_text(json.dumps(sample_course_data, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep ~/.medici and MEDICI_* variables from leaking into tests"""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    for name in ("MEDICI_DATA_PATH", "MEDICI_API_URL", "MEDICI_API_KEY",
                 "MEDICI_CREDENTIAL_FILE", "MEDICI_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return home
