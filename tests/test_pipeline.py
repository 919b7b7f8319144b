# tests/test_pipeline.py
"""
Tests for pipeline.py - format and sync workflows
"""
import json

import pytest

from medici.differ import SyncMetadata
from medici.errors import LoadError, SnapshotError, ValidationError
from medici.pipeline import format_data_dir, load_dataset, plan_sync, sync_data_dir

from conftest import uid


@pytest.fixture
def store(mocker):
    fake = mocker.Mock()
    fake.fetch_snapshot.return_value = SyncMetadata()
    return fake


class TestLoadDataset:

    def test_canonical_and_hashed(self, data_dir):
        [course] = load_dataset(data_dir)

        assert course.hash
        # Undated question sorts first; duplicate "2" option removed
        assert [q.id for q in course.questions] == [uid(1), uid(2)]
        assert [o.text for o in course.questions[0].options] == ["x^2 + C", "2"]
        assert course.questions[1].text == "Derivative of x^2?"
        assert [e.name for e in course.evaluations] == ["i1"]
        assert course.evaluations[0].display_name == "Interrogación 1"

    def test_validation_failure_aborts(self, data_dir, sample_course_data):
        sample_course_data["questions"][0]["options"][1]["correct"] = False
        (data_dir / "calculus.json").write_text(json.dumps(sample_course_data))

        with pytest.raises(ValidationError) as exc_info:
            load_dataset(data_dir)

        assert exc_info.value.question_id == uid(2)


class TestUniqueIds:

    def test_duplicate_question_id_in_one_file(self, data_dir, sample_course_data):
        copy = json.loads(json.dumps(sample_course_data["questions"][0]))
        copy["text"] = "Derivative of x^3?"
        for option in copy["options"]:
            del option["id"]
        sample_course_data["questions"].append(copy)
        (data_dir / "calculus.json").write_text(json.dumps(sample_course_data))

        with pytest.raises(LoadError, match="Duplicate question id") as exc_info:
            load_dataset(data_dir)

        assert exc_info.value.context["id"] == str(uid(2))
        assert exc_info.value.context["files"] == ["calculus.json"]

    def test_duplicate_option_id_across_files(self, data_dir, sample_course_data):
        other = json.loads(json.dumps(sample_course_data))
        other["questions"] = other["questions"][:1]
        question = other["questions"][0]
        del question["id"]
        question["text"] = "Derivative of 2x?"
        question["options"][1]["text"] = "2"
        (data_dir / "algebra.json").write_text(json.dumps(other))

        with pytest.raises(LoadError, match="Duplicate option id") as exc_info:
            load_dataset(data_dir)

        assert exc_info.value.context["files"] == ["algebra.json", "calculus.json"]

    def test_exact_copy_collapses(self, data_dir, sample_course_data):
        sample_course_data["questions"].append(json.loads(json.dumps(sample_course_data["questions"][0])))
        (data_dir / "calculus.json").write_text(json.dumps(sample_course_data))

        [course] = load_dataset(data_dir)

        assert len(course.questions) == 2

    def test_format_refuses_duplicates(self, data_dir, sample_course_data):
        path = data_dir / "calculus.json"
        copy = json.loads(json.dumps(sample_course_data["questions"][1]))
        copy["text"] = "Integral of 3x^2?"
        sample_course_data["questions"].append(copy)
        path.write_text(json.dumps(sample_course_data))
        before = path.read_text()

        with pytest.raises(LoadError):
            format_data_dir(data_dir)

        assert path.read_text() == before


class TestFormatDataDir:

    def test_rewrites_then_stable(self, data_dir):
        path = data_dir / "calculus.json"

        assert format_data_dir(data_dir) == [path]
        formatted = path.read_text(encoding="utf-8")
        assert format_data_dir(data_dir) == []
        assert path.read_text(encoding="utf-8") == formatted

    def test_formatted_content(self, data_dir):
        format_data_dir(data_dir)

        data = json.loads((data_dir / "calculus.json").read_text(encoding="utf-8"))

        # "ex" is declared but unused: written back, never synced
        assert data["evaluations"] == [
            {"key": "ex", "name": "Examen"},
            {"key": "i1", "name": "Interrogación 1"},
        ]
        assert [q["id"] for q in data["questions"]] == [str(uid(1)), str(uid(2))]
        assert data["questions"][1]["options"][0] == {
            "id": str(uid(22)), "text": "2x", "correct": True, "explanation": "Power rule",
        }

    def test_generated_ids_persisted(self, data_dir, sample_course_data):
        del sample_course_data["questions"][0]["id"]
        (data_dir / "calculus.json").write_text(json.dumps(sample_course_data))

        format_data_dir(data_dir)
        first = json.loads((data_dir / "calculus.json").read_text(encoding="utf-8"))
        format_data_dir(data_dir)
        second = json.loads((data_dir / "calculus.json").read_text(encoding="utf-8"))

        assert all("id" in q for q in first["questions"])
        assert first == second

    def test_invalid_file_writes_nothing(self, data_dir, sample_course_data):
        good = data_dir / "calculus.json"
        before = good.read_text(encoding="utf-8")
        sample_course_data["questions"][0]["options"] = sample_course_data["questions"][0]["options"][:1]
        (data_dir / "zz.json").write_text(json.dumps(sample_course_data))

        with pytest.raises(ValidationError):
            format_data_dir(data_dir)

        assert good.read_text(encoding="utf-8") == before


class TestSync:

    def test_plan_against_empty_remote(self, data_dir, store):
        changeset = plan_sync(data_dir, store)

        assert [c.key for c in changeset.courses_to_sync] == ["calculus"]
        assert len(changeset.questions_to_sync) == 2
        assert len(changeset.options_to_sync) == 4
        store.push_changeset.assert_not_called()

    def test_sync_pushes(self, data_dir, store):
        changeset = sync_data_dir(data_dir, store)
        store.push_changeset.assert_called_once_with(changeset)

    def test_dry_run_does_not_push(self, data_dir, store):
        sync_data_dir(data_dir, store, dry_run=True)
        store.push_changeset.assert_not_called()

    def test_nothing_to_push_when_up_to_date(self, data_dir, store):
        [course] = load_dataset(data_dir)
        store.fetch_snapshot.return_value = SyncMetadata(
            courses={course.key: course.hash},
            questions={q.id: q.hash for q in course.questions},
            options={o.id: o.hash for _, o in course.iter_options()},
            evaluations=frozenset(e.key for e in course.evaluations),
        )

        changeset = sync_data_dir(data_dir, store)

        assert changeset.is_empty
        store.push_changeset.assert_not_called()

    def test_snapshot_failure_aborts(self, data_dir, store):
        store.fetch_snapshot.side_effect = SnapshotError("unreachable")

        with pytest.raises(SnapshotError):
            sync_data_dir(data_dir, store)

        store.push_changeset.assert_not_called()

    def test_invalid_data_skips_remote(self, data_dir, sample_course_data, store):
        sample_course_data["questions"][1]["options"][0]["correct"] = False
        (data_dir / "calculus.json").write_text(json.dumps(sample_course_data))

        with pytest.raises(ValidationError):
            sync_data_dir(data_dir, store)

        store.fetch_snapshot.assert_not_called()
