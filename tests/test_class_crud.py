# /tests/test_class_crud.py

import threading

import pytest

from classgrader.core.errors import ClassNotFoundError, DuplicateStudentError
from classgrader.models import activity_model, class_model, student_model
from classgrader.models.extraction_model import ExtractedStudent
from classgrader.services.class_helpers import crud, paths
from classgrader.services import score_service
from classgrader.models.score_model import ScoreRecord


@pytest.fixture
def class_id(db_service, professor_id):
    """An empty class to add students and activities to."""
    return crud.create_class(
        professor_id,
        class_model.ClassCreate(className="Data Structures", section="BSIT 2-A", semester="1st Sem"),
        db_service,
    )


# --- Classes ---

def test_create_class_writes_metadata(db_service, professor_id, class_id):
    stored = crud.get_class(professor_id, class_id, db_service)
    assert stored["className"] == "Data Structures"
    assert stored["section"] == "BSIT 2-A"
    assert stored["themeColor"] == "#00b679"
    assert stored["createdAt"].endswith("Z")
    assert "students" not in stored  # empty mappings are not stored


def test_create_class_with_seeded_students_is_one_atomic_write(db_service, professor_id):
    """GIVEN a class watcher WHEN a class with 3 students is created THEN it appears complete in one emission."""
    emissions = []
    db_service.listen(paths.classes_path(professor_id), emissions.append)

    class_id = crud.create_class(
        professor_id,
        class_model.ClassCreate(
            className="Physics",
            studentList=[
                ExtractedStudent(name="Ann", id="2023-001"),
                ExtractedStudent(name="Bo", id=None),
                ExtractedStudent(name="Cy", id="2023-003"),
            ],
        ),
        db_service,
    )

    assert len(emissions) == 2
    assert emissions[0] is None
    students = emissions[1][class_id]["students"]
    assert len(students) == 3
    assert sorted(s["studentId"] for s in students.values()) == ["2023-001", "2023-003", "Pending"]
    # Seeded students are keyed by minted keys, not by their external IDs.
    assert "2023-001" not in students


def test_update_class_merges_fields(db_service, professor_id, class_id):
    updated = crud.update_class(professor_id, class_id, class_model.ClassUpdate(themeColor="#ff0000"), db_service)
    assert updated["themeColor"] == "#ff0000"
    assert updated["className"] == "Data Structures"


def test_update_class_without_data_raises(db_service, professor_id, class_id):
    with pytest.raises(ValueError):
        crud.update_class(professor_id, class_id, class_model.ClassUpdate(), db_service)


def test_update_missing_class_returns_none(db_service, professor_id):
    assert crud.update_class(professor_id, "nope", class_model.ClassUpdate(section="X"), db_service) is None


def test_delete_class_removes_the_subtree(db_service, professor_id, class_id):
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S100"), db_service)
    assert crud.delete_class(professor_id, class_id, db_service) is True
    assert crud.get_class(professor_id, class_id, db_service) is None
    assert db_service.get(paths.students_path(professor_id, class_id)) is None
    assert crud.delete_class(professor_id, class_id, db_service) is False


def test_classes_are_scoped_per_professor(db_service, professor_id, class_id):
    assert crud.get_class("someone_else", class_id, db_service) is None
    assert crud.get_classes("someone_else", db_service) == {}


# --- Students ---

def test_add_student_keys_by_student_id(db_service, professor_id, class_id):
    key = crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S1"), db_service)
    assert key == "S1"
    student = crud.get_student(professor_id, class_id, "S1", db_service)
    assert student["name"] == "Ann"
    assert student["studentId"] == "S1"


def test_add_student_without_id_gets_generated_key_and_pending(db_service, professor_id, class_id):
    key = crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Bo"), db_service)
    assert len(key) == 20
    assert crud.get_student(professor_id, class_id, key, db_service)["studentId"] == "Pending"


def test_sequential_adds_with_same_id_leave_one_record_with_latest_values(db_service, professor_id, class_id):
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="First", studentId="S1"), db_service,
                     conflict_policy="overwrite")
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Second", studentId="S1"), db_service,
                     conflict_policy="overwrite")

    students = crud.list_students(professor_id, class_id, db_service)
    assert len(students) == 1
    assert students[0]["id"] == "S1"
    assert students[0]["name"] == "Second"


def test_reject_policy_refuses_duplicate_key(db_service, professor_id, class_id):
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="First", studentId="S1"), db_service)
    with pytest.raises(DuplicateStudentError):
        crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Second", studentId="S1"), db_service,
                         conflict_policy="reject")
    assert crud.get_student(professor_id, class_id, "S1", db_service)["name"] == "First"


def test_conflict_policy_comes_from_config(db_service, professor_id, class_id, monkeypatch):
    monkeypatch.setattr("classgrader.core.config.STUDENT_KEY_CONFLICT_POLICY", "reject")
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="First", studentId="S1"), db_service)
    with pytest.raises(DuplicateStudentError):
        crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Again", studentId="S1"), db_service)


def test_add_student_to_missing_class_raises(db_service, professor_id):
    with pytest.raises(ClassNotFoundError):
        crud.add_student(professor_id, "missing", student_model.StudentCreate(name="Ann", studentId="S1"), db_service)


def test_update_student_keeps_the_key(db_service, professor_id, class_id):
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S1"), db_service)
    updated = crud.update_student(professor_id, class_id, "S1", student_model.StudentUpdate(studentId="S9"), db_service)
    assert updated["id"] == "S1"
    assert updated["studentId"] == "S9"
    assert updated["name"] == "Ann"


def test_delete_student_takes_its_scores_along(db_service, professor_id, class_id):
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S1"), db_service)
    score_service.save_score(professor_id, class_id, "S1", "act1", ScoreRecord(score=90), db_service)

    assert crud.delete_student(professor_id, class_id, "S1", db_service) is True
    assert db_service.get(paths.score_path(professor_id, class_id, "S1", "act1")) is None
    assert crud.delete_student(professor_id, class_id, "S1", db_service) is False


def test_list_students_sorted_by_name(db_service, professor_id, class_id):
    for name, sid in [("cara", "S3"), ("Ann", "S1"), ("Bo", "S2")]:
        crud.add_student(professor_id, class_id, student_model.StudentCreate(name=name, studentId=sid), db_service)
    assert [s["name"] for s in crud.list_students(professor_id, class_id, db_service)] == ["Ann", "Bo", "cara"]


# --- Masterlist ---

def test_save_masterlist_writes_every_student_at_once(db_service, professor_id, class_id):
    emissions = []
    db_service.listen(paths.students_path(professor_id, class_id), emissions.append)

    keys = crud.save_masterlist(
        professor_id, class_id,
        [ExtractedStudent(name="Ann", id="2023-001"), ExtractedStudent(name="Bo", id="")],
        db_service,
    )

    assert len(keys) == 2 and len(set(keys)) == 2
    assert len(emissions) == 2
    assert set(emissions[-1]) == set(keys)
    assert emissions[-1][keys[1]]["studentId"] == "Pending"


def test_save_empty_masterlist_writes_nothing(db_service, professor_id, class_id):
    emissions = []
    db_service.listen(paths.students_path(professor_id, class_id), emissions.append)
    assert crud.save_masterlist(professor_id, class_id, [], db_service) == []
    assert emissions == [None]


# --- Activities ---

def test_activity_crud(db_service, professor_id, class_id):
    activity_id = crud.add_activity(professor_id, class_id, activity_model.ActivityCreate(title="Quiz 1"), db_service)
    assert crud.get_activity(professor_id, class_id, activity_id, db_service)["title"] == "Quiz 1"

    updated = crud.update_activity(professor_id, class_id, activity_id, "Quiz 1 (Retake)", db_service)
    assert updated["title"] == "Quiz 1 (Retake)"
    assert crud.update_activity(professor_id, class_id, "missing", "x", db_service) is None

    assert crud.delete_activity(professor_id, class_id, activity_id, db_service) is True
    assert crud.get_activity(professor_id, class_id, activity_id, db_service) is None
    assert crud.delete_activity(professor_id, class_id, activity_id, db_service) is False


def test_list_activities_newest_first(db_service, professor_id, class_id):
    db_service.update(paths.activities_path(professor_id, class_id), {
        "a": {"title": "Old", "createdAt": "2024-01-01T00:00:00.000Z"},
        "b": {"title": "New", "createdAt": "2024-03-01T00:00:00.000Z"},
        "c": {"title": "Mid", "createdAt": "2024-02-01T00:00:00.000Z"},
    })
    assert [a["title"] for a in crud.list_activities(professor_id, class_id, db_service)] == ["New", "Mid", "Old"]


def test_delete_activity_cascades_to_scores(db_service, professor_id, class_id):
    activity_id = crud.add_activity(professor_id, class_id, activity_model.ActivityCreate(title="Quiz"), db_service)
    other_id = crud.add_activity(professor_id, class_id, activity_model.ActivityCreate(title="Exam"), db_service)
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S1"), db_service)
    score_service.save_score(professor_id, class_id, "S1", activity_id, ScoreRecord(score=80), db_service)
    score_service.save_score(professor_id, class_id, "S1", other_id, ScoreRecord(score=70), db_service)

    crud.delete_activity(professor_id, class_id, activity_id, db_service, policy="cascade")

    scores = crud.get_student(professor_id, class_id, "S1", db_service)["scores"]
    assert activity_id not in scores
    assert scores[other_id]["score"] == 70


def test_delete_activity_retain_policy_leaves_scores(db_service, professor_id, class_id):
    activity_id = crud.add_activity(professor_id, class_id, activity_model.ActivityCreate(title="Quiz"), db_service)
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S1"), db_service)
    score_service.save_score(professor_id, class_id, "S1", activity_id, ScoreRecord(score=80), db_service)

    crud.delete_activity(professor_id, class_id, activity_id, db_service, policy="retain")

    assert crud.get_student(professor_id, class_id, "S1", db_service)["scores"][activity_id]["score"] == 80


def test_cascade_holds_back_score_writes_until_the_delete_commits(mocker, db_service, professor_id, class_id):
    activity_id = crud.add_activity(professor_id, class_id, activity_model.ActivityCreate(title="Quiz"), db_service)
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Ann", studentId="S1"), db_service)
    crud.add_student(professor_id, class_id, student_model.StudentCreate(name="Bo", studentId="S2"), db_service)
    score_service.save_score(professor_id, class_id, "S1", activity_id, ScoreRecord(score=80), db_service)

    writer = threading.Thread(
        target=score_service.save_score,
        args=(professor_id, class_id, "S2", activity_id, ScoreRecord(score=60), db_service),
    )
    writer_blocked = []
    real_get = db_service.get

    def get_while_a_score_is_saved(path):
        snapshot = real_get(path)
        if path == paths.students_path(professor_id, class_id) and not writer_blocked:
            writer.start()
            writer.join(timeout=0.2)
            writer_blocked.append(writer.is_alive())
        return snapshot

    mocker.patch.object(db_service, "get", side_effect=get_while_a_score_is_saved)
    emissions = []
    db_service.listen(paths.student_path(professor_id, class_id, "S2"), emissions.append)

    crud.delete_activity(professor_id, class_id, activity_id, db_service, policy="cascade")
    writer.join(timeout=5)

    assert writer_blocked == [True]
    assert db_service.get(paths.score_path(professor_id, class_id, "S1", activity_id)) is None
    # The held-back save commits only after the activity is gone.
    assert "scores" not in emissions[0]
    assert emissions[-1]["scores"][activity_id]["score"] == 60
