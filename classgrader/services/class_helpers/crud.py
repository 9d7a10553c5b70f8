# /classgrader/services/class_helpers/crud.py

"""
Core roster operations on the hierarchical store.

Classes, students and activities live under
`professors/{professorId}/classes/{classId}`. Multi-record writes (a class
with its seeded roster, a masterlist import, an activity delete that also
clears its scores) are always built in memory first and committed with a
single `set` or `update`, so listeners see them all at once or not at all.
"""

from typing import Any, Dict, List, Optional

from ...core import config
from ...core.clock import utc_now_iso
from ...core.errors import ClassNotFoundError, DuplicateStudentError
from ...core.logging_config import get_logger, log_with_context
from ...models import activity_model, class_model, student_model
from ...models.extraction_model import ExtractedStudent
from ...models.student_model import PENDING_STUDENT_ID, UNNAMED_STUDENT_NAME
from ..database_service import DatabaseService
from ..id_allocator import choose_student_key
from ..live_view import materialize, sort_by_created_desc
from . import paths

logger = get_logger("roster")


def _student_record(name: str, student_id: Optional[str], added_at: str) -> Dict[str, Any]:
    return {
        "name": (name or "").strip() or UNNAMED_STUDENT_NAME,
        "studentId": (student_id or "").strip() or PENDING_STUDENT_ID,
        "addedAt": added_at,
    }


def _ensure_class_exists(professor_id: str, class_id: str, db: DatabaseService) -> None:
    if not db.exists(paths.class_path(professor_id, class_id)):
        raise ClassNotFoundError(f"Class with ID {class_id} not found")


# --- CLASS-RELATED CORE BUSINESS LOGIC ---

def create_class(professor_id: str, class_data: class_model.ClassCreate, db: DatabaseService) -> str:
    """
    Creates a class, seeding its roster in the same write when a student list
    is supplied. Every seeded student gets its own freshly minted key before
    the single commit.
    """
    classes_path = paths.classes_path(professor_id)
    class_id = db.push_key(classes_path)
    now = utc_now_iso()

    full_class_data: Dict[str, Any] = {
        "className": class_data.className,
        "section": class_data.section,
        "semester": class_data.semester,
        "themeColor": class_data.themeColor,
        "createdAt": now,
        "students": {},
    }
    for student in class_data.studentList or []:
        student_key = db.push_key(paths.students_path(professor_id, class_id))
        full_class_data["students"][student_key] = _student_record(student.name, student.id, now)

    db.set(paths.class_path(professor_id, class_id), full_class_data)
    log_with_context(
        logger, "INFO", "Class created",
        context={"professor_id": professor_id, "class_id": class_id},
        extra_data={"seeded_students": len(full_class_data["students"])},
    )
    return class_id


def get_classes(professor_id: str, db: DatabaseService) -> Dict[str, Any]:
    return db.get(paths.classes_path(professor_id)) or {}


def get_class(professor_id: str, class_id: str, db: DatabaseService) -> Optional[Dict[str, Any]]:
    data = db.get(paths.class_path(professor_id, class_id))
    return data if isinstance(data, dict) else None


def update_class(
    professor_id: str, class_id: str, class_update: class_model.ClassUpdate, db: DatabaseService
) -> Optional[Dict[str, Any]]:
    update_data = class_update.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise ValueError("No update data provided.")
    target = paths.class_path(professor_id, class_id)
    if not db.exists(target):
        return None
    db.update(target, update_data)
    return get_class(professor_id, class_id, db)


def delete_class(professor_id: str, class_id: str, db: DatabaseService) -> bool:
    """Removes the class subtree; its students, scores and activities go with it."""
    target = paths.class_path(professor_id, class_id)
    if not db.exists(target):
        return False
    db.remove(target)
    log_with_context(logger, "INFO", "Class deleted", context={"professor_id": professor_id, "class_id": class_id})
    return True


# --- STUDENT-RELATED CORE BUSINESS LOGIC ---

def add_student(
    professor_id: str,
    class_id: str,
    student_data: student_model.StudentCreate,
    db: DatabaseService,
    conflict_policy: Optional[str] = None,
) -> str:
    """
    Adds one student. The record key is the student ID when given, otherwise
    a generated key. An existing record at that key is either replaced
    ("overwrite", logged) or kept ("reject", DuplicateStudentError).
    """
    policy = (conflict_policy or config.STUDENT_KEY_CONFLICT_POLICY).lower()
    if policy not in config.STUDENT_KEY_CONFLICT_POLICIES:
        raise ValueError(f"Unknown student key conflict policy: {policy}")
    _ensure_class_exists(professor_id, class_id, db)

    student_key = choose_student_key(student_data.studentId, db.allocator)
    target = paths.student_path(professor_id, class_id, student_key)
    context = {"professor_id": professor_id, "class_id": class_id, "student_key": student_key}

    if db.exists(target):
        if policy == "reject":
            log_with_context(logger, "WARNING", "Refused to overwrite existing student", context=context)
            raise DuplicateStudentError(student_key)
        log_with_context(logger, "WARNING", "Overwriting existing student record", context=context)

    db.set(target, _student_record(student_data.name, student_data.studentId, utc_now_iso()))
    return student_key


def get_student(professor_id: str, class_id: str, student_key: str, db: DatabaseService) -> Optional[Dict[str, Any]]:
    data = db.get(paths.student_path(professor_id, class_id, student_key))
    return {"id": student_key, **data} if isinstance(data, dict) else None


def list_students(professor_id: str, class_id: str, db: DatabaseService) -> List[Dict[str, Any]]:
    """All students of a class, alphabetically by name."""
    students = materialize(db.get(paths.students_path(professor_id, class_id)))
    return sorted(students, key=lambda s: str(s.get("name", "")).lower())


def update_student(
    professor_id: str, class_id: str, student_key: str,
    student_update: student_model.StudentUpdate, db: DatabaseService,
) -> Optional[Dict[str, Any]]:
    """Merges the given fields into the record. The record key never changes."""
    update_data = student_update.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise ValueError("No update data provided.")
    target = paths.student_path(professor_id, class_id, student_key)
    if not db.exists(target):
        return None
    db.update(target, update_data)
    return get_student(professor_id, class_id, student_key, db)


def delete_student(professor_id: str, class_id: str, student_key: str, db: DatabaseService) -> bool:
    """Removes the student together with its nested scores."""
    target = paths.student_path(professor_id, class_id, student_key)
    if not db.exists(target):
        return False
    db.remove(target)
    return True


def save_masterlist(
    professor_id: str, class_id: str, students: List[ExtractedStudent], db: DatabaseService
) -> List[str]:
    """
    Adds a batch of students under freshly minted keys in one multi-path
    update. Either every record lands or none does.
    """
    if not students:
        return []
    students_path = paths.students_path(professor_id, class_id)
    now = utc_now_iso()
    updates: Dict[str, Any] = {}
    keys: List[str] = []
    for student in students:
        key = db.push_key(students_path)
        updates[paths.student_path(professor_id, class_id, key)] = _student_record(student.name, student.id, now)
        keys.append(key)

    db.update("", updates)
    log_with_context(
        logger, "INFO", "Masterlist saved",
        context={"professor_id": professor_id, "class_id": class_id},
        extra_data={"added": len(keys)},
    )
    return keys


# --- ACTIVITY-RELATED CORE BUSINESS LOGIC ---

def add_activity(professor_id: str, class_id: str, activity_data: activity_model.ActivityCreate, db: DatabaseService) -> str:
    _ensure_class_exists(professor_id, class_id, db)
    activity_id = db.push_key(paths.activities_path(professor_id, class_id))
    db.set(paths.activity_path(professor_id, class_id, activity_id), {
        "title": activity_data.title,
        "createdAt": utc_now_iso(),
    })
    return activity_id


def get_activity(professor_id: str, class_id: str, activity_id: str, db: DatabaseService) -> Optional[Dict[str, Any]]:
    data = db.get(paths.activity_path(professor_id, class_id, activity_id))
    return {"id": activity_id, **data} if isinstance(data, dict) else None


def list_activities(professor_id: str, class_id: str, db: DatabaseService) -> List[Dict[str, Any]]:
    """All activities of a class, newest first."""
    return sort_by_created_desc(materialize(db.get(paths.activities_path(professor_id, class_id))))


def update_activity(
    professor_id: str, class_id: str, activity_id: str, new_title: str, db: DatabaseService
) -> Optional[Dict[str, Any]]:
    target = paths.activity_path(professor_id, class_id, activity_id)
    if not db.exists(target):
        return None
    db.update(target, {"title": new_title})
    return get_activity(professor_id, class_id, activity_id, db)


def delete_activity(
    professor_id: str, class_id: str, activity_id: str, db: DatabaseService, policy: Optional[str] = None
) -> bool:
    """
    Removes an activity. Under the "cascade" policy every score recorded
    against it is removed in the same atomic update; "retain" leaves them.
    """
    policy = (policy or config.ACTIVITY_DELETE_POLICY).lower()
    if policy not in config.ACTIVITY_DELETE_POLICIES:
        raise ValueError(f"Unknown activity delete policy: {policy}")
    target = paths.activity_path(professor_id, class_id, activity_id)
    # Scores saved while the cascade is being built must not slip past it.
    with db.serialized():
        if not db.exists(target):
            return False

        updates: Dict[str, Any] = {target: None}
        if policy == "cascade":
            students = db.get(paths.students_path(professor_id, class_id)) or {}
            for student_key, student in students.items():
                if isinstance(student, dict) and activity_id in (student.get("scores") or {}):
                    updates[paths.score_path(professor_id, class_id, student_key, activity_id)] = None

        db.update("", updates)

    log_with_context(
        logger, "INFO", "Activity deleted",
        context={"professor_id": professor_id, "class_id": class_id, "activity_id": activity_id},
        extra_data={"policy": policy, "scores_removed": len(updates) - 1},
    )
    return True
