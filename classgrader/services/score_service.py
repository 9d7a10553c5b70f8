# /classgrader/services/score_service.py

"""
The score ledger: one score, feedback text and grading timestamp per
(student, activity) pair, stored under `students/{key}/scores/{activityId}`.

Saving is a merge-update at that path, so re-grading replaces the previous
result and repeating the same save leaves the ledger unchanged. Neither the
student nor the activity is checked on save: writing the score simply creates
the path.
"""

from typing import Dict, List, Optional

import pandas as pd

from ..core.clock import utc_now_iso
from ..core.errors import ClassNotFoundError, PreconditionError
from ..core.logging_config import get_logger, log_with_context
from ..models.score_model import GradeResult, ScoreRecord
from .ai_service import AIServiceClient
from .class_helpers import crud, paths
from .database_service import DatabaseService

logger = get_logger("scores")

UNSCORED_SORT_VALUE = -1
SCORE_EXPORT_COLUMNS = ["Student Name", "Student ID", "Score", "Feedback", "Graded At"]


def default_rubric(activity_title: str) -> str:
    return f"Activity: {activity_title}. Grade strictly but fairly."


def save_score(
    professor_id: str, class_id: str, student_key: str, activity_id: str,
    record: ScoreRecord, db: DatabaseService,
) -> Dict:
    """
    Upserts the score for one student on one activity and returns what was
    written. Without a `gradedAt`, an unchanged score and feedback keep the
    stored timestamp; anything else is stamped with the current time.
    """
    target = paths.score_path(professor_id, class_id, student_key, activity_id)
    data = record.model_dump()
    with db.serialized():
        if not data.get("gradedAt"):
            existing = db.get(target)
            unchanged = (
                isinstance(existing, dict)
                and existing.get("score") == data["score"]
                and (existing.get("feedback") or "") == data["feedback"]
                and existing.get("gradedAt")
            )
            data["gradedAt"] = existing["gradedAt"] if unchanged else utc_now_iso()
        db.update(target, data)
    log_with_context(
        logger, "INFO", "Score saved",
        context={"professor_id": professor_id, "class_id": class_id,
                 "student_key": student_key, "activity_id": activity_id},
        extra_data={"score": data["score"]},
    )
    return data


def get_scores_for_activity(professor_id: str, class_id: str, activity_id: str, db: DatabaseService) -> List[Dict]:
    """
    One row per student in the class with their score on `activity_id`, best
    first. Students without a score get None and sort last.
    """
    students = db.get(paths.students_path(professor_id, class_id)) or {}
    results = []
    for student_key, student in students.items():
        if not isinstance(student, dict):
            continue
        activity_score = (student.get("scores") or {}).get(activity_id)
        results.append({
            "id": student_key,
            "name": student.get("name", ""),
            "studentId": student.get("studentId"),
            "score": activity_score.get("score") if activity_score else None,
            "feedback": (activity_score.get("feedback") or "") if activity_score else "",
            "gradedAt": activity_score.get("gradedAt") if activity_score else None,
        })

    return sorted(
        results,
        key=lambda r: r["score"] if r["score"] is not None else UNSCORED_SORT_VALUE,
        reverse=True,
    )


def export_scores_as_csv(professor_id: str, class_id: str, activity_id: str, db: DatabaseService) -> str:
    if not crud.get_class(professor_id, class_id, db):
        raise ClassNotFoundError(f"Class with ID {class_id} not found.")
    rows = [
        {
            "Student Name": r["name"],
            "Student ID": r.get("studentId") or "",
            "Score": r["score"] if r["score"] is not None else "N/A",
            "Feedback": r["feedback"],
            "Graded At": r["gradedAt"] or "",
        } for r in get_scores_for_activity(professor_id, class_id, activity_id, db)
    ]
    df = pd.DataFrame(rows) if rows else pd.DataFrame(columns=SCORE_EXPORT_COLUMNS)
    return df.to_csv(index=False)


async def grade_paper(
    professor_id: str,
    class_id: str,
    activity_id: str,
    student_key: str,
    file_bytes: bytes,
    db: DatabaseService,
    ai_client: AIServiceClient,
    rubric: Optional[str] = None,
    filename: str = "exam_capture.jpg",
    content_type: str = "image/jpeg",
    save: bool = False,
) -> Dict:
    """
    Sends a captured exam page to the AI grader. Every selection is checked
    before the upload; with `save=True` the returned score is written back to
    the ledger straight away.
    """
    if not class_id or not activity_id or not student_key:
        raise PreconditionError("Please select Section, Activity, and Name.")
    if not file_bytes:
        raise PreconditionError("Please capture or choose an exam image first.")
    if not crud.get_class(professor_id, class_id, db):
        raise ClassNotFoundError(f"Class with ID {class_id} not found")
    activity = crud.get_activity(professor_id, class_id, activity_id, db)
    if not activity:
        raise PreconditionError(f"Activity {activity_id} does not exist in this class.")
    if not crud.get_student(professor_id, class_id, student_key, db):
        raise PreconditionError(f"Student {student_key} does not exist in this class.")

    rubric = (rubric or "").strip() or default_rubric(activity.get("title", ""))
    result: GradeResult = await ai_client.grade_paper(file_bytes, rubric, filename=filename, content_type=content_type)

    response = {**result.model_dump(), "rubric": rubric, "saved": False}
    if save:
        save_score(
            professor_id, class_id, student_key, activity_id,
            ScoreRecord(score=result.score, feedback=result.feedback), db,
        )
        response["saved"] = True
    return response
