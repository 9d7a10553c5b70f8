# /classgrader/services/class_service.py

"""
This service module acts as the business logic layer for everything related
to classes, students and activities.

It is a facade over the specialist helpers (`crud`, `roster_ingestion`) and
the `DatabaseService`. Every function requires the `professor_id` of the
authenticated caller, so that all reads and writes stay inside that
professor's subtree of the store.
"""

from typing import Dict, List, Optional

import pandas as pd

from ..core.errors import ClassNotFoundError
from ..models import activity_model, class_model, student_model
from .ai_service import AIServiceClient
from .database_service import DatabaseService

# Import the specialist helper modules this service orchestrates.
from .class_helpers import crud, roster_ingestion
from .live_view import materialize, sort_by_created_desc

ROSTER_EXPORT_COLUMNS = ["Student Name", "Student ID", "Added At", "Class Name", "Section"]


# --- Facade Methods for Class CRUD ---

def create_class(class_data: class_model.ClassCreate, db: DatabaseService, professor_id: str) -> Dict:
    class_id = crud.create_class(professor_id=professor_id, class_data=class_data, db=db)
    return {"id": class_id, **crud.get_class(professor_id, class_id, db)}


def update_class(class_id: str, class_update: class_model.ClassUpdate, db: DatabaseService, professor_id: str) -> Optional[Dict]:
    updated = crud.update_class(professor_id=professor_id, class_id=class_id, class_update=class_update, db=db)
    return {"id": class_id, **updated} if updated else None


def delete_class_by_id(class_id: str, db: DatabaseService, professor_id: str) -> bool:
    return crud.delete_class(professor_id=professor_id, class_id=class_id, db=db)


# --- Facade Methods for Students ---

def add_student_to_class(
    class_id: str, student_data: student_model.StudentCreate, db: DatabaseService, professor_id: str
) -> Dict:
    student_key = crud.add_student(professor_id=professor_id, class_id=class_id, student_data=student_data, db=db)
    return crud.get_student(professor_id, class_id, student_key, db)


def update_student(
    class_id: str, student_key: str, student_update: student_model.StudentUpdate,
    db: DatabaseService, professor_id: str,
) -> Optional[Dict]:
    return crud.update_student(
        professor_id=professor_id, class_id=class_id, student_key=student_key,
        student_update=student_update, db=db,
    )


def delete_student_from_class(class_id: str, student_key: str, db: DatabaseService, professor_id: str) -> bool:
    return crud.delete_student(professor_id=professor_id, class_id=class_id, student_key=student_key, db=db)


def get_students(class_id: str, db: DatabaseService, professor_id: str) -> List[Dict]:
    if not crud.get_class(professor_id, class_id, db):
        raise ClassNotFoundError(f"Class with ID {class_id} not found")
    return crud.list_students(professor_id, class_id, db)


async def import_masterlist(
    class_id: str, file_bytes: bytes, db: DatabaseService, ai_client: AIServiceClient, professor_id: str,
    filename: Optional[str] = None, content_type: Optional[str] = None,
) -> Dict:
    return await roster_ingestion.import_masterlist(
        professor_id=professor_id, class_id=class_id, file_bytes=file_bytes, db=db,
        ai_client=ai_client, filename=filename, content_type=content_type,
    )


async def create_class_from_upload(
    class_data: class_model.ClassBase, file_bytes: bytes, db: DatabaseService, ai_client: AIServiceClient,
    professor_id: str, filename: Optional[str] = None, content_type: Optional[str] = None,
) -> Dict:
    return await roster_ingestion.create_class_from_upload(
        professor_id=professor_id, class_data=class_data, file_bytes=file_bytes, db=db,
        ai_client=ai_client, filename=filename, content_type=content_type,
    )


# --- Facade Methods for Activities ---

def add_activity(class_id: str, activity_data: activity_model.ActivityCreate, db: DatabaseService, professor_id: str) -> Dict:
    activity_id = crud.add_activity(professor_id=professor_id, class_id=class_id, activity_data=activity_data, db=db)
    return crud.get_activity(professor_id, class_id, activity_id, db)


def get_activities(class_id: str, db: DatabaseService, professor_id: str) -> List[Dict]:
    if not crud.get_class(professor_id, class_id, db):
        raise ClassNotFoundError(f"Class with ID {class_id} not found")
    return crud.list_activities(professor_id, class_id, db)


def update_activity(class_id: str, activity_id: str, activity_update: activity_model.ActivityUpdate,
                    db: DatabaseService, professor_id: str) -> Optional[Dict]:
    return crud.update_activity(professor_id, class_id, activity_id, activity_update.title, db)


def delete_activity(class_id: str, activity_id: str, db: DatabaseService, professor_id: str) -> bool:
    return crud.delete_activity(professor_id=professor_id, class_id=class_id, activity_id=activity_id, db=db)


# --- Data Assembly & Export Logic ---

def get_all_classes_with_summary(professor_id: str, db: DatabaseService) -> List[Dict]:
    """All of a professor's classes, newest first, with roster and activity counts."""
    summaries = []
    for cls in materialize(crud.get_classes(professor_id, db)):
        students = cls.pop("students", None) or {}
        activities = cls.pop("activities", None) or {}
        summaries.append({**cls, "studentCount": len(students), "activityCount": len(activities)})
    return sort_by_created_desc(summaries)


def get_class_details_by_id(class_id: str, professor_id: str, db: DatabaseService) -> Optional[Dict]:
    """The class metadata together with its sorted students and activities."""
    class_info = crud.get_class(professor_id, class_id, db)
    if not class_info:
        return None
    details = {k: v for k, v in class_info.items() if k not in ("students", "activities")}
    return {
        "id": class_id,
        **details,
        "students": crud.list_students(professor_id, class_id, db),
        "activities": crud.list_activities(professor_id, class_id, db),
    }


def export_roster_as_csv(class_id: str, professor_id: str, db: DatabaseService) -> str:
    """Generates a CSV export of a single class roster."""
    class_details = crud.get_class(professor_id, class_id, db)
    if not class_details:
        raise ClassNotFoundError(f"Class with ID {class_id} not found.")

    export_data = [
        {
            "Student Name": s.get("name", ""),
            "Student ID": s.get("studentId", ""),
            "Added At": s.get("addedAt", ""),
            "Class Name": class_details.get("className", ""),
            "Section": class_details.get("section", ""),
        } for s in crud.list_students(professor_id, class_id, db)
    ]

    df = pd.DataFrame(export_data) if export_data else pd.DataFrame(columns=ROSTER_EXPORT_COLUMNS)
    return df.to_csv(index=False)
