# /classgrader/routers/activities_router.py

"""
Endpoints for a class's activities and the per-activity score sheet,
including AI grading of captured exam papers.
"""

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Response
from fastapi.responses import StreamingResponse
from typing import List, Optional

from ..core.deps import get_current_professor_id, to_http_exception
from ..core.errors import ClassgraderError
from ..models import activity_model, score_model
from ..services import class_service, score_service
from ..services.ai_service import AIServiceClient, get_ai_client
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()

# --- ACTIVITY ENDPOINTS (/api/classes/{class_id}/activities) ---

@router.get("/{class_id}/activities", response_model=List[activity_model.Activity], summary="List Activities, Newest First")
def list_activities(
    class_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return class_service.get_activities(class_id=class_id, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.post("/{class_id}/activities", response_model=activity_model.Activity, status_code=status.HTTP_201_CREATED, summary="Add an Activity")
def add_activity(
    class_id: str,
    activity_create: activity_model.ActivityCreate,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return class_service.add_activity(class_id=class_id, activity_data=activity_create, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.put("/{class_id}/activities/{activity_id}", response_model=activity_model.Activity, summary="Rename an Activity")
def update_activity(
    class_id: str,
    activity_id: str,
    activity_update: activity_model.ActivityUpdate,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        updated = class_service.update_activity(
            class_id=class_id, activity_id=activity_id, activity_update=activity_update, db=db, professor_id=professor_id
        )
    except ClassgraderError as e:
        raise to_http_exception(e)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Activity with ID {activity_id} not found")
    return updated

@router.delete("/{class_id}/activities/{activity_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an Activity")
def delete_activity(
    class_id: str,
    activity_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        was_deleted = class_service.delete_activity(class_id=class_id, activity_id=activity_id, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Activity with ID {activity_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- SCORE SHEET ENDPOINTS ---

@router.get("/{class_id}/activities/{activity_id}/scores", response_model=List[score_model.StudentScore], summary="Get the Score Sheet of an Activity")
def get_activity_scores(
    class_id: str,
    activity_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return score_service.get_scores_for_activity(professor_id, class_id, activity_id, db)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.get("/{class_id}/activities/{activity_id}/scores/export", summary="Export the Score Sheet as CSV", response_class=StreamingResponse)
def export_activity_scores(
    class_id: str,
    activity_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        csv_string = score_service.export_scores_as_csv(professor_id, class_id, activity_id, db)
    except ClassgraderError as e:
        raise to_http_exception(e)
    file_name = f"scores_{activity_id}.csv"
    return StreamingResponse(iter([csv_string]), media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={file_name}"})

@router.put("/{class_id}/activities/{activity_id}/scores/{student_key}", response_model=score_model.ScoreRecord, summary="Save a Student's Score")
def save_student_score(
    class_id: str,
    activity_id: str,
    student_key: str,
    record: score_model.ScoreRecord,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return score_service.save_score(professor_id, class_id, student_key, activity_id, record, db)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.post("/{class_id}/activities/{activity_id}/grade", response_model=score_model.GradeResponse, summary="Grade a Captured Exam Paper")
async def grade_exam_paper(
    class_id: str,
    activity_id: str,
    studentKey: str = Form(...),
    rubric: Optional[str] = Form(None),
    save: bool = Form(False),
    file: UploadFile = File(...),
    db: DatabaseService = Depends(get_db_service),
    ai_client: AIServiceClient = Depends(get_ai_client),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return await score_service.grade_paper(
            professor_id=professor_id, class_id=class_id, activity_id=activity_id, student_key=studentKey,
            file_bytes=await file.read(), db=db, ai_client=ai_client, rubric=rubric,
            filename=file.filename or "exam_capture.jpg", content_type=file.content_type or "image/jpeg",
            save=save,
        )
    except ClassgraderError as e:
        raise to_http_exception(e)
