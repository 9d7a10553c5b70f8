# /classgrader/routers/classes_router.py

"""
Endpoints for classes, their rosters and masterlist imports.

Every endpoint is scoped to the professor identified by the `X-Professor-Id`
header; the router only translates between HTTP and the class service.
"""

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Response
from fastapi.responses import StreamingResponse
from typing import List

from ..core.deps import get_current_professor_id, to_http_exception
from ..core.errors import ClassgraderError
from ..models import class_model, student_model
from ..models.extraction_model import MasterlistImportResponse
from ..services import class_service
from ..services.ai_service import AIServiceClient, get_ai_client
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()

# --- CLASS COLLECTION ENDPOINTS (/api/classes) ---

@router.get("", response_model=List[class_model.ClassSummary], summary="Get All Classes with Student Counts")
def get_all_classes(
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return class_service.get_all_classes_with_summary(professor_id=professor_id, db=db)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.post("", response_model=class_model.Class, status_code=status.HTTP_201_CREATED, summary="Create a New Class")
def create_new_class(
    class_create: class_model.ClassCreate,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return class_service.create_class(class_data=class_create, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.post("/upload", status_code=status.HTTP_201_CREATED, summary="Create a Class from a Masterlist Upload")
async def create_class_with_upload(
    className: str = Form(...),
    section: str = Form(""),
    semester: str = Form(""),
    themeColor: str = Form("#00b679"),
    file: UploadFile = File(...),
    db: DatabaseService = Depends(get_db_service),
    ai_client: AIServiceClient = Depends(get_ai_client),
    professor_id: str = Depends(get_current_professor_id),
):
    class_data = class_model.ClassBase(className=className, section=section, semester=semester, themeColor=themeColor)
    try:
        return await class_service.create_class_from_upload(
            class_data=class_data, file_bytes=await file.read(), db=db, ai_client=ai_client,
            professor_id=professor_id, filename=file.filename, content_type=file.content_type,
        )
    except ClassgraderError as e:
        raise to_http_exception(e)

# --- INDIVIDUAL CLASS RESOURCE ENDPOINTS (/api/classes/{class_id}) ---

@router.get("/{class_id}", summary="Get a Single Class with Students and Activities")
def get_class_by_id(
    class_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        class_details = class_service.get_class_details_by_id(class_id=class_id, professor_id=professor_id, db=db)
    except ClassgraderError as e:
        raise to_http_exception(e)
    if class_details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return class_details

@router.put("/{class_id}", response_model=class_model.Class, summary="Update a Class")
def update_class_details(
    class_id: str,
    class_update: class_model.ClassUpdate,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        updated_class = class_service.update_class(class_id=class_id, class_update=class_update, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated_class is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return updated_class

@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Class")
def delete_class(
    class_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        was_deleted = class_service.delete_class_by_id(class_id=class_id, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/{class_id}/export", summary="Export Class Roster as CSV", response_class=StreamingResponse)
def export_class_roster_csv(
    class_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        csv_string = class_service.export_roster_as_csv(class_id=class_id, professor_id=professor_id, db=db)
        class_details = class_service.get_class_details_by_id(class_id, professor_id, db)
    except ClassgraderError as e:
        raise to_http_exception(e)
    class_name = class_details.get("className", "class_roster") if class_details else "class_roster"
    file_name = f"roster_{class_name.replace(' ', '_').lower()}.csv"
    return StreamingResponse(iter([csv_string]), media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={file_name}"})

# --- STUDENT SUB-RESOURCE ENDPOINTS ---

@router.get("/{class_id}/students", response_model=List[student_model.Student], summary="List the Students of a Class")
def list_students(
    class_id: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return class_service.get_students(class_id=class_id, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.post("/{class_id}/students", response_model=student_model.Student, status_code=status.HTTP_201_CREATED, summary="Add a Student to a Class")
def add_student(
    class_id: str,
    student_create: student_model.StudentCreate,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return class_service.add_student_to_class(class_id=class_id, student_data=student_create, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)

@router.put("/{class_id}/students/{student_key}", response_model=student_model.Student, summary="Update a Student")
def update_student_details(
    class_id: str,
    student_key: str,
    student_update: student_model.StudentUpdate,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        updated_student = class_service.update_student(
            class_id=class_id, student_key=student_key, student_update=student_update, db=db, professor_id=professor_id
        )
    except ClassgraderError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated_student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_key} not found")
    return updated_student

@router.delete("/{class_id}/students/{student_key}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a Student from a Class")
def remove_student_from_class(
    class_id: str,
    student_key: str,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        was_deleted = class_service.delete_student_from_class(class_id=class_id, student_key=student_key, db=db, professor_id=professor_id)
    except ClassgraderError as e:
        raise to_http_exception(e)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_key} not found in class {class_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{class_id}/masterlist", response_model=MasterlistImportResponse, status_code=status.HTTP_201_CREATED, summary="Import a Masterlist into a Class")
async def upload_masterlist(
    class_id: str,
    file: UploadFile = File(...),
    db: DatabaseService = Depends(get_db_service),
    ai_client: AIServiceClient = Depends(get_ai_client),
    professor_id: str = Depends(get_current_professor_id),
):
    try:
        return await class_service.import_masterlist(
            class_id=class_id, file_bytes=await file.read(), db=db, ai_client=ai_client,
            professor_id=professor_id, filename=file.filename, content_type=file.content_type,
        )
    except ClassgraderError as e:
        raise to_http_exception(e)
