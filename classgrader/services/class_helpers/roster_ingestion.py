# /classgrader/services/class_helpers/roster_ingestion.py

"""
Orchestrates the masterlist pipeline: upload -> AI extraction -> ID gate ->
one atomic roster write. A batch that fails the gate is discarded before any
write is attempted.
"""

from typing import Dict, Optional

from ...core.errors import ClassNotFoundError, PreconditionError
from ...core.logging_config import get_logger, log_with_context
from ...models import class_model
from ..ai_service import AIServiceClient
from ..database_service import DatabaseService
from . import crud, roster_validation

logger = get_logger("roster")


def _require_upload(file_bytes: Optional[bytes]) -> bytes:
    if not file_bytes:
        raise PreconditionError("Please choose a masterlist file to upload.")
    return file_bytes


async def import_masterlist(
    professor_id: str,
    class_id: str,
    file_bytes: bytes,
    db: DatabaseService,
    ai_client: AIServiceClient,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    persist_mode: Optional[str] = None,
) -> Dict:
    """Adds the students read from a masterlist document to an existing class."""
    _require_upload(file_bytes)
    if not crud.get_class(professor_id, class_id, db):
        raise ClassNotFoundError(f"Class with ID {class_id} not found")

    candidates = await ai_client.extract_students(file_bytes, filename=filename, content_type=content_type)
    result = roster_validation.ensure_batch_accepted(roster_validation.validate_candidates(candidates))
    to_persist = roster_validation.select_for_persistence(candidates, result, mode=persist_mode)

    keys = crud.save_masterlist(professor_id, class_id, to_persist, db)
    log_with_context(
        logger, "INFO", "Masterlist imported",
        context={"professor_id": professor_id, "class_id": class_id},
        extra_data={"total": result.total, "valid": len(result.accepted), "added": len(keys)},
    )
    return {
        "message": f"Added {len(keys)} students with IDs!",
        "total": result.total,
        "validCount": len(result.accepted),
        "added": len(keys),
        "studentKeys": keys,
    }


async def create_class_from_upload(
    professor_id: str,
    class_data: class_model.ClassBase,
    file_bytes: bytes,
    db: DatabaseService,
    ai_client: AIServiceClient,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    persist_mode: Optional[str] = None,
) -> Dict:
    """
    Creates a class whose roster comes from a masterlist document. The class
    and its students are committed together, and only if the batch passed
    the ID gate.
    """
    _require_upload(file_bytes)
    candidates = await ai_client.extract_students(file_bytes, filename=filename, content_type=content_type)
    result = roster_validation.ensure_batch_accepted(roster_validation.validate_candidates(candidates))
    to_persist = roster_validation.select_for_persistence(candidates, result, mode=persist_mode)

    create_data = class_model.ClassCreate(**class_data.model_dump(exclude={"studentList"}), studentList=to_persist)
    class_id = crud.create_class(professor_id, create_data, db)
    return {
        "message": f"AI Found {len(result.accepted)} students with valid IDs.",
        "classId": class_id,
        "total": result.total,
        "validCount": len(result.accepted),
        "added": len(to_persist),
    }
