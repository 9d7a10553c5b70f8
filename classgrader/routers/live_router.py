# /classgrader/routers/live_router.py

"""
Server-Sent Event streams over the live views. Each event carries the full,
ordered collection; the stream's listener is cancelled when the client
disconnects.
"""

import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ..core.deps import get_current_professor_id, to_http_exception
from ..core.errors import ClassgraderError
from ..services.class_helpers import paths
from ..services.database_service import DatabaseService, get_db_service
from ..services.live_view import LiveViewProjector, Snapshot, sort_by_created_desc, sort_by_name

router = APIRouter()


async def _event_stream(request: Request, snapshots: AsyncIterator[Snapshot]) -> AsyncIterator[str]:
    try:
        async for snapshot in snapshots:
            if await request.is_disconnected():
                break
            yield f"data: {json.dumps(snapshot, default=str)}\n\n"
    finally:
        await snapshots.aclose()


def _sse(request: Request, db: DatabaseService, path_builder, order) -> StreamingResponse:
    try:
        path = path_builder()
    except ClassgraderError as e:
        raise to_http_exception(e)
    snapshots = LiveViewProjector(db).stream(path, order=order)
    return StreamingResponse(
        _event_stream(request, snapshots),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/classes", summary="Stream the Professor's Classes")
async def stream_classes(
    request: Request,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    return _sse(request, db, lambda: paths.classes_path(professor_id), sort_by_created_desc)


@router.get("/classes/{class_id}/students", summary="Stream a Class Roster")
async def stream_students(
    class_id: str,
    request: Request,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    return _sse(request, db, lambda: paths.students_path(professor_id, class_id), sort_by_name)


@router.get("/classes/{class_id}/activities", summary="Stream a Class's Activities, Newest First")
async def stream_activities(
    class_id: str,
    request: Request,
    db: DatabaseService = Depends(get_db_service),
    professor_id: str = Depends(get_current_professor_id),
):
    return _sse(request, db, lambda: paths.activities_path(professor_id, class_id), sort_by_created_desc)
