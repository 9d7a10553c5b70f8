# /tests/test_roster_ingestion.py

import pytest

from classgrader.core.errors import (
    AIServiceError, ClassNotFoundError, MasterlistRejectedError, PreconditionError,
    MASTERLIST_REJECTED_MESSAGE,
)
from classgrader.models import class_model
from classgrader.models.extraction_model import ExtractedStudent
from classgrader.models.student_model import UNNAMED_STUDENT_NAME
from classgrader.services.class_helpers import crud, paths, roster_ingestion

MIXED_BATCH = [
    ExtractedStudent(name="Ann Cruz", id="2023-00142"),
    ExtractedStudent(name="Bo Reyes", id="N/A"),
    ExtractedStudent(name="Cy Santos", id="2023-00157"),
    ExtractedStudent(name="Dee Lim", id=None),
]


@pytest.fixture
def class_id(db_service, professor_id):
    return crud.create_class(professor_id, class_model.ClassCreate(className="Algorithms"), db_service)


@pytest.mark.asyncio
async def test_import_keeps_only_accepted_rows_by_default(db_service, professor_id, class_id, mock_ai_client):
    mock_ai_client.extract_students.return_value = MIXED_BATCH

    result = await roster_ingestion.import_masterlist(
        professor_id, class_id, b"%PDF-1.4", db_service, mock_ai_client,
        filename="Masterlist (final).pdf", content_type="application/pdf",
    )

    assert result["total"] == 4
    assert result["validCount"] == 2
    assert result["added"] == 2
    students = crud.list_students(professor_id, class_id, db_service)
    assert [s["name"] for s in students] == ["Ann Cruz", "Cy Santos"]
    mock_ai_client.extract_students.assert_awaited_once_with(
        b"%PDF-1.4", filename="Masterlist (final).pdf", content_type="application/pdf"
    )


@pytest.mark.asyncio
async def test_import_all_mode_keeps_rows_without_ids(db_service, professor_id, class_id, mock_ai_client):
    mock_ai_client.extract_students.return_value = MIXED_BATCH

    result = await roster_ingestion.import_masterlist(
        professor_id, class_id, b"img", db_service, mock_ai_client, persist_mode="all"
    )

    assert result["validCount"] == 2
    assert result["added"] == 4
    ids = sorted(s["studentId"] for s in crud.list_students(professor_id, class_id, db_service))
    # Blank IDs become "Pending"; placeholder text is stored as extracted.
    assert ids == ["2023-00142", "2023-00157", "N/A", "Pending"]


@pytest.mark.asyncio
async def test_persist_mode_comes_from_config(db_service, professor_id, class_id, mock_ai_client, monkeypatch):
    monkeypatch.setattr("classgrader.core.config.MASTERLIST_PERSIST_MODE", "all")
    mock_ai_client.extract_students.return_value = MIXED_BATCH

    result = await roster_ingestion.import_masterlist(professor_id, class_id, b"img", db_service, mock_ai_client)
    assert result["added"] == 4


@pytest.mark.asyncio
async def test_batch_without_any_real_id_writes_nothing(mocker, db_service, professor_id, class_id, mock_ai_client):
    """GIVEN an extraction where no row has a usable ID THEN the batch is refused and the roster stays empty."""
    save_spy = mocker.spy(crud, "save_masterlist")
    mock_ai_client.extract_students.return_value = [
        ExtractedStudent(name="Ann", id="N/A"),
        ExtractedStudent(name="Bo", id="Student ID"),
        ExtractedStudent(name="Cy", id=""),
    ]
    emissions = []
    db_service.listen(paths.students_path(professor_id, class_id), emissions.append)

    with pytest.raises(MasterlistRejectedError) as exc_info:
        await roster_ingestion.import_masterlist(professor_id, class_id, b"img", db_service, mock_ai_client)

    assert exc_info.value.reason == MASTERLIST_REJECTED_MESSAGE
    assert exc_info.value.total == 3
    assert emissions == [None]
    save_spy.assert_not_called()
    assert crud.list_students(professor_id, class_id, db_service) == []
    print("\n✅ SUCCESS: Rejected masterlist left the roster untouched.")


@pytest.mark.asyncio
async def test_empty_extraction_is_rejected(db_service, professor_id, class_id, mock_ai_client):
    mock_ai_client.extract_students.return_value = []
    with pytest.raises(MasterlistRejectedError):
        await roster_ingestion.import_masterlist(professor_id, class_id, b"img", db_service, mock_ai_client)


@pytest.mark.asyncio
async def test_import_requires_a_file(db_service, professor_id, class_id, mock_ai_client):
    with pytest.raises(PreconditionError):
        await roster_ingestion.import_masterlist(professor_id, class_id, b"", db_service, mock_ai_client)
    mock_ai_client.extract_students.assert_not_awaited()


@pytest.mark.asyncio
async def test_import_into_missing_class_calls_no_ai(db_service, professor_id, mock_ai_client):
    with pytest.raises(ClassNotFoundError):
        await roster_ingestion.import_masterlist(professor_id, "missing", b"img", db_service, mock_ai_client)
    mock_ai_client.extract_students.assert_not_awaited()


@pytest.mark.asyncio
async def test_ai_failure_propagates_and_writes_nothing(db_service, professor_id, class_id, mock_ai_client):
    mock_ai_client.extract_students.side_effect = AIServiceError("Server Error: 500")
    with pytest.raises(AIServiceError):
        await roster_ingestion.import_masterlist(professor_id, class_id, b"img", db_service, mock_ai_client)
    assert crud.list_students(professor_id, class_id, db_service) == []


# --- Class From Upload ---

@pytest.mark.asyncio
async def test_create_class_from_upload_commits_class_and_roster_together(db_service, professor_id, mock_ai_client):
    mock_ai_client.extract_students.return_value = MIXED_BATCH
    emissions = []
    db_service.listen(paths.classes_path(professor_id), emissions.append)

    result = await roster_ingestion.create_class_from_upload(
        professor_id,
        class_model.ClassBase(className="Networks", section="BSCS 3-B", semester="2nd Sem"),
        b"img", db_service, mock_ai_client,
    )

    assert result["validCount"] == 2
    assert result["added"] == 2
    assert len(emissions) == 2
    created = emissions[-1][result["classId"]]
    assert created["className"] == "Networks"
    assert len(created["students"]) == 2


@pytest.mark.asyncio
async def test_create_class_from_rejected_upload_creates_no_class(db_service, professor_id, mock_ai_client):
    mock_ai_client.extract_students.return_value = [ExtractedStudent(name="Ann", id="none")]

    with pytest.raises(MasterlistRejectedError):
        await roster_ingestion.create_class_from_upload(
            professor_id, class_model.ClassBase(className="Networks"), b"img", db_service, mock_ai_client,
        )
    assert crud.get_classes(professor_id, db_service) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("persist_mode", ["accepted", "all"])
async def test_rows_without_a_name_are_stored_with_a_placeholder(
    db_service, professor_id, class_id, mock_ai_client, persist_mode
):
    mock_ai_client.extract_students.return_value = [
        ExtractedStudent.model_validate({"name": None, "id": "2023-00142"}),
        ExtractedStudent.model_validate({"id": "2023-00157"}),
    ]

    await roster_ingestion.import_masterlist(
        professor_id, class_id, b"img", db_service, mock_ai_client, persist_mode=persist_mode
    )

    names = [s["name"] for s in crud.list_students(professor_id, class_id, db_service)]
    assert names == [UNNAMED_STUDENT_NAME, UNNAMED_STUDENT_NAME]


@pytest.mark.asyncio
async def test_class_from_upload_names_nameless_rows(db_service, professor_id, mock_ai_client):
    mock_ai_client.extract_students.return_value = [ExtractedStudent.model_validate({"name": "  ", "id": "2023-00142"})]

    result = await roster_ingestion.create_class_from_upload(
        professor_id, class_model.ClassBase(className="Networks"), b"img", db_service, mock_ai_client,
    )

    students = crud.list_students(professor_id, result["classId"], db_service)
    assert [s["name"] for s in students] == [UNNAMED_STUDENT_NAME]
