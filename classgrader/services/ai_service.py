# /classgrader/services/ai_service.py

"""
Async client for the external AI endpoint that reads handwritten documents.

The endpoint takes a multipart upload of one file plus a `mode` field
("masterlist" or "grade", the latter with a `rubric`) and answers with
`{"success": bool, "data": ..., "error": str}`. Transport failures, non-2xx
responses, `success: false` and malformed payloads are all reported as
AIServiceError; callers show one generic message for every one of them.
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core import config
from ..core.errors import AIServiceError
from ..core.logging_config import get_logger, log_with_context
from ..models.extraction_model import ExtractedStudent
from ..models.score_model import GradeResult

logger = get_logger("ai")

PDF_CONTENT_TYPE = "application/pdf"
JPEG_CONTENT_TYPE = "image/jpeg"


def normalize_upload(filename: Optional[str], content_type: Optional[str]):
    """
    The endpoint chokes on arbitrary filenames, so every upload is renamed to
    `upload.pdf` or `upload.jpg` based on its extension or content type.
    """
    original_name = (filename or "file").lower()
    is_pdf = original_name.endswith("pdf") or content_type == PDF_CONTENT_TYPE
    clean_name = "upload.pdf" if is_pdf else "upload.jpg"
    upload_type = content_type or (PDF_CONTENT_TYPE if is_pdf else JPEG_CONTENT_TYPE)
    return clean_name, upload_type


class AIServiceClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = (endpoint or config.AI_ENDPOINT_PATH).strip("/")
        if client is None:
            self._client = httpx.AsyncClient(
                base_url=(base_url or config.AI_SERVER_URL).rstrip("/"),
                timeout=timeout or config.AI_TIMEOUT_SECONDS,
            )
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AIServiceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _upload(
        self, file_bytes: bytes, filename: Optional[str], content_type: Optional[str], params: Dict[str, str]
    ) -> Any:
        clean_name, upload_type = normalize_upload(filename, content_type)
        log_with_context(
            logger, "INFO", f"Uploading {filename or 'file'} as {clean_name} ({upload_type})",
            extra_data={"mode": params.get("mode"), "bytes": len(file_bytes)},
        )
        try:
            response = await self._client.post(
                f"/{self.endpoint}",
                files={"file": (clean_name, file_bytes, upload_type)},
                data=params,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            log_with_context(logger, "ERROR", f"AI endpoint unreachable: {e}")
            raise AIServiceError(f"AI endpoint unreachable: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            log_with_context(logger, "ERROR", "AI endpoint returned non-JSON payload",
                             extra_data={"status_code": response.status_code})
            raise AIServiceError(f"Server Error: {response.status_code}") from e

        if not response.is_success or not isinstance(result, dict) or not result.get("success"):
            error = result.get("error") if isinstance(result, dict) else None
            message = error or f"Server Error: {response.status_code}"
            log_with_context(logger, "ERROR", f"AI call failed: {message}",
                             extra_data={"status_code": response.status_code})
            raise AIServiceError(message)

        return result.get("data")

    async def extract_students(
        self, file_bytes: bytes, filename: Optional[str] = None, content_type: Optional[str] = None
    ) -> List[ExtractedStudent]:
        """Runs masterlist extraction and returns the candidate (name, id) rows."""
        data = await self._upload(file_bytes, filename, content_type, {"mode": "masterlist"})
        if data is None:
            return []
        if not isinstance(data, list):
            raise AIServiceError("AI endpoint returned an unexpected masterlist payload.")
        try:
            return [ExtractedStudent.model_validate(row) for row in data]
        except ValidationError as e:
            raise AIServiceError(f"AI endpoint returned malformed student rows: {e}") from e

    async def grade_paper(
        self,
        file_bytes: bytes,
        rubric: str,
        filename: str = "exam_capture.jpg",
        content_type: str = JPEG_CONTENT_TYPE,
    ) -> GradeResult:
        """Grades one captured exam page against a rubric."""
        data = await self._upload(file_bytes, filename, content_type, {"mode": "grade", "rubric": rubric})
        try:
            return GradeResult.model_validate(data)
        except ValidationError as e:
            raise AIServiceError(f"AI endpoint returned a malformed grade: {e}") from e


# --- Dependency Provider ---

_ai_client: Optional[AIServiceClient] = None


def get_ai_client() -> AIServiceClient:
    """FastAPI dependency that provides the shared AIServiceClient."""
    global _ai_client
    if _ai_client is None:
        _ai_client = AIServiceClient()
    return _ai_client


async def close_ai_client() -> None:
    global _ai_client
    if _ai_client is not None:
        await _ai_client.aclose()
        _ai_client = None
