# /classgrader/models/extraction_model.py

from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional

class ExtractedStudent(BaseModel):
    """A candidate (name, raw ID) pair produced by the AI masterlist extraction."""
    name: str = Field(default="", description="The student's name as read from the document.")
    id: Optional[str] = Field(default=None, description="The raw student ID string, if any was read.")

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        # The AI occasionally returns numeric IDs.
        return None if value is None else str(value)

class ValidationResult(BaseModel):
    """The outcome of the masterlist gate for one extracted batch."""
    accepted: List[ExtractedStudent] = Field(default_factory=list)
    rejected: List[ExtractedStudent] = Field(default_factory=list)
    reason: Optional[str] = Field(default=None, description="Why the whole batch was refused, if it was.")

    @property
    def total(self) -> int:
        return len(self.accepted) + len(self.rejected)

    @property
    def is_accepted(self) -> bool:
        return bool(self.accepted)

class MasterlistImportResponse(BaseModel):
    message: str
    total: int = Field(..., description="Candidates returned by the extraction.")
    validCount: int = Field(..., description="Candidates with a plausible student ID.")
    added: int = Field(..., description="Student records written to the class.")
    studentKeys: List[str] = Field(default_factory=list)
