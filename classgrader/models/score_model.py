# /classgrader/models/score_model.py

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

class ScoreRecord(BaseModel):
    """
    One graded result, stored under `students/{key}/scores/{activityId}`.
    The 0-100 range is nominal and deliberately not enforced.
    """
    model_config = ConfigDict(extra="ignore")

    score: float = Field(..., description="The numeric score.")
    feedback: str = Field(default="", description="Grader feedback shown to the professor.")
    gradedAt: Optional[str] = Field(default=None, description="ISO 8601 grading timestamp; defaults to now when saved.")

class StudentScore(BaseModel):
    """One row of the per-activity score sheet."""
    id: str = Field(..., description="The student record key.")
    name: str
    studentId: Optional[str] = None
    score: Optional[float] = None
    feedback: str = ""
    gradedAt: Optional[str] = None

class GradeResult(BaseModel):
    """What the AI endpoint returns in grade mode."""
    model_config = ConfigDict(extra="ignore")

    score: float
    feedback: str = ""
    transcribed_text: str = ""

class GradeResponse(GradeResult):
    saved: bool = Field(default=False, description="Whether the score was written back to the ledger.")
    rubric: str = ""
