# /classgrader/models/student_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, Optional

from .score_model import ScoreRecord

PENDING_STUDENT_ID = "Pending"
# Stored when the masterlist extraction could not read a name for a row.
UNNAMED_STUDENT_NAME = "Unnamed Student"

# --- Model Definitions ---

class StudentBase(BaseModel):
    """
    The base model for a Student. Contains fields common to create and read operations.
    """
    name: str = Field(..., min_length=1, description="The full name of the student.")
    studentId: Optional[str] = Field(
        default=None,
        description="The official, user-provided ID number. When present it doubles as the record key."
    )

class StudentCreate(StudentBase):
    """The model used for adding a student by hand."""
    pass

class StudentUpdate(BaseModel):
    """
    The model for updating a student. All fields are optional to allow for
    partial updates.
    """
    name: Optional[str] = Field(default=None, min_length=1)
    studentId: Optional[str] = Field(default=None)

class Student(StudentBase):
    """
    The full representation of a Student record, as it is stored under
    `students/{id}` and returned by the API.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="The record key: the student ID or a generated key.")
    studentId: str = Field(default=PENDING_STUDENT_ID)
    addedAt: Optional[str] = Field(default=None, description="ISO 8601 timestamp of when the student was added.")
    scores: Dict[str, ScoreRecord] = Field(
        default_factory=dict,
        description="Scores keyed by activity ID."
    )
