# /classgrader/models/class_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional

from .extraction_model import ExtractedStudent

# --- Model Definitions ---

class ClassBase(BaseModel):
    """The descriptive metadata every class carries."""
    className: str = Field(..., min_length=1, description="The display name of the class.")
    section: str = Field(default="", description="The section label, e.g. 'BSIT 3-A'.")
    semester: str = Field(default="", description="The semester or term label.")
    themeColor: str = Field(default="#00b679", description="The display colour of the class card.")

class ClassCreate(ClassBase):
    """
    The model used for creating a class. An optional `studentList` seeds the
    roster in the same atomic write as the class itself.
    """
    studentList: Optional[List[ExtractedStudent]] = Field(
        default=None,
        description="Students to seed the new class with, usually from a masterlist extraction."
    )

class ClassUpdate(BaseModel):
    """All fields are optional to allow for partial updates."""
    className: Optional[str] = Field(default=None, min_length=1)
    section: Optional[str] = Field(default=None)
    semester: Optional[str] = Field(default=None)
    themeColor: Optional[str] = Field(default=None)

class Class(ClassBase):
    """A class as stored, without its nested students and activities."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="The store-generated key of the class.")
    createdAt: Optional[str] = Field(default=None, description="ISO 8601 creation timestamp.")

class ClassSummary(Class):
    studentCount: int = Field(default=0, description="Number of students currently on the roster.")
    activityCount: int = Field(default=0, description="Number of activities in the class.")
