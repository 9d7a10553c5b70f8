# /classgrader/models/activity_model.py

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

class ActivityCreate(BaseModel):
    title: str = Field(..., min_length=1, description="The activity title, e.g. 'Quiz 1'.")

class ActivityUpdate(BaseModel):
    title: str = Field(..., min_length=1)

class Activity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="The store-generated key of the activity.")
    title: str
    createdAt: Optional[str] = Field(default=None, description="ISO 8601 creation timestamp.")
