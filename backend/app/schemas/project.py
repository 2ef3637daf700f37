from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.models.project import parse_participants
from app.schemas.task import TaskRead
from app.schemas.user import UserRead
from app.timestamps import normalize_datepicker


class ProjectCreate(BaseModel):
    """Schema for creating a new project."""
    name: str = Field(min_length=1)


class ProjectUpdate(BaseModel):
    """
    Schema for editing a project.

    end_date is what a datetime-local input submits, e.g. "2024-03-01T17:00:00";
    it is normalized to storage format.
    """
    name: str = Field(min_length=1)
    end_date: str

    @field_validator("end_date")
    @classmethod
    def normalize_end_date(cls, value: str) -> str:
        return normalize_datepicker(value)


class ParticipantAdd(BaseModel):
    """Schema for adding a participant to a project."""
    user_id: int = Field(gt=0)


class ProjectRead(BaseModel):
    """Schema for reading a project."""
    id: int
    name: str
    proj_start_date: str
    proj_end_date: Optional[str]
    owner: int
    participants: list[int]

    @field_validator("participants", mode="before")
    @classmethod
    def split_participants(cls, value):
        if value is None or isinstance(value, str):
            return parse_participants(value)
        return value

    model_config = {"from_attributes": True}


class ProjectWithTasks(BaseModel):
    """
    A project with its most recent tasks.

    tasks is None when the project has no tasks at all, never an empty list.
    """
    project: ProjectRead
    tasks: Optional[list[TaskRead]] = None


class ProjectDetail(BaseModel):
    """A project with every one of its tasks."""
    project: ProjectRead
    tasks: list[TaskRead]


class ProfileRead(BaseModel):
    """The signed-in user and their projects; projects is None when they could not be loaded."""
    user: UserRead
    projects: Optional[list[ProjectWithTasks]] = None
