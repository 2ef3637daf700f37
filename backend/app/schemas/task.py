from typing import Optional

from pydantic import BaseModel, Field


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    description: str = Field(min_length=1)


class TaskRead(BaseModel):
    """Schema for reading a task."""
    id: int
    description: str
    task_start_date: str
    task_end_date: Optional[str]
    owner_proj: int
    time_delta: Optional[int]

    model_config = {"from_attributes": True}
