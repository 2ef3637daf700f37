from typing import Optional

from sqlmodel import Field, SQLModel

from app.timestamps import now_timestamp


class ProjectTask(SQLModel, table=True):
    """
    A unit of work inside a project.

    Key fields:
    - task_start_date: set when the task is created
    - task_end_date: None until the task is completed
    - time_delta: end - start in whole seconds, None until computed
    """

    __tablename__ = "proj_tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    description: str
    task_start_date: str = Field(default_factory=now_timestamp)
    task_end_date: Optional[str] = Field(default=None)
    owner_proj: int = Field(foreign_key="project.id", index=True)
    time_delta: Optional[int] = Field(default=None)
