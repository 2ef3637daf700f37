from app.schemas.user import UserCreate, LoginRequest, UserRead
from app.schemas.task import TaskCreate, TaskRead
from app.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ParticipantAdd,
    ProjectRead,
    ProjectWithTasks,
    ProjectDetail,
    ProfileRead,
)

__all__ = [
    "UserCreate",
    "LoginRequest",
    "UserRead",
    "TaskCreate",
    "TaskRead",
    "ProjectCreate",
    "ProjectUpdate",
    "ParticipantAdd",
    "ProjectRead",
    "ProjectWithTasks",
    "ProjectDetail",
    "ProfileRead",
]
