from app.models.user import User
from app.models.project import Project
from app.models.task import ProjectTask

__all__ = ["User", "Project", "ProjectTask"]
