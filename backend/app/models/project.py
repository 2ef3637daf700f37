from typing import Iterable, Optional

from sqlmodel import Field, SQLModel

from app.timestamps import now_timestamp

PARTICIPANT_DELIMITER = ","


def parse_participants(raw: str | None) -> list[int]:
    """
    Parse the stored participant list into an ordered set of user ids.

    Entries that are not positive integers are dropped, as are repeats.
    """
    ids: list[int] = []
    for entry in (raw or "").split(PARTICIPANT_DELIMITER):
        try:
            user_id = int(entry.strip())
        except ValueError:
            continue
        if user_id > 0 and user_id not in ids:
            ids.append(user_id)
    return ids


def format_participants(user_ids: Iterable[int]) -> str:
    ordered: list[int] = []
    for user_id in user_ids:
        if user_id not in ordered:
            ordered.append(user_id)
    return PARTICIPANT_DELIMITER.join(str(user_id) for user_id in ordered)


class Project(SQLModel, table=True):
    """
    Project model - owned by one user, groups tasks together.

    ``participants`` is the comma-delimited text column; use
    ``participant_ids`` to read it.
    """

    __tablename__ = "project"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    proj_start_date: str = Field(default_factory=now_timestamp, index=True)
    proj_end_date: Optional[str] = Field(default=None)
    owner: int = Field(foreign_key="user.id", index=True)
    participants: str = Field(default="")

    @property
    def participant_ids(self) -> list[int]:
        return parse_participants(self.participants)
