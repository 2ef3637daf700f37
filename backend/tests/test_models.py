"""
Tests for the participant list stored on projects.
"""

from app.models import Project
from app.models.project import format_participants, parse_participants
from app.schemas import ProjectRead


class TestParticipants:

    def test_parses_delimited_ids(self):
        assert parse_participants("3,1,2") == [3, 1, 2]

    def test_bad_entries_are_dropped(self):
        assert parse_participants("4,,abc,-2,0, 7 ,300") == [4, 7, 300]

    def test_repeats_are_dropped_keeping_first(self):
        assert parse_participants("5,2,5,2") == [5, 2]

    def test_empty_and_missing(self):
        assert parse_participants("") == []
        assert parse_participants(None) == []

    def test_format_keeps_order_without_repeats(self):
        assert format_participants([9, 4, 9, 1]) == "9,4,1"
        assert format_participants([]) == ""

    def test_project_exposes_parsed_ids(self):
        project = Project(id=1, name="Garden", owner=1, participants="2,x,3")
        assert project.participant_ids == [2, 3]

    def test_read_schema_parses_column(self):
        project = Project(
            id=1,
            name="Garden",
            owner=1,
            proj_start_date="2024-01-01 00:00:00",
            participants="2,oops,3",
        )
        read = ProjectRead.model_validate(project)
        assert read.participants == [2, 3]
        assert read.proj_end_date is None
