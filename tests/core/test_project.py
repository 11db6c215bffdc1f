"""
Tests for the Project state machine.

Covers status transitions, assignment guards, progress and completion.
"""

from unittest.mock import patch

import pytest

from techdebtsim.common.constants import Constants
from techdebtsim.sim_manager.core import Developer, Project, ProjectStatus, ProjectType


@pytest.fixture
def constants():
    return Constants()


@pytest.fixture
def developer(constants):
    dev = Developer("Alex Chen", base_skill=50, tech_debt_tolerance=0, constants=constants)
    dev.code_knowledge = 50
    return dev


@pytest.fixture
def todo_project(constants):
    project = Project(ProjectType.FEATURE, 10, constants=constants)
    project.approve()
    return project


class TestTransitions:
    """Test IDEA -> TODO -> IN_PROGRESS transitions."""

    def test_new_project_is_unassigned_idea(self, constants):
        project = Project("tech_debt", 8, constants=constants)
        assert project.status is ProjectStatus.IDEA
        assert project.type is ProjectType.TECH_DEBT
        assert project.assigned_developer_id is None
        assert project.progress == 0
        assert project.approved is False
        assert project.estimated_effort >= 10
        assert project.name

    def test_approve_moves_to_todo_once(self, constants):
        project = Project(constants=constants)
        assert project.approve() is True
        assert project.status is ProjectStatus.TODO
        assert project.is_approved()
        assert project.move_to_todo() is False

    def test_cannot_assign_idea(self, constants, developer):
        project = Project(constants=constants)
        assert project.assign_to_developer(developer) is False
        assert project.assigned_developer_id is None

    def test_assign_sets_in_progress(self, todo_project, developer):
        assert todo_project.assign_to_developer(developer) is True
        assert todo_project.status is ProjectStatus.IN_PROGRESS
        assert todo_project.assigned_developer_id == developer.id

    def test_second_assignment_rejected(self, todo_project, developer, constants):
        other = Developer("Jordan Smith", constants=constants)
        assert todo_project.assign_to_developer(developer) is True
        assert todo_project.assign_to_developer(other) is False
        assert todo_project.assigned_developer_id == developer.id


class TestProgress:
    """Test progress updates and completion."""

    def test_non_assignee_cannot_progress(self, todo_project, developer, constants):
        other = Developer("Jordan Smith", constants=constants)
        todo_project.assign_to_developer(developer)
        assert todo_project.update_progress(other) is False
        assert todo_project.progress == 0

    def test_progress_requires_in_progress(self, todo_project, developer):
        assert todo_project.update_progress(developer) is False
        assert todo_project.progress == 0

    def test_progress_rate_without_jitter(self, todo_project, developer):
        todo_project.assign_to_developer(developer)
        # (50 + 50) / 100 = 1.0 rate, tolerance 0 -> factor 1.0, jitter 1 + 0
        with patch("techdebtsim.sim_manager.core.project.random.random", return_value=0.0):
            completed = todo_project.update_progress(developer)
        assert completed is False
        assert todo_project.progress == pytest.approx(1.0)

    def test_high_tolerance_slows_progress(self, todo_project, constants):
        tolerant = Developer("Casey Johnson", base_skill=50, tech_debt_tolerance=95, constants=constants)
        tolerant.code_knowledge = 50
        todo_project.assign_to_developer(tolerant)
        with patch("techdebtsim.sim_manager.core.project.random.random", return_value=0.0):
            todo_project.update_progress(tolerant)
        # max(0.1, 1 - 0.95) = 0.1
        assert todo_project.progress == pytest.approx(0.1)

    def test_rate_multiplier_constant_is_respected(self, developer):
        constants = Constants({"progress_rate_multiplier": 2.0})
        project = Project(constants=constants)
        project.approve()
        project.assign_to_developer(developer)
        with patch("techdebtsim.sim_manager.core.project.random.random", return_value=0.0):
            project.update_progress(developer)
        assert project.progress == pytest.approx(2.0)
        assert constants.get("progress_rate_multiplier") == 2.0

    def test_crossing_100_completes(self, todo_project, developer):
        todo_project.assign_to_developer(developer)
        todo_project.progress = 99.5
        knowledge_before = developer.code_knowledge

        assert todo_project.update_progress(developer) is True

        assert todo_project.status is ProjectStatus.COMPLETED
        assert todo_project.progress == 100
        assert todo_project.assigned_developer_id is None
        assert todo_project.completed_by == developer.id
        assert todo_project.author_tech_debt_tolerance == developer.tech_debt_tolerance
        # impact 10 * knowledge_gain_multiplier 0.1
        assert developer.code_knowledge == pytest.approx(knowledge_before + 1.0)

    def test_complete_twice_is_rejected(self, todo_project, developer):
        todo_project.assign_to_developer(developer)
        assert todo_project.complete(developer) is True
        assert todo_project.complete(developer) is False

    def test_completed_project_does_not_progress(self, todo_project, developer):
        todo_project.assign_to_developer(developer)
        todo_project.complete(developer)
        assert todo_project.update_progress(developer) is False
        assert todo_project.progress == 100


class TestReturnToTodo:
    def test_in_progress_returns_clean(self, todo_project, developer):
        todo_project.assign_to_developer(developer)
        todo_project.progress = 42
        assert todo_project.return_to_todo() is True
        assert todo_project.status is ProjectStatus.TODO
        assert todo_project.progress == 0
        assert todo_project.assigned_developer_id is None

    def test_only_in_progress_can_return(self, todo_project):
        assert todo_project.return_to_todo() is False


def test_to_dict_uses_plain_values(todo_project):
    data = todo_project.to_dict()
    assert data["type"] == "feature"
    assert data["status"] == "todo"
    assert data["assigned_developer_id"] is None
