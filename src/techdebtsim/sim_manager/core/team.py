"""
EngineeringTeam Module

Owns the developer roster and the project pipeline:

    idea_queue -> todo_list -> in progress (held by a developer) -> completed_projects

A project sits in exactly one of those places at any time.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Mapping, Sequence

from techdebtsim.common.constants import Constants

from .developer import Developer
from .lead import LeadPolicy
from .project import Project, ProjectStatus, ProjectType

logger = logging.getLogger(__name__)


TEAM_DEFAULTS: dict[str, float] = {
    "auto_approval_chance": 0.1,
}


class EngineeringTeam:
    """
    Manages developers and project flow for the simulation.

    Responsibilities:
    - Hiring and attrition
    - Idea intake, approval (by leads or auto-approval) and assignment
    - Collecting completed work each tick
    """

    def __init__(
        self,
        initial_developer_count: int = 3,
        constants: Constants | None = None,
        leads: list[LeadPolicy] | None = None,
    ) -> None:
        self.constants = constants if constants is not None else Constants()
        self.constants.register_defaults(TEAM_DEFAULTS)

        self.developers: list[Developer] = []
        self.idea_queue: list[Project] = []
        self.todo_list: list[Project] = []
        self.completed_projects: list[Project] = []
        self.leads: list[LeadPolicy] = leads if leads is not None else []

        for _ in range(initial_developer_count):
            self.add_developer()

    # --- Roster --------------------------------------------------------
    def add_developer(
        self,
        name: str | None = None,
        base_skill: float | None = None,
        tech_debt_tolerance: float | None = None,
    ) -> Developer:
        developer = Developer(name, base_skill, tech_debt_tolerance, constants=self.constants)
        self.developers.append(developer)
        logger.info("Developer joined: %s (skill %.1f)", developer.name, developer.base_skill)
        return developer

    def get_developer(self, developer_id: str) -> Developer | None:
        return next((dev for dev in self.developers if dev.id == developer_id), None)

    def remove_developer(self, developer_id: str) -> Developer | None:
        developer = self.get_developer(developer_id)
        if developer is None:
            return None

        project = developer.release_project()
        if project is not None and project not in self.todo_list:
            self.todo_list.append(project)
            logger.info("Project %s returned to todo after %s left", project.name, developer.name)

        self.developers.remove(developer)
        return developer

    # --- Projects ------------------------------------------------------
    def add_project(self, project: Project) -> bool:
        if not isinstance(project, Project) or project.status is not ProjectStatus.IDEA:
            return False
        if project in self.idea_queue:
            return False
        self.idea_queue.append(project)
        return True

    def add_feature_project(self, impact_value: float | None = None) -> bool:
        if impact_value is None:
            impact_value = 5 + random.random() * 15
        return self._add_typed_project(ProjectType.FEATURE, impact_value)

    def add_tech_debt_project(self, impact_value: float | None = None) -> bool:
        if impact_value is None:
            impact_value = 5 + random.random() * 10
        return self._add_typed_project(ProjectType.TECH_DEBT, impact_value)

    def _add_typed_project(self, project_type: ProjectType, impact_value: float) -> bool:
        if impact_value <= 0:
            logger.warning("Rejected %s project with non-positive impact %s", project_type.value, impact_value)
            return False
        return self.add_project(Project(project_type, impact_value, constants=self.constants))

    def get_in_progress_projects(self) -> list[Project]:
        return [dev.current_project for dev in self.developers if dev.current_project is not None]

    def all_projects(self) -> list[Project]:
        return [*self.idea_queue, *self.todo_list, *self.get_in_progress_projects(), *self.completed_projects]

    def approve_project(self, project_id: str) -> bool:
        project = next((p for p in self.idea_queue if p.id == project_id), None)
        if project is None or project.is_approved():
            return False
        project.approve()
        return self.move_to_todo(project)

    def move_to_todo(self, project: Project) -> bool:
        if project.status is not ProjectStatus.TODO or project not in self.idea_queue:
            return False
        self.idea_queue.remove(project)
        self.todo_list.append(project)
        return True

    def assign_projects(self) -> int:
        """Pair idle developers with todo projects in list order."""
        available = [dev for dev in self.developers if dev.is_available()]
        todo_projects = [p for p in self.todo_list if p.assigned_developer_id is None]

        assigned = 0
        for developer, project in zip(available, todo_projects):
            if developer.assign_project(project):
                self.todo_list.remove(project)
                assigned += 1
        return assigned

    def work_on_projects(self, codebase_quality: float) -> list[Project]:
        completed_this_step: list[Project] = []
        for developer in self.developers:
            if developer.work_on_project(codebase_quality):
                project = developer.completed_projects[-1]
                completed_this_step.append(project)
                if project not in self.completed_projects:
                    self.completed_projects.append(project)
        return completed_this_step

    def generate_suggestions(self) -> list[Project]:
        suggestions = []
        for developer in self.developers:
            suggestion = developer.suggest_new_project(self.idea_queue)
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions

    # --- Governance ----------------------------------------------------
    def has_no_leads(self) -> bool:
        return not self.leads

    def auto_approve_projects(self) -> list[Project]:
        chance = self.constants.get("auto_approval_chance", 0.1)
        approved = []
        for project in [p for p in self.idea_queue if not p.is_approved()]:
            if random.random() < chance and self.approve_project(project.id):
                approved.append(project)
        return approved

    def review_with_leads(self) -> list[Project]:
        approved = []
        for project in [p for p in self.idea_queue if not p.is_approved()]:
            for lead in self.leads:
                review = lead.review_project(project)
                if review.approved:
                    if self.approve_project(project.id):
                        approved.append(project)
                    break

        if self.leads and self.todo_list:
            ranked = list(self.leads[0].prioritize_projects(list(self.todo_list)))
            # Leads may only reorder the list, never add or drop items.
            if len(ranked) == len(self.todo_list) and set(map(id, ranked)) == set(map(id, self.todo_list)):
                self.todo_list = ranked
            else:
                logger.warning("Ignoring lead prioritisation that changed the todo list contents")
        return approved

    # --- Satisfaction and attrition -----------------------------------
    def update_team_satisfaction(self, factors: Mapping[str, Any] | None = None) -> list[Developer]:
        team_factors = {
            **(factors or {}),
            "team_size": len(self.developers),
            "workload": self.get_average_workload(),
        }
        for developer in self.developers:
            developer.update_satisfaction(team_factors)

        leaving = [dev for dev in self.developers if dev.should_leave()]
        for developer in leaving:
            self.remove_developer(developer.id)
            logger.info("Developer left: %s (satisfaction %.1f)", developer.name, developer.satisfaction)
        return leaving

    def get_average_workload(self) -> float:
        if not self.developers:
            return 0.0
        busy = sum(1 for dev in self.developers if not dev.is_available())
        return busy / len(self.developers)

    def get_average_satisfaction(self) -> float:
        if not self.developers:
            return 0.0
        return sum(dev.satisfaction for dev in self.developers) / len(self.developers)

    def get_average_skill(self) -> float:
        if not self.developers:
            return 0.0
        return sum(dev.get_effective_skill() for dev in self.developers) / len(self.developers)

    def step(self) -> None:
        for developer in self.developers:
            developer.step()

        self.generate_suggestions()

        if self.has_no_leads():
            self.auto_approve_projects()
        else:
            self.review_with_leads()

        self.assign_projects()

    def get_metrics(self) -> dict[str, Any]:
        return {
            "developer_count": len(self.developers),
            "idea_queue_length": len(self.idea_queue),
            "todo_list_length": len(self.todo_list),
            "in_progress_count": len(self.get_in_progress_projects()),
            "completed_projects_count": len(self.completed_projects),
            "average_satisfaction": self.get_average_satisfaction(),
            "average_skill": self.get_average_skill(),
            "average_workload": self.get_average_workload(),
        }

    def snapshot_projects(self, projects: Sequence[Project] | None = None) -> list[dict[str, Any]]:
        return [project.to_dict() for project in (projects if projects is not None else self.all_projects())]
