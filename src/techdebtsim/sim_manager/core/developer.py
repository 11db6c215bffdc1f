"""
Developer Module

An engineer who claims one TODO project at a time, advances it every tick,
and reacts to code quality and team conditions through satisfaction and
burnout.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Mapping, MutableSequence

from techdebtsim.common.constants import Constants

from .project import Project, ProjectStatus, ProjectType, new_id

logger = logging.getLogger(__name__)


DEVELOPER_DEFAULTS: dict[str, float] = {
    "satisfaction_decay": 0.1,
    "workload_threshold": 1.5,
    "suggestion_chance_cap": 0.1,
    "feature_suggestion_ratio": 0.7,
}

DEVELOPER_NAMES = (
    "Alex Chen",
    "Jordan Smith",
    "Casey Johnson",
    "Riley Davis",
    "Morgan Wilson",
    "Taylor Brown",
    "Avery Garcia",
    "Quinn Martinez",
    "Sage Anderson",
    "River Thompson",
    "Dakota Lee",
    "Skyler White",
    "Phoenix Clark",
    "Rowan Lewis",
    "Ember Rodriguez",
    "Sage Walker",
)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class Developer:
    """
    A single member of the engineering team.

    ``current_project`` is shared with the team's in-progress set: the team
    owns the project, the developer only holds the work.
    """

    def __init__(
        self,
        name: str | None = None,
        base_skill: float | None = None,
        tech_debt_tolerance: float | None = None,
        constants: Constants | None = None,
    ) -> None:
        self.id = new_id()
        self.name = name or random.choice(DEVELOPER_NAMES)
        self.base_skill = _clamp(base_skill if base_skill is not None else 20 + random.random() * 60)
        self.code_knowledge = 10 + random.random() * 20
        self.tech_debt_tolerance = _clamp(
            tech_debt_tolerance if tech_debt_tolerance is not None else 20 + random.random() * 60
        )
        self.satisfaction = 75 + random.random() * 20
        self.burnout_level = 0.0
        self.current_project: Project | None = None
        self.completed_projects: list[Project] = []
        self.experience_gained = 0.0
        self.time_with_company = 0

        self.constants = constants if constants is not None else Constants()
        self.constants.register_defaults(DEVELOPER_DEFAULTS)
        self.productivity = self.calculate_productivity()

    def __repr__(self) -> str:
        return f"Developer(id={self.id!r}, name={self.name!r}, satisfaction={self.satisfaction:.1f})"

    def calculate_productivity(self) -> float:
        skill_factor = self.base_skill / 100
        knowledge_factor = min(1.0, self.code_knowledge / 100)
        satisfaction_factor = self.satisfaction / 100
        return skill_factor * 0.4 + knowledge_factor * 0.3 + satisfaction_factor * 0.3

    def is_available(self) -> bool:
        return self.current_project is None

    def get_effective_skill(self) -> float:
        return self.base_skill * self.productivity

    def assign_project(self, project: Project) -> bool:
        if self.current_project is not None or project.status is not ProjectStatus.TODO:
            return False
        if not project.assign_to_developer(self):
            return False
        self.current_project = project
        return True

    def work_on_project(self, codebase_quality: float) -> bool:
        """
        Put one tick of work into the held project.

        Args:
            codebase_quality: Current code quality (0-100)

        Returns:
            True if the project was completed this tick
        """
        if self.current_project is None:
            return False

        if self.current_project.update_progress(self):
            self.complete_project()
            return True

        if codebase_quality < self.tech_debt_tolerance:
            self.satisfaction -= 0.5
            self.burnout_level += 0.3
        else:
            self.satisfaction += 0.1
        self.satisfaction = _clamp(self.satisfaction)
        self.burnout_level = _clamp(self.burnout_level)
        self.productivity = self.calculate_productivity()
        return False

    def complete_project(self) -> Project | None:
        project = self.current_project
        if project is None:
            return None
        self.completed_projects.append(project)
        self.gain_experience(project.impact_value)
        self.current_project = None
        return project

    def release_project(self) -> Project | None:
        """Hand the held project back to TODO, e.g. when leaving the team."""
        project = self.current_project
        if project is None:
            return None
        project.return_to_todo()
        self.current_project = None
        return project

    def gain_code_knowledge(self, amount: float) -> None:
        self.code_knowledge = _clamp(self.code_knowledge + max(0.0, amount))
        self.productivity = self.calculate_productivity()

    def gain_experience(self, amount: float) -> None:
        # Every 100 points converts into 1-2 base skill; the rest carries over.
        self.experience_gained += amount
        while self.experience_gained >= 100:
            self.base_skill = min(100.0, self.base_skill + random.uniform(1, 2))
            self.experience_gained -= 100
        self.productivity = self.calculate_productivity()

    def suggest_new_project(self, idea_queue: MutableSequence[Project]) -> Project | None:
        cap = self.constants.get("suggestion_chance_cap", 0.1)
        suggestion_chance = min(cap, (self.code_knowledge / 100) * cap)
        if random.random() >= suggestion_chance:
            return None

        if random.random() < self.constants.get("feature_suggestion_ratio", 0.7):
            project_type = ProjectType.FEATURE
        else:
            project_type = ProjectType.TECH_DEBT
        impact = 5 + random.random() * 15
        project = Project(project_type, impact, constants=self.constants)
        idea_queue.append(project)
        logger.debug("%s suggested %s project %s", self.name, project_type.value, project.name)
        return project

    def update_satisfaction(self, factors: Mapping[str, Any] | None = None) -> None:
        factors = factors or {}
        self.satisfaction -= self.constants.get("satisfaction_decay", 0.1)

        if factors.get("workload", 0) > self.constants.get("workload_threshold", 1.5):
            self.satisfaction -= 1
            self.burnout_level += 0.5

        if factors.get("team_size", 2) < 2:
            self.satisfaction -= 0.5

        recent_failures = factors.get("recent_failures", 0)
        if recent_failures > 0:
            self.satisfaction -= recent_failures * 0.5

        self.satisfaction = _clamp(self.satisfaction)
        self.burnout_level = _clamp(self.burnout_level)
        self.productivity = self.calculate_productivity()

    def leave_probability(self) -> float:
        return (100 - self.satisfaction) / 1000 + self.burnout_level / 2000

    def should_leave(self) -> bool:
        return random.random() < self.leave_probability()

    def step(self) -> None:
        self.time_with_company += 1
        if self.satisfaction < 80:
            self.satisfaction = _clamp(self.satisfaction + 0.05)
        if self.burnout_level > 0:
            self.burnout_level = _clamp(self.burnout_level - 0.1)
        self.productivity = self.calculate_productivity()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "base_skill": round(self.base_skill, 2),
            "code_knowledge": round(self.code_knowledge, 2),
            "tech_debt_tolerance": round(self.tech_debt_tolerance, 2),
            "satisfaction": round(self.satisfaction, 2),
            "burnout_level": round(self.burnout_level, 2),
            "productivity": round(self.productivity, 3),
            "current_project_id": self.current_project.id if self.current_project else None,
            "completed_projects": len(self.completed_projects),
            "time_with_company": self.time_with_company,
        }
