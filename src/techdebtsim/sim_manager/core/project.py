"""
Project Module

A unit of engineering work, either a product feature or a tech-debt cleanup.
Projects move IDEA -> TODO -> IN_PROGRESS -> COMPLETED. Illegal transitions
are rejected by returning False; nothing here raises.
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from enum import Enum
from typing import TYPE_CHECKING, Any

from techdebtsim.common.constants import Constants

if TYPE_CHECKING:
    from .developer import Developer

logger = logging.getLogger(__name__)


PROJECT_DEFAULTS: dict[str, float] = {
    "progress_rate_multiplier": 1.0,
    "tech_debt_impact_on_progress": 1.0,
    "knowledge_gain_multiplier": 0.1,
}

FEATURE_NAMES = (
    "User Authentication",
    "Payment Integration",
    "Mobile App",
    "Search Optimization",
    "Performance Dashboard",
    "API Enhancement",
    "Data Analytics",
    "Social Features",
    "Notification System",
    "Security Update",
)

TECH_DEBT_NAMES = (
    "Database Optimization",
    "Code Refactoring",
    "Legacy System Update",
    "Test Coverage Improvement",
    "Documentation Update",
    "Performance Optimization",
    "Security Audit",
    "Dependency Updates",
    "Code Review Process",
    "Architecture Cleanup",
)


class ProjectType(str, Enum):
    FEATURE = "feature"
    TECH_DEBT = "tech_debt"


class ProjectStatus(str, Enum):
    IDEA = "idea"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def new_id() -> str:
    return uuid.uuid4().hex[:9]


class Project:
    """
    A feature or tech-debt project.

    The assignee is held as a developer id only; the engineering team owns
    every Developer and is the single authority on their lifetime.
    """

    def __init__(
        self,
        project_type: ProjectType | str = ProjectType.FEATURE,
        impact_value: float = 10.0,
        name: str = "",
        constants: Constants | None = None,
    ) -> None:
        self.id = new_id()
        self.type = ProjectType(project_type)
        self.impact_value = float(impact_value)
        self.name = name or self._generate_name()
        self.status = ProjectStatus.IDEA
        self.assigned_developer_id: str | None = None
        self.progress = 0.0
        self.estimated_effort = self._calculate_effort()
        self.approved = False
        self.has_affected_reputation = False
        self.completed_by: str | None = None
        self.author_tech_debt_tolerance: float | None = None
        self.created_at = time.time()

        self.constants = constants if constants is not None else Constants()
        self.constants.register_defaults(PROJECT_DEFAULTS)

    def __repr__(self) -> str:
        return f"Project(id={self.id!r}, type={self.type.value}, status={self.status.value}, progress={self.progress:.1f})"

    def _generate_name(self) -> str:
        names = FEATURE_NAMES if self.type is ProjectType.FEATURE else TECH_DEBT_NAMES
        return random.choice(names)

    def _calculate_effort(self) -> float:
        if self.type is ProjectType.FEATURE:
            effort = self.impact_value * 2 + random.random() * 20
        else:
            effort = self.impact_value * 1.5 + random.random() * 15
        return max(10.0, effort)

    @property
    def is_feature(self) -> bool:
        return self.type is ProjectType.FEATURE

    @property
    def is_tech_debt(self) -> bool:
        return self.type is ProjectType.TECH_DEBT

    def is_approved(self) -> bool:
        return self.approved

    def approve(self) -> bool:
        self.approved = True
        return self.move_to_todo()

    def move_to_todo(self) -> bool:
        if self.status is ProjectStatus.IDEA:
            self.status = ProjectStatus.TODO
            return True
        return False

    def assign_to_developer(self, developer: Developer) -> bool:
        if self.status is ProjectStatus.TODO and self.assigned_developer_id is None:
            self.assigned_developer_id = developer.id
            self.status = ProjectStatus.IN_PROGRESS
            return True
        return False

    def update_progress(self, developer: Developer) -> bool:
        """
        Advance progress by one tick of work from ``developer``.

        Args:
            developer: The developer doing the work; must be the assignee

        Returns:
            True if this call completed the project
        """
        if self.status is not ProjectStatus.IN_PROGRESS or self.assigned_developer_id != developer.id:
            return False

        rate = self.constants.get("progress_rate_multiplier", 1.0) * (developer.base_skill + developer.code_knowledge) / 100
        tech_debt_factor = self.constants.get("tech_debt_impact_on_progress", 1.0) * max(
            0.1, 1 - developer.tech_debt_tolerance / 100
        )
        self.progress += rate * tech_debt_factor * (1 + random.random() * 0.5)

        if self.progress >= 100:
            self.complete(developer)
            return True
        return False

    def complete(self, developer: Developer | None = None) -> bool:
        if self.status is ProjectStatus.COMPLETED:
            return False
        self.status = ProjectStatus.COMPLETED
        self.progress = 100.0
        if developer is not None:
            self.completed_by = developer.id
            self.author_tech_debt_tolerance = developer.tech_debt_tolerance
            developer.gain_code_knowledge(self.impact_value * self.constants.get("knowledge_gain_multiplier", 0.1))
        self.assigned_developer_id = None
        logger.debug("Project %s (%s) completed", self.id, self.name)
        return True

    def return_to_todo(self) -> bool:
        """Drop in-flight work back to TODO with progress reset."""
        if self.status is not ProjectStatus.IN_PROGRESS:
            return False
        self.status = ProjectStatus.TODO
        self.assigned_developer_id = None
        self.progress = 0.0
        return True

    def get_age(self) -> float:
        return time.time() - self.created_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status.value,
            "impact_value": round(self.impact_value, 2),
            "progress": round(self.progress, 2),
            "estimated_effort": round(self.estimated_effort, 2),
            "approved": self.approved,
            "assigned_developer_id": self.assigned_developer_id,
            "completed_by": self.completed_by,
        }
