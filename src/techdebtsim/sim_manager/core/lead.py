"""
Lead Module

Leads replace the engineering team's auto-approval fallback. Anything with
``review_project`` and ``prioritize_projects`` can act as a lead.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from .project import Project, ProjectType, new_id

logger = logging.getLogger(__name__)


LEAD_NAMES = (
    "Sarah Johnson",
    "Mike Chen",
    "Emily Rodriguez",
    "David Kim",
    "Lisa Thompson",
    "John Martinez",
    "Angela Davis",
    "Robert Lee",
    "Jennifer Wilson",
    "Chris Anderson",
    "Maria Garcia",
    "Kevin Brown",
)


@dataclass
class LeadReview:
    approved: bool
    feedback: str = ""


@runtime_checkable
class LeadPolicy(Protocol):
    """Capability contract: approve-or-reject a project, rank a list of projects."""

    def review_project(self, project: Project) -> LeadReview: ...

    def prioritize_projects(self, projects: Sequence[Project]) -> list[Project]: ...


class Lead:
    """Weighted-preference lead: approval odds scale with experience."""

    def __init__(
        self,
        name: str = "",
        experience_level: float = 50,
        feature_weight: float = 0.6,
        tech_debt_weight: float = 0.4,
    ) -> None:
        self.id = new_id()
        self.name = name or random.choice(LEAD_NAMES)
        self.experience_level = max(0.0, min(100.0, float(experience_level)))
        self.approval_authority = True
        self.project_preferences = {
            ProjectType.FEATURE: feature_weight,
            ProjectType.TECH_DEBT: tech_debt_weight,
        }

    def __repr__(self) -> str:
        return f"Lead(id={self.id!r}, name={self.name!r}, experience={self.experience_level})"

    def get_approval_probability(self, project: Project) -> float:
        return self.project_preferences[project.type] * (self.experience_level / 100)

    def review_project(self, project: Project) -> LeadReview:
        if not self.approval_authority:
            return LeadReview(approved=False, feedback=f"{self.name} cannot approve projects")
        if random.random() < self.get_approval_probability(project):
            return LeadReview(approved=True, feedback=f"Approved by {self.name}")
        return LeadReview(approved=False, feedback=f"Deferred by {self.name}")

    def prioritize_projects(self, projects: Sequence[Project]) -> list[Project]:
        return sorted(
            projects,
            key=lambda project: project.impact_value * self.project_preferences[project.type],
            reverse=True,
        )

    def step(self) -> None:
        pass
