"""
Codebase Module

Tracks code quality (the inverse of accumulated tech debt) and derives the
per-tick failure probability and maintenance cost from it. Completed
projects land here: features are recorded as launches that feed product
reputation, tech-debt work restores quality.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any

from techdebtsim.common.constants import Constants

from .project import Project, new_id

logger = logging.getLogger(__name__)


CODEBASE_DEFAULTS: dict[str, float] = {
    "max_failure_probability": 0.01,
    "min_failure_probability": 0.0001,
    "feature_launch_impact_decay": 0.8,
    "code_quality_decay_rate": 0.05,
    "tech_debt_reduction_efficiency": 1.0,
    "maintenance_cost_factor": 100,
    "max_severity": 10,
    "min_severity": 2,
    "feature_impact_window_ticks": 120,
}

FAILURE_DESCRIPTIONS = (
    "Database performance issues",
    "API timeout errors",
    "Security vulnerability discovered",
    "Critical bug in payment system",
    "Server outage",
    "Data corruption detected",
    "Authentication system failure",
    "Third-party integration breakdown",
    "Memory leak causing crashes",
    "Configuration error in production",
)


@dataclass
class FeatureLaunch:
    """A shipped feature that may still move reputation."""

    project_id: str
    name: str
    impact_value: float
    launch_tick: int
    has_impacted_reputation: bool = False


@dataclass
class ProductFailure:
    """A production incident rolled by the codebase."""

    severity: float
    impact: float
    description: str


class Codebase:
    """
    Code quality, failure risk and the recent feature launch history.

    Quality runs 0 (unmaintainable) to 100 (pristine). The failure
    probability is refreshed after every quality change.
    """

    def __init__(self, initial_quality: float = 50.0, constants: Constants | None = None) -> None:
        self.constants = constants if constants is not None else Constants()
        self.constants.register_defaults(CODEBASE_DEFAULTS)

        self.id = new_id()
        self.code_quality = max(0.0, min(100.0, float(initial_quality)))
        self.recent_feature_launches: list[FeatureLaunch] = []
        self.current_tick = 0
        self.failure_probability = self.calculate_failure_probability()
        self.maintenance_cost = self.calculate_maintenance_cost()

    def calculate_failure_probability(self, quality: float | None = None) -> float:
        """
        Map code quality linearly onto [min, max] failure probability.

        Args:
            quality: Quality to evaluate; defaults to the current quality

        Returns:
            ``min_failure_probability`` at quality 100, ``max_failure_probability`` at 0
        """
        if quality is None:
            quality = self.code_quality
        max_p = self.constants.get("max_failure_probability", 0.01)
        min_p = self.constants.get("min_failure_probability", 0.0001)
        quality_factor = max(0.0, min(1.0, (100 - quality) / 100))
        return max_p * quality_factor + min_p * (1 - quality_factor)

    def calculate_maintenance_cost(self) -> float:
        return (100 - self.code_quality) * self.constants.get("maintenance_cost_factor", 100)

    def improve_code_quality(self, amount: float) -> None:
        self.code_quality = min(100.0, self.code_quality + amount)
        self.failure_probability = self.calculate_failure_probability()

    def degrade_code_quality(self, amount: float) -> None:
        self.code_quality = max(0.0, self.code_quality - amount)
        self.failure_probability = self.calculate_failure_probability()

    def add_feature_launch(self, project: Project) -> FeatureLaunch | None:
        if not project.is_feature or project.has_affected_reputation:
            return None
        if any(launch.project_id == project.id for launch in self.recent_feature_launches):
            return None

        launch = FeatureLaunch(
            project_id=project.id,
            name=project.name,
            impact_value=project.impact_value,
            launch_tick=self.current_tick,
        )
        self.recent_feature_launches.append(launch)
        project.has_affected_reputation = True
        logger.info("Feature launched: %s (impact %.1f)", project.name, project.impact_value)

        # Features shipped by debt-tolerant developers cost more quality.
        tolerance = project.author_tech_debt_tolerance
        if tolerance is not None:
            self.degrade_code_quality(max(0.0, (100 - tolerance) / 10))
        return launch

    def get_reputation_impact_from_features(self) -> float:
        window = self.constants.get("feature_impact_window_ticks", 120)
        self.recent_feature_launches = [
            launch for launch in self.recent_feature_launches if self.current_tick - launch.launch_tick < window
        ]

        decay = self.constants.get("feature_launch_impact_decay", 0.8)
        pending = [launch for launch in reversed(self.recent_feature_launches) if not launch.has_impacted_reputation]
        total_impact = 0.0
        for rank, launch in enumerate(pending):
            total_impact += launch.impact_value * decay**rank
            launch.has_impacted_reputation = True

        if total_impact:
            logger.debug("Reputation impact from %d feature(s): %.2f", len(pending), total_impact)
        return total_impact

    def process_tech_debt_reduction(self, project: Project) -> float:
        if not project.is_tech_debt:
            return 0.0
        reduction = project.impact_value * self.constants.get("tech_debt_reduction_efficiency", 1.0)
        self.improve_code_quality(reduction)
        logger.info("Tech debt reduced by %s: +%.1f quality", project.name, reduction)
        return reduction

    def check_for_failure(self) -> ProductFailure | None:
        if random.random() >= self.failure_probability:
            return None
        min_severity = self.constants.get("min_severity", 2)
        max_severity = self.constants.get("max_severity", 10)
        severity = random.uniform(min_severity, max_severity)
        return ProductFailure(
            severity=severity,
            impact=severity * 2,
            description=self.generate_failure_description(severity),
        )

    def generate_failure_description(self, severity: float) -> str:
        max_severity = self.constants.get("max_severity", 10)
        if severity > max_severity * 0.8:
            level = "Critical"
        elif severity > max_severity * 0.5:
            level = "Major"
        else:
            level = "Minor"
        return f"{level}: {random.choice(FAILURE_DESCRIPTIONS)}"

    def step(self) -> None:
        self.current_tick += 1
        self.degrade_code_quality(self.constants.get("code_quality_decay_rate", 0.05))
        self.maintenance_cost = self.calculate_maintenance_cost()

    def get_metrics(self) -> dict[str, Any]:
        return {
            "code_quality": round(self.code_quality, 2),
            "failure_probability": round(self.failure_probability * 100, 2),
            "maintenance_cost": round(self.maintenance_cost),
            "recent_features_count": len(self.recent_feature_launches),
        }
