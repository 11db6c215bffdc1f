"""
Product Module

Reputation, user count and revenue. The product reads feature launches and
failure rolls from a codebase it does not own; the simulation injects it
with ``set_codebase``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable

from techdebtsim.common.constants import Constants

from .codebase import Codebase, ProductFailure
from .project import Project

logger = logging.getLogger(__name__)


PRODUCT_DEFAULTS: dict[str, float] = {
    "reputation_threshold": 20,
    "reputation_decay": 0.02,
    "max_user_growth_rate": 0.02,
    "revenue_per_user": 10,
    "churn_rate": 0.002,
    "scaling_bonus_factor": 2,
}


@dataclass
class ProductStepResult:
    """Outcome of one product tick."""

    reputation_change: float
    user_change: float
    revenue: float
    reputation: float
    user_count: float
    failure: ProductFailure | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "reputation_change": self.reputation_change,
            "user_change": self.user_change,
            "revenue": self.revenue,
            "reputation": self.reputation,
            "user_count": self.user_count,
            "failure": self.failure.description if self.failure else None,
        }


class Product:
    """The shipped product and its market response."""

    def __init__(self, initial_user_count: float = 1000, constants: Constants | None = None) -> None:
        self.constants = constants if constants is not None else Constants()
        self.constants.register_defaults(PRODUCT_DEFAULTS)

        self.reputation = 0.0
        self.user_count = max(0.0, float(initial_user_count))
        self.revenue = 0.0
        self.codebase: Codebase | None = None
        self.last_failure: ProductFailure | None = None

    def set_codebase(self, codebase: Codebase) -> None:
        self.codebase = codebase

    def reputation_multiplier(self) -> float:
        return max(0.5, 1 + self.reputation / 200)

    def money_model(self, user_count: float) -> float:
        base_revenue = user_count * self.constants.get("revenue_per_user", 10)
        scaling_bonus = math.log(user_count / 1000 + 1) * user_count * self.constants.get("scaling_bonus_factor", 2)
        return max(0.0, (base_revenue + scaling_bonus) * self.reputation_multiplier())

    def get_user_growth_rate(self) -> float:
        """Piecewise-linear growth: zero inside the dead zone, max at +/-100."""
        threshold = self.constants.get("reputation_threshold", 20)
        max_rate = self.constants.get("max_user_growth_rate", 0.02)
        span = max(1e-9, 100 - threshold)
        if self.reputation > threshold:
            return (self.reputation - threshold) / span * max_rate
        if self.reputation < -threshold:
            return (self.reputation + threshold) / span * max_rate
        return 0.0

    def update_reputation(self) -> float:
        reputation_change = 0.0
        self.last_failure = None

        if self.codebase is not None:
            reputation_change += self.codebase.get_reputation_impact_from_features()
            failure = self.codebase.check_for_failure()
            if failure is not None:
                reputation_change -= failure.impact
                self.last_failure = failure
                logger.info("Product failure: %s (impact -%.2f)", failure.description, failure.impact)

        self.reputation += reputation_change

        decay = self.constants.get("reputation_decay", 0.02)
        if self.reputation > 0:
            self.reputation = max(0.0, self.reputation - decay)
        elif self.reputation < 0:
            self.reputation = min(0.0, self.reputation + decay)

        self.reputation = max(-100.0, min(100.0, self.reputation))
        return reputation_change

    def update_user_count(self) -> float:
        growth = self.user_count * self.get_user_growth_rate()
        churn = self.user_count * self.constants.get("churn_rate", 0.002)
        previous = self.user_count
        self.user_count = max(0.0, self.user_count + growth - churn)
        return self.user_count - previous

    def update_revenue(self) -> float:
        self.revenue = self.money_model(self.user_count)
        return self.revenue

    def process_completed_projects(self, completed_projects: Iterable[Project]) -> None:
        if self.codebase is None:
            return
        for project in completed_projects:
            if project.is_feature:
                self.codebase.add_feature_launch(project)
            elif project.is_tech_debt:
                self.codebase.process_tech_debt_reduction(project)

    def step(self) -> ProductStepResult:
        reputation_change = self.update_reputation()
        user_change = self.update_user_count()
        revenue = self.update_revenue()
        return ProductStepResult(
            reputation_change=reputation_change,
            user_change=user_change,
            revenue=revenue,
            reputation=self.reputation,
            user_count=self.user_count,
            failure=self.last_failure,
        )

    def get_revenue_per_user(self) -> float:
        if self.user_count == 0:
            return 0.0
        return self.revenue / self.user_count

    def get_metrics(self) -> dict[str, Any]:
        return {
            "reputation": round(self.reputation, 2),
            "user_count": round(self.user_count),
            "revenue": round(self.revenue),
            "reputation_threshold": self.constants.get("reputation_threshold", 20),
            "churn_rate": round(self.constants.get("churn_rate", 0.002) * 100, 2),
            "user_growth_rate": round(self.get_user_growth_rate() * 100, 4),
            "revenue_per_user": round(self.get_revenue_per_user(), 2),
        }
