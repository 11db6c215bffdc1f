from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from techdebtsim.common.constants import Constants

from .core import (
    Codebase,
    Developer,
    EngineeringTeam,
    EventSystem,
    LeadPolicy,
    MetricsRecorder,
    Product,
    ProductStepResult,
    Project,
    SimulationEvent,
    TickManager,
)
from .core.event_system import Listener

logger = logging.getLogger(__name__)


SIMULATION_DEFAULTS: dict[str, float] = {
    "max_history_length": 250,
    "min_steps_per_second": 0.1,
    "max_steps_per_second": 10,
    "initial_user_count": 1000,
    "initial_code_quality": 50,
    "initial_developer_count": 3,
    "failure_reputation_threshold": -5,
}

SUMMARY_WINDOW = 10


@dataclass
class StepReport:
    """Everything a single tick produced, as delivered to step listeners."""

    step: int
    completed_projects: list[Project] = field(default_factory=list)
    leaving_developers: list[Developer] = field(default_factory=list)
    product_metrics: ProductStepResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "completed_projects": [p.to_dict() for p in self.completed_projects],
            "leaving_developers": [d.to_dict() for d in self.leaving_developers],
            "product_metrics": self.product_metrics.to_dict() if self.product_metrics else None,
        }


class Simulation:
    """
    Orchestrates the tech-debt simulation.

    Owns the constants store, product, codebase and engineering team, runs the
    fixed per-tick pipeline and exposes lifecycle commands, metric queries and
    an event registry. Ticks are serialized through the tick manager's lock
    whether they come from the background driver or from ``advance``.
    """

    def __init__(
        self,
        constants: Constants | None = None,
        *,
        steps_per_second: float = 2.0,
    ) -> None:
        self.constants = constants if constants is not None else Constants()
        self.constants.register_defaults(SIMULATION_DEFAULTS)

        self.is_running = False
        self.is_paused = False
        self.step = 0
        self.leads: list[LeadPolicy] = []
        self.events = EventSystem()

        self.steps_per_second = self._clamp_steps_per_second(steps_per_second)
        self.tick_manager = TickManager(tick_interval_seconds=1.0 / self.steps_per_second)
        self._lock = self.tick_manager.get_advance_lock()

        self.stats = MetricsRecorder(maxlen=int(self.constants.get("max_history_length", 250)))
        self._build_subsystems()
        self.initialize_projects()

    # --- Wiring --------------------------------------------------------
    def _build_subsystems(self) -> None:
        self.product = Product(self.constants.get("initial_user_count", 1000), constants=self.constants)
        self.codebase = Codebase(self.constants.get("initial_code_quality", 50), constants=self.constants)
        self.engineering_team = EngineeringTeam(
            int(self.constants.get("initial_developer_count", 3)),
            constants=self.constants,
            leads=self.leads,
        )
        self.product.set_codebase(self.codebase)

    def initialize_projects(self) -> None:
        self.engineering_team.add_feature_project(15)
        self.engineering_team.add_feature_project(12)
        self.engineering_team.add_tech_debt_project(8)
        self.engineering_team.add_feature_project(10)

    def _clamp_steps_per_second(self, steps_per_second: float) -> float:
        low = self.constants.get("min_steps_per_second", 0.1)
        high = self.constants.get("max_steps_per_second", 10)
        return max(low, min(high, float(steps_per_second)))

    # --- Lifecycle -----------------------------------------------------
    def start(self) -> bool:
        with self._lock:
            if self.is_running:
                return False
            self.is_running = True
            self.is_paused = False
            self._start_driver()
        logger.info("Simulation started at %.2f steps/s", self.steps_per_second)
        self.events.emit(SimulationEvent.STARTED)
        return True

    def pause(self) -> bool:
        with self._lock:
            if not self.is_running or self.is_paused:
                return False
            self.is_paused = True
        logger.info("Simulation paused at step %d", self.step)
        self.events.emit(SimulationEvent.PAUSED)
        return True

    def resume(self) -> bool:
        with self._lock:
            if not self.is_running or not self.is_paused:
                return False
            self.is_paused = False
        logger.info("Simulation resumed at step %d", self.step)
        self.events.emit(SimulationEvent.RESUMED)
        return True

    def stop(self) -> None:
        # Joined outside the lock: the driver may be waiting on it mid-tick.
        self.tick_manager.stop_auto_tick()
        with self._lock:
            self.is_running = False
            self.is_paused = False
        logger.info("Simulation stopped at step %d", self.step)
        self.events.emit(SimulationEvent.STOPPED)

    def reset(self) -> None:
        self.stop()
        with self._lock:
            self.step = 0
            self.leads.clear()
            self._build_subsystems()
            self.stats.clear()
            self.initialize_projects()
        logger.info("Simulation reset")
        self.events.emit(SimulationEvent.RESET)

    def set_steps_per_second(self, steps_per_second: float) -> float:
        with self._lock:
            self.steps_per_second = self._clamp_steps_per_second(steps_per_second)
            self.tick_manager.set_tick_interval(1.0 / self.steps_per_second)
            restart = self.is_running
        if restart:
            self.tick_manager.stop_auto_tick()
            with self._lock:
                if self.is_running:
                    self._start_driver()
        return self.steps_per_second

    def _start_driver(self) -> None:
        self.tick_manager.start_auto_tick(
            self.run_step,
            should_tick=self._should_tick,
            on_error=self._on_driver_error,
        )

    def _on_driver_error(self, exc: Exception) -> None:
        """Called on the driver thread after a tick raised; the driver has already given up."""
        self.tick_manager.stop_auto_tick()
        with self._lock:
            self.is_running = False
            self.is_paused = False
        logger.error("Simulation stopped at step %d after a failed tick: %s", self.step, exc)
        self.events.emit(SimulationEvent.STOPPED, {"step": self.step, "error": str(exc)})

    def _should_tick(self) -> bool:
        return self.is_running and not self.is_paused

    # --- Ticking -------------------------------------------------------
    def run_step(self) -> StepReport:
        with self._lock:
            self.step += 1

            self.engineering_team.step()
            completed_projects = self.engineering_team.work_on_projects(self.codebase.code_quality)
            self.product.process_completed_projects(completed_projects)
            self.codebase.step()
            product_metrics = self.product.step()

            threshold = self.constants.get("failure_reputation_threshold", -5)
            satisfaction_factors = {
                "recent_failures": 1 if product_metrics.reputation_change < threshold else 0,
                "codebase_quality": self.codebase.code_quality,
            }
            leaving_developers = self.engineering_team.update_team_satisfaction(satisfaction_factors)

            for lead in self.leads:
                hook = getattr(lead, "step", None)
                if callable(hook):
                    hook()

            self.record_statistics()
            report = StepReport(
                step=self.step,
                completed_projects=completed_projects,
                leaving_developers=leaving_developers,
                product_metrics=product_metrics,
            )
            logger.debug(
                "Step %d: %d completed, %d left, reputation %.2f",
                self.step,
                len(completed_projects),
                len(leaving_developers),
                product_metrics.reputation,
            )
            self.events.emit(SimulationEvent.STEP_COMPLETED, report)
            return report

    def advance(self, steps: int = 1) -> list[StepReport]:
        """
        Run ``steps`` ticks synchronously on the calling thread.

        Raises:
            ValueError: If steps is not positive
        """
        if steps <= 0:
            raise ValueError("Steps must be positive")
        with self._lock:
            return [self.run_step() for _ in range(steps)]

    def record_statistics(self) -> None:
        self.stats.append(
            {
                "step": self.step,
                "product": self.product.get_metrics(),
                "codebase": self.codebase.get_metrics(),
                "team": self.engineering_team.get_metrics(),
                "timestamp": time.time(),
            }
        )

    # --- Commands ------------------------------------------------------
    def add_developer(
        self,
        name: str | None = None,
        base_skill: float | None = None,
        tech_debt_tolerance: float | None = None,
    ) -> Developer:
        with self._lock:
            return self.engineering_team.add_developer(name, base_skill, tech_debt_tolerance)

    def add_feature_project(self, impact_value: float | None = None) -> bool:
        with self._lock:
            return self.engineering_team.add_feature_project(impact_value)

    def add_tech_debt_project(self, impact_value: float | None = None) -> bool:
        with self._lock:
            return self.engineering_team.add_tech_debt_project(impact_value)

    def add_lead(self, lead: Any) -> bool:
        if not isinstance(lead, LeadPolicy):
            logger.warning("Rejected lead %r: missing review_project/prioritize_projects", lead)
            return False
        with self._lock:
            self.leads.append(lead)
        return True

    def add_event_listener(self, event: SimulationEvent | str, callback: Listener) -> None:
        self.events.add_listener(event, callback)

    def remove_event_listener(self, event: SimulationEvent | str, callback: Listener) -> bool:
        return self.events.remove_listener(event, callback)

    # --- Queries -------------------------------------------------------
    def get_current_metrics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "product": self.product.get_metrics(),
                "codebase": self.codebase.get_metrics(),
                "team": self.engineering_team.get_metrics(),
                "step": self.step,
                "is_running": self.is_running,
                "is_paused": self.is_paused,
            }

    def get_statistics(self) -> dict[str, Any]:
        return {
            "current": self.get_current_metrics(),
            "history": self.stats.list(),
            "summary": self.stats.summarize(SUMMARY_WINDOW),
        }

    def list_developers(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dev.to_dict() for dev in self.engineering_team.developers]

    def list_projects(self) -> list[dict[str, Any]]:
        with self._lock:
            return self.engineering_team.snapshot_projects()

    def close(self) -> None:
        if self.is_running:
            self.stop()
