"""
Core simulation modules.

This package contains the entity state machines and the per-tick helpers the
simulation engine is assembled from.

Modules:
    project: Project state machine (idea -> todo -> in progress -> completed)
    developer: Developer work loop, satisfaction and attrition
    codebase: Code quality, failure risk and feature launch history
    product: Reputation, user count and revenue
    lead: Lead capability contract and the default weighted lead
    team: Engineering team roster and project pipeline
    event_system: Synchronous listener registry
    metrics: Bounded metrics history
    tick_manager: Background tick driver
"""

__version__ = "1.0.0"

from .project import Project, ProjectStatus, ProjectType
from .developer import Developer
from .codebase import Codebase, FeatureLaunch, ProductFailure
from .product import Product, ProductStepResult
from .lead import Lead, LeadPolicy, LeadReview
from .team import EngineeringTeam
from .event_system import EventSystem, SimulationEvent
from .metrics import MetricsRecorder
from .tick_manager import TickManager

__all__ = [
    "Project",
    "ProjectStatus",
    "ProjectType",
    "Developer",
    "Codebase",
    "FeatureLaunch",
    "ProductFailure",
    "Product",
    "ProductStepResult",
    "Lead",
    "LeadPolicy",
    "LeadReview",
    "EngineeringTeam",
    "EventSystem",
    "SimulationEvent",
    "MetricsRecorder",
    "TickManager",
]
