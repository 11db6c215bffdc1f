from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


ProjectTypeLiteral = Literal["feature", "tech_debt"]


class SimulationState(BaseModel):
    step: int = 0
    is_running: bool = False
    is_paused: bool = False
    steps_per_second: float = 2.0


class SimulationControlResponse(SimulationState):
    message: str


class SimulationAdvanceRequest(BaseModel):
    steps: int = Field(default=1, gt=0, le=10000)


class StepsPerSecondRequest(BaseModel):
    steps_per_second: float = Field(..., gt=0)


class DeveloperCreate(BaseModel):
    name: str | None = None
    base_skill: float | None = Field(default=None, ge=0, le=100)
    tech_debt_tolerance: float | None = Field(default=None, ge=0, le=100)


class DeveloperRead(BaseModel):
    id: str
    name: str
    base_skill: float
    code_knowledge: float
    tech_debt_tolerance: float
    satisfaction: float
    burnout_level: float
    productivity: float
    current_project_id: str | None = None
    completed_projects: int = 0
    time_with_company: int = 0


class ProjectCreate(BaseModel):
    type: ProjectTypeLiteral = "feature"
    impact_value: float | None = Field(default=None, gt=0)


class ProjectRead(BaseModel):
    id: str
    name: str
    type: ProjectTypeLiteral
    status: Literal["idea", "todo", "in_progress", "completed"]
    impact_value: float
    progress: float
    estimated_effort: float
    approved: bool
    assigned_developer_id: str | None = None
    completed_by: str | None = None


class ProjectCreateResponse(BaseModel):
    accepted: bool
    type: ProjectTypeLiteral


class LeadCreate(BaseModel):
    name: str = ""
    experience_level: float = Field(default=50, ge=0, le=100)
    feature_weight: float = Field(default=0.6, ge=0, le=1)
    tech_debt_weight: float = Field(default=0.4, ge=0, le=1)


class LeadRead(BaseModel):
    id: str
    name: str
    experience_level: float


class ConstantsImportResponse(BaseModel):
    applied: bool
    constants: dict[str, Any] = Field(default_factory=dict)
