from __future__ import annotations

import logging
import os
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, status

from techdebtsim.common.constants import Constants
from techdebtsim.common.dev_logging import LOG_FORMAT, init_dev_logging

from .core import Lead
from .engine import Simulation
from .schemas import (
    ConstantsImportResponse,
    DeveloperCreate,
    DeveloperRead,
    LeadCreate,
    LeadRead,
    ProjectCreate,
    ProjectCreateResponse,
    ProjectRead,
    SimulationAdvanceRequest,
    SimulationControlResponse,
    SimulationState,
    StepsPerSecondRequest,
)

load_dotenv()

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

tags_metadata = [
    {
        "name": "Simulation Control",
        "description": "Lifecycle commands - start, pause, resume, stop, reset, advance and tick rate",
    },
    {
        "name": "Metrics",
        "description": "Current metrics snapshot, bounded history and rolling summary",
    },
    {
        "name": "Team",
        "description": "Developers, leads and the project pipeline",
    },
    {
        "name": "Constants",
        "description": "Export and import the tunable constants as JSON",
    },
]


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _build_default_simulation() -> Simulation:
    constants = Constants()
    constants_path = os.getenv("TDSIM_CONSTANTS_PATH")
    if constants_path:
        constants.load_from_file(constants_path)
    return Simulation(constants, steps_per_second=_env_float("TDSIM_STEPS_PER_SECOND", 2.0))


def _state(simulation: Simulation) -> SimulationState:
    return SimulationState(
        step=simulation.step,
        is_running=simulation.is_running,
        is_paused=simulation.is_paused,
        steps_per_second=simulation.steps_per_second,
    )


def _control_response(simulation: Simulation, message: str) -> SimulationControlResponse:
    return SimulationControlResponse(**_state(simulation).model_dump(), message=message)


def create_app(simulation: Simulation | None = None) -> FastAPI:
    app = FastAPI(
        title="Tech Debt Simulation",
        version="0.1.0",
        openapi_tags=tags_metadata,
        description="Engineering team, codebase and product simulation driven one tick at a time",
    )
    app.state.simulation = simulation or _build_default_simulation()

    @app.on_event("shutdown")
    def _shutdown() -> None:
        sim = getattr(app.state, "simulation", None)
        if sim is not None:
            sim.close()

    def get_simulation(request: Request) -> Simulation:
        return request.app.state.simulation

    # --- Simulation control ---------------------------------------------
    @app.get(f"{API_PREFIX}/simulation", tags=["Metrics"])
    def get_metrics(simulation: Simulation = Depends(get_simulation)) -> dict[str, Any]:
        return simulation.get_current_metrics()

    @app.get(f"{API_PREFIX}/simulation/statistics", tags=["Metrics"])
    def get_statistics(simulation: Simulation = Depends(get_simulation)) -> dict[str, Any]:
        return simulation.get_statistics()

    @app.post(f"{API_PREFIX}/simulation/start", response_model=SimulationControlResponse, tags=["Simulation Control"])
    def start_simulation(simulation: Simulation = Depends(get_simulation)) -> SimulationControlResponse:
        started = simulation.start()
        return _control_response(simulation, "Simulation started" if started else "Simulation already running")

    @app.post(f"{API_PREFIX}/simulation/pause", response_model=SimulationControlResponse, tags=["Simulation Control"])
    def pause_simulation(simulation: Simulation = Depends(get_simulation)) -> SimulationControlResponse:
        if not simulation.pause():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Simulation is not running")
        return _control_response(simulation, "Simulation paused")

    @app.post(f"{API_PREFIX}/simulation/resume", response_model=SimulationControlResponse, tags=["Simulation Control"])
    def resume_simulation(simulation: Simulation = Depends(get_simulation)) -> SimulationControlResponse:
        if not simulation.resume():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Simulation is not paused")
        return _control_response(simulation, "Simulation resumed")

    @app.post(f"{API_PREFIX}/simulation/stop", response_model=SimulationControlResponse, tags=["Simulation Control"])
    def stop_simulation(simulation: Simulation = Depends(get_simulation)) -> SimulationControlResponse:
        simulation.stop()
        return _control_response(simulation, "Simulation stopped")

    @app.post(f"{API_PREFIX}/simulation/reset", response_model=SimulationControlResponse, tags=["Simulation Control"])
    def reset_simulation(simulation: Simulation = Depends(get_simulation)) -> SimulationControlResponse:
        simulation.reset()
        return _control_response(simulation, "Simulation reset")

    @app.post(f"{API_PREFIX}/simulation/advance", tags=["Simulation Control"])
    def advance_simulation(
        payload: SimulationAdvanceRequest,
        simulation: Simulation = Depends(get_simulation),
    ) -> dict[str, Any]:
        try:
            reports = simulation.advance(payload.steps)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        return {
            "steps_advanced": len(reports),
            "completed_projects": sum(len(r.completed_projects) for r in reports),
            "leaving_developers": sum(len(r.leaving_developers) for r in reports),
            "metrics": simulation.get_current_metrics(),
        }

    @app.put(f"{API_PREFIX}/simulation/speed", tags=["Simulation Control"])
    def set_speed(
        payload: StepsPerSecondRequest,
        simulation: Simulation = Depends(get_simulation),
    ) -> dict[str, float]:
        """Set the tick rate; values outside the configured band are clamped."""
        return {"steps_per_second": simulation.set_steps_per_second(payload.steps_per_second)}

    # --- Team -----------------------------------------------------------
    @app.get(f"{API_PREFIX}/developers", response_model=list[DeveloperRead], tags=["Team"])
    def list_developers(simulation: Simulation = Depends(get_simulation)) -> list[dict[str, Any]]:
        return simulation.list_developers()

    @app.post(
        f"{API_PREFIX}/developers",
        response_model=DeveloperRead,
        status_code=status.HTTP_201_CREATED,
        tags=["Team"],
    )
    def add_developer(payload: DeveloperCreate, simulation: Simulation = Depends(get_simulation)) -> dict[str, Any]:
        developer = simulation.add_developer(payload.name, payload.base_skill, payload.tech_debt_tolerance)
        return developer.to_dict()

    @app.get(f"{API_PREFIX}/projects", response_model=list[ProjectRead], tags=["Team"])
    def list_projects(simulation: Simulation = Depends(get_simulation)) -> list[dict[str, Any]]:
        return simulation.list_projects()

    @app.post(
        f"{API_PREFIX}/projects",
        response_model=ProjectCreateResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Team"],
    )
    def add_project(payload: ProjectCreate, simulation: Simulation = Depends(get_simulation)) -> ProjectCreateResponse:
        if payload.type == "feature":
            accepted = simulation.add_feature_project(payload.impact_value)
        else:
            accepted = simulation.add_tech_debt_project(payload.impact_value)
        if not accepted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project was not accepted")
        return ProjectCreateResponse(accepted=accepted, type=payload.type)

    @app.post(f"{API_PREFIX}/leads", response_model=LeadRead, status_code=status.HTTP_201_CREATED, tags=["Team"])
    def add_lead(payload: LeadCreate, simulation: Simulation = Depends(get_simulation)) -> LeadRead:
        lead = Lead(
            name=payload.name,
            experience_level=payload.experience_level,
            feature_weight=payload.feature_weight,
            tech_debt_weight=payload.tech_debt_weight,
        )
        if not simulation.add_lead(lead):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lead was not accepted")
        return LeadRead(id=lead.id, name=lead.name, experience_level=lead.experience_level)

    # --- Constants ------------------------------------------------------
    @app.get(f"{API_PREFIX}/constants", tags=["Constants"])
    def export_constants(simulation: Simulation = Depends(get_simulation)) -> dict[str, Any]:
        return simulation.constants.as_dict()

    @app.put(f"{API_PREFIX}/constants", response_model=ConstantsImportResponse, tags=["Constants"])
    async def import_constants(request: Request) -> ConstantsImportResponse:
        simulation: Simulation = request.app.state.simulation
        raw = (await request.body()).decode("utf-8", errors="replace")
        if not simulation.constants.load_from_json(raw):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Constants payload must be a JSON object of numbers")
        return ConstantsImportResponse(applied=True, constants=simulation.constants.as_dict())

    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    import uvicorn

    app = create_app()
    init_dev_logging(app.state.simulation, session_label="simulation server")

    host = os.getenv("TDSIM_SIM_HOST", "127.0.0.1")
    try:
        port = int(os.getenv("TDSIM_SIM_PORT", "8015"))
    except ValueError:
        port = 8015
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
