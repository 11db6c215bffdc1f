import pytest
from fastapi.testclient import TestClient

from techdebtsim.common.constants import Constants
from techdebtsim.sim_manager.app import API_PREFIX, create_app
from techdebtsim.sim_manager.engine import Simulation


@pytest.fixture
def simulation():
    sim = Simulation(Constants(), steps_per_second=10)
    yield sim
    sim.close()


@pytest.fixture
def sim_client(simulation):
    with TestClient(create_app(simulation)) as client:
        yield client


def test_initial_metrics(sim_client):
    response = sim_client.get(f"{API_PREFIX}/simulation")
    assert response.status_code == 200
    body = response.json()
    assert body["step"] == 0
    assert body["is_running"] is False
    assert body["team"]["developer_count"] == 3
    assert body["codebase"]["code_quality"] == 50
    assert body["product"]["user_count"] == 1000


def test_advance_and_statistics(sim_client):
    response = sim_client.post(f"{API_PREFIX}/simulation/advance", json={"steps": 5})
    assert response.status_code == 200
    body = response.json()
    assert body["steps_advanced"] == 5
    assert body["metrics"]["step"] == 5

    stats = sim_client.get(f"{API_PREFIX}/simulation/statistics").json()
    assert len(stats["history"]) == 5
    assert stats["summary"]["total_revenue"] > 0


@pytest.mark.parametrize("steps", [0, -1, 10001])
def test_advance_validates_steps(sim_client, steps):
    response = sim_client.post(f"{API_PREFIX}/simulation/advance", json={"steps": steps})
    assert response.status_code == 422


def test_lifecycle(sim_client):
    started = sim_client.post(f"{API_PREFIX}/simulation/start").json()
    assert started["is_running"] is True
    assert started["message"] == "Simulation started"

    again = sim_client.post(f"{API_PREFIX}/simulation/start").json()
    assert again["message"] == "Simulation already running"

    paused = sim_client.post(f"{API_PREFIX}/simulation/pause")
    assert paused.status_code == 200
    assert paused.json()["is_paused"] is True

    resumed = sim_client.post(f"{API_PREFIX}/simulation/resume")
    assert resumed.status_code == 200
    assert resumed.json()["is_paused"] is False

    stopped = sim_client.post(f"{API_PREFIX}/simulation/stop").json()
    assert stopped["is_running"] is False


def test_pause_when_idle_is_rejected(sim_client):
    assert sim_client.post(f"{API_PREFIX}/simulation/pause").status_code == 400
    assert sim_client.post(f"{API_PREFIX}/simulation/resume").status_code == 400


def test_reset(sim_client):
    sim_client.post(f"{API_PREFIX}/simulation/advance", json={"steps": 3})
    body = sim_client.post(f"{API_PREFIX}/simulation/reset").json()
    assert body["step"] == 0
    stats = sim_client.get(f"{API_PREFIX}/simulation/statistics").json()
    assert stats["history"] == []
    assert stats["summary"] is None


def test_speed_is_clamped(sim_client):
    response = sim_client.put(f"{API_PREFIX}/simulation/speed", json={"steps_per_second": 500})
    assert response.status_code == 200
    assert response.json() == {"steps_per_second": 10}
    assert sim_client.put(f"{API_PREFIX}/simulation/speed", json={"steps_per_second": 0}).status_code == 422


def test_developers(sim_client):
    created = sim_client.post(
        f"{API_PREFIX}/developers",
        json={"name": "Alex Chen", "base_skill": 70, "tech_debt_tolerance": 30},
    )
    assert created.status_code == 201
    assert created.json()["name"] == "Alex Chen"
    assert created.json()["base_skill"] == 70

    listing = sim_client.get(f"{API_PREFIX}/developers").json()
    assert len(listing) == 4
    assert sim_client.post(f"{API_PREFIX}/developers", json={"base_skill": 150}).status_code == 422


def test_projects(sim_client):
    created = sim_client.post(f"{API_PREFIX}/projects", json={"type": "tech_debt", "impact_value": 6})
    assert created.status_code == 201
    assert created.json() == {"accepted": True, "type": "tech_debt"}

    projects = sim_client.get(f"{API_PREFIX}/projects").json()
    assert len(projects) == 5
    assert projects[-1]["type"] == "tech_debt"
    assert projects[-1]["status"] == "idea"

    assert sim_client.post(f"{API_PREFIX}/projects", json={"type": "bugfix"}).status_code == 422


def test_leads(sim_client, simulation):
    response = sim_client.post(f"{API_PREFIX}/leads", json={"name": "Sarah Johnson", "experience_level": 80})
    assert response.status_code == 201
    assert response.json()["name"] == "Sarah Johnson"
    assert len(simulation.leads) == 1


def test_constants_round_trip(sim_client, simulation):
    exported = sim_client.get(f"{API_PREFIX}/constants").json()
    assert exported["reputation_threshold"] == 20

    response = sim_client.put(f"{API_PREFIX}/constants", content='{"reputation_threshold": 30}')
    assert response.status_code == 200
    assert response.json()["constants"]["reputation_threshold"] == 30
    assert simulation.constants.get("reputation_threshold") == 30


def test_bad_constants_payload_keeps_values(sim_client, simulation):
    response = sim_client.put(f"{API_PREFIX}/constants", content="not json")
    assert response.status_code == 400
    assert simulation.constants.get("reputation_threshold") == 20

    response = sim_client.put(f"{API_PREFIX}/constants", content="[1, 2]")
    assert response.status_code == 400


def test_non_numeric_constants_are_rejected_and_ticks_still_run(sim_client, simulation):
    response = sim_client.put(f"{API_PREFIX}/constants", content='{"churn_rate": "fast"}')
    assert response.status_code == 400
    assert simulation.constants.get("churn_rate") == 0.002

    advanced = sim_client.post(f"{API_PREFIX}/simulation/advance", json={"steps": 1})
    assert advanced.status_code == 200
    assert advanced.json()["metrics"]["step"] == 1
