"""Per-session log file for the simulation server.

Each server session gets ``logs/<timestamp>_techdebtsim.log``. The file opens
with a header describing the run (bind address, tick rate, starting team and
the full constants snapshot), after which every record from the
``techdebtsim`` logger hierarchy is appended to it.

Environment:
    TDSIM_DEV_LOGGING_ENABLED  anything but 1/true/yes disables the file (default on)
    TDSIM_LOG_DIR              directory for session files (default ./logs)
    TDSIM_LOG_LEVEL            level for the file handler (default INFO)
"""
from __future__ import annotations

import atexit
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from techdebtsim.sim_manager.engine import Simulation

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "techdebtsim"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_session: dict[str, object] = {}


def _is_enabled(env: Mapping[str, str]) -> bool:
    raw = env.get("TDSIM_DEV_LOGGING_ENABLED")
    if raw is None:
        return True
    return raw.strip().lower() in {"1", "true", "yes"}


def _resolve_logs_dir(env: Mapping[str, str]) -> Path:
    if env.get("TDSIM_LOG_DIR"):
        return Path(env["TDSIM_LOG_DIR"]).expanduser().resolve()
    return Path.cwd() / "logs"


def _resolve_level(env: Mapping[str, str]) -> int:
    level = logging.getLevelName(env.get("TDSIM_LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def describe_simulation(simulation: Simulation, env: Mapping[str, str]) -> list[str]:
    """Header lines for a session: where it serves, how fast it ticks, what it starts with."""
    team = simulation.engineering_team
    lines = [
        f"Bind:  {env.get('TDSIM_SIM_HOST', '127.0.0.1')}:{env.get('TDSIM_SIM_PORT', '8015')}",
        f"Speed: {simulation.steps_per_second:g} steps/s",
        f"Team:  {len(team.developers)} developers, {len(team.idea_queue)} seeded projects",
        f"Code:  quality {simulation.codebase.code_quality:.1f}, users {simulation.product.user_count:.0f}",
    ]
    constants_path = env.get("TDSIM_CONSTANTS_PATH")
    lines.append(f"Constants ({constants_path or 'defaults'}):")
    for key, value in sorted(simulation.constants.as_dict().items()):
        lines.append(f"  {key} = {value}")
    return lines


def format_header(session_label: str, start_time: datetime, body: list[str]) -> str:
    lines = [
        f"===== techdebtsim {session_label} session =====",
        f"Start: {start_time.strftime('%Y-%m-%d %H:%M:%S')}",
        f"CWD:   {Path.cwd()}",
        *body,
        "=" * 40,
    ]
    return "\n".join(lines) + "\n"


def close_session_log() -> None:
    handler = _session.get("handler")
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(handler, logging.Handler):
        package_logger.removeHandler(handler)
        handler.close()
    previous_level = _session.get("previous_level")
    if isinstance(previous_level, int):
        package_logger.setLevel(previous_level)
    _session.clear()


def current_log_path() -> Path | None:
    path = _session.get("log_path")
    return path if isinstance(path, Path) else None


def init_dev_logging(
    simulation: Simulation,
    session_label: str = "dev",
    env: Optional[Mapping[str, str]] = None,
) -> Path | None:
    """Open the session log for ``simulation`` and route package logging into it.

    Returns the log file path, or None when disabled or the file cannot be opened.
    Calling it again while a session is open returns the existing path.
    """
    env = env if env is not None else os.environ
    if current_log_path() is not None:
        return current_log_path()
    if not _is_enabled(env):
        return None

    start_time = datetime.now()
    logs_dir = _resolve_logs_dir(env)
    log_path = logs_dir / f"{start_time.strftime('%Y%m%d_%H%M%S')}_techdebtsim.log"
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(format_header(session_label, start_time, describe_simulation(simulation, env)))
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not open session log %s: %s", log_path, exc)
        return None

    handler.setLevel(_resolve_level(env))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous_level = package_logger.level
    package_logger.addHandler(handler)
    if package_logger.level == logging.NOTSET or package_logger.level > handler.level:
        package_logger.setLevel(handler.level)

    _session.update({"handler": handler, "log_path": log_path, "previous_level": previous_level})
    atexit.register(close_session_log)
    logger.info("Session log opened at %s", log_path)
    return log_path
