"""Shared tunable-parameter store.

One ``Constants`` instance is created by the simulation and handed to every
subsystem constructor. Each subsystem registers its own defaults into it;
values that are already present (explicitly set or imported from JSON) win
over registered defaults.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Constants:
    """Named numeric parameters shared by reference across the simulation."""

    def __init__(self, constants: Mapping[str, Any] | None = None) -> None:
        self._constants: dict[str, Any] = dict(constants or {})

    def __contains__(self, key: object) -> bool:
        return key in self._constants

    def __len__(self) -> int:
        return len(self._constants)

    def get(self, key: str, default: Any = None) -> Any:
        return self._constants.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._constants[key] = value

    def register_defaults(self, defaults: Mapping[str, Any]) -> None:
        """Fill in missing keys only; existing values are kept."""
        for key, value in defaults.items():
            self._constants.setdefault(key, value)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._constants)

    def load_from_json(self, text: str) -> bool:
        """
        Merge a JSON object over the current values.

        Args:
            text: JSON document whose top level must be an object

        Returns:
            True if the payload was applied. On malformed input the error is
            logged and the prior values are left untouched.
        """
        try:
            payload = json.loads(text)
        except (TypeError, ValueError) as exc:
            logger.error("Failed to load constants from JSON: %s", exc)
            return False
        if not isinstance(payload, dict):
            logger.error("Failed to load constants from JSON: expected an object, got %s", type(payload).__name__)
            return False
        invalid = sorted(key for key, value in payload.items() if not _is_number(value))
        if invalid:
            logger.error("Failed to load constants from JSON: non-numeric values for %s", ", ".join(invalid))
            return False
        self._constants.update(payload)
        logger.info("Loaded %d constants from JSON", len(payload))
        return True

    def load_from_file(self, path: str | Path) -> bool:
        try:
            text = Path(path).expanduser().read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to read constants file %s: %s", path, exc)
            return False
        return self.load_from_json(text)

    def to_json(self) -> str:
        return json.dumps(self._constants, indent=2, sort_keys=True)
