"""Snapshot persistence for the single learner's ``UserStats``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..config import STORAGE_KEY, get_settings
from ..models.state import UserStats, initial_stats
from ..util.jsonio import read_json_object, write_json_object

_logger = logging.getLogger("amc8.store")


def migrate_snapshot(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Bring an older snapshot up to the current shape before validation."""
    migrated = dict(payload)
    if migrated.get("mistakes") is None:
        migrated["mistakes"] = []
    # Derived on every read.
    migrated.pop("level", None)
    return migrated


class StateStore:
    """Load/save learner stats as one JSON document under a fixed key."""

    def __init__(self, state_dir: Optional[Path] = None) -> None:
        self._state_dir = Path(state_dir) if state_dir else get_settings().state_dir

    @property
    def path(self) -> Path:
        return self._state_dir / f"{STORAGE_KEY}.json"

    def load(self) -> UserStats:
        payload = read_json_object(self.path)
        if not payload:
            if self.path.exists():
                _logger.warning(
                    "snapshot_unreadable",
                    extra={"event": "snapshot_unreadable", "path": str(self.path)},
                )
            return initial_stats()
        try:
            return UserStats.model_validate(migrate_snapshot(payload))
        except ValidationError as exc:
            _logger.warning(
                "snapshot_invalid",
                extra={
                    "event": "snapshot_invalid",
                    "path": str(self.path),
                    "errors": exc.error_count(),
                },
            )
            return initial_stats()

    def save(self, stats: UserStats) -> bool:
        """Write the snapshot; failures are logged and reported as False."""
        try:
            write_json_object(self.path, stats.to_snapshot())
        except OSError as exc:
            _logger.error(
                "snapshot_save_failed",
                extra={"event": "snapshot_save_failed", "path": str(self.path), "error": str(exc)},
            )
            return False
        return True

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            _logger.error(
                "snapshot_clear_failed",
                extra={"event": "snapshot_clear_failed", "path": str(self.path), "error": str(exc)},
            )
