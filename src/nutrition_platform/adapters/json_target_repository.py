"""Local JSON file storage for the target map."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from nutrition_platform.services.targets import TARGETS_STORAGE_KEY, TargetRepository

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileTargetRepository(TargetRepository):
    """Key-value JSON file; targets live under a single versioned key."""

    path: Path
    key: str = TARGETS_STORAGE_KEY

    def load_targets(self) -> object | None:
        """Return the stored document, or None when absent or unreadable."""
        store = self._read()
        return store.get(self.key)

    def save_targets(self, payload: dict[str, object]) -> None:
        """Write the document, keeping any other keys in the file."""
        store = self._read()
        store[self.key] = payload
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(store, indent=2, sort_keys=True))
        tmp_path.replace(self.path)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as exc:
            _logger.warning("Unreadable target store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            _logger.warning("Target store %s is not a JSON object", self.path)
            return {}
        return data
