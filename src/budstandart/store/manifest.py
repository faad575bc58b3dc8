"""Local JSON manifest of file-search stores and their uploaded files.

Layout::

    {
      "<store>": {
        "name": "<store>",
        "created": "<ISO timestamp>",
        "files": [
          {"name", "displayName", "uri", "mimeType", "sizeBytes", "uploadedAt"}
        ]
      }
    }

Every mutation reloads the file and writes it back atomically. There is no
locking, so two concurrent writers can still lose an update.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class StoreManifest:
    """Repository for store records, persisted at ``path``."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def load(self) -> dict:
        """All store records; empty when the file is missing or unreadable."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable manifest {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict) -> None:
        """Atomic write: temp file in the same directory, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            Path(tmp_path).replace(self.path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def get(self, name: str) -> Optional[dict]:
        return self.load().get(name)

    def put(self, name: str, record: dict) -> None:
        data = self.load()
        data[name] = record
        self.save(data)

    def remove(self, name: str) -> bool:
        """Drop a store record. Returns False if it was not there."""
        data = self.load()
        if name not in data:
            return False
        del data[name]
        self.save(data)
        return True
