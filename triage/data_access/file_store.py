# triage/data_access/file_store.py
"""
Local JSON file storage for the dashboard snapshot.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from triage.config.settings import Settings
from triage.data_access.persistence import PersistenceError
from triage.models.schemas import StateSnapshot


logger = logging.getLogger(__name__)


class FileStore:
    """Single-file snapshot storage."""

    def __init__(self, config: Settings):
        self.config = config
        self.path = Path(config.state_file)

    def load(self) -> Optional[str]:
        """
        Read the stored snapshot.

        Returns:
            Raw JSON text, or None when nothing has been saved yet. Decoding is
            left to the reconciler so a corrupt file falls back to defaults.
        """
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Could not read state file {self.path}: {e}") from e

    def save(self, snapshot: StateSnapshot) -> None:
        """Write the snapshot atomically (temp file + rename)."""
        payload = json.dumps(snapshot.to_payload(), indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write state file {self.path}: {e}") from e

        logger.info(f"Saved {len(snapshot.items)} items to {self.path}")

    def reset(self) -> None:
        """Delete the stored snapshot if present."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not delete state file {self.path}: {e}") from e
