# triage/data_access/persistence.py
from typing import Any, Optional, Protocol

from triage.models.schemas import StateSnapshot


class PersistenceError(Exception):
    """A storage backend failed to read or write the snapshot."""


class Persistence(Protocol):
    """Contract every storage backend fulfils for the StateStore."""

    def load(self) -> Optional[Any]:
        """Return whatever was last saved (raw or decoded), or None if nothing was."""
        ...

    def save(self, snapshot: StateSnapshot) -> None:
        """Persist the full snapshot; all or nothing."""
        ...

    def reset(self) -> None:
        """Remove any stored snapshot."""
        ...
