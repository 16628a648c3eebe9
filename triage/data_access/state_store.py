# triage/data_access/state_store.py
"""
Load-mutate-save wrapper around a storage backend.

Every operation loads the persisted snapshot, reconciles it with the seed,
applies one change and persists the full result before returning it. No
snapshot is cached between calls.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from triage.config.settings import Settings
from triage.data_access.file_store import FileStore
from triage.data_access.persistence import Persistence
from triage.data_access.postgres_store import PostgresStore
from triage.models.schemas import Agent, FeedbackItem, StateSnapshot
from triage.seed.generator import build_seed_snapshot
from triage.state.mutations import (
    merge_reviews,
    patch_item,
    remove_agent,
    set_brand_primary,
    upsert_agent,
)
from triage.state.reconcile import reconcile


logger = logging.getLogger(__name__)


def get_backend(config: Settings) -> Persistence:
    """Instantiate the backend named by ``storage_backend``."""
    if config.storage_backend == "file":
        return FileStore(config)
    if config.storage_backend == "postgres":
        return PostgresStore(config)
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


class StateStore:
    """Snapshot access for the dashboard."""

    def __init__(self, config: Settings, backend: Optional[Persistence] = None):
        self.config = config
        self.backend = backend if backend is not None else get_backend(config)
        self._seed: Optional[StateSnapshot] = None

    def canonical(self, now: Optional[datetime] = None) -> StateSnapshot:
        """Seed snapshot; generated once per store and regenerated on reset."""
        if self._seed is None:
            self._seed = build_seed_snapshot(self.config, now=now)
        return self._seed

    def load_state(self) -> StateSnapshot:
        """Load and reconcile the persisted snapshot (seed when nothing is stored)."""
        raw = self.backend.load()
        if raw is None:
            return self.canonical().model_copy(deep=True)
        return reconcile(raw, self.canonical())

    def save_state(self, snapshot: StateSnapshot) -> None:
        self.backend.save(snapshot)

    def close(self) -> None:
        """Release backend resources such as database connections."""
        close = getattr(self.backend, "close", None)
        if callable(close):
            close()

    def reset_state(self, now: Optional[datetime] = None) -> StateSnapshot:
        """Clear storage and return a freshly generated seed snapshot."""
        self.backend.reset()
        self._seed = build_seed_snapshot(self.config, now=now)
        logger.info(f"State reset; generated {len(self._seed.items)} seed items")
        return self._seed.model_copy(deep=True)

    def update_item(self, item_id: str, patch: Dict[str, Any]) -> StateSnapshot:
        """Patch one item and persist. Unknown ids return the loaded state unsaved."""
        state = self.load_state()
        updated = patch_item(state, item_id, patch)
        if updated is state:
            logger.info(f"Item {item_id} not found; nothing to update")
            return state
        self.save_state(updated)
        return updated

    def update_brand_primary(self, color: str) -> StateSnapshot:
        updated = set_brand_primary(self.load_state(), color)
        self.save_state(updated)
        return updated

    def upsert_agent(self, agent: Union[Agent, Dict[str, Any]]) -> StateSnapshot:
        updated = upsert_agent(self.load_state(), agent)
        self.save_state(updated)
        return updated

    def remove_agent(self, agent_id: str) -> StateSnapshot:
        state = self.load_state()
        updated = remove_agent(state, agent_id)
        if updated is state:
            return state
        self.save_state(updated)
        return updated

    def ingest_reviews(
        self,
        reviews: Iterable[Union[FeedbackItem, Dict[str, Any]]],
        drop_mock: bool = False
    ) -> Tuple[StateSnapshot, int]:
        """Merge ingested reviews (deduplicated by id) and persist."""
        updated, added = merge_reviews(self.load_state(), reviews, drop_mock=drop_mock)
        self.save_state(updated)
        return updated, added
