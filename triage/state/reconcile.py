# triage/state/reconcile.py
"""
Merge a persisted (possibly partial, stale or malformed) payload with the
canonical seed snapshot.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from triage.models.schemas import Agent, BrandConfig, FeedbackItem, StateSnapshot


logger = logging.getLogger(__name__)


def reconcile(persisted: Any, canonical: StateSnapshot) -> StateSnapshot:
    """
    Produce a complete snapshot from a persisted payload.

    Top-level fields merge shallowly: ``brand`` keys overlay the canonical
    brand, while ``teams``, ``agents`` and ``items`` lists replace the canonical
    lists outright. Each item is coerced through ``FeedbackItem`` so every field
    is present and typed. Never raises; anything unusable yields a copy of
    ``canonical``.

    Args:
        persisted: Decoded payload, raw JSON text/bytes, or None
        canonical: Default snapshot to fill gaps from

    Returns:
        New StateSnapshot
    """
    if isinstance(persisted, (str, bytes, bytearray)):
        try:
            persisted = json.loads(persisted)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Persisted state is not valid JSON, using defaults: {e}")
            return canonical.model_copy(deep=True)

    if not isinstance(persisted, dict):
        if persisted is not None:
            logger.warning(f"Persisted state has unexpected type {type(persisted).__name__}, using defaults")
        return canonical.model_copy(deep=True)

    try:
        return _merge(persisted, canonical)
    except (ValidationError, RecursionError) as e:
        logger.warning(f"Persisted state failed validation, using defaults: {e}")
        return canonical.model_copy(deep=True)


def _merge(persisted: dict, canonical: StateSnapshot) -> StateSnapshot:
    snapshot = canonical.model_copy(deep=True)

    brand = snapshot.brand
    if isinstance(persisted.get("brand"), dict):
        overlay = {
            key: value for key, value in persisted["brand"].items()
            if value is not None and value != ""
        }
        brand = BrandConfig.model_validate({**brand.model_dump(), **overlay})

    teams = snapshot.teams
    if isinstance(persisted.get("teams"), list):
        teams = persisted["teams"]

    agents = snapshot.agents
    if isinstance(persisted.get("agents"), list):
        agents = [Agent.model_validate(a) for a in persisted["agents"] if isinstance(a, dict)]

    items = snapshot.items
    if isinstance(persisted.get("items"), list):
        items = []
        seen = set()
        for raw in persisted["items"]:
            if not isinstance(raw, dict):
                continue
            item = FeedbackItem.model_validate(raw)
            if item.id in seen:
                logger.warning(f"Dropping duplicate persisted item {item.id}")
                continue
            seen.add(item.id)
            items.append(item)

    return StateSnapshot(brand=brand, teams=teams, agents=agents, items=items)
