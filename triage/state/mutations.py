# triage/state/mutations.py
"""
Snapshot-in, snapshot-out updates. Nothing here touches storage; the
StateStore wraps these with load and save.
"""

import logging
from typing import Any, Dict, Iterable, List, Tuple, Union

from triage.models.schemas import Agent, FeedbackItem, StateSnapshot
from triage.seed.generator import MOCK_ID_PREFIX


logger = logging.getLogger(__name__)

_ALIAS_TO_FIELD = {
    field.alias: name
    for name, field in FeedbackItem.model_fields.items()
    if field.alias
}


def _normalize_patch(patch: Dict[str, Any]) -> Dict[str, Any]:
    normalized = {_ALIAS_TO_FIELD.get(key, key): value for key, value in patch.items()}
    # Ids are the merge key and cannot be patched
    normalized.pop("id", None)
    return normalized


def patch_item(snapshot: StateSnapshot, item_id: str, patch: Dict[str, Any]) -> StateSnapshot:
    """
    Shallow-merge ``patch`` into the item with ``item_id``.

    Patch keys may use wire names (``managerRating``) or attribute names
    (``manager_rating``). Unknown ids leave the snapshot untouched and the same
    object is returned.
    """
    for index, item in enumerate(snapshot.items):
        if item.id == item_id:
            break
    else:
        return snapshot

    updated = FeedbackItem.model_validate({**item.model_dump(), **_normalize_patch(patch)})
    items = list(snapshot.items)
    items[index] = updated
    return snapshot.model_copy(update={"items": items})


def set_brand_primary(snapshot: StateSnapshot, color: str) -> StateSnapshot:
    """Replace the brand accent colour."""
    if not color or not str(color).strip():
        raise ValueError("Brand primary colour must be a non-empty string")
    brand = snapshot.brand.model_copy(update={"primary": str(color).strip()})
    return snapshot.model_copy(update={"brand": brand})


def upsert_agent(snapshot: StateSnapshot, agent: Union[Agent, Dict[str, Any]]) -> StateSnapshot:
    """Add an agent, or replace the one with the same id."""
    if not isinstance(agent, Agent):
        agent = Agent.model_validate(agent)

    agents = list(snapshot.agents)
    for index, existing in enumerate(agents):
        if existing.id == agent.id:
            agents[index] = agent
            break
    else:
        agents.append(agent)
    return snapshot.model_copy(update={"agents": agents})


def remove_agent(snapshot: StateSnapshot, agent_id: str) -> StateSnapshot:
    """Remove an agent by id. Items keep the agent's name."""
    agents = [agent for agent in snapshot.agents if agent.id != agent_id]
    if len(agents) == len(snapshot.agents):
        return snapshot
    return snapshot.model_copy(update={"agents": agents})


def merge_reviews(
    snapshot: StateSnapshot,
    reviews: Iterable[Union[FeedbackItem, Dict[str, Any]]],
    drop_mock: bool = False
) -> Tuple[StateSnapshot, int]:
    """
    Merge ingested reviews into the snapshot, deduplicating by id.

    Existing items win over incoming ones with the same id. The merged list is
    re-sorted newest first.

    Args:
        snapshot: Current snapshot
        reviews: FeedbackItem-shaped records from an ingestion job
        drop_mock: Remove generated demo items before merging

    Returns:
        Tuple of (new snapshot, number of items added)
    """
    existing: List[FeedbackItem] = list(snapshot.items)
    if drop_mock:
        existing = [item for item in existing if not item.id.startswith(MOCK_ID_PREFIX)]

    seen = {item.id for item in existing}
    added = []
    for review in reviews:
        if isinstance(review, dict):
            review = FeedbackItem.model_validate(review)
        elif not isinstance(review, FeedbackItem):
            logger.warning(f"Skipping review of unexpected type {type(review).__name__}")
            continue
        if review.id in seen:
            continue
        seen.add(review.id)
        added.append(review)

    items = sorted(existing + added, key=lambda item: item.created_at, reverse=True)
    return snapshot.model_copy(update={"items": items}), len(added)
