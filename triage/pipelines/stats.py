# triage/pipelines/stats.py
"""Headline counts and the approved/queue views over feedback items."""

import math
from collections import Counter
from typing import List, Optional, Tuple

from triage.models.schemas import FeedbackItem, OverviewStats, Sentiment, Status


ALL = "All"
UNCATEGORIZED = "Uncategorized"


def get_approved_items(items: List[FeedbackItem]) -> List[FeedbackItem]:
    """Items cleared for display: approved and not negative."""
    return [
        item for item in items
        if item.status == Status.APPROVED and item.sentiment != Sentiment.NEGATIVE
    ]


def get_queue_items(items: List[FeedbackItem]) -> List[FeedbackItem]:
    """Items still waiting on a manager, i.e. everything not cleared for display."""
    return [
        item for item in items
        if item.status != Status.APPROVED or item.sentiment == Sentiment.NEGATIVE
    ]


def filter_queue(
    items: List[FeedbackItem],
    source: Optional[str] = None,
    team: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None
) -> List[FeedbackItem]:
    """
    Manager review queue narrowed by the admin screen filters.

    Args:
        items: All feedback items
        source: Exact source to keep; None or "All" keeps every source
        team: Exact team to keep; None or "All" keeps every team
        status: Exact status to keep; None or "All" keeps every status
        search: Case-insensitive text matched against id, source, sentiment,
            status, agent, team, theme and text

    Returns:
        Matching queue items, newest first
    """
    needle = (search or "").strip().lower()
    matches = []
    for item in get_queue_items(items):
        if source not in (None, ALL) and item.source != source:
            continue
        if team not in (None, ALL) and item.team != team:
            continue
        if status not in (None, ALL) and item.status != status:
            continue
        if needle:
            blob = " ".join([
                item.id, item.source, item.sentiment, item.status,
                item.agent, item.team, item.theme, item.text,
            ]).lower()
            if needle not in blob:
                continue
        matches.append(item)
    return sorted(matches, key=lambda item: item.created_at, reverse=True)


def negative_themes(items: List[FeedbackItem]) -> List[Tuple[str, int]]:
    """Count negative or flagged items per theme, most frequent first."""
    counts = Counter(
        item.theme or UNCATEGORIZED
        for item in items
        if item.sentiment == Sentiment.NEGATIVE or item.status == Status.FLAGGED_NEGATIVE
    )
    return counts.most_common()


def approved_by_team(items: List[FeedbackItem]) -> List[Tuple[str, int]]:
    """Approved, non-negative item counts per team, largest first."""
    return Counter(item.team for item in get_approved_items(items)).most_common()


def summarize(items: List[FeedbackItem]) -> OverviewStats:
    """
    Compute overview counts.

    ``avg_sentiment`` is the share of positive items, rounded half up, formatted
    as ``"<n>% positive"``. An empty list reports ``"0% positive"``.
    """
    pending = sum(1 for item in items if item.status == Status.PENDING)
    approved = sum(1 for item in items if item.status == Status.APPROVED)
    negative = sum(
        1 for item in items
        if item.sentiment == Sentiment.NEGATIVE or item.status == Status.FLAGGED_NEGATIVE
    )
    positives = sum(1 for item in items if item.sentiment == Sentiment.POSITIVE)

    percent = math.floor(positives / max(len(items), 1) * 100 + 0.5)

    return OverviewStats(
        pending=pending,
        approved_count=approved,
        negative_flagged=negative,
        avg_sentiment=f"{percent}% positive"
    )
