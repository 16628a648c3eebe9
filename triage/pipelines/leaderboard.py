# triage/pipelines/leaderboard.py
"""
Weekly and monthly agent leaderboards over approved, non-negative feedback.
"""

from collections import Counter
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, List, Optional, Union

from triage.models.schemas import AgentRank, FeedbackItem, Leaderboards, UNKNOWN
from triage.pipelines.stats import get_approved_items
from triage.scoring.engine import DEFAULT_PROFILE, ScoringProfile, Weights, score


HIGHLIGHT_ORDERS = ("recent", "score")
HIGHLIGHT_WINDOWS = ("approved", "week")


def _local_midnight(day: date, zone: Optional[tzinfo]) -> datetime:
    if zone is None:
        # Naive reference times are local wall-clock times
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=zone)


def week_start(now: datetime) -> datetime:
    """Monday 00:00 of the ISO week containing ``now``."""
    monday = now.date() - timedelta(days=now.weekday())
    return _local_midnight(monday, now.tzinfo)


def month_start(now: datetime) -> datetime:
    """First day of ``now``'s month at 00:00."""
    return _local_midnight(now.date().replace(day=1), now.tzinfo)


def agent_key(item: FeedbackItem, fallback: bool = True) -> str:
    """
    Leaderboard grouping key for an item.

    Assigned items group by agent name. Unassigned items fall back to the
    reviewer name, then the item id, so they do not all collapse into one
    "Unknown" row; with ``fallback`` off they do.
    """
    if item.agent and item.agent != UNKNOWN:
        return item.agent
    if not fallback:
        return UNKNOWN
    return item.reviewer_name or item.id


def rank_agents(
    items: List[FeedbackItem],
    profile: Union[ScoringProfile, str] = DEFAULT_PROFILE,
    weights: Optional[Weights] = None,
    agent_key_fallback: bool = True
) -> List[AgentRank]:
    """
    Group items by agent key and rank groups by summed score.

    Ties keep the order in which groups were first seen.
    """
    groups: Dict[str, dict] = {}
    for item in items:
        key = agent_key(item, agent_key_fallback)
        group = groups.get(key)
        if group is None:
            group = groups[key] = {"team": None, "score": 0, "count": 0, "themes": Counter()}

        group["score"] += score(item, profile, weights)
        group["count"] += 1
        if group["team"] is None and item.agent != UNKNOWN:
            group["team"] = item.team
        if item.theme:
            group["themes"][item.theme] += 1

    ranks = [
        AgentRank(
            agent=key,
            team=group["team"] or UNKNOWN,
            score=group["score"],
            count=group["count"],
            themes=[theme for theme, _ in group["themes"].most_common(3)]
        )
        for key, group in groups.items()
    ]
    return sorted(ranks, key=lambda rank: rank.score, reverse=True)


def aggregate(
    items: List[FeedbackItem],
    now: Optional[datetime] = None,
    *,
    weekly_top_n: int = 5,
    monthly_top_n: int = 5,
    highlight_limit: int = 20,
    highlight_order: str = "recent",
    highlight_window: str = "approved",
    profile: Union[ScoringProfile, str] = DEFAULT_PROFILE,
    weights: Optional[Weights] = None,
    agent_key_fallback: bool = True
) -> Leaderboards:
    """
    Compute leaderboards and TV highlights.

    Args:
        items: All feedback items; only approved, non-negative ones count
        now: Reference time (defaults to the current local time)
        weekly_top_n: Rows kept in the weekly ranking
        monthly_top_n: Rows kept in the monthly ranking
        highlight_limit: Maximum highlights returned
        highlight_order: "recent" (newest first) or "score" (highest first)
        highlight_window: "approved" (all approved items) or "week" (this week only)
        profile: Scoring profile
        weights: Optional scoring weight overrides
        agent_key_fallback: Group unassigned items by reviewer name or id

    Returns:
        Leaderboards
    """
    if min(weekly_top_n, monthly_top_n, highlight_limit) < 0:
        raise ValueError("Leaderboard sizes must be non-negative")
    if highlight_order not in HIGHLIGHT_ORDERS:
        raise ValueError(f"highlight_order must be one of {HIGHLIGHT_ORDERS}")
    if highlight_window not in HIGHLIGHT_WINDOWS:
        raise ValueError(f"highlight_window must be one of {HIGHLIGHT_WINDOWS}")

    if now is None:
        now = datetime.now().astimezone()

    approved = get_approved_items(items)
    start_of_week = week_start(now)
    start_of_month = month_start(now)

    in_week = [item for item in approved if item.created_at >= start_of_week]
    in_month = [item for item in approved if item.created_at >= start_of_month]

    pool = approved if highlight_window == "approved" else in_week
    if highlight_order == "score":
        highlights = sorted(pool, key=lambda item: score(item, profile, weights), reverse=True)
    else:
        highlights = sorted(pool, key=lambda item: item.created_at, reverse=True)

    return Leaderboards(
        week_start=start_of_week,
        month_start=start_of_month,
        weekly_top=rank_agents(in_week, profile, weights, agent_key_fallback)[:weekly_top_n],
        monthly_top=rank_agents(in_month, profile, weights, agent_key_fallback)[:monthly_top_n],
        highlights=highlights[:highlight_limit]
    )


def top_themes(ranks: List[AgentRank], limit: int = 6) -> List[str]:
    """Distinct themes across ranked agents, in ranking order, capped at ``limit``."""
    themes = dict.fromkeys(theme for rank in ranks for theme in rank.themes)
    return list(themes)[:limit]
