"""Unit tests for the leaderboard aggregator."""
import pytest
from datetime import datetime, timedelta, timezone
from triage.models.schemas import AgentRank, FeedbackItem, UNKNOWN
from triage.pipelines.leaderboard import agent_key, aggregate, month_start, rank_agents, top_themes, week_start
from triage.pipelines.stats import get_approved_items


# Wednesday
NOW = datetime(2026, 10, 14, 15, 0, tzinfo=timezone.utc)


def make_item(item_id, days_ago=0, agent="Leah Mokoena", team="Support", status="Approved",
              sentiment="Positive", rating=5, theme="", **extra):
    """Build an approved positive item relative to NOW."""
    return FeedbackItem(
        id=item_id,
        created_at=NOW - timedelta(days=days_ago),
        agent=agent,
        team=team,
        status=status,
        sentiment=sentiment,
        rating=rating,
        theme=theme,
        **extra
    )


class TestWindows:
    """Test week and month boundaries."""

    def test_wednesday_week_start(self):
        """Test that a Wednesday maps to the preceding Monday midnight."""
        assert week_start(NOW) == datetime(2026, 10, 12, tzinfo=timezone.utc)

    def test_sunday_week_start(self):
        """Test ISO weeks: Sunday belongs to the week starting six days earlier."""
        sunday = datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc)
        assert week_start(sunday) == datetime(2026, 10, 12, tzinfo=timezone.utc)

    def test_monday_week_start(self):
        """Test that a Monday maps to its own midnight."""
        monday = datetime(2026, 10, 12, 8, 15, tzinfo=timezone.utc)
        assert week_start(monday) == datetime(2026, 10, 12, tzinfo=timezone.utc)

    def test_week_start_keeps_offset(self):
        """Test that the window is computed in the reference time's zone."""
        sast = timezone(timedelta(hours=2))
        now = datetime(2026, 10, 12, 1, 0, tzinfo=sast)
        assert week_start(now) == datetime(2026, 10, 12, tzinfo=sast)

    def test_naive_reference_is_local(self):
        """Test that naive reference times produce aware local midnights."""
        start = week_start(datetime(2026, 10, 14, 15, 0))
        assert start.tzinfo is not None
        assert start.replace(tzinfo=None) == datetime(2026, 10, 12)

    def test_month_start(self):
        """Test the first-of-month boundary."""
        assert month_start(NOW) == datetime(2026, 10, 1, tzinfo=timezone.utc)


class TestAgentKey:
    """Test leaderboard grouping keys."""

    def test_assigned_agent(self):
        assert agent_key(make_item("A")) == "Leah Mokoena"

    def test_fallback_to_reviewer_then_id(self):
        """Test the reviewer-name and id fallbacks for unassigned items."""
        assert agent_key(make_item("A", agent=UNKNOWN, reviewer_name="Jo")) == "Jo"
        assert agent_key(make_item("B", agent=UNKNOWN)) == "B"

    def test_fallback_disabled(self):
        """Test that unassigned items share one bucket without the fallback."""
        assert agent_key(make_item("A", agent=UNKNOWN, reviewer_name="Jo"), fallback=False) == UNKNOWN


class TestRankAgents:
    """Test rank_agents grouping and ordering."""

    def test_scores_and_order(self):
        """Test summed scores ranked highest first."""
        items = [
            make_item("1", agent="Kyle Jacobs", team="Sales", rating=4),
            make_item("2"),
            make_item("3"),
        ]
        ranks = rank_agents(items)
        assert [(r.agent, r.score, r.count) for r in ranks] == [
            ("Leah Mokoena", 20, 2),
            ("Kyle Jacobs", 7, 1),
        ]

    def test_ties_keep_discovery_order(self):
        """Test that equal scores keep first-seen order."""
        items = [
            make_item("1", agent="Kyle Jacobs", team="Sales"),
            make_item("2", agent="Mia van Wyk", team="Sales"),
            make_item("3", agent="Ayesha Khan", team="Walk-In Centre"),
        ]
        assert [r.agent for r in rank_agents(items)] == ["Kyle Jacobs", "Mia van Wyk", "Ayesha Khan"]

    def test_top_themes(self):
        """Test that the three most frequent themes are kept, ties by first seen."""
        themes = ["A", "B", "B", "C", "D", "A", ""]
        items = [make_item(str(i), theme=theme) for i, theme in enumerate(themes)]
        assert rank_agents(items)[0].themes == ["A", "B", "C"]

    def test_team_from_first_assigned_item(self):
        """Test the group team and its fallback label."""
        items = [
            make_item("1", agent=UNKNOWN, team=UNKNOWN, reviewer_name="Jo"),
            make_item("2", agent=UNKNOWN, team=UNKNOWN, reviewer_name="Jo"),
        ]
        ranks = rank_agents(items)
        assert len(ranks) == 1
        assert ranks[0].agent == "Jo"
        assert ranks[0].team == UNKNOWN
        assert ranks[0].count == 2

    def test_unassigned_items_stay_separate(self):
        """Test that the fallback keeps unassigned items apart, or merges them when off."""
        items = [
            make_item("1", agent=UNKNOWN, team=UNKNOWN),
            make_item("2", agent=UNKNOWN, team=UNKNOWN, reviewer_name="Jo"),
        ]
        assert [r.agent for r in rank_agents(items)] == ["1", "Jo"]

        merged = rank_agents(items, agent_key_fallback=False)
        assert [(r.agent, r.count) for r in merged] == [(UNKNOWN, 2)]

    def test_weighted_profile(self):
        """Test ranking with the weighted-sentiment profile."""
        items = [
            make_item("1", agent="Kyle Jacobs", rating=None, keywords=["a", "b", "c", "d", "e"], theme="t"),
            make_item("2", rating=5),
        ]
        ranks = rank_agents(items, profile="weighted_sentiment")
        assert [(r.agent, r.score) for r in ranks] == [("Leah Mokoena", 75), ("Kyle Jacobs", 68)]


class TestAggregate:
    """Test aggregate."""

    @pytest.fixture
    def items(self):
        """Mix of items across windows and statuses."""
        return [
            make_item("w1", days_ago=0, theme="Fast resolution"),
            make_item("w2", days_ago=1, agent="Kyle Jacobs", team="Sales", rating=4),
            make_item("w3", days_ago=2, agent=UNKNOWN, team=UNKNOWN, reviewer_name="Jo", rating=3),
            make_item("m1", days_ago=5, agent="Kyle Jacobs", team="Sales"),
            make_item("m2", days_ago=10, agent="Kyle Jacobs", team="Sales"),
            make_item("old", days_ago=20),
            make_item("pending", status="Pending"),
            make_item("negative", sentiment="Negative"),
            make_item("flagged", status="Flagged (Negative)", sentiment="Negative"),
        ]

    def test_windows_and_restriction(self, items):
        """Test that only approved, non-negative items in each window count."""
        result = aggregate(items, NOW)

        assert result.week_start == datetime(2026, 10, 12, tzinfo=timezone.utc)
        assert result.month_start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert [(r.agent, r.score, r.count) for r in result.weekly_top] == [
            ("Leah Mokoena", 10, 1),
            ("Kyle Jacobs", 7, 1),
            ("Jo", 3, 1),
        ]
        assert [(r.agent, r.score, r.count) for r in result.monthly_top] == [
            ("Kyle Jacobs", 27, 3),
            ("Leah Mokoena", 10, 1),
            ("Jo", 3, 1),
        ]
        assert result.weekly_top[0].themes == ["Fast resolution"]

    def test_weekly_agents_come_from_approved_items(self, items):
        """Test that no ranked agent is absent from the approved input."""
        approved_keys = {agent_key(item) for item in get_approved_items(items)}
        result = aggregate(items, NOW)
        assert {rank.agent for rank in result.weekly_top} <= approved_keys

    def test_counts_cover_week_exactly(self, items):
        """Test that group counts sum to the number of in-week approved items."""
        result = aggregate(items, NOW, weekly_top_n=100)
        in_week = [
            item for item in get_approved_items(items)
            if item.created_at >= result.week_start
        ]
        assert sum(rank.count for rank in result.weekly_top) == len(in_week)

        capped = aggregate(items, NOW, weekly_top_n=1)
        overflow = rank_agents(in_week)[1:]
        assert sum(r.count for r in capped.weekly_top) + sum(r.count for r in overflow) == len(in_week)

    def test_top_n_caps(self, items):
        """Test configurable ranking sizes."""
        result = aggregate(items, NOW, weekly_top_n=2, monthly_top_n=1)
        assert len(result.weekly_top) == 2
        assert [r.agent for r in result.monthly_top] == ["Kyle Jacobs"]

    def test_highlights_recent_first(self, items):
        """Test default highlights: all approved items, newest first, capped."""
        result = aggregate(items, NOW, highlight_limit=4)
        assert [item.id for item in result.highlights] == ["w1", "w2", "w3", "m1"]

    def test_highlights_by_score_this_week(self, items):
        """Test score-ordered highlights restricted to this week."""
        result = aggregate(items, NOW, highlight_order="score", highlight_window="week")
        assert [item.id for item in result.highlights] == ["w1", "w2", "w3"]

    def test_empty_input(self):
        """Test that an empty item list yields empty rankings."""
        result = aggregate([], NOW)
        assert result.weekly_top == []
        assert result.monthly_top == []
        assert result.highlights == []

    def test_invalid_options(self, items):
        """Test that invalid options raise ValueError."""
        with pytest.raises(ValueError):
            aggregate(items, NOW, highlight_order="random")
        with pytest.raises(ValueError):
            aggregate(items, NOW, highlight_window="year")
        with pytest.raises(ValueError):
            aggregate(items, NOW, weekly_top_n=-1)

    def test_wire_format(self, items):
        """Test that leaderboards serialize with camelCase keys."""
        payload = aggregate(items, NOW).model_dump(mode="json", by_alias=True)
        assert set(payload) == {"weekStart", "monthStart", "weeklyTop", "monthlyTop", "highlights"}


class TestTopThemes:
    """Test the deduplicated weekly theme list."""

    def test_distinct_in_ranking_order(self):
        """Test that themes keep ranking order without repeats, capped at six."""
        ranks = [
            AgentRank(agent="A", team="Sales", score=20, count=2, themes=["Quick help", "Honest advice"]),
            AgentRank(agent="B", team="Support", score=10, count=1, themes=["Honest advice", "Fast resolution"]),
            AgentRank(agent="C", team="Support", score=5, count=3, themes=["T1", "T2", "T3"]),
            AgentRank(agent="D", team="Support", score=1, count=1, themes=["T4"]),
        ]
        assert top_themes(ranks) == ["Quick help", "Honest advice", "Fast resolution", "T1", "T2", "T3"]
        assert top_themes(ranks, limit=2) == ["Quick help", "Honest advice"]
        assert top_themes([]) == []

    def test_from_aggregate(self):
        """Test themes taken from the weekly ranking."""
        result = aggregate([make_item("1", theme="Fast resolution")], NOW)
        assert top_themes(result.weekly_top) == ["Fast resolution"]
