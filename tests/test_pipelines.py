"""Unit tests for the reset and overview pipelines."""
import pytest
from unittest.mock import Mock
from datetime import datetime, timedelta, timezone
from triage.config.settings import Settings
from triage.data_access.persistence import PersistenceError
from triage.data_access.state_store import StateStore
from triage.models.schemas import BrandConfig, FeedbackItem, StateSnapshot
from triage.pipelines.overview import OverviewPipeline
from triage.pipelines.reset import ResetPipeline


NOW = datetime(2026, 10, 14, 15, 0, tzinfo=timezone.utc)
BRAND = BrandConfig(name="Axxess", primary="#0099cc")


@pytest.fixture
def config(tmp_path):
    """Settings writing to a temporary file."""
    return Settings(state_file=str(tmp_path / "dashboard.json"), seed_item_count=30)


class TestResetPipeline:
    """Test ResetPipeline."""

    def test_reset_persists_seed(self, config):
        """Test that a reset writes the regenerated seed."""
        store = StateStore(config)
        pipeline = ResetPipeline(config, store=store)

        stats = pipeline.run(now=NOW)

        assert stats["total_items"] == 30
        assert stats["persisted"] is True
        assert stats["pending"] + stats["approved"] <= 30
        assert store.backend.load() is not None
        assert store.load_state() == store.canonical()

    def test_clear_only(self, config):
        """Test that persist=False leaves storage empty."""
        mock_store = Mock(spec=StateStore)
        mock_store.reset_state.return_value = StateSnapshot(brand=BRAND, items=[FeedbackItem(id="IT-20000")])

        stats = ResetPipeline(config, store=mock_store).run(now=NOW, persist=False)

        assert stats["total_items"] == 1
        assert stats["persisted"] is False
        mock_store.reset_state.assert_called_once_with(now=NOW)
        mock_store.save_state.assert_not_called()
        mock_store.close.assert_called_once()


class TestOverviewPipeline:
    """Test OverviewPipeline."""

    @pytest.fixture
    def snapshot(self):
        """Approved, pending and negative items within this week."""
        return StateSnapshot(brand=BRAND, items=[
            FeedbackItem(id="1", created_at=NOW - timedelta(hours=1), status="Approved",
                         sentiment="Positive", rating=5, agent="Leah Mokoena", team="Support"),
            FeedbackItem(id="2", created_at=NOW - timedelta(hours=2), status="Approved",
                         sentiment="Positive", rating=4, agent="Kyle Jacobs", team="Sales"),
            FeedbackItem(id="3", created_at=NOW - timedelta(hours=3), status="Pending",
                         sentiment="Neutral", rating=3),
            FeedbackItem(id="4", created_at=NOW - timedelta(hours=4), status="Flagged (Negative)",
                         sentiment="Negative", rating=1),
        ])

    def test_build(self, config, snapshot):
        """Test stats, leaderboards and queue size together."""
        overview = OverviewPipeline(config, store=Mock(spec=StateStore)).build(snapshot, NOW)

        stats = overview["stats"]
        assert stats.pending == 1
        assert stats.approved_count == 2
        assert stats.negative_flagged == 1
        assert stats.avg_sentiment == "50% positive"
        assert overview["queue_size"] == 2

        leaderboards = overview["leaderboards"]
        assert [(r.agent, r.score) for r in leaderboards.weekly_top] == [
            ("Leah Mokoena", 10),
            ("Kyle Jacobs", 7),
        ]
        assert [item.id for item in leaderboards.highlights] == ["1", "2"]

    def test_build_uses_configured_caps_and_profile(self, config, snapshot):
        """Test that settings drive ranking size and scoring profile."""
        config = config.model_copy(update={"weekly_top_n": 1, "scoring_profile": "weighted_sentiment"})
        overview = OverviewPipeline(config, store=Mock(spec=StateStore)).build(snapshot, NOW)

        assert [(r.agent, r.score) for r in overview["leaderboards"].weekly_top] == [("Leah Mokoena", 75)]

    def test_run_loads_state(self, config, snapshot):
        """Test that run reads the current state from the store."""
        mock_store = Mock(spec=StateStore)
        mock_store.load_state.return_value = snapshot

        overview = OverviewPipeline(config, store=mock_store).run(now=NOW)

        mock_store.load_state.assert_called_once()
        assert overview["stats"].approved_count == 2
        mock_store.close.assert_called_once()

    def test_run_closes_store_on_failure(self, config):
        """Test that the store is closed even when loading fails."""
        mock_store = Mock(spec=StateStore)
        mock_store.load_state.side_effect = PersistenceError("relation does not exist")

        with pytest.raises(PersistenceError):
            OverviewPipeline(config, store=mock_store).run(now=NOW)

        mock_store.close.assert_called_once()

    def test_build_admin_views(self, config, snapshot):
        """Test queue filters, negative themes, team counts and weekly themes."""
        snapshot = snapshot.model_copy(update={"items": snapshot.items + [
            FeedbackItem(id="5", created_at=NOW - timedelta(hours=5), status="On hold",
                         sentiment="Neutral", source="Email", team="Sales", text="Waiting on a callback"),
        ]})
        pipeline = OverviewPipeline(config, store=Mock(spec=StateStore))

        overview = pipeline.build(snapshot, NOW, queue_filters={"search": "callback"})

        assert [item.id for item in overview["queue"]] == ["5"]
        assert overview["queue_size"] == 1
        assert overview["negative_themes"] == [("Uncategorized", 1)]
        assert overview["approved_by_team"] == [("Support", 1), ("Sales", 1)]
        assert overview["weekly_themes"] == []
