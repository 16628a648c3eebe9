"""
Overview pipeline: headline stats and leaderboards for the dashboard screens.
"""

from typing import Optional
from datetime import datetime
import logging
import argparse

from triage.config.settings import Settings
from triage.data_access.state_store import StateStore
from triage.models.schemas import StateSnapshot, Status
from triage.pipelines.leaderboard import aggregate, top_themes
from triage.pipelines.stats import (
    approved_by_team,
    filter_queue,
    negative_themes,
    summarize,
)


logger = logging.getLogger(__name__)


class OverviewPipeline:
    """Computes everything the overview, admin and TV screens display."""

    def __init__(self, config: Settings, store: Optional[StateStore] = None):
        self.config = config
        self.store = store if store is not None else StateStore(config)

    def build(
        self,
        snapshot: StateSnapshot,
        now: Optional[datetime] = None,
        queue_filters: Optional[dict] = None
    ) -> dict:
        """
        Compute stats and leaderboards for a snapshot using configured caps.

        Args:
            snapshot: Reconciled dashboard state
            now: Reference time for the week and month windows
            queue_filters: Keyword arguments for filter_queue (source, team,
                status, search)

        Returns:
            Dictionary with "brand", "stats", "leaderboards", "queue",
            "queue_size", "negative_themes", "approved_by_team" and
            "weekly_themes"
        """
        leaderboards = aggregate(
            snapshot.items,
            now,
            weekly_top_n=self.config.weekly_top_n,
            monthly_top_n=self.config.monthly_top_n,
            highlight_limit=self.config.highlight_limit,
            highlight_order=self.config.highlight_order,
            highlight_window=self.config.highlight_window,
            profile=self.config.scoring_profile,
            agent_key_fallback=self.config.agent_key_fallback
        )
        queue = filter_queue(snapshot.items, **(queue_filters or {}))
        return {
            "brand": snapshot.brand,
            "stats": summarize(snapshot.items),
            "leaderboards": leaderboards,
            "queue": queue,
            "queue_size": len(queue),
            "negative_themes": negative_themes(snapshot.items),
            "approved_by_team": approved_by_team(snapshot.items),
            "weekly_themes": top_themes(leaderboards.weekly_top)
        }

    def run(self, now: Optional[datetime] = None, queue_filters: Optional[dict] = None) -> dict:
        """Load the current state and build the overview."""
        try:
            snapshot = self.store.load_state()
        finally:
            self.store.close()
        logger.info(f"Building overview for {len(snapshot.items)} items")
        return self.build(snapshot, now, queue_filters)


def main():
    """Main entry point for printing the dashboard overview."""
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(
        description='Print feedback dashboard stats and agent leaderboards.'
    )
    parser.add_argument(
        '--date',
        type=str,
        help='Reference date in YYYY-MM-DD format (defaults to now)'
    )
    parser.add_argument(
        '--profile',
        choices=['tiered_rating', 'weighted_sentiment'],
        help='Scoring profile to rank with'
    )
    parser.add_argument('--source', help='Only list queue items from this source')
    parser.add_argument('--team', help='Only list queue items for this team')
    parser.add_argument(
        '--status',
        choices=[status.value for status in Status],
        help='Only list queue items with this status'
    )
    parser.add_argument('--search', help='Free-text filter for the review queue')

    args = parser.parse_args()

    now = None
    if args.date:
        try:
            now = datetime.strptime(args.date, '%Y-%m-%d').replace(hour=12)
        except ValueError:
            parser.error(f"Invalid date format: {args.date}. Use YYYY-MM-DD")

    config = Settings(scoring_profile=args.profile) if args.profile else Settings()
    queue_filters = {
        "source": args.source,
        "team": args.team,
        "status": args.status,
        "search": args.search
    }

    pipeline = OverviewPipeline(config)
    overview = pipeline.run(now=now, queue_filters=queue_filters)
    stats = overview['stats']
    leaderboards = overview['leaderboards']

    # Print results
    print("\n" + "="*60)
    print(f"{overview['brand'].name.upper()} FEEDBACK OVERVIEW")
    print("="*60)
    print(f"Pending: {stats.pending}")
    print(f"Approved: {stats.approved_count}")
    print(f"Negative / flagged: {stats.negative_flagged}")
    print(f"Sentiment: {stats.avg_sentiment}")
    print(f"Review queue: {overview['queue_size']}")
    for item in overview['queue'][:10]:
        print(f"  {item.id} [{item.status}] {item.team} / {item.agent}: {item.text[:60]}")

    print(f"\nWeek of {leaderboards.week_start.date()}")
    for position, rank in enumerate(leaderboards.weekly_top, 1):
        themes = ", ".join(rank.themes) or "-"
        print(f"  {position}. {rank.agent} ({rank.team}) score {rank.score}, {rank.count} mentions [{themes}]")
    print(f"Top themes: {', '.join(overview['weekly_themes']) or '-'}")

    print(f"\nMonth from {leaderboards.month_start.date()}")
    for position, rank in enumerate(leaderboards.monthly_top, 1):
        print(f"  {position}. {rank.agent} ({rank.team}) score {rank.score}")

    by_team = " | ".join(f"{team}: {count}" for team, count in overview['approved_by_team'])
    print(f"\nApproved by team: {by_team or 'No approved items yet'}")

    print("\nNegative themes:")
    for theme, count in overview['negative_themes']:
        print(f"  {theme}: {count}")

    print(f"\nHighlights: {len(leaderboards.highlights)}")
    for item in leaderboards.highlights[:5]:
        print(f"  - {item.tv_snippet or item.text[:80]}")
    print("="*60)


if __name__ == "__main__":
    main()
