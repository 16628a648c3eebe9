"""
Reset pipeline: discard stored dashboard state and persist a fresh seed dataset.
"""

from typing import Optional
from datetime import datetime
import logging
import argparse

from triage.config.settings import Settings
from triage.data_access.state_store import StateStore
from triage.pipelines.stats import summarize


logger = logging.getLogger(__name__)


class ResetPipeline:
    """Pipeline for restoring the dashboard to generated demo data."""

    def __init__(self, config: Settings, store: Optional[StateStore] = None):
        self.config = config
        self.store = store if store is not None else StateStore(config)

    def run(self, now: Optional[datetime] = None, persist: bool = True) -> dict:
        """
        Execute the reset.

        Args:
            now: Reference time for the generated items
            persist: Save the fresh seed instead of leaving storage empty

        Returns:
            Dictionary with the new dataset's statistics
        """
        logger.info(
            f"Resetting dashboard state (seed={self.config.seed_value}, "
            f"items={self.config.seed_item_count}, days_back={self.config.seed_days_back})"
        )
        try:
            snapshot = self.store.reset_state(now=now)
            if persist:
                self.store.save_state(snapshot)
        finally:
            self.store.close()

        stats = summarize(snapshot.items)
        return {
            "total_items": len(snapshot.items),
            "pending": stats.pending,
            "approved": stats.approved_count,
            "negative_flagged": stats.negative_flagged,
            "persisted": persist
        }


def main():
    """Main entry point for resetting the dashboard state."""
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(
        description='Reset the feedback dashboard to a freshly generated demo dataset.'
    )
    parser.add_argument('--count', type=int, help='Number of demo items to generate')
    parser.add_argument('--days-back', type=int, help='Spread demo items over this many days')
    parser.add_argument('--seed', type=int, help='Seed value for the demo generator')
    parser.add_argument(
        '--clear-only',
        action='store_true',
        help='Only clear stored state; the seed is regenerated on next load'
    )

    args = parser.parse_args()

    overrides = {}
    if args.count is not None:
        overrides['seed_item_count'] = args.count
    if args.days_back is not None:
        overrides['seed_days_back'] = args.days_back
    if args.seed is not None:
        overrides['seed_value'] = args.seed

    if overrides.get('seed_item_count', 0) < 0 or overrides.get('seed_days_back', 0) < 0:
        parser.error("--count and --days-back must be non-negative")

    config = Settings(**overrides)

    pipeline = ResetPipeline(config)
    stats = pipeline.run(persist=not args.clear_only)

    # Print results
    print("\n" + "="*50)
    print("DASHBOARD RESET RESULTS")
    print("="*50)
    print(f"Generated items: {stats['total_items']}")
    print(f"Pending: {stats['pending']}")
    print(f"Approved: {stats['approved']}")
    print(f"Negative / flagged: {stats['negative_flagged']}")
    print(f"Persisted: {'yes' if stats['persisted'] else 'no (cleared only)'}")
    print("="*50)


if __name__ == "__main__":
    main()
