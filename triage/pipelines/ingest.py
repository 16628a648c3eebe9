"""
Ingestion pipeline for scraped review batches.
Reads a batch file written by an external scraping job and merges its reviews
into the dashboard state, skipping ids that are already present.
"""

from typing import Optional, Union
from pathlib import Path
import logging
import argparse

from pydantic import ValidationError

from triage.config.settings import Settings
from triage.data_access.state_store import StateStore
from triage.models.schemas import ReviewBatch


logger = logging.getLogger(__name__)


def load_batch(path: Union[str, Path]) -> ReviewBatch:
    """
    Read and validate a review batch file.

    Args:
        path: Path to the batch JSON file

    Returns:
        Parsed ReviewBatch with every review coerced to a FeedbackItem
    """
    return ReviewBatch.model_validate_json(Path(path).read_text(encoding="utf-8"))


class IngestionPipeline:
    """Pipeline for merging scraped review batches into the dashboard state."""

    def __init__(self, config: Settings, store: Optional[StateStore] = None):
        """
        Initialize the ingestion pipeline.

        Args:
            config: Application settings
            store: State store to merge into. If None, one is built from config.
        """
        self.config = config
        self.store = store if store is not None else StateStore(config)

    def run(self, batch: ReviewBatch, keep_mock: bool = False) -> dict:
        """
        Execute the ingestion pipeline.

        Args:
            batch: Scraped review batch
            keep_mock: Keep generated demo items alongside the real reviews

        Returns:
            Dictionary with ingestion statistics
        """
        total_reviews = len(batch.reviews)
        scraped_at = batch.scraped_at.isoformat() if batch.scraped_at else None

        if total_reviews == 0:
            logger.info("Batch contains no reviews; nothing to ingest")
            return {
                "total_reviews": 0,
                "added": 0,
                "duplicates": 0,
                "total_items": None,
                "scraped_at": scraped_at
            }

        logger.info(
            f"Ingesting {total_reviews} reviews"
            + (f" for {batch.business_name}" if batch.business_name else "")
            + (f" (scraped at {scraped_at})" if scraped_at else "")
        )

        try:
            snapshot, added = self.store.ingest_reviews(batch.reviews, drop_mock=not keep_mock)
        finally:
            # Close connections
            self.store.close()
        duplicates = total_reviews - added

        logger.info(f"Ingestion complete: {added} added, {duplicates} already present")

        return {
            "total_reviews": total_reviews,
            "added": added,
            "duplicates": duplicates,
            "total_items": len(snapshot.items),
            "scraped_at": scraped_at
        }


def main():
    """Main entry point for running the ingestion pipeline with CLI arguments."""
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(
        description='Merge a scraped review batch into the feedback dashboard state.'
    )
    parser.add_argument(
        '--file',
        required=True,
        help='Path to the review batch JSON file'
    )
    parser.add_argument(
        '--keep-mock',
        action='store_true',
        help='Keep generated demo items instead of replacing them with real reviews'
    )

    args = parser.parse_args()

    if not Path(args.file).exists():
        parser.error(f"Review batch file not found: {args.file}")

    try:
        batch = load_batch(args.file)
    except ValidationError as e:
        parser.error(f"Malformed review batch {args.file}: {e}")

    config = Settings()

    pipeline = IngestionPipeline(config)
    stats = pipeline.run(batch, keep_mock=args.keep_mock)

    # Print results
    print("\n" + "="*60)
    print("REVIEW INGESTION RESULTS")
    print("="*60)
    if stats['scraped_at']:
        print(f"Scraped at: {stats['scraped_at']}")
    print(f"Reviews in batch: {stats['total_reviews']}")
    print(f"Added: {stats['added']}")
    print(f"Already present: {stats['duplicates']}")
    if stats['total_items'] is not None:
        print(f"Items in dashboard: {stats['total_items']}")
    print("="*60)


if __name__ == "__main__":
    main()
