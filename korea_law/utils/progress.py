"""
Progress tracking utilities for long sync runs.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Logs progress every ``every`` items, with running success/failure counts
    and any caller-supplied totals (added, updated, diffs).

    Example:
        >>> tracker = ProgressTracker(every=50)
        >>> tracker.start(total=200)
        >>> tracker.update(success=True, counts={"added": 1, "updated": 0, "diffs": 3})
        >>> tracker.finish()
    """

    def __init__(self, every: int = 50, enabled: bool = True, label: str = "statutes"):
        """
        Initialize progress tracker.

        Args:
            every: Log a progress line after this many items
            enabled: Whether progress tracking is enabled
            label: Noun used in log lines
        """
        self.every = max(1, every)
        self.enabled = enabled
        self.label = label
        self.start_time: Optional[datetime] = None
        self.current_item = 0
        self.total_items = 0
        self.succeeded = 0
        self.failed = 0
        self.counts: Dict[str, int] = {}

    def start(self, total: int):
        """
        Start tracking progress.

        Args:
            total: Total number of items to process (0 when unknown)
        """
        self.total_items = total
        self.current_item = 0
        self.succeeded = 0
        self.failed = 0
        self.counts = {}
        self.start_time = datetime.now()

        if self.enabled:
            logger.info(f"Starting processing of {total} {self.label}...")

    def update(self, success: bool = True, counts: Optional[Dict[str, int]] = None):
        """
        Record one processed item.

        Args:
            success: Whether the item was processed without error
            counts: Running totals to show on the next progress line
        """
        self.current_item += 1
        if success:
            self.succeeded += 1
        else:
            self.failed += 1
        if counts is not None:
            self.counts = dict(counts)

        if self.enabled and self.current_item % self.every == 0:
            self._log_progress()

    def _log_progress(self):
        elapsed = self._get_elapsed_seconds()
        if self.total_items > 0:
            percentage = (self.current_item / self.total_items) * 100
            position = f"{self.current_item}/{self.total_items} ({percentage:.1f}%)"
        else:
            position = str(self.current_item)
        totals = "".join(f", {name} {value}" for name, value in self.counts.items())
        logger.info(
            f"  Progress: {position} - ok {self.succeeded}, "
            f"failed {self.failed}{totals} - {elapsed:.1f}s elapsed"
        )

    def finish(self):
        """Finish tracking progress."""
        if not self.enabled:
            return

        elapsed = self._get_elapsed_seconds()
        logger.info(
            f"Completed {self.current_item}/{self.total_items} {self.label} "
            f"in {elapsed:.1f}s ({self.failed} failed)"
        )

    def _get_elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        if self.start_time:
            return (datetime.now() - self.start_time).total_seconds()
        return 0.0
