"""
Precedent sync for korea-law.
Builds an existence-only index of court decisions so cited case numbers can
be checked. Case text is never stored.

Precedents are discovered by keyword search (labor, civil, criminal,
corporate and tax vocabulary by default).
"""
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from korea_law.core.config import (
    PRECEDENT_KEYWORDS,
    PRECEDENT_SEARCH_LIMIT,
    PROGRESS_BAR_ENABLED,
    SYNC_API_DELAY,
)
from korea_law.core.models import Precedent, SyncStatus, SyncType
from korea_law.core.store import CREATED, UPDATED, LawStore
from korea_law.crawler.law_api_client import LawApiClient
from korea_law.utils.text import normalize_case_id

logger = logging.getLogger(__name__)


@dataclass
class PrecedentSyncReport:
    """Aggregate counts of one precedent sync run."""
    status: SyncStatus = SyncStatus.RUNNING
    keywords_processed: int = 0
    added: int = 0
    updated: int = 0
    errors: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sync_type": SyncType.PRECEDENT.value,
            "status": self.status.value,
            "keywords_processed": self.keywords_processed,
            "added": self.added,
            "updated": self.updated,
            "errors": self.errors,
            "failures": [{"keyword": k, "error": e} for k, e in self.failures],
        }


class PrecedentSyncService:
    """
    Keyword-driven precedent indexer.

    Args:
        store: Target store
        api_client: Registry client
        keywords: Search keywords (defaults to PRECEDENT_KEYWORDS)
        search_limit: Results requested per keyword
        api_delay: Seconds between keyword searches
    """

    def __init__(
        self,
        store: LawStore,
        api_client: LawApiClient,
        keywords: Optional[Sequence[str]] = None,
        search_limit: int = PRECEDENT_SEARCH_LIMIT,
        api_delay: float = SYNC_API_DELAY,
        should_stop: Optional[Callable[[], bool]] = None,
        show_progress: bool = PROGRESS_BAR_ENABLED,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.api_client = api_client
        self.keywords = list(keywords) if keywords is not None else list(PRECEDENT_KEYWORDS)
        self.search_limit = search_limit
        self.api_delay = api_delay
        self.should_stop = should_stop or (lambda: False)
        self.show_progress = show_progress
        self.sleep = sleep

    def run(self) -> PrecedentSyncReport:
        """
        Search every keyword and upsert the precedents found.

        Returns:
            PrecedentSyncReport
        """
        report = PrecedentSyncReport()
        run = self.store.start_sync_run(SyncType.PRECEDENT)

        logger.info("=" * 60)
        logger.info("korea-law Precedent Sync")
        logger.info("=" * 60)
        logger.info(f"Keywords: {len(self.keywords)}")

        try:
            for index, keyword in enumerate(
                tqdm(self.keywords, desc="Syncing precedents", disable=not self.show_progress)
            ):
                if self.should_stop():
                    report.status = SyncStatus.INTERRUPTED
                    break

                self._sync_keyword(keyword, report)

                if self.api_delay > 0 and index < len(self.keywords) - 1:
                    self.sleep(self.api_delay)

            if report.status == SyncStatus.RUNNING:
                if report.errors == 0:
                    report.status = SyncStatus.SUCCESS
                elif report.keywords_processed > 0:
                    report.status = SyncStatus.PARTIAL
                else:
                    report.status = SyncStatus.FAILED

        except KeyboardInterrupt:
            logger.warning("Precedent sync interrupted by user")
            report.status = SyncStatus.INTERRUPTED

        finally:
            run.status = report.status
            run.completed_at = datetime.now()
            run.errors = report.errors
            self.store.finish_sync_run(run)

        logger.info("=" * 60)
        logger.info(f"Precedent sync finished: {report.status.value}")
        logger.info(f"Added: {report.added}, updated: {report.updated}, errors: {report.errors}")
        logger.info("=" * 60)
        return report

    def _sync_keyword(self, keyword: str, report: PrecedentSyncReport) -> None:
        try:
            results = self.api_client.search_precedents(keyword, display=self.search_limit)
        except Exception as e:
            logger.error(f"Precedent search failed for '{keyword}': {e}")
            report.errors += 1
            report.failures.append((keyword, str(e)))
            return

        report.keywords_processed += 1
        for item in results:
            case_id = (item.case_id or "").strip()
            if not case_id:
                continue
            try:
                _, outcome = self.store.upsert_precedent(
                    Precedent(
                        case_id=case_id,
                        court=item.court,
                        case_type=item.case_type,
                        decision_date=item.decision_date,
                        case_name=item.case_name,
                        exists_verified=True,
                    )
                )
            except Exception as e:
                logger.error(f"Failed to store precedent {case_id}: {e}")
                report.errors += 1
                report.failures.append((case_id, str(e)))
                continue

            if outcome == CREATED:
                report.added += 1
            elif outcome == UPDATED:
                report.updated += 1

        logger.info(f"  {keyword}: {len(results)} precedents")

    def verify_online(self, case_id: str) -> bool:
        """
        Check a case number directly against the registry.

        Returns:
            True if the registry lists a case with the same normalized number
        """
        wanted = normalize_case_id(case_id)
        if not wanted:
            return False
        results = self.api_client.search_precedents(case_id, display=10)
        return any(normalize_case_id(item.case_id) == wanted for item in results)


def main():
    """Main entry point for precedent sync."""
    import argparse

    from korea_law.core.db import create_db_engine
    from korea_law.core.logging import setup_logging

    parser = argparse.ArgumentParser(description="korea-law precedent sync")
    parser.add_argument("--keywords", nargs="+", help="Search keywords")
    parser.add_argument("--limit", type=int, default=PRECEDENT_SEARCH_LIMIT, help="Results per keyword")
    parser.add_argument("--delay", type=float, default=SYNC_API_DELAY, help="Seconds between searches")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")

    args = parser.parse_args()
    setup_logging("korea_law", level=args.log_level)

    store = LawStore(create_db_engine(args.database_url))
    with LawApiClient() as client:
        report = PrecedentSyncService(
            store,
            client,
            keywords=args.keywords,
            search_limit=args.limit,
            api_delay=args.delay,
        ).run()

    if report.status in (SyncStatus.SUCCESS, SyncStatus.PARTIAL):
        sys.exit(0)
    elif report.status == SyncStatus.INTERRUPTED:
        sys.exit(130)
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
