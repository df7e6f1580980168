"""
Statute sync for korea-law.
Fetches statute detail from law.go.kr, normalizes articles, detects changes
against the local store and records them as append-only diffs.

Modes:
- priority: a fixed list of statute names (config PRIORITY_LAWS)
- recent:   statutes whose enforcement date fell within the last N days
- catalog:  the full paginated catalog
- daily:    priority list, then recent amendments not already covered

Per statute: FETCH_DETAIL -> NORMALIZE -> DIFF -> PERSIST. A failing statute
is logged, counted and skipped; it never aborts the batch. Runs are
sequential and must not overlap on the same store.
"""
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from korea_law.consolidation.diff_engine import ArticleDiffEngine
from korea_law.core.config import (
    PRIORITY_LAWS,
    PROGRESS_BAR_ENABLED,
    SYNC_API_DELAY,
    SYNC_MAX_PAGES,
    SYNC_PAGE_SIZE,
    SYNC_PROGRESS_EVERY,
    SYNC_SCAN_DAYS,
)
from korea_law.core.exceptions import (
    DataIntegrityWarning,
    NotFoundError,
    PermanentUpstreamError,
)
from korea_law.core.models import (
    Article,
    ChangeType,
    DiffRecord,
    LegalTerm,
    Statute,
    SyncRun,
    SyncStatus,
    SyncType,
)
from korea_law.core.store import CREATED, UPDATED, LawStore
from korea_law.crawler.law_api_client import LawApiClient
from korea_law.crawler.payload import Addendum, StatuteDetail, StatuteListItem
from korea_law.parser.addenda_parser import AddendaParser
from korea_law.parser.article_normalizer import ArticleNormalizer, NormalizedArticle
from korea_law.parser.term_extractor import TermExtractor
from korea_law.utils.progress import ProgressTracker
from korea_law.utils.text import content_hash, normalize_law_name

logger = logging.getLogger(__name__)

SOURCE_URL_TEMPLATE = "https://www.law.go.kr/법령/{name}"
ADDENDA_MARKER = "부칙"


@dataclass
class StatuteSyncResult:
    """Outcome of syncing one statute."""
    law_mst_id: str
    law_name: str
    law_id: Optional[int] = None
    statute_outcome: Optional[str] = None
    articles_added: int = 0
    articles_updated: int = 0
    diffs_detected: int = 0
    scheduled_changes: int = 0
    terms_extracted: int = 0
    warnings: List[DataIntegrityWarning] = field(default_factory=list)


@dataclass
class SyncReport:
    """Aggregate counts of one sync run."""
    sync_type: SyncType
    status: SyncStatus = SyncStatus.RUNNING
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    total_statutes: int = 0
    statutes_processed: int = 0
    statutes_added: int = 0
    statutes_updated: int = 0
    articles_added: int = 0
    articles_updated: int = 0
    diffs_detected: int = 0
    scheduled_changes: int = 0
    terms_extracted: int = 0
    errors: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    warnings: List[DataIntegrityWarning] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        end = self.completed_at or datetime.now()
        return (end - self.started_at).total_seconds()

    def add(self, result: StatuteSyncResult) -> None:
        """Fold one statute's result into the totals."""
        self.statutes_processed += 1
        if result.statute_outcome == CREATED:
            self.statutes_added += 1
        elif result.statute_outcome == UPDATED:
            self.statutes_updated += 1
        self.articles_added += result.articles_added
        self.articles_updated += result.articles_updated
        self.diffs_detected += result.diffs_detected
        self.scheduled_changes += result.scheduled_changes
        self.terms_extracted += result.terms_extracted
        self.warnings.extend(result.warnings)

    def fail(self, label: str, error: Exception) -> None:
        """Record a per-statute failure."""
        self.errors += 1
        self.failures.append((label, str(error)))

    def running_counts(self) -> dict:
        """Article totals shown on periodic progress lines."""
        return {
            "added": self.articles_added,
            "updated": self.articles_updated,
            "diffs": self.diffs_detected,
        }

    def to_dict(self) -> dict:
        return {
            "sync_type": self.sync_type.value,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": round(self.duration_seconds, 1),
            "total_statutes": self.total_statutes,
            "statutes_processed": self.statutes_processed,
            "statutes_added": self.statutes_added,
            "statutes_updated": self.statutes_updated,
            "articles_added": self.articles_added,
            "articles_updated": self.articles_updated,
            "diffs_detected": self.diffs_detected,
            "scheduled_changes": self.scheduled_changes,
            "terms_extracted": self.terms_extracted,
            "errors": self.errors,
            "failures": [{"statute": label, "error": message} for label, message in self.failures],
            "warnings": [str(w) for w in self.warnings],
            "error_message": self.error_message,
        }


class StatuteSyncService:
    """
    Orchestrates statute syncs against one store.

    Args:
        store: Target store
        api_client: Registry client
        api_delay: Seconds to wait between statutes
        should_stop: Polled between statutes; returning True ends the run
        show_progress: Wrap the statute loop in a tqdm bar
        sleep: Sleep function (replaced in tests)
        clock: Returns "today" (replaced in tests)
    """

    def __init__(
        self,
        store: LawStore,
        api_client: LawApiClient,
        api_delay: float = SYNC_API_DELAY,
        scan_days: int = SYNC_SCAN_DAYS,
        page_size: int = SYNC_PAGE_SIZE,
        max_pages: int = SYNC_MAX_PAGES,
        priority_laws: Optional[Sequence[str]] = None,
        progress_every: int = SYNC_PROGRESS_EVERY,
        should_stop: Optional[Callable[[], bool]] = None,
        show_progress: bool = PROGRESS_BAR_ENABLED,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.api_client = api_client
        self.api_delay = api_delay
        self.scan_days = scan_days
        self.page_size = page_size
        self.max_pages = max_pages
        self.priority_laws = list(priority_laws) if priority_laws is not None else list(PRIORITY_LAWS)
        self.should_stop = should_stop or (lambda: False)
        self.show_progress = show_progress
        self.sleep = sleep
        self.clock = clock
        self.progress = ProgressTracker(every=progress_every)
        self.normalizer = ArticleNormalizer()
        self.diff_engine = ArticleDiffEngine()
        self.addenda_parser = AddendaParser()
        self.term_extractor = TermExtractor()

    # =========================================================================
    # Run modes
    # =========================================================================

    def run_priority(self, names: Optional[Sequence[str]] = None) -> SyncReport:
        """
        Sync a list of statutes by name.

        Args:
            names: Statute names (defaults to the configured priority list)

        Returns:
            SyncReport
        """
        names = list(names) if names is not None else self.priority_laws
        return self._run(SyncType.PRIORITY, lambda report: [(name, None) for name in names])

    def run_recent(self, days: Optional[int] = None) -> SyncReport:
        """
        Sync statutes whose enforcement date fell within the last N days.

        Args:
            days: Look-back window (defaults to SYNC_SCAN_DAYS)
        """
        days = days or self.scan_days

        def source(report: SyncReport):
            items = self.api_client.get_recently_amended(days, today=self.clock())
            logger.info(f"Found {len(items)} statutes amended in the last {days} days")
            return [(item.name, item) for item in items]

        return self._run(SyncType.RECENT, source)

    def run_catalog(self, max_pages: Optional[int] = None) -> SyncReport:
        """
        Sync the full statute catalog.

        Pages are fetched until the reported total is collected, a page comes
        back empty, or max_pages is reached.
        """
        max_pages = max_pages or self.max_pages

        def source(report: SyncReport):
            return [(item.name, item) for item in self._collect_catalog(max_pages, report)]

        return self._run(SyncType.CATALOG, source)

    def run_daily(self, days: Optional[int] = None) -> SyncReport:
        """
        Priority list followed by recent amendments.

        Recent statutes whose name is on the priority list are skipped.
        """
        days = days or self.scan_days

        def source(report: SyncReport):
            targets: List[Tuple[str, Optional[StatuteListItem]]] = [
                (name, None) for name in self.priority_laws
            ]
            covered = {normalize_law_name(name) for name in self.priority_laws}
            try:
                recent = self.api_client.get_recently_amended(days, today=self.clock())
            except Exception as e:
                logger.error(f"Recent amendment scan failed: {e}")
                report.fail("recent amendments", e)
                recent = []

            skipped = 0
            for item in recent:
                key = normalize_law_name(item.name)
                if key in covered:
                    skipped += 1
                    continue
                covered.add(key)
                targets.append((item.name, item))

            logger.info(
                f"Daily targets: {len(self.priority_laws)} priority + "
                f"{len(targets) - len(self.priority_laws)} recent ({skipped} already covered)"
            )
            return targets

        return self._run(SyncType.DAILY, source)

    # =========================================================================
    # Run loop
    # =========================================================================

    def _run(self, sync_type: SyncType, source) -> SyncReport:
        report = SyncReport(sync_type=sync_type)
        run = self.store.start_sync_run(sync_type)
        report.started_at = run.started_at

        logger.info("=" * 60)
        logger.info(f"korea-law Statute Sync ({sync_type.value})")
        logger.info("=" * 60)
        logger.info(f"Inter-statute delay: {self.api_delay}s")

        try:
            try:
                targets = source(report)
            except Exception as e:
                logger.error(f"Failed to fetch statute list: {e}", exc_info=True)
                report.fail("statute list", e)
                report.status = SyncStatus.FAILED
                report.error_message = str(e)
                return report

            report.total_statutes = len(targets)
            self.progress.start(len(targets))

            for index, (label, item) in enumerate(
                tqdm(targets, desc=f"Syncing {sync_type.value.lower()}", disable=not self.show_progress)
            ):
                if self.should_stop():
                    logger.warning(f"Stop requested; ending run after {index} statutes")
                    report.status = SyncStatus.INTERRUPTED
                    break

                success = self._sync_target(label, item, report)
                self.progress.update(success=success, counts=report.running_counts())

                if self.api_delay > 0 and index < len(targets) - 1:
                    self.sleep(self.api_delay)

            self.progress.finish()

            if report.status == SyncStatus.RUNNING:
                report.status = self._final_status(report)

        except KeyboardInterrupt:
            logger.warning("Sync interrupted by user")
            report.status = SyncStatus.INTERRUPTED

        finally:
            report.completed_at = datetime.now()
            self._record_run(run, report)
            self._log_summary(report)

        return report

    def _sync_target(self, label: str, item: Optional[StatuteListItem], report: SyncReport) -> bool:
        try:
            if item is None:
                item = self.find_statute(label)
            result = self.sync_statute(item.law_id)
            report.add(result)
            return True
        except Exception as e:
            logger.error(f"Failed to sync {label}: {e}")
            report.fail(label, e)
            return False

    @staticmethod
    def _final_status(report: SyncReport) -> SyncStatus:
        if report.errors == 0:
            return SyncStatus.SUCCESS
        if report.statutes_processed > 0:
            return SyncStatus.PARTIAL
        return SyncStatus.FAILED

    def _record_run(self, run: SyncRun, report: SyncReport) -> None:
        run.status = report.status
        run.completed_at = report.completed_at
        run.statutes_added = report.statutes_added
        run.statutes_updated = report.statutes_updated
        run.articles_added = report.articles_added
        run.articles_updated = report.articles_updated
        run.diffs_detected = report.diffs_detected
        run.errors = report.errors
        run.warnings = len(report.warnings)
        run.error_message = report.error_message
        try:
            self.store.finish_sync_run(run)
        except Exception as e:
            logger.error(f"Failed to record sync run {run.id}: {e}")

    def _log_summary(self, report: SyncReport) -> None:
        logger.info("=" * 60)
        logger.info(f"Sync finished: {report.status.value}")
        logger.info(f"Statutes: {report.statutes_processed}/{report.total_statutes} processed "
                    f"({report.statutes_added} added, {report.statutes_updated} updated)")
        logger.info(f"Articles: {report.articles_added} added, {report.articles_updated} updated")
        logger.info(f"Diffs detected: {report.diffs_detected} "
                    f"(scheduled changes: {report.scheduled_changes})")
        logger.info(f"Errors: {report.errors}, warnings: {len(report.warnings)}")
        logger.info(f"Duration: {report.duration_seconds:.1f}s")
        logger.info("=" * 60)

    # =========================================================================
    # List sourcing
    # =========================================================================

    def find_statute(self, name: str) -> StatuteListItem:
        """
        Resolve a statute name to a registry list item.

        An exact name match (ignoring spacing) wins over the first result.

        Raises:
            NotFoundError: If the registry has no match
        """
        items = self.api_client.search_statutes(name)
        if not items:
            raise NotFoundError(f"No statute found for '{name}'", kind="statute", identifier=name)

        wanted = normalize_law_name(name)
        for item in items:
            if normalize_law_name(item.name) == wanted:
                return item
        return items[0]

    def _collect_catalog(self, max_pages: int, report: SyncReport) -> List[StatuteListItem]:
        collected: Dict[str, StatuteListItem] = {}
        total = 0

        for page in range(1, max_pages + 1):
            if self.should_stop():
                break
            try:
                items, total = self.api_client.search_statutes_page(page, self.page_size)
            except Exception as e:
                logger.error(f"Catalog page {page} failed: {e}")
                report.fail(f"catalog page {page}", e)
                continue

            if not items:
                logger.info(f"Catalog page {page}: no more results")
                break

            for item in items:
                if item.law_id and item.law_id not in collected:
                    collected[item.law_id] = item

            logger.info(f"Catalog page {page}: {len(items)} items (collected {len(collected)}/{total})")
            if total and len(collected) >= total:
                break

            if self.api_delay > 0:
                self.sleep(self.api_delay)

        return list(collected.values())

    # =========================================================================
    # Per-statute pipeline
    # =========================================================================

    def sync_statute(self, law_mst_id: str) -> StatuteSyncResult:
        """
        Fetch, normalize, diff and persist one statute.

        Args:
            law_mst_id: Registry statute id (법령ID)

        Returns:
            StatuteSyncResult

        Raises:
            UpstreamError: If the detail cannot be fetched
            DatabaseError: If persisting fails
        """
        today = self.clock()
        detail = self.api_client.get_statute_detail(law_mst_id)

        master_id = detail.law_id or law_mst_id
        if not master_id:
            raise PermanentUpstreamError("Statute detail has no master id", details={"name": detail.name})

        result = StatuteSyncResult(law_mst_id=master_id, law_name=detail.name)
        if not detail.law_id:
            result.warnings.append(self._warn("Detail payload missing master id", detail.name))

        articles = self._normalize_articles(detail, result)

        statute = Statute(
            law_mst_id=master_id,
            law_name=detail.name,
            law_name_eng=detail.name_eng,
            law_type=detail.law_type,
            ministry=detail.ministry,
            promulgation_date=detail.promulgation_date,
            enforcement_date=detail.enforcement_date,
            source_url=SOURCE_URL_TEMPLATE.format(name=detail.name) if detail.name else None,
            checksum=self._statute_checksum(articles),
        )
        law_id, outcome = self.store.upsert_statute(statute, today=today)
        result.law_id = law_id
        result.statute_outcome = outcome

        stored = self.store.list_articles(law_id)
        statute_known = outcome != CREATED

        for article in articles:
            self._persist_article(law_id, detail, article, stored.get(article.article_no_normalized),
                                  statute_known, today, result)

        fresh = {article.article_no_normalized for article in articles}
        for article_no, previous in stored.items():
            if article_no not in fresh and previous.content.strip():
                self._persist_deletion(detail, previous, today, result)

        self._record_scheduled_changes(law_id, detail, today, result)
        self._extract_terms(law_id, detail, articles, result)

        logger.info(
            f"  {detail.name}: {outcome}, articles +{result.articles_added}/~{result.articles_updated}, "
            f"diffs {result.diffs_detected}"
        )
        return result

    def _normalize_articles(self, detail: StatuteDetail, result: StatuteSyncResult) -> List[NormalizedArticle]:
        articles: List[NormalizedArticle] = []
        seen = set()
        for article in self.normalizer.normalize_all(detail.articles):
            if article.article_no_normalized in seen:
                result.warnings.append(
                    self._warn("Duplicate article number in payload", detail.name, article.article_no)
                )
                continue
            seen.add(article.article_no_normalized)
            if not article.content.strip():
                result.warnings.append(self._warn("Article has no content", detail.name, article.article_no))
            articles.append(article)
        return articles

    @staticmethod
    def _statute_checksum(articles: Iterable[NormalizedArticle]) -> str:
        ordered = sorted(articles, key=lambda a: a.article_no_normalized)
        return content_hash("\n".join(f"{a.article_no_normalized}:{a.content_hash}" for a in ordered))

    def _persist_article(
        self,
        law_id: int,
        detail: StatuteDetail,
        article: NormalizedArticle,
        previous: Optional[Article],
        statute_known: bool,
        today: date,
        result: StatuteSyncResult,
    ) -> None:
        effective_from = article.effective_date or detail.enforcement_date
        diff = None

        if previous is None or not previous.content.strip():
            # First sight of a statute is a baseline, not a change
            if article.content.strip() and (statute_known or previous is not None):
                diff = self.diff_engine.compare(None, article.content)
        elif previous.content_hash != article.content_hash:
            diff = self.diff_engine.compare(previous.content, article.content)

        record = None
        if diff is not None:
            record = DiffRecord(
                law_id=law_id,
                change_type=diff.change_type,
                previous_content=diff.previous,
                current_content=diff.current,
                diff_summary=diff.summary,
                is_critical=diff.is_critical,
                warning_message=diff.warning_message(detail.name, article.article_no),
                effective_from=effective_from,
                detected_at=today,
            )

        _, outcome = self.store.save_article(
            Article(
                law_id=law_id,
                article_no=article.article_no,
                article_no_normalized=article.article_no_normalized,
                article_title=article.title,
                content=article.content,
                content_hash=article.content_hash,
                paragraph_count=article.paragraph_count,
                is_definition=article.is_definition,
                effective_from=effective_from,
            ),
            diff=record,
        )

        if outcome == CREATED:
            result.articles_added += 1
        elif outcome == UPDATED:
            result.articles_updated += 1
        if record is not None:
            result.diffs_detected += 1
            logger.debug(f"    {article.article_no}: {diff.change_type.value} - {diff.summary}")

    def _persist_deletion(
        self, detail: StatuteDetail, previous: Article, today: date, result: StatuteSyncResult
    ) -> None:
        diff = self.diff_engine.compare(previous.content, "")
        record = DiffRecord(
            law_id=previous.law_id,
            change_type=diff.change_type,
            previous_content=diff.previous,
            current_content="",
            diff_summary=diff.summary,
            is_critical=diff.is_critical,
            warning_message=diff.warning_message(detail.name, previous.article_no),
            effective_from=detail.enforcement_date,
            detected_at=today,
        )
        emptied = Article(
            law_id=previous.law_id,
            article_no=previous.article_no,
            article_no_normalized=previous.article_no_normalized,
            article_title=previous.article_title,
            content="",
            content_hash=content_hash(""),
            paragraph_count=previous.paragraph_count,
            is_definition=previous.is_definition,
            effective_from=previous.effective_from,
            effective_until=previous.effective_until,
        )
        self.store.save_article(emptied, diff=record)
        result.articles_updated += 1
        result.diffs_detected += 1
        logger.debug(f"    {previous.article_no}: removed")

    def _addenda_texts(self, detail: StatuteDetail) -> List[Addendum]:
        if detail.addenda:
            return detail.addenda
        # Older payloads deliver addenda as article records
        return [
            Addendum(content=raw.body, promulgation_date=detail.promulgation_date)
            for raw in detail.articles
            if raw.body and (ADDENDA_MARKER in raw.article_no or ADDENDA_MARKER in (raw.title or ""))
        ]

    def _record_scheduled_changes(
        self, law_id: int, detail: StatuteDetail, today: date, result: StatuteSyncResult
    ) -> None:
        emitted = set()
        for addendum in self._addenda_texts(detail):
            info = self.addenda_parser.parse(addendum.content, addendum.promulgation_date)
            if not info.is_future(today):
                continue
            effective = info.effective_date
            if effective in emitted or self.store.scheduled_diff_exists(law_id, effective):
                continue
            emitted.add(effective)

            self.store.insert_diff(
                DiffRecord(
                    law_id=law_id,
                    change_type=ChangeType.ADDED,
                    current_content=addendum.content,
                    diff_summary=f"scheduled to take effect on {effective.isoformat()}",
                    is_critical=True,
                    warning_message=f"{detail.name} takes effect on {effective.isoformat()}",
                    effective_from=effective,
                    detected_at=today,
                )
            )
            result.scheduled_changes += 1
            result.diffs_detected += 1
            logger.info(f"    Scheduled change: {detail.name} -> {effective}")

    def _extract_terms(
        self,
        law_id: int,
        detail: StatuteDetail,
        articles: List[NormalizedArticle],
        result: StatuteSyncResult,
    ) -> None:
        for article in articles:
            if not article.is_definition:
                continue
            article_ref = f"{detail.name} {article.article_no}"
            for term in self.term_extractor.extract(article.content, article_ref):
                self.store.upsert_term(
                    LegalTerm(
                        law_id=law_id,
                        term=term.term,
                        definition=term.definition,
                        article_ref=term.article_ref,
                        confidence=term.confidence,
                    )
                )
                result.terms_extracted += 1

    @staticmethod
    def _warn(message: str, statute: Optional[str], article_no: Optional[str] = None) -> DataIntegrityWarning:
        warning = DataIntegrityWarning(message, statute=statute, article_no=article_no)
        logger.warning(f"  Data integrity: {warning}")
        return warning


def run_sync(
    mode: str,
    store: LawStore,
    api_client: LawApiClient,
    names: Optional[Sequence[str]] = None,
    days: Optional[int] = None,
    max_pages: Optional[int] = None,
    **options,
) -> SyncReport:
    """
    Run one sync mode.

    Args:
        mode: "priority", "recent", "catalog" or "daily"
        store: Target store
        api_client: Registry client
        names: Statute names for priority mode
        days: Look-back window for recent/daily modes
        max_pages: Page ceiling for catalog mode
        **options: Extra StatuteSyncService arguments

    Returns:
        SyncReport
    """
    service = StatuteSyncService(store, api_client, **options)
    if mode == "priority":
        return service.run_priority(names)
    if mode == "recent":
        return service.run_recent(days)
    if mode == "catalog":
        return service.run_catalog(max_pages)
    if mode == "daily":
        return service.run_daily(days)
    raise ValueError(f"Unknown sync mode: {mode}")


def exit_code(report: SyncReport) -> int:
    """Process exit code for a finished run."""
    if report.status in (SyncStatus.SUCCESS, SyncStatus.PARTIAL):
        return 0
    if report.status == SyncStatus.INTERRUPTED:
        return 130  # Standard exit code for SIGINT
    return 1


def main():
    """Main entry point for statute sync."""
    import argparse

    from korea_law.core.db import create_db_engine
    from korea_law.core.logging import setup_logging

    parser = argparse.ArgumentParser(description="korea-law statute sync")
    parser.add_argument(
        "--mode",
        choices=["priority", "recent", "catalog", "daily"],
        default="daily",
        help="Which statutes to sync",
    )
    parser.add_argument("--laws", nargs="+", help="Statute names (priority mode)")
    parser.add_argument("--days", type=int, default=SYNC_SCAN_DAYS, help="Look-back window in days")
    parser.add_argument("--max-pages", type=int, default=SYNC_MAX_PAGES, help="Catalog page ceiling")
    parser.add_argument("--page-size", type=int, default=SYNC_PAGE_SIZE, help="Catalog page size")
    parser.add_argument("--delay", type=float, default=SYNC_API_DELAY, help="Seconds between statutes")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    args = parser.parse_args()
    setup_logging("korea_law", level=args.log_level)

    store = LawStore(create_db_engine(args.database_url))
    with LawApiClient() as client:
        report = run_sync(
            args.mode,
            store,
            client,
            names=args.laws,
            days=args.days,
            max_pages=args.max_pages,
            api_delay=args.delay,
            page_size=args.page_size,
            show_progress=not args.no_progress,
        )

    sys.exit(exit_code(report))


if __name__ == "__main__":
    main()
