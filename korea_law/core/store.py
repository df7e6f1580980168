"""
Law Store - persistence for statutes, articles, diffs, precedents and terms.

The store is an explicit handle over a SQLAlchemy engine. Every component
that reads or writes receives one; there is no module-level connection.

Writes are upserts keyed by natural keys:
- laws: law_mst_id
- articles: (law_id, article_no_normalized)
- precedents: case_id_normalized
- legal_terms: (law_id, term_normalized)

diff_logs is append-only. Rows are only rewritten when a mutable field
actually changed, so re-syncing unchanged data leaves them untouched.
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from korea_law.core.db import get_db_connection, get_db_transaction
from korea_law.core.exceptions import DatabaseError
from korea_law.core.models import (
    Article,
    ChangeType,
    DiffRecord,
    LegalTerm,
    Precedent,
    Statute,
    StatuteStatus,
    SyncRun,
    SyncStatus,
    SyncType,
    derive_status,
)
from korea_law.core.schema import (
    articles,
    diff_logs,
    laws,
    legal_terms,
    precedents,
    sync_metadata,
)
from korea_law.utils.text import content_hash, normalize_case_id, normalize_law_name

logger = logging.getLogger(__name__)

# Upsert outcomes
CREATED = "created"
UPDATED = "updated"
UNCHANGED = "unchanged"

_STATUTE_FIELDS = (
    "law_name",
    "law_name_normalized",
    "law_name_eng",
    "law_type",
    "ministry",
    "promulgation_date",
    "enforcement_date",
    "status",
    "source_url",
    "checksum",
)

_ARTICLE_FIELDS = (
    "article_no",
    "article_title",
    "content",
    "content_hash",
    "paragraph_count",
    "is_definition",
    "effective_from",
    "effective_until",
)


def _statute_from_row(row) -> Statute:
    m = row._mapping
    return Statute(
        id=m["id"],
        law_mst_id=m["law_mst_id"],
        law_name=m["law_name"],
        law_name_normalized=m["law_name_normalized"],
        law_name_eng=m["law_name_eng"],
        law_type=m["law_type"],
        ministry=m["ministry"],
        promulgation_date=m["promulgation_date"],
        enforcement_date=m["enforcement_date"],
        status=StatuteStatus(m["status"]),
        source_url=m["source_url"],
        checksum=m["checksum"],
    )


def _article_from_row(row) -> Article:
    m = row._mapping
    return Article(
        id=m["id"],
        law_id=m["law_id"],
        article_no=m["article_no"],
        article_no_normalized=m["article_no_normalized"],
        article_title=m["article_title"],
        content=m["content"] or "",
        content_hash=m["content_hash"],
        paragraph_count=m["paragraph_count"] or 0,
        is_definition=bool(m["is_definition"]),
        effective_from=m["effective_from"],
        effective_until=m["effective_until"],
    )


def _diff_from_row(row) -> DiffRecord:
    m = row._mapping
    return DiffRecord(
        id=m["id"],
        law_id=m["law_id"],
        article_id=m["article_id"],
        change_type=ChangeType(m["change_type"]),
        previous_content=m["previous_content"],
        current_content=m["current_content"],
        diff_summary=m["diff_summary"],
        is_critical=bool(m["is_critical"]),
        warning_message=m["warning_message"],
        effective_from=m["effective_from"],
        detected_at=m["detected_at"],
        law_name=m["law_name"],
        article_no=m["article_no"],
    )


def _precedent_from_row(row) -> Precedent:
    m = row._mapping
    return Precedent(
        id=m["id"],
        case_id=m["case_id"],
        case_id_normalized=m["case_id_normalized"],
        court=m["court"],
        case_type=m["case_type"],
        decision_date=m["decision_date"],
        case_name=m["case_name"],
        exists_verified=bool(m["exists_verified"]),
    )


def _term_from_row(row) -> LegalTerm:
    m = row._mapping
    return LegalTerm(
        id=m["id"],
        law_id=m["law_id"],
        term=m["term"],
        term_normalized=m["term_normalized"],
        definition=m["definition"],
        article_ref=m["article_ref"],
        confidence=m["confidence"] or 0.0,
    )


def _changed_fields(existing: dict, values: dict, fields: Sequence[str]) -> Dict[str, object]:
    return {name: values[name] for name in fields if existing[name] != values[name]}


class LawStore:
    """
    Store handle over one SQLAlchemy engine.

    Args:
        engine: Engine created by korea_law.core.db.create_db_engine
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    # =========================================================================
    # Statutes
    # =========================================================================

    def upsert_statute(self, statute: Statute, today: Optional[date] = None) -> Tuple[int, str]:
        """
        Insert or update a statute keyed by its master id.

        The status is derived from the enforcement date; a row already marked
        EXPIRED stays EXPIRED. The row is only rewritten when a field changed.

        Args:
            statute: Statute to store (id is ignored)
            today: Evaluation date for the derived status

        Returns:
            Tuple of (law_id, outcome) where outcome is created/updated/unchanged

        Raises:
            DatabaseError: If the write fails
        """
        now = datetime.now()
        values = {
            "law_name": statute.law_name,
            "law_name_normalized": normalize_law_name(statute.law_name),
            "law_name_eng": statute.law_name_eng,
            "law_type": statute.law_type,
            "ministry": statute.ministry,
            "promulgation_date": statute.promulgation_date,
            "enforcement_date": statute.enforcement_date,
            "source_url": statute.source_url,
            "checksum": statute.checksum,
        }

        try:
            with get_db_transaction(self.engine) as conn:
                existing = conn.execute(
                    select(laws).where(laws.c.law_mst_id == statute.law_mst_id)
                ).first()

                if existing is None:
                    values["status"] = derive_status(statute.enforcement_date, today=today).value
                    result = conn.execute(
                        laws.insert().values(
                            law_mst_id=statute.law_mst_id,
                            created_at=now,
                            updated_at=now,
                            **values,
                        )
                    )
                    return result.inserted_primary_key[0], CREATED

                current = existing._mapping
                retired = current["status"] == StatuteStatus.EXPIRED.value
                values["status"] = derive_status(
                    statute.enforcement_date, retired=retired, today=today
                ).value

                changes = _changed_fields(current, values, _STATUTE_FIELDS)
                if not changes:
                    return current["id"], UNCHANGED

                conn.execute(
                    laws.update()
                    .where(laws.c.id == current["id"])
                    .values(updated_at=now, **changes)
                )
                logger.debug(f"Statute {statute.law_mst_id} changed: {sorted(changes)}")
                return current["id"], UPDATED

        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to upsert statute {statute.law_name}",
                details={"law_mst_id": statute.law_mst_id},
                original_error=e,
            ) from e

    def retire_statute(self, law_id: int, on: Optional[date] = None) -> None:
        """
        Mark a statute EXPIRED and close its current articles.

        Args:
            law_id: Statute id
            on: Retirement date (articles stop being current from this day)
        """
        on = on or date.today()
        now = datetime.now()
        with get_db_transaction(self.engine) as conn:
            conn.execute(
                laws.update()
                .where(laws.c.id == law_id)
                .values(status=StatuteStatus.EXPIRED.value, updated_at=now)
            )
            conn.execute(
                articles.update()
                .where(and_(articles.c.law_id == law_id, articles.c.effective_until.is_(None)))
                .values(effective_until=on, updated_at=now)
            )
        logger.info(f"Retired statute id={law_id} as of {on}")

    def get_statute(self, law_id: int) -> Optional[Statute]:
        """Get a statute by id."""
        with get_db_connection(self.engine) as conn:
            row = conn.execute(select(laws).where(laws.c.id == law_id)).first()
        return _statute_from_row(row) if row else None

    def get_statute_by_mst(self, law_mst_id: str) -> Optional[Statute]:
        """Get a statute by its registry master id."""
        with get_db_connection(self.engine) as conn:
            row = conn.execute(select(laws).where(laws.c.law_mst_id == law_mst_id)).first()
        return _statute_from_row(row) if row else None

    def find_statutes_by_name(self, name: str) -> List[Statute]:
        """
        All stored versions of a statute, newest enforcement date first.

        Args:
            name: Statute name in any spacing ("근로기준법", "근로 기준법")
        """
        query = (
            select(laws)
            .where(laws.c.law_name_normalized == normalize_law_name(name))
            .order_by(laws.c.enforcement_date.desc(), laws.c.id.desc())
        )
        with get_db_connection(self.engine) as conn:
            rows = conn.execute(query).fetchall()
        return [_statute_from_row(row) for row in rows]

    def find_statute_as_of(
        self, name: str, as_of: date, today: Optional[date] = None
    ) -> Optional[Statute]:
        """
        The ACTIVE version of a statute with the latest enforcement date on or
        before ``as_of``.

        A stored PENDING row whose enforcement date has since passed counts as
        ACTIVE; EXPIRED rows never match.

        Args:
            name: Statute name
            as_of: Reference date
            today: Evaluation date for the ACTIVE check (defaults to today)

        Returns:
            Statute or None
        """
        today = today or date.today()
        cutoff = min(as_of, today)
        query = (
            select(laws)
            .where(
                and_(
                    laws.c.law_name_normalized == normalize_law_name(name),
                    laws.c.status != StatuteStatus.EXPIRED.value,
                    laws.c.enforcement_date.is_not(None),
                    laws.c.enforcement_date <= cutoff,
                )
            )
            .order_by(laws.c.enforcement_date.desc(), laws.c.id.desc())
            .limit(1)
        )
        with get_db_connection(self.engine) as conn:
            row = conn.execute(query).first()
        return _statute_from_row(row) if row else None

    def count_statutes(self) -> int:
        with get_db_connection(self.engine) as conn:
            return conn.execute(select(func.count()).select_from(laws)).scalar() or 0

    # =========================================================================
    # Articles
    # =========================================================================

    def list_articles(self, law_id: int) -> Dict[str, Article]:
        """
        Stored articles of a statute keyed by normalized article number.
        """
        query = select(articles).where(articles.c.law_id == law_id)
        with get_db_connection(self.engine) as conn:
            rows = conn.execute(query).fetchall()
        return {row._mapping["article_no_normalized"]: _article_from_row(row) for row in rows}

    def find_article(
        self, law_id: int, article_no_normalized: str, on: Optional[date] = None
    ) -> Optional[Article]:
        """
        The article of a statute that is current on a date.

        Args:
            law_id: Statute id
            article_no_normalized: "23" or "23-2"
            on: Evaluation date (defaults to today)
        """
        on = on or date.today()
        query = select(articles).where(
            and_(
                articles.c.law_id == law_id,
                articles.c.article_no_normalized == article_no_normalized,
                or_(articles.c.effective_until.is_(None), articles.c.effective_until > on),
            )
        )
        with get_db_connection(self.engine) as conn:
            row = conn.execute(query).first()
        return _article_from_row(row) if row else None

    def save_article(
        self, article: Article, diff: Optional[DiffRecord] = None
    ) -> Tuple[int, str]:
        """
        Upsert an article and append its diff record in one transaction.

        Args:
            article: Article keyed by (law_id, article_no_normalized)
            diff: Change record to append; its article_id is filled in

        Returns:
            Tuple of (article_id, outcome)

        Raises:
            DatabaseError: If the write fails
        """
        now = datetime.now()
        values = {
            "article_no": article.article_no,
            "article_title": article.article_title,
            "content": article.content,
            "content_hash": article.content_hash or content_hash(article.content),
            "paragraph_count": article.paragraph_count,
            "is_definition": article.is_definition,
            "effective_from": article.effective_from,
            "effective_until": article.effective_until,
        }

        try:
            with get_db_transaction(self.engine) as conn:
                existing = conn.execute(
                    select(articles).where(
                        and_(
                            articles.c.law_id == article.law_id,
                            articles.c.article_no_normalized == article.article_no_normalized,
                        )
                    )
                ).first()

                if existing is None:
                    result = conn.execute(
                        articles.insert().values(
                            law_id=article.law_id,
                            article_no_normalized=article.article_no_normalized,
                            created_at=now,
                            updated_at=now,
                            **values,
                        )
                    )
                    article_id, outcome = result.inserted_primary_key[0], CREATED
                else:
                    current = existing._mapping
                    article_id = current["id"]
                    changes = _changed_fields(current, values, _ARTICLE_FIELDS)
                    if changes:
                        conn.execute(
                            articles.update()
                            .where(articles.c.id == article_id)
                            .values(updated_at=now, **changes)
                        )
                        outcome = UPDATED
                    else:
                        outcome = UNCHANGED

                if diff is not None:
                    diff.article_id = article_id
                    diff.id = self._insert_diff(conn, diff)

                return article_id, outcome

        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to save article {article.article_no}",
                details={"law_id": article.law_id},
                original_error=e,
            ) from e

    # =========================================================================
    # Diff log (append-only)
    # =========================================================================

    def _insert_diff(self, conn, diff: DiffRecord) -> int:
        detected_at = diff.detected_at or date.today()
        diff.detected_at = detected_at
        result = conn.execute(
            diff_logs.insert().values(
                law_id=diff.law_id,
                article_id=diff.article_id,
                change_type=ChangeType(diff.change_type).value,
                previous_content=diff.previous_content,
                current_content=diff.current_content,
                diff_summary=diff.diff_summary,
                is_critical=diff.is_critical,
                warning_message=diff.warning_message,
                effective_from=diff.effective_from,
                detected_at=detected_at,
                created_at=datetime.now(),
            )
        )
        return result.inserted_primary_key[0]

    def insert_diff(self, diff: DiffRecord) -> int:
        """
        Append a diff record.

        Returns:
            New diff id
        """
        try:
            with get_db_transaction(self.engine) as conn:
                diff.id = self._insert_diff(conn, diff)
                return diff.id
        except SQLAlchemyError as e:
            raise DatabaseError(
                "Failed to insert diff record",
                details={"law_id": diff.law_id},
                original_error=e,
            ) from e

    def scheduled_diff_exists(self, law_id: int, effective_from: date) -> bool:
        """True if a statute-level diff for this effective date is already logged."""
        query = (
            select(func.count())
            .select_from(diff_logs)
            .where(
                and_(
                    diff_logs.c.law_id == law_id,
                    diff_logs.c.article_id.is_(None),
                    diff_logs.c.effective_from == effective_from,
                )
            )
        )
        with get_db_connection(self.engine) as conn:
            return (conn.execute(query).scalar() or 0) > 0

    def _diff_query(self):
        return select(
            diff_logs,
            laws.c.law_name,
            articles.c.article_no,
        ).select_from(
            diff_logs.join(laws, diff_logs.c.law_id == laws.c.id).outerjoin(
                articles, diff_logs.c.article_id == articles.c.id
            )
        )

    def get_diffs_detected_on(self, day: date) -> List[DiffRecord]:
        """
        Diffs detected on a date, critical first.
        """
        query = (
            self._diff_query()
            .where(diff_logs.c.detected_at == day)
            .order_by(diff_logs.c.is_critical.desc(), diff_logs.c.id)
        )
        with get_db_connection(self.engine) as conn:
            rows = conn.execute(query).fetchall()
        return [_diff_from_row(row) for row in rows]

    def get_diffs_in_window(
        self, law_ids: Sequence[int], start: date, end: date
    ) -> List[DiffRecord]:
        """
        Diffs of the given statutes whose effective date falls in [start, end],
        earliest first.
        """
        return self._diffs_effective(
            law_ids,
            diff_logs.c.effective_from >= start,
            diff_logs.c.effective_from <= end,
        )

    def get_diffs_effective_after(self, law_ids: Sequence[int], day: date) -> List[DiffRecord]:
        """Diffs of the given statutes taking effect strictly after ``day``, earliest first."""
        return self._diffs_effective(law_ids, diff_logs.c.effective_from > day)

    def _diffs_effective(self, law_ids: Sequence[int], *conditions) -> List[DiffRecord]:
        if not law_ids:
            return []
        query = (
            self._diff_query()
            .where(
                and_(
                    diff_logs.c.law_id.in_(list(law_ids)),
                    diff_logs.c.effective_from.is_not(None),
                    *conditions,
                )
            )
            .order_by(diff_logs.c.effective_from, diff_logs.c.id)
        )
        with get_db_connection(self.engine) as conn:
            rows = conn.execute(query).fetchall()
        return [_diff_from_row(row) for row in rows]

    def get_diffs_for_statute(self, law_id: int) -> List[DiffRecord]:
        """All diffs of a statute in insertion order."""
        query = self._diff_query().where(diff_logs.c.law_id == law_id).order_by(diff_logs.c.id)
        with get_db_connection(self.engine) as conn:
            rows = conn.execute(query).fetchall()
        return [_diff_from_row(row) for row in rows]

    def count_diffs(self) -> int:
        with get_db_connection(self.engine) as conn:
            return conn.execute(select(func.count()).select_from(diff_logs)).scalar() or 0

    # =========================================================================
    # Precedents
    # =========================================================================

    def upsert_precedent(self, precedent: Precedent) -> Tuple[int, str]:
        """
        Insert or refresh a precedent keyed by normalized case id.

        Returns:
            Tuple of (precedent_id, outcome)
        """
        now = datetime.now()
        normalized = normalize_case_id(precedent.case_id)
        values = {
            "case_id": precedent.case_id,
            "court": precedent.court,
            "case_type": precedent.case_type,
            "decision_date": precedent.decision_date,
            "case_name": precedent.case_name,
            "exists_verified": precedent.exists_verified,
        }
        try:
            with get_db_transaction(self.engine) as conn:
                existing = conn.execute(
                    select(precedents).where(precedents.c.case_id_normalized == normalized)
                ).first()
                if existing is None:
                    result = conn.execute(
                        precedents.insert().values(
                            case_id_normalized=normalized,
                            created_at=now,
                            updated_at=now,
                            **values,
                        )
                    )
                    return result.inserted_primary_key[0], CREATED

                current = existing._mapping
                changes = _changed_fields(current, values, tuple(values))
                if not changes:
                    return current["id"], UNCHANGED
                conn.execute(
                    precedents.update()
                    .where(precedents.c.id == current["id"])
                    .values(updated_at=now, **changes)
                )
                return current["id"], UPDATED
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to upsert precedent {precedent.case_id}",
                original_error=e,
            ) from e

    def find_precedent(self, case_id: str) -> Optional[Precedent]:
        """Look up a precedent by case id in any spacing."""
        query = select(precedents).where(
            precedents.c.case_id_normalized == normalize_case_id(case_id)
        )
        with get_db_connection(self.engine) as conn:
            row = conn.execute(query).first()
        return _precedent_from_row(row) if row else None

    # =========================================================================
    # Legal terms
    # =========================================================================

    def upsert_term(self, term: LegalTerm) -> Tuple[int, str]:
        """
        Insert or refresh a defined term keyed by (law_id, normalized term).

        Returns:
            Tuple of (term_id, outcome)

        Raises:
            DatabaseError: If the write fails
        """
        normalized = normalize_law_name(term.term)
        values = {
            "term": term.term,
            "definition": term.definition,
            "article_ref": term.article_ref,
            "confidence": term.confidence,
        }
        try:
            with get_db_transaction(self.engine) as conn:
                existing = conn.execute(
                    select(legal_terms).where(
                        and_(
                            legal_terms.c.law_id == term.law_id,
                            legal_terms.c.term_normalized == normalized,
                        )
                    )
                ).first()
                if existing is None:
                    result = conn.execute(
                        legal_terms.insert().values(
                            law_id=term.law_id,
                            term_normalized=normalized,
                            created_at=datetime.now(),
                            **values,
                        )
                    )
                    return result.inserted_primary_key[0], CREATED

                current = existing._mapping
                changes = _changed_fields(current, values, tuple(values))
                if not changes:
                    return current["id"], UNCHANGED
                conn.execute(
                    legal_terms.update().where(legal_terms.c.id == current["id"]).values(**changes)
                )
                return current["id"], UPDATED
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to upsert term {term.term}",
                original_error=e,
            ) from e

    def find_terms(self, law_id: int, term: Optional[str] = None) -> List[LegalTerm]:
        """
        Defined terms of a statute, optionally narrowed to one term.
        """
        conditions = [legal_terms.c.law_id == law_id]
        if term:
            conditions.append(legal_terms.c.term_normalized == normalize_law_name(term))
        query = (
            select(legal_terms)
            .where(and_(*conditions))
            .order_by(legal_terms.c.confidence.desc(), legal_terms.c.id)
        )
        with get_db_connection(self.engine) as conn:
            rows = conn.execute(query).fetchall()
        return [_term_from_row(row) for row in rows]

    # =========================================================================
    # Sync bookkeeping
    # =========================================================================

    def start_sync_run(self, sync_type: SyncType) -> SyncRun:
        """Record the start of a sync run."""
        run = SyncRun(sync_type=sync_type, started_at=datetime.now())
        with get_db_transaction(self.engine) as conn:
            result = conn.execute(
                sync_metadata.insert().values(
                    sync_type=SyncType(sync_type).value,
                    started_at=run.started_at,
                    status=SyncStatus.RUNNING.value,
                )
            )
            run.id = result.inserted_primary_key[0]
        return run

    def finish_sync_run(self, run: SyncRun) -> None:
        """Write the final counters and status of a sync run."""
        run.completed_at = run.completed_at or datetime.now()
        with get_db_transaction(self.engine) as conn:
            conn.execute(
                sync_metadata.update()
                .where(sync_metadata.c.id == run.id)
                .values(
                    completed_at=run.completed_at,
                    status=SyncStatus(run.status).value,
                    statutes_added=run.statutes_added,
                    statutes_updated=run.statutes_updated,
                    articles_added=run.articles_added,
                    articles_updated=run.articles_updated,
                    diffs_detected=run.diffs_detected,
                    errors=run.errors,
                    warnings=run.warnings,
                    error_message=run.error_message,
                )
            )

    def last_sync_run(self, sync_type: Optional[SyncType] = None) -> Optional[SyncRun]:
        """The most recently started sync run, optionally of one type."""
        query = select(sync_metadata).order_by(sync_metadata.c.id.desc()).limit(1)
        if sync_type is not None:
            query = query.where(sync_metadata.c.sync_type == SyncType(sync_type).value)
        with get_db_connection(self.engine) as conn:
            row = conn.execute(query).first()
        if row is None:
            return None
        m = row._mapping
        return SyncRun(
            id=m["id"],
            sync_type=SyncType(m["sync_type"]),
            started_at=m["started_at"],
            completed_at=m["completed_at"],
            status=SyncStatus(m["status"]),
            statutes_added=m["statutes_added"] or 0,
            statutes_updated=m["statutes_updated"] or 0,
            articles_added=m["articles_added"] or 0,
            articles_updated=m["articles_updated"] or 0,
            diffs_detected=m["diffs_detected"] or 0,
            errors=m["errors"] or 0,
            warnings=m["warnings"] or 0,
            error_message=m["error_message"],
        )
