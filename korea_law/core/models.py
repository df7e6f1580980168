"""
Record types shared by the store, the sync pipeline and verification.
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class StatuteStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    EXPIRED = "EXPIRED"


class ChangeType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class SyncType(str, Enum):
    PRIORITY = "PRIORITY"
    RECENT = "RECENT"
    CATALOG = "CATALOG"
    DAILY = "DAILY"
    PRECEDENT = "PRECEDENT"


class SyncStatus(str, Enum):
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"
    INTERRUPTED = "INTERRUPTED"


def derive_status(
    enforcement_date: Optional[date],
    retired: bool = False,
    today: Optional[date] = None,
) -> StatuteStatus:
    """
    Derive a statute's status from its enforcement date.

    EXPIRED only when explicitly retired; otherwise PENDING while the
    enforcement date lies in the future and ACTIVE from that day on.
    """
    if retired:
        return StatuteStatus.EXPIRED
    today = today or date.today()
    if enforcement_date is not None and enforcement_date > today:
        return StatuteStatus.PENDING
    return StatuteStatus.ACTIVE


@dataclass
class Statute:
    """A statute version as stored locally."""
    law_mst_id: str
    law_name: str
    promulgation_date: Optional[date]
    enforcement_date: Optional[date]
    law_type: Optional[str] = None
    law_name_eng: Optional[str] = None
    ministry: Optional[str] = None
    status: StatuteStatus = StatuteStatus.ACTIVE
    source_url: Optional[str] = None
    checksum: Optional[str] = None
    law_name_normalized: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Article:
    """One numbered article of a statute."""
    law_id: int
    article_no: str
    content: str
    article_no_normalized: Optional[str] = None
    article_title: Optional[str] = None
    content_hash: Optional[str] = None
    paragraph_count: int = 1
    is_definition: bool = False
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None
    id: Optional[int] = None

    def is_current(self, on: Optional[date] = None) -> bool:
        """Current means no end date, or an end date still in the future."""
        on = on or date.today()
        return self.effective_until is None or self.effective_until > on


@dataclass
class DiffRecord:
    """An append-only change log entry."""
    law_id: int
    change_type: ChangeType
    article_id: Optional[int] = None
    previous_content: Optional[str] = None
    current_content: Optional[str] = None
    diff_summary: Optional[str] = None
    is_critical: bool = False
    warning_message: Optional[str] = None
    effective_from: Optional[date] = None
    detected_at: Optional[date] = None
    id: Optional[int] = None
    # Joined for display
    law_name: Optional[str] = None
    article_no: Optional[str] = None


@dataclass
class Precedent:
    """Existence-only index entry for a court decision."""
    case_id: str
    case_id_normalized: Optional[str] = None
    court: Optional[str] = None
    case_type: Optional[str] = None
    decision_date: Optional[date] = None
    case_name: Optional[str] = None
    exists_verified: bool = True
    id: Optional[int] = None


@dataclass
class LegalTerm:
    """A defined term extracted from a definition article."""
    law_id: int
    term: str
    definition: str
    term_normalized: Optional[str] = None
    article_ref: Optional[str] = None
    confidence: float = 0.0
    id: Optional[int] = None


@dataclass
class SyncRun:
    """Bookkeeping row for one orchestrator run."""
    sync_type: SyncType
    started_at: datetime
    status: SyncStatus = SyncStatus.RUNNING
    completed_at: Optional[datetime] = None
    statutes_added: int = 0
    statutes_updated: int = 0
    articles_added: int = 0
    articles_updated: int = 0
    diffs_detected: int = 0
    errors: int = 0
    warnings: int = 0
    error_message: Optional[str] = None
    id: Optional[int] = None
