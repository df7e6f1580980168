"""
Verification Service for korea-law.

Answers time-aware questions about cited statutes against the local store:
- Which version of a statute was in force on a date
- What an article currently says, and how close a claimed text is to it
- Which of two statutes prevails (lex superior, then lex posterior)
- Which recorded changes take effect inside a contract window

Every operation returns a JSON-able dict carrying a ``status`` field.
Unknown statutes or articles and malformed input are reported through that
field, never raised.
"""
import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

from korea_law.core.article_number import ArticleNumberParser
from korea_law.core.exceptions import UpstreamError, ValidationError
from korea_law.core.models import Article, DiffRecord, Statute, StatuteStatus
from korea_law.core.store import LawStore
from korea_law.verification.hierarchy import hierarchy_level

logger = logging.getLogger(__name__)

# Result statuses
FOUND = "FOUND"
NOT_FOUND = "NOT_FOUND"
ARTICLE_NOT_FOUND = "ARTICLE_NOT_FOUND"
INVALID_INPUT = "INVALID_INPUT"
RESOLVED = "RESOLVED"
UNDETERMINED = "UNDETERMINED"
CHANGES_DETECTED = "CHANGES_DETECTED"
NO_CHANGES_IN_PERIOD = "NO_CHANGES_IN_PERIOD"
NO_CHANGES = "NO_CHANGES"
EXISTS = "EXISTS"

# Match classifications
MATCH = "MATCH"
PARTIAL_MATCH = "PARTIAL_MATCH"
MISMATCH = "MISMATCH"
MATCH_THRESHOLD = 0.8
PARTIAL_MATCH_THRESHOLD = 0.5

FUTURE_CHANGE_DETECTED = "FUTURE_CHANGE_DETECTED"

LEX_SUPERIOR = "LEX_SUPERIOR"
LEX_POSTERIOR = "LEX_POSTERIOR"
LEX_SPECIALIS_NOTE = (
    "Same rank and enforcement date. Whether one statute is a special law "
    "over the other (lex specialis) requires manual review."
)

_WHITESPACE_RE = re.compile(r'\s+')
_DOTTED_DATE_RE = re.compile(r'^(\d{4})\.\s*(\d{1,2})\.\s*(\d{1,2})\.?$')

DateInput = Union[date, str, None]


def parse_input_date(value: DateInput, field_name: str = "date") -> Optional[date]:
    """
    Parse a caller-supplied date.

    Accepts a date, "2025-06-01", "20250601" or "2025.6.1". None and blank
    strings yield None.

    Raises:
        ValidationError: If the value is not a recognizable date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    try:
        if re.fullmatch(r'\d{8}', text):
            return datetime.strptime(text, "%Y%m%d").date()
        match = _DOTTED_DATE_RE.match(text)
        if match:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name}: '{value}'",
            field_name=field_name,
            field_value=value,
        )


def check_text(value: Any, field_name: str, required: bool = True) -> Optional[str]:
    """
    Validate a caller-supplied text argument.

    Optional arguments may be None or blank; required ones may not.

    Raises:
        ValidationError: If the value is not a string, or blank when required
    """
    if value is not None and not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {type(value).__name__}",
            field_name=field_name,
            field_value=value,
        )
    if required and not (value or "").strip():
        raise ValidationError(f"{field_name} is required", field_name=field_name)
    return value


def text_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Jaccard similarity over the character sets of two texts.

    Whitespace is removed and case folded first. Identical texts score 1.0;
    an empty text scores 0.0 against anything else.

    Examples:
        >>> text_similarity("30일 전에", "30일 전에")
        1.0
        >>> text_similarity("abc", "")
        0.0
    """
    left = _WHITESPACE_RE.sub('', a or '').casefold()
    right = _WHITESPACE_RE.sub('', b or '').casefold()
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0

    chars_left = set(left)
    chars_right = set(right)
    return len(chars_left & chars_right) / len(chars_left | chars_right)


def classify_similarity(score: float) -> str:
    """MATCH above 0.8, PARTIAL_MATCH above 0.5, MISMATCH otherwise."""
    if score > MATCH_THRESHOLD:
        return MATCH
    if score > PARTIAL_MATCH_THRESHOLD:
        return PARTIAL_MATCH
    return MISMATCH


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def statute_to_dict(statute: Statute) -> dict:
    level = hierarchy_level(statute.law_type, statute.law_name)
    return {
        "id": statute.id,
        "law_mst_id": statute.law_mst_id,
        "law_name": statute.law_name,
        "law_type": statute.law_type,
        "ministry": statute.ministry,
        "promulgation_date": _iso(statute.promulgation_date),
        "enforcement_date": _iso(statute.enforcement_date),
        "status": StatuteStatus(statute.status).value,
        "hierarchy_level": level.rank,
        "hierarchy_name": level.description,
        "source_url": statute.source_url,
    }


def article_to_dict(article: Article) -> dict:
    return {
        "id": article.id,
        "article_no": article.article_no,
        "article_no_normalized": article.article_no_normalized,
        "article_title": article.article_title,
        "content": article.content,
        "paragraph_count": article.paragraph_count,
        "is_definition": article.is_definition,
        "effective_from": _iso(article.effective_from),
        "effective_until": _iso(article.effective_until),
    }


def diff_to_dict(diff: DiffRecord) -> dict:
    return {
        "id": diff.id,
        "law_name": diff.law_name,
        "article_no": diff.article_no,
        "change_type": diff.change_type.value,
        "diff_summary": diff.diff_summary,
        "is_critical": diff.is_critical,
        "warning_message": diff.warning_message,
        "previous_content": diff.previous_content,
        "current_content": diff.current_content,
        "effective_from": _iso(diff.effective_from),
        "detected_at": _iso(diff.detected_at),
    }


def _invalid(error: ValidationError) -> dict:
    return {
        "status": INVALID_INPUT,
        "field": error.field_name,
        "value": None if error.field_value is None else str(error.field_value),
        "message": error.message,
    }


class VerificationService:
    """
    Time-aware citation checks over a LawStore.

    Args:
        store: Store populated by the sync pipeline
        clock: Returns "today"; injectable for tests
        precedent_lookup: Optional live registry check for case numbers
            missing from the local index (see PrecedentSyncService.verify_online)

    Example:
        >>> service = VerificationService(store)
        >>> service.audit("근로기준법", "제23조", "2025-06-01")["status"]
        'FOUND'
    """

    def __init__(
        self,
        store: LawStore,
        clock: Callable[[], date] = date.today,
        precedent_lookup: Optional[Callable[[str], bool]] = None,
    ):
        self.store = store
        self.clock = clock
        self.precedent_lookup = precedent_lookup
        self.article_parser = ArticleNumberParser()

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve_statute(self, name: str, as_of: DateInput = None) -> dict:
        """
        Resolve the version of a statute in force on a date.

        Args:
            name: Statute name in any spacing
            as_of: Reference date (defaults to today)

        Returns:
            {"status": FOUND, "statute": {...}, "as_of": ...} or a NOT_FOUND /
            INVALID_INPUT result
        """
        try:
            check_text(name, "law_name")
            as_of_date = parse_input_date(as_of, "as_of") or self.clock()
        except ValidationError as e:
            return _invalid(e)

        statute = self.store.find_statute_as_of(name, as_of_date, today=self.clock())
        if statute is None:
            logger.debug(f"No version of '{name}' in force on {as_of_date}")
            return {
                "status": NOT_FOUND,
                "law_name": name,
                "as_of": as_of_date.isoformat(),
                "message": f"No version of {name} in force on {as_of_date.isoformat()}",
            }

        return {
            "status": FOUND,
            "as_of": as_of_date.isoformat(),
            "statute": statute_to_dict(statute),
        }

    def resolve_article(self, statute_id: int, article_no: str) -> dict:
        """
        Resolve the current text of an article.

        Args:
            statute_id: Local statute id
            article_no: "제23조", "제23조의2", "23", "23-2", ...

        Returns:
            {"status": FOUND, "article": {...}} or an ARTICLE_NOT_FOUND /
            INVALID_INPUT result
        """
        try:
            check_text(article_no, "article_no")
            number = self.article_parser.parse(article_no)
        except ValidationError as e:
            return _invalid(e)

        article = self.store.find_article(statute_id, number.normalized, on=self.clock())
        if article is None:
            return {
                "status": ARTICLE_NOT_FOUND,
                "article_no": number.citation,
                "message": f"{number.citation} not found",
            }
        if not article.content.strip():
            return {
                "status": ARTICLE_NOT_FOUND,
                "article_no": number.citation,
                "message": f"{number.citation} has been deleted",
            }

        return {"status": FOUND, "article": article_to_dict(article)}

    # =========================================================================
    # Audit
    # =========================================================================

    def audit(
        self,
        statute_name: str,
        article_no: str,
        as_of: DateInput = None,
        claimed_text: Optional[str] = None,
    ) -> dict:
        """
        Verify a citation of one article.

        Resolves the statute version in force on ``as_of`` and the article's
        current text. When ``claimed_text`` is given it is scored against the
        stored text. Recorded changes taking effect after ``as_of`` are
        reported under ``future_changes``.

        Returns:
            Result dict with status FOUND, NOT_FOUND, ARTICLE_NOT_FOUND or
            INVALID_INPUT
        """
        try:
            check_text(claimed_text, "claimed_text", required=False)
        except ValidationError as e:
            return _invalid(e)

        statute_result = self.resolve_statute(statute_name, as_of)
        if statute_result["status"] != FOUND:
            return statute_result

        statute = statute_result["statute"]
        as_of_date = date.fromisoformat(statute_result["as_of"])

        article_result = self.resolve_article(statute["id"], article_no)
        if article_result["status"] != FOUND:
            article_result["statute"] = statute
            return article_result

        article = article_result["article"]
        warnings: List[str] = []
        flags: List[str] = []
        result = {
            "status": FOUND,
            "as_of": as_of_date.isoformat(),
            "statute": statute,
            "article": article,
        }

        if claimed_text is not None:
            score = text_similarity(claimed_text, article["content"])
            match_status = classify_similarity(score)
            result["similarity"] = round(score, 4)
            result["match_status"] = match_status
            if match_status != MATCH:
                warnings.append(
                    f"Claimed text differs from {statute['law_name']} {article['article_no']} "
                    f"(similarity {score:.0%}); check for an outdated or misquoted citation"
                )

        future = self._future_changes(statute["law_name"], article["id"], as_of_date)
        if future:
            flags.append(FUTURE_CHANGE_DETECTED)
            for diff in future:
                warnings.append(
                    f"{FUTURE_CHANGE_DETECTED}: {diff.diff_summary} "
                    f"(effective {diff.effective_from.isoformat()})"
                )
        result["future_changes"] = [diff_to_dict(diff) for diff in future]
        result["flags"] = flags
        result["warnings"] = warnings
        return result

    def _future_changes(self, law_name: str, article_id: int, as_of: date) -> List[DiffRecord]:
        """Diffs of this article or of the statute as a whole effective after as_of."""
        law_ids = [s.id for s in self.store.find_statutes_by_name(law_name)]
        diffs = self.store.get_diffs_effective_after(law_ids, as_of)
        return [d for d in diffs if d.article_id is None or d.article_id == article_id]

    # =========================================================================
    # Hierarchy
    # =========================================================================

    def _current_version(self, name: str) -> Optional[Statute]:
        today = self.clock()
        statute = self.store.find_statute_as_of(name, today, today=today)
        if statute is not None:
            return statute
        versions = [
            s for s in self.store.find_statutes_by_name(name)
            if s.status != StatuteStatus.EXPIRED
        ]
        return versions[0] if versions else None

    def compare_hierarchy(self, statute_a: str, statute_b: str) -> dict:
        """
        Decide which of two statutes prevails.

        Lower hierarchy rank wins (lex superior); at equal rank the later
        enforcement date wins (lex posterior); otherwise UNDETERMINED.

        Returns:
            {"status": RESOLVED | UNDETERMINED | NOT_FOUND, ...}
        """
        try:
            check_text(statute_a, "law_name_1", required=False)
            check_text(statute_b, "law_name_2", required=False)
        except ValidationError as e:
            return _invalid(e)

        found: Dict[str, Statute] = {}
        missing = []
        for name in (statute_a, statute_b):
            statute = self._current_version(name) if name and name.strip() else None
            if statute is None:
                missing.append(name)
            else:
                found[name] = statute

        if missing:
            return {
                "status": NOT_FOUND,
                "missing": missing,
                "message": f"Statute not found: {', '.join(str(m) for m in missing)}",
            }

        first, second = found[statute_a], found[statute_b]
        level_a = hierarchy_level(first.law_type, first.law_name)
        level_b = hierarchy_level(second.law_type, second.law_name)
        result = {
            "law_1": statute_to_dict(first),
            "law_2": statute_to_dict(second),
        }

        if level_a.rank != level_b.rank:
            winner, loser = (first, second) if level_a.rank < level_b.rank else (second, first)
            result.update({
                "status": RESOLVED,
                "priority_law": winner.law_name,
                "principle": LEX_SUPERIOR,
                "explanation": (
                    f"{winner.law_name} ({hierarchy_level(winner.law_type, winner.law_name).description}) "
                    f"outranks {loser.law_name} ({hierarchy_level(loser.law_type, loser.law_name).description})"
                ),
            })
            return result

        date_a, date_b = first.enforcement_date, second.enforcement_date
        if date_a and date_b and date_a != date_b:
            winner = first if date_a > date_b else second
            result.update({
                "status": RESOLVED,
                "priority_law": winner.law_name,
                "principle": LEX_POSTERIOR,
                "explanation": (
                    f"Same rank ({level_a.description}); {winner.law_name} took effect later "
                    f"({winner.enforcement_date.isoformat()})"
                ),
            })
            return result

        result.update({
            "status": UNDETERMINED,
            "priority_law": None,
            "principle": None,
            "explanation": LEX_SPECIALIS_NOTE,
        })
        return result

    # =========================================================================
    # Timeline
    # =========================================================================

    def forecast_contract_timeline(
        self, statute_name: str, start_date: DateInput, end_date: DateInput
    ) -> dict:
        """
        Changes to a statute taking effect inside [start_date, end_date].

        Returns:
            {"status": CHANGES_DETECTED | NO_CHANGES_IN_PERIOD, "changes": [...]}
            with changes in ascending effective-date order, or NOT_FOUND /
            INVALID_INPUT
        """
        try:
            check_text(statute_name, "law_name", required=False)
            start = parse_input_date(start_date, "start_date")
            end = parse_input_date(end_date, "end_date")
            if start is None or end is None:
                raise ValidationError(
                    "Both start_date and end_date are required",
                    field_name="start_date" if start is None else "end_date",
                )
            if start > end:
                raise ValidationError(
                    f"start_date {start.isoformat()} is after end_date {end.isoformat()}",
                    field_name="start_date",
                    field_value=start.isoformat(),
                )
        except ValidationError as e:
            return _invalid(e)

        versions = self.store.find_statutes_by_name(statute_name or "")
        if not versions:
            return {
                "status": NOT_FOUND,
                "law_name": statute_name,
                "message": f"Statute not found: {statute_name}",
            }

        diffs = self.store.get_diffs_in_window([s.id for s in versions], start, end)
        changes = [diff_to_dict(diff) for diff in diffs]
        critical = sum(1 for diff in diffs if diff.is_critical)

        return {
            "status": CHANGES_DETECTED if diffs else NO_CHANGES_IN_PERIOD,
            "law_name": versions[0].law_name,
            "period": {"start": start.isoformat(), "end": end.isoformat()},
            "total_changes": len(changes),
            "critical_changes": critical,
            "changes": changes,
        }

    # =========================================================================
    # Enforcement, daily diff, precedents, definitions
    # =========================================================================

    def check_enforcement_date(self, statute_name: str) -> dict:
        """
        Current version of a statute and any versions not yet in force.
        """
        try:
            check_text(statute_name, "law_name", required=False)
        except ValidationError as e:
            return _invalid(e)

        versions = self.store.find_statutes_by_name(statute_name or "")
        if not versions:
            return {
                "status": NOT_FOUND,
                "law_name": statute_name,
                "message": f"Statute not found: {statute_name}",
            }

        today = self.clock()
        current = self.store.find_statute_as_of(statute_name, today, today=today)
        pending = sorted(
            (
                s for s in versions
                if s.status != StatuteStatus.EXPIRED
                and s.enforcement_date is not None
                and s.enforcement_date > today
            ),
            key=lambda s: s.enforcement_date,
        )
        scheduled = [
            diff for diff in self.store.get_diffs_effective_after([s.id for s in versions], today)
            if diff.article_id is None
        ]

        return {
            "status": FOUND,
            "law_name": versions[0].law_name,
            "today": today.isoformat(),
            "current": statute_to_dict(current) if current else None,
            "pending": [statute_to_dict(s) for s in pending],
            "scheduled_changes": [diff_to_dict(d) for d in scheduled],
        }

    def get_daily_diff(self, day: DateInput = None, category: Optional[str] = None) -> dict:
        """
        Changes detected on a date, critical first.

        Args:
            day: Detection date (defaults to today)
            category: Optional substring matched against statute name or summary
        """
        try:
            check_text(category, "category", required=False)
            target = parse_input_date(day, "date") or self.clock()
        except ValidationError as e:
            return _invalid(e)

        diffs = self.store.get_diffs_detected_on(target)
        if category:
            needle = category.strip()
            diffs = [
                d for d in diffs
                if needle in (d.law_name or "") or needle in (d.diff_summary or "")
            ]

        return {
            "status": CHANGES_DETECTED if diffs else NO_CHANGES,
            "date": target.isoformat(),
            "category": category,
            "total_changes": len(diffs),
            "critical_changes": sum(1 for d in diffs if d.is_critical),
            "changes": [diff_to_dict(d) for d in diffs],
        }

    def verify_precedent(self, case_id: str) -> dict:
        """
        Existence check of a case number.

        The local precedent index is checked first. A miss falls back to
        ``precedent_lookup`` when one is configured; a failed registry call
        leaves the result NOT_FOUND with ``online_check`` set to "failed".
        """
        try:
            check_text(case_id, "case_id")
        except ValidationError as e:
            return _invalid(e)

        precedent = self.store.find_precedent(case_id)
        if precedent is not None:
            return {
                "status": EXISTS,
                "case_id": precedent.case_id,
                "exists": True,
                "source": "index",
                "court": precedent.court,
                "case_type": precedent.case_type,
                "case_name": precedent.case_name,
                "decision_date": _iso(precedent.decision_date),
            }

        result = {
            "status": NOT_FOUND,
            "case_id": case_id,
            "exists": False,
            "message": (
                f"{case_id} is not in the local precedent index; "
                "the citation may be fabricated or not yet indexed"
            ),
        }
        if self.precedent_lookup is None:
            return result

        try:
            listed = self.precedent_lookup(case_id)
        except UpstreamError as e:
            logger.warning(f"Registry check for {case_id} failed: {e}")
            result["online_check"] = "failed"
            return result

        if not listed:
            result["online_check"] = "not_listed"
            result["message"] = f"{case_id} is neither indexed locally nor listed by the registry"
            return result

        return {
            "status": EXISTS,
            "case_id": case_id,
            "exists": True,
            "source": "registry",
            "message": f"{case_id} is listed by the registry but not yet indexed locally",
        }

    def check_legal_definition(self, statute_name: str, term: Optional[str] = None) -> dict:
        """
        Defined terms of a statute as extracted from its definition articles.

        Extraction is best-effort; each term carries a confidence score.
        """
        try:
            check_text(statute_name, "law_name", required=False)
            check_text(term, "term", required=False)
        except ValidationError as e:
            return _invalid(e)

        statute = self._current_version(statute_name or "")
        if statute is None:
            return {
                "status": NOT_FOUND,
                "law_name": statute_name,
                "message": f"Statute not found: {statute_name}",
            }

        terms = self.store.find_terms(statute.id, term)
        if not terms:
            return {
                "status": NOT_FOUND,
                "law_name": statute.law_name,
                "term": term,
                "message": "No extracted definition",
            }

        return {
            "status": FOUND,
            "law_name": statute.law_name,
            "terms": [
                {
                    "term": t.term,
                    "definition": t.definition,
                    "article_ref": t.article_ref,
                    "confidence": t.confidence,
                }
                for t in terms
            ],
        }
