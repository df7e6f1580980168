"""
Article Diff Engine for Korean Statutes.

Compares the previous and current canonical text of one article and
classifies the change:
- ADDED:    no previous text                      (critical)
- DELETED:  current text is blank                 (critical)
- MODIFIED: only whitespace differs               (not critical, "formatting only")
- MODIFIED: content differs; critical when money, deadline, penalty or
            termination language changed

Money and duration changes are named in the summary, e.g.
"amount changed: 10만원 → 20만원; duration changed: 30일 → 60일".
"""
import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional

from korea_law.core.models import ChangeType
from korea_law.utils.text import strip_whitespace

logger = logging.getLogger(__name__)

SUMMARY_ADDED = "newly created"
SUMMARY_DELETED = "removed"
SUMMARY_FORMATTING = "formatting only"
SUMMARY_PARTIAL = "partial content change"


@dataclass
class ArticleDiff:
    """Classification of one article change."""
    change_type: ChangeType
    previous: Optional[str]
    current: str
    summary: str
    is_critical: bool

    def warning_message(self, statute_name: str, article_no: str) -> Optional[str]:
        """Warning attached to critical changes, None otherwise."""
        if not self.is_critical:
            return None
        return f"critical change: {statute_name} {article_no} - {self.summary}"


class ArticleDiffEngine:
    """
    Engine for classifying article changes between two sync passes.

    Example:
        >>> engine = ArticleDiffEngine()
        >>> diff = engine.compare("30일 전에 예고", "60일 전에 예고")
        >>> diff.is_critical, diff.summary
        (True, 'duration changed: 30일 → 60일')
    """

    # Money, durations, penalties, termination
    RISK_PATTERNS = [
        r'\d+만원',
        r'\d+원',
        r'\d+일',
        r'\d+개월',
        r'\d+년',
        r'징역',
        r'벌금',
        r'과태료',
        r'해고',
        r'해지',
    ]

    # (summary label, pattern)
    SUMMARY_CATEGORIES = [
        ("amount", r'\d+(?:만)?원'),
        ("duration", r'\d+(?:일|개월|년)'),
    ]

    def __init__(self):
        """Compile risk and summary patterns."""
        self.risk_regexes = [re.compile(p) for p in self.RISK_PATTERNS]
        self.summary_regexes = [(label, re.compile(p)) for label, p in self.SUMMARY_CATEGORIES]

    def compare(self, previous: Optional[str], current: Optional[str]) -> ArticleDiff:
        """
        Classify the change between two canonical texts.

        Args:
            previous: Previously stored text, None when the article is new
            current: Freshly normalized text, blank when the article is gone

        Returns:
            ArticleDiff
        """
        current = current or ""

        if previous is None:
            return ArticleDiff(
                change_type=ChangeType.ADDED,
                previous=None,
                current=current,
                summary=SUMMARY_ADDED,
                is_critical=True,
            )

        if not current.strip():
            return ArticleDiff(
                change_type=ChangeType.DELETED,
                previous=previous,
                current="",
                summary=SUMMARY_DELETED,
                is_critical=True,
            )

        if strip_whitespace(previous) == strip_whitespace(current):
            return ArticleDiff(
                change_type=ChangeType.MODIFIED,
                previous=previous,
                current=current,
                summary=SUMMARY_FORMATTING,
                is_critical=False,
            )

        return ArticleDiff(
            change_type=ChangeType.MODIFIED,
            previous=previous,
            current=current,
            summary=self.summarize(previous, current),
            is_critical=self.is_critical_change(previous, current),
        )

    def is_critical_change(self, previous: str, current: str) -> bool:
        """
        True when the multiset of matches of any risk pattern differs.

        Reordering the same amounts or terms is not critical.

        Args:
            previous: Previous text
            current: Current text
        """
        for regex in self.risk_regexes:
            if Counter(regex.findall(previous)) != Counter(regex.findall(current)):
                return True
        return False

    def summarize(self, previous: str, current: str) -> str:
        """
        Summarize amount and duration changes.

        Returns:
            "amount changed: A → B; duration changed: C → D", or
            "partial content change" when neither category changed
        """
        summaries: List[str] = []
        for label, regex in self.summary_regexes:
            before = regex.findall(previous)
            after = regex.findall(current)
            if Counter(before) != Counter(after):
                summaries.append(f"{label} changed: {', '.join(before)} → {', '.join(after)}")

        if not summaries:
            return SUMMARY_PARTIAL
        return "; ".join(summaries)


_default_engine = None


def compare_articles(previous: Optional[str], current: Optional[str]) -> ArticleDiff:
    """Classify an article change using the default engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = ArticleDiffEngine()
    return _default_engine.compare(previous, current)
