"""
Addenda (부칙) Parser for Korean Statutes.

Extracts the effective date from a statute's commencement clause.

Patterns, first match wins:
1. Absolute date:   "이 법은 2025년 7월 1일부터 시행한다", "2025-07-01"
2. Relative offset: "이 법은 공포 후 6개월이 경과한 날부터 시행한다",
                    "... 공포 후 1년이 경과한 날부터 ..."
3. Promulgation day: "이 법은 공포한 날부터 시행한다", "공포일부터 시행"
4. Delegation:       "대통령령으로 정하는 날" (no date, condition recorded)

Transitional provisions are flagged when the clause mentions 경과조치 or 종전의.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

DELEGATION_CONDITION = "effective date to be fixed by presidential decree"


@dataclass
class AddendaInfo:
    """Result of parsing one commencement clause."""
    effective_date: Optional[date] = None
    has_transitional_provision: bool = False
    conditions: List[str] = field(default_factory=list)
    raw_text: str = ""

    def is_future(self, today: Optional[date] = None) -> bool:
        """True when the resolved effective date is strictly after today."""
        if self.effective_date is None:
            return False
        return self.effective_date > (today or date.today())


class AddendaParser:
    """
    Parser for commencement clauses.

    Example:
        >>> parser = AddendaParser()
        >>> info = parser.parse("이 법은 공포 후 6개월이 경과한 날부터 시행한다.", date(2024, 1, 1))
        >>> info.effective_date
        datetime.date(2024, 7, 1)
    """

    ABSOLUTE_DATE_PATTERN = r'(\d{4})년\s*(\d{1,2})월\s*(\d{1,2})일부터\s*시행'
    ISO_DATE_PATTERN = r'(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)'
    MONTHS_PATTERN = r'공포\s*(?:한\s*날|후|일)?\s*(\d+)개월[이가]?\s*경과한\s*날'
    YEARS_PATTERN = r'공포\s*(?:한\s*날|후|일)?\s*(\d+)년[이가]?\s*경과한\s*날'
    PROMULGATION_DAY_PHRASES = ("공포한 날부터 시행", "공포일부터 시행")
    DELEGATION_PHRASE = "대통령령으로 정하는 날"
    TRANSITIONAL_MARKERS = ("경과조치", "종전의")

    def __init__(self):
        """Compile the date patterns."""
        self.absolute_regex = re.compile(self.ABSOLUTE_DATE_PATTERN)
        self.iso_regex = re.compile(self.ISO_DATE_PATTERN)
        self.months_regex = re.compile(self.MONTHS_PATTERN)
        self.years_regex = re.compile(self.YEARS_PATTERN)

    def parse(self, text: str, promulgation_date: Optional[date] = None) -> AddendaInfo:
        """
        Parse a commencement clause.

        Args:
            text: Raw addenda text
            promulgation_date: Promulgation date the relative offsets count from

        Returns:
            AddendaInfo; effective_date is None when no rule resolves a date
        """
        info = AddendaInfo(raw_text=text or "")
        if not text:
            return info

        info.has_transitional_provision = any(marker in text for marker in self.TRANSITIONAL_MARKERS)

        absolute = self._parse_absolute(text)
        if absolute is not None:
            info.effective_date = absolute
            return info

        offset = self._parse_offset(text)
        if offset is not None and promulgation_date is not None:
            info.effective_date = promulgation_date + offset
            return info

        if any(phrase in text for phrase in self.PROMULGATION_DAY_PHRASES):
            info.effective_date = promulgation_date
            return info

        if self.DELEGATION_PHRASE in text:
            info.conditions.append(DELEGATION_CONDITION)

        return info

    def _parse_absolute(self, text: str) -> Optional[date]:
        for regex in (self.absolute_regex, self.iso_regex):
            match = regex.search(text)
            if not match:
                continue
            try:
                return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            except ValueError:
                logger.warning(f"Invalid date in addenda: {match.group(0)}")
        return None

    def _parse_offset(self, text: str) -> Optional[relativedelta]:
        match = self.months_regex.search(text)
        if match:
            return relativedelta(months=int(match.group(1)))
        match = self.years_regex.search(text)
        if match:
            return relativedelta(years=int(match.group(1)))
        return None


_default_parser = None


def parse_addenda(text: str, promulgation_date: Optional[date] = None) -> AddendaInfo:
    """Parse a commencement clause using the default parser."""
    global _default_parser
    if _default_parser is None:
        _default_parser = AddendaParser()
    return _default_parser.parse(text, promulgation_date)
