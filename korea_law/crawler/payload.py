"""
Registry payload parsing for the law.go.kr DRF JSON API.

The DRF API returns a single object where a list has exactly one element,
and wraps some scalar fields in ``{"content": ...}`` objects. Everything is
normalized here so downstream code only sees dataclasses with plain values.

Shapes handled:
- LawSearch:  {"LawSearch": {"totalCnt": "N", "law": [...] | {...}}}
- lawService: {"법령": {"기본정보": {...}, "조문": {"조문단위": [...] | {...}},
                        "부칙": {"부칙단위": [...] | {...}}}}
- PrecSearch: {"PrecSearch": {"totalCnt": "N", "prec": [...] | {...}}}
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from korea_law.core.exceptions import PermanentUpstreamError

logger = logging.getLogger(__name__)


def as_list(value: Any) -> List[Any]:
    """
    Normalize an array-or-single field to a list.

    Examples:
        >>> as_list(None)
        []
        >>> as_list({"a": 1})
        [{'a': 1}]
        >>> as_list([1, 2])
        [1, 2]
    """
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_value(value: Any) -> str:
    """
    Extract plain text from a scalar, a ``{"content": ...}`` wrapper or a list
    of lines.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        for key in ("content", "#text"):
            if key in value:
                return text_value(value[key])
        return ""
    if isinstance(value, list):
        parts = [text_value(v) for v in value]
        return "\n".join(p for p in parts if p)
    return str(value).strip()


def parse_api_date(value: Any) -> Optional[date]:
    """
    Parse a registry date ("20250701", 20250701, "2025-07-01", "2025.7.1").

    Returns:
        date or None when empty or unparseable
    """
    raw = text_value(value)
    if not raw:
        return None

    digits = re.sub(r'\D', '', raw)
    try:
        if len(digits) == 8 and raw.replace(" ", "").isdigit():
            return datetime.strptime(digits, "%Y%m%d").date()
        match = re.match(r'^(\d{4})[-./]\s*(\d{1,2})[-./]\s*(\d{1,2})', raw)
        if match:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        pass

    logger.warning(f"Could not parse registry date: {raw}")
    return None


def format_api_date(value: date) -> str:
    """Format a date the way the registry expects it (YYYYMMDD)."""
    return value.strftime("%Y%m%d")


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(text_value(value) or default)
    except ValueError:
        return default


@dataclass
class StatuteListItem:
    """One row of a statute search result."""
    law_id: str
    name: str
    mst_seq: Optional[str] = None
    law_type: Optional[str] = None
    ministry: Optional[str] = None
    promulgation_date: Optional[date] = None
    enforcement_date: Optional[date] = None
    detail_link: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "StatuteListItem":
        return cls(
            law_id=text_value(data.get("법령ID")),
            name=text_value(data.get("법령명한글")),
            mst_seq=text_value(data.get("법령일련번호")) or None,
            law_type=text_value(data.get("법령구분명")) or None,
            ministry=text_value(data.get("소관부처명")) or None,
            promulgation_date=parse_api_date(data.get("공포일자")),
            enforcement_date=parse_api_date(data.get("시행일자")),
            detail_link=text_value(data.get("법령상세링크")) or None,
        )


@dataclass
class RawSubItem:
    """목 (sub-item)."""
    number: str = ""
    content: str = ""


@dataclass
class RawItem:
    """호 (item)."""
    number: str = ""
    content: str = ""
    subitems: List[RawSubItem] = field(default_factory=list)


@dataclass
class RawParagraph:
    """항 (paragraph)."""
    number: str = ""
    content: str = ""
    items: List[RawItem] = field(default_factory=list)


@dataclass
class RawArticle:
    """
    One 조문단위 record as delivered by the registry.

    ``kind`` is the 조문여부 flag: "조문" for real articles, "전문" for
    chapter and section headings.
    """
    article_no: str
    body: str = ""
    kind: str = ""
    title: Optional[str] = None
    branch_no: Optional[str] = None
    effective_date: Optional[date] = None
    paragraphs: List[RawParagraph] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "RawArticle":
        paragraphs = []
        for hang in as_list(data.get("항")):
            if not isinstance(hang, dict):
                continue
            items = []
            for ho in as_list(hang.get("호")):
                if not isinstance(ho, dict):
                    continue
                subitems = [
                    RawSubItem(
                        number=text_value(mok.get("목번호")),
                        content=text_value(mok.get("목내용")),
                    )
                    for mok in as_list(ho.get("목"))
                    if isinstance(mok, dict)
                ]
                items.append(
                    RawItem(
                        number=text_value(ho.get("호번호")),
                        content=text_value(ho.get("호내용")),
                        subitems=subitems,
                    )
                )
            paragraphs.append(
                RawParagraph(
                    number=text_value(hang.get("항번호")),
                    content=text_value(hang.get("항내용")),
                    items=items,
                )
            )

        return cls(
            article_no=text_value(data.get("조문번호")),
            body=text_value(data.get("조문내용")),
            kind=text_value(data.get("조문여부")),
            title=text_value(data.get("조문제목")) or None,
            branch_no=text_value(data.get("조문가지번호")) or None,
            effective_date=parse_api_date(data.get("조문시행일자")),
            paragraphs=paragraphs,
        )


@dataclass
class Addendum:
    """One 부칙단위: commencement clause text of an enactment or amendment."""
    content: str
    promulgation_date: Optional[date] = None


@dataclass
class StatuteDetail:
    """Full statute payload: basic information, articles and addenda."""
    law_id: str
    name: str
    name_eng: Optional[str] = None
    law_type: Optional[str] = None
    ministry: Optional[str] = None
    promulgation_date: Optional[date] = None
    enforcement_date: Optional[date] = None
    articles: List[RawArticle] = field(default_factory=list)
    addenda: List[Addendum] = field(default_factory=list)

    @classmethod
    def from_response(cls, payload: dict) -> "StatuteDetail":
        """
        Build a StatuteDetail from a lawService.do JSON response.

        Raises:
            PermanentUpstreamError: If the payload has no statute object
        """
        law = payload.get("법령") if isinstance(payload, dict) else None
        if not isinstance(law, dict):
            raise PermanentUpstreamError(
                "Unexpected statute detail payload",
                details={"keys": sorted(payload)[:5] if isinstance(payload, dict) else []},
            )

        info = law.get("기본정보") or {}
        promulgation_date = parse_api_date(info.get("공포일자"))
        articles = [
            RawArticle.from_dict(unit)
            for unit in as_list((law.get("조문") or {}).get("조문단위"))
            if isinstance(unit, dict)
        ]
        addenda = []
        for unit in as_list((law.get("부칙") or {}).get("부칙단위")):
            if not isinstance(unit, dict):
                continue
            content = text_value(unit.get("부칙내용"))
            if content:
                addenda.append(
                    Addendum(
                        content=content,
                        promulgation_date=parse_api_date(unit.get("부칙공포일자")) or promulgation_date,
                    )
                )

        return cls(
            law_id=text_value(info.get("법령ID")),
            name=text_value(info.get("법령명_한글")),
            name_eng=text_value(info.get("법령명_영문")) or None,
            law_type=text_value(info.get("법종구분") or info.get("법령구분명")) or None,
            ministry=text_value(info.get("소관부처") or info.get("소관부처명")) or None,
            promulgation_date=promulgation_date,
            enforcement_date=parse_api_date(info.get("시행일자")),
            articles=articles,
            addenda=addenda,
        )


@dataclass
class PrecedentItem:
    """One row of a precedent search result."""
    case_id: str
    serial: Optional[str] = None
    case_name: Optional[str] = None
    court: Optional[str] = None
    case_type: Optional[str] = None
    decision_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PrecedentItem":
        return cls(
            case_id=text_value(data.get("사건번호")),
            serial=text_value(data.get("판례일련번호")) or None,
            case_name=text_value(data.get("사건명")) or None,
            court=text_value(data.get("법원명")) or None,
            case_type=text_value(data.get("사건종류명")) or None,
            decision_date=parse_api_date(data.get("선고일자")),
        )


def parse_statute_search(payload: dict) -> Tuple[List[StatuteListItem], int]:
    """
    Parse a LawSearch response.

    Returns:
        Tuple of (items, total count reported by the registry)
    """
    search = payload.get("LawSearch") if isinstance(payload, dict) else None
    if not isinstance(search, dict):
        raise PermanentUpstreamError("Unexpected statute search payload")

    items = [
        StatuteListItem.from_dict(row)
        for row in as_list(search.get("law"))
        if isinstance(row, dict)
    ]
    return items, _to_int(search.get("totalCnt"), default=len(items))


def parse_precedent_search(payload: dict) -> Tuple[List[PrecedentItem], int]:
    """
    Parse a PrecSearch response.

    Returns:
        Tuple of (items, total count reported by the registry)
    """
    search = payload.get("PrecSearch") if isinstance(payload, dict) else None
    if not isinstance(search, dict):
        raise PermanentUpstreamError("Unexpected precedent search payload")

    items = [
        PrecedentItem.from_dict(row)
        for row in as_list(search.get("prec"))
        if isinstance(row, dict)
    ]
    return items, _to_int(search.get("totalCnt"), default=len(items))
