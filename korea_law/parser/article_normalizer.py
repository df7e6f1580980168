"""
Article Normalizer for Korean Statutes.

Turns a raw article record (body, then 항 paragraphs, 호 items and 목
sub-items) into one canonical string. The same structural input always
produces the same string, so the content hash is stable across syncs.

Canonical layout, one part per line, blank parts skipped:

    제23조(해고 등의 제한)
    ① 사용자는 근로자에게 정당한 이유 없이 해고 ...
      1. 항목 내용
        가. 세목 내용

Records that are not articles are rejected:
- headings flagged by the registry (조문여부 == "전문")
- bodies that are chapter/section/part headings ("제2장 근로계약")
- article numbers without a numeric prefix
"""
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from korea_law.crawler.payload import RawArticle
from korea_law.utils.text import content_hash

logger = logging.getLogger(__name__)

ITEM_INDENT = "  "
SUBITEM_INDENT = "    "


@dataclass
class NormalizedArticle:
    """Canonical form of one article, ready for diffing and storage."""
    article_no: str
    article_no_normalized: str
    content: str
    content_hash: str
    title: Optional[str] = None
    paragraph_count: int = 1
    is_definition: bool = False
    effective_date: Optional[date] = None


class ArticleNormalizer:
    """
    Normalizer for raw registry article records.

    Example:
        >>> normalizer = ArticleNormalizer()
        >>> article = normalizer.normalize(raw_article)
        >>> if article is not None:
        ...     print(article.article_no, article.content_hash)
    """

    HEADING_PATTERNS = [
        r'^\s*제\d+[장절관편]\s',  # 제2장 근로계약
        r'^\s*제\d+[장절관편]$',  # 제2장
    ]
    SHORT_HEADING_PATTERN = r'^제\d+[장절관편]'
    SHORT_HEADING_MAX_LEN = 10
    ARTICLE_NO_PATTERN = r'^\d+'
    NON_ARTICLE_KIND = "전문"
    DEFINITION_MARKER = "정의"

    def __init__(self):
        """Compile heading and article number patterns."""
        self.heading_regexes = [re.compile(p) for p in self.HEADING_PATTERNS]
        self.short_heading_regex = re.compile(self.SHORT_HEADING_PATTERN)
        self.article_no_regex = re.compile(self.ARTICLE_NO_PATTERN)

    def is_heading(self, text: str) -> bool:
        """
        Check whether text is a chapter/section/part heading.

        Examples:
            >>> ArticleNormalizer().is_heading("제2장 근로계약")
            True
            >>> ArticleNormalizer().is_heading("제23조(해고 등의 제한)")
            False
        """
        trimmed = (text or "").strip()
        if any(regex.match(trimmed) for regex in self.heading_regexes):
            return True
        return len(trimmed) < self.SHORT_HEADING_MAX_LEN and bool(self.short_heading_regex.match(trimmed))

    def is_valid_article_no(self, article_no: str) -> bool:
        """An article number must start with digits ("23", "23의2")."""
        return bool(self.article_no_regex.match((article_no or "").strip()))

    def is_article(self, raw: RawArticle) -> bool:
        """Check whether a raw record is a real article worth storing."""
        if raw.kind == self.NON_ARTICLE_KIND:
            return False
        if not self.is_valid_article_no(raw.article_no):
            return False
        if self.is_heading(raw.body):
            return False
        return True

    def build_content(self, raw: RawArticle) -> str:
        """
        Build the canonical text of an article in document order.

        Args:
            raw: Raw article record

        Returns:
            Canonical text, parts joined with newlines
        """
        parts: List[str] = []

        body = (raw.body or "").strip()
        if body:
            parts.append(body)

        for paragraph in raw.paragraphs:
            line = self._numbered(paragraph.number, paragraph.content)
            if line:
                parts.append(line)
            for item in paragraph.items:
                line = self._numbered(item.number, item.content)
                if line:
                    parts.append(ITEM_INDENT + line)
                for subitem in item.subitems:
                    line = self._numbered(subitem.number, subitem.content)
                    if line:
                        parts.append(SUBITEM_INDENT + line)

        return "\n".join(parts)

    @staticmethod
    def _numbered(number: str, content: str) -> str:
        content = (content or "").strip()
        if not content:
            return ""
        number = (number or "").strip()
        # The registry often repeats the marker inside the content itself
        if not number or content.startswith(number):
            return content
        return f"{number} {content}"

    def normalize(self, raw: RawArticle) -> Optional[NormalizedArticle]:
        """
        Normalize a raw article record.

        Args:
            raw: Raw article record from the registry

        Returns:
            NormalizedArticle, or None if the record is not an article
        """
        if not self.is_article(raw):
            logger.debug(f"Skipping non-article record: {raw.article_no!r} {raw.body[:20]!r}")
            return None

        base = self.article_no_regex.match(raw.article_no.strip()).group(0)
        branch = (raw.branch_no or "").strip()
        if not branch:
            # "23의2" delivered in a single field
            match = re.match(r'^\d+\s*(?:의|-)\s*(\d+)', raw.article_no.strip())
            branch = match.group(1) if match else ""
        if branch and branch != "0":
            article_no = f"제{int(base)}조의{int(branch)}"
            normalized = f"{int(base)}-{int(branch)}"
        else:
            article_no = f"제{int(base)}조"
            normalized = str(int(base))

        content = self.build_content(raw)
        title = (raw.title or "").strip() or None

        return NormalizedArticle(
            article_no=article_no,
            article_no_normalized=normalized,
            content=content,
            content_hash=content_hash(content),
            title=title,
            paragraph_count=len(raw.paragraphs) or 1,
            is_definition=bool(title and self.DEFINITION_MARKER in title),
            effective_date=raw.effective_date,
        )

    def normalize_all(self, raws: List[RawArticle]) -> List[NormalizedArticle]:
        """Normalize a list of raw records, dropping non-articles."""
        result = []
        for raw in raws:
            article = self.normalize(raw)
            if article is not None:
                result.append(article)
        return result
