"""
Article Number Parser for Korean Statutes

Parses article citations into a structured number. Handles:
- Plain numbers: "23"
- Citation form: "제23조"
- Branch articles inserted by amendment: "제23조의2", "23의2", "23-2"
- Citations that continue into a paragraph: "제23조제1항", "제23조 ①"

The normalized form used for storage and lookup is "23" or "23-2".

Usage:
    from korea_law.core.article_number import ArticleNumberParser

    parser = ArticleNumberParser()
    article = parser.parse("제23조의2")
    print(article.base, article.branch, article.normalized)
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from korea_law.core.exceptions import ValidationError


@dataclass(frozen=True, order=True)
class ArticleNumber:
    """
    A structured article number.

    Attributes:
        base: The main article number (23 in "제23조의2")
        branch: Branch number of an inserted article (2 in "제23조의2"), 0 if none
        paragraph: Paragraph cited after the article, if any (excluded from ordering)
    """
    base: int
    branch: int = 0
    paragraph: Optional[int] = field(default=None, compare=False)

    @property
    def normalized(self) -> str:
        """Storage form: "23" or "23-2"."""
        if self.branch:
            return f"{self.base}-{self.branch}"
        return str(self.base)

    @property
    def citation(self) -> str:
        """Citation form: "제23조" or "제23조의2"."""
        if self.branch:
            return f"제{self.base}조의{self.branch}"
        return f"제{self.base}조"

    def __str__(self) -> str:
        return self.normalized


class ArticleNumberParser:
    r"""
    Article number parser with error handling.

    Regex Pattern: ^제?(\d+)조?(?:(?:의|-)(\d+))?(paragraph suffix)?$
    - Group 1: Base article number (required)
    - Group 2: Branch number (optional)
    - Group 3/4: Paragraph number as "제1항" or a circled digit (optional)
    """

    CIRCLED_DIGITS = "①②③④⑤⑥⑦⑧⑨⑩⑪⑫⑬⑭⑮⑯⑰⑱⑲⑳"

    def __init__(self):
        """Initialize the parser with the article number regex pattern."""
        self.pattern = re.compile(
            r'^(?:제)?(\d+)(?:조)?(?:(?:의|-)(\d+))?'
            r'(?:(?:제)?(\d+)항|([' + self.CIRCLED_DIGITS + r']))?$'
        )

    def parse(self, article_str) -> ArticleNumber:
        """
        Parse an article number string into an ArticleNumber.

        Args:
            article_str: Article number ("23", "제23조", "제23조의2", "23-2")

        Returns:
            ArticleNumber with parsed components

        Raises:
            ValidationError: If the article number format is invalid

        Examples:
            >>> parser = ArticleNumberParser()
            >>> parser.parse("제23조").normalized
            '23'
            >>> parser.parse("제23조의2").normalized
            '23-2'
        """
        compact = re.sub(r'\s+', '', str(article_str or ''))
        match = self.pattern.match(compact)
        if not match:
            raise ValidationError(
                f"Invalid article number format: '{article_str}'",
                field_name="article_no",
                field_value=article_str,
            )

        base = int(match.group(1))
        branch = int(match.group(2)) if match.group(2) else 0
        paragraph = None
        if match.group(3):
            paragraph = int(match.group(3))
        elif match.group(4):
            paragraph = self.CIRCLED_DIGITS.index(match.group(4)) + 1

        return ArticleNumber(base=base, branch=branch, paragraph=paragraph)

    def parse_bulk(
        self, article_list: List[str]
    ) -> Tuple[List[ArticleNumber], List[Tuple[str, str]]]:
        """
        Parse multiple article numbers, returning successes and failures.

        Args:
            article_list: List of article number strings to parse

        Returns:
            Tuple of (successful_parses, failures) where failures are
            (article_str, error_message) pairs
        """
        successes = []
        failures = []

        for article_str in article_list:
            try:
                successes.append(self.parse(article_str))
            except ValidationError as e:
                failures.append((article_str, str(e)))

        return successes, failures

    def normalize(self, article_str) -> str:
        """
        Normalize an article number to storage format.

        Examples:
            >>> ArticleNumberParser().normalize("제023조의2")
            '23-2'
        """
        return self.parse(article_str).normalized

    def is_valid(self, article_str) -> bool:
        """Check if an article number string is valid without raising."""
        try:
            self.parse(article_str)
            return True
        except ValidationError:
            return False


_default_parser = None


def _get_parser() -> ArticleNumberParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = ArticleNumberParser()
    return _default_parser


def parse_article_number(article_str) -> ArticleNumber:
    """Parse an article number using the default parser."""
    return _get_parser().parse(article_str)


def normalize_article_number(article_str) -> str:
    """Normalize an article number using the default parser."""
    return _get_parser().normalize(article_str)
