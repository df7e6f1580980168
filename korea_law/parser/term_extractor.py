"""
Legal Term Extractor.

Best-effort extraction of defined terms from definition articles
("제2조(정의)"). Results are annotations with a confidence score, never
authoritative definitions.

Patterns:
- "근로자"란 ... 사람을 말한다.          (confidence 0.9)
- 1. "사용자": 사업주 또는 ...           (numbered item, confidence 0.6)
- 가. "임금" 사용자가 ...                (lettered sub-item, confidence 0.4)
"""
import logging
import re
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

QUOTE_OPEN = '"“「'
QUOTE_CLOSE = '"”」'


@dataclass
class ExtractedTerm:
    """A term candidate found in definition text."""
    term: str
    definition: str
    article_ref: str
    confidence: float


class TermExtractor:
    """
    Regex-based extractor for "X란 ...을 말한다" style definitions.

    Example:
        >>> extractor = TermExtractor()
        >>> terms = extractor.extract('1. "근로자"란 임금을 목적으로 근로를 제공하는 사람을 말한다.', "제2조")
        >>> terms[0].term
        '근로자'
    """

    MIN_DEFINITION_LENGTH = 5

    PATTERNS = [
        # (pattern, confidence)
        (
            rf'[{QUOTE_OPEN}]([^{QUOTE_CLOSE}]+)[{QUOTE_CLOSE}]\s*(?:이란|란|이라\s*함은|라\s*함은|은|는)\s*'
            r'([^.\n]+?(?:을|를)\s*말한다)',
            0.9,
        ),
        (
            rf'\d+\.\s*[{QUOTE_OPEN}]([^{QUOTE_CLOSE}]+)[{QUOTE_CLOSE}]\s*[:：]?\s*([^.\n]+)',
            0.6,
        ),
        (
            rf'[가-힣]\.\s*[{QUOTE_OPEN}]([^{QUOTE_CLOSE}]+)[{QUOTE_CLOSE}]\s*[:：]?\s*([^.\n]+)',
            0.4,
        ),
    ]

    def __init__(self):
        """Compile the definition patterns."""
        self.regexes = [(re.compile(pattern), confidence) for pattern, confidence in self.PATTERNS]

    def extract(self, content: str, article_ref: str) -> List[ExtractedTerm]:
        """
        Extract defined terms from article text.

        Args:
            content: Canonical article text
            article_ref: Source reference stored with each term ("근로기준법 제2조")

        Returns:
            Terms in order of discovery; the first (most confident) match of
            a term wins
        """
        terms: List[ExtractedTerm] = []
        seen = set()

        for regex, confidence in self.regexes:
            for match in regex.finditer(content or ""):
                term = match.group(1).strip()
                definition = match.group(2).strip()
                if not term or term in seen:
                    continue
                if len(definition) <= self.MIN_DEFINITION_LENGTH:
                    continue
                seen.add(term)
                terms.append(
                    ExtractedTerm(
                        term=term,
                        definition=definition,
                        article_ref=article_ref,
                        confidence=confidence,
                    )
                )

        if terms:
            logger.debug(f"Extracted {len(terms)} terms from {article_ref}")
        return terms
