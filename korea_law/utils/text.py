"""
Text normalization helpers shared by the store, the sync pipeline and
verification lookups.
"""
import hashlib
import re
from typing import Optional

_NON_WORD_RE = re.compile(r'[\s\W_]+')
_WHITESPACE_RE = re.compile(r'\s+')


def normalize_law_name(name: Optional[str]) -> str:
    """
    Lookup key for a statute name: whitespace and punctuation removed, case-folded.

    Examples:
        >>> normalize_law_name("근로기준법 시행령")
        '근로기준법시행령'
        >>> normalize_law_name("「민법」")
        '민법'
    """
    return _NON_WORD_RE.sub('', name or '').casefold()


def normalize_case_id(case_id: Optional[str]) -> str:
    """Lookup key for a precedent case number ("2023다 12345" -> "2023다12345")."""
    return _NON_WORD_RE.sub('', case_id or '').casefold()


def strip_whitespace(text: Optional[str]) -> str:
    """Remove every whitespace character."""
    return _WHITESPACE_RE.sub('', text or '')


def content_hash(text: Optional[str]) -> str:
    """SHA-256 hex digest of canonical text."""
    return hashlib.sha256((text or '').encode('utf-8')).hexdigest()
