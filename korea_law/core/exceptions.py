"""
korea-law Exception Hierarchy

Every error raised by the store, the registry client and the parsers derives
from KoreaLawError. Each carries a ``details`` dict and renders to a
JSON-able dict for tool results.

    KoreaLawError
    ├── NotFoundError             statute, article or precedent absent
    ├── UpstreamError             law.go.kr call failed
    │   ├── TransientUpstreamError    retryable (timeout, 408/429/5xx)
    │   └── PermanentUpstreamError    not retryable (4xx, bad payload)
    ├── ValidationError           unparseable date, article number, name
    ├── DatabaseError             store write or query failed
    └── ConfigurationError        missing API key or bad setting

DataIntegrityWarning is a UserWarning: collected on sync reports, never raised.
"""
from typing import Any, Dict, List, Optional


class KoreaLawError(Exception):
    """
    Base exception for all korea-law errors.

    Subclasses add context through ``_context()``; it feeds both ``__str__``
    and ``to_dict()``.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize KoreaLawError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def _context(self) -> List[tuple]:
        """(label, value) pairs appended to the message; None values are skipped."""
        return []

    def __str__(self) -> str:
        text = self.message
        if self.details:
            text += " (" + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")"
        extra = [f"{label}: {value}" for label, value in self._context() if value is not None]
        return " | ".join([text] + extra)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-able form used in tool results."""
        data: Dict[str, Any] = {"error": type(self).__name__, "message": self.message}
        if self.details:
            data["details"] = {k: str(v) for k, v in self.details.items()}
        for label, value in self._context():
            if value is not None:
                data[label.lower().replace(" ", "_")] = str(value)
        return data


class NotFoundError(KoreaLawError):
    """
    A statute, article or precedent is absent.

    Raised by lookups that must produce a record; verification calls
    convert it to a NOT_FOUND result instead of letting it escape.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        kind: Optional[str] = None,
        identifier: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.kind = kind
        self.identifier = identifier

    def _context(self):
        return [("Kind", self.kind), ("Identifier", self.identifier)]


class UpstreamError(KoreaLawError):
    """
    law.go.kr call failed.

    ``retryable`` tells fetch_with_retry whether another attempt may succeed.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        """
        Initialize UpstreamError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            status_code: HTTP status code if applicable
            url: The URL that failed (API key stripped)
        """
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url

    def _context(self):
        return [("Status", self.status_code or None), ("URL", self.url)]


class TransientUpstreamError(UpstreamError):
    """Retryable network or server fault (timeout, connection reset, 5xx, 429)."""

    retryable = True


class PermanentUpstreamError(UpstreamError):
    """Non-retryable upstream fault (malformed request, unexpected payload)."""


class ValidationError(KoreaLawError):
    """
    Caller input that cannot be parsed: dates, article numbers, names.

    Verification turns it into an INVALID_INPUT result naming the field.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
    ):
        super().__init__(message, details)
        self.field_name = field_name
        self.field_value = field_value

    def _context(self):
        return [("Field", self.field_name), ("Value", self.field_value)]


class DatabaseError(KoreaLawError):
    """
    A store write or query failed.

    Wraps the SQLAlchemy error; a duplicate master id surfaces here as an
    integrity violation.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, details)
        self.original_error = original_error

    def _context(self):
        if self.original_error is None:
            return []
        return [("Caused by", f"{type(self.original_error).__name__}: {self.original_error}")]


class ConfigurationError(KoreaLawError):
    """Missing API key or an invalid setting."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        config_key: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.config_key = config_key

    def _context(self):
        return [("Key", self.config_key)]


class DataIntegrityWarning(UserWarning):
    """
    Non-fatal data quality issue found during a sync.

    Duplicate article numbers, empty articles and payloads without a master
    id are reported on the sync report rather than aborting the run.
    """

    def __init__(self, message: str, statute: Optional[str] = None, article_no: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.statute = statute
        self.article_no = article_no

    def __str__(self) -> str:
        location = " ".join(part for part in (self.statute, self.article_no) if part)
        return f"{self.message} [{location}]" if location else self.message
