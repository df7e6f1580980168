"""
Tool dispatch for korea-law.

Thin layer mapping named tool calls with JSON arguments onto the
VerificationService. Each handler returns a JSON-able dict; unexpected
failures become {"status": "ERROR", ...} results instead of propagating to
the caller.

Usage:
    from korea_law.verification.tools import dispatch

    result = dispatch("audit_statute", {"law_name": "근로기준법", "article_number": "제23조"}, service)
"""
import logging
from typing import Any, Callable, Dict, Optional

from korea_law.core.exceptions import KoreaLawError
from korea_law.verification.service import INVALID_INPUT, VerificationService

logger = logging.getLogger(__name__)

ERROR = "ERROR"
DISCLAIMER = (
    "Results are checked against a local snapshot of law.go.kr and are not legal advice. "
    "Confirm critical citations against the official text."
)


def audit_statute(
    service: VerificationService,
    law_name: str,
    article_number: str,
    target_date: Optional[str] = None,
    claimed_text: Optional[str] = None,
) -> dict:
    """Verify one article citation, optionally scoring a quoted text."""
    return service.audit(law_name, article_number, target_date, claimed_text)


def get_daily_diff(
    service: VerificationService,
    date: Optional[str] = None,
    category: Optional[str] = None,
) -> dict:
    """Changes detected on a date (default today)."""
    return service.get_daily_diff(date, category)


def audit_contract_timeline(
    service: VerificationService,
    law_name: str,
    contract_start_date: str,
    contract_end_date: str,
) -> dict:
    """Changes to a statute taking effect during a contract period."""
    return service.forecast_contract_timeline(law_name, contract_start_date, contract_end_date)


def check_law_hierarchy(service: VerificationService, law_name_1: str, law_name_2: str) -> dict:
    """Which of two statutes prevails."""
    return service.compare_hierarchy(law_name_1, law_name_2)


def check_enforcement_date(service: VerificationService, law_name: str) -> dict:
    """Current and pending versions of a statute."""
    return service.check_enforcement_date(law_name)


def verify_case_exists(service: VerificationService, case_id: str) -> dict:
    """Existence check of a precedent case number."""
    return service.verify_precedent(case_id)


def check_legal_definition(
    service: VerificationService, law_name: str, term: Optional[str] = None
) -> dict:
    """Extracted defined terms of a statute."""
    return service.check_legal_definition(law_name, term)


TOOLS: Dict[str, Callable[..., dict]] = {
    "audit_statute": audit_statute,
    "get_daily_diff": get_daily_diff,
    "audit_contract_timeline": audit_contract_timeline,
    "check_law_hierarchy": check_law_hierarchy,
    "check_enforcement_date": check_enforcement_date,
    "verify_case_exists": verify_case_exists,
    "check_legal_definition": check_legal_definition,
}


def dispatch(
    name: str,
    arguments: Optional[Dict[str, Any]],
    service: VerificationService,
) -> dict:
    """
    Run a named tool.

    Args:
        name: Tool name (a key of TOOLS)
        arguments: Keyword arguments for the tool
        service: Verification service bound to a store

    Returns:
        The tool's result with a disclaimer attached, or an
        INVALID_INPUT / ERROR result
    """
    handler = TOOLS.get(name)
    if handler is None:
        return {
            "status": INVALID_INPUT,
            "field": "tool",
            "value": name,
            "message": f"Unknown tool: {name}",
        }

    try:
        result = handler(service, **(arguments or {}))
    except TypeError as e:
        logger.warning(f"Bad arguments for {name}: {e}")
        return {"status": INVALID_INPUT, "field": "arguments", "value": None, "message": str(e)}
    except KoreaLawError as e:
        logger.error(f"Tool {name} failed: {e}")
        return {"status": ERROR, **e.to_dict()}

    result["disclaimer"] = DISCLAIMER
    return result
