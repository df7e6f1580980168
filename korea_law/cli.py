"""
korea-law command line interface.

Usage:
    korea-law sync --mode daily
    korea-law sync --mode priority --laws 근로기준법 민법
    korea-law precedents --keywords 해고 임금
    korea-law audit 근로기준법 제23조 --date 2025-06-01 --claimed-text "..."
    korea-law daily-diff --date 2025-06-01
    korea-law timeline 근로기준법 2025-01-01 2025-12-31
    korea-law hierarchy "근로기준법 시행령" 근로기준법
    korea-law enforcement 근로기준법
    korea-law case 2023다12345 --online
    korea-law definition 근로기준법 --term 근로자
"""
import json
import sys
from typing import List, Optional

from korea_law.core.config import (
    PRECEDENT_SEARCH_LIMIT,
    SYNC_API_DELAY,
    SYNC_MAX_PAGES,
    SYNC_PAGE_SIZE,
    SYNC_SCAN_DAYS,
)

# Verification subcommand -> (tool name, positional argument names)
TOOL_COMMANDS = {
    "audit": ("audit_statute", ["law_name", "article_number"]),
    "daily-diff": ("get_daily_diff", []),
    "timeline": ("audit_contract_timeline", ["law_name", "contract_start_date", "contract_end_date"]),
    "hierarchy": ("check_law_hierarchy", ["law_name_1", "law_name_2"]),
    "enforcement": ("check_enforcement_date", ["law_name"]),
    "case": ("verify_case_exists", ["case_id"]),
    "definition": ("check_legal_definition", ["law_name"]),
}


def build_parser():
    """Build the argument parser with one subcommand per operation."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="korea-law",
        description="Korean statute sync and citation verification",
    )
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Sync statutes from law.go.kr")
    sync.add_argument(
        "--mode",
        choices=["priority", "recent", "catalog", "daily"],
        default="daily",
        help="Which statutes to sync",
    )
    sync.add_argument("--laws", nargs="+", help="Statute names (priority mode)")
    sync.add_argument("--days", type=int, default=SYNC_SCAN_DAYS, help="Look-back window in days")
    sync.add_argument("--max-pages", type=int, default=SYNC_MAX_PAGES, help="Catalog page ceiling")
    sync.add_argument("--page-size", type=int, default=SYNC_PAGE_SIZE, help="Catalog page size")
    sync.add_argument("--delay", type=float, default=SYNC_API_DELAY, help="Seconds between statutes")
    sync.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    precedents = subparsers.add_parser("precedents", help="Index precedents by keyword")
    precedents.add_argument("--keywords", nargs="+", help="Search keywords")
    precedents.add_argument("--limit", type=int, default=PRECEDENT_SEARCH_LIMIT, help="Results per keyword")
    precedents.add_argument("--delay", type=float, default=SYNC_API_DELAY, help="Seconds between searches")
    precedents.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    audit = subparsers.add_parser("audit", help="Verify an article citation")
    audit.add_argument("law_name")
    audit.add_argument("article_number")
    audit.add_argument("--date", dest="target_date", help="As-of date (YYYY-MM-DD)")
    audit.add_argument("--claimed-text", help="Quoted article text to check")

    daily = subparsers.add_parser("daily-diff", help="Changes detected on a date")
    daily.add_argument("--date", help="Detection date (YYYY-MM-DD), default today")
    daily.add_argument("--category", help="Filter by statute name or summary substring")

    timeline = subparsers.add_parser("timeline", help="Changes during a contract period")
    timeline.add_argument("law_name")
    timeline.add_argument("contract_start_date")
    timeline.add_argument("contract_end_date")

    hierarchy = subparsers.add_parser("hierarchy", help="Which of two statutes prevails")
    hierarchy.add_argument("law_name_1")
    hierarchy.add_argument("law_name_2")

    enforcement = subparsers.add_parser("enforcement", help="Current and pending versions")
    enforcement.add_argument("law_name")

    case = subparsers.add_parser("case", help="Check that a precedent exists")
    case.add_argument("case_id")
    case.add_argument(
        "--online",
        action="store_true",
        help="Ask the law.go.kr registry when the case is not indexed locally",
    )

    definition = subparsers.add_parser("definition", help="Defined terms of a statute")
    definition.add_argument("law_name")
    definition.add_argument("--term", help="Single term to look up")

    return parser


def _tool_arguments(command: str, args) -> dict:
    _, positional = TOOL_COMMANDS[command]
    arguments = {name: getattr(args, name) for name in positional}
    if command == "audit":
        arguments["target_date"] = args.target_date
        arguments["claimed_text"] = args.claimed_text
    elif command == "daily-diff":
        arguments["date"] = args.date
        arguments["category"] = args.category
    elif command == "definition":
        arguments["term"] = args.term
    return arguments


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code (0 success, 1 failure, 130 interrupted)
    """
    from korea_law.core.db import create_db_engine
    from korea_law.core.logging import setup_logging
    from korea_law.core.store import LawStore

    args = build_parser().parse_args(argv)
    setup_logging("korea_law", level=args.log_level)
    store = LawStore(create_db_engine(args.database_url))

    if args.command == "sync":
        from korea_law.crawler.law_api_client import LawApiClient
        from korea_law.sync.statute_sync import exit_code, run_sync

        with LawApiClient() as client:
            report = run_sync(
                args.mode,
                store,
                client,
                names=args.laws,
                days=args.days,
                max_pages=args.max_pages,
                api_delay=args.delay,
                page_size=args.page_size,
                show_progress=not args.no_progress,
            )
        _print_json(report.to_dict())
        return exit_code(report)

    if args.command == "precedents":
        from korea_law.core.models import SyncStatus
        from korea_law.crawler.law_api_client import LawApiClient
        from korea_law.sync.precedent_sync import PrecedentSyncService

        with LawApiClient() as client:
            report = PrecedentSyncService(
                store,
                client,
                keywords=args.keywords,
                search_limit=args.limit,
                api_delay=args.delay,
                show_progress=not args.no_progress,
            ).run()
        _print_json(report.to_dict())
        if report.status in (SyncStatus.SUCCESS, SyncStatus.PARTIAL):
            return 0
        if report.status == SyncStatus.INTERRUPTED:
            return 130
        return 1

    from korea_law.verification.service import INVALID_INPUT, VerificationService
    from korea_law.verification.tools import ERROR, dispatch

    tool_name, _ = TOOL_COMMANDS[args.command]
    arguments = _tool_arguments(args.command, args)

    if args.command == "case" and args.online:
        from korea_law.crawler.law_api_client import LawApiClient
        from korea_law.sync.precedent_sync import PrecedentSyncService

        with LawApiClient() as client:
            lookup = PrecedentSyncService(store, client).verify_online
            result = dispatch(tool_name, arguments, VerificationService(store, precedent_lookup=lookup))
    else:
        result = dispatch(tool_name, arguments, VerificationService(store))

    _print_json(result)
    return 1 if result.get("status") in (INVALID_INPUT, ERROR) else 0


if __name__ == "__main__":
    sys.exit(main())
