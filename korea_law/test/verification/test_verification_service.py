"""
Tests for the verification service (korea_law/verification/service.py)

Tests cover:
- Time-aware statute resolution
- Article resolution and claimed-text scoring
- Hierarchy comparison
- Contract timeline forecasts, enforcement dates and daily diffs
- Precedent existence and defined terms
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from korea_law.core.exceptions import TransientUpstreamError, ValidationError
from korea_law.core.models import (
    Article,
    ChangeType,
    DiffRecord,
    LegalTerm,
    Precedent,
    Statute,
)
from korea_law.utils.text import content_hash
from korea_law.verification.service import (
    ARTICLE_NOT_FOUND,
    CHANGES_DETECTED,
    EXISTS,
    FOUND,
    FUTURE_CHANGE_DETECTED,
    INVALID_INPUT,
    LEX_POSTERIOR,
    LEX_SUPERIOR,
    MATCH,
    MISMATCH,
    NO_CHANGES,
    NO_CHANGES_IN_PERIOD,
    NOT_FOUND,
    PARTIAL_MATCH,
    RESOLVED,
    UNDETERMINED,
    VerificationService,
    classify_similarity,
    parse_input_date,
    text_similarity,
)

TODAY = date(2025, 6, 15)

ARTICLE_23_TEXT = (
    "사용자는 근로자를 해고(경영상 이유에 의한 해고를 포함한다)하려면 적어도 30일 전에 예고를 하여야 하고, "
    "30일 전에 예고를 하지 아니하였을 때에는 30일분 이상의 통상임금을 지급하여야 한다."
)


def add_statute(store, mst, name, enforcement, law_type="법률", promulgation=None):
    statute = Statute(
        law_mst_id=mst,
        law_name=name,
        law_type=law_type,
        promulgation_date=promulgation or enforcement,
        enforcement_date=enforcement,
    )
    law_id, _ = store.upsert_statute(statute, today=TODAY)
    return law_id


def add_article(store, law_id, number, content, effective_from=None):
    article_id, _ = store.save_article(
        Article(
            law_id=law_id,
            article_no=f"제{number}조",
            article_no_normalized=str(number),
            content=content,
            content_hash=content_hash(content),
            effective_from=effective_from,
        )
    )
    return article_id


def add_diff(store, law_id, effective_from, article_id=None, summary="amount changed",
             critical=True, detected_at=TODAY):
    return store.insert_diff(
        DiffRecord(
            law_id=law_id,
            article_id=article_id,
            change_type=ChangeType.MODIFIED if article_id else ChangeType.ADDED,
            diff_summary=summary,
            is_critical=critical,
            effective_from=effective_from,
            detected_at=detected_at,
        )
    )


@pytest.fixture
def service(store):
    return VerificationService(store, clock=lambda: TODAY)


@pytest.fixture
def labor_versions(store):
    """Three versions of 근로기준법: old, current and not yet in force."""
    old = add_statute(store, "LSA-2024", "근로기준법", date(2024, 1, 1))
    current = add_statute(store, "LSA-2025", "근로기준법", date(2025, 2, 23))
    pending = add_statute(store, "LSA-2026", "근로기준법", date(2025, 10, 23))
    add_article(store, current, 23, ARTICLE_23_TEXT, effective_from=date(2025, 2, 23))
    return {"old": old, "current": current, "pending": pending}


class TestInputParsing:
    """Tests for parse_input_date and the similarity helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2025-06-01", date(2025, 6, 1)),
            ("20250601", date(2025, 6, 1)),
            ("2025.6.1", date(2025, 6, 1)),
            ("2025. 6. 1.", date(2025, 6, 1)),
            (date(2025, 6, 1), date(2025, 6, 1)),
            (None, None),
            ("  ", None),
        ],
    )
    def test_parse_input_date(self, value, expected):
        assert parse_input_date(value) == expected

    @pytest.mark.parametrize("value", ["2025-13-01", "yesterday", "2025/06/01"])
    def test_parse_input_date_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_input_date(value, "target_date")
        assert exc_info.value.field_name == "target_date"

    def test_similarity(self):
        assert text_similarity("30일 전에", "30일  전에") == 1.0
        assert text_similarity("abc", "") == 0.0
        assert text_similarity("abcd", "abce") == pytest.approx(0.6)

    @pytest.mark.parametrize(
        "score, expected",
        [(1.0, MATCH), (0.81, MATCH), (0.8, PARTIAL_MATCH), (0.6, PARTIAL_MATCH), (0.5, MISMATCH), (0.0, MISMATCH)],
    )
    def test_classify(self, score, expected):
        assert classify_similarity(score) == expected


class TestResolveStatute:
    """Which version was in force on a date."""

    def test_latest_version_on_or_before_date(self, service, labor_versions):
        result = service.resolve_statute("근로기준법", "2025-06-01")
        assert result["status"] == FOUND
        assert result["statute"]["id"] == labor_versions["current"]
        assert result["statute"]["enforcement_date"] == "2025-02-23"
        assert result["statute"]["hierarchy_level"] == 2

    def test_earlier_date_gets_older_version(self, service, labor_versions):
        result = service.resolve_statute("근로 기준법", "20240601")
        assert result["statute"]["id"] == labor_versions["old"]

    def test_pending_version_never_resolves(self, service, labor_versions):
        result = service.resolve_statute("근로기준법", "2026-01-01")
        assert result["statute"]["id"] == labor_versions["current"]

    def test_before_first_version(self, service, labor_versions):
        result = service.resolve_statute("근로기준법", "2023-01-01")
        assert result["status"] == NOT_FOUND

    def test_retired_version_skipped(self, store, service, labor_versions):
        store.retire_statute(labor_versions["current"], on=TODAY)
        result = service.resolve_statute("근로기준법", "2025-06-01")
        assert result["statute"]["id"] == labor_versions["old"]

    def test_unknown_statute(self, service):
        assert service.resolve_statute("없는법")["status"] == NOT_FOUND

    def test_invalid_input(self, service):
        assert service.resolve_statute("근로기준법", "2025-13-01")["status"] == INVALID_INPUT
        assert service.resolve_statute("  ")["status"] == INVALID_INPUT


class TestResolveArticle:
    """Current text of an article."""

    @pytest.mark.parametrize("article_no", ["제23조", "23", "제 23 조"])
    def test_found(self, service, labor_versions, article_no):
        result = service.resolve_article(labor_versions["current"], article_no)
        assert result["status"] == FOUND
        assert result["article"]["content"] == ARTICLE_23_TEXT

    def test_missing_article(self, service, labor_versions):
        result = service.resolve_article(labor_versions["current"], "제23조의2")
        assert result["status"] == ARTICLE_NOT_FOUND
        assert result["article_no"] == "제23조의2"

    def test_deleted_article(self, store, service, labor_versions):
        add_article(store, labor_versions["current"], 24, "")
        result = service.resolve_article(labor_versions["current"], "제24조")
        assert result["status"] == ARTICLE_NOT_FOUND
        assert "deleted" in result["message"]

    def test_invalid_article_number(self, service, labor_versions):
        result = service.resolve_article(labor_versions["current"], "twenty-three")
        assert result["status"] == INVALID_INPUT
        assert result["field"] == "article_no"


class TestAudit:
    """Citation audits with claimed text and future changes."""

    def test_exact_claim_matches(self, service, labor_versions):
        result = service.audit("근로기준법", "제23조", "2025-06-01", ARTICLE_23_TEXT)
        assert result["status"] == FOUND
        assert result["similarity"] == 1.0
        assert result["match_status"] == MATCH
        assert result["warnings"] == []

    def test_wrong_claim_mismatches(self, service, labor_versions):
        result = service.audit("근로기준법", "제23조", "2025-06-01", "60일 전에 예고")
        assert result["status"] == FOUND
        assert result["similarity"] < 0.5
        assert result["match_status"] == MISMATCH
        assert len(result["warnings"]) == 1

    def test_no_claim_skips_scoring(self, service, labor_versions):
        result = service.audit("근로기준법", "23")
        assert result["status"] == FOUND
        assert "similarity" not in result

    def test_future_change_flagged(self, store, service, labor_versions):
        article_id = service.resolve_article(labor_versions["current"], "23")["article"]["id"]
        add_diff(store, labor_versions["pending"], date(2025, 10, 23))
        add_diff(store, labor_versions["current"], date(2025, 9, 1), article_id=article_id,
                 summary="duration changed: 30일 → 60일")
        add_diff(store, labor_versions["current"], date(2025, 2, 23), article_id=article_id)

        result = service.audit("근로기준법", "제23조", "2025-06-01")

        assert result["flags"] == [FUTURE_CHANGE_DETECTED]
        assert [c["effective_from"] for c in result["future_changes"]] == ["2025-09-01", "2025-10-23"]
        assert any("duration changed" in w for w in result["warnings"])

    def test_other_article_changes_ignored(self, store, service, labor_versions):
        other = add_article(store, labor_versions["current"], 26, "해고의 예고")
        add_diff(store, labor_versions["current"], date(2025, 9, 1), article_id=other)

        result = service.audit("근로기준법", "제23조", "2025-06-01")

        assert result["flags"] == []
        assert result["future_changes"] == []

    def test_article_not_found_carries_statute(self, service, labor_versions):
        result = service.audit("근로기준법", "제99조", "2025-06-01")
        assert result["status"] == ARTICLE_NOT_FOUND
        assert result["statute"]["law_name"] == "근로기준법"

    def test_statute_not_found(self, service):
        assert service.audit("없는법", "제1조")["status"] == NOT_FOUND

    def test_last_representable_date(self, store, service, labor_versions):
        add_diff(store, labor_versions["pending"], date(2025, 10, 23))

        result = service.audit("근로기준법", "제23조", "9999-12-31")

        assert result["status"] == FOUND
        assert result["as_of"] == "9999-12-31"
        assert result["future_changes"] == []

    @pytest.mark.parametrize(
        "law_name, article_no, claimed_text, field",
        [
            (123, "제23조", None, "law_name"),
            ("근로기준법", 23.5, None, "article_no"),
            ("근로기준법", "제23조", ["30일"], "claimed_text"),
        ],
    )
    def test_non_string_arguments(self, service, labor_versions, law_name, article_no, claimed_text, field):
        result = service.audit(law_name, article_no, "2025-06-01", claimed_text)
        assert result["status"] == INVALID_INPUT
        assert result["field"] == field


class TestCompareHierarchy:
    """Lex superior, lex posterior and undetermined outcomes."""

    def test_act_outranks_decree(self, store, service):
        add_statute(store, "LSA", "근로기준법", date(2025, 2, 23))
        add_statute(store, "LSA-D", "근로기준법 시행령", date(2025, 5, 1), law_type="대통령령")

        result = service.compare_hierarchy("근로기준법 시행령", "근로기준법")

        assert result["status"] == RESOLVED
        assert result["priority_law"] == "근로기준법"
        assert result["principle"] == LEX_SUPERIOR
        assert result["law_1"]["hierarchy_level"] == 3
        assert result["law_2"]["hierarchy_level"] == 2

    def test_later_act_wins_at_same_rank(self, store, service):
        add_statute(store, "CIVIL", "민법", date(2024, 1, 1))
        add_statute(store, "COMMERCIAL", "상법", date(2025, 1, 1))

        result = service.compare_hierarchy("민법", "상법")

        assert result["status"] == RESOLVED
        assert result["priority_law"] == "상법"
        assert result["principle"] == LEX_POSTERIOR

    def test_same_rank_same_date(self, store, service):
        add_statute(store, "A", "가법", date(2024, 1, 1))
        add_statute(store, "B", "나법", date(2024, 1, 1))

        result = service.compare_hierarchy("가법", "나법")

        assert result["status"] == UNDETERMINED
        assert result["priority_law"] is None

    def test_pending_only_statute_is_compared(self, store, service):
        add_statute(store, "A", "가법", date(2024, 1, 1))
        add_statute(store, "B", "나법 시행령", date(2025, 12, 1), law_type="대통령령")

        result = service.compare_hierarchy("가법", "나법 시행령")

        assert result["priority_law"] == "가법"

    def test_missing_statute(self, store, service):
        add_statute(store, "A", "가법", date(2024, 1, 1))
        result = service.compare_hierarchy("가법", "없는법")
        assert result["status"] == NOT_FOUND
        assert result["missing"] == ["없는법"]


class TestContractTimeline:
    """Changes taking effect inside a contract window."""

    def test_changes_in_window_ascending(self, store, service, labor_versions):
        add_diff(store, labor_versions["pending"], date(2025, 10, 23))
        add_diff(store, labor_versions["current"], date(2025, 8, 1), critical=False)
        add_diff(store, labor_versions["current"], date(2027, 1, 1))

        result = service.forecast_contract_timeline("근로기준법", "2025-07-01", "2026-06-30")

        assert result["status"] == CHANGES_DETECTED
        assert result["period"] == {"start": "2025-07-01", "end": "2026-06-30"}
        assert [c["effective_from"] for c in result["changes"]] == ["2025-08-01", "2025-10-23"]
        assert result["total_changes"] == 2
        assert result["critical_changes"] == 1

    def test_inclusive_bounds(self, store, service, labor_versions):
        add_diff(store, labor_versions["current"], date(2025, 7, 1))
        add_diff(store, labor_versions["current"], date(2025, 12, 31))

        result = service.forecast_contract_timeline("근로기준법", "2025-07-01", "2025-12-31")

        assert result["total_changes"] == 2

    def test_no_changes(self, service, labor_versions):
        result = service.forecast_contract_timeline("근로기준법", "2030-01-01", "2030-12-31")
        assert result["status"] == NO_CHANGES_IN_PERIOD
        assert result["changes"] == []

    def test_start_after_end(self, service, labor_versions):
        result = service.forecast_contract_timeline("근로기준법", "2026-01-01", "2025-01-01")
        assert result["status"] == INVALID_INPUT
        assert result["field"] == "start_date"

    def test_missing_end_date(self, service, labor_versions):
        result = service.forecast_contract_timeline("근로기준법", "2025-01-01", None)
        assert result["status"] == INVALID_INPUT
        assert result["field"] == "end_date"

    def test_unknown_statute(self, service):
        result = service.forecast_contract_timeline("없는법", "2025-01-01", "2025-12-31")
        assert result["status"] == NOT_FOUND


class TestEnforcementAndDailyDiff:
    """Enforcement dates and changes detected on a day."""

    def test_enforcement_date(self, store, service, labor_versions):
        add_diff(store, labor_versions["pending"], date(2025, 10, 23))

        result = service.check_enforcement_date("근로기준법")

        assert result["status"] == FOUND
        assert result["current"]["id"] == labor_versions["current"]
        assert [s["id"] for s in result["pending"]] == [labor_versions["pending"]]
        assert result["pending"][0]["status"] == "PENDING"
        assert [d["effective_from"] for d in result["scheduled_changes"]] == ["2025-10-23"]

    def test_enforcement_unknown(self, service):
        assert service.check_enforcement_date("없는법")["status"] == NOT_FOUND

    def test_enforcement_on_last_representable_date(self, store, labor_versions):
        add_diff(store, labor_versions["pending"], date(2025, 10, 23))
        service = VerificationService(store, clock=lambda: date.max)

        result = service.check_enforcement_date("근로기준법")

        assert result["status"] == FOUND
        assert result["scheduled_changes"] == []
        assert result["pending"] == []

    def test_non_string_names(self, service):
        assert service.check_enforcement_date(7)["status"] == INVALID_INPUT
        assert service.compare_hierarchy("민법", {"name": "상법"})["field"] == "law_name_2"
        assert service.forecast_contract_timeline(7, "2025-01-01", "2025-12-31")["field"] == "law_name"
        assert service.get_daily_diff(category=5)["field"] == "category"
        assert service.check_legal_definition("근로기준법", term=1)["field"] == "term"

    def test_daily_diff_critical_first(self, store, service, labor_versions):
        add_diff(store, labor_versions["current"], date(2025, 7, 1), critical=False, summary="formatting only")
        add_diff(store, labor_versions["current"], date(2025, 7, 1), summary="amount changed: 10만원 → 20만원")
        add_diff(store, labor_versions["current"], date(2025, 7, 1), detected_at=date(2025, 6, 14))

        result = service.get_daily_diff()

        assert result["status"] == CHANGES_DETECTED
        assert result["date"] == "2025-06-15"
        assert result["total_changes"] == 2
        assert result["critical_changes"] == 1
        assert result["changes"][0]["is_critical"] is True
        assert result["changes"][0]["law_name"] == "근로기준법"

    def test_daily_diff_category_filter(self, store, service, labor_versions):
        add_diff(store, labor_versions["current"], date(2025, 7, 1))
        assert service.get_daily_diff("2025-06-15", category="근로")["total_changes"] == 1
        assert service.get_daily_diff("2025-06-15", category="세법")["status"] == NO_CHANGES

    def test_daily_diff_invalid_date(self, service):
        assert service.get_daily_diff("June 15")["status"] == INVALID_INPUT


class TestPrecedentsAndDefinitions:
    """Precedent existence and extracted terms."""

    def test_precedent_exists(self, store, service):
        store.upsert_precedent(Precedent(case_id="2023다12345", court="대법원", decision_date=date(2024, 3, 28)))

        result = service.verify_precedent("2023다 12345")

        assert result["status"] == EXISTS
        assert result["exists"] is True
        assert result["decision_date"] == "2024-03-28"

    def test_precedent_missing(self, service):
        result = service.verify_precedent("2099다1")
        assert result["status"] == NOT_FOUND
        assert result["exists"] is False

    def test_precedent_blank(self, service):
        assert service.verify_precedent(" ")["status"] == INVALID_INPUT
        assert service.verify_precedent(20231)["status"] == INVALID_INPUT

    def test_indexed_precedent_skips_registry(self, store):
        store.upsert_precedent(Precedent(case_id="2023다12345", court="대법원"))
        lookup = MagicMock(return_value=False)
        service = VerificationService(store, clock=lambda: TODAY, precedent_lookup=lookup)

        result = service.verify_precedent("2023다12345")

        assert result["source"] == "index"
        lookup.assert_not_called()

    def test_registry_fallback_finds_case(self, store):
        lookup = MagicMock(return_value=True)
        service = VerificationService(store, clock=lambda: TODAY, precedent_lookup=lookup)

        result = service.verify_precedent("2024다777")

        assert result["status"] == EXISTS
        assert result["source"] == "registry"
        lookup.assert_called_once_with("2024다777")

    def test_registry_fallback_not_listed(self, store):
        service = VerificationService(store, clock=lambda: TODAY, precedent_lookup=lambda case_id: False)
        result = service.verify_precedent("2099다1")
        assert result["status"] == NOT_FOUND
        assert result["online_check"] == "not_listed"

    def test_registry_failure_stays_not_found(self, store):
        lookup = MagicMock(side_effect=TransientUpstreamError("Registry returned HTTP 502", status_code=502))
        service = VerificationService(store, clock=lambda: TODAY, precedent_lookup=lookup)

        result = service.verify_precedent("2099다1")

        assert result["status"] == NOT_FOUND
        assert result["online_check"] == "failed"

    def test_definition(self, store, service, labor_versions):
        store.upsert_term(
            LegalTerm(
                law_id=labor_versions["current"],
                term="근로자",
                definition="직업의 종류와 관계없이 임금을 목적으로 근로를 제공하는 사람을 말한다",
                article_ref="근로기준법 제2조",
                confidence=0.9,
            )
        )

        result = service.check_legal_definition("근로기준법", "근로자")

        assert result["status"] == FOUND
        assert result["terms"][0]["confidence"] == 0.9
        assert result["terms"][0]["article_ref"] == "근로기준법 제2조"

    def test_definition_missing_term(self, service, labor_versions):
        assert service.check_legal_definition("근로기준법", "사용자")["status"] == NOT_FOUND

    def test_definition_unknown_statute(self, service):
        assert service.check_legal_definition("없는법")["status"] == NOT_FOUND
