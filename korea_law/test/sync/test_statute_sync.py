"""
Tests for the statute sync orchestrator (korea_law/sync/statute_sync.py)

Tests cover:
- Baseline sync and idempotence
- Modified, added and deleted articles
- Scheduled changes from addenda
- Failure isolation and run bookkeeping
- Daily, recent and catalog sourcing
"""

import logging
from datetime import date

import pytest
from sqlalchemy import select

from korea_law.core.db import get_db_connection
from korea_law.core.exceptions import NotFoundError, TransientUpstreamError
from korea_law.core.models import ChangeType, SyncStatus, SyncType
from korea_law.core.schema import articles, laws
from korea_law.core.store import CREATED, UNCHANGED
from korea_law.crawler.payload import StatuteListItem
from korea_law.sync.statute_sync import (
    StatuteSyncService,
    SyncReport,
    exit_code,
    run_sync,
)

TODAY = date(2025, 6, 15)

ARTICLE_23 = "제23조(해고 등의 제한)"
PARAGRAPH_23 = "① 사용자는 근로자에게 정당한 이유 없이 해고, 휴직, 정직, 전직, 감봉, 그 밖의 징벌을 하지 못한다."
ARTICLE_26 = "제26조(해고의 예고)"
NOTICE_30 = "사용자는 근로자를 해고하려면 적어도 30일 전에 예고를 하여야 한다."
NOTICE_60 = "사용자는 근로자를 해고하려면 적어도 60일 전에 예고를 하여야 한다."


def labor_act(payloads, notice=NOTICE_30, extra_articles=(), drop=(), addenda=None):
    records = [
        payloads.article("1", "제1조(목적)"),
        payloads.article(
            "2",
            "제2조(정의)",
            title="정의",
            paragraphs=[
                payloads.paragraph(
                    "①",
                    "① 이 법에서 사용하는 용어의 뜻은 다음과 같다.",
                    items=[
                        payloads.item(
                            "1.",
                            '1. "근로자"란 직업의 종류와 관계없이 임금을 목적으로 사업이나 '
                            '사업장에 근로를 제공하는 사람을 말한다.',
                        )
                    ],
                )
            ],
        ),
        payloads.article("0", "제2장 근로계약", kind="전문"),
        payloads.article("23", ARTICLE_23, paragraphs=[payloads.paragraph("①", PARAGRAPH_23)]),
        payloads.article("26", ARTICLE_26 + " " + notice),
    ]
    records = [r for r in records if r["조문번호"] not in drop]
    records.extend(extra_articles)
    return payloads.detail(
        "001872",
        "근로기준법",
        records,
        enforcement="20250223",
        promulgation="20241022",
        addenda=addenda,
    )


def snapshot(engine):
    with get_db_connection(engine) as conn:
        statute_rows = [tuple(row) for row in conn.execute(select(laws).order_by(laws.c.id))]
        article_rows = [tuple(row) for row in conn.execute(select(articles).order_by(articles.c.id))]
    return statute_rows, article_rows


@pytest.fixture
def make_service(store, fake_client):
    def factory(**options):
        defaults = dict(
            api_delay=0,
            priority_laws=["근로기준법"],
            show_progress=False,
            sleep=lambda seconds: None,
            clock=lambda: TODAY,
        )
        defaults.update(options)
        return StatuteSyncService(store, fake_client, **defaults)

    return factory


class TestBaselineAndIdempotence:
    """First sync creates rows without diffs; re-syncs change nothing."""

    def test_first_sync_is_baseline(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))

        report = make_service().run_priority()

        assert report.status == SyncStatus.SUCCESS
        assert report.statutes_added == 1
        assert report.articles_added == 4
        assert report.diffs_detected == 0
        assert store.count_diffs() == 0

        statute = store.get_statute_by_mst("001872")
        assert statute.law_type == "법률"
        assert statute.enforcement_date == date(2025, 2, 23)
        assert sorted(store.list_articles(statute.id)) == ["1", "2", "23", "26"]

    def test_second_sync_changes_nothing(self, store, engine, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()
        service.run_priority()
        before = snapshot(engine)
        diffs_before = store.count_diffs()

        report = service.run_priority()

        assert report.status == SyncStatus.SUCCESS
        assert report.diffs_detected == 0
        assert report.statutes_added == 0
        assert report.statutes_updated == 0
        assert report.articles_added == 0
        assert report.articles_updated == 0
        assert snapshot(engine) == before
        assert store.count_diffs() == diffs_before

    def test_sync_statute_outcomes(self, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()

        assert service.sync_statute("001872").statute_outcome == CREATED
        assert service.sync_statute("001872").statute_outcome == UNCHANGED

    def test_definition_terms_extracted(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        report = make_service().run_priority()

        statute = store.get_statute_by_mst("001872")
        terms = store.find_terms(statute.id, "근로자")
        assert report.terms_extracted == 1
        assert terms[0].article_ref == "근로기준법 제2조"
        assert terms[0].confidence == 0.9


class TestChangeDetection:
    """Diffs recorded between consecutive syncs."""

    def test_modified_article(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()
        service.run_priority()

        fake_client.add_statute(labor_act(payloads, notice=NOTICE_60))
        report = service.run_priority()

        assert report.diffs_detected == 1
        assert report.articles_updated == 1
        statute = store.get_statute_by_mst("001872")
        diffs = store.get_diffs_for_statute(statute.id)
        assert len(diffs) == 1
        diff = diffs[0]
        assert diff.change_type == ChangeType.MODIFIED
        assert diff.is_critical is True
        assert diff.diff_summary == "duration changed: 30일 → 60일"
        assert diff.article_no == "제26조"
        assert diff.detected_at == TODAY
        assert diff.warning_message.startswith("critical change: 근로기준법 제26조")
        assert "60일" in store.find_article(statute.id, "26", on=TODAY).content

    def test_formatting_change_is_not_critical(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()
        service.run_priority()

        fake_client.add_statute(labor_act(payloads, notice=NOTICE_30.replace(" ", "  ")))
        service.run_priority()

        diffs = store.get_diffs_for_statute(store.get_statute_by_mst("001872").id)
        assert len(diffs) == 1
        assert diffs[0].is_critical is False
        assert diffs[0].diff_summary == "formatting only"

    def test_new_article_in_known_statute(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()
        service.run_priority()

        new_article = payloads.article("76", "제76조의2(직장 내 괴롭힘의 금지)", branch="2")
        fake_client.add_statute(labor_act(payloads, extra_articles=[new_article]))
        report = service.run_priority()

        assert report.articles_added == 1
        diffs = store.get_diffs_for_statute(store.get_statute_by_mst("001872").id)
        assert [(d.change_type, d.article_no, d.diff_summary) for d in diffs] == [
            (ChangeType.ADDED, "제76조의2", "newly created")
        ]

    def test_deleted_article(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()
        service.run_priority()

        fake_client.add_statute(labor_act(payloads, drop=("26",)))
        report = service.run_priority()

        statute = store.get_statute_by_mst("001872")
        diffs = store.get_diffs_for_statute(statute.id)
        assert report.diffs_detected == 1
        assert diffs[0].change_type == ChangeType.DELETED
        assert diffs[0].previous_content.endswith(NOTICE_30)
        assert diffs[0].is_critical is True
        assert store.find_article(statute.id, "26", on=TODAY).content == ""

        # A deletion is recorded once
        again = service.run_priority()
        assert again.diffs_detected == 0
        assert len(store.get_diffs_for_statute(statute.id)) == 1

    def test_restored_article_is_added_again(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        service = make_service()
        service.run_priority()
        fake_client.add_statute(labor_act(payloads, drop=("26",)))
        service.run_priority()

        fake_client.add_statute(labor_act(payloads))
        service.run_priority()

        diffs = store.get_diffs_for_statute(store.get_statute_by_mst("001872").id)
        assert [d.change_type for d in diffs] == [ChangeType.DELETED, ChangeType.ADDED]


class TestScheduledChanges:
    """Forward-looking diffs from addenda."""

    def test_future_addenda_recorded_once(self, store, fake_client, payloads, make_service):
        addenda = ["이 법은 2025년 10월 23일부터 시행한다."]
        fake_client.add_statute(labor_act(payloads, addenda=addenda))
        service = make_service()

        first = service.run_priority()
        second = service.run_priority()

        assert first.scheduled_changes == 1
        assert second.scheduled_changes == 0
        diffs = store.get_diffs_for_statute(store.get_statute_by_mst("001872").id)
        assert len(diffs) == 1
        diff = diffs[0]
        assert diff.article_id is None
        assert diff.change_type == ChangeType.ADDED
        assert diff.is_critical is True
        assert diff.effective_from == date(2025, 10, 23)
        assert diff.diff_summary == "scheduled to take effect on 2025-10-23"

    def test_relative_addenda(self, store, fake_client, payloads, make_service):
        addenda = ["이 법은 공포 후 1년이 경과한 날부터 시행한다."]
        fake_client.add_statute(labor_act(payloads, addenda=addenda))

        make_service().run_priority()

        diffs = store.get_diffs_for_statute(store.get_statute_by_mst("001872").id)
        assert [d.effective_from for d in diffs] == [date(2025, 10, 22)]

    def test_past_and_delegated_addenda_ignored(self, store, fake_client, payloads, make_service):
        addenda = [
            "이 법은 공포한 날부터 시행한다.",
            "이 법은 대통령령으로 정하는 날부터 시행한다.",
        ]
        fake_client.add_statute(labor_act(payloads, addenda=addenda))

        report = make_service().run_priority()

        assert report.scheduled_changes == 0
        assert store.count_diffs() == 0

    def test_duplicate_dates_in_one_payload(self, store, fake_client, payloads, make_service):
        addenda = [
            "이 법은 2025년 10월 23일부터 시행한다.",
            "제1조(시행일) 이 법은 2025-10-23부터 시행한다.",
        ]
        fake_client.add_statute(labor_act(payloads, addenda=addenda))

        report = make_service().run_priority()

        assert report.scheduled_changes == 1


class TestFailureIsolation:
    """One failing statute never aborts the batch."""

    def test_failed_statute_is_counted(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        civil = payloads.detail("001706", "민법", [payloads.article("1", "제1조(법원)")])
        fake_client.add_statute(civil)
        fake_client.failing_ids.add("001706")

        report = make_service(priority_laws=["민법", "근로기준법"]).run_priority()

        assert report.status == SyncStatus.PARTIAL
        assert report.errors == 1
        assert report.statutes_processed == 1
        assert report.failures[0][0] == "민법"
        assert store.get_statute_by_mst("001872") is not None
        assert store.get_statute_by_mst("001706") is None

    def test_unknown_name_is_counted(self, fake_client, payloads, make_service):
        report = make_service().run_priority(["없는법"])

        assert report.status == SyncStatus.FAILED
        assert report.errors == 1
        assert exit_code(report) == 1

    def test_find_statute_prefers_exact_name(self, fake_client, make_service):
        fake_client.search_results["근로기준법"] = [
            StatuteListItem(law_id="003789", name="근로기준법 시행령"),
            StatuteListItem(law_id="001872", name="근로기준법"),
        ]
        assert make_service().find_statute("근로기준법").law_id == "001872"

    def test_find_statute_not_found(self, make_service):
        with pytest.raises(NotFoundError):
            make_service().find_statute("없는법")

    def test_duplicate_article_numbers_warn(self, fake_client, payloads, make_service):
        duplicate = payloads.article("23", "제23조(중복)")
        fake_client.add_statute(labor_act(payloads, extra_articles=[duplicate]))

        report = make_service().run_priority()

        assert report.status == SyncStatus.SUCCESS
        assert len(report.warnings) == 1
        assert report.warnings[0].article_no == "제23조"


class TestRunControl:
    """Cancellation, throttling and bookkeeping."""

    def test_should_stop_interrupts(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))

        report = make_service(should_stop=lambda: True).run_priority()

        assert report.status == SyncStatus.INTERRUPTED
        assert report.statutes_processed == 0
        assert exit_code(report) == 130

    def test_delay_between_statutes(self, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        fake_client.add_statute(payloads.detail("001706", "민법", [payloads.article("1", "제1조(법원)")]))
        sleeps = []

        make_service(api_delay=0.5, sleep=sleeps.append).run_priority(["근로기준법", "민법"])

        assert sleeps == [0.5]

    def test_run_recorded(self, store, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))

        make_service().run_priority()

        run = store.last_sync_run(SyncType.PRIORITY)
        assert run.status == SyncStatus.SUCCESS
        assert run.statutes_added == 1
        assert run.completed_at is not None

    def test_report_to_dict(self):
        report = SyncReport(sync_type=SyncType.DAILY, status=SyncStatus.PARTIAL)
        report.fail("민법", TransientUpstreamError("timeout"))
        data = report.to_dict()
        assert data["sync_type"] == "DAILY"
        assert data["status"] == "PARTIAL"
        assert data["failures"] == [{"statute": "민법", "error": "timeout"}]


class TestSourcing:
    """Daily, recent and catalog statute lists."""

    def test_daily_skips_priority_names(self, fake_client, payloads, make_service):
        labor = fake_client.add_statute(labor_act(payloads))
        civil = fake_client.add_statute(
            payloads.detail("001706", "민법", [payloads.article("1", "제1조(법원)")])
        )
        fake_client.recent = [labor, civil]

        report = make_service().run_daily()

        assert report.status == SyncStatus.SUCCESS
        assert report.total_statutes == 2
        assert fake_client.detail_calls == ["001872", "001706"]

    def test_daily_survives_recent_scan_failure(self, fake_client, payloads, make_service):
        fake_client.add_statute(labor_act(payloads))
        fake_client.recent_error = TransientUpstreamError("timeout")

        report = make_service().run_daily()

        assert report.statutes_processed == 1
        assert report.errors == 1
        assert report.status == SyncStatus.PARTIAL

    def test_recent_list_failure_fails_run(self, fake_client, make_service):
        fake_client.recent_error = TransientUpstreamError("timeout")

        report = make_service().run_recent(days=7)

        assert report.status == SyncStatus.FAILED
        assert report.error_message is not None

    def test_catalog_stops_at_reported_total(self, fake_client, payloads, make_service):
        items = [
            fake_client.add_statute(payloads.detail(law_id, name, [payloads.article("1", "제1조(목적)")]))
            for law_id, name in (("1", "가법"), ("2", "나법"), ("3", "다법"))
        ]
        fake_client.pages = [items[:2], items[2:], items]
        fake_client.total = 3

        report = make_service().run_catalog(max_pages=10)

        assert report.total_statutes == 3
        assert report.statutes_added == 3
        assert fake_client.page_calls == [1, 2]

    def test_catalog_stops_on_empty_page(self, fake_client, payloads, make_service):
        item = fake_client.add_statute(payloads.detail("1", "가법", [payloads.article("1", "제1조(목적)")]))
        fake_client.pages = [[item]]
        fake_client.total = 50

        report = make_service().run_catalog(max_pages=10)

        assert report.total_statutes == 1
        assert fake_client.page_calls == [1, 2]

    def test_catalog_respects_max_pages(self, fake_client, payloads, make_service):
        items = [
            fake_client.add_statute(payloads.detail(str(i), f"법{i}", [payloads.article("1", "제1조(목적)")]))
            for i in range(1, 4)
        ]
        fake_client.pages = [[item] for item in items]
        fake_client.total = 3

        report = make_service().run_catalog(max_pages=2)

        assert report.total_statutes == 2
        assert fake_client.page_calls == [1, 2]

    def test_run_sync_dispatch(self, store, fake_client, payloads):
        fake_client.add_statute(labor_act(payloads))
        report = run_sync(
            "priority",
            store,
            fake_client,
            names=["근로기준법"],
            api_delay=0,
            show_progress=False,
            clock=lambda: TODAY,
        )
        assert report.sync_type == SyncType.PRIORITY
        assert report.status == SyncStatus.SUCCESS

        with pytest.raises(ValueError):
            run_sync("weekly", store, fake_client)


class TestProgressLines:
    """Periodic progress lines carry running totals."""

    def test_progress_line_has_article_and_diff_counts(self, fake_client, payloads, make_service, caplog):
        fake_client.add_statute(labor_act(payloads))
        caplog.set_level(logging.INFO, logger="korea_law.utils.progress")

        make_service(progress_every=1).run_priority()

        lines = [r.getMessage() for r in caplog.records if "Progress:" in r.getMessage()]
        assert len(lines) == 1
        assert "1/1 (100.0%)" in lines[0]
        assert "ok 1, failed 0, added 4, updated 0, diffs 0" in lines[0]

    def test_running_counts(self):
        report = SyncReport(sync_type=SyncType.PRIORITY, articles_added=3, articles_updated=2, diffs_detected=2)
        assert report.running_counts() == {"added": 3, "updated": 2, "diffs": 2}
