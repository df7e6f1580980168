"""
pytest configuration shared by all korea-law tests.

Provides an in-memory SQLite store, a fake law.go.kr client and builders
for DRF-shaped JSON payloads.
"""
import copy
from datetime import date
from typing import Dict, List, Optional

import pytest

from korea_law.core.db import create_db_engine
from korea_law.core.exceptions import PermanentUpstreamError, TransientUpstreamError
from korea_law.core.store import LawStore
from korea_law.crawler.payload import PrecedentItem, StatuteDetail, StatuteListItem

TODAY = date(2025, 6, 15)


class PayloadFactory:
    """Builders for lawService.do style payload fragments."""

    @staticmethod
    def item(number: str, content: str, subitems: Optional[List[dict]] = None) -> dict:
        data = {"호번호": number, "호내용": content}
        if subitems:
            data["목"] = subitems
        return data

    @staticmethod
    def subitem(number: str, content: str) -> dict:
        return {"목번호": number, "목내용": content}

    @staticmethod
    def paragraph(number: str, content: str, items: Optional[List[dict]] = None) -> dict:
        data = {"항번호": number, "항내용": content}
        if items:
            # A single item arrives as an object, not a list
            data["호"] = items[0] if len(items) == 1 else items
        return data

    @staticmethod
    def article(
        number: str,
        body: str,
        paragraphs: Optional[List[dict]] = None,
        title: Optional[str] = None,
        kind: str = "조문",
        branch: Optional[str] = None,
    ) -> dict:
        data = {"조문번호": number, "조문내용": body, "조문여부": kind}
        if title:
            data["조문제목"] = title
        if branch:
            data["조문가지번호"] = branch
        if paragraphs:
            data["항"] = paragraphs
        return data

    @staticmethod
    def detail(
        law_id: str,
        name: str,
        articles: List[dict],
        enforcement: str = "20240101",
        promulgation: str = "20231201",
        law_type: str = "법률",
        addenda: Optional[List[str]] = None,
    ) -> dict:
        law = {
            "기본정보": {
                "법령ID": law_id,
                "법령명_한글": name,
                "법종구분": {"content": law_type},
                "소관부처": {"content": "고용노동부"},
                "공포일자": promulgation,
                "시행일자": enforcement,
            },
            "조문": {"조문단위": articles},
        }
        if addenda:
            law["부칙"] = {
                "부칙단위": [{"부칙내용": text, "부칙공포일자": promulgation} for text in addenda]
            }
        return {"법령": law}


class FakeLawApiClient:
    """In-memory stand-in for LawApiClient."""

    def __init__(self):
        self.details: Dict[str, dict] = {}
        self.search_results: Dict[str, List[StatuteListItem]] = {}
        self.recent: List[StatuteListItem] = []
        self.recent_error: Optional[Exception] = None
        self.pages: List[List[StatuteListItem]] = []
        self.total = 0
        self.precedents: Dict[str, List[PrecedentItem]] = {}
        self.failing_ids = set()
        self.failing_queries = set()
        self.detail_calls: List[str] = []
        self.page_calls: List[int] = []

    def add_statute(self, payload: dict) -> StatuteListItem:
        info = payload["법령"]["기본정보"]
        item = StatuteListItem(law_id=info["법령ID"], name=info["법령명_한글"])
        self.details[item.law_id] = payload
        self.search_results.setdefault(item.name, []).append(item)
        return item

    def search_statutes(self, name, display=100):
        return list(self.search_results.get(name, []))

    def search_statutes_page(self, page=1, page_size=100):
        self.page_calls.append(page)
        items = self.pages[page - 1] if page <= len(self.pages) else []
        return list(items), self.total

    def get_recently_amended(self, days=7, today=None):
        if self.recent_error is not None:
            raise self.recent_error
        return list(self.recent)

    def get_statute_detail(self, law_id):
        self.detail_calls.append(law_id)
        if law_id in self.failing_ids:
            raise TransientUpstreamError("Registry returned HTTP 503", status_code=503)
        if law_id not in self.details:
            raise PermanentUpstreamError("Unexpected statute detail payload")
        return StatuteDetail.from_response(copy.deepcopy(self.details[law_id]))

    def search_precedents(self, query, display=100):
        if query in self.failing_queries:
            raise TransientUpstreamError("Registry returned HTTP 502", status_code=502)
        return list(self.precedents.get(query, []))

    def close(self):
        pass


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with the schema created."""
    engine = create_db_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return LawStore(engine)


@pytest.fixture
def fake_client():
    return FakeLawApiClient()


@pytest.fixture
def payloads():
    return PayloadFactory


@pytest.fixture
def today():
    return TODAY
