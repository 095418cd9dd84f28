"""Tests for smartmark.models -- url normalization and record validation."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from smartmark.errors import InvalidBookmarkError, MalformedRecordError
from smartmark.models import (
    Bookmark,
    Identity,
    new_temp_id,
    normalize_url,
    sort_newest_first,
)

UTC = timezone.utc


class TestNormalizeUrl:
    def test_bare_host_gets_https(self):
        assert normalize_url("example.com") == "https://example.com"

    def test_https_passes_through(self):
        assert normalize_url("https://example.com") == "https://example.com"

    def test_http_passes_through(self):
        assert normalize_url("http://example.com/a?b=1") == "http://example.com/a?b=1"

    def test_scheme_check_is_case_insensitive(self):
        assert normalize_url("HTTPS://Example.com") == "HTTPS://Example.com"

    def test_whitespace_stripped(self):
        assert normalize_url("  bbc.com  ") == "https://bbc.com"

    @pytest.mark.parametrize(
        "raw", ["example.com", "https://example.com", "www.bbc.co.uk/news", "http://x"]
    )
    def test_idempotent(self, raw):
        once = normalize_url(raw)
        assert normalize_url(once) == once


class TestTempId:
    def test_prefixed(self):
        assert new_temp_id().startswith("tmp-")

    def test_random(self):
        assert len({new_temp_id() for _ in range(50)}) == 50


class TestOptimistic:
    def test_builds_pending_record(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        b = Bookmark.optimistic(" News ", "bbc.com", "user-1", now=now)
        assert b.title == "News"
        assert b.url == "https://bbc.com"
        assert b.user_id == "user-1"
        assert b.created_at == now
        assert b.pending is True
        assert b.id.startswith("tmp-")

    def test_defaults_to_aware_now(self):
        b = Bookmark.optimistic("News", "bbc.com", "user-1")
        assert b.created_at.tzinfo is not None

    @pytest.mark.parametrize(
        "title,url", [("", "bbc.com"), ("  ", "bbc.com"), ("News", " ")]
    )
    def test_blank_input_rejected(self, title, url):
        with pytest.raises(InvalidBookmarkError):
            Bookmark.optimistic(title, url, "user-1")

    def test_insert_payload_omits_id_and_timestamp(self):
        b = Bookmark.optimistic("News", "bbc.com", "user-1")
        assert b.insert_payload() == {
            "title": "News",
            "url": "https://bbc.com",
            "user_id": "user-1",
        }


class TestFromRow:
    def _row(self, **overrides):
        row = {
            "id": "0b5c6f1e-7d1a-4c1e-9a57-3f7c2b1d9e00",
            "title": "Docs",
            "url": "https://docs.python.org",
            "user_id": "user-1",
            "created_at": "2026-01-15T10:30:00.123456+00:00",
        }
        row.update(overrides)
        return row

    def test_valid_row(self):
        b = Bookmark.from_row(self._row())
        assert b.title == "Docs"
        assert b.pending is False
        assert b.created_at == datetime(
            2026, 1, 15, 10, 30, 0, 123456, tzinfo=timezone.utc
        )

    def test_zulu_timestamp(self):
        b = Bookmark.from_row(self._row(created_at="2026-01-15T10:30:00Z"))
        assert b.created_at.tzinfo is not None
        assert b.created_at.hour == 10

    def test_naive_timestamp_taken_as_utc(self):
        b = Bookmark.from_row(self._row(created_at=datetime(2026, 1, 15, 10, 30)))
        assert b.created_at.tzinfo == timezone.utc

    def test_numeric_id_coerced(self):
        assert Bookmark.from_row(self._row(id=42)).id == "42"

    def test_url_normalized_on_read(self):
        assert Bookmark.from_row(self._row(url="bbc.com")).url == "https://bbc.com"

    @pytest.mark.parametrize("key", ["id", "title", "url", "user_id"])
    def test_missing_field_rejected(self, key):
        row = self._row()
        del row[key]
        with pytest.raises(MalformedRecordError):
            Bookmark.from_row(row)

    def test_empty_title_rejected(self):
        with pytest.raises(MalformedRecordError):
            Bookmark.from_row(self._row(title=""))

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12345])
    def test_bad_timestamp_rejected(self, value):
        with pytest.raises(MalformedRecordError):
            Bookmark.from_row(self._row(created_at=value))

    def test_non_mapping_rejected(self):
        with pytest.raises(MalformedRecordError):
            Bookmark.from_row(["not", "a", "row"])  # type: ignore[arg-type]


class TestSortNewestFirst:
    def test_orders_descending(self):
        rows = [
            Bookmark("a", "A", "https://a", "u", datetime(2026, 1, 1, tzinfo=UTC)),
            Bookmark("c", "C", "https://c", "u", datetime(2026, 3, 1, tzinfo=UTC)),
            Bookmark("b", "B", "https://b", "u", datetime(2026, 2, 1, tzinfo=UTC)),
        ]
        assert [b.id for b in sort_newest_first(rows)] == ["c", "b", "a"]


class TestIdentity:
    def test_from_object(self):
        user = SimpleNamespace(id="u1", email="ada@example.com")
        assert Identity.from_user(user) == Identity("u1", "ada@example.com")

    def test_from_mapping(self):
        assert Identity.from_user({"id": "u1"}) == Identity("u1", None)

    def test_missing_id_rejected(self):
        with pytest.raises(MalformedRecordError):
            Identity.from_user(SimpleNamespace(id=None, email="x@example.com"))
