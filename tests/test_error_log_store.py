"""
SQLite error log store tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adapters.local.sqlite_error_log_store import SQLiteErrorLogStore
from uem.interfaces.error_log_store import ErrorLogNotFound
from uem.models.log_record import ErrorLogRecord


@pytest.fixture
def store(tmp_path):
    return SQLiteErrorLogStore(str(tmp_path / "nested" / "uem.db"))


def _record(code: str, created_at: str, severity: str = "error", **kwargs) -> ErrorLogRecord:
    return ErrorLogRecord(
        code=code,
        severity=severity,
        blocking="semi-blocking",
        created_at=created_at,
        **kwargs,
    )


def test_add_assigns_id_and_round_trips(store):
    saved = store.add(ErrorLogRecord(
        code="UCM_NOT_FOUND",
        severity="error",
        blocking="not-blocking",
        context={"key": "site.name", "nested": {"n": 1}},
        exception_line=42,
    ))

    assert saved.id
    assert saved.created_at
    loaded = store.get(saved.id)
    assert loaded == saved
    assert loaded.context["nested"] == {"n": 1}
    assert loaded.resolved is False


def test_get_missing_raises(store):
    with pytest.raises(ErrorLogNotFound):
        store.get("missing")


def test_update_and_delete(store):
    saved = store.add(_record("A", "2026-01-01T00:00:00+00:00"))
    saved.mark_resolved("ops", "fixed config")
    saved.notified = True
    store.update(saved)

    loaded = store.get(saved.id)
    assert loaded.resolved is True
    assert loaded.resolved_by == "ops"
    assert loaded.resolved_at
    assert loaded.notified is True

    store.delete(saved.id)
    with pytest.raises(ErrorLogNotFound):
        store.delete(saved.id)
    with pytest.raises(ErrorLogNotFound):
        store.update(saved)


def test_list_filters_and_orders_newest_first(store):
    store.add(_record("A", "2026-01-01T00:00:00+00:00"))
    store.add(_record("B", "2026-01-02T00:00:00+00:00", severity="critical"))
    resolved = store.add(_record("A", "2026-01-03T00:00:00+00:00"))
    resolved.mark_resolved()
    store.update(resolved)

    assert [r.code for r in store.list_errors()] == ["A", "B", "A"]
    assert [r.code for r in store.list_errors(code="A")] == ["A", "A"]
    assert [r.code for r in store.list_errors(severity="critical")] == ["B"]
    assert [r.id for r in store.list_errors(resolved=True)] == [resolved.id]
    assert len(store.list_errors(resolved=False)) == 2
    assert len(store.list_errors(since="2026-01-02T00:00:00+00:00")) == 2
    assert len(store.list_errors(limit=1)) == 1


def test_purge_only_removes_old_resolved(store):
    old_resolved = store.add(_record("A", "2025-01-01T00:00:00+00:00"))
    old_resolved.mark_resolved()
    store.update(old_resolved)
    store.add(_record("A", "2025-01-01T00:00:00+00:00"))
    new_resolved = store.add(_record("A", "2026-06-01T00:00:00+00:00"))
    new_resolved.mark_resolved()
    store.update(new_resolved)

    assert store.purge_resolved("2026-01-01T00:00:00+00:00") == 1
    assert len(store.list_errors()) == 2


def test_top_codes_and_similar(store):
    for day in range(1, 4):
        store.add(_record("DATABASE_ERROR", f"2026-01-0{day}T00:00:00+00:00"))
    first = store.add(_record("JSON_ERROR", "2026-01-04T00:00:00+00:00"))

    assert store.top_codes() == [("DATABASE_ERROR", 3), ("JSON_ERROR", 1)]
    assert store.top_codes(limit=1) == [("DATABASE_ERROR", 3)]

    db_record = store.list_errors(code="DATABASE_ERROR")[0]
    similar = store.similar(db_record)
    assert len(similar) == 2
    assert db_record.id not in [r.id for r in similar]
    assert store.similar(first) == []


def test_context_summary():
    assert _record("A", "").context_summary() == "No context"
    record = _record("A", "", context={"text": "x" * 200})
    summary = record.context_summary(max_length=20)
    assert len(summary) == 23
    assert summary.endswith("...")
