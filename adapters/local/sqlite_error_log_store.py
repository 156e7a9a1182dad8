"""
Local Error Log Store — SQLite.

For local development and tests. No DynamoDB dependency.
"""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from uem.interfaces.error_log_store import ErrorLogStore, ErrorLogNotFound
from uem.models.log_record import ErrorLogRecord

_COLUMNS = [
    "id", "code", "severity", "blocking", "dev_message", "user_message",
    "http_status_code", "display_target", "context",
    "exception_class", "exception_message", "exception_file", "exception_line",
    "exception_trace", "request_method", "request_url", "user_agent",
    "ip_address", "user_id", "resolved", "resolved_at", "resolved_by",
    "resolution_notes", "notified", "created_at",
]


class SQLiteErrorLogStore(ErrorLogStore):
    """SQLite-backed error log store."""

    def __init__(self, db_path: str = "data/uem.db"):
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS error_logs (
                    id TEXT PRIMARY KEY,
                    code TEXT NOT NULL,
                    severity TEXT NOT NULL,
                    blocking TEXT NOT NULL,
                    dev_message TEXT NOT NULL DEFAULT '',
                    user_message TEXT NOT NULL DEFAULT '',
                    http_status_code INTEGER NOT NULL DEFAULT 500,
                    display_target TEXT NOT NULL DEFAULT 'div',
                    context TEXT NOT NULL DEFAULT '{}',
                    exception_class TEXT NOT NULL DEFAULT '',
                    exception_message TEXT NOT NULL DEFAULT '',
                    exception_file TEXT NOT NULL DEFAULT '',
                    exception_line INTEGER,
                    exception_trace TEXT NOT NULL DEFAULT '',
                    request_method TEXT NOT NULL DEFAULT '',
                    request_url TEXT NOT NULL DEFAULT '',
                    user_agent TEXT NOT NULL DEFAULT '',
                    ip_address TEXT NOT NULL DEFAULT '',
                    user_id TEXT,
                    resolved INTEGER NOT NULL DEFAULT 0,
                    resolved_at TEXT NOT NULL DEFAULT '',
                    resolved_by TEXT NOT NULL DEFAULT '',
                    resolution_notes TEXT NOT NULL DEFAULT '',
                    notified INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_error_logs_code ON error_logs (code)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_error_logs_created ON error_logs (created_at)"
            )

    def add(self, record: ErrorLogRecord) -> ErrorLogRecord:
        if not record.id:
            record.id = uuid.uuid4().hex
        if not record.created_at:
            record.created_at = datetime.now(timezone.utc).isoformat()

        placeholders = ", ".join("?" for _ in _COLUMNS)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                f"INSERT INTO error_logs ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                self._record_to_row(record),
            )
        return record

    def get(self, record_id: str) -> ErrorLogRecord:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM error_logs WHERE id = ?",
                (record_id,),
            ).fetchone()
        if not row:
            raise ErrorLogNotFound(f"Error log '{record_id}' not found")
        return self._row_to_record(row)

    def update(self, record: ErrorLogRecord) -> None:
        assignments = ", ".join(f"{c} = ?" for c in _COLUMNS[1:])
        row = self._record_to_row(record)
        with sqlite3.connect(self.db_path) as conn:
            cur = conn.execute(
                f"UPDATE error_logs SET {assignments} WHERE id = ?",
                (*row[1:], record.id),
            )
        if cur.rowcount == 0:
            raise ErrorLogNotFound(f"Error log '{record.id}' not found")

    def delete(self, record_id: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            cur = conn.execute("DELETE FROM error_logs WHERE id = ?", (record_id,))
        if cur.rowcount == 0:
            raise ErrorLogNotFound(f"Error log '{record_id}' not found")

    def list_errors(
        self,
        code: Optional[str] = None,
        severity: Optional[str] = None,
        resolved: Optional[bool] = None,
        since: Optional[str] = None,
        limit: int = 50,
    ) -> list[ErrorLogRecord]:
        clauses, params = [], []
        if code:
            clauses.append("code = ?")
            params.append(code)
        if severity:
            clauses.append("severity = ?")
            params.append(severity)
        if resolved is not None:
            clauses.append("resolved = ?")
            params.append(1 if resolved else 0)
        if since:
            clauses.append("created_at >= ?")
            params.append(since)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM error_logs {where} "
                f"ORDER BY created_at DESC LIMIT ?",
                (*params, limit),
            ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def purge_resolved(self, older_than: str) -> int:
        with sqlite3.connect(self.db_path) as conn:
            cur = conn.execute(
                "DELETE FROM error_logs WHERE resolved = 1 AND created_at < ?",
                (older_than,),
            )
        return cur.rowcount

    def top_codes(self, limit: int = 10) -> list[tuple[str, int]]:
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT code, COUNT(*) AS n FROM error_logs "
                "GROUP BY code ORDER BY n DESC, code LIMIT ?",
                (limit,),
            ).fetchall()
        return [(code, n) for code, n in rows]

    # --- Serialization ---

    def _record_to_row(self, record: ErrorLogRecord) -> tuple:
        data = record.to_dict()
        data["context"] = json.dumps(record.context, default=str)
        data["resolved"] = 1 if record.resolved else 0
        data["notified"] = 1 if record.notified else 0
        return tuple(data[c] for c in _COLUMNS)

    def _row_to_record(self, row: tuple) -> ErrorLogRecord:
        data = dict(zip(_COLUMNS, row))
        data["context"] = json.loads(data["context"] or "{}")
        data["resolved"] = bool(data["resolved"])
        data["notified"] = bool(data["notified"])
        return ErrorLogRecord.from_dict(data)
