"""
Error Log Store Interface

Persistence for ErrorLogRecord.
Implementations: SQLiteErrorLogStore (local), DynamoDBErrorLogStore (AWS).
"""

from abc import ABC, abstractmethod
from typing import Optional

from uem.models.log_record import ErrorLogRecord


class ErrorLogStore(ABC):
    """
    Abstract base class for error log persistence.

    Methods are synchronous: records are written from inside the
    dispatcher's handler chain, which runs on the caller's thread.
    """

    @abstractmethod
    def add(self, record: ErrorLogRecord) -> ErrorLogRecord:
        """Persist a new record. Returns it with id and created_at set."""
        ...

    @abstractmethod
    def get(self, record_id: str) -> ErrorLogRecord:
        """Get a record by id. Raises ErrorLogNotFound if missing."""
        ...

    @abstractmethod
    def update(self, record: ErrorLogRecord) -> None:
        """Overwrite an existing record (resolution and notified state)."""
        ...

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Delete a record. Raises ErrorLogNotFound if missing."""
        ...

    @abstractmethod
    def list_errors(
        self,
        code: Optional[str] = None,
        severity: Optional[str] = None,
        resolved: Optional[bool] = None,
        since: Optional[str] = None,
        limit: int = 50,
    ) -> list[ErrorLogRecord]:
        """
        List records, newest first.

        Filters are combined with AND. `since` is an ISO-8601 timestamp.
        """
        ...

    @abstractmethod
    def purge_resolved(self, older_than: str) -> int:
        """Delete resolved records created before `older_than`. Returns count."""
        ...

    def top_codes(self, limit: int = 10) -> list[tuple[str, int]]:
        """Most frequent error codes with their occurrence counts."""
        counts: dict[str, int] = {}
        for record in self.list_errors(limit=10_000):
            counts[record.code] = counts.get(record.code, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return ranked[:limit]

    def similar(self, record: ErrorLogRecord, limit: int = 10) -> list[ErrorLogRecord]:
        """Other records with the same code."""
        return [
            r for r in self.list_errors(code=record.code, limit=limit + 1)
            if r.id != record.id
        ][:limit]


class ErrorLogNotFound(Exception):
    pass
