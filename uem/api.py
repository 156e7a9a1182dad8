"""
UEM HTTP API — definitions endpoint, fault-injection controls, error log.

Framework-free: handle_request() returns (response_dict, status_code) and
is mounted by adapters/local/dev_server.py.

Routes:
  GET    /api/error-definitions              {errors, types, blocking_levels}
  GET    /api/error-codes                    known codes
  GET    /api/simulations                    active fault-injection conditions
  POST   /api/simulations/reset
  POST   /api/simulations/{code}/activate
  POST   /api/simulations/{code}/deactivate
  GET    /api/errors                         ?code= &severity= &unresolved=1 &limit=
  GET    /api/errors/statistics
  GET    /api/errors/{id}
  DELETE /api/errors/{id}
  POST   /api/errors/{id}/resolve            {resolved_by, notes}
  POST   /api/errors/{id}/unresolve
  POST   /api/errors/bulk-resolve            {ids, resolved_by, notes}
  POST   /api/errors/purge                   {days}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from uem.interfaces.error_log_store import ErrorLogNotFound
from uem.bootstrap import UEMServices

logger = logging.getLogger("uem.api")


class ErrorAdminAPI:
    """Routes UEM API requests."""

    def __init__(self, services: UEMServices):
        self.services = services
        self.registry = services.registry
        self.conditions = services.conditions
        self.store = services.store

    def handle_request(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        query: dict | None = None,
    ) -> tuple[dict, int]:
        """Route a request. Returns (response_dict, status_code)."""
        body = body or {}
        query = query or {}
        parts = [p for p in path.split("/") if p]
        try:
            if method == "GET" and path == "/api/error-definitions":
                return self.registry.to_payload(), 200
            if method == "GET" and path == "/api/error-codes":
                return {"codes": self.registry.codes()}, 200
            if path.startswith("/api/simulations"):
                return self._simulations(method, parts)
            if path.startswith("/api/errors"):
                return self._errors(method, parts, body, query)
            return {"error": "Not found"}, 404

        except ErrorLogNotFound as e:
            return {"error": str(e)}, 404
        except (ValueError, KeyError) as e:
            return {"error": f"Bad request: {e}"}, 400
        except Exception as e:
            logger.exception("UEM API error")
            return {"error": str(e)}, 500

    # --- Fault injection ---

    def _simulations(self, method: str, parts: list[str]) -> tuple[dict, int]:
        if self.services.settings.is_production:
            return {"error": "Error simulation is disabled in production"}, 403

        # parts: ["api", "simulations", ...]
        if method == "GET" and len(parts) == 2:
            return {
                "enabled": self.conditions.is_testing_enabled(),
                "active": self.conditions.active_conditions(),
            }, 200
        if method == "POST" and parts[2:] == ["reset"]:
            self.conditions.reset_all()
            logger.info("All error simulations reset")
            return {"success": True}, 200
        if method == "POST" and len(parts) == 4 and parts[3] in ("activate", "deactivate"):
            code = parts[2]
            if not self.registry.has(code):
                return {"error": f"Unknown error code '{code}'"}, 404
            active = parts[3] == "activate"
            self.conditions.set_condition(code, active)
            logger.info(f"Simulation {code} {'activated' if active else 'deactivated'}")
            return {"success": True, "code": code, "active": active}, 200
        return {"error": "Not found"}, 404

    # --- Error log ---

    def _errors(
        self, method: str, parts: list[str], body: dict, query: dict
    ) -> tuple[dict, int]:
        if self.store is None:
            return {"error": "Error log persistence is not configured"}, 503

        rest = parts[2:]
        if method == "GET" and not rest:
            return self._list_errors(query)
        if method == "GET" and rest == ["statistics"]:
            return self._statistics()
        if method == "POST" and rest == ["bulk-resolve"]:
            return self._bulk_resolve(body)
        if method == "POST" and rest == ["purge"]:
            return self._purge(body)
        if method == "GET" and len(rest) == 1:
            record = self.store.get(rest[0])
            similar = self.store.similar(record, limit=5)
            return {
                "error": record.to_dict(),
                "similar": [r.id for r in similar],
            }, 200
        if method == "DELETE" and len(rest) == 1:
            self.store.delete(rest[0])
            return {"success": True}, 200
        if method == "POST" and len(rest) == 2 and rest[1] == "resolve":
            record = self.store.get(rest[0])
            record.mark_resolved(body.get("resolved_by", ""), body.get("notes", ""))
            self.store.update(record)
            return {"error": record.to_dict()}, 200
        if method == "POST" and len(rest) == 2 and rest[1] == "unresolve":
            record = self.store.get(rest[0])
            record.mark_unresolved()
            self.store.update(record)
            return {"error": record.to_dict()}, 200
        return {"error": "Not found"}, 404

    def _list_errors(self, query: dict) -> tuple[dict, int]:
        resolved: Optional[bool] = None
        if query.get("unresolved") in ("1", "true"):
            resolved = False
        elif query.get("resolved") in ("1", "true"):
            resolved = True
        records = self.store.list_errors(
            code=query.get("code") or None,
            severity=query.get("severity") or None,
            resolved=resolved,
            since=query.get("since") or None,
            limit=int(query.get("limit", 50)),
        )
        return {
            "errors": [
                {**r.to_dict(), "context_summary": r.context_summary()} for r in records
            ],
            "count": len(records),
        }, 200

    def _statistics(self) -> tuple[dict, int]:
        records = self.store.list_errors(limit=10_000)
        by_severity: dict[str, int] = {}
        for r in records:
            by_severity[r.severity] = by_severity.get(r.severity, 0) + 1
        return {
            "total": len(records),
            "unresolved": sum(1 for r in records if not r.resolved),
            "by_severity": by_severity,
            "top_codes": [
                {"code": code, "count": n} for code, n in self.store.top_codes(10)
            ],
        }, 200

    def _bulk_resolve(self, body: dict) -> tuple[dict, int]:
        ids = body["ids"]
        resolved = 0
        for record_id in ids:
            try:
                record = self.store.get(record_id)
            except ErrorLogNotFound:
                logger.warning(f"Bulk resolve: error log {record_id} not found")
                continue
            record.mark_resolved(body.get("resolved_by", ""), body.get("notes", ""))
            self.store.update(record)
            resolved += 1
        return {"success": True, "resolved": resolved}, 200

    def _purge(self, body: dict) -> tuple[dict, int]:
        days = int(body.get("days", 30))
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        deleted = self.store.purge_resolved(cutoff)
        logger.info(f"Purged {deleted} resolved error logs older than {days} days")
        return {"success": True, "deleted": deleted}, 200
