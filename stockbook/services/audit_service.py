"""
Audit Service - append-only change log
"""
from sqlalchemy.orm import Session
from decimal import Decimal
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from stockbook.models import AuditLog


def _jsonable(value: Any) -> Any:
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def snapshot(obj: Any, fields: Iterable[str]) -> Dict[str, Any]:
    """Plain-dict copy of selected attributes, safe for a JSON column"""
    return {name: _jsonable(getattr(obj, name, None)) for name in fields}


class AuditService:

    @staticmethod
    def log(
        db: Session,
        table_name: str,
        record_id: Any,
        action: str,
        performed_by: Optional[UUID] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """Add an audit row to the caller's transaction (caller commits)"""
        entry = AuditLog(
            table_name=table_name,
            record_id=str(record_id),
            action=action,
            performed_by=performed_by,
            before_data=before,
            after_data=after,
        )
        db.add(entry)
        return entry
