from __future__ import annotations

from typing import Any, Mapping

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.services.customer_store import storage_guard

SENSITIVE_KEYS = {
    "password",
    "token",
    "phone",
    "phone_number",
    "phoneNumber",
    "name",
    "customer_name",
}

ADMIN_ACTOR = "admin"


def _sanitize(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        clean: dict[str, Any] = {}
        for k, v in obj.items():
            if k in SENSITIVE_KEYS:
                clean[k] = "<redacted>"
            else:
                clean[k] = _sanitize(v)
        return clean
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    return obj


def write_audit_log(
    db: Session,
    *,
    actor: str = "",
    action_type: str,
    target_type: str = "",
    target_id: str = "",
    summary: str = "",
    diff_json: Mapping[str, Any] | None = None,
    request: Request | None = None,
) -> None:
    ip = ""
    ua = ""
    if request is not None:
        ip = request.client.host if request.client else ""
        ua = request.headers.get("user-agent", "")[:255]

    log = AuditLog(
        actor=actor,
        action_type=action_type,
        target_type=target_type,
        target_id=str(target_id),
        summary=summary,
        diff_json=_sanitize(dict(diff_json)) if diff_json is not None else None,
        ip_address=ip,
        user_agent=ua,
    )
    with storage_guard(db, "write_audit_log"):
        db.add(log)
        db.commit()


def list_audit_logs(db: Session, *, action_type: str | None = None, limit: int = 500) -> list[AuditLog]:
    q = select(AuditLog).order_by(AuditLog.created_at.desc())
    if action_type:
        q = q.where(AuditLog.action_type == action_type)
    with storage_guard(db, "list_audit_logs"):
        return list(db.execute(q.limit(limit)).scalars().all())
