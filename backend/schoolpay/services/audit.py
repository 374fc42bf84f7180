from __future__ import annotations

import json
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from schoolpay.extensions import db
from schoolpay.models import AuditLog

SENSITIVE_FIELDS = (
    "password", "token", "secret", "key", "auth",
    "credit_card", "ssn", "phone", "email",
)


def sanitize(details: Any) -> Any:
    if isinstance(details, dict):
        clean = {}
        for k, v in details.items():
            lowered = str(k).lower()
            if any(s in lowered for s in SENSITIVE_FIELDS):
                clean[k] = "[REDACTED]"
            else:
                clean[k] = sanitize(v)
        return clean
    if isinstance(details, list):
        return [sanitize(v) for v in details]
    return details


def log_action(
    action: str,
    *,
    school_id: int | None = None,
    actor_user_id: int | None = None,
    table_name: str | None = None,
    record_id: Any = None,
    meta: dict | None = None,
    commit: bool = True,
) -> AuditLog | None:
    """Write an audit row.

    With commit=False the row joins the caller's transaction. With commit=True
    failures are logged and rolled back, never raised.
    """
    row = AuditLog(
        school_id=school_id,
        actor_user_id=actor_user_id,
        action=action[:64],
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        meta=json.dumps(sanitize(meta or {}), default=str),
    )
    db.session.add(row)
    if not commit:
        return row
    try:
        db.session.commit()
        return row
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("audit log write failed action=%s", action)
        return None
