"""
In-app notifications.

Written in the same transaction as the change that triggers them, so a
notification never exists for an application that was rolled back.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from app.db.postgres import fetch_all

APPLICATION_RECEIVED = "application_received"
APPLICATION_STATUS = "application_status"


def create_notification(db: Session, user_id: str, kind: str, title: str, message: str,
                        related_application_id: Optional[str] = None) -> str:
    notification_id = str(uuid.uuid4())
    db.execute(
        text("""
            INSERT INTO notifications (id, user_id, type, title, message, related_application_id, is_read)
            VALUES (:id, :user_id, :type, :title, :message, :app_id, :is_read)
        """),
        {
            "id": notification_id, "user_id": user_id, "type": kind, "title": title,
            "message": message, "app_id": related_application_id, "is_read": False,
        },
    )
    return notification_id


def list_notifications(db: Session, user_id: str, limit: int = 20, unread_only: bool = False) -> List[Dict[str, Any]]:
    """Newest first."""
    params: Dict[str, Any] = {"uid": user_id, "limit": limit}
    unread = ""
    if unread_only:
        unread = "AND is_read = :unread"
        params["unread"] = False
    rows = fetch_all(
        db,
        f"""
        SELECT id, user_id, type, title, message, related_application_id, is_read, created_at
        FROM notifications WHERE user_id = :uid {unread}
        ORDER BY created_at DESC LIMIT :limit
        """,
        params,
    )
    for r in rows:
        r["is_read"] = bool(r["is_read"])
    return rows


def mark_read(db: Session, user_id: str, notification_ids: Optional[List[str]] = None) -> int:
    """Mark the given notifications read, or all of the user's unread ones when no ids are given."""
    if notification_ids is None:
        result = db.execute(
            text("UPDATE notifications SET is_read = :read WHERE user_id = :uid AND is_read = :unread"),
            {"read": True, "unread": False, "uid": user_id},
        )
    else:
        stmt = text(
            "UPDATE notifications SET is_read = :read WHERE user_id = :uid AND id IN :ids"
        ).bindparams(bindparam("ids", expanding=True))
        result = db.execute(stmt, {"read": True, "uid": user_id, "ids": notification_ids})
    return result.rowcount
