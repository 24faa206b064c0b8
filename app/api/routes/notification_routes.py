"""
Notification Routes

GET /notifications  - The caller's notifications (?limit=, ?unread_only=)
PUT /notifications  - Mark some or all notifications read
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import ApiError
from app.db.postgres import get_db
from app.services.notification_service import list_notifications, mark_read
from app.schemas.schemas import AuthUser, NotificationUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
def get_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        notifications = list_notifications(db, user.id, limit=limit, unread_only=unread_only)
    except SQLAlchemyError as e:
        logger.error("Notifications fetch failed for %s: %s", user.id, e)
        raise ApiError.error(500, "Failed to fetch notifications", details=str(e))

    return {"success": True, "notifications": notifications}


@router.put("")
def mark_notifications_read(
    data: NotificationUpdateRequest,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if data.mark_all_read:
        ids = None
    elif data.notification_ids:
        ids = data.notification_ids
    else:
        raise ApiError.error(400, "notification_ids or mark_all_read required")

    try:
        mark_read(db, user.id, ids)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Notification update failed for %s: %s", user.id, e)
        raise ApiError.error(500, "Failed to update notifications", details=str(e))

    return {"success": True, "message": "Notifications marked as read"}
