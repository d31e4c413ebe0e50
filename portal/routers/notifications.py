from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.notification import Notification
from portal.schemas.notification import NotificationListOut, NotificationOut
from portal.utils.auth import get_current_user

import logging
logger = logging.getLogger("portal.notifications")

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/me", response_model=NotificationListOut)
def my_notifications(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    unread_only: bool = Query(False),
    category: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    base = db.query(Notification).filter(Notification.user_id == user.id)
    unread = base.filter(Notification.is_read.is_(False)).count()

    query = base
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    if category:
        query = query.filter(Notification.category == category)

    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return NotificationListOut(
        items=[NotificationOut.model_validate(n) for n in rows],
        total=total,
        unread=unread,
        page=page,
        page_size=page_size,
    )


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_read(notification_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    n = db.get(Notification, notification_id)
    if not n or n.user_id != user.id:
        raise HTTPException(status_code=404, detail={"kind": "not_found", "message": "Notification not found"})

    if not n.is_read:
        n.is_read = True
        n.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(n)
    return n


@router.post("/me/read-all")
def mark_all_read(db: Session = Depends(get_db), user=Depends(get_current_user)):
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
        .update(
            {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    db.commit()
    logger.info("user %s marked %s notifications read", user.id, updated)
    return {"updated": updated}
