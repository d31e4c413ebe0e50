import logging
from typing import Any, Dict, Optional

from portal.database import SessionLocal
from portal.models.notification import Notification

logger = logging.getLogger("portal.notify")


class Notifier:
    """
    Fire-and-forget in-app notifications.

    Runs on its own session, after the request's own transaction has
    committed. A failure here is logged and dropped; it never reaches the
    caller.
    """

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def send(
        self,
        user_id: int,
        title: str,
        message: str,
        category: str = "academic",
        priority: str = "medium",
        action_url: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        db = None
        try:
            db = self._session_factory()
            db.add(Notification(
                user_id=user_id,
                title=title,
                message=message,
                category=category,
                priority=priority,
                action_url=action_url,
                data=data or {},
            ))
            db.commit()
            logger.info("notification sent user=%s title=%r", user_id, title)
        except Exception:
            if db is not None:
                db.rollback()
            logger.exception("notification failed user=%s title=%r", user_id, title)
        finally:
            if db is not None:
                db.close()


def get_notifier() -> Notifier:
    return Notifier()
