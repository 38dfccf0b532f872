import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from wwallet.db.session import atomic
from wwallet.models.notification import Notification

logger = logging.getLogger(__name__)


def notify(db: Session, user_id: UUID, type: str, title: str, message: str) -> Notification:
    """Queue a notification in the caller's transaction."""
    notification = Notification(user_id=user_id, type=type, title=title, message=message)
    db.add(notification)
    logger.debug("Notification %s queued for %s", type, user_id)
    return notification


def list_for_user(db: Session, user_id: UUID, limit: int = 50) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def unread_count(db: Session, user_id: UUID) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    return db.execute(stmt).scalar_one()


def mark_all_read(db: Session, user_id: UUID) -> int:
    with atomic(db):
        result = db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        updated = result.rowcount
    return updated
