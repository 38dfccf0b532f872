from fastapi import APIRouter

from wwallet.api.responses import dump, ok
from wwallet.schemas.notifications import NotificationOut
from wwallet.services import notifications
from wwallet.services.auth import current_user_dependency, db_dependency

router = APIRouter(prefix="/api/notifications")


@router.get("")
def list_notifications(db: db_dependency, user: current_user_dependency):
    return [dump(NotificationOut, n) for n in notifications.list_for_user(db, user.id)]


@router.get("/unread-count")
def unread_count(db: db_dependency, user: current_user_dependency):
    return {"count": notifications.unread_count(db, user.id)}


@router.post("/mark-all-read")
def mark_all_read(db: db_dependency, user: current_user_dependency):
    updated = notifications.mark_all_read(db, user.id)
    return ok(updated=updated)
