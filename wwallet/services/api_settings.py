import logging
import secrets
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from wwallet.core.config import settings
from wwallet.db.session import atomic
from wwallet.models.api_settings import ApiSettings

logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 10


def _get(db: Session, user_id: UUID) -> ApiSettings | None:
    return db.execute(
        select(ApiSettings).where(ApiSettings.user_id == user_id)
    ).scalars().first()


def _get_or_add(db: Session, user_id: UUID) -> ApiSettings:
    api_settings = _get(db, user_id)
    if api_settings is None:
        api_settings = ApiSettings(
            user_id=user_id,
            api_enabled=False,
            api_token=None,
            domain=settings.DEFAULT_API_DOMAIN,
        )
        db.add(api_settings)
    return api_settings


def get_or_create(db: Session, user_id: UUID) -> ApiSettings:
    with atomic(db):
        api_settings = _get_or_add(db, user_id)
    return api_settings


def toggle(db: Session, user_id: UUID, enabled: bool) -> ApiSettings:
    with atomic(db):
        api_settings = _get_or_add(db, user_id)
        api_settings.api_enabled = enabled
    logger.info("API payments %s for %s", "enabled" if enabled else "disabled", user_id)
    return api_settings


def _new_token(db: Session) -> str:
    for _ in range(MAX_TOKEN_ATTEMPTS):
        token = secrets.token_urlsafe(24)
        taken = db.execute(select(ApiSettings.id).where(ApiSettings.api_token == token)).first()
        if taken is None:
            return token
    raise RuntimeError("Failed to generate unique token after multiple attempts")


def generate_token(db: Session, user_id: UUID) -> ApiSettings:
    """Issue a new bearer token; the previous one stops working."""
    with atomic(db):
        api_settings = _get_or_add(db, user_id)
        api_settings.api_token = _new_token(db)
    logger.info("API token rotated for %s", user_id)
    return api_settings


def revoke_token(db: Session, user_id: UUID) -> ApiSettings:
    with atomic(db):
        api_settings = _get_or_add(db, user_id)
        api_settings.api_token = None
        api_settings.api_enabled = False
    logger.info("API token revoked for %s", user_id)
    return api_settings


def update_domain(db: Session, user_id: UUID, domain: str) -> ApiSettings:
    with atomic(db):
        api_settings = _get_or_add(db, user_id)
        api_settings.domain = domain
    return api_settings
