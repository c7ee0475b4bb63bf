import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from pac_portal.db import models

logger = logging.getLogger("pac_portal.notifications")

SYSTEM_TITLE = "Atualização do Sistema"


def _build(user_id: str, type: str, title: str, message: str, action_url: Optional[str] = None,
           metadata: Optional[dict[str, Any]] = None, expires_at: Optional[datetime] = None) -> models.Notification:
    return models.Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        action_url=action_url,
        metadata_=metadata,
        is_read=False,
        expires_at=expires_at,
    )


def create_notification(db: Session, user_id: str, **params: Any) -> models.Notification:
    notification = _build(user_id, **params)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def notify_user(db: Session, user_id: str, **params: Any) -> models.Notification:
    return create_notification(db, user_id, **params)


def notify_admins(db: Session, exclude_user_id: Optional[str] = None, **params: Any) -> list[models.Notification]:
    """Write one notification row per active admin; no admins means no rows."""
    query = db.query(models.Profile.id).filter(models.Profile.role == "admin", models.Profile.status.is_(True))
    if exclude_user_id:
        query = query.filter(models.Profile.id != exclude_user_id)
    admin_ids = [admin_id for (admin_id,) in query.all()]
    if not admin_ids:
        return []
    notifications = [_build(admin_id, **params) for admin_id in admin_ids]
    db.add_all(notifications)
    db.commit()
    logger.info("Notificacao '%s' enviada para %s administradores", params.get("title"), len(notifications))
    return notifications


def system_notification(db: Session, user_id: str, message: str,
                        metadata: Optional[dict[str, Any]] = None) -> models.Notification:
    return create_notification(db, user_id, type="system", title=SYSTEM_TITLE, message=message, metadata=metadata)


def get_unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(models.Notification)
        .filter(models.Notification.user_id == user_id, models.Notification.is_read.is_(False))
        .count()
    )


def cleanup_expired(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    removed = (
        db.query(models.Notification)
        .filter(models.Notification.expires_at.isnot(None), models.Notification.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        logger.info("%s notificacoes expiradas removidas", removed)
    return removed
