from typing import Any, Optional

from pac_portal.actions.base import ActionDeps, action, invalidate
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import NotFoundError
from pac_portal.core.responses import success_response
from pac_portal.core.security import authenticate, require_admin
from pac_portal.db import models
from pac_portal.schemas.notifications import NotificationFilters, NotificationSend
from pac_portal.schemas.validation import validate_id, validate_input
from pac_portal.services import notifications

NOTIFICATION_NOT_FOUND = "Notificação não encontrada"


def _owned_notification(deps: ActionDeps, notification_id: str, user_id: str) -> models.Notification:
    # Rows owned by someone else are reported as missing, admins included.
    notification = (
        deps.db.query(models.Notification)
        .filter(models.Notification.id == notification_id, models.Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotFoundError(NOTIFICATION_NOT_FOUND)
    return notification


@action("Erro ao buscar notificações")
def list_notifications(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    identity = authenticate(deps, ctx)
    filters = validate_input(NotificationFilters, params)
    query = deps.db.query(models.Notification).filter(models.Notification.user_id == identity.id)
    if filters.unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    rows = (
        query.order_by(models.Notification.created_at.desc(), models.Notification.id.asc())
        .limit(filters.limit)
        .all()
    )
    return success_response(
        {
            "notifications": [models.row_to_dict(row) for row in rows],
            "unread_count": notifications.get_unread_count(deps.db, identity.id),
        }
    )


@action("Erro ao marcar notificação como lida")
def mark_notification_read(deps: ActionDeps, ctx: RequestContext, notification_id: str):
    identity = authenticate(deps, ctx)
    notification_id = validate_id(notification_id)
    notification = _owned_notification(deps, notification_id, identity.id)
    if not notification.is_read:
        notification.is_read = True
        deps.db.commit()
        deps.db.refresh(notification)
    invalidate(deps, "/notifications")
    return success_response(models.row_to_dict(notification), message="Notificação marcada como lida")


@action("Erro ao marcar notificações como lidas")
def mark_all_notifications_read(deps: ActionDeps, ctx: RequestContext):
    identity = authenticate(deps, ctx)
    updated = (
        deps.db.query(models.Notification)
        .filter(models.Notification.user_id == identity.id, models.Notification.is_read.is_(False))
        .update({models.Notification.is_read: True}, synchronize_session=False)
    )
    deps.db.commit()
    invalidate(deps, "/notifications")
    return success_response({"updated": updated}, message="Todas as notificações foram marcadas como lidas")


@action("Erro ao excluir notificação")
def delete_notification(deps: ActionDeps, ctx: RequestContext, notification_id: str):
    identity = authenticate(deps, ctx)
    notification_id = validate_id(notification_id)
    notification = _owned_notification(deps, notification_id, identity.id)
    deps.db.delete(notification)
    deps.db.commit()
    invalidate(deps, "/notifications")
    return success_response(message="Notificação excluída com sucesso")


@action("Erro ao enviar notificação")
def send_notification(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]]):
    require_admin(deps, ctx)
    data = validate_input(NotificationSend, payload)
    params = data.model_dump(include={"type", "title", "message", "action_url", "metadata", "expires_at"})
    if data.user_id:
        target = deps.db.get(models.Profile, data.user_id.lower())
        if not target:
            raise NotFoundError("Usuário não encontrado")
        rows = [notifications.notify_user(deps.db, target.id, **params)]
    else:
        rows = notifications.notify_admins(deps.db, **params)
    invalidate(deps, "/notifications")
    return success_response(
        {"sent": len(rows), "notifications": [models.row_to_dict(row) for row in rows]},
        message="Notificação enviada com sucesso",
        status_code=201,
    )


@action("Erro ao remover notificações expiradas")
def cleanup_expired_notifications(deps: ActionDeps, ctx: RequestContext):
    require_admin(deps, ctx)
    removed = notifications.cleanup_expired(deps.db)
    return success_response({"removed": removed}, message=f"{removed} notificações expiradas removidas")
