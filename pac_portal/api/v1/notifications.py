from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from pac_portal.actions import notifications
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, query_params
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response

router = APIRouter(tags=["Notificações"])


@router.get("/notifications")
def list_notifications(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(notifications.list_notifications(deps, ctx, query_params(request)))


@router.post("/notifications/read-all")
def mark_all_read(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(notifications.mark_all_notifications_read(deps, ctx))


@router.patch("/notifications/{notification_id}")
def mark_read(
    notification_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(notifications.mark_notification_read(deps, ctx, notification_id))


@router.delete("/notifications/{notification_id}")
def delete_notification(
    notification_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(notifications.delete_notification(deps, ctx, notification_id))


@router.post("/admin/notifications")
def send_notification(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(notifications.send_notification(deps, ctx, payload))


@router.delete("/admin/notifications/expired")
def cleanup_expired(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(notifications.cleanup_expired_notifications(deps, ctx))


@router.options("/notifications")
def notifications_options():
    return options_response("GET")


@router.options("/notifications/read-all")
@router.options("/admin/notifications")
def notifications_post_options():
    return options_response("POST")


@router.options("/notifications/{notification_id}")
def notification_options(notification_id: str):
    return options_response("PATCH", "DELETE")


@router.options("/admin/notifications/expired")
def expired_options():
    return options_response("DELETE")
