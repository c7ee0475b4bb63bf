from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from pac_portal.actions import events
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, query_params
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response

router = APIRouter(tags=["Eventos"])


@router.get("/events")
def list_events(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(events.list_events(deps, ctx, query_params(request)))


@router.get("/events/{event_id}")
def get_event(
    event_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(events.get_event(deps, ctx, event_id))


@router.post("/admin/events")
def create_event(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(events.create_event(deps, ctx, payload))


@router.patch("/admin/events/{event_id}")
def update_event(
    event_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(events.update_event(deps, ctx, event_id, payload))


@router.delete("/admin/events/{event_id}")
def delete_event(
    event_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(events.delete_event(deps, ctx, event_id))


@router.options("/events")
def events_options():
    return options_response("GET")


@router.options("/events/{event_id}")
def event_options(event_id: str):
    return options_response("GET")


@router.options("/admin/events")
def admin_events_options():
    return options_response("POST")


@router.options("/admin/events/{event_id}")
def admin_event_options(event_id: str):
    return options_response("PATCH", "DELETE")
