from fastapi import APIRouter, Depends, Request

from pac_portal.actions import activities, dashboard
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, query_params
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response

router = APIRouter(tags=["Sistema"])


@router.get("/system")
@router.get("/admin/activities")
def list_activities(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(activities.list_activities(deps, ctx, query_params(request)))


@router.get("/admin/activities/overview")
def activities_overview(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(activities.get_activities_overview(deps, ctx))


@router.get("/admin/activities/types")
def activity_types(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(activities.list_action_types(deps, ctx))


@router.get("/admin/dashboard/stats")
def dashboard_stats(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(dashboard.get_dashboard_stats(deps, ctx))


@router.options("/system")
@router.options("/admin/activities")
@router.options("/admin/activities/overview")
@router.options("/admin/activities/types")
@router.options("/admin/dashboard/stats")
def system_options():
    return options_response("GET")
