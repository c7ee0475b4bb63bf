from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from pac_portal.actions import agents
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, query_params
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response

router = APIRouter(tags=["Agentes"])


@router.get("/admin/agentes")
@router.get("/admin/agents")
def list_agents(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.list_agents(deps, ctx, query_params(request)))


@router.post("/admin/agentes")
@router.post("/admin/agents")
def create_agent(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.create_agent(deps, ctx, payload))


@router.get("/admin/agentes/{agent_id}")
@router.get("/admin/agents/{agent_id}")
def get_agent(
    agent_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.get_agent(deps, ctx, agent_id))


@router.patch("/admin/agentes/{agent_id}")
@router.patch("/admin/agents/{agent_id}")
def update_agent(
    agent_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.update_agent(deps, ctx, agent_id, payload))


@router.delete("/admin/agentes/{agent_id}")
@router.delete("/admin/agents/{agent_id}")
def delete_agent(
    agent_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.delete_agent(deps, ctx, agent_id))


@router.patch("/admin/agentes/{agent_id}/status")
@router.patch("/admin/agents/{agent_id}/status")
def update_agent_status(
    agent_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.update_agent_status(deps, ctx, agent_id, payload))


@router.patch("/admin/agentes/{agent_id}/matricula")
@router.patch("/admin/agents/{agent_id}/matricula")
def update_agent_matricula(
    agent_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(agents.update_agent_matricula(deps, ctx, agent_id, payload))


@router.options("/admin/agentes")
@router.options("/admin/agents")
def agents_options():
    return options_response("GET", "POST")


@router.options("/admin/agentes/{agent_id}")
@router.options("/admin/agents/{agent_id}")
def agent_options(agent_id: str):
    return options_response("GET", "PATCH", "DELETE")


@router.options("/admin/agentes/{agent_id}/status")
@router.options("/admin/agents/{agent_id}/status")
@router.options("/admin/agentes/{agent_id}/matricula")
@router.options("/admin/agents/{agent_id}/matricula")
def agent_field_options(agent_id: str):
    return options_response("PATCH")
