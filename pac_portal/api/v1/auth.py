from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import RedirectResponse

from pac_portal.actions import auth
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context
from pac_portal.core.context import CODE_VERIFIER_COOKIE, SESSION_COOKIE, RequestContext
from pac_portal.core.responses import ResponseEnvelope, options_response, to_json_response

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_session_cookie(response, token: str, max_age: Optional[int], secure: bool) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=max_age,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )


def _login_response(envelope: ResponseEnvelope, deps: ActionDeps):
    response = to_json_response(envelope)
    if envelope.success and envelope.data and envelope.data.get("access_token"):
        _set_session_cookie(
            response,
            envelope.data["access_token"],
            envelope.data.get("expires_in"),
            deps.settings.is_production,
        )
    return response


@router.post("/login")
def login(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return _login_response(auth.login(deps, ctx, payload), deps)


@router.post("/admin/login")
def admin_login(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return _login_response(auth.login(deps, ctx, payload, admin_only=True), deps)


@router.post("/logout")
def logout(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    response = to_json_response(auth.logout(deps, ctx))
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response


@router.get("/callback")
def callback(
    code: Optional[str] = None,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    target, session = auth.exchange_auth_code(deps, ctx, code)
    response = RedirectResponse(target, status_code=303)
    if session and session.get("access_token"):
        _set_session_cookie(
            response, session["access_token"], session.get("expires_in"), deps.settings.is_production
        )
    response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")
    return response


@router.get("/profile")
def get_profile(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(auth.get_current_profile(deps, ctx))


@router.patch("/profile")
def update_profile(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(auth.update_current_profile(deps, ctx, payload))


@router.options("/login")
@router.options("/admin/login")
@router.options("/logout")
def login_options():
    return options_response("POST")


@router.options("/callback")
def callback_options():
    return options_response("GET")


@router.options("/profile")
def profile_options():
    return options_response("GET", "PATCH")
