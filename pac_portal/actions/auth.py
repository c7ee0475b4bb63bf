import logging
from typing import Any, Optional
from urllib.parse import urlencode

from pac_portal.actions.base import ActionDeps, action, invalidate, run_post_commit
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import AuthenticationError, AuthorizationError, NotFoundError, UpstreamError, ValidationError
from pac_portal.core.responses import success_response
from pac_portal.core.security import authenticate
from pac_portal.core.supabase import SupabaseError
from pac_portal.db import models
from pac_portal.schemas.agents import ProfileSelfUpdate
from pac_portal.schemas.auth import LoginPayload
from pac_portal.schemas.validation import validate_input

logger = logging.getLogger("pac_portal.auth")

PROFILE_PATH = "/perfil"
LOGIN_PATH = "/login"


@action("Erro ao realizar login")
def login(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]], admin_only: bool = False):
    data = validate_input(LoginPayload, payload)
    try:
        session = deps.auth.sign_in_with_password(data.email, data.password)
    except SupabaseError as exc:
        if exc.status_code is not None and exc.status_code < 500:
            raise AuthenticationError("Email ou senha inválidos") from exc
        raise UpstreamError(f"Falha no servico de autenticacao: {exc}") from exc

    access_token = session.get("access_token")
    user = session.get("user") or {}
    profile = deps.db.get(models.Profile, user.get("id")) if user.get("id") else None
    if not profile or not profile.status:
        if access_token:
            run_post_commit(deps, "encerrar sessao recusada", deps.auth.sign_out, access_token)
        raise AuthorizationError("Conta inativa")
    if admin_only and profile.role != "admin":
        run_post_commit(deps, "encerrar sessao recusada", deps.auth.sign_out, access_token)
        raise AuthorizationError("Acesso não autorizado")

    logger.info("login user_id=%s role=%s", profile.id, profile.role)
    return success_response(
        {
            "access_token": access_token,
            "refresh_token": session.get("refresh_token"),
            "expires_in": session.get("expires_in"),
            "token_type": session.get("token_type", "bearer"),
            "profile": models.row_to_dict(profile),
        },
        message="Login realizado com sucesso!",
    )


@action("Erro no logout")
def logout(deps: ActionDeps, ctx: RequestContext):
    if ctx.access_token:
        run_post_commit(deps, "revogar sessao", deps.auth.sign_out, ctx.access_token)
    return success_response(message="Logout realizado com sucesso")


def exchange_auth_code(deps: ActionDeps, ctx: RequestContext, code: Optional[str]) -> tuple[str, Optional[dict]]:
    """Exchange an auth code for a session; returns the redirect target and the session, if any."""
    site_url = deps.settings.SITE_URL
    if not code:
        return f"{site_url}{LOGIN_PATH}?{urlencode({'error': 'auth_failed'})}", None
    try:
        session = deps.auth.exchange_code_for_session(code, ctx.code_verifier)
    except SupabaseError as exc:
        logger.warning("Falha ao trocar codigo de autenticacao request_id=%s: %s", ctx.request_id, exc)
        return f"{site_url}{LOGIN_PATH}?{urlencode({'error': 'auth_failed'})}", None
    except Exception:
        logger.exception("Erro inesperado no callback de autenticacao request_id=%s", ctx.request_id)
        return f"{site_url}{LOGIN_PATH}?{urlencode({'error': 'unexpected_error'})}", None
    return f"{site_url}{PROFILE_PATH}", session


@action("Erro ao buscar perfil")
def get_current_profile(deps: ActionDeps, ctx: RequestContext):
    identity = authenticate(deps, ctx)
    profile = deps.db.get(models.Profile, identity.id)
    if not profile:
        raise NotFoundError("Perfil não encontrado")
    return success_response(models.row_to_dict(profile))


@action("Erro ao atualizar perfil")
def update_current_profile(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]]):
    identity = authenticate(deps, ctx)
    data = validate_input(ProfileSelfUpdate, payload)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError({"_root": ["Nenhum dado fornecido para atualização"]})

    profile = deps.db.get(models.Profile, identity.id)
    if not profile:
        raise NotFoundError("Perfil não encontrado")
    for field, value in changes.items():
        setattr(profile, field, value)
    deps.db.commit()
    deps.db.refresh(profile)

    invalidate(deps, PROFILE_PATH, f"/admin/agentes/{identity.id}")
    return success_response(models.row_to_dict(profile), message="Perfil atualizado com sucesso!")
