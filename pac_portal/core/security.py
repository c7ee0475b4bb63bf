import logging
from dataclasses import dataclass
from typing import Any, Optional

from jose import JWTError, jwt

from pac_portal.core.context import RequestContext
from pac_portal.core.errors import AuthenticationError, AuthorizationError, UpstreamError
from pac_portal.core.supabase import SupabaseError
from pac_portal.db import models

logger = logging.getLogger("pac_portal.auth")

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"
ROLE_ADMIN = "admin"


@dataclass
class Identity:
    id: str
    email: str
    role: str
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


def _decode_local(token: str, secret: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE)
    except JWTError as exc:
        raise AuthenticationError("Token inválido ou expirado") from exc
    if not payload.get("sub"):
        raise AuthenticationError("Token inválido ou expirado")
    return {"id": payload["sub"], "email": payload.get("email")}


def resolve_user(deps, token: str) -> dict[str, Any]:
    """Resolve the auth user behind an access token.

    With ``SUPABASE_JWT_SECRET`` configured the token is verified locally, otherwise
    the auth subsystem is asked for the user. A rejected token is an authentication
    failure; an unreachable auth subsystem is an upstream failure.
    """
    secret = deps.settings.SUPABASE_JWT_SECRET
    if secret:
        return _decode_local(token, secret)
    try:
        user = deps.auth.get_user(token)
    except SupabaseError as exc:
        if exc.status_code is None or exc.status_code >= 500:
            logger.error("Falha ao consultar servico de autenticacao: %s", exc)
            raise UpstreamError("Falha ao validar sessão") from exc
        raise AuthenticationError("Token inválido ou expirado") from exc
    if not user or not user.get("id"):
        raise AuthenticationError("Token inválido ou expirado")
    return user


def authenticate(deps, ctx: RequestContext) -> Identity:
    if not ctx.access_token:
        raise AuthenticationError()
    user = resolve_user(deps, ctx.access_token)
    profile = deps.db.get(models.Profile, user["id"])
    if not profile or not profile.status:
        raise AuthorizationError("Conta inativa")
    return Identity(
        id=profile.id,
        email=profile.email or user.get("email") or "",
        role=profile.role,
        full_name=profile.full_name,
    )


def require_admin(deps, ctx: RequestContext) -> Identity:
    identity = authenticate(deps, ctx)
    if not identity.is_admin:
        raise AuthorizationError("Apenas administradores podem acessar")
    return identity


def optional_identity(deps, ctx: RequestContext) -> Optional[Identity]:
    if not ctx.access_token:
        return None
    try:
        return authenticate(deps, ctx)
    except (AuthenticationError, AuthorizationError):
        return None
