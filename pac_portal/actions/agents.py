import logging
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from pac_portal.actions.base import ActionDeps, action, invalidate, paginate, run_post_commit
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from pac_portal.core.responses import success_response
from pac_portal.core.security import require_admin
from pac_portal.core.supabase import SupabaseError
from pac_portal.db import models
from pac_portal.schemas.agents import (
    AgentCreate,
    AgentFilters,
    AgentMatriculaUpdate,
    AgentStatusUpdate,
    AgentUpdate,
)
from pac_portal.schemas.validation import validate_id, validate_input
from pac_portal.services import audit, notifications

logger = logging.getLogger("pac_portal.actions")

AGENT_NOT_FOUND = "Agente não encontrado."


def _get_agent_or_404(deps: ActionDeps, agent_id: str) -> models.Profile:
    profile = deps.db.get(models.Profile, agent_id)
    if not profile:
        raise NotFoundError(AGENT_NOT_FOUND)
    return profile


def _ensure_unique(
    deps: ActionDeps,
    matricula: Optional[str] = None,
    email: Optional[str] = None,
    exclude_id: Optional[str] = None,
    matricula_message: str = "Matrícula já cadastrada no sistema.",
) -> None:
    base = deps.db.query(models.Profile.id)
    if exclude_id:
        base = base.filter(models.Profile.id != exclude_id)
    if matricula and base.filter(models.Profile.matricula == matricula).first():
        raise ConflictError(matricula_message)
    if email and base.filter(models.Profile.email == email).first():
        raise ConflictError("Email já cadastrado no sistema.")


def _agent_label(profile: models.Profile) -> str:
    return profile.full_name or profile.email


@action("Erro ao buscar agentes")
def list_agents(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    require_admin(deps, ctx)
    filters = validate_input(AgentFilters, params)
    query = deps.db.query(models.Profile)
    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(
            or_(
                models.Profile.matricula.ilike(term),
                models.Profile.email.ilike(term),
                models.Profile.full_name.ilike(term),
            )
        )
    if filters.role:
        query = query.filter(models.Profile.role == filters.role)
    if filters.status:
        query = query.filter(models.Profile.status.is_(filters.status == "active"))
    query = query.order_by(models.Profile.created_at.desc(), models.Profile.id.asc())
    items, pagination = paginate(query, filters.page, filters.limit)
    return success_response([models.row_to_dict(item) for item in items], pagination=pagination)


@action("Erro ao buscar agente")
def get_agent(deps: ActionDeps, ctx: RequestContext, agent_id: str):
    require_admin(deps, ctx)
    agent_id = validate_id(agent_id)
    return success_response(models.row_to_dict(_get_agent_or_404(deps, agent_id)))


@action("Erro ao criar agente")
def create_agent(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    data = validate_input(AgentCreate, payload)
    _ensure_unique(deps, matricula=data.matricula, email=data.email)

    try:
        auth_user = deps.auth.admin_create_user(
            data.email,
            deps.settings.DEFAULT_AGENT_PASSWORD,
            user_metadata={"full_name": data.full_name, "matricula": data.matricula},
        )
    except SupabaseError as exc:
        if "already" in str(exc).lower():
            raise ConflictError("Email já cadastrado no sistema.") from exc
        raise UpstreamError(f"Erro ao criar usuário: {exc}") from exc
    user_id = auth_user.get("id") or (auth_user.get("user") or {}).get("id")
    if not user_id:
        raise UpstreamError("Erro ao criar usuário: resposta sem identificador")

    profile = models.Profile(id=user_id, status=True, **data.model_dump())
    deps.db.add(profile)
    try:
        deps.db.commit()
    except SQLAlchemyError:
        deps.db.rollback()
        run_post_commit(deps, "remover usuario de autenticacao orfao", deps.auth.admin_delete_user, user_id)
        raise
    deps.db.refresh(profile)
    created = models.row_to_dict(profile)

    run_post_commit(
        deps,
        "audit agent_creation",
        audit.log_activity,
        deps.db,
        admin.id,
        "agent_creation",
        f"Agente {data.full_name} ({data.matricula}) criado por {admin.email}",
        resource_type="profile",
        resource_id=user_id,
        metadata={
            "created_by": admin.id,
            "created_by_email": admin.email,
            "agent_data": data.model_dump(mode="json"),
        },
    )
    run_post_commit(
        deps,
        "notificar administradores",
        notifications.notify_admins,
        deps.db,
        type="user_created",
        title="Novo agente cadastrado",
        message=f"{data.full_name} ({data.matricula}) foi cadastrado no sistema.",
        action_url=f"/admin/agentes/{user_id}",
        metadata={"resource_type": "profile", "resource_id": user_id, "user_id": admin.id},
    )
    invalidate(deps, "/admin/agentes", "/dashboard")
    return success_response(created, message="Agente criado com sucesso!", status_code=201)


@action("Erro ao atualizar agente")
def update_agent(deps: ActionDeps, ctx: RequestContext, agent_id: str, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    agent_id = validate_id(agent_id)
    data = validate_input(AgentUpdate, payload)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError({"_root": ["Nenhum dado fornecido para atualização"]})

    profile = _get_agent_or_404(deps, agent_id)
    _ensure_unique(
        deps,
        matricula=changes.get("matricula") if changes.get("matricula") != profile.matricula else None,
        email=changes.get("email") if changes.get("email") != profile.email else None,
        exclude_id=agent_id,
    )
    for field, value in changes.items():
        setattr(profile, field, value)
    deps.db.commit()
    deps.db.refresh(profile)
    updated = models.row_to_dict(profile)

    run_post_commit(
        deps,
        "audit agent_update",
        audit.log_activity,
        deps.db,
        admin.id,
        "agent_update",
        f"Agente {_agent_label(profile)} atualizado por {admin.email}",
        resource_type="profile",
        resource_id=agent_id,
        metadata={"updated_by": admin.id, "updated_by_email": admin.email, "changes": changes},
    )
    invalidate(deps, "/admin/agentes", f"/admin/agentes/{agent_id}")
    return success_response(updated, message="Agente atualizado com sucesso!")


@action("Erro ao atualizar status")
def update_agent_status(deps: ActionDeps, ctx: RequestContext, agent_id: str, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    agent_id = validate_id(agent_id)
    data = validate_input(AgentStatusUpdate, payload)
    profile = _get_agent_or_404(deps, agent_id)
    if profile.status == data.status:
        label = "ativo" if data.status else "inativo"
        return success_response(models.row_to_dict(profile), message=f"Agente já está {label}.")

    previous = audit.snapshot(profile)
    profile.status = data.status
    deps.db.commit()
    deps.db.refresh(profile)
    updated = models.row_to_dict(profile)

    label = "ativo" if data.status else "inativo"
    run_post_commit(
        deps,
        "audit agent_status_change",
        audit.log_activity,
        deps.db,
        admin.id,
        "agent_status_change",
        f"Status do agente {_agent_label(profile)} alterado para {label} por {admin.email}",
        resource_type="profile",
        resource_id=agent_id,
        metadata={
            "changed_by": admin.id,
            "changed_by_email": admin.email,
            "previous_status": previous["status"],
            "new_status": data.status,
            "agent_data": previous,
        },
    )
    invalidate(deps, "/admin/agentes", f"/admin/agentes/{agent_id}")
    verb = "ativado" if data.status else "desativado"
    return success_response(updated, message=f"Agente {verb} com sucesso!")


@action("Erro ao atualizar matrícula")
def update_agent_matricula(deps: ActionDeps, ctx: RequestContext, agent_id: str, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    agent_id = validate_id(agent_id)
    data = validate_input(AgentMatriculaUpdate, payload)
    profile = _get_agent_or_404(deps, agent_id)
    _ensure_unique(
        deps,
        matricula=data.matricula,
        exclude_id=agent_id,
        matricula_message="Matrícula já está em uso por outro agente.",
    )

    previous = audit.snapshot(profile)
    profile.matricula = data.matricula
    deps.db.commit()
    deps.db.refresh(profile)
    updated = models.row_to_dict(profile)

    run_post_commit(
        deps,
        "audit agent_matricula_update",
        audit.log_activity,
        deps.db,
        admin.id,
        "agent_matricula_update",
        f"Matrícula do agente {_agent_label(profile)} alterada de {previous['matricula']} "
        f"para {data.matricula} por {admin.email}",
        resource_type="profile",
        resource_id=agent_id,
        metadata={
            "updated_by": admin.id,
            "updated_by_email": admin.email,
            "previous_matricula": previous["matricula"],
            "new_matricula": data.matricula,
            "agent_data": previous,
        },
    )
    invalidate(deps, "/admin/agentes", f"/admin/agentes/{agent_id}")
    return success_response(updated, message="Matrícula atualizada com sucesso!")


@action("Erro ao excluir agente")
def delete_agent(deps: ActionDeps, ctx: RequestContext, agent_id: str):
    admin = require_admin(deps, ctx)
    agent_id = validate_id(agent_id)
    profile = _get_agent_or_404(deps, agent_id)

    agent_data = audit.snapshot(profile)
    deps.db.delete(profile)
    deps.db.commit()

    run_post_commit(
        deps,
        "audit agent_deletion",
        audit.log_activity,
        deps.db,
        admin.id,
        "agent_deletion",
        f"Agente {agent_data['full_name'] or agent_data['email']} ({agent_data['matricula']}) "
        f"excluído por {admin.email}",
        resource_type="profile",
        resource_id=agent_id,
        metadata={"deleted_by": admin.id, "deleted_by_email": admin.email, "agent_data": agent_data},
    )
    run_post_commit(deps, "remover usuario de autenticacao", deps.auth.admin_delete_user, agent_id)
    invalidate(deps, "/admin/agentes", "/dashboard")
    return success_response(message="Agente excluído com sucesso!")
