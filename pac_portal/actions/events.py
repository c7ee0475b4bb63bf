from datetime import date
from typing import Any, Optional

from pac_portal.actions.base import ActionDeps, action, invalidate
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import NotFoundError, ValidationError
from pac_portal.core.responses import success_response
from pac_portal.core.security import require_admin
from pac_portal.db import models
from pac_portal.schemas.events import EventCreate, EventFilters, EventUpdate
from pac_portal.schemas.validation import validate_id, validate_input

EVENT_PATHS = ("/admin/eventos", "/eventos")


def _get_event_or_404(deps: ActionDeps, event_id: str) -> models.Event:
    event = deps.db.get(models.Event, event_id)
    if not event:
        raise NotFoundError("Evento não encontrado")
    return event


@action("Erro ao buscar eventos")
def list_events(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    filters = validate_input(EventFilters, params)
    query = deps.db.query(models.Event)
    if filters.category:
        query = query.filter(models.Event.category == filters.category)
    if filters.status:
        query = query.filter(models.Event.status == filters.status)
    if filters.upcoming:
        query = query.filter(models.Event.end_date >= date.today())
    rows = query.order_by(models.Event.start_date.asc(), models.Event.id.asc()).limit(filters.limit).all()
    return success_response([models.row_to_dict(row) for row in rows])


@action("Erro ao buscar evento")
def get_event(deps: ActionDeps, ctx: RequestContext, event_id: str):
    event_id = validate_id(event_id)
    return success_response(models.row_to_dict(_get_event_or_404(deps, event_id)))


@action("Erro ao salvar evento")
def create_event(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]]):
    require_admin(deps, ctx)
    data = validate_input(EventCreate, payload)
    event = models.Event(**data.model_dump())
    deps.db.add(event)
    deps.db.commit()
    deps.db.refresh(event)
    invalidate(deps, *EVENT_PATHS)
    return success_response(models.row_to_dict(event), message="Evento criado com sucesso!", status_code=201)


@action("Erro ao atualizar evento")
def update_event(deps: ActionDeps, ctx: RequestContext, event_id: str, payload: Optional[dict[str, Any]]):
    require_admin(deps, ctx)
    event_id = validate_id(event_id)
    data = validate_input(EventUpdate, payload)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError({"_root": ["Nenhum dado fornecido para atualização"]})

    event = _get_event_or_404(deps, event_id)
    start = changes.get("start_date", event.start_date)
    end = changes.get("end_date", event.end_date)
    if start and end and end < start:
        raise ValidationError({"end_date": ["A data final deve ser igual ou posterior à data inicial"]})
    for field, value in changes.items():
        setattr(event, field, value)
    deps.db.commit()
    deps.db.refresh(event)
    invalidate(deps, *EVENT_PATHS)
    return success_response(models.row_to_dict(event), message="Evento atualizado com sucesso!")


@action("Erro ao excluir evento")
def delete_event(deps: ActionDeps, ctx: RequestContext, event_id: str):
    require_admin(deps, ctx)
    event_id = validate_id(event_id)
    event = _get_event_or_404(deps, event_id)
    deps.db.delete(event)
    deps.db.commit()
    invalidate(deps, *EVENT_PATHS)
    return success_response(message="Evento excluído com sucesso!")
