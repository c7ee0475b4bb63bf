from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func, or_

from pac_portal.actions.base import ActionDeps, action, paginate
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import success_response
from pac_portal.core.security import require_admin
from pac_portal.db import models
from pac_portal.schemas.activities import ActivityFilters
from pac_portal.schemas.validation import validate_input

Activity = models.SystemActivity
Profile = models.Profile


def range_start(date_range: str, now: Optional[datetime] = None) -> Optional[datetime]:
    now = now or datetime.utcnow()
    if date_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "week":
        return now - timedelta(days=7)
    if date_range == "month":
        return now - timedelta(days=30)
    return None


def activity_to_dict(activity: Activity, profile: Optional[Profile]) -> dict[str, Any]:
    data = models.row_to_dict(activity)
    data["user_profile"] = (
        {
            "full_name": profile.full_name,
            "email": profile.email,
            "matricula": profile.matricula,
            "role": profile.role,
            "avatar_url": profile.avatar_url,
        }
        if profile
        else None
    )
    return data


@action("Erro ao buscar atividades")
def list_activities(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    require_admin(deps, ctx)
    filters = validate_input(ActivityFilters, params)
    query = deps.db.query(Activity, Profile).outerjoin(Profile, Activity.user_id == Profile.id)
    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(
            or_(Activity.description.ilike(term), Profile.full_name.ilike(term), Profile.email.ilike(term))
        )
    if filters.action_type and filters.action_type != "all":
        query = query.filter(Activity.action_type == filters.action_type)
    start = range_start(filters.date_range)
    if start is not None:
        query = query.filter(Activity.created_at >= start)
    query = query.order_by(Activity.created_at.desc(), Activity.id.asc())
    rows, pagination = paginate(query, filters.page, filters.limit)
    return success_response([activity_to_dict(activity, profile) for activity, profile in rows], pagination=pagination)


@action("Erro ao buscar resumo de atividades")
def get_activities_overview(deps: ActionDeps, ctx: RequestContext):
    require_admin(deps, ctx)
    db = deps.db
    now = datetime.utcnow()
    by_type = dict(db.query(Activity.action_type, func.count(Activity.id)).group_by(Activity.action_type).all())
    return success_response(
        {
            "total": db.query(Activity).count(),
            "today": db.query(Activity).filter(Activity.created_at >= range_start("today", now)).count(),
            "week": db.query(Activity).filter(Activity.created_at >= range_start("week", now)).count(),
            "month": db.query(Activity).filter(Activity.created_at >= range_start("month", now)).count(),
            "byType": by_type,
        }
    )


@action("Erro ao buscar tipos de atividade")
def list_action_types(deps: ActionDeps, ctx: RequestContext):
    require_admin(deps, ctx)
    rows = deps.db.query(Activity.action_type).distinct().order_by(Activity.action_type.asc()).all()
    return success_response([action_type for (action_type,) in rows])
