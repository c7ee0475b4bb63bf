from datetime import datetime, timedelta

from pac_portal.actions.activities import activity_to_dict
from pac_portal.actions.base import ActionDeps, action
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import success_response
from pac_portal.core.security import require_admin
from pac_portal.db import models

RECENT_DAYS = 7
LATEST_ACTIVITIES = 5


@action("Erro ao buscar estatísticas")
def get_dashboard_stats(deps: ActionDeps, ctx: RequestContext):
    require_admin(deps, ctx)
    db = deps.db
    since = datetime.utcnow() - timedelta(days=RECENT_DAYS)

    total_agents = db.query(models.Profile).count()
    active_agents = db.query(models.Profile).filter(models.Profile.status.is_(True)).count()
    total_admins = db.query(models.Profile).filter(models.Profile.role == "admin").count()
    unread_notifications = (
        db.query(models.Notification).filter(models.Notification.is_read.is_(False)).count()
    )
    recent_activities = (
        db.query(models.SystemActivity).filter(models.SystemActivity.created_at >= since).count()
    )
    latest = (
        db.query(models.SystemActivity, models.Profile)
        .outerjoin(models.Profile, models.SystemActivity.user_id == models.Profile.id)
        .order_by(models.SystemActivity.created_at.desc(), models.SystemActivity.id.asc())
        .limit(LATEST_ACTIVITIES)
        .all()
    )
    return success_response(
        {
            "stats": {
                "total_agents": total_agents,
                "active_agents": active_agents,
                "total_admins": total_admins,
                "unread_notifications": unread_notifications,
                "recent_activities": recent_activities,
            },
            "recent_activities": [activity_to_dict(activity, profile) for activity, profile in latest],
        }
    )
