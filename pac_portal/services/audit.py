import logging
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from pac_portal.db import models

logger = logging.getLogger("pac_portal.audit")


def snapshot(row: Any) -> dict[str, Any]:
    """JSON-safe copy of a row, used as the audit metadata of the affected entity."""
    return jsonable_encoder(models.row_to_dict(row))


def log_activity(
    db: Session,
    user_id: Optional[str],
    action_type: str,
    description: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> models.SystemActivity:
    activity = models.SystemActivity(
        user_id=user_id,
        action_type=action_type,
        description=description,
        resource_type=resource_type,
        resource_id=resource_id,
        metadata_=jsonable_encoder(metadata) if metadata is not None else None,
    )
    db.add(activity)
    db.commit()
    logger.info("atividade action_type=%s resource_id=%s user_id=%s", action_type, resource_id, user_id)
    return activity
