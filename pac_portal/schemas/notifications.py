from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

NotificationType = Literal["system", "user_created", "news_published", "gallery_upload", "warning", "info"]


class NotificationPayload(BaseModel):
    type: NotificationType = "info"
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    action_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    expires_at: Optional[datetime] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class NotificationSend(NotificationPayload):
    user_id: Optional[str] = Field(
        default=None,
        pattern=r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$",
    )
    to_admins: bool = False

    @model_validator(mode="after")
    def check_target(self) -> "NotificationSend":
        if not self.user_id and not self.to_admins:
            raise ValueError("Informe o destinatário ou marque o envio para administradores")
        return self


class NotificationFilters(BaseModel):
    limit: int = Field(default=50, ge=1, le=100)
    unread_only: bool = False
