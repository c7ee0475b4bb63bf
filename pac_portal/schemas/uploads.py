from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, Field

UploadType = Literal["news", "gallery", "video", "document"]
MediaKind = Literal["image", "video"]

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


@dataclass
class UploadedFile:
    """A fully buffered multipart file."""

    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class AvatarUploadParams(BaseModel):
    user_id: Optional[str] = Field(default=None, pattern=UUID_PATTERN)


class NewsMediaParams(BaseModel):
    slug: str = Field(min_length=1)
    media_kind: MediaKind = "image"


class GeneralUploadParams(BaseModel):
    type: UploadType
    category_id: Optional[str] = Field(default=None, pattern=r"^[A-Za-z0-9_-]+$")
