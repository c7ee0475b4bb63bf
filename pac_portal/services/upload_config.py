import re
from dataclasses import dataclass
from typing import Optional

from pac_portal.core.errors import ValidationError

MB = 1024 * 1024

IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
VIDEO_TYPES = ("video/mp4", "video/mpeg", "video/quicktime", "video/webm")
DOCUMENT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
)
DANGEROUS_EXTENSIONS = {".exe", ".bat", ".cmd", ".sh", ".js", ".vbs", ".php"}


@dataclass(frozen=True)
class UploadConfig:
    bucket: str
    max_size: int
    allowed_types: tuple[str, ...]
    path_prefix: str = ""
    type_hint: str = ""

    @property
    def max_size_mb(self) -> int:
        return self.max_size // MB


AVATAR = UploadConfig(
    "avatares-agentes",
    2 * MB,
    IMAGE_TYPES + ("image/gif",),
    "avatars/",
    "Use JPG, PNG, WEBP ou GIF.",
)
NEWS_IMAGE = UploadConfig("imagens-noticias", 5 * MB, IMAGE_TYPES, "news/")
GALLERY_PHOTO = UploadConfig("galeria-fotos", 10 * MB, IMAGE_TYPES, "gallery/")
GALLERY_VIDEO = UploadConfig("galeria-videos", 50 * MB, VIDEO_TYPES, "videos/")
DOCUMENT = UploadConfig("documentos-oficiais", 10 * MB, DOCUMENT_TYPES, "documents/")

UPLOAD_CONFIGS = {
    "news": NEWS_IMAGE,
    "gallery": GALLERY_PHOTO,
    "video": GALLERY_VIDEO,
    "document": DOCUMENT,
}

MAX_UPLOAD_SIZE = max(config.max_size for config in (AVATAR, *UPLOAD_CONFIGS.values()))

NEWS_MEDIA_BUCKET = NEWS_IMAGE.bucket
NEWS_MEDIA_LIMITS = {
    "image": NEWS_IMAGE,
    "video": UploadConfig(NEWS_MEDIA_BUCKET, GALLERY_VIDEO.max_size, VIDEO_TYPES),
}


def file_extension(filename: Optional[str], default: str = "") -> str:
    if not filename or "." not in filename:
        return default
    return filename.rsplit(".", 1)[1].lower() or default


def safe_filename(filename: str) -> str:
    return re.sub(r"[^a-z0-9.-]", "_", (filename or "arquivo").lower())[:50]


def check_file(
    config: UploadConfig,
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    field: str = "file",
) -> None:
    if not size:
        raise ValidationError({field: ["Nenhum arquivo enviado"]})
    if size > config.max_size:
        raise ValidationError({field: [f"Arquivo muito grande. Máximo permitido: {config.max_size_mb}MB"]})
    if content_type not in config.allowed_types:
        hint = config.type_hint or f"Tipos permitidos: {', '.join(config.allowed_types)}"
        raise ValidationError({field: [f"Tipo de arquivo não permitido. {hint}"]})
    if f".{file_extension(filename)}" in DANGEROUS_EXTENSIONS:
        raise ValidationError({field: ["Tipo de arquivo potencialmente perigoso"]})
