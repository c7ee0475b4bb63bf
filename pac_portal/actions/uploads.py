import time
import uuid
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from pac_portal.actions.base import ActionDeps, action, invalidate, run_post_commit
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import NotFoundError, ValidationError
from pac_portal.core.responses import success_response
from pac_portal.core.security import require_admin
from pac_portal.db import models
from pac_portal.schemas.uploads import AvatarUploadParams, GeneralUploadParams, NewsMediaParams, UploadedFile
from pac_portal.schemas.validation import validate_input
from pac_portal.services import audit
from pac_portal.services.slugs import slug_problem
from pac_portal.services.upload_config import (
    AVATAR,
    NEWS_MEDIA_BUCKET,
    NEWS_MEDIA_LIMITS,
    UPLOAD_CONFIGS,
    UploadConfig,
    check_file,
    file_extension,
    safe_filename,
)

INVALIDATE_BY_TYPE = {
    "news": "/noticias",
    "gallery": "/galeria",
    "video": "/galeria",
    "document": "/documentos",
}


def _timestamp() -> int:
    return int(time.time() * 1000)


def _short_token() -> str:
    return uuid.uuid4().hex[:8]


def _require_file(file: Optional[UploadedFile], field: str = "file") -> UploadedFile:
    if file is None or not file.size:
        raise ValidationError({field: ["Nenhum arquivo enviado"]})
    return file


def store_file(
    deps: ActionDeps,
    config: UploadConfig,
    file: UploadedFile,
    path: str,
    upsert: bool = False,
    field: str = "file",
) -> dict[str, str]:
    """Check the file against ``config`` and put it in the config's bucket under ``path``."""
    check_file(config, file.filename, file.content_type, file.size, field=field)
    stored = deps.storage.upload(config.bucket, path, file.data, content_type=file.content_type, upsert=upsert)
    return {"url": deps.storage.public_url(config.bucket, stored), "path": stored, "bucket": config.bucket}


def remove_stored(deps: ActionDeps, bucket: str, path: str) -> None:
    run_post_commit(deps, f"remover objeto {bucket}/{path}", deps.storage.remove, bucket, [path])


@action("Erro ao enviar avatar")
def upload_avatar(deps: ActionDeps, ctx: RequestContext, file: Optional[UploadedFile],
                  params: Optional[dict[str, Any]] = None):
    require_admin(deps, ctx)
    data = validate_input(AvatarUploadParams, params)
    file = _require_file(file)
    profile = None
    if data.user_id:
        profile = deps.db.get(models.Profile, data.user_id.lower())
        if not profile:
            raise NotFoundError("Agente não encontrado.")

    owner = (profile.matricula or profile.id[:8]) if profile else f"temp_{_timestamp()}"
    ext = file_extension(file.filename, "jpg")
    path = f"{AVATAR.path_prefix}{owner}/{owner}_{_short_token()}_{_timestamp()}.{ext}"
    stored = store_file(deps, AVATAR, file, path, upsert=True)

    if profile is None:
        return success_response({**stored, "isTempFile": True}, message="Avatar temporário criado")

    previous_url = profile.avatar_url
    profile.avatar_url = stored["url"]
    try:
        deps.db.commit()
    except SQLAlchemyError:
        deps.db.rollback()
        remove_stored(deps, AVATAR.bucket, stored["path"])
        raise
    if previous_url and previous_url != stored["url"]:
        run_post_commit(deps, "remover avatar anterior", deps.storage.delete_by_url, previous_url)
    invalidate(deps, "/admin/agentes", f"/admin/agentes/{profile.id}", "/perfil")
    return success_response(stored, message="Avatar atualizado")


@action("Falha na comunicação com Storage")
def upload_news_media(deps: ActionDeps, ctx: RequestContext, file: Optional[UploadedFile],
                      params: Optional[dict[str, Any]] = None):
    require_admin(deps, ctx)
    data = validate_input(NewsMediaParams, params)
    problem = slug_problem(data.slug)
    if problem:
        raise ValidationError({"slug": [problem]})
    file = _require_file(file)

    folder = "images" if data.media_kind == "image" else "videos"
    ext = file_extension(file.filename, "tmp")
    path = f"{folder}/{data.slug}/{data.slug}_{_timestamp()}.{ext}"
    stored = store_file(deps, NEWS_MEDIA_LIMITS[data.media_kind], file, path, upsert=True)
    return success_response(
        {"url": stored["url"], "path": stored["path"], "bucket": NEWS_MEDIA_BUCKET, "mediaType": data.media_kind},
        message="Arquivo enviado com sucesso!",
    )


@action("Erro ao fazer upload do arquivo")
def upload_general_file(deps: ActionDeps, ctx: RequestContext, file: Optional[UploadedFile],
                        params: Optional[dict[str, Any]] = None):
    admin = require_admin(deps, ctx)
    data = validate_input(GeneralUploadParams, params)
    file = _require_file(file)
    config = UPLOAD_CONFIGS[data.type]

    folder = f"{data.category_id}/" if data.category_id else ""
    file_name = f"{config.path_prefix}{folder}{_timestamp()}_{_short_token()}_{safe_filename(file.filename)}"
    stored = store_file(deps, config, file, file_name)

    run_post_commit(
        deps,
        f"audit {data.type}_upload",
        audit.log_activity,
        deps.db,
        admin.id,
        f"{data.type}_upload",
        f"Arquivo {file.filename} enviado para {config.bucket}",
        resource_type="storage",
        resource_id=stored["path"],
        metadata={
            "uploaded_by": admin.id,
            "uploaded_by_email": admin.email,
            "original_name": file.filename,
            "file_size": file.size,
            "file_type": file.content_type,
            "bucket": config.bucket,
            "type": data.type,
            "category_id": data.category_id,
            "public_url": stored["url"],
        },
    )
    invalidate(deps, INVALIDATE_BY_TYPE[data.type])
    return success_response(
        {
            **stored,
            "original_name": file.filename,
            "file_size": file.size,
            "file_type": file.content_type,
            "type": data.type,
        },
        message="Arquivo enviado com sucesso!",
    )
