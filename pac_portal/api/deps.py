from typing import Optional

from fastapi import Depends, Request, UploadFile
from sqlalchemy.orm import Session

from pac_portal.actions.base import ActionDeps
from pac_portal.core.config import Settings, get_settings
from pac_portal.core.context import RequestContext, build_request_context
from pac_portal.core.supabase import SupabaseAuthClient, get_auth_client
from pac_portal.db.session import get_db
from pac_portal.schemas.uploads import UploadedFile
from pac_portal.services.invalidation import CacheInvalidator, get_invalidator
from pac_portal.services.storage import SupabaseStorageClient, get_storage_client
from pac_portal.services.upload_config import MAX_UPLOAD_SIZE


def get_action_deps(
    db: Session = Depends(get_db),
    auth: SupabaseAuthClient = Depends(get_auth_client),
    storage: SupabaseStorageClient = Depends(get_storage_client),
    invalidator: CacheInvalidator = Depends(get_invalidator),
    settings: Settings = Depends(get_settings),
) -> ActionDeps:
    return ActionDeps(db=db, auth=auth, storage=storage, invalidator=invalidator, settings=settings)


def get_request_context(request: Request) -> RequestContext:
    return build_request_context(request)


def query_params(request: Request) -> dict[str, str]:
    return {key: value for key, value in request.query_params.items() if value != ""}


def read_upload(file: Optional[UploadFile], limit: int = MAX_UPLOAD_SIZE) -> Optional[UploadedFile]:
    """Buffer at most ``limit + 1`` bytes so oversized files still fail the size check."""
    if file is None or not file.filename:
        return None
    return UploadedFile(filename=file.filename, content_type=file.content_type, data=file.file.read(limit + 1))
