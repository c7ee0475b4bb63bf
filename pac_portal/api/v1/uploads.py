from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from pac_portal.actions import uploads
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, read_upload
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response
from pac_portal.services.upload_config import AVATAR

router = APIRouter(tags=["Uploads"])


def _drop_empty(values: dict) -> dict:
    return {key: value for key, value in values.items() if value not in (None, "")}


@router.post("/admin/upload-avatar")
def upload_avatar(
    file: Optional[UploadFile] = File(default=None),
    user_id: Optional[str] = Form(default=None, alias="userId"),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    params = _drop_empty({"user_id": user_id})
    return to_json_response(uploads.upload_avatar(deps, ctx, read_upload(file, AVATAR.max_size), params))


@router.post("/upload/news")
def upload_news_media(
    file: Optional[UploadFile] = File(default=None),
    slug: Optional[str] = Form(default=None),
    media_kind: Optional[str] = Form(default=None, alias="type"),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    params = _drop_empty({"slug": slug, "media_kind": media_kind})
    return to_json_response(uploads.upload_news_media(deps, ctx, read_upload(file), params))


@router.post("/upload/general")
def upload_general(
    file: Optional[UploadFile] = File(default=None),
    upload_type: Optional[str] = Form(default=None, alias="type"),
    category_id: Optional[str] = Form(default=None, alias="categoryId"),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    params = _drop_empty({"type": upload_type, "category_id": category_id})
    return to_json_response(uploads.upload_general_file(deps, ctx, read_upload(file), params))


@router.options("/admin/upload-avatar")
@router.options("/upload/news")
@router.options("/upload/general")
def upload_options():
    return options_response("POST")
