from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile

from pac_portal.actions import gallery
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, query_params, read_upload
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response

router = APIRouter(tags=["Galeria"])


# ---- public ----

@router.get("/galeria/categorias")
def list_public_categorias(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.list_public_categorias(deps, ctx))


@router.get("/galeria/categorias/{slug}")
def get_categoria_by_slug(
    slug: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.get_categoria_by_slug(deps, ctx, slug))


@router.get("/galeria/itens")
def list_public_itens(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.list_public_itens(deps, ctx, query_params(request)))


@router.get("/galeria/itens/categoria/{categoria_id}")
def list_itens_por_categoria(
    categoria_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.list_itens_por_categoria(deps, ctx, categoria_id))


@router.post("/galeria/itens/{item_id}/view")
def register_view(
    item_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.register_item_view(deps, ctx, item_id))


@router.get("/galeria/showcase")
def showcase(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.get_gallery_showcase(deps, ctx))


# ---- admin: categorias ----

@router.get("/admin/galeria/categorias")
def list_admin_categorias(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.list_admin_categorias(deps, ctx, query_params(request)))


@router.post("/admin/galeria/categorias")
def create_categoria(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.create_categoria(deps, ctx, payload))


@router.get("/admin/galeria/categorias/{categoria_id}")
def get_categoria(
    categoria_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.get_categoria(deps, ctx, categoria_id))


@router.patch("/admin/galeria/categorias/{categoria_id}")
def update_categoria(
    categoria_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.update_categoria(deps, ctx, categoria_id, payload))


@router.delete("/admin/galeria/categorias/{categoria_id}")
def delete_categoria(
    categoria_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.delete_categoria(deps, ctx, categoria_id))


@router.post("/admin/galeria/categorias/{categoria_id}/toggle-status")
def toggle_categoria_status(
    categoria_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.toggle_categoria_status(deps, ctx, categoria_id))


@router.get("/admin/galeria/slug")
def generate_slug(
    nome: str = "",
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.generate_available_slug(deps, ctx, nome))


# ---- admin: itens ----

@router.get("/admin/galeria/itens")
def list_admin_itens(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.list_admin_itens(deps, ctx, query_params(request)))


@router.post("/admin/galeria/itens")
def create_item(
    titulo: Optional[str] = Form(default=None),
    descricao: Optional[str] = Form(default=None),
    categoria_id: Optional[str] = Form(default=None),
    tipo: Optional[str] = Form(default=None),
    ordem: Optional[str] = Form(default=None),
    status: Optional[str] = Form(default=None),
    destaque: Optional[str] = Form(default=None),
    arquivo_file: Optional[UploadFile] = File(default=None),
    thumbnail_file: Optional[UploadFile] = File(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    fields = {
        "titulo": titulo,
        "descricao": descricao,
        "categoria_id": categoria_id,
        "tipo": tipo,
        "ordem": ordem,
        "status": status,
        "destaque": destaque,
    }
    payload = {key: value for key, value in fields.items() if value not in (None, "")}
    envelope = gallery.create_item(deps, ctx, payload, read_upload(arquivo_file), read_upload(thumbnail_file))
    return to_json_response(envelope)


@router.get("/admin/galeria/itens/{item_id}")
def get_item(
    item_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.get_item(deps, ctx, item_id))


@router.patch("/admin/galeria/itens/{item_id}")
def update_item(
    item_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.update_item(deps, ctx, item_id, payload))


@router.delete("/admin/galeria/itens/{item_id}")
def delete_item(
    item_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.delete_item(deps, ctx, item_id))


@router.post("/admin/galeria/itens/{item_id}/toggle-status")
def toggle_item_status(
    item_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.toggle_item_status(deps, ctx, item_id))


@router.post("/admin/galeria/itens/{item_id}/toggle-destaque")
def toggle_item_destaque(
    item_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.toggle_item_destaque(deps, ctx, item_id))


@router.get("/admin/galeria/stats")
def gallery_stats(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(gallery.get_gallery_stats(deps, ctx))


@router.options("/galeria/{path:path}")
def public_gallery_options(path: str):
    return options_response("GET", "POST")


@router.options("/admin/galeria/{path:path}")
def admin_gallery_options(path: str):
    return options_response("GET", "POST", "PATCH", "DELETE")
