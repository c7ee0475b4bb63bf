import time
import uuid
from collections import defaultdict
from typing import Any, Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from pac_portal.actions.base import ActionDeps, action, invalidate, paginate, run_post_commit
from pac_portal.actions.uploads import remove_stored, store_file
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import ConflictError, NotFoundError, ValidationError
from pac_portal.core.responses import success_response
from pac_portal.core.security import require_admin
from pac_portal.db import models
from pac_portal.schemas.gallery import (
    CategoriaCreate,
    CategoriaFilters,
    CategoriaUpdate,
    ItemCreate,
    ItemFilters,
    ItemUpdate,
    PublicItemFilters,
)
from pac_portal.schemas.uploads import UploadedFile
from pac_portal.schemas.validation import validate_id, validate_input
from pac_portal.services import audit, notifications
from pac_portal.services.slugs import available_slug
from pac_portal.services.storage import StorageError, parse_public_url
from pac_portal.services.upload_config import GALLERY_PHOTO, GALLERY_VIDEO, file_extension

GALLERY_PATHS = ("/admin/galeria", "/galeria")
SHOWCASE_CANDIDATES = 6
SHOWCASE_SIZE = 3

Categoria = models.GaleriaCategoria
Item = models.GaleriaItem


# ---- derived attributes ----

def _cover_url(item: Item) -> Optional[str]:
    if item.thumbnail_url:
        return item.thumbnail_url
    if item.tipo == "foto":
        return item.arquivo_url
    return None


def _items_by_category(deps: ActionDeps, category_ids: Iterable[str]) -> dict[str, list[Item]]:
    ids = list(category_ids)
    grouped: dict[str, list[Item]] = defaultdict(list)
    if not ids:
        return grouped
    rows = (
        deps.db.query(Item)
        .filter(Item.categoria_id.in_(ids))
        .order_by(Item.created_at.desc(), Item.id.asc())
        .all()
    )
    for row in rows:
        grouped[row.categoria_id].append(row)
    return grouped


def _categoria_to_dict(categoria: Categoria, items: list[Item]) -> dict[str, Any]:
    data = models.row_to_dict(categoria)
    covers = [url for url in (_cover_url(item) for item in items) if url]
    data["item_count"] = len(items)
    data["tem_destaque"] = any(item.destaque for item in items)
    data["ultima_imagem_url"] = covers[0] if covers else None
    return data


def _categorias_to_dicts(deps: ActionDeps, categorias: list[Categoria]) -> list[dict[str, Any]]:
    grouped = _items_by_category(deps, [c.id for c in categorias])
    return [_categoria_to_dict(c, grouped.get(c.id, [])) for c in categorias]


def _item_to_dict(item: Item) -> dict[str, Any]:
    data = models.row_to_dict(item)
    categoria = item.categoria
    data["galeria_categorias"] = (
        {"id": categoria.id, "nome": categoria.nome, "slug": categoria.slug, "tipo": categoria.tipo}
        if categoria
        else None
    )
    return data


def _get_categoria_or_404(deps: ActionDeps, categoria_id: str) -> Categoria:
    categoria = deps.db.get(Categoria, categoria_id)
    if not categoria:
        raise NotFoundError("Categoria não encontrada")
    return categoria


def _get_item_or_404(deps: ActionDeps, item_id: str) -> Item:
    item = deps.db.get(Item, item_id)
    if not item:
        raise NotFoundError("Item não encontrado")
    return item


def _slug_in_use(deps: ActionDeps, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = deps.db.query(Categoria.id).filter(Categoria.slug == slug)
    if exclude_id:
        query = query.filter(Categoria.id != exclude_id)
    return query.first() is not None


def _log(deps: ActionDeps, user_id: str, action_type: str, description: str, resource_type: str,
         resource_id: str, metadata: Optional[dict[str, Any]] = None) -> None:
    run_post_commit(
        deps,
        f"audit {action_type}",
        audit.log_activity,
        deps.db,
        user_id,
        action_type,
        description,
        resource_type=resource_type,
        resource_id=resource_id,
        metadata=metadata,
    )


# ---- categories ----

@action("Erro ao buscar categorias")
def list_public_categorias(deps: ActionDeps, ctx: RequestContext):
    categorias = (
        deps.db.query(Categoria)
        .filter(Categoria.status.is_(True), Categoria.arquivada.is_(False))
        .order_by(Categoria.ordem.asc(), Categoria.created_at.desc(), Categoria.id.asc())
        .all()
    )
    return success_response(_categorias_to_dicts(deps, categorias))


@action("Erro ao buscar categoria")
def get_categoria_by_slug(deps: ActionDeps, ctx: RequestContext, slug: str):
    categoria = (
        deps.db.query(Categoria)
        .filter(Categoria.slug == slug, Categoria.status.is_(True), Categoria.arquivada.is_(False))
        .first()
    )
    if not categoria:
        raise NotFoundError("Categoria não encontrada")
    return success_response(_categorias_to_dicts(deps, [categoria])[0])


@action("Erro ao buscar categorias")
def list_admin_categorias(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    require_admin(deps, ctx)
    filters = validate_input(CategoriaFilters, params)
    query = deps.db.query(Categoria)
    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(or_(Categoria.nome.ilike(term), Categoria.descricao.ilike(term)))
    if filters.tipo != "all":
        query = query.filter(Categoria.tipo == filters.tipo)
    if filters.status != "all":
        query = query.filter(Categoria.status.is_(filters.status == "ativo"))
    if filters.arquivada != "all":
        query = query.filter(Categoria.arquivada.is_(filters.arquivada == "true"))
    query = query.order_by(Categoria.ordem.asc(), Categoria.created_at.desc(), Categoria.id.asc())
    categorias, pagination = paginate(query, filters.page, filters.limit)
    return success_response(_categorias_to_dicts(deps, categorias), pagination=pagination)


@action("Erro ao buscar categoria")
def get_categoria(deps: ActionDeps, ctx: RequestContext, categoria_id: str):
    require_admin(deps, ctx)
    categoria_id = validate_id(categoria_id)
    categoria = _get_categoria_or_404(deps, categoria_id)
    return success_response(_categorias_to_dicts(deps, [categoria])[0])


@action("Erro ao criar categoria")
def create_categoria(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    data = validate_input(CategoriaCreate, payload)
    if _slug_in_use(deps, data.slug):
        raise ConflictError("Slug já existe.")
    categoria = Categoria(**data.model_dump())
    deps.db.add(categoria)
    deps.db.commit()
    deps.db.refresh(categoria)
    created = _categoria_to_dict(categoria, [])

    _log(deps, admin.id, "categoria_created", f"Categoria {categoria.nome} criada", "galeria_categoria", categoria.id)
    invalidate(deps, *GALLERY_PATHS)
    return success_response(created, message="Categoria criada com sucesso!", status_code=201)


@action("Erro ao atualizar categoria")
def update_categoria(deps: ActionDeps, ctx: RequestContext, categoria_id: str, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    categoria_id = validate_id(categoria_id)
    data = validate_input(CategoriaUpdate, payload)
    changes = {field: value for field, value in data.model_dump(exclude_unset=True).items()
               if value is not None or field == "descricao"}
    if not changes:
        raise ValidationError({"_root": ["Nenhum dado fornecido para atualização"]})

    categoria = _get_categoria_or_404(deps, categoria_id)
    if changes.get("slug") and _slug_in_use(deps, changes["slug"], exclude_id=categoria_id):
        raise ConflictError("Slug em uso por outra categoria.")
    for field, value in changes.items():
        setattr(categoria, field, value)
    deps.db.commit()
    deps.db.refresh(categoria)
    updated = _categorias_to_dicts(deps, [categoria])[0]

    _log(deps, admin.id, "categoria_updated", f"Categoria {categoria.nome} atualizada", "galeria_categoria",
         categoria_id, metadata={"changes": changes})
    invalidate(deps, *GALLERY_PATHS)
    return success_response(updated, message="Categoria atualizada com sucesso!")


@action("Erro ao excluir categoria")
def delete_categoria(deps: ActionDeps, ctx: RequestContext, categoria_id: str):
    admin = require_admin(deps, ctx)
    categoria_id = validate_id(categoria_id)
    categoria = _get_categoria_or_404(deps, categoria_id)
    count = deps.db.query(Item).filter(Item.categoria_id == categoria_id).count()
    if count > 0:
        raise ConflictError(f"Categoria possui {count} itens. Esvazie-a antes.")
    nome = categoria.nome
    deps.db.delete(categoria)
    deps.db.commit()

    _log(deps, admin.id, "categoria_deleted", f"Categoria {nome} excluída", "galeria_categoria", categoria_id)
    invalidate(deps, *GALLERY_PATHS)
    return success_response(message="Categoria excluída com sucesso!")


@action("Erro ao alterar status da categoria")
def toggle_categoria_status(deps: ActionDeps, ctx: RequestContext, categoria_id: str):
    require_admin(deps, ctx)
    categoria = _get_categoria_or_404(deps, validate_id(categoria_id))
    return update_categoria(deps, ctx, categoria.id, {"status": not categoria.status})


@action("Erro ao gerar slug")
def generate_available_slug(deps: ActionDeps, ctx: RequestContext, nome: str):
    require_admin(deps, ctx)
    if not nome or not nome.strip():
        raise ValidationError({"nome": ["Campo obrigatório"]})
    slug = available_slug(nome, lambda candidate: _slug_in_use(deps, candidate), fallback="categoria")
    return success_response({"slug": slug})


# ---- items ----

@action("Erro ao buscar itens")
def list_public_itens(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    filters = validate_input(PublicItemFilters, params)
    query = deps.db.query(Item).filter(Item.status.is_(True))
    if filters.categoria_slug:
        query = query.join(Categoria, Item.categoria_id == Categoria.id).filter(
            Categoria.slug == filters.categoria_slug
        )
    query = query.order_by(Item.created_at.desc(), Item.id.asc())
    items, pagination = paginate(query, filters.page, filters.limit)
    return success_response([_item_to_dict(item) for item in items], pagination=pagination)


@action("Erro ao buscar itens")
def list_itens_por_categoria(deps: ActionDeps, ctx: RequestContext, categoria_id: str):
    categoria_id = validate_id(categoria_id)
    items = (
        deps.db.query(Item)
        .filter(Item.categoria_id == categoria_id, Item.status.is_(True))
        .order_by(Item.ordem.asc(), Item.created_at.desc(), Item.id.asc())
        .all()
    )
    return success_response([_item_to_dict(item) for item in items])


@action("Erro ao buscar itens")
def list_admin_itens(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    require_admin(deps, ctx)
    filters = validate_input(ItemFilters, params)
    query = deps.db.query(Item)
    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(or_(Item.titulo.ilike(term), Item.descricao.ilike(term)))
    if filters.categoria_id != "all":
        query = query.filter(Item.categoria_id == filters.categoria_id)
    if filters.tipo != "all":
        query = query.filter(Item.tipo == filters.tipo)
    if filters.status != "all":
        query = query.filter(Item.status.is_(filters.status == "ativo"))
    if filters.destaque != "all":
        query = query.filter(Item.destaque.is_(filters.destaque == "true"))
    column = Item.ordem if filters.sortBy == "ordem" else Item.created_at
    ordering = column.asc() if filters.sortOrder == "asc" else column.desc()
    query = query.order_by(ordering, Item.id.asc())
    items, pagination = paginate(query, filters.page, filters.limit)
    return success_response([_item_to_dict(item) for item in items], pagination=pagination)


@action("Erro ao buscar item")
def get_item(deps: ActionDeps, ctx: RequestContext, item_id: str):
    require_admin(deps, ctx)
    item_id = validate_id(item_id)
    return success_response(_item_to_dict(_get_item_or_404(deps, item_id)))


def _object_path(tipo: str, folder: str, file: UploadedFile) -> str:
    ext = file_extension(file.filename, "jpg" if tipo == "foto" else "mp4")
    return f"{folder}/{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.{ext}"


@action("Erro ao criar item")
def create_item(
    deps: ActionDeps,
    ctx: RequestContext,
    payload: Optional[dict[str, Any]],
    arquivo: Optional[UploadedFile],
    thumbnail: Optional[UploadedFile] = None,
):
    admin = require_admin(deps, ctx)
    data = validate_input(ItemCreate, payload)
    if arquivo is None or not arquivo.size:
        raise ValidationError({"arquivo_file": ["Arquivo obrigatório"]})
    if data.categoria_id:
        _get_categoria_or_404(deps, data.categoria_id.lower())

    config = GALLERY_PHOTO if data.tipo == "foto" else GALLERY_VIDEO
    uploaded: list[dict[str, str]] = []
    try:
        stored = store_file(deps, config, arquivo, _object_path(data.tipo, "galeria", arquivo), field="arquivo_file")
        uploaded.append(stored)
        thumbnail_url = None
        if data.tipo == "video" and thumbnail is not None and thumbnail.size:
            thumb = store_file(deps, GALLERY_PHOTO, thumbnail, _object_path("foto", "thumbnails", thumbnail),
                               field="thumbnail_file")
            uploaded.append(thumb)
            thumbnail_url = thumb["url"]

        item = Item(
            **data.model_dump(exclude={"categoria_id"}),
            categoria_id=data.categoria_id.lower() if data.categoria_id else None,
            arquivo_url=stored["url"],
            thumbnail_url=thumbnail_url,
            autor_id=admin.id,
        )
        deps.db.add(item)
        deps.db.commit()
    except (ValidationError, SQLAlchemyError, StorageError):
        deps.db.rollback()
        for obj in uploaded:
            remove_stored(deps, obj["bucket"], obj["path"])
        raise
    deps.db.refresh(item)
    created = _item_to_dict(item)

    _log(deps, admin.id, "item_created", f"Item {item.titulo} criado", "galeria_item", item.id)
    run_post_commit(
        deps,
        "notificar upload na galeria",
        notifications.notify_admins,
        deps.db,
        exclude_user_id=admin.id,
        type="gallery_upload",
        title="Novo item na galeria",
        message=f"{admin.display_name} adicionou \"{item.titulo}\" à galeria.",
        action_url=f"/admin/galeria/itens/{item.id}",
        metadata={"resource_type": "galeria_item", "resource_id": item.id, "user_id": admin.id},
    )
    invalidate(deps, *GALLERY_PATHS)
    return success_response(created, message="Item criado com sucesso!", status_code=201)


@action("Erro ao atualizar item")
def update_item(deps: ActionDeps, ctx: RequestContext, item_id: str, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    item_id = validate_id(item_id)
    data = validate_input(ItemUpdate, payload)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError({"_root": ["Nenhum dado fornecido para atualização"]})

    item = _get_item_or_404(deps, item_id)
    if changes.get("categoria_id"):
        changes["categoria_id"] = changes["categoria_id"].lower()
        _get_categoria_or_404(deps, changes["categoria_id"])
    for field, value in changes.items():
        if value is None and field not in ("descricao", "categoria_id"):
            continue
        setattr(item, field, value)
    deps.db.commit()
    deps.db.refresh(item)
    updated = _item_to_dict(item)

    _log(deps, admin.id, "item_updated", f"Item {item.titulo} atualizado", "galeria_item", item_id,
         metadata={"changes": changes})
    invalidate(deps, *GALLERY_PATHS)
    return success_response(updated, message="Item atualizado com sucesso!")


@action("Erro ao excluir item")
def delete_item(deps: ActionDeps, ctx: RequestContext, item_id: str):
    admin = require_admin(deps, ctx)
    item_id = validate_id(item_id)
    item = _get_item_or_404(deps, item_id)
    titulo = item.titulo
    urls = [item.arquivo_url, item.thumbnail_url]
    deps.db.delete(item)
    deps.db.commit()

    for url in urls:
        bucket, path = parse_public_url(url)
        if bucket and path:
            remove_stored(deps, bucket, path)
    _log(deps, admin.id, "item_deleted", f"Item {titulo} excluído", "galeria_item", item_id)
    invalidate(deps, *GALLERY_PATHS)
    return success_response(message="Item excluído com sucesso!")


@action("Erro ao alterar status do item")
def toggle_item_status(deps: ActionDeps, ctx: RequestContext, item_id: str):
    require_admin(deps, ctx)
    item = _get_item_or_404(deps, validate_id(item_id))
    return update_item(deps, ctx, item.id, {"status": not item.status})


@action("Erro ao alterar destaque do item")
def toggle_item_destaque(deps: ActionDeps, ctx: RequestContext, item_id: str):
    require_admin(deps, ctx)
    item = _get_item_or_404(deps, validate_id(item_id))
    return update_item(deps, ctx, item.id, {"destaque": not item.destaque})


@action("Erro ao registrar visualização")
def register_item_view(deps: ActionDeps, ctx: RequestContext, item_id: str):
    item_id = validate_id(item_id)
    updated = (
        deps.db.query(Item)
        .filter(Item.id == item_id, Item.status.is_(True))
        .update({Item.views: Item.views + 1}, synchronize_session=False)
    )
    if not updated:
        raise NotFoundError("Item não encontrado")
    deps.db.commit()
    return success_response({"id": item_id})


# ---- overview ----

@action("Erro ao buscar estatísticas")
def get_gallery_stats(deps: ActionDeps, ctx: RequestContext):
    require_admin(deps, ctx)
    db = deps.db
    return success_response(
        {
            "total_categorias": db.query(Categoria).count(),
            "total_itens": db.query(Item).count(),
            "total_fotos": db.query(Item).filter(Item.tipo == "foto").count(),
            "total_videos": db.query(Item).filter(Item.tipo == "video").count(),
            "itens_destaque": db.query(Item).filter(Item.destaque.is_(True)).count(),
            "categorias_ativas": db.query(Categoria).filter(Categoria.status.is_(True)).count(),
            "itens_ativos": db.query(Item).filter(Item.status.is_(True)).count(),
            "categorias_por_tipo": {
                "fotos": db.query(Categoria).filter(Categoria.tipo == "fotos").count(),
                "videos": db.query(Categoria).filter(Categoria.tipo == "videos").count(),
            },
        }
    )


@action("Não foi possível carregar a galeria.")
def get_gallery_showcase(deps: ActionDeps, ctx: RequestContext):
    categorias = (
        deps.db.query(Categoria)
        .filter(Categoria.status.is_(True), Categoria.arquivada.is_(False))
        .order_by(Categoria.created_at.desc(), Categoria.id.asc())
        .limit(SHOWCASE_CANDIDATES)
        .all()
    )
    showcase = []
    for data in _categorias_to_dicts(deps, categorias):
        if data["item_count"] == 0:
            continue
        data["capa_url"] = data["ultima_imagem_url"]
        showcase.append(data)
    return success_response(showcase[:SHOWCASE_SIZE])
