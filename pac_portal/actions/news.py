from datetime import date, timedelta
from typing import Any, Optional

from sqlalchemy import or_

from pac_portal.actions.base import ActionDeps, action, invalidate, paginate, run_post_commit
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import ConflictError, NotFoundError, ValidationError
from pac_portal.core.responses import success_response
from pac_portal.core.security import optional_identity, require_admin
from pac_portal.db import models
from pac_portal.schemas.news import NewsCreate, NewsFilters, NewsUpdate, RelatedNewsParams
from pac_portal.schemas.validation import validate_id, validate_input
from pac_portal.services import audit, notifications
from pac_portal.services.slugs import available_slug

PUBLISHED = "publicado"
RECENT_DAYS = 30


def _news_to_dict(noticia: models.Noticia) -> dict[str, Any]:
    data = models.row_to_dict(noticia)
    autor = noticia.autor
    data["autor"] = (
        {"full_name": autor.full_name, "avatar_url": autor.avatar_url, "graduacao": autor.graduacao}
        if autor
        else None
    )
    return data


def _slug_taken(deps: ActionDeps, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = deps.db.query(models.Noticia.id).filter(models.Noticia.slug == slug)
    if exclude_id:
        query = query.filter(models.Noticia.id != exclude_id)
    return query.first() is not None


def _get_news_or_404(deps: ActionDeps, news_id: str) -> models.Noticia:
    noticia = deps.db.get(models.Noticia, news_id)
    if not noticia:
        raise NotFoundError("Notícia não encontrada")
    return noticia


def _notify_published(deps: ActionDeps, noticia: models.Noticia) -> None:
    run_post_commit(
        deps,
        "notificar publicacao",
        notifications.notify_admins,
        deps.db,
        type="news_published",
        title="Notícia publicada",
        message=f'A notícia "{noticia.titulo}" foi publicada.',
        action_url=f"/noticias/{noticia.slug}",
        metadata={"resource_type": "noticia", "resource_id": noticia.id},
    )


@action("Erro ao buscar notícias")
def list_news(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]] = None):
    identity = optional_identity(deps, ctx)
    filters = validate_input(NewsFilters, params)
    query = deps.db.query(models.Noticia)
    if identity is None:
        query = query.filter(models.Noticia.status == PUBLISHED)
    elif filters.status:
        query = query.filter(models.Noticia.status == filters.status)
    if filters.category:
        query = query.filter(models.Noticia.categoria == filters.category)
    if filters.featured is not None:
        query = query.filter(models.Noticia.destaque.is_(filters.featured))
    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(or_(models.Noticia.titulo.ilike(term), models.Noticia.resumo.ilike(term)))
    query = query.order_by(
        models.Noticia.data_publicacao.desc(),
        models.Noticia.created_at.desc(),
        models.Noticia.id.asc(),
    )
    items, pagination = paginate(query, filters.page, filters.limit)
    return success_response([_news_to_dict(item) for item in items], pagination=pagination)


@action("Erro ao buscar notícia")
def get_news_by_slug(deps: ActionDeps, ctx: RequestContext, slug: str):
    identity = optional_identity(deps, ctx)
    query = deps.db.query(models.Noticia).filter(models.Noticia.slug == slug)
    if identity is None:
        query = query.filter(models.Noticia.status == PUBLISHED)
    noticia = query.first()
    if not noticia:
        raise NotFoundError("Notícia não encontrada")
    noticia.views = (noticia.views or 0) + 1
    deps.db.commit()
    deps.db.refresh(noticia)
    return success_response(_news_to_dict(noticia))


@action("Erro ao buscar notícias relacionadas")
def get_related_news(deps: ActionDeps, ctx: RequestContext, params: Optional[dict[str, Any]]):
    data = validate_input(RelatedNewsParams, params)
    rows = (
        deps.db.query(models.Noticia)
        .filter(
            models.Noticia.categoria == data.category,
            models.Noticia.status == PUBLISHED,
            models.Noticia.slug != data.slug,
        )
        .order_by(models.Noticia.data_publicacao.desc(), models.Noticia.id.asc())
        .limit(data.limit)
        .all()
    )
    return success_response([_news_to_dict(row) for row in rows])


@action("Erro ao buscar estatísticas")
def get_news_stats(deps: ActionDeps, ctx: RequestContext):
    identity = optional_identity(deps, ctx)
    base = deps.db.query(models.Noticia)
    published = base.filter(models.Noticia.status == PUBLISHED)
    since = date.today() - timedelta(days=RECENT_DAYS)
    return success_response(
        {
            "total": base.count(),
            "published": published.count(),
            "featured": published.filter(models.Noticia.destaque.is_(True)).count(),
            "recent": published.filter(models.Noticia.data_publicacao >= since).count(),
            "canViewStats": identity is not None,
        }
    )


@action("Erro ao buscar categorias")
def get_news_categories(deps: ActionDeps, ctx: RequestContext):
    rows = (
        deps.db.query(models.Noticia.categoria)
        .filter(models.Noticia.status == PUBLISHED, models.Noticia.categoria.isnot(None))
        .distinct()
        .all()
    )
    categorias = [{"value": cat, "label": cat[:1].upper() + cat[1:]} for (cat,) in rows if cat]
    categorias.sort(key=lambda item: item["label"])
    return success_response(categorias)


@action("Erro ao criar notícia")
def create_news(deps: ActionDeps, ctx: RequestContext, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    data = validate_input(NewsCreate, payload)
    if data.slug:
        if _slug_taken(deps, data.slug):
            raise ConflictError("Já existe uma notícia com este slug")
        slug = data.slug
    else:
        slug = available_slug(data.titulo, lambda candidate: _slug_taken(deps, candidate), fallback="noticia")

    noticia = models.Noticia(
        **data.model_dump(exclude={"slug", "data_publicacao"}),
        slug=slug,
        autor_id=admin.id,
        data_publicacao=data.data_publicacao or date.today(),
        views=0,
    )
    deps.db.add(noticia)
    deps.db.commit()
    deps.db.refresh(noticia)
    created = _news_to_dict(noticia)

    run_post_commit(
        deps,
        "audit news_created",
        audit.log_activity,
        deps.db,
        admin.id,
        "news_created",
        f'Notícia "{noticia.titulo}" criada',
        resource_type="noticia",
        resource_id=noticia.id,
        metadata={"titulo": noticia.titulo, "slug": noticia.slug, "status": noticia.status},
    )
    if noticia.status == PUBLISHED:
        _notify_published(deps, noticia)
    invalidate(deps, "/noticias", "/")
    return success_response(created, message="Notícia criada com sucesso!", status_code=201)


@action("Erro ao atualizar notícia")
def update_news(deps: ActionDeps, ctx: RequestContext, news_id: str, payload: Optional[dict[str, Any]]):
    admin = require_admin(deps, ctx)
    news_id = validate_id(news_id)
    data = validate_input(NewsUpdate, payload)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError({"_root": ["Nenhum dado fornecido para atualização"]})

    noticia = _get_news_or_404(deps, news_id)
    if changes.get("slug") and changes["slug"] != noticia.slug and _slug_taken(deps, changes["slug"], news_id):
        raise ConflictError("Já existe uma notícia com este slug")
    previous_status = noticia.status
    previous_slug = noticia.slug
    for field, value in changes.items():
        if value is None and field in ("slug", "titulo", "conteudo", "status", "destaque"):
            continue
        setattr(noticia, field, value)
    deps.db.commit()
    deps.db.refresh(noticia)
    updated = _news_to_dict(noticia)

    run_post_commit(
        deps,
        "audit news_updated",
        audit.log_activity,
        deps.db,
        admin.id,
        "news_updated",
        f'Notícia "{noticia.titulo}" atualizada',
        resource_type="noticia",
        resource_id=noticia.id,
        metadata={
            "titulo": noticia.titulo,
            "slug": noticia.slug,
            "status": noticia.status,
            "destaque": noticia.destaque,
        },
    )
    if noticia.status == PUBLISHED and previous_status != PUBLISHED:
        _notify_published(deps, noticia)
    invalidate(deps, "/noticias", f"/noticias/{previous_slug}", f"/noticias/{noticia.slug}", "/")
    return success_response(updated, message="Notícia atualizada com sucesso!")


@action("Erro ao deletar notícia")
def delete_news(deps: ActionDeps, ctx: RequestContext, news_id: str):
    admin = require_admin(deps, ctx)
    news_id = validate_id(news_id)
    noticia = _get_news_or_404(deps, news_id)
    titulo, slug = noticia.titulo, noticia.slug
    deps.db.delete(noticia)
    deps.db.commit()

    run_post_commit(
        deps,
        "audit news_deleted",
        audit.log_activity,
        deps.db,
        admin.id,
        "news_deleted",
        f'Notícia "{titulo}" deletada',
        resource_type="noticia",
        resource_id=news_id,
    )
    invalidate(deps, "/noticias", f"/noticias/{slug}", "/")
    return success_response(message="Notícia excluída com sucesso!")
