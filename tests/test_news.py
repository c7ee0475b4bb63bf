from datetime import date, timedelta

from pac_portal.actions import news
from pac_portal.db import models

from tests.conftest import make_profile


def _create(deps, ctx, **overrides):
    payload = {"titulo": "Operação Verão 2026", "conteudo": "Texto completo", "categoria": "operacoes"}
    payload.update(overrides)
    result = news.create_news(deps, ctx, payload)
    assert result.success is True, result.details
    return result.data


def test_create_generates_unique_slug(deps, admin, admin_ctx):
    first = _create(deps, admin_ctx)
    second = _create(deps, admin_ctx)

    assert first["slug"] == "operacao-verao-2026"
    assert second["slug"] == "operacao-verao-2026-2"
    assert first["autor_id"] == admin.id
    assert first["autor"]["full_name"] == "Admin PAC"
    assert first["data_publicacao"] == date.today()
    assert first["status"] == "rascunho"


def test_explicit_slug_conflict(deps, admin_ctx):
    _create(deps, admin_ctx, slug="boletim")
    result = news.create_news(deps, admin_ctx, {"titulo": "Outro", "conteudo": "x", "slug": "boletim"})
    assert result.status_code == 409


def test_anonymous_callers_only_see_published(deps, admin_ctx, anon_ctx, agent_ctx):
    _create(deps, admin_ctx, titulo="Rascunho interno")
    _create(deps, admin_ctx, titulo="Nota pública", status="publicado")

    public = news.list_news(deps, anon_ctx, {})
    assert [row["titulo"] for row in public.data] == ["Nota pública"]

    internal = news.list_news(deps, agent_ctx, {})
    assert {row["titulo"] for row in internal.data} == {"Rascunho interno", "Nota pública"}

    drafts = news.list_news(deps, admin_ctx, {"status": "rascunho"})
    assert [row["titulo"] for row in drafts.data] == ["Rascunho interno"]

    assert news.get_news_by_slug(deps, anon_ctx, "rascunho-interno").status_code == 404


def test_get_by_slug_counts_views(deps, admin_ctx, anon_ctx):
    _create(deps, admin_ctx, status="publicado")

    news.get_news_by_slug(deps, anon_ctx, "operacao-verao-2026")
    result = news.get_news_by_slug(deps, anon_ctx, "operacao-verao-2026")

    assert result.data["views"] == 2


def test_publishing_notifies_admins_once(deps, admin, admin_ctx, db_session):
    colleague = make_profile(db_session, role="admin")
    created = _create(deps, admin_ctx)
    assert db_session.query(models.Notification).count() == 0

    news.update_news(deps, admin_ctx, created["id"], {"status": "publicado"})
    news.update_news(deps, admin_ctx, created["id"], {"resumo": "Resumo novo"})

    rows = db_session.query(models.Notification).filter_by(type="news_published").all()
    assert {row.user_id for row in rows} == {admin.id, colleague.id}
    actions = sorted(row.action_type for row in db_session.query(models.SystemActivity).all())
    assert actions == ["news_created", "news_updated", "news_updated"]


def test_delete_news(deps, admin_ctx, db_session, invalidated):
    created = _create(deps, admin_ctx)

    result = news.delete_news(deps, admin_ctx, created["id"])

    assert result.success is True
    assert db_session.get(models.Noticia, created["id"]) is None
    assert "/noticias/operacao-verao-2026" in invalidated
    deleted = db_session.query(models.SystemActivity).filter_by(action_type="news_deleted").one()
    assert deleted.resource_id == created["id"]


def test_related_stats_and_categories(deps, admin_ctx, anon_ctx):
    old = (date.today() - timedelta(days=90)).isoformat()
    _create(deps, admin_ctx, titulo="Principal", status="publicado")
    _create(deps, admin_ctx, titulo="Relacionada", status="publicado", destaque=True)
    _create(deps, admin_ctx, titulo="Antiga", status="publicado", data_publicacao=old)
    _create(deps, admin_ctx, titulo="Treino", status="publicado", categoria="treinamentos")
    _create(deps, admin_ctx, titulo="Rascunho")

    related = news.get_related_news(deps, anon_ctx, {"slug": "principal", "category": "operacoes"})
    assert [row["titulo"] for row in related.data] == ["Relacionada", "Antiga"]

    stats = news.get_news_stats(deps, anon_ctx).data
    assert stats == {"total": 5, "published": 4, "featured": 1, "recent": 3, "canViewStats": False}

    categories = news.get_news_categories(deps, anon_ctx).data
    assert categories == [
        {"value": "operacoes", "label": "Operacoes"},
        {"value": "treinamentos", "label": "Treinamentos"},
    ]


def test_news_admin_only(deps, agent_ctx, db_session):
    result = news.create_news(deps, agent_ctx, {"titulo": "Tentativa", "conteudo": "x"})
    assert result.status_code == 403
    assert db_session.query(models.Noticia).count() == 0
