from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from pac_portal.actions import news
from pac_portal.actions.base import ActionDeps
from pac_portal.api.deps import get_action_deps, get_request_context, query_params
from pac_portal.core.context import RequestContext
from pac_portal.core.responses import options_response, to_json_response

router = APIRouter(tags=["Notícias"])


@router.get("/news")
def list_news(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.list_news(deps, ctx, query_params(request)))


@router.get("/news/stats")
def news_stats(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.get_news_stats(deps, ctx))


@router.get("/news/categories")
def news_categories(
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.get_news_categories(deps, ctx))


@router.get("/news/related")
def related_news(
    request: Request,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.get_related_news(deps, ctx, query_params(request)))


@router.get("/news/{slug}")
def get_news(
    slug: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.get_news_by_slug(deps, ctx, slug))


@router.post("/admin/news")
def create_news(
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.create_news(deps, ctx, payload))


@router.patch("/admin/news/{news_id}")
def update_news(
    news_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.update_news(deps, ctx, news_id, payload))


@router.delete("/admin/news/{news_id}")
def delete_news(
    news_id: str,
    deps: ActionDeps = Depends(get_action_deps),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_json_response(news.delete_news(deps, ctx, news_id))


@router.options("/news")
@router.options("/news/stats")
@router.options("/news/categories")
@router.options("/news/related")
def news_options():
    return options_response("GET")


@router.options("/news/{slug}")
def news_item_options(slug: str):
    return options_response("GET")


@router.options("/admin/news")
def admin_news_options():
    return options_response("POST")


@router.options("/admin/news/{news_id}")
def admin_news_item_options(news_id: str):
    return options_response("PATCH", "DELETE")
