import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from pac_portal.core.config import Settings
from pac_portal.core.context import RequestContext
from pac_portal.core.errors import AppError, ConflictError, UpstreamError
from pac_portal.core.responses import Pagination, ResponseEnvelope, error_response
from pac_portal.core.supabase import SupabaseError
from pac_portal.services.invalidation import CacheInvalidator
from pac_portal.services.storage import StorageError

logger = logging.getLogger("pac_portal.actions")

GENERIC_ERROR = "Erro interno do servidor"


@dataclass
class ActionDeps:
    db: Session
    auth: Any
    storage: Any
    invalidator: CacheInvalidator
    settings: Settings


def _rollback(deps: ActionDeps) -> None:
    try:
        deps.db.rollback()
    except SQLAlchemyError:
        logger.exception("Falha ao desfazer transacao")


def _upstream(deps: ActionDeps, default_error: str, exc: Exception) -> ResponseEnvelope:
    if deps.settings.is_production:
        return error_response(UpstreamError(GENERIC_ERROR), expose_details=False)
    return error_response(UpstreamError(f"{default_error}: {exc}"))


def action(default_error: str) -> Callable:
    """Handler boundary: every outcome of the wrapped action becomes a ResponseEnvelope."""

    def decorator(func: Callable[..., ResponseEnvelope]) -> Callable[..., ResponseEnvelope]:
        @wraps(func)
        def wrapper(deps: ActionDeps, ctx: RequestContext, *args: Any, **kwargs: Any) -> ResponseEnvelope:
            name = func.__name__
            try:
                return func(deps, ctx, *args, **kwargs)
            except UpstreamError as exc:
                _rollback(deps)
                logger.error("%s falhou request_id=%s: %s", name, ctx.request_id, exc.message)
                if deps.settings.is_production:
                    return error_response(UpstreamError(GENERIC_ERROR), expose_details=False)
                return error_response(exc)
            except AppError as exc:
                _rollback(deps)
                logger.info("%s recusado request_id=%s status=%s: %s", name, ctx.request_id, exc.status_code, exc.message)
                return error_response(exc)
            except IntegrityError as exc:
                _rollback(deps)
                logger.warning("%s conflito request_id=%s: %s", name, ctx.request_id, exc.orig)
                return error_response(ConflictError())
            except SQLAlchemyError as exc:
                _rollback(deps)
                logger.exception("%s erro de banco request_id=%s", name, ctx.request_id)
                return _upstream(deps, default_error, exc)
            except (SupabaseError, StorageError) as exc:
                _rollback(deps)
                logger.exception("%s erro no servico externo request_id=%s", name, ctx.request_id)
                return _upstream(deps, default_error, exc)
            except Exception as exc:
                _rollback(deps)
                logger.exception("%s erro inesperado request_id=%s", name, ctx.request_id)
                return _upstream(deps, default_error, exc)

        return wrapper

    return decorator


def run_post_commit(deps: ActionDeps, label: str, func: Callable, *args: Any, **kwargs: Any) -> Optional[Any]:
    """Run a side effect after the primary mutation committed; failures are logged, never raised."""
    try:
        return func(*args, **kwargs)
    except Exception:
        _rollback(deps)
        logger.exception("Falha no efeito colateral %s", label)
        return None


def invalidate(deps: ActionDeps, *paths: str) -> None:
    run_post_commit(deps, "invalidate", deps.invalidator.invalidate, *paths)


def paginate(query: Query, page: int, limit: int) -> tuple[list, Pagination]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, Pagination.build(page, limit, total)
