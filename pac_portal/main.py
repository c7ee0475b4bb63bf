import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from pac_portal.api.v1.agents import router as agents_router
from pac_portal.api.v1.auth import router as auth_router
from pac_portal.api.v1.events import router as events_router
from pac_portal.api.v1.gallery import router as gallery_router
from pac_portal.api.v1.news import router as news_router
from pac_portal.api.v1.notifications import router as notifications_router
from pac_portal.api.v1.system import router as system_router
from pac_portal.api.v1.uploads import router as uploads_router
from pac_portal.core.config import ConfigError, settings, validate_environment
from pac_portal.core.errors import ValidationError
from pac_portal.core.responses import error_response, to_json_response
from pac_portal.db import models
from pac_portal.db.session import engine
from pac_portal.schemas.validation import error_details

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("pac_portal.http")

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Portal PAC - agentes, eventos, noticias, galeria e notificacoes",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    problems = validate_environment(settings)
    if problems:
        if settings.is_production:
            raise ConfigError(problems)
        for problem in problems:
            logger.warning("Configuracao: %s", problem)
    if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        models.Base.metadata.create_all(bind=engine)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = error_details(exc.errors(), skip_prefix=True)
    return to_json_response(error_response(ValidationError(details)))


app.include_router(auth_router, prefix="/api")
app.include_router(agents_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(system_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")
app.include_router(events_router, prefix="/api")
app.include_router(news_router, prefix="/api")
app.include_router(gallery_router, prefix="/api")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.get("/api/health")
def health():
    return {"status": "ok"}
