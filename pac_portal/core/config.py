import os
from functools import lru_cache
from pathlib import Path
from typing import List
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()

REQUIRED_VARS = ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY")
LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}


class ConfigError(RuntimeError):
    def __init__(self, problems: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class Settings:
    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent.parent.parent
        self.APP_NAME: str = os.getenv("APP_NAME", "PAC Portal API")
        self.ENV: str = os.getenv("ENV", "development")
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "").strip().rstrip("/")
        self.SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "").strip()
        self.SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
        self.SUPABASE_JWT_SECRET: str | None = os.getenv("SUPABASE_JWT_SECRET") or None
        self.SQLALCHEMY_DATABASE_URI: str = (
            os.getenv("SUPABASE_DB_URL")
            or os.getenv("DATABASE_URL")
            or f"sqlite:///{(base_dir / 'pac_portal.db').as_posix()}"
        )
        self.SITE_URL: str = os.getenv("SITE_URL", "http://localhost:3000").rstrip("/")
        self.DEFAULT_AGENT_PASSWORD: str = os.getenv("DEFAULT_AGENT_PASSWORD", "PAC@2025!Secure")
        self.HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

        default_cors = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
        cors_origins = os.getenv("BACKEND_CORS_ORIGINS")
        self.BACKEND_CORS_ORIGINS: List[str] = (
            [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
            if cors_origins
            else default_cors
        )

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


def _is_loopback(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    return host in LOOPBACK_HOSTS


def validate_environment(settings: Settings) -> list[str]:
    problems: list[str] = []
    missing = [name for name in REQUIRED_VARS if not getattr(settings, name)]
    if missing:
        problems.append(f"Variaveis de ambiente ausentes: {', '.join(missing)}")
    if settings.SUPABASE_URL and urlparse(settings.SUPABASE_URL).scheme != "https":
        problems.append("SUPABASE_URL deve usar https")
    if settings.is_production:
        if settings.SUPABASE_URL and _is_loopback(settings.SUPABASE_URL):
            problems.append("SUPABASE_URL nao pode apontar para localhost em producao")
        if _is_loopback(settings.SITE_URL):
            problems.append("SITE_URL nao pode ser localhost em producao")
    return problems


def ensure_environment(settings: Settings) -> None:
    problems = validate_environment(settings)
    if problems:
        raise ConfigError(problems)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
