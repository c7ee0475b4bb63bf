import uuid
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pac_portal.actions.base import ActionDeps
from pac_portal.core.config import Settings
from pac_portal.core.context import RequestContext
from pac_portal.core.supabase import SupabaseError
from pac_portal.db import models
from pac_portal.services.invalidation import CacheInvalidator
from pac_portal.services.storage import StorageError, parse_public_url

STORAGE_BASE = "https://projeto.supabase.co/storage/v1/object/public"

ADMIN_TOKEN = "token-admin"
AGENT_TOKEN = "token-agent"
INACTIVE_TOKEN = "token-inactive"


class FakeAuthClient:
    def __init__(self):
        self.users: dict[str, dict] = {}
        self.passwords: dict[str, tuple[str, str]] = {}
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.signed_out: list[str] = []
        self.create_error: Optional[SupabaseError] = None
        self.lookup_error: Optional[SupabaseError] = None

    def register(self, token: str, user_id: str, email: str, password: str = "senha-forte") -> None:
        self.users[token] = {"id": user_id, "email": email}
        self.passwords[email] = (password, token)

    def get_user(self, access_token: str) -> dict:
        if self.lookup_error:
            raise self.lookup_error
        if access_token not in self.users:
            raise SupabaseError("invalid JWT", 401)
        return self.users[access_token]

    def sign_in_with_password(self, email: str, password: str) -> dict:
        expected = self.passwords.get(email)
        if not expected or expected[0] != password:
            raise SupabaseError("Invalid login credentials", 400)
        token = expected[1]
        return {
            "access_token": token,
            "refresh_token": f"refresh-{token}",
            "expires_in": 3600,
            "token_type": "bearer",
            "user": self.users[token],
        }

    def exchange_code_for_session(self, code: str, code_verifier: Optional[str] = None) -> dict:
        if code != "codigo-valido":
            raise SupabaseError("invalid flow state", 400)
        return {"access_token": ADMIN_TOKEN, "expires_in": 3600}

    def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    def admin_create_user(self, email: str, password: str, user_metadata: Optional[dict] = None) -> dict:
        if self.create_error:
            raise self.create_error
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": user_metadata or {}}
        self.created.append(user)
        return user

    def admin_delete_user(self, user_id: str) -> None:
        self.deleted.append(user_id)


class FakeStorageClient:
    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.removed: list[tuple[str, str]] = []
        self.upload_error: Optional[StorageError] = None

    def upload(self, bucket, path, data, content_type=None, upsert=False):
        if self.upload_error:
            raise self.upload_error
        self.objects[(bucket, path)] = data
        return path

    def public_url(self, bucket, path):
        return f"{STORAGE_BASE}/{bucket}/{path}"

    def remove(self, bucket, paths):
        for path in paths:
            self.objects.pop((bucket, path), None)
            self.removed.append((bucket, path))

    def delete_by_url(self, url):
        bucket, path = parse_public_url(url)
        if not bucket or not path:
            return False
        self.remove(bucket, [path])
        return True


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture()
def settings():
    test_settings = Settings()
    test_settings.ENV = "development"
    test_settings.SUPABASE_URL = "https://projeto.supabase.co"
    test_settings.SUPABASE_ANON_KEY = "anon"
    test_settings.SUPABASE_SERVICE_ROLE_KEY = "service"
    test_settings.SUPABASE_JWT_SECRET = None
    test_settings.SITE_URL = "https://portal.example.com"
    return test_settings


@pytest.fixture()
def auth_client():
    return FakeAuthClient()


@pytest.fixture()
def storage_client():
    return FakeStorageClient()


@pytest.fixture()
def invalidated():
    return []


@pytest.fixture()
def deps(db_session, auth_client, storage_client, invalidated, settings):
    invalidator = CacheInvalidator()
    invalidator.subscribe(invalidated.append)
    return ActionDeps(
        db=db_session,
        auth=auth_client,
        storage=storage_client,
        invalidator=invalidator,
        settings=settings,
    )


def make_profile(db, **overrides) -> models.Profile:
    values = {
        "id": str(uuid.uuid4()),
        "email": f"{uuid.uuid4().hex[:8]}@pac.org.br",
        "full_name": "Agente Teste",
        "matricula": str(uuid.uuid4().int)[:11],
        "role": "agent",
        "status": True,
    }
    values.update(overrides)
    profile = models.Profile(**values)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture()
def admin(db_session, auth_client):
    profile = make_profile(
        db_session, email="admin@pac.org.br", full_name="Admin PAC", matricula="11111111111", role="admin"
    )
    auth_client.register(ADMIN_TOKEN, profile.id, profile.email)
    return profile


@pytest.fixture()
def agent(db_session, auth_client):
    profile = make_profile(db_session, email="agente@pac.org.br", full_name="Agente Silva", matricula="22222222222")
    auth_client.register(AGENT_TOKEN, profile.id, profile.email)
    return profile


@pytest.fixture()
def inactive_agent(db_session, auth_client):
    profile = make_profile(
        db_session, email="inativo@pac.org.br", full_name="Agente Inativo", matricula="33333333333", status=False
    )
    auth_client.register(INACTIVE_TOKEN, profile.id, profile.email)
    return profile


@pytest.fixture()
def admin_ctx(admin):
    return RequestContext(access_token=ADMIN_TOKEN)


@pytest.fixture()
def agent_ctx(agent):
    return RequestContext(access_token=AGENT_TOKEN)


@pytest.fixture()
def anon_ctx():
    return RequestContext()
