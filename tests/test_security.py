from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from pac_portal.core.context import RequestContext
from pac_portal.core.errors import AuthenticationError, AuthorizationError, UpstreamError
from pac_portal.core.security import authenticate, optional_identity, require_admin
from pac_portal.core.supabase import SupabaseError

from tests.conftest import ADMIN_TOKEN, AGENT_TOKEN, INACTIVE_TOKEN


def test_missing_token_is_unauthenticated(deps):
    with pytest.raises(AuthenticationError) as caught:
        authenticate(deps, RequestContext())
    assert caught.value.message == "Não autorizado"
    assert caught.value.status_code == 401


def test_unknown_token_is_unauthenticated(deps, admin):
    with pytest.raises(AuthenticationError):
        authenticate(deps, RequestContext(access_token="desconhecido"))


def test_auth_service_outage_is_upstream(deps, admin, auth_client):
    auth_client.lookup_error = SupabaseError("connection refused", None)
    with pytest.raises(UpstreamError):
        authenticate(deps, RequestContext(access_token=ADMIN_TOKEN))


def test_inactive_profile_is_rejected(deps, inactive_agent):
    with pytest.raises(AuthorizationError) as caught:
        authenticate(deps, RequestContext(access_token=INACTIVE_TOKEN))
    assert caught.value.message == "Conta inativa"


def test_require_admin(deps, admin, agent):
    identity = require_admin(deps, RequestContext(access_token=ADMIN_TOKEN))
    assert identity.id == admin.id
    assert identity.is_admin

    with pytest.raises(AuthorizationError) as caught:
        require_admin(deps, RequestContext(access_token=AGENT_TOKEN))
    assert caught.value.status_code == 403


def test_local_jwt_verification(deps, agent, settings, auth_client):
    settings.SUPABASE_JWT_SECRET = "segredo-local"
    token = jwt.encode(
        {
            "sub": agent.id,
            "email": agent.email,
            "aud": "authenticated",
            "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        },
        "segredo-local",
        algorithm="HS256",
    )
    auth_client.lookup_error = SupabaseError("nao deveria ser chamado", 500)

    identity = authenticate(deps, RequestContext(access_token=token))
    assert identity.id == agent.id
    assert identity.role == "agent"


def test_local_jwt_rejects_wrong_secret(deps, agent, settings):
    settings.SUPABASE_JWT_SECRET = "segredo-local"
    token = jwt.encode({"sub": agent.id, "aud": "authenticated"}, "outro-segredo", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        authenticate(deps, RequestContext(access_token=token))


def test_optional_identity(deps, agent):
    assert optional_identity(deps, RequestContext()) is None
    assert optional_identity(deps, RequestContext(access_token="desconhecido")) is None
    assert optional_identity(deps, RequestContext(access_token=AGENT_TOKEN)).id == agent.id
