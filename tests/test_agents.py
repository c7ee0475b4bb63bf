import uuid

import pytest

from pac_portal.actions import agents
from pac_portal.core.supabase import SupabaseError
from pac_portal.db import models

from tests.conftest import make_profile


def _activities(db, action_type=None):
    query = db.query(models.SystemActivity)
    if action_type:
        query = query.filter(models.SystemActivity.action_type == action_type)
    return query.all()


def _new_agent_payload(**overrides):
    payload = {
        "matricula": "123.456.789-01",
        "email": "Novo.Agente@pac.org.br",
        "full_name": "Novo Agente",
        "graduacao": "Soldado",
        "uf": "rj",
    }
    payload.update(overrides)
    return payload


def test_update_status_writes_one_audit_row(deps, admin_ctx, db_session):
    target = make_profile(db_session, status=False, full_name="Carlos")

    result = agents.update_agent_status(deps, admin_ctx, target.id, {"status": True})

    assert result.success is True
    assert result.message == "Agente ativado com sucesso!"
    read = agents.get_agent(deps, admin_ctx, target.id)
    assert read.data["status"] is True
    rows = _activities(db_session, "agent_status_change")
    assert len(rows) == 1
    assert rows[0].resource_id == target.id
    assert rows[0].metadata_["previous_status"] is False
    assert rows[0].metadata_["new_status"] is True


def test_update_status_unchanged_is_noop(deps, admin_ctx, db_session):
    target = make_profile(db_session, status=True)

    result = agents.update_agent_status(deps, admin_ctx, target.id, {"status": True})

    assert result.success is True
    assert result.message == "Agente já está ativo."
    assert _activities(db_session) == []


@pytest.mark.parametrize(
    "call",
    [
        lambda deps, ctx, target: agents.list_agents(deps, ctx, {}),
        lambda deps, ctx, target: agents.get_agent(deps, ctx, target.id),
        lambda deps, ctx, target: agents.create_agent(deps, ctx, _new_agent_payload()),
        lambda deps, ctx, target: agents.update_agent(deps, ctx, target.id, {"full_name": "Outro Nome"}),
        lambda deps, ctx, target: agents.update_agent_status(deps, ctx, target.id, {"status": False}),
        lambda deps, ctx, target: agents.update_agent_matricula(deps, ctx, target.id, {"matricula": "99999999999"}),
        lambda deps, ctx, target: agents.delete_agent(deps, ctx, target.id),
    ],
)
def test_non_admin_is_refused_without_mutation(call, deps, agent_ctx, db_session, auth_client):
    target = make_profile(db_session, full_name="Alvo", matricula="44444444444")
    profiles_before = db_session.query(models.Profile).count()

    result = call(deps, agent_ctx, target)

    assert result.success is False
    assert result.status_code == 403
    assert result.error == "Apenas administradores podem acessar"
    db_session.expire_all()
    refreshed = db_session.get(models.Profile, target.id)
    assert refreshed.full_name == "Alvo"
    assert refreshed.matricula == "44444444444"
    assert refreshed.status is True
    assert db_session.query(models.Profile).count() == profiles_before
    assert _activities(db_session) == []
    assert auth_client.created == []
    assert auth_client.deleted == []


def test_delete_agent_scenario(deps, admin, admin_ctx, db_session, auth_client, invalidated):
    target = make_profile(db_session, matricula="12345678901", email="a@x.com", full_name="Ana")

    result = agents.delete_agent(deps, admin_ctx, target.id)

    assert result.success is True
    assert result.message == "Agente excluído com sucesso!"
    assert db_session.get(models.Profile, target.id) is None
    rows = _activities(db_session, "agent_deletion")
    assert len(rows) == 1
    assert rows[0].resource_id == target.id
    assert rows[0].user_id == admin.id
    assert "Ana" in rows[0].description
    assert "admin@pac.org.br" in rows[0].description
    assert rows[0].metadata_["agent_data"]["matricula"] == "12345678901"
    assert auth_client.deleted == [target.id]
    assert "/admin/agentes" in invalidated


def test_delete_with_malformed_id(deps, admin_ctx, db_session, auth_client):
    before = db_session.query(models.Profile).count()

    result = agents.delete_agent(deps, admin_ctx, "not-a-uuid")

    payload = result.to_payload()
    assert payload["success"] is False
    assert payload["error"] == "Erro de validação"
    assert payload["details"] == {"id": ["ID inválido"]}
    assert result.status_code == 400
    assert db_session.query(models.Profile).count() == before
    assert auth_client.deleted == []


def test_delete_missing_agent(deps, admin_ctx):
    result = agents.delete_agent(deps, admin_ctx, str(uuid.uuid4()))
    assert result.status_code == 404
    assert result.error == "Agente não encontrado."


def test_audit_failure_does_not_fail_deletion(deps, admin_ctx, db_session, monkeypatch):
    target = make_profile(db_session)

    def broken(*args, **kwargs):
        raise RuntimeError("audit fora do ar")

    monkeypatch.setattr(agents.audit, "log_activity", broken)
    result = agents.delete_agent(deps, admin_ctx, target.id)

    assert result.success is True
    assert db_session.get(models.Profile, target.id) is None


def test_create_agent(deps, admin, admin_ctx, db_session, auth_client, invalidated):
    other_admin = make_profile(db_session, role="admin", email="chefe@pac.org.br")

    result = agents.create_agent(deps, admin_ctx, _new_agent_payload())

    assert result.success is True
    assert result.status_code == 201
    assert result.data["matricula"] == "12345678901"
    assert result.data["email"] == "novo.agente@pac.org.br"
    assert result.data["uf"] == "RJ"
    assert len(auth_client.created) == 1
    assert result.data["id"] == auth_client.created[0]["id"]
    assert len(_activities(db_session, "agent_creation")) == 1
    notified = {row.user_id for row in db_session.query(models.Notification).all()}
    assert notified == {admin.id, other_admin.id}
    assert "/dashboard" in invalidated


def test_create_agent_duplicate_matricula(deps, admin_ctx, db_session, auth_client):
    make_profile(db_session, matricula="12345678901")

    result = agents.create_agent(deps, admin_ctx, _new_agent_payload())

    assert result.status_code == 409
    assert result.error == "Matrícula já cadastrada no sistema."
    assert auth_client.created == []


def test_create_agent_auth_conflict(deps, admin_ctx, auth_client):
    auth_client.create_error = SupabaseError("User already registered", 422)

    result = agents.create_agent(deps, admin_ctx, _new_agent_payload())

    assert result.status_code == 409
    assert result.error == "Email já cadastrado no sistema."


def test_create_agent_removes_auth_user_when_insert_fails(deps, admin_ctx, db_session, auth_client, monkeypatch):
    from sqlalchemy.exc import OperationalError

    original_commit = db_session.commit
    calls = {"count": 0}

    def failing_commit():
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("INSERT", {}, Exception("db down"))
        return original_commit()

    monkeypatch.setattr(db_session, "commit", failing_commit)
    result = agents.create_agent(deps, admin_ctx, _new_agent_payload())

    assert result.success is False
    assert result.status_code == 500
    assert auth_client.deleted == [auth_client.created[0]["id"]]


def test_update_matricula_conflict(deps, admin_ctx, db_session):
    make_profile(db_session, matricula="55555555555")
    target = make_profile(db_session, matricula="66666666666")

    result = agents.update_agent_matricula(deps, admin_ctx, target.id, {"matricula": "555.555.555-55"})

    assert result.status_code == 409
    assert result.error == "Matrícula já está em uso por outro agente."


def test_update_matricula_audits_previous_value(deps, admin_ctx, db_session):
    target = make_profile(db_session, matricula="66666666666")

    result = agents.update_agent_matricula(deps, admin_ctx, target.id, {"matricula": "77777777777"})

    assert result.success is True
    assert result.data["matricula"] == "77777777777"
    row = _activities(db_session, "agent_matricula_update")[0]
    assert row.metadata_["previous_matricula"] == "66666666666"
    assert row.metadata_["new_matricula"] == "77777777777"


def test_update_agent_requires_changes(deps, admin_ctx, db_session):
    target = make_profile(db_session)
    result = agents.update_agent(deps, admin_ctx, target.id, {})
    assert result.status_code == 400
    assert result.details == {"_root": ["Nenhum dado fornecido para atualização"]}


@pytest.mark.parametrize("field", ["email", "role"])
def test_update_agent_rejects_null_required_field(field, deps, admin_ctx, db_session):
    target = make_profile(db_session, email="original@pac.org.br")

    result = agents.update_agent(deps, admin_ctx, target.id, {field: None})

    assert result.status_code == 400
    assert result.details == {field: ["Campo obrigatório"]}
    db_session.expire_all()
    assert db_session.get(models.Profile, target.id).email == "original@pac.org.br"


def test_list_agents_filters(deps, admin_ctx, db_session, admin):
    make_profile(db_session, full_name="Beatriz Souza", status=False)
    make_profile(db_session, full_name="Bruno Lima")

    result = agents.list_agents(deps, admin_ctx, {"search": "souza"})
    assert [row["full_name"] for row in result.data] == ["Beatriz Souza"]

    result = agents.list_agents(deps, admin_ctx, {"status": "inactive"})
    assert [row["full_name"] for row in result.data] == ["Beatriz Souza"]

    result = agents.list_agents(deps, admin_ctx, {"role": "admin"})
    assert [row["id"] for row in result.data] == [admin.id]
    assert result.pagination.total == 1
