import io
import uuid

import pytest
from fastapi import UploadFile
from sqlalchemy.exc import OperationalError

from pac_portal.actions import uploads
from pac_portal.api.deps import read_upload
from pac_portal.core.errors import ValidationError
from pac_portal.db import models
from pac_portal.schemas.uploads import UploadedFile
from pac_portal.services.upload_config import AVATAR, DOCUMENT, MB, UploadConfig, check_file, safe_filename

from tests.conftest import STORAGE_BASE, make_profile

PNG = UploadedFile("retrato.PNG", "image/png", b"\x89PNG" + b"0" * 128)


class TestCheckFile:
    def test_accepts_allowed_file(self):
        check_file(AVATAR, "foto.png", "image/png", 1024)

    def test_rejects_empty(self):
        with pytest.raises(ValidationError) as caught:
            check_file(AVATAR, "foto.png", "image/png", 0)
        assert caught.value.details == {"file": ["Nenhum arquivo enviado"]}

    def test_rejects_oversized(self):
        with pytest.raises(ValidationError) as caught:
            check_file(AVATAR, "foto.png", "image/png", 2 * MB + 1)
        assert caught.value.details == {"file": ["Arquivo muito grande. Máximo permitido: 2MB"]}

    def test_rejects_mime(self):
        with pytest.raises(ValidationError) as caught:
            check_file(AVATAR, "foto.bmp", "image/bmp", 10, field="avatar")
        assert caught.value.details == {"avatar": ["Tipo de arquivo não permitido. Use JPG, PNG, WEBP ou GIF."]}

    def test_rejects_dangerous_extension(self):
        with pytest.raises(ValidationError) as caught:
            check_file(DOCUMENT, "relatorio.sh", "text/plain", 10)
        assert caught.value.details == {"file": ["Tipo de arquivo potencialmente perigoso"]}


def test_safe_filename():
    assert safe_filename("Relatório Final (v2).PDF") == "relat_rio_final__v2_.pdf"


def test_avatar_replaces_profile_url(deps, admin_ctx, db_session, storage_client, invalidated):
    old_url = f"{STORAGE_BASE}/avatares-agentes/avatars/antigo.png"
    storage_client.objects[("avatares-agentes", "avatars/antigo.png")] = b"old"
    target = make_profile(db_session, matricula="12345678901", avatar_url=old_url)

    result = uploads.upload_avatar(deps, admin_ctx, PNG, {"user_id": target.id})

    assert result.success is True
    assert result.data["bucket"] == "avatares-agentes"
    assert result.data["path"].startswith("avatars/12345678901/12345678901_")
    assert result.data["path"].endswith(".png")
    db_session.expire_all()
    assert db_session.get(models.Profile, target.id).avatar_url == result.data["url"]
    assert ("avatares-agentes", "avatars/antigo.png") not in storage_client.objects
    assert "/perfil" in invalidated


def test_avatar_without_user_is_temporary(deps, admin_ctx):
    result = uploads.upload_avatar(deps, admin_ctx, PNG, {})
    assert result.data["isTempFile"] is True
    assert result.data["path"].startswith("avatars/temp_")


def test_avatar_for_unknown_user(deps, admin_ctx, storage_client):
    result = uploads.upload_avatar(deps, admin_ctx, PNG, {"user_id": str(uuid.uuid4())})
    assert result.status_code == 404
    assert storage_client.objects == {}


def test_avatar_upload_removed_when_profile_update_fails(deps, admin_ctx, db_session, storage_client, monkeypatch):
    target = make_profile(db_session)

    def failing_commit():
        raise OperationalError("UPDATE", {}, Exception("db down"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    result = uploads.upload_avatar(deps, admin_ctx, PNG, {"user_id": target.id})

    assert result.status_code == 500
    assert storage_client.objects == {}
    assert len(storage_client.removed) == 1


def test_avatar_requires_admin(deps, agent_ctx, storage_client):
    result = uploads.upload_avatar(deps, agent_ctx, PNG, {})
    assert result.status_code == 403
    assert storage_client.objects == {}


def test_news_media_key_layout(deps, admin_ctx):
    video = UploadedFile("chamada.mp4", "video/mp4", b"0" * 256)

    result = uploads.upload_news_media(deps, admin_ctx, video, {"slug": "operacao-verao", "media_kind": "video"})

    assert result.success is True
    assert result.data["bucket"] == "imagens-noticias"
    assert result.data["mediaType"] == "video"
    assert result.data["path"].startswith("videos/operacao-verao/operacao-verao_")
    assert result.data["path"].endswith(".mp4")


def test_news_media_rejects_bad_slug(deps, admin_ctx, storage_client):
    result = uploads.upload_news_media(deps, admin_ctx, PNG, {"slug": "Slug Ruim"})
    assert result.status_code == 400
    assert "slug" in result.details
    assert storage_client.objects == {}


def test_general_upload_is_audited(deps, admin, admin_ctx, db_session, invalidated):
    doc = UploadedFile("Edital 01.pdf", "application/pdf", b"%PDF-1.4" + b"0" * 64)

    result = uploads.upload_general_file(deps, admin_ctx, doc, {"type": "document"})

    assert result.success is True
    assert result.data["bucket"] == "documentos-oficiais"
    assert result.data["path"].startswith("documents/")
    assert result.data["path"].endswith("_edital_01.pdf")
    activity = db_session.query(models.SystemActivity).one()
    assert activity.action_type == "document_upload"
    assert activity.user_id == admin.id
    assert activity.metadata_["original_name"] == "Edital 01.pdf"
    assert "/documentos" in invalidated


def test_general_upload_requires_file(deps, admin_ctx):
    result = uploads.upload_general_file(deps, admin_ctx, None, {"type": "news"})
    assert result.details == {"file": ["Nenhum arquivo enviado"]}


def test_general_upload_unknown_type(deps, admin_ctx):
    result = uploads.upload_general_file(deps, admin_ctx, PNG, {"type": "audio"})
    assert result.status_code == 400
    assert result.details == {"type": ["Valor inválido"]}


def test_read_upload_stops_after_limit():
    source = io.BytesIO(b"x" * 4096)
    upload = UploadFile(file=source, filename="grande.png")

    buffered = read_upload(upload, limit=100)

    assert buffered.size == 101
    assert source.tell() == 101
    with pytest.raises(ValidationError) as caught:
        check_file(UploadConfig("teste", 100, ("image/png",)), buffered.filename, "image/png", buffered.size)
    assert "Arquivo muito grande" in caught.value.details["file"][0]


def test_read_upload_without_file():
    assert read_upload(None) is None
    assert read_upload(UploadFile(file=io.BytesIO(b""), filename="")) is None
