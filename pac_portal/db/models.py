import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, inspect
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def row_to_dict(row: Any) -> dict:
    """Column values keyed by their table column name (``metadata_`` is exposed as ``metadata``)."""
    mapper = inspect(row).mapper
    return {attr.columns[0].name: getattr(row, attr.key) for attr in mapper.column_attrs}


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=_uuid)
    matricula = Column(String, nullable=True, unique=True)
    email = Column(String, nullable=False, unique=True)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="agent")
    status = Column(Boolean, nullable=False, default=True)
    avatar_url = Column(String, nullable=True)
    graduacao = Column(String, nullable=True)
    uf = Column(String(2), nullable=True)
    tipo_sanguineo = Column(String, nullable=True)
    validade_certificacao = Column(Date, nullable=True)
    data_nascimento = Column(Date, nullable=True)
    telefone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    time_display = Column(String, nullable=False)
    location = Column(String, nullable=False)
    instructor = Column(String, nullable=True)
    status = Column(String, nullable=False, default="agendado")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    action_url = Column(String, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("Profile", back_populates="notifications")


class GaleriaCategoria(Base):
    __tablename__ = "galeria_categorias"

    id = Column(String, primary_key=True, default=_uuid)
    nome = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    descricao = Column(Text, nullable=True)
    tipo = Column(String, nullable=False, default="fotos")
    ordem = Column(Integer, nullable=False, default=0)
    status = Column(Boolean, nullable=False, default=True)
    arquivada = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    itens = relationship("GaleriaItem", back_populates="categoria")


class GaleriaItem(Base):
    __tablename__ = "galeria_itens"

    id = Column(String, primary_key=True, default=_uuid)
    titulo = Column(String, nullable=False)
    descricao = Column(Text, nullable=True)
    categoria_id = Column(String, ForeignKey("galeria_categorias.id", ondelete="SET NULL"), nullable=True)
    tipo = Column(String, nullable=False, default="foto")
    arquivo_url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=True)
    ordem = Column(Integer, nullable=False, default=0)
    autor_id = Column(String, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    status = Column(Boolean, nullable=False, default=True)
    destaque = Column(Boolean, nullable=False, default=False)
    views = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    categoria = relationship("GaleriaCategoria", back_populates="itens")


class Noticia(Base):
    __tablename__ = "noticias"

    id = Column(String, primary_key=True, default=_uuid)
    titulo = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    conteudo = Column(Text, nullable=False)
    resumo = Column(Text, nullable=True)
    imagem = Column(String, nullable=True)
    categoria = Column(String, nullable=True)
    autor_id = Column(String, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    destaque = Column(Boolean, nullable=False, default=False)
    data_publicacao = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="rascunho")
    views = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    autor = relationship("Profile")


class SystemActivity(Base):
    __tablename__ = "system_activities"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    action_type = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    resource_type = Column(String, nullable=True)
    resource_id = Column(String, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("Profile")
