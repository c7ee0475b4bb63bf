"""portal schema

Revision ID: 0001_portal_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_portal_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("matricula", sa.String(), nullable=True, unique=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="agent"),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("graduacao", sa.String(), nullable=True),
        sa.Column("uf", sa.String(length=2), nullable=True),
        sa.Column("tipo_sanguineo", sa.String(), nullable=True),
        sa.Column("validade_certificacao", sa.Date(), nullable=True),
        sa.Column("data_nascimento", sa.Date(), nullable=True),
        sa.Column("telefone", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("time_display", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("instructor", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="agendado"),
        *_timestamps(),
    )
    op.create_index("ix_events_start_date", "events", ["start_date"])
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("action_url", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id_is_read", "notifications", ["user_id", "is_read"])
    op.create_table(
        "galeria_categorias",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False, unique=True),
        sa.Column("descricao", sa.Text(), nullable=True),
        sa.Column("tipo", sa.String(), nullable=False, server_default="fotos"),
        sa.Column("ordem", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("arquivada", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_table(
        "galeria_itens",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("titulo", sa.String(), nullable=False),
        sa.Column("descricao", sa.Text(), nullable=True),
        sa.Column(
            "categoria_id", sa.String(), sa.ForeignKey("galeria_categorias.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("tipo", sa.String(), nullable=False, server_default="foto"),
        sa.Column("arquivo_url", sa.String(), nullable=False),
        sa.Column("thumbnail_url", sa.String(), nullable=True),
        sa.Column("ordem", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("autor_id", sa.String(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("destaque", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_galeria_itens_categoria_id", "galeria_itens", ["categoria_id"])
    op.create_table(
        "noticias",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("titulo", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False, unique=True),
        sa.Column("conteudo", sa.Text(), nullable=False),
        sa.Column("resumo", sa.Text(), nullable=True),
        sa.Column("imagem", sa.String(), nullable=True),
        sa.Column("categoria", sa.String(), nullable=True),
        sa.Column("autor_id", sa.String(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("destaque", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("data_publicacao", sa.Date(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="rascunho"),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_table(
        "system_activities",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action_type", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("resource_type", sa.String(), nullable=True),
        sa.Column("resource_id", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_system_activities_created_at", "system_activities", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_system_activities_created_at", table_name="system_activities")
    op.drop_table("system_activities")
    op.drop_table("noticias")
    op.drop_index("ix_galeria_itens_categoria_id", table_name="galeria_itens")
    op.drop_table("galeria_itens")
    op.drop_table("galeria_categorias")
    op.drop_index("ix_notifications_user_id_is_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_events_start_date", table_name="events")
    op.drop_table("events")
    op.drop_table("profiles")
