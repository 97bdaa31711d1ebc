"""menus composés et suppléments

Revision ID: 0002_menus_composes
Revises: 0001_socle
Create Date: 2026-10-26 10:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002_menus_composes"
down_revision = "0001_socle"
branch_labels = None
depends_on = None


def _horodatage() -> list[sa.Column]:
    return [
        sa.Column("cree_le", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("timezone('utc', now())")),
        sa.Column(
            "mis_a_jour_le",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("timezone('utc', now())"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "menu_compose",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("prix", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actif", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_horodatage(),
        sa.UniqueConstraint("denomination", name="uq_menu_compose_denomination"),
    )

    op.create_table(
        "element_menu_compose",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "menu_compose_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("menu_compose.id"),
            nullable=False,
        ),
        sa.Column("type_article", sa.String(length=50), nullable=False),
        sa.Column("article_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("quantite", sa.Integer(), nullable=False, server_default="1"),
        *_horodatage(),
        sa.UniqueConstraint(
            "menu_compose_id", "type_article", "article_id", name="uq_element_menu_compose_article"
        ),
        sa.CheckConstraint("quantite >= 1", name="ck_element_menu_compose_quantite"),
    )
    op.create_index("ix_element_menu_compose_menu_compose_id", "element_menu_compose", ["menu_compose_id"])

    op.create_table(
        "supplement",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("groupe", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("prix", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actif", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_horodatage(),
        sa.UniqueConstraint("denomination", "groupe", name="uq_supplement_denomination_groupe"),
    )
    op.create_index("ix_supplement_groupe", "supplement", ["groupe"])


def downgrade() -> None:
    op.drop_table("supplement")
    op.drop_table("element_menu_compose")
    op.drop_table("menu_compose")
