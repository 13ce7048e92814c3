"""create scripts and script versions tables

Revision ID: 20261018_01
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scripts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("current_version_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "script_versions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "script_id",
            sa.Integer(),
            sa.ForeignKey("scripts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("language", sa.String(length=20), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("key", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_script_versions_script_id", "script_versions", ["script_id"])
    op.create_index("ix_script_versions_title", "script_versions", ["title"])
    op.create_index("ix_script_versions_key", "script_versions", ["key"])
    op.create_index(
        "ix_script_versions_script_created",
        "script_versions",
        ["script_id", "created_at", "id"],
    )

    with op.batch_alter_table("scripts") as batch_op:
        batch_op.create_foreign_key(
            "fk_scripts_current_version_id",
            "script_versions",
            ["current_version_id"],
            ["id"],
            ondelete="SET NULL",
        )


def downgrade() -> None:
    with op.batch_alter_table("scripts") as batch_op:
        batch_op.drop_constraint("fk_scripts_current_version_id", type_="foreignkey")
    op.drop_index("ix_script_versions_script_created", table_name="script_versions")
    op.drop_index("ix_script_versions_key", table_name="script_versions")
    op.drop_index("ix_script_versions_title", table_name="script_versions")
    op.drop_index("ix_script_versions_script_id", table_name="script_versions")
    op.drop_table("script_versions")
    op.drop_table("scripts")
