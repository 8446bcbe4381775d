"""create auth families and users

Revision ID: 0001_auth_families_users
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_auth_families_users"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        "IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = 'auth') EXEC('CREATE SCHEMA auth')"
    )

    op.create_table(
        "families",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("Name", sa.String(length=120), nullable=False),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        schema="auth",
    )

    op.create_table(
        "users",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("Username", sa.String(length=120), nullable=False),
        sa.Column("DisplayName", sa.String(length=120), nullable=True),
        sa.Column("Role", sa.String(length=20), nullable=False, server_default=sa.text("'Parent'")),
        sa.Column("FamilyId", sa.Integer(), nullable=True),
        sa.Column("LastViewedPoints", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        sa.UniqueConstraint("Username", name="uq_auth_users_username"),
        schema="auth",
    )
    op.create_index("ix_auth_users_family_id", "users", ["FamilyId"], schema="auth")


def downgrade() -> None:
    op.drop_index("ix_auth_users_family_id", table_name="users", schema="auth")
    op.drop_table("users", schema="auth")
    op.drop_table("families", schema="auth")
