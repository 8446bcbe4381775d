"""create points ledger and redemption tables

Revision ID: 0002_points_ledger
Revises: 0001_auth_families_users
Create Date: 2026-10-01 00:10:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_points_ledger"
down_revision = "0001_auth_families_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        "IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = 'points') EXEC('CREATE SCHEMA points')"
    )

    op.create_table(
        "chores",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("FamilyId", sa.Integer(), nullable=False),
        sa.Column("Title", sa.String(length=200), nullable=False),
        sa.Column("IsActive", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        schema="points",
    )
    op.create_index("ix_points_chores_family_id", "chores", ["FamilyId"], schema="points")

    op.create_table(
        "rewards",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("FamilyId", sa.Integer(), nullable=False),
        sa.Column("Title", sa.String(length=200), nullable=False),
        sa.Column("CostPoints", sa.Integer(), nullable=False),
        sa.Column("IsActive", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        sa.CheckConstraint("CostPoints > 0", name="ck_points_rewards_cost_positive"),
        schema="points",
    )
    op.create_index("ix_points_rewards_family_id", "rewards", ["FamilyId"], schema="points")

    op.create_table(
        "point_entries",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("FamilyId", sa.Integer(), nullable=False),
        sa.Column("KidUserId", sa.Integer(), nullable=False),
        sa.Column("Points", sa.Integer(), nullable=False),
        sa.Column("ChoreId", sa.Integer(), nullable=True),
        sa.Column("Note", sa.Text(), nullable=True),
        sa.Column("PhotoUrl", sa.String(length=1024), nullable=True),
        sa.Column("EntryDate", sa.Date(), nullable=False),
        sa.Column("RedemptionId", sa.Integer(), nullable=True),
        sa.Column("CreatedByUserId", sa.Integer(), nullable=False),
        sa.Column("UpdatedByUserId", sa.Integer(), nullable=False),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        sa.Column(
            "UpdatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        schema="points",
    )
    op.create_index("ix_points_entries_family_kid", "point_entries", ["FamilyId", "KidUserId"], schema="points")
    op.create_index("ix_points_entries_kid_user_id", "point_entries", ["KidUserId"], schema="points")
    op.create_index("ix_points_entries_entry_date", "point_entries", ["EntryDate"], schema="points")
    op.create_index(
        "ux_points_entries_redemption",
        "point_entries",
        ["RedemptionId"],
        unique=True,
        schema="points",
        mssql_where=sa.text("RedemptionId IS NOT NULL"),
    )

    op.create_table(
        "redemptions",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("FamilyId", sa.Integer(), nullable=False),
        sa.Column("KidUserId", sa.Integer(), nullable=False),
        sa.Column("RewardId", sa.Integer(), nullable=False),
        sa.Column("Status", sa.String(length=20), nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("RequestedByUserId", sa.Integer(), nullable=False),
        sa.Column(
            "RequestedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("SYSUTCDATETIME()"),
        ),
        sa.Column("ResolvedAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ResolvedByUserId", sa.Integer(), nullable=True),
        sa.CheckConstraint(
            "Status IN ('Pending', 'Approved', 'Denied')",
            name="ck_points_redemptions_status",
        ),
        schema="points",
    )
    op.create_index("ix_points_redemptions_family_status", "redemptions", ["FamilyId", "Status"], schema="points")
    op.create_index("ix_points_redemptions_kid_user_id", "redemptions", ["KidUserId"], schema="points")
    op.create_index("ix_points_redemptions_reward_id", "redemptions", ["RewardId"], schema="points")


def downgrade() -> None:
    op.drop_index("ix_points_redemptions_reward_id", table_name="redemptions", schema="points")
    op.drop_index("ix_points_redemptions_kid_user_id", table_name="redemptions", schema="points")
    op.drop_index("ix_points_redemptions_family_status", table_name="redemptions", schema="points")
    op.drop_table("redemptions", schema="points")
    op.drop_index("ux_points_entries_redemption", table_name="point_entries", schema="points")
    op.drop_index("ix_points_entries_entry_date", table_name="point_entries", schema="points")
    op.drop_index("ix_points_entries_kid_user_id", table_name="point_entries", schema="points")
    op.drop_index("ix_points_entries_family_kid", table_name="point_entries", schema="points")
    op.drop_table("point_entries", schema="points")
    op.drop_index("ix_points_rewards_family_id", table_name="rewards", schema="points")
    op.drop_table("rewards", schema="points")
    op.drop_index("ix_points_chores_family_id", table_name="chores", schema="points")
    op.drop_table("chores", schema="points")
