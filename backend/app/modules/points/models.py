from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    text,
)

from app.db import Base

STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_DENIED = "Denied"


class Chore(Base):
    __tablename__ = "chores"
    __table_args__ = ({"schema": "points"},)

    Id = Column(Integer, primary_key=True, index=True)
    FamilyId = Column(Integer, nullable=False, index=True)
    Title = Column(String(200), nullable=False)
    IsActive = Column(Boolean, nullable=False, default=True)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("CostPoints > 0", name="ck_points_rewards_cost_positive"),
        {"schema": "points"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    FamilyId = Column(Integer, nullable=False, index=True)
    Title = Column(String(200), nullable=False)
    CostPoints = Column(Integer, nullable=False)
    IsActive = Column(Boolean, nullable=False, default=True)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class PointEntry(Base):
    __tablename__ = "point_entries"
    __table_args__ = (
        Index(
            "ux_points_entries_redemption",
            "RedemptionId",
            unique=True,
            mssql_where=text("RedemptionId IS NOT NULL"),
            sqlite_where=text("RedemptionId IS NOT NULL"),
        ),
        Index("ix_points_entries_family_kid", "FamilyId", "KidUserId"),
        {"schema": "points"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    FamilyId = Column(Integer, nullable=False)
    KidUserId = Column(Integer, nullable=False, index=True)
    Points = Column(Integer, nullable=False)
    ChoreId = Column(Integer)
    Note = Column(Text)
    PhotoUrl = Column(String(1024))
    EntryDate = Column(Date, nullable=False, index=True)
    # Set only on the deduction written when a redemption is approved; such rows are immutable.
    RedemptionId = Column(Integer)
    CreatedByUserId = Column(Integer, nullable=False)
    UpdatedByUserId = Column(Integer, nullable=False)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class Redemption(Base):
    __tablename__ = "redemptions"
    __table_args__ = (
        Index("ix_points_redemptions_family_status", "FamilyId", "Status"),
        CheckConstraint(
            "Status IN ('Pending', 'Approved', 'Denied')",
            name="ck_points_redemptions_status",
        ),
        {"schema": "points"},
    )

    Id = Column(Integer, primary_key=True, index=True)
    FamilyId = Column(Integer, nullable=False)
    KidUserId = Column(Integer, nullable=False, index=True)
    RewardId = Column(Integer, nullable=False, index=True)
    Status = Column(String(20), nullable=False, default=STATUS_PENDING)
    RequestedByUserId = Column(Integer, nullable=False)
    RequestedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    ResolvedAt = Column(DateTime(timezone=True))
    ResolvedByUserId = Column(Integer)
