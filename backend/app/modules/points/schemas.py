from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, StrictInt


class RedemptionStatus(str, Enum):
    Pending = "Pending"
    Approved = "Approved"
    Denied = "Denied"


class KidOut(BaseModel):
    Id: int
    Username: str
    DisplayName: str | None = None


class PointEntryCreate(BaseModel):
    KidUserId: int
    # Strict so "5", 5.0 and true are rejected rather than coerced.
    Points: StrictInt
    ChoreId: int | None = None
    Note: str | None = Field(default=None, max_length=500)
    PhotoUrl: str | None = Field(default=None, max_length=1024)
    EntryDate: date | None = None


class PointEntryUpdate(BaseModel):
    Points: StrictInt | None = None
    ChoreId: int | None = None
    Note: str | None = Field(default=None, max_length=500)
    PhotoUrl: str | None = Field(default=None, max_length=1024)
    EntryDate: date | None = None


class PointEntryOut(BaseModel):
    Id: int
    FamilyId: int
    KidUserId: int
    Points: int
    ChoreId: int | None = None
    ChoreTitle: str | None = None
    Note: str | None = None
    PhotoUrl: str | None = None
    EntryDate: date
    RedemptionId: int | None = None
    RewardTitle: str | None = None
    CreatedByUserId: int
    CreatedByName: str | None = None
    UpdatedByUserId: int
    UpdatedByName: str | None = None
    CreatedAt: datetime
    UpdatedAt: datetime


class PointsLedgerOut(BaseModel):
    Kid: KidOut
    Balance: int
    Entries: list[PointEntryOut]


class BalanceOut(BaseModel):
    KidUserId: int
    Balance: int


class DailyTotalOut(BaseModel):
    EntryDate: date
    Points: int
    EntryCount: int


class LastViewedOut(BaseModel):
    KidUserId: int
    LastViewedPoints: int


class LastViewedUpdate(BaseModel):
    Points: StrictInt
    KidUserId: int | None = None


class RedemptionCreate(BaseModel):
    RewardId: int
    KidUserId: int | None = None


class RedemptionOut(BaseModel):
    Id: int
    FamilyId: int
    KidUserId: int
    KidName: str | None = None
    RewardId: int
    RewardTitle: str | None = None
    RewardCostPoints: int | None = None
    Status: RedemptionStatus
    RequestedByUserId: int
    RequestedAt: datetime
    ResolvedAt: datetime | None = None
    ResolvedByUserId: int | None = None
    ResolvedByName: str | None = None
