import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.core.errors import PointsError
from app.db import GetDb
from app.modules.auth.deps import UserContext
from app.modules.auth.models import User
from app.modules.points.models import PointEntry, Redemption
from app.modules.points.schemas import (
    BalanceOut,
    DailyTotalOut,
    KidOut,
    LastViewedOut,
    LastViewedUpdate,
    PointEntryCreate,
    PointEntryOut,
    PointEntryUpdate,
    PointsLedgerOut,
)
from app.modules.points.services.balance_service import ComputeBalance, ComputeDailyTotals, MonthRange
from app.modules.points.services.lookups_service import LoadChoreTitles, LoadRewards, LoadUserNames
from app.modules.points.services.point_entries_service import (
    CreatePointEntry,
    DeletePointEntry,
    GetLastViewedPoints,
    ListPointEntries,
    ResolveTargetKid,
    SetLastViewedPoints,
    UpdatePointEntry,
)
from app.modules.points.utils.errors import RaisePointsHttpError, RaiseStorageError
from app.modules.points.utils.rbac import RequireFamilyMember, RequireParentInFamily

router = APIRouter()
logger = logging.getLogger("points.entries")


def _LoadRewardTitles(db: Session, family_id: int, entries: list[PointEntry]) -> dict[int, str]:
    redemption_ids = {entry.RedemptionId for entry in entries if entry.RedemptionId is not None}
    if not redemption_ids:
        return {}
    redemptions = db.query(Redemption).filter(Redemption.Id.in_(redemption_ids)).all()
    rewards = LoadRewards(db, family_id, {redemption.RewardId for redemption in redemptions})
    return {
        redemption.Id: rewards[redemption.RewardId].Title
        for redemption in redemptions
        if redemption.RewardId in rewards
    }


def _BuildEntriesOut(db: Session, family_id: int, entries: list[PointEntry]) -> list[PointEntryOut]:
    names = LoadUserNames(
        db,
        {entry.CreatedByUserId for entry in entries} | {entry.UpdatedByUserId for entry in entries},
    )
    chore_titles = LoadChoreTitles(db, family_id, {entry.ChoreId for entry in entries})
    reward_titles = _LoadRewardTitles(db, family_id, entries)
    return [
        PointEntryOut(
            Id=entry.Id,
            FamilyId=entry.FamilyId,
            KidUserId=entry.KidUserId,
            Points=entry.Points,
            ChoreId=entry.ChoreId,
            ChoreTitle=chore_titles.get(entry.ChoreId),
            Note=entry.Note,
            PhotoUrl=entry.PhotoUrl,
            EntryDate=entry.EntryDate,
            RedemptionId=entry.RedemptionId,
            RewardTitle=reward_titles.get(entry.RedemptionId),
            CreatedByUserId=entry.CreatedByUserId,
            CreatedByName=names.get(entry.CreatedByUserId),
            UpdatedByUserId=entry.UpdatedByUserId,
            UpdatedByName=names.get(entry.UpdatedByUserId),
            CreatedAt=entry.CreatedAt,
            UpdatedAt=entry.UpdatedAt,
        )
        for entry in entries
    ]


def _BuildKidOut(kid: User) -> KidOut:
    return KidOut(Id=kid.Id, Username=kid.Username, DisplayName=kid.DisplayName)


@router.get("/entries", response_model=PointsLedgerOut)
def ListEntries(
    kid_id: int | None = Query(default=None, alias="kidId"),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> PointsLedgerOut:
    try:
        ledger = ListPointEntries(db, user, kid_id)
        return PointsLedgerOut(
            Kid=_BuildKidOut(ledger.Kid),
            Balance=ledger.Balance,
            Entries=_BuildEntriesOut(db, user.FamilyId, ledger.Entries),
        )
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.post("/entries", response_model=PointEntryOut, status_code=status.HTTP_201_CREATED)
def CreateEntry(
    payload: PointEntryCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireParentInFamily()),
) -> PointEntryOut:
    try:
        entry = CreatePointEntry(db, user, payload)
        return _BuildEntriesOut(db, user.FamilyId, [entry])[0]
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.patch("/entries/{entry_id}", response_model=PointEntryOut)
def UpdateEntry(
    entry_id: int,
    payload: PointEntryUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireParentInFamily()),
) -> PointEntryOut:
    try:
        entry = UpdatePointEntry(db, user, entry_id, payload)
        return _BuildEntriesOut(db, user.FamilyId, [entry])[0]
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def DeleteEntry(
    entry_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireParentInFamily()),
) -> None:
    try:
        DeletePointEntry(db, user, entry_id)
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.get("/balance", response_model=BalanceOut)
def GetBalance(
    kid_id: int | None = Query(default=None, alias="kidId"),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> BalanceOut:
    try:
        kid = ResolveTargetKid(db, user, kid_id)
        return BalanceOut(KidUserId=kid.Id, Balance=ComputeBalance(db, kid.FamilyId, kid.Id))
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.get("/daily-totals", response_model=list[DailyTotalOut])
def GetDailyTotals(
    month: str,
    kid_id: int | None = Query(default=None, alias="kidId"),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> list[DailyTotalOut]:
    try:
        start, end = MonthRange(month)
        kid = ResolveTargetKid(db, user, kid_id)
        totals = ComputeDailyTotals(db, kid.FamilyId, kid.Id, start, end)
        return [
            DailyTotalOut(EntryDate=total.EntryDate, Points=total.Points, EntryCount=total.EntryCount)
            for total in totals
        ]
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.get("/last-viewed", response_model=LastViewedOut)
def GetLastViewed(
    kid_id: int | None = Query(default=None, alias="kidId"),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> LastViewedOut:
    try:
        kid = GetLastViewedPoints(db, user, kid_id)
        return LastViewedOut(KidUserId=kid.Id, LastViewedPoints=kid.LastViewedPoints or 0)
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.patch("/last-viewed", response_model=LastViewedOut)
def UpdateLastViewed(
    payload: LastViewedUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> LastViewedOut:
    try:
        kid = SetLastViewedPoints(db, user, payload)
        return LastViewedOut(KidUserId=kid.Id, LastViewedPoints=kid.LastViewedPoints)
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)
