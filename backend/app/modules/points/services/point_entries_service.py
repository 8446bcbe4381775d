from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from app.core.errors import (
    ForbiddenError,
    InvalidChoreError,
    InvalidInputError,
    InvalidKidError,
    NotFoundError,
)
from app.modules.auth.deps import NowUtc, UserContext
from app.modules.auth.models import User
from app.modules.points.models import PointEntry
from app.modules.points.schemas import LastViewedUpdate, PointEntryCreate, PointEntryUpdate
from app.modules.points.services.balance_service import ComputeBalance
from app.modules.points.services.lookups_service import FindChoreInFamily, FindKidInFamily

logger = logging.getLogger("points.entries")


@dataclass
class PointsLedger:
    Kid: User
    Balance: int
    Entries: list[PointEntry]


def _RequireFamily(user: UserContext) -> int:
    if user.FamilyId is None:
        raise ForbiddenError("Must be part of a family")
    return user.FamilyId


def _RequireParent(user: UserContext, action: str) -> int:
    family_id = _RequireFamily(user)
    if not user.IsParent:
        raise ForbiddenError(f"Only parents can {action} points")
    return family_id


def _CleanText(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _EnsureNoteForCustomAward(chore_id: int | None, points: int, note: str | None) -> None:
    # Zero-point rows without a chore are photo/activity logs and need no note.
    if chore_id is None and points != 0 and not note:
        raise InvalidInputError("note is required when no chore is referenced")


def ResolveTargetKid(db: Session, user: UserContext, kid_user_id: int | None) -> User:
    """Pick the kid a read applies to.

    Kids always get themselves and may not name a sibling. Parents must name the
    kid explicitly. A kid outside the caller's family reads as not found for both.
    """
    family_id = _RequireFamily(user)
    if user.IsKid:
        if kid_user_id is not None and kid_user_id != user.Id:
            if not FindKidInFamily(db, family_id, kid_user_id):
                raise NotFoundError("Kid not found in your family")
            raise ForbiddenError("Kids can only view their own points")
        kid = FindKidInFamily(db, family_id, user.Id)
        if not kid:
            raise NotFoundError("Kid not found in your family")
        return kid

    if not user.IsParent:
        raise ForbiddenError("Access denied")
    if kid_user_id is None:
        raise InvalidInputError("kidId required for parents")
    kid = FindKidInFamily(db, family_id, kid_user_id)
    if not kid:
        raise NotFoundError("Kid not found in your family")
    return kid


def CreatePointEntry(db: Session, user: UserContext, payload: PointEntryCreate) -> PointEntry:
    family_id = _RequireParent(user, "add")

    kid = FindKidInFamily(db, family_id, payload.KidUserId)
    if not kid:
        raise InvalidKidError("Invalid kid")

    if payload.ChoreId is not None and not FindChoreInFamily(db, family_id, payload.ChoreId):
        raise InvalidChoreError("Invalid chore")

    note = _CleanText(payload.Note)
    _EnsureNoteForCustomAward(payload.ChoreId, payload.Points, note)

    now = NowUtc()
    entry = PointEntry(
        FamilyId=family_id,
        KidUserId=kid.Id,
        Points=payload.Points,
        ChoreId=payload.ChoreId,
        Note=note,
        PhotoUrl=_CleanText(payload.PhotoUrl),
        EntryDate=payload.EntryDate or date.today(),
        RedemptionId=None,
        CreatedByUserId=user.Id,
        UpdatedByUserId=user.Id,
        CreatedAt=now,
        UpdatedAt=now,
    )
    try:
        db.add(entry)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(entry)
    logger.info(
        "point entry created id=%s kid=%s points=%s by=%s",
        entry.Id,
        entry.KidUserId,
        entry.Points,
        user.Id,
    )
    return entry


def ListPointEntries(db: Session, user: UserContext, kid_user_id: int | None) -> PointsLedger:
    kid = ResolveTargetKid(db, user, kid_user_id)
    entries = (
        db.query(PointEntry)
        .filter(PointEntry.FamilyId == kid.FamilyId, PointEntry.KidUserId == kid.Id)
        .order_by(PointEntry.EntryDate.desc(), PointEntry.Id.desc())
        .all()
    )
    return PointsLedger(
        Kid=kid,
        Balance=ComputeBalance(db, kid.FamilyId, kid.Id),
        Entries=entries,
    )


def _LoadMutableEntry(db: Session, family_id: int, entry_id: int, action: str) -> PointEntry:
    entry = (
        db.query(PointEntry)
        .filter(PointEntry.Id == entry_id, PointEntry.FamilyId == family_id)
        .first()
    )
    if not entry:
        raise NotFoundError("Point entry not found")
    if entry.RedemptionId is not None:
        raise ForbiddenError(f"Cannot {action} point entries linked to redemptions")
    return entry


def UpdatePointEntry(
    db: Session,
    user: UserContext,
    entry_id: int,
    payload: PointEntryUpdate,
) -> PointEntry:
    family_id = _RequireParent(user, "edit")
    entry = _LoadMutableEntry(db, family_id, entry_id, "edit")
    fields = payload.model_fields_set

    points = entry.Points
    if "Points" in fields:
        if payload.Points is None:
            raise InvalidInputError("points must be a number")
        points = payload.Points

    chore_id = entry.ChoreId
    if "ChoreId" in fields:
        chore_id = payload.ChoreId
        if chore_id is not None and not FindChoreInFamily(db, family_id, chore_id):
            raise InvalidChoreError("Invalid chore")

    entry_date = entry.EntryDate
    if "EntryDate" in fields:
        if payload.EntryDate is None:
            raise InvalidInputError("EntryDate cannot be cleared")
        entry_date = payload.EntryDate

    note = _CleanText(payload.Note) if "Note" in fields else entry.Note
    photo_url = _CleanText(payload.PhotoUrl) if "PhotoUrl" in fields else entry.PhotoUrl
    _EnsureNoteForCustomAward(chore_id, points, note)

    try:
        entry.Points = points
        entry.ChoreId = chore_id
        entry.EntryDate = entry_date
        entry.Note = note
        entry.PhotoUrl = photo_url
        entry.UpdatedByUserId = user.Id
        entry.UpdatedAt = NowUtc()
        db.add(entry)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(entry)
    logger.info("point entry updated id=%s by=%s fields=%s", entry.Id, user.Id, ",".join(sorted(fields)))
    return entry


def DeletePointEntry(db: Session, user: UserContext, entry_id: int) -> None:
    family_id = _RequireParent(user, "delete")
    entry = _LoadMutableEntry(db, family_id, entry_id, "delete")
    try:
        db.delete(entry)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("point entry deleted id=%s by=%s", entry_id, user.Id)


def GetLastViewedPoints(db: Session, user: UserContext, kid_user_id: int | None) -> User:
    return ResolveTargetKid(db, user, kid_user_id)


def SetLastViewedPoints(db: Session, user: UserContext, payload: LastViewedUpdate) -> User:
    kid = ResolveTargetKid(db, user, payload.KidUserId)
    try:
        kid.LastViewedPoints = payload.Points
        db.add(kid)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(kid)
    return kid
