from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import InvalidInputError
from app.modules.points.models import PointEntry


@dataclass(frozen=True)
class DailyTotal:
    EntryDate: date
    Points: int
    EntryCount: int


def ComputeBalance(db: Session, family_id: int, kid_user_id: int) -> int:
    """Sum of every point entry for the kid; 0 when there are none.

    Reads whatever the current transaction sees. Callers that act on the result
    (redemption sufficiency) must hold the kid lock from LockKidInFamily first.
    """
    total = (
        db.query(func.coalesce(func.sum(PointEntry.Points), 0))
        .filter(PointEntry.FamilyId == family_id, PointEntry.KidUserId == kid_user_id)
        .scalar()
    )
    return int(total or 0)


def MonthRange(month: str) -> tuple[date, date]:
    try:
        year_part, month_part = month.split("-", 1)
        year = int(year_part)
        month_number = int(month_part)
        start = date(year, month_number, 1)
    except ValueError as exc:
        raise InvalidInputError("month must be formatted YYYY-MM") from exc
    end = date(year, month_number, calendar.monthrange(year, month_number)[1])
    return start, end


def BuildDailyTotals(entries: Iterable[PointEntry]) -> list[DailyTotal]:
    points_by_date: dict[date, int] = {}
    count_by_date: dict[date, int] = {}
    for entry in entries:
        points_by_date[entry.EntryDate] = points_by_date.get(entry.EntryDate, 0) + entry.Points
        count_by_date[entry.EntryDate] = count_by_date.get(entry.EntryDate, 0) + 1
    return [
        DailyTotal(EntryDate=entry_date, Points=points_by_date[entry_date], EntryCount=count_by_date[entry_date])
        for entry_date in sorted(points_by_date)
    ]


def ComputeDailyTotals(
    db: Session,
    family_id: int,
    kid_user_id: int,
    start: date,
    end: date,
) -> list[DailyTotal]:
    entries = (
        db.query(PointEntry)
        .filter(
            PointEntry.FamilyId == family_id,
            PointEntry.KidUserId == kid_user_id,
            PointEntry.EntryDate >= start,
            PointEntry.EntryDate <= end,
        )
        .all()
    )
    return BuildDailyTotals(entries)
