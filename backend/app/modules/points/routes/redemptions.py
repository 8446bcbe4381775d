import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.core.errors import PointsError
from app.db import GetDb
from app.modules.auth.deps import UserContext
from app.modules.points.models import Redemption
from app.modules.points.schemas import RedemptionCreate, RedemptionOut, RedemptionStatus
from app.modules.points.services.lookups_service import LoadRewards, LoadUserNames
from app.modules.points.services.redemptions_service import (
    ApproveRedemption,
    CreateRedemption,
    DenyRedemption,
    ListRedemptions,
)
from app.modules.points.utils.errors import RaisePointsHttpError, RaiseStorageError
from app.modules.points.utils.rbac import RequireFamilyMember, RequireParentInFamily

router = APIRouter()
logger = logging.getLogger("points.redemptions")


def _BuildRedemptionsOut(db: Session, family_id: int, redemptions: list[Redemption]) -> list[RedemptionOut]:
    names = LoadUserNames(
        db,
        {item.KidUserId for item in redemptions} | {item.ResolvedByUserId for item in redemptions},
    )
    rewards = LoadRewards(db, family_id, {item.RewardId for item in redemptions})
    results = []
    for item in redemptions:
        reward = rewards.get(item.RewardId)
        results.append(
            RedemptionOut(
                Id=item.Id,
                FamilyId=item.FamilyId,
                KidUserId=item.KidUserId,
                KidName=names.get(item.KidUserId),
                RewardId=item.RewardId,
                RewardTitle=reward.Title if reward else None,
                RewardCostPoints=reward.CostPoints if reward else None,
                Status=RedemptionStatus(item.Status),
                RequestedByUserId=item.RequestedByUserId,
                RequestedAt=item.RequestedAt,
                ResolvedAt=item.ResolvedAt,
                ResolvedByUserId=item.ResolvedByUserId,
                ResolvedByName=names.get(item.ResolvedByUserId),
            )
        )
    return results


@router.get("", response_model=list[RedemptionOut])
def ListFamilyRedemptions(
    kid_id: int | None = Query(default=None, alias="kidId"),
    status_filter: RedemptionStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> list[RedemptionOut]:
    try:
        redemptions = ListRedemptions(db, user, kid_user_id=kid_id, status=status_filter)
        return _BuildRedemptionsOut(db, user.FamilyId, redemptions)
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.post("", response_model=RedemptionOut, status_code=status.HTTP_201_CREATED)
def RequestRedemption(
    payload: RedemptionCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireFamilyMember()),
) -> RedemptionOut:
    try:
        redemption = CreateRedemption(db, user, payload)
        return _BuildRedemptionsOut(db, user.FamilyId, [redemption])[0]
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.put("/{redemption_id}/approve", response_model=RedemptionOut)
def Approve(
    redemption_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireParentInFamily()),
) -> RedemptionOut:
    try:
        redemption = ApproveRedemption(db, user, redemption_id)
        return _BuildRedemptionsOut(db, user.FamilyId, [redemption])[0]
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)


@router.put("/{redemption_id}/deny", response_model=RedemptionOut)
def Deny(
    redemption_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireParentInFamily()),
) -> RedemptionOut:
    try:
        redemption = DenyRedemption(db, user, redemption_id)
        return _BuildRedemptionsOut(db, user.FamilyId, [redemption])[0]
    except PointsError as exc:
        RaisePointsHttpError(exc)
    except ProgrammingError as exc:
        RaiseStorageError(exc)
