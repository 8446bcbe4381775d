from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import (
    ForbiddenError,
    InsufficientPointsError,
    InvalidInputError,
    NotFoundError,
)
from app.modules.auth.deps import NowUtc, UserContext
from app.modules.points.models import (
    STATUS_APPROVED,
    STATUS_DENIED,
    STATUS_PENDING,
    PointEntry,
    Redemption,
    Reward,
)
from app.modules.points.schemas import RedemptionCreate, RedemptionStatus
from app.modules.points.services.balance_service import ComputeBalance
from app.modules.points.services.lookups_service import FindRewardInFamily, LockKidInFamily

logger = logging.getLogger("points.redemptions")


def _RequireFamily(user: UserContext) -> int:
    if user.FamilyId is None:
        raise ForbiddenError("Must be part of a family")
    return user.FamilyId


def _RequireParent(user: UserContext) -> int:
    family_id = _RequireFamily(user)
    if not user.IsParent:
        raise ForbiddenError("Only parents can resolve redemptions")
    return family_id


def _ResolveRequestedKidId(user: UserContext, kid_user_id: int | None) -> int:
    if user.IsKid:
        return user.Id
    if not user.IsParent:
        raise ForbiddenError("Access denied")
    if kid_user_id is None:
        raise InvalidInputError("kidId required for parents")
    return kid_user_id


def CreateRedemption(db: Session, user: UserContext, payload: RedemptionCreate) -> Redemption:
    """Open a Pending redemption for the caller (kid) or a kid in the caller's family (parent).

    The balance check and the insert share one transaction, with the kid row locked for
    its duration, so two concurrent requests cannot both spend the same points.
    """
    family_id = _RequireFamily(user)
    reward = FindRewardInFamily(db, family_id, payload.RewardId)
    if not reward:
        raise NotFoundError("Reward not found")
    kid_user_id = _ResolveRequestedKidId(user, payload.KidUserId)

    try:
        kid = LockKidInFamily(db, family_id, kid_user_id)
        if not kid:
            raise NotFoundError("Kid not found in your family")

        balance = ComputeBalance(db, family_id, kid.Id)
        if balance < reward.CostPoints:
            raise InsufficientPointsError("Insufficient points for this reward")

        redemption = Redemption(
            FamilyId=family_id,
            KidUserId=kid.Id,
            RewardId=reward.Id,
            Status=STATUS_PENDING,
            RequestedByUserId=user.Id,
            RequestedAt=NowUtc(),
        )
        db.add(redemption)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(redemption)
    logger.info(
        "redemption requested id=%s kid=%s reward=%s cost=%s balance=%s by=%s",
        redemption.Id,
        redemption.KidUserId,
        reward.Id,
        reward.CostPoints,
        balance,
        user.Id,
    )
    return redemption


def _ClaimPending(
    db: Session,
    family_id: int,
    redemption_id: int,
    new_status: str,
    resolved_by_user_id: int,
    resolved_at: datetime,
) -> Redemption:
    # Status check and transition in one statement; a concurrent resolver that
    # already moved the row out of Pending leaves rowcount at 0.
    result = db.execute(
        update(Redemption)
        .where(
            Redemption.Id == redemption_id,
            Redemption.FamilyId == family_id,
            Redemption.Status == STATUS_PENDING,
        )
        .values(Status=new_status, ResolvedAt=resolved_at, ResolvedByUserId=resolved_by_user_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("Redemption not found")
    return (
        db.query(Redemption)
        .populate_existing()
        .filter(Redemption.Id == redemption_id)
        .one()
    )


def ApproveRedemption(db: Session, user: UserContext, redemption_id: int) -> Redemption:
    """Approve a Pending redemption and write its deduction atomically.

    The status transition, the balance re-check and the deduction insert commit
    together or not at all.
    """
    family_id = _RequireParent(user)
    now = NowUtc()

    try:
        redemption = _ClaimPending(db, family_id, redemption_id, STATUS_APPROVED, user.Id, now)
        reward = (
            db.query(Reward)
            .filter(Reward.Id == redemption.RewardId, Reward.FamilyId == family_id)
            .first()
        )
        if not reward:
            raise NotFoundError("Reward not found")

        kid = LockKidInFamily(db, family_id, redemption.KidUserId)
        if not kid:
            raise NotFoundError("Kid not found in your family")

        balance = ComputeBalance(db, family_id, kid.Id)
        if balance < reward.CostPoints:
            raise InsufficientPointsError("Kid no longer has enough points for this redemption")

        deduction = PointEntry(
            FamilyId=family_id,
            KidUserId=kid.Id,
            Points=-reward.CostPoints,
            ChoreId=None,
            Note=f"Redeemed: {reward.Title}",
            PhotoUrl=None,
            EntryDate=now.date(),
            RedemptionId=redemption.Id,
            CreatedByUserId=user.Id,
            UpdatedByUserId=user.Id,
            CreatedAt=now,
            UpdatedAt=now,
        )
        db.add(deduction)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(redemption)
    logger.info(
        "redemption approved id=%s kid=%s points=%s by=%s",
        redemption.Id,
        redemption.KidUserId,
        -reward.CostPoints,
        user.Id,
    )
    return redemption


def DenyRedemption(db: Session, user: UserContext, redemption_id: int) -> Redemption:
    family_id = _RequireParent(user)
    try:
        redemption = _ClaimPending(
            db, family_id, redemption_id, STATUS_DENIED, user.Id, NowUtc()
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(redemption)
    logger.info("redemption denied id=%s kid=%s by=%s", redemption.Id, redemption.KidUserId, user.Id)
    return redemption


def ListRedemptions(
    db: Session,
    user: UserContext,
    kid_user_id: int | None = None,
    status: RedemptionStatus | str | None = None,
) -> list[Redemption]:
    family_id = _RequireFamily(user)
    query = db.query(Redemption).filter(Redemption.FamilyId == family_id)
    if kid_user_id is not None:
        query = query.filter(Redemption.KidUserId == kid_user_id)
    if status is not None:
        try:
            status_value = RedemptionStatus(status).value
        except ValueError as exc:
            raise InvalidInputError("Unknown redemption status") from exc
        query = query.filter(Redemption.Status == status_value)
    return query.order_by(Redemption.RequestedAt.desc(), Redemption.Id.desc()).all()
