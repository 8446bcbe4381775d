from __future__ import annotations

from sqlalchemy.orm import Session

from app.modules.auth.models import ROLE_KID, User
from app.modules.points.models import Chore, Reward

# Every lookup filters by family in the query itself, so an id from another
# family is indistinguishable from one that does not exist.


def FindKidInFamily(db: Session, family_id: int, kid_user_id: int) -> User | None:
    return (
        db.query(User)
        .filter(User.Id == kid_user_id, User.FamilyId == family_id, User.Role == ROLE_KID)
        .first()
    )


def LockKidInFamily(db: Session, family_id: int, kid_user_id: int) -> User | None:
    """Row-lock the kid until the current transaction ends.

    Serialises balance checks for one kid across concurrent requests. SQL Server renders
    this as UPDLOCK/ROWLOCK; SQLite ignores it and relies on its database-level write lock.
    """
    return (
        db.query(User)
        .filter(User.Id == kid_user_id, User.FamilyId == family_id, User.Role == ROLE_KID)
        .with_for_update()
        .first()
    )


def FindChoreInFamily(db: Session, family_id: int, chore_id: int) -> Chore | None:
    return db.query(Chore).filter(Chore.Id == chore_id, Chore.FamilyId == family_id).first()


def FindRewardInFamily(db: Session, family_id: int, reward_id: int) -> Reward | None:
    return (
        db.query(Reward)
        .filter(Reward.Id == reward_id, Reward.FamilyId == family_id, Reward.IsActive == True)
        .first()
    )


def _DisplayName(user: User) -> str:
    return user.DisplayName or user.Username


def LoadUserNames(db: Session, user_ids: set[int]) -> dict[int, str]:
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    users = db.query(User).filter(User.Id.in_(ids)).all()
    return {user.Id: _DisplayName(user) for user in users}


def LoadChoreTitles(db: Session, family_id: int, chore_ids: set[int]) -> dict[int, str]:
    ids = {chore_id for chore_id in chore_ids if chore_id is not None}
    if not ids:
        return {}
    chores = db.query(Chore).filter(Chore.FamilyId == family_id, Chore.Id.in_(ids)).all()
    return {chore.Id: chore.Title for chore in chores}


def LoadRewards(db: Session, family_id: int, reward_ids: set[int]) -> dict[int, Reward]:
    ids = {reward_id for reward_id in reward_ids if reward_id is not None}
    if not ids:
        return {}
    rewards = db.query(Reward).filter(Reward.FamilyId == family_id, Reward.Id.in_(ids)).all()
    return {reward.Id: reward for reward in rewards}
