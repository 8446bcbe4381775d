import os

os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-points-api-suite")

from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base
from app.modules.auth.deps import UserContext
from app.modules.auth.models import ROLE_KID, ROLE_PARENT, Family, User
from app.modules.points.models import Chore, PointEntry, Reward


@pytest.fixture
def engine():
    # SQLite has no schemas; translate auth.* and points.* to the default one.
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        execution_options={"schema_translate_map": {"auth": None, "points": None}},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def AsContext(user: User) -> UserContext:
    return UserContext(Id=user.Id, Username=user.Username, Role=user.Role, FamilyId=user.FamilyId)


def AddEntry(db, kid: User, points: int, created_by: User, **overrides) -> PointEntry:
    data = {
        "FamilyId": kid.FamilyId,
        "KidUserId": kid.Id,
        "Points": points,
        "Note": "seed",
        "EntryDate": date(2024, 3, 1),
        "CreatedByUserId": created_by.Id,
        "UpdatedByUserId": created_by.Id,
    }
    data.update(overrides)
    entry = PointEntry(**data)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@pytest.fixture
def seed(db):
    family_one = Family(Name="Ngata")
    family_two = Family(Name="Okafor")
    db.add_all([family_one, family_two])
    db.flush()

    parent = User(Username="mum", DisplayName="Mum", Role=ROLE_PARENT, FamilyId=family_one.Id)
    kid = User(Username="ari", DisplayName="Ari", Role=ROLE_KID, FamilyId=family_one.Id)
    sibling = User(Username="tama", DisplayName="Tama", Role=ROLE_KID, FamilyId=family_one.Id)
    other_parent = User(Username="dad2", DisplayName="Dad", Role=ROLE_PARENT, FamilyId=family_two.Id)
    other_kid = User(Username="zola", DisplayName="Zola", Role=ROLE_KID, FamilyId=family_two.Id)
    orphan = User(Username="newbie", Role=ROLE_PARENT, FamilyId=None)
    db.add_all([parent, kid, sibling, other_parent, other_kid, orphan])
    db.flush()

    chore = Chore(FamilyId=family_one.Id, Title="Feed the cat", IsActive=True)
    other_chore = Chore(FamilyId=family_two.Id, Title="Mow lawn", IsActive=True)
    reward = Reward(FamilyId=family_one.Id, Title="Movie night", CostPoints=50, IsActive=True)
    big_reward = Reward(FamilyId=family_one.Id, Title="New bike", CostPoints=100, IsActive=True)
    retired_reward = Reward(FamilyId=family_one.Id, Title="Old toy", CostPoints=5, IsActive=False)
    other_reward = Reward(FamilyId=family_two.Id, Title="Ice cream", CostPoints=10, IsActive=True)
    db.add_all([chore, other_chore, reward, big_reward, retired_reward, other_reward])
    db.commit()

    return SimpleNamespace(
        family_one=family_one,
        family_two=family_two,
        parent=parent,
        kid=kid,
        sibling=sibling,
        other_parent=other_parent,
        other_kid=other_kid,
        orphan=orphan,
        chore=chore,
        other_chore=other_chore,
        reward=reward,
        big_reward=big_reward,
        retired_reward=retired_reward,
        other_reward=other_reward,
    )
