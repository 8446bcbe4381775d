import pytest
from fastapi import HTTPException

from app.modules.auth.deps import UserContext
from app.modules.points.utils.rbac import RequireFamilyMember, RequireParentInFamily


def test_family_member_allows_kid():
    checker = RequireFamilyMember()
    user = UserContext(Id=2, Username="kid", Role="Kid", FamilyId=1)
    assert checker(user) == user


def test_family_member_denies_user_without_family():
    checker = RequireFamilyMember()
    user = UserContext(Id=2, Username="newbie", Role="Parent", FamilyId=None)
    with pytest.raises(HTTPException) as excinfo:
        checker(user)
    assert excinfo.value.status_code == 403
    assert excinfo.value.detail["Code"] == "Forbidden"


def test_parent_checker_allows_parent():
    checker = RequireParentInFamily()
    user = UserContext(Id=1, Username="mum", Role="Parent", FamilyId=1)
    assert checker(user) == user


def test_parent_checker_denies_kid():
    checker = RequireParentInFamily()
    user = UserContext(Id=2, Username="kid", Role="Kid", FamilyId=1)
    with pytest.raises(HTTPException) as excinfo:
        checker(user)
    assert excinfo.value.status_code == 403


def test_parent_checker_denies_parent_without_family():
    checker = RequireParentInFamily()
    user = UserContext(Id=1, Username="mum", Role="Parent", FamilyId=None)
    with pytest.raises(HTTPException):
        checker(user)
