from fastapi import Depends, HTTPException, status

from app.core.errors import ErrorBody, ErrorCode
from app.modules.auth.deps import RequireAuthenticated, UserContext


def _forbidden(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=ErrorBody(ErrorCode.Forbidden, message),
    )


def RequireFamilyMember():
    def _checker(user: UserContext = Depends(RequireAuthenticated)) -> UserContext:
        if user.FamilyId is None:
            raise _forbidden("Must be part of a family")
        return user

    return _checker


def RequireParentInFamily():
    def _checker(user: UserContext = Depends(RequireAuthenticated)) -> UserContext:
        if not user.IsParent:
            raise _forbidden("Parent role required")
        if user.FamilyId is None:
            raise _forbidden("Must be part of a family")
        return user

    return _checker
