import os
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.errors import ErrorBody, ErrorCode
from app.db import GetDb
from app.modules.auth.models import ROLE_KID, ROLE_PARENT, User

ALLOWED_ROLES = {ROLE_PARENT, ROLE_KID}


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"Missing required env var: {name}")
    return value


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=ErrorBody(ErrorCode.Unauthorized, message),
    )


def _decode_access_token(token: str) -> dict:
    secret = _require_env("JWT_SECRET_KEY")
    try:
        return jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc


@dataclass
class UserContext:
    Id: int
    Username: str
    Role: str
    FamilyId: int | None = None

    @property
    def IsParent(self) -> bool:
        return self.Role == ROLE_PARENT

    @property
    def IsKid(self) -> bool:
        return self.Role == ROLE_KID


def RequireAuthenticated(
    request: Request,
    db: Session = Depends(GetDb),
) -> UserContext:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise _unauthorized("Authentication required")

    token = auth_header.replace("Bearer ", "", 1).strip()
    payload = _decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError) as exc:
        raise _unauthorized("Invalid token") from exc

    user = db.query(User).filter(User.Id == user_id).first()
    if not user:
        raise _unauthorized("User not found")
    if user.Role not in ALLOWED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ErrorBody(ErrorCode.Forbidden, "Access denied"),
        )

    return UserContext(Id=user.Id, Username=user.Username, Role=user.Role, FamilyId=user.FamilyId)


def NowUtc() -> datetime:
    return datetime.now(tz=timezone.utc)
