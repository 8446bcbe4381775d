from enum import Enum


class ErrorCode(str, Enum):
    Unauthorized = "Unauthorized"
    Forbidden = "Forbidden"
    NotFound = "NotFound"
    InvalidInput = "InvalidInput"
    InvalidKid = "InvalidKid"
    InvalidChore = "InvalidChore"
    InsufficientPoints = "InsufficientPoints"


class PointsError(Exception):
    """Base for every failure the ledger and redemption services report.

    Code is the discriminant callers branch on; the message is safe to return to
    the client and never names an entity outside the caller's family.
    """

    Code = ErrorCode.InvalidInput
    StatusCode = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.Code.value)
        self.Message = message or self.Code.value


class UnauthorizedError(PointsError):
    Code = ErrorCode.Unauthorized
    StatusCode = 401


class ForbiddenError(PointsError):
    Code = ErrorCode.Forbidden
    StatusCode = 403


class NotFoundError(PointsError):
    Code = ErrorCode.NotFound
    StatusCode = 404


class InvalidInputError(PointsError):
    Code = ErrorCode.InvalidInput
    StatusCode = 400


class InvalidKidError(InvalidInputError):
    Code = ErrorCode.InvalidKid


class InvalidChoreError(InvalidInputError):
    Code = ErrorCode.InvalidChore


class InsufficientPointsError(PointsError):
    Code = ErrorCode.InsufficientPoints
    StatusCode = 409


def ErrorBody(code: ErrorCode, message: str) -> dict:
    return {"Code": code.value, "Message": message}
