import logging

from fastapi import HTTPException, status

from app.core.errors import ErrorBody, PointsError

logger = logging.getLogger("points")


def RaisePointsHttpError(exc: PointsError) -> None:
    logger.info("points request rejected code=%s message=%s", exc.Code.value, exc.Message)
    raise HTTPException(status_code=exc.StatusCode, detail=ErrorBody(exc.Code, exc.Message)) from exc


def RaiseStorageError(exc: Exception) -> None:
    logger.exception("points database error")
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "Code": "StorageUnavailable",
            "Message": "Points storage not initialized. Run alembic upgrade head.",
        },
    ) from exc
