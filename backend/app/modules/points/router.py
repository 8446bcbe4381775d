import logging
import os
from threading import Lock

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.migrations import RunMigrations
from app.db import GetDb
from app.modules.auth.models import Family, User
from app.modules.points.models import Chore, PointEntry, Redemption, Reward
from app.modules.points.routes.entries import router as entries_router
from app.modules.points.routes.redemptions import router as redemptions_router

_points_storage_lock = Lock()
_points_storage_ready = False
logger = logging.getLogger("points")

_POINTS_TABLES = [Family, User, Chore, Reward, PointEntry, Redemption]


def _MissingTables(db: Session) -> list[str]:
    inspector = inspect(db.get_bind())
    return [
        f"{table.__table__.schema}.{table.__tablename__}"
        for table in _POINTS_TABLES
        if not inspector.has_table(table.__tablename__, schema=table.__table__.schema)
    ]


def _AutoMigrateEnabled() -> bool:
    return os.getenv("POINTS_AUTO_MIGRATE", "true").strip().lower() in {"1", "true", "yes", "on"}


def EnsurePointsStorageReady(db: Session = Depends(GetDb)) -> None:
    global _points_storage_ready
    if _points_storage_ready:
        return

    with _points_storage_lock:
        if _points_storage_ready:
            return
        missing = _MissingTables(db)
        if not missing:
            _points_storage_ready = True
            return

        logger.info("points storage missing tables=%s", ",".join(missing))
        if _AutoMigrateEnabled():
            try:
                RunMigrations()
            except Exception:
                logger.exception("points storage migration failed")
            missing = _MissingTables(db)

        if missing:
            logger.error("points storage still missing tables=%s", ",".join(missing))
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={
                    "Code": "StorageUnavailable",
                    "Message": "Points storage not initialized. Run alembic upgrade head.",
                },
            )
        _points_storage_ready = True


router = APIRouter(
    prefix="/api",
    dependencies=[Depends(EnsurePointsStorageReady)],
)

router.include_router(entries_router, prefix="/points", tags=["points"])
router.include_router(redemptions_router, prefix="/redemptions", tags=["redemptions"])
