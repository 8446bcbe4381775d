from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from app.db import Base

ROLE_PARENT = "Parent"
ROLE_KID = "Kid"


# Owned by the account/family service; the points module only reads these rows
# (plus LastViewedPoints on kids).
class Family(Base):
    __tablename__ = "families"
    __table_args__ = {"schema": "auth"}

    Id = Column(Integer, primary_key=True, index=True)
    Name = Column(String(120), nullable=False)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"schema": "auth"}

    Id = Column(Integer, primary_key=True, index=True)
    Username = Column(String(120), nullable=False, unique=True, index=True)
    DisplayName = Column(String(120))
    Role = Column(String(20), nullable=False, default=ROLE_PARENT)
    FamilyId = Column(Integer, index=True)
    LastViewedPoints = Column(Integer, nullable=False, default=0)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
