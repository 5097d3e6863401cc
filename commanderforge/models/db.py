"""
SQLAlchemy ORM models for persistent storage.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CommanderProfileDB(Base):
    """
    A cached commander plan.

    Plans are pure functions of the commander's text, so one row per
    commander is kept until the engine version changes.
    """

    __tablename__ = "commander_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    oracle_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    commander_name: Mapped[str] = mapped_column(String(255), index=True)
    engine_version: Mapped[str] = mapped_column(String(32))
    plan_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<CommanderProfileDB(commander={self.commander_name}, "
            f"version={self.engine_version})>"
        )
