"""
SQLAlchemy ORM models for persistent storage.

The canonical game is a single row whose deck lives in one JSON column.
Every write is a compare-and-swap on `version`: SQLAlchemy adds
`WHERE version = <read version>` to the UPDATE and raises StaleDataError
when another writer got there first.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class GameDB(Base):
    """
    The canonical, mutable game document.

    One row per running game instance, addressed by game_id.
    """

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)

    config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    deck: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    card_schema: Mapped[int] = mapped_column(Integer, default=1)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<GameDB(game_id={self.game_id}, version={self.version})>"


class SnapshotDB(Base):
    """
    An immutable, shareable copy of a config and deck.

    Never updated after insert.
    """

    __tablename__ = "snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    snapshot_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    deck: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    card_schema: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"<SnapshotDB(snapshot_id={self.snapshot_id})>"
