"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PlayerDB(Base):
    """
    A player's progression record.

    `version` is bumped on every save so concurrent writers can detect
    that the row changed since they loaded it.
    """

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    level: Mapped[int] = mapped_column(Integer, default=1)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    currency: Mapped[int] = mapped_column(Integer, default=0)
    rating: Mapped[int] = mapped_column(Integer, default=1000)
    version: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    cards: Mapped[list["OwnedCardDB"]] = relationship(
        back_populates="player", cascade="all, delete-orphan", order_by="OwnedCardDB.id"
    )
    matches: Mapped[list["MatchRecordDB"]] = relationship(
        back_populates="player", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<PlayerDB(username={self.username}, level={self.level}, rating={self.rating})>"


class OwnedCardDB(Base):
    """
    One drawn card in a player's collection.

    Each draw is its own row; duplicates of the same card are separate
    rows with their own rolled power. Definition fields are copied so a
    collection survives catalog changes.
    """

    __tablename__ = "owned_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id", ondelete="CASCADE"), index=True
    )
    card_name: Mapped[str] = mapped_column(String(255), index=True)
    attribute: Mapped[str] = mapped_column(String(20))
    rarity: Mapped[str] = mapped_column(String(20))
    card_type: Mapped[str] = mapped_column(String(20))
    description: Mapped[str] = mapped_column(Text, default="")
    power_min: Mapped[int] = mapped_column(Integer)
    power_max: Mapped[int] = mapped_column(Integer)
    base_power: Mapped[int] = mapped_column(Integer)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    player: Mapped["PlayerDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<OwnedCardDB(card={self.card_name}, power={self.base_power})>"


class MatchRecordDB(Base):
    """Summary of a completed, settled match."""

    __tablename__ = "match_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id", ondelete="CASCADE"), index=True
    )
    winner: Mapped[str] = mapped_column(String(20))
    player_score: Mapped[int] = mapped_column(Integer)
    opponent_score: Mapped[int] = mapped_column(Integer)
    ties: Mapped[int] = mapped_column(Integer, default=0)
    rating_change: Mapped[int] = mapped_column(Integer, default=0)
    xp_gained: Mapped[int] = mapped_column(Integer, default=0)
    currency_gained: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    player: Mapped["PlayerDB"] = relationship(back_populates="matches")

    def __repr__(self) -> str:
        return (
            f"<MatchRecordDB(player_id={self.player_id}, winner={self.winner}, "
            f"score={self.player_score}-{self.opponent_score})>"
        )
