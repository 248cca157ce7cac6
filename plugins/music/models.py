from enum import Enum

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bot.database.models import Base


class QueueStatus(str, Enum):
    QUEUED = "QUEUED"
    CURRENT = "CURRENT"
    PLAYED = "PLAYED"
    ERROR = "ERROR"


class MusicQueueEntry(Base):
    """One track in a guild's queue lifecycle."""

    __tablename__ = "music_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, index=True)
    user_id: Mapped[int] = mapped_column(BigInteger)
    track_blob: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=QueueStatus.QUEUED.value)
    title: Mapped[str] = mapped_column(String(255))
    recycled: Mapped[bool] = mapped_column(Boolean, default=False)
    # Playable order among QUEUED rows; ties fall back to id
    position: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (Index("idx_music_queue_guild_status", "guild_id", "status"),)


class MusicHistoryEntry(Base):
    __tablename__ = "music_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, index=True)
    user_id: Mapped[int] = mapped_column(BigInteger)
    track_title: Mapped[str] = mapped_column(String(255))
    track_url: Mapped[str] = mapped_column(Text)
    played_at: Mapped[int] = mapped_column(BigInteger)  # ms since epoch
