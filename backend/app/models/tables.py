"""SQLAlchemy ORM models — all database tables."""

import uuid
from datetime import datetime, date
from typing import Optional
from sqlalchemy import (
    Integer, String, Text, Boolean, DateTime, Date, Index, UniqueConstraint, false,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ── Users ────────────────────────────────────────────────────────

class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    email: Mapped[Optional[str]] = mapped_column(String(300), unique=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    nickname: Mapped[Optional[str]] = mapped_column(String(100))
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(),
    )

    @property
    def display_name(self) -> str:
        return self.nickname or self.first_name or self.email or self.id


# ── Media Library ────────────────────────────────────────────────

class MediaItem(Base):
    __tablename__ = "media_items"
    __table_args__ = (
        Index("idx_media_items_user", "user_id", "is_archived", "date_added"),
        Index("idx_media_items_user_status", "user_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)      # Anime, Manhwa, Movies, TV Shows, ...
    status: Mapped[str] = mapped_column(String(50), nullable=False)    # To Watch/Read, In Progress, Watched/Read, Dropped
    progress: Mapped[Optional[str]] = mapped_column(String(50))        # derived: "S1E5" | "Ch12" | ""
    season: Mapped[Optional[int]] = mapped_column(Integer)
    episode: Mapped[Optional[int]] = mapped_column(Integer)
    chapter: Mapped[Optional[int]] = mapped_column(Integer)
    total_episodes: Mapped[Optional[int]] = mapped_column(Integer)
    total_seasons: Mapped[Optional[int]] = mapped_column(Integer)
    total_chapters: Mapped[Optional[int]] = mapped_column(Integer)
    genre: Mapped[Optional[str]] = mapped_column(Text)                 # comma-separated
    notes: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[Optional[int]] = mapped_column(Integer)
    date_added: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    date_completed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    time_spent: Mapped[Optional[int]] = mapped_column(Integer)         # minutes
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    external_id: Mapped[Optional[str]] = mapped_column(String(100))    # tmdb:movie:123, ...
    release_year: Mapped[Optional[int]] = mapped_column(Integer)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ── Gamification ─────────────────────────────────────────────────

class Achievement(Base):
    __tablename__ = "achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_achievements_user_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)      # collector_10, completed_10, ...
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # "metadata" is reserved on declarative classes
    details: Mapped[Optional[dict]] = mapped_column("metadata", JSONB)


class UserStats(Base):
    __tablename__ = "user_stats"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, default=0)
    completed_items: Mapped[int] = mapped_column(Integer, default=0)
    in_progress_items: Mapped[int] = mapped_column(Integer, default=0)
    planned_items: Mapped[int] = mapped_column(Integer, default=0)
    dropped_items: Mapped[int] = mapped_column(Integer, default=0)
    total_time_spent: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    points: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_login_date: Mapped[Optional[date]] = mapped_column(Date)
    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
