"""Show and episode ORM models."""

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base


class ShowORM(Base):
    """ORM model for anime table."""

    __tablename__ = "anime"
    __table_args__ = (Index("filename_idx", "anime", unique=True),)

    # Primary key: top-level directory name
    anime: Mapped[str] = mapped_column(String(255), primary_key=True)
    path: Mapped[str] = mapped_column(Text, default="")

    # Current episode: season/episode, or special file name
    current_episode: Mapped[Optional[int]] = mapped_column(Integer)
    current_season: Mapped[Optional[int]] = mapped_column(Integer)
    current_special: Mapped[Optional[str]] = mapped_column(Text)

    # Unix timestamps, 0 = never
    last_watched: Mapped[int] = mapped_column(Integer, default=0, index=True)
    last_scanned: Mapped[int] = mapped_column(Integer, default=0)

    episodes: Mapped[list["EpisodeORM"]] = relationship(
        "EpisodeORM",
        back_populates="show",
        cascade="all, delete-orphan",
        order_by="EpisodeORM.position",
    )


class EpisodeORM(Base):
    """ORM model for episode table, one row per file."""

    __tablename__ = "episode"
    __table_args__ = (
        Index("episode_season_idx", "episode", "season"),
        CheckConstraint(
            "(special IS NOT NULL AND season IS NULL AND episode IS NULL)"
            " OR (special IS NULL AND season IS NOT NULL AND episode IS NOT NULL)",
            name="episode_variant_check",
        ),
    )

    # Primary key
    path: Mapped[str] = mapped_column(Text, primary_key=True)

    # Foreign key
    anime: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("anime.anime", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    episode: Mapped[Optional[int]] = mapped_column(Integer)
    season: Mapped[Optional[int]] = mapped_column(Integer)
    special: Mapped[Optional[str]] = mapped_column(Text)

    # Order in which files were added to the show
    position: Mapped[int] = mapped_column(Integer, default=0)

    show: Mapped["ShowORM"] = relationship("ShowORM", back_populates="episodes")
