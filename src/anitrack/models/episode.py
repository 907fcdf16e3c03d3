"""Episode model: a numbered season/episode slot or an unnumbered special."""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# "S01E04", "s1e4", "1x04"
EPISODE_CODE_PATTERN = re.compile(r"^[Ss]?(\d+)[EeXx](\d+)$")


class EpisodeKind(str, Enum):
    """Episode variant tag."""

    NUMBERED = "numbered"
    SPECIAL = "special"


class Episode(BaseModel):
    """Tagged union of a numbered episode and a special.

    Numbered episodes carry ``season`` and ``episode``; specials (openings,
    endings, OVAs, extras) carry only the ``filename`` they were found under.
    Numbered episodes sort before all specials.
    """

    model_config = ConfigDict(frozen=True)

    kind: EpisodeKind
    season: Optional[int] = Field(default=None, ge=0)
    episode: Optional[int] = Field(default=None, ge=0)
    filename: Optional[str] = None

    @model_validator(mode="after")
    def check_variant_fields(self) -> "Episode":
        """Numbered and special fields are mutually exclusive."""
        if self.kind is EpisodeKind.NUMBERED:
            if self.season is None or self.episode is None or self.filename is not None:
                raise ValueError("numbered episode needs season and episode only")
        elif self.filename is None or self.season is not None or self.episode is not None:
            raise ValueError("special episode needs filename only")
        return self

    @classmethod
    def numbered(cls, season: int, episode: int) -> "Episode":
        return cls(kind=EpisodeKind.NUMBERED, season=season, episode=episode)

    @classmethod
    def special(cls, filename: str) -> "Episode":
        return cls(kind=EpisodeKind.SPECIAL, filename=filename)

    @classmethod
    def parse(cls, text: str) -> "Episode":
        """Parse a user-supplied episode reference.

        Accepts ``S01E04``/``1x04`` codes and bare episode numbers (season 1).
        Anything else is taken as the filename of a special.

        Args:
            text: Episode reference from the command line

        Returns:
            Parsed episode
        """
        value = text.strip()
        match = EPISODE_CODE_PATTERN.match(value)
        if match:
            return cls.numbered(int(match.group(1)), int(match.group(2)))
        if value.isdigit():
            return cls.numbered(1, int(value))
        return cls.special(value)

    @property
    def is_special(self) -> bool:
        return self.kind is EpisodeKind.SPECIAL

    def sort_key(self) -> tuple[int, int, int, str]:
        """Key implementing the episode total order."""
        if self.kind is EpisodeKind.NUMBERED:
            return (0, self.season, self.episode, "")
        return (1, 0, 0, self.filename)

    def __lt__(self, other: "Episode") -> bool:
        if not isinstance(other, Episode):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "Episode") -> bool:
        if not isinstance(other, Episode):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "Episode") -> bool:
        if not isinstance(other, Episode):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "Episode") -> bool:
        if not isinstance(other, Episode):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        if self.kind is EpisodeKind.NUMBERED:
            return f"S{self.season:02d}E{self.episode:02d}"
        return self.filename
