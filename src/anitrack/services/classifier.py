"""Episode classification from release file names."""

import os
import re
from pathlib import PurePath
from typing import Iterable, Union

from ..core.errors import InvalidFileError, Utf8Error
from ..models.episode import Episode

PathInput = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]

# Openings, endings, OVAs and other extras that have no episode number
SPECIAL_PATTERN = re.compile(
    r".*OVA.*\."
    r"|NCED.*? "
    r"|NCOP.*? "
    r"|(-|_| )(ED|OP|SP|no-credit_opening|no-credit_ending).*?(-|_| )"
)

# Tokens that look like episode numbers but are not: codecs, resolutions,
# CRC fragments, bit depth
NOISE_PATTERN = re.compile(r"(x26[45]|\d{4}|\d{3})|10.?bits?")
NOISE_PLACEHOLDER = "#"

# Optional two digit season ("S01", "s01" or at the start), a separator,
# then a one or two digit episode followed by a boundary
EPISODE_PATTERN = re.compile(
    r"(?:(?:^|S|s)(?P<season>\d{2}))?"
    r"(?:_|x|E|e|EP|ep| )"
    r"(?P<episode>\d{1,2})"
    r"(?:.bits|_| |-|\.|v|$)"
)

DEFAULT_SEASON = 1
DEFAULT_EPISODE = 1


def _path_text(path: PathInput) -> str:
    """Get the path as text, rejecting names that are not valid UTF-8."""
    raw = os.fspath(path)
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise Utf8Error(raw) from None

    try:
        # Undecodable bytes from the filesystem show up as lone surrogates
        raw.encode("utf-8")
    except UnicodeEncodeError:
        raise Utf8Error(raw) from None
    return raw


def file_name(path: PathInput) -> str:
    """Get the final path component.

    Raises:
        InvalidFileError: If the path has no file-name component
        Utf8Error: If the path is not representable as text
    """
    text = _path_text(path)
    name = PurePath(text).name
    if not name or name == "..":
        raise InvalidFileError(text)
    return name


def classify(path: PathInput) -> Episode:
    """Classify a video file path as a numbered episode or a special.

    Only the path string is inspected. Names that cannot be parsed become
    specials keyed by their file name.

    Args:
        path: Path of the video file

    Returns:
        Classified episode

    Raises:
        InvalidFileError: If the path has no file-name component
        Utf8Error: If the path is not representable as text
    """
    text = _path_text(path)
    name = file_name(text)

    if SPECIAL_PATTERN.search(text):
        return Episode.special(name)

    match = EPISODE_PATTERN.search(NOISE_PATTERN.sub(NOISE_PLACEHOLDER, text))
    if match is None:
        return Episode.special(name)

    season = match.group("season")
    episode = match.group("episode")
    return Episode.numbered(
        int(season) if season is not None else DEFAULT_SEASON,
        int(episode) if episode is not None else DEFAULT_EPISODE,
    )


def is_video_file(path: PathInput, extensions: Iterable[str]) -> bool:
    """Check if a path has one of the whitelisted extensions."""
    suffix = PurePath(os.fsdecode(path)).suffix.lower().lstrip(".")
    return bool(suffix) and suffix in {ext.lower().lstrip(".") for ext in extensions}
