"""Watch progress updates and next-episode resolution."""

import time
from typing import Optional

import structlog

from ..core.errors import NotExistError
from ..models.episode import Episode, EpisodeKind
from ..models.show import Show

logger = structlog.get_logger()


def update_watched(show: Show, episode: Episode) -> None:
    """Record ``episode`` as the show's current episode.

    Args:
        show: Show to update
        episode: Episode that was watched

    Raises:
        NotExistError: If the episode is not in the show's episode map.
            The show is left untouched.
    """
    if not show.has_episode(episode):
        raise NotExistError(show.identifier, episode)
    _update_watched_unchecked(show, episode)


def _update_watched_unchecked(show: Show, episode: Episode) -> None:
    show.current_episode = episode
    show.last_watched = int(time.time())
    logger.debug("watched_updated", show=show.identifier, episode=str(episode))


def next_episode(show: Show) -> Optional[Episode]:
    """Get the episode following the show's current episode.

    Season premieres are numbered from 0 or 1 depending on the release, so
    after the next episode of the same season, episode 0 and then episode 1
    of the next season are tried.

    Returns:
        Next episode present in the episode map, or None. Specials have no
        successor.
    """
    current = show.current_episode
    if current.kind is EpisodeKind.SPECIAL:
        return None

    candidates = (
        Episode.numbered(current.season, current.episode + 1),
        Episode.numbered(current.season + 1, 0),
        Episode.numbered(current.season + 1, 1),
    )
    for candidate in candidates:
        if show.has_episode(candidate):
            return candidate
    return None


def advance(show: Show) -> Optional[Episode]:
    """Mark the next episode as watched.

    Returns:
        The episode now current, or None if there is no successor (the
        show is left untouched)
    """
    episode = next_episode(show)
    if episode is not None:
        update_watched(show, episode)
    return episode
