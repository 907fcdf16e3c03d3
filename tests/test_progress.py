"""Tests for watch progress and next-episode resolution."""

import pytest

from anitrack.core.errors import NotExistError
from anitrack.models.episode import Episode
from anitrack.services.progress import advance, next_episode, update_watched

from .conftest import make_show


def numbered_show(*codes: tuple[int, int], current: Episode = None):
    show = make_show(
        "Show",
        *[(Episode.numbered(s, e), f"/library/Show/S{s:02d}E{e:02d}.mkv") for s, e in codes],
    )
    if current is not None:
        show.current_episode = current
    return show


def test_update_watched_sets_progress():
    """Test a known episode becomes current with a watch timestamp."""
    show = numbered_show((1, 1), (1, 2))

    update_watched(show, Episode.numbered(1, 2))

    assert show.current_episode == Episode.numbered(1, 2)
    assert show.last_watched > 0


def test_update_watched_rejects_unknown_episode():
    """Test an absent episode raises and leaves the show untouched."""
    show = numbered_show((1, 1), (1, 2))

    with pytest.raises(NotExistError) as exc_info:
        update_watched(show, Episode.numbered(1, 3))

    assert exc_info.value.show == "Show"
    assert exc_info.value.episode == Episode.numbered(1, 3)
    assert show.current_episode == Episode.numbered(1, 1)
    assert show.last_watched == 0


def test_next_episode_same_season():
    """Test the next episode of the same season comes first."""
    show = numbered_show((1, 1), (1, 2), (2, 0), current=Episode.numbered(1, 1))
    assert next_episode(show) == Episode.numbered(1, 2)


def test_next_episode_rolls_into_next_season():
    """Test the last episode of a season is followed by the next premiere."""
    show = numbered_show((1, 1), (1, 2), (2, 1), current=Episode.numbered(1, 2))
    assert next_episode(show) == Episode.numbered(2, 1)


def test_zero_indexed_premiere_is_probed_first():
    """Test episode 0 of the next season wins over episode 1."""
    show = numbered_show((1, 1), (2, 0))
    assert next_episode(show) == Episode.numbered(2, 0)

    show = numbered_show((1, 1), (2, 0), (2, 1))
    assert next_episode(show) == Episode.numbered(2, 0)


def test_no_successor():
    """Test the final episode has no successor."""
    show = numbered_show((1, 1), (1, 2), current=Episode.numbered(1, 2))
    assert next_episode(show) is None


def test_gap_is_not_skipped():
    """Test a missing episode is not jumped over within a season."""
    show = numbered_show((1, 1), (1, 3))
    assert next_episode(show) is None


def test_special_has_no_successor():
    """Test a special current episode has no next episode."""
    special = Episode.special("OP.mkv")
    show = make_show(
        "Show",
        (Episode.numbered(1, 1), "/library/Show/01.mkv"),
        (special, "/library/Show/OP.mkv"),
    )
    show.current_episode = special
    assert next_episode(show) is None


def test_advance_marks_next_episode():
    """Test advancing moves progress to the next episode."""
    show = numbered_show((1, 1), (1, 2))

    assert advance(show) == Episode.numbered(1, 2)
    assert show.current_episode == Episode.numbered(1, 2)
    assert show.last_watched > 0


def test_advance_without_successor_is_a_no_op():
    """Test advancing past the end changes nothing."""
    show = numbered_show((1, 1), current=Episode.numbered(1, 1))

    assert advance(show) is None
    assert show.last_watched == 0
