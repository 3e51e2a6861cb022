from __future__ import annotations

from typing import Iterable

from news_monitor.domain import Story


def _sort_key(story: Story) -> tuple[int, float, int]:
    return (
        -story.score,
        -story.published_at.timestamp(),
        story.id,
    )


def rank_stories(stories: Iterable[Story]) -> list[Story]:
    return sorted(stories, key=_sort_key)
