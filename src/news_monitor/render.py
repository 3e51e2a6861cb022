from __future__ import annotations

import json
import logging
import webbrowser
from datetime import datetime
from typing import Callable

from news_monitor.domain import FilterSet, Story

LOGGER = logging.getLogger(__name__)


def format_story_line(story: Story) -> str:
    return f"{story.title} ({story.score})"


def _format_tokens(tokens: frozenset[str]) -> str:
    return ", ".join(sorted(tokens)) if tokens else "-"


def build_listing(stories: list[Story], now: datetime, filters: FilterSet) -> str:
    lines: list[str] = []
    lines.append(f"Top stories at {now:%Y-%m-%d %H:%M:%S %Z}".rstrip())
    if filters.is_empty:
        lines.append("Filters: none")
    else:
        lines.append(f"Filters: keywords={_format_tokens(filters.keywords)} topics={_format_tokens(filters.topics)}")
    lines.append("")
    if not stories:
        lines.append("(no matching stories)")
    for story in stories:
        lines.append(format_story_line(story))
    return "\n".join(lines).rstrip() + "\n"


def stories_to_json(stories: list[Story]) -> str:
    payload = [
        {
            "id": story.id,
            "title": story.title,
            "url": story.url,
            "score": story.score,
            "published_at": story.published_at.isoformat(),
        }
        for story in stories
    ]
    return json.dumps(payload, ensure_ascii=False, indent=2)


def filters_to_json(filters: FilterSet) -> str:
    return json.dumps(
        {"keywords": sorted(filters.keywords), "topics": sorted(filters.topics)},
        ensure_ascii=False,
        indent=2,
    )


def open_story(story: Story, opener: Callable[[str], bool] = webbrowser.open) -> bool:
    if not story.url:
        LOGGER.info("story %s has no url; nothing to open", story.id)
        return False
    return bool(opener(story.url))
