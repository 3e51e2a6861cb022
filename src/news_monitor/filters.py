from __future__ import annotations

import logging
import threading
from typing import Iterable

from news_monitor.domain import FilterSet, Story
from news_monitor.normalize import contains_term, fold
from news_monitor.settings import KEYWORDS_KEY, TOPICS_KEY, SettingsStore

LOGGER = logging.getLogger(__name__)


def matches(story: Story, filters: FilterSet) -> bool:
    if filters.is_empty:
        return True
    folded_title = fold(story.title)
    if any(contains_term(folded_title, keyword) for keyword in filters.keywords):
        return True
    return any(contains_term(folded_title, topic) for topic in filters.topics)


class FilterEngine:
    """Holds the active FilterSet and swaps it as a whole on update."""

    def __init__(self, store: SettingsStore | None = None, initial: FilterSet | None = None) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._current = initial or FilterSet()

    @property
    def current(self) -> FilterSet:
        with self._lock:
            return self._current

    def load(self) -> FilterSet:
        if self._store is None:
            return self.current
        with self._lock:
            saved = self._store.load_many([KEYWORDS_KEY, TOPICS_KEY])
            loaded = FilterSet.build(
                keywords=saved[KEYWORDS_KEY] or (),
                topics=saved[TOPICS_KEY] or (),
            )
            self._current = loaded
        return loaded

    def set_filters(self, keywords: Iterable[str], topics: Iterable[str]) -> FilterSet:
        replacement = FilterSet.build(keywords=keywords, topics=topics)
        with self._lock:
            # Store and _current are replaced together under the lock.
            if self._store is not None:
                self._store.save_many({KEYWORDS_KEY: replacement.keywords, TOPICS_KEY: replacement.topics})
            self._current = replacement
        LOGGER.info(
            "filters replaced: keywords=%s topics=%s",
            len(replacement.keywords),
            len(replacement.topics),
        )
        return replacement

    def apply(self, stories: Iterable[Story]) -> list[Story]:
        filters = self.current
        return [story for story in stories if matches(story, filters)]
