from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

REASON_NETWORK = "network"
REASON_DECODE = "decode"
REASON_NOT_FOUND = "not_found"
REASON_TIMEOUT = "timeout"


@dataclass(frozen=True)
class Story:
    id: int
    title: str
    url: str | None
    score: int
    published_at: datetime


@dataclass(frozen=True)
class FilterSet:
    keywords: frozenset[str] = frozenset()
    topics: frozenset[str] = frozenset()

    @classmethod
    def build(cls, keywords: Iterable[str] = (), topics: Iterable[str] = ()) -> FilterSet:
        return cls(keywords=frozenset(keywords), topics=frozenset(topics))

    @property
    def is_empty(self) -> bool:
        return not self.keywords and not self.topics


@dataclass(frozen=True)
class StoryFailure:
    story_id: int
    error: str
    reason: str


# Exactly one side is set.
FetchOutcome = tuple[Story | None, StoryFailure | None]
