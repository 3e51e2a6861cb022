from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol
from uuid import uuid4

from news_monitor.client import StorySourceError
from news_monitor.domain import Story, StoryFailure
from news_monitor.fetcher import DEFAULT_LIMIT, DEFAULT_MAX_WORKERS, StoryReader, fetch_batch
from news_monitor.filters import FilterEngine
from news_monitor.ranker import rank_stories

LOGGER = logging.getLogger(__name__)


class PipelineError(Exception):
    """Raised when the top story id list cannot be fetched."""


class StorySource(StoryReader, Protocol):
    def list_top_story_ids(self) -> list[int]: ...


@dataclass(frozen=True)
class PipelineResult:
    run_id: str
    fetched_count: int
    failures: list[StoryFailure]
    stories: list[Story]


class StoryPipeline:
    def __init__(
        self,
        client: StorySource,
        filter_engine: FilterEngine,
        limit: int = DEFAULT_LIMIT,
        max_workers: int = DEFAULT_MAX_WORKERS,
        deadline_sec: float | None = None,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self.client = client
        self.filter_engine = filter_engine
        self.limit = limit
        self.max_workers = max_workers
        self.deadline_sec = deadline_sec

    def run_with_report(self) -> PipelineResult:
        run_id = f"{datetime.now(timezone.utc):%Y%m%dT%H%M%SZ}-{uuid4().hex[:8]}"
        try:
            story_ids = self.client.list_top_story_ids()
        except StorySourceError as exc:
            raise PipelineError(f"failed to fetch top story ids: {exc}") from exc

        batch = fetch_batch(
            self.client,
            story_ids,
            limit=self.limit,
            max_workers=self.max_workers,
            deadline_sec=self.deadline_sec,
        )
        ranked = rank_stories(batch.stories)
        selected = self.filter_engine.apply(ranked)
        LOGGER.info(
            "pipeline run complete: run_id=%s ids=%s fetched=%s failures=%s selected=%s",
            run_id,
            len(story_ids),
            len(batch.stories),
            len(batch.failures),
            len(selected),
        )
        return PipelineResult(
            run_id=run_id,
            fetched_count=len(batch.stories),
            failures=batch.failures,
            stories=selected,
        )

    def run(self) -> list[Story]:
        return self.run_with_report().stories
