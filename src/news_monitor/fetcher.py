from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, as_completed
from dataclasses import dataclass
from typing import Iterable, Protocol

from news_monitor.client import DecodeError, NetworkError, NotFound
from news_monitor.domain import (
    REASON_DECODE,
    REASON_NETWORK,
    REASON_NOT_FOUND,
    REASON_TIMEOUT,
    FetchOutcome,
    Story,
    StoryFailure,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_MAX_WORKERS = 16


class StoryReader(Protocol):
    def get_story(self, story_id: int) -> Story: ...


@dataclass(frozen=True)
class BatchResult:
    stories: list[Story]
    failures: list[StoryFailure]
    attempted: int


def _unique_ids(story_ids: Iterable[int], limit: int) -> list[int]:
    window = list(story_ids)[:limit]
    # Keep first occurrence order and remove duplicates.
    return list(dict.fromkeys(window))


def fetch_story(client: StoryReader, story_id: int) -> FetchOutcome:
    try:
        return client.get_story(story_id), None
    except NotFound as exc:
        return None, StoryFailure(story_id=story_id, error=str(exc), reason=REASON_NOT_FOUND)
    except DecodeError as exc:
        return None, StoryFailure(story_id=story_id, error=str(exc), reason=REASON_DECODE)
    except NetworkError as exc:
        return None, StoryFailure(story_id=story_id, error=str(exc), reason=REASON_NETWORK)
    except Exception as exc:  # noqa: BLE001
        return None, StoryFailure(story_id=story_id, error=repr(exc), reason=REASON_NETWORK)


def _record_failure(failures: list[StoryFailure], failure: StoryFailure) -> None:
    failures.append(failure)
    LOGGER.warning(
        "story fetch dropped: id=%s reason=%s error=%s",
        failure.story_id,
        failure.reason,
        failure.error,
    )


def fetch_batch(
    client: StoryReader,
    story_ids: Iterable[int],
    limit: int = DEFAULT_LIMIT,
    max_workers: int = DEFAULT_MAX_WORKERS,
    deadline_sec: float | None = None,
) -> BatchResult:
    """Fetch story details concurrently and settle every attempt.

    Failures never propagate: each one is logged and returned in
    ``BatchResult.failures``. When ``deadline_sec`` expires the unsettled
    ids are recorded as timeouts and their pending tasks are cancelled.
    """
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if max_workers <= 0:
        raise ValueError("max_workers must be > 0")
    if deadline_sec is not None and deadline_sec <= 0:
        raise ValueError("deadline_sec must be > 0")

    ids = _unique_ids(story_ids, limit)
    if not ids:
        return BatchResult(stories=[], failures=[], attempted=0)

    stories: list[Story] = []
    failures: list[StoryFailure] = []
    seen_story_ids: set[int] = set()

    def _settle(outcome: FetchOutcome) -> None:
        story, failure = outcome
        if failure is not None:
            _record_failure(failures, failure)
            return
        if story is None or story.id in seen_story_ids:
            return
        seen_story_ids.add(story.id)
        stories.append(story)

    executor = ThreadPoolExecutor(max_workers=min(max_workers, len(ids)), thread_name_prefix="story-fetch")
    pending: dict[Future[FetchOutcome], int] = {
        executor.submit(fetch_story, client, story_id): story_id for story_id in ids
    }
    timed_out = False
    try:
        for future in as_completed(list(pending), timeout=deadline_sec):
            del pending[future]
            _settle(future.result())
    except FuturesTimeoutError:
        timed_out = True
        for future, story_id in pending.items():
            if future.done() and not future.cancelled():
                _settle(future.result())
                continue
            _record_failure(
                failures,
                StoryFailure(
                    story_id=story_id,
                    error=f"batch deadline of {deadline_sec}s exceeded",
                    reason=REASON_TIMEOUT,
                ),
            )
    finally:
        executor.shutdown(wait=not timed_out, cancel_futures=timed_out)

    LOGGER.info(
        "story batch settled: attempted=%s fetched=%s failed=%s",
        len(ids),
        len(stories),
        len(failures),
    )
    return BatchResult(stories=stories, failures=failures, attempted=len(ids))


def fetch_all(
    client: StoryReader,
    story_ids: Iterable[int],
    limit: int = DEFAULT_LIMIT,
    max_workers: int = DEFAULT_MAX_WORKERS,
    deadline_sec: float | None = None,
) -> list[Story]:
    return fetch_batch(
        client,
        story_ids,
        limit=limit,
        max_workers=max_workers,
        deadline_sec=deadline_sec,
    ).stories
