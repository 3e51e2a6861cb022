from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import requests

from news_monitor.domain import Story

DEFAULT_BASE_URL = "https://hacker-news.firebaseio.com/v0"
USER_AGENT = "news-monitor/0.1 (+https://github.com/news-monitor/news-monitor)"


class StorySourceError(Exception):
    """Base class for story source failures."""


class NetworkError(StorySourceError):
    """Transport failure, timeout or non-2xx status."""


class DecodeError(StorySourceError):
    """Response body does not have the expected JSON shape."""


class NotFound(StorySourceError):
    """The service returned null for a story id (deleted or dead item)."""

    def __init__(self, story_id: int) -> None:
        super().__init__(f"story {story_id} not found")
        self.story_id = story_id


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def decode_story_ids(payload: Any) -> list[int]:
    if not isinstance(payload, list):
        raise DecodeError(f"top stories payload must be a list, got {type(payload).__name__}")
    for index, value in enumerate(payload):
        if not _is_int(value):
            raise DecodeError(f"top stories payload[{index}] must be an integer")
    return list(payload)


def decode_story(payload: Any, story_id: int) -> Story:
    if payload is None:
        raise NotFound(story_id)
    if not isinstance(payload, dict):
        raise DecodeError(f"item {story_id}: payload must be an object")

    decoded_id = payload.get("id")
    if not _is_int(decoded_id) or decoded_id < 0:
        raise DecodeError(f"item {story_id}: id must be a non-negative integer")
    if decoded_id != story_id:
        raise DecodeError(f"item {story_id}: response carries id {decoded_id}")
    title = payload.get("title")
    if not isinstance(title, str):
        raise DecodeError(f"item {story_id}: title must be a string")
    score = payload.get("score")
    if not _is_int(score):
        raise DecodeError(f"item {story_id}: score must be an integer")
    published = payload.get("time")
    if not _is_int(published):
        raise DecodeError(f"item {story_id}: time must be an integer")
    url = payload.get("url")
    if url is not None and not isinstance(url, str):
        raise DecodeError(f"item {story_id}: url must be a string")

    return Story(
        id=decoded_id,
        title=title,
        url=url or None,
        score=score,
        published_at=datetime.fromtimestamp(published, tz=timezone.utc),
    )


class HackerNewsClient:
    """Read-only client for the two Hacker News Firebase endpoints."""

    def __init__(
        self,
        session: requests.Session,
        base_url: str = DEFAULT_BASE_URL,
        timeout_sec: float = 10,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.get(
                url,
                timeout=self.timeout_sec,
                headers={"User-Agent": USER_AGENT},
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(f"GET {url} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"GET {url} returned invalid JSON: {exc}") from exc

    def list_top_story_ids(self) -> list[int]:
        return decode_story_ids(self._get_json("topstories.json"))

    def get_story(self, story_id: int) -> Story:
        return decode_story(self._get_json(f"item/{story_id}.json"), story_id)
