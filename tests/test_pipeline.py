from datetime import datetime, timezone

import pytest

from news_monitor.client import NetworkError, NotFound
from news_monitor.domain import FilterSet, Story
from news_monitor.filters import FilterEngine
from news_monitor.pipeline import PipelineError, StoryPipeline
from news_monitor.ranker import rank_stories
from news_monitor.settings import MemorySettingsStore


def _story(story_id: int, title: str, score: int, published: int = 1700000000) -> Story:
    return Story(
        id=story_id,
        title=title,
        url=None,
        score=score,
        published_at=datetime.fromtimestamp(published, tz=timezone.utc),
    )


class _FakeSource:
    def __init__(self, ids: list[int] | Exception, results: dict[int, object]) -> None:
        self.ids = ids
        self.results = results

    def list_top_story_ids(self) -> list[int]:
        if isinstance(self.ids, Exception):
            raise self.ids
        return self.ids

    def get_story(self, story_id: int) -> Story:
        result = self.results[story_id]
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]


STORY_1 = _story(1, "Rust async runtime", 50)
STORY_2 = _story(2, "Cooking tips", 80)


def _source() -> _FakeSource:
    return _FakeSource([1, 2, 3], {1: STORY_1, 2: STORY_2, 3: NetworkError("connection reset")})


def test_run_applies_keyword_filter_after_ranking() -> None:
    engine = FilterEngine(initial=FilterSet.build(keywords=["rust"], topics=[]))
    assert StoryPipeline(_source(), engine).run() == [STORY_1]


def test_run_with_empty_filter_returns_all_sorted_by_score() -> None:
    assert StoryPipeline(_source(), FilterEngine()).run() == [STORY_2, STORY_1]


def test_run_after_clearing_filters_is_unfiltered() -> None:
    engine = FilterEngine(MemorySettingsStore(), initial=FilterSet.build(keywords=["rust"]))
    engine.set_filters([], [])

    assert StoryPipeline(_source(), engine).run() == [STORY_2, STORY_1]


def test_run_drops_not_found_story() -> None:
    source = _FakeSource([1, 2], {1: STORY_1, 2: NotFound(2)})
    assert StoryPipeline(source, FilterEngine()).run() == [STORY_1]


def test_run_id_list_failure_raises_pipeline_error() -> None:
    source = _FakeSource(NetworkError("unreachable"), {})
    with pytest.raises(PipelineError) as excinfo:
        StoryPipeline(source, FilterEngine()).run()
    assert isinstance(excinfo.value.__cause__, NetworkError)


def test_run_with_report_counts_failures() -> None:
    result = StoryPipeline(_source(), FilterEngine(initial=FilterSet.build(keywords=["rust"]))).run_with_report()

    assert result.fetched_count == 2
    assert [failure.story_id for failure in result.failures] == [3]
    assert result.stories == [STORY_1]
    assert result.run_id


def test_run_limits_batch_size() -> None:
    ids = list(range(1, 151))
    source = _FakeSource(ids, {story_id: _story(story_id, f"story {story_id}", story_id) for story_id in ids})

    stories = StoryPipeline(source, FilterEngine()).run()

    assert len(stories) == 100
    assert max(story.id for story in stories) == 100


def test_run_output_is_sorted_by_score_descending() -> None:
    scores = [5, 300, 42, 42, 0, 17]
    ids = list(range(1, len(scores) + 1))
    source = _FakeSource(ids, {story_id: _story(story_id, "t", score) for story_id, score in zip(ids, scores)})

    stories = StoryPipeline(source, FilterEngine(), max_workers=4).run()

    assert all(first.score >= second.score for first, second in zip(stories, stories[1:]))


def test_rank_stories_tie_break_prefers_newer_then_lower_id() -> None:
    older = _story(1, "a", 10, published=1000)
    newer = _story(2, "b", 10, published=2000)
    same_time = _story(3, "c", 10, published=2000)

    assert rank_stories([older, same_time, newer]) == [newer, same_time, older]


def test_pipeline_rejects_invalid_limit() -> None:
    with pytest.raises(ValueError):
        StoryPipeline(_source(), FilterEngine(), limit=0)
