from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from datetime import datetime, timezone

import requests
from requests.adapters import HTTPAdapter

from news_monitor.client import HackerNewsClient
from news_monitor.config import AppConfig, ConfigError, default_app_config, load_app_config
from news_monitor.filters import FilterEngine
from news_monitor.normalize import parse_filter_tokens
from news_monitor.pipeline import PipelineError, PipelineResult, StoryPipeline
from news_monitor.render import build_listing, filters_to_json, open_story, stories_to_json
from news_monitor.settings import SQLiteSettingsStore

LOGGER = logging.getLogger("news_monitor")


def _resolve_db_path(db_path_override: str | None) -> str:
    return (db_path_override or os.getenv("NEWS_MONITOR_DB_PATH") or "data/news_monitor.db").strip()


def load_config(config_override: str | None) -> AppConfig:
    path = (config_override or os.getenv("NEWS_MONITOR_CONFIG") or "").strip()
    if not path:
        return default_app_config()
    return load_app_config(path)


def configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def open_session(config: AppConfig) -> requests.Session:
    session = requests.Session()
    # One pooled connection per worker thread.
    adapter = HTTPAdapter(pool_maxsize=config.max_workers)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def build_client(session: requests.Session, config: AppConfig) -> HackerNewsClient:
    return HackerNewsClient(session, base_url=config.base_url, timeout_sec=config.timeout_sec)


def build_pipeline(client: HackerNewsClient, engine: FilterEngine, config: AppConfig) -> StoryPipeline:
    return StoryPipeline(
        client,
        engine,
        limit=config.limit,
        max_workers=config.max_workers,
        deadline_sec=config.deadline_sec,
    )


def _emit(result: PipelineResult, engine: FilterEngine, as_json: bool) -> None:
    if as_json:
        print(stories_to_json(result.stories))
        return
    print(build_listing(result.stories, datetime.now(timezone.utc), engine.current), end="")


def run_job(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    store = SQLiteSettingsStore(_resolve_db_path(args.db_path))
    try:
        store.initialize()
        engine = FilterEngine(store)
        engine.load()
        with open_session(config) as session:
            pipeline = build_pipeline(build_client(session, config), engine, config)
            result = pipeline.run_with_report()
    finally:
        store.close()

    _emit(result, engine, args.json)
    LOGGER.info(
        "run complete: run_id=%s fetched=%s failures=%s shown=%s",
        result.run_id,
        result.fetched_count,
        len(result.failures),
        len(result.stories),
    )
    return 0


def run_watch(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    interval_sec = args.interval if args.interval is not None else config.refresh_interval_sec
    if interval_sec <= 0:
        raise ConfigError("--interval must be > 0")
    if args.max_runs is not None and args.max_runs <= 0:
        raise ConfigError("--max-runs must be > 0")

    store = SQLiteSettingsStore(_resolve_db_path(args.db_path))
    last_result: PipelineResult | None = None
    runs = 0
    try:
        store.initialize()
        engine = FilterEngine(store)
        with open_session(config) as session:
            pipeline = build_pipeline(build_client(session, config), engine, config)
            while True:
                # Pick up filter changes saved by other commands.
                engine.load()
                try:
                    last_result = pipeline.run_with_report()
                except PipelineError:
                    LOGGER.exception("refresh failed; keeping previous stories")
                if last_result is not None:
                    _emit(last_result, engine, as_json=False)
                runs += 1
                if args.max_runs is not None and runs >= args.max_runs:
                    break
                time.sleep(interval_sec)
    finally:
        store.close()
    return 0


def run_filters_set(args: argparse.Namespace) -> int:
    keywords = parse_filter_tokens(args.keywords)
    topics = parse_filter_tokens(args.topics)
    store = SQLiteSettingsStore(_resolve_db_path(args.db_path))
    try:
        store.initialize()
        engine = FilterEngine(store)
        filters = engine.set_filters(keywords, topics)
        print(filters_to_json(filters))
        if not args.refresh:
            return 0
        config = load_config(args.config)
        with open_session(config) as session:
            result = build_pipeline(build_client(session, config), engine, config).run_with_report()
    finally:
        store.close()
    _emit(result, engine, as_json=False)
    return 0


def run_filters_show(args: argparse.Namespace) -> int:
    store = SQLiteSettingsStore(_resolve_db_path(args.db_path))
    try:
        store.initialize()
        filters = FilterEngine(store).load()
    finally:
        store.close()

    if args.json:
        print(filters_to_json(filters))
        return 0
    print(f"keywords\t{','.join(sorted(filters.keywords))}")
    print(f"topics\t{','.join(sorted(filters.topics))}")
    return 0


def run_open(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    with open_session(config) as session:
        story = build_client(session, config).get_story(args.story_id)
    opened = open_story(story)
    LOGGER.info("open story: id=%s url=%s opened=%s", story.id, story.url, opened)
    return 0


def run_self_test(args: argparse.Namespace) -> int:
    load_config(args.config)
    store = SQLiteSettingsStore(_resolve_db_path(args.db_path))
    try:
        store.initialize()
    finally:
        store.close()
    print("self-test: ok")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show Hacker News top stories matching your filters.")
    parser.add_argument("--log-level", default="INFO", help="DEBUG/INFO/WARNING/ERROR")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Fetch, rank and filter top stories once.")
    run_parser.add_argument("--config", default=None)
    run_parser.add_argument("--db-path", default=None)
    run_parser.add_argument("--json", action="store_true")
    run_parser.set_defaults(handler=run_job)

    watch_parser = subparsers.add_parser("watch", help="Refresh top stories on a fixed interval.")
    watch_parser.add_argument("--config", default=None)
    watch_parser.add_argument("--db-path", default=None)
    watch_parser.add_argument("--interval", type=int, default=None, help="Seconds between refreshes.")
    watch_parser.add_argument("--max-runs", type=int, default=None)
    watch_parser.set_defaults(handler=run_watch)

    filters_set_parser = subparsers.add_parser(
        "filters-set",
        help="Replace keyword/topic filters (comma separated).",
    )
    filters_set_parser.add_argument("--config", default=None)
    filters_set_parser.add_argument("--db-path", default=None)
    filters_set_parser.add_argument("--keywords", default="")
    filters_set_parser.add_argument("--topics", default="")
    filters_set_parser.add_argument("--refresh", action="store_true")
    filters_set_parser.set_defaults(handler=run_filters_set)

    filters_show_parser = subparsers.add_parser("filters-show", help="Show saved filters.")
    filters_show_parser.add_argument("--db-path", default=None)
    filters_show_parser.add_argument("--json", action="store_true")
    filters_show_parser.set_defaults(handler=run_filters_show)

    open_parser = subparsers.add_parser("open", help="Open a story's link in the browser.")
    open_parser.add_argument("story_id", type=int)
    open_parser.add_argument("--config", default=None)
    open_parser.set_defaults(handler=run_open)

    self_test_parser = subparsers.add_parser("self-test", help="Validate config and DB init.")
    self_test_parser.add_argument("--config", default=None)
    self_test_parser.add_argument("--db-path", default=None)
    self_test_parser.set_defaults(handler=run_self_test)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        return args.handler(args)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Unhandled error: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
