import textwrap

import pytest

from news_monitor.config import AppConfig, ConfigError, load_app_config


def test_load_app_config_reads_repository_config() -> None:
    config = load_app_config("data/config.yaml")
    assert config.base_url == "https://hacker-news.firebaseio.com/v0"
    assert config.limit == 100
    assert config.deadline_sec == 60.0
    assert config.refresh_interval_sec == 3600


def test_load_app_config_applies_defaults(tmp_path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("version: 1\n", encoding="utf-8")

    assert load_app_config(config_path) == AppConfig()


def test_load_app_config_strips_trailing_slash(tmp_path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        textwrap.dedent(
            """
            api:
              base_url: http://localhost:8080/v0/
            fetch:
              max_workers: 4
            """
        ),
        encoding="utf-8",
    )

    config = load_app_config(config_path)
    assert config.base_url == "http://localhost:8080/v0"
    assert config.max_workers == 4


@pytest.mark.parametrize(
    "body",
    [
        "fetch:\n  limit: 0\n",
        "fetch:\n  max_workers: true\n",
        "fetch:\n  deadline_sec: -1\n",
        "api:\n  base_url: ftp://example.com\n",
        "api: [1, 2]\n",
        "- just\n- a list\n",
        "refresh:\n  interval_sec: soon\n",
    ],
)
def test_load_app_config_rejects_invalid_values(tmp_path, body: str) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_app_config(config_path)


def test_load_app_config_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_app_config(tmp_path / "missing.yaml")
