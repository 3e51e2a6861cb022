from news_monitor.normalize import contains_term, fold, parse_filter_tokens, tokens_from_json, tokens_to_json


def test_parse_filter_tokens_trims_and_drops_empty() -> None:
    assert parse_filter_tokens(" AI, , python ") == ("AI", "python")


def test_parse_filter_tokens_keeps_case_and_removes_duplicates() -> None:
    assert parse_filter_tokens("Rust,rust, Rust ") == ("Rust", "rust")


def test_parse_filter_tokens_blank_input() -> None:
    assert parse_filter_tokens("") == ()
    assert parse_filter_tokens(" , ,") == ()


def test_contains_term_folds_case_only() -> None:
    assert contains_term(fold("Show HN: My Python Tool"), "PYTHON")
    assert not contains_term(fold("Show HN: My Python Tool"), "pythons")


def test_tokens_json_is_sorted_and_tolerates_garbage() -> None:
    assert tokens_to_json({"b", "a"}) == '["a", "b"]'
    assert tokens_from_json('["a", "", 3, "b"]') == ("a", "b")
    assert tokens_from_json('{"a": 1}') is None
    assert tokens_from_json("not json") is None
