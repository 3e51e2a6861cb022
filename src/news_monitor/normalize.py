from __future__ import annotations

import json
from typing import Iterable


def fold(value: str) -> str:
    return (value or "").lower()


def contains_term(folded_text: str, term: str) -> bool:
    return fold(term) in folded_text


def parse_filter_tokens(raw: str) -> tuple[str, ...]:
    """Split comma-separated user input into filter tokens.

    Tokens are trimmed, empty ones dropped, and duplicates removed. Case is
    kept as typed; folding happens only when matching.
    """
    parts = [item.strip() for item in (raw or "").split(",") if item.strip()]
    # Keep deterministic order and remove duplicates.
    return tuple(dict.fromkeys(parts))


def tokens_to_json(tokens: Iterable[str]) -> str:
    return json.dumps(sorted(tokens), ensure_ascii=False)


def tokens_from_json(raw: str) -> tuple[str, ...] | None:
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, list):
        return None
    return tuple(item for item in payload if isinstance(item, str) and item.strip())
