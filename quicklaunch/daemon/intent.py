"""Query-intent detection: links, addresses, JSON and search prefixes.

These look only at the query text, never at a backend, so they are cheap
enough to run on every keystroke.
"""

import json
import re
from typing import List, Optional, Sequence
from urllib.parse import quote

from .config import SearchEngineConfig
from .models import SearchIntent


# Longer inputs are not parsed as JSON on every keystroke
MAX_JSON_CHECK_LENGTH = 1_000_000

_URL_PATTERN = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
_EMAIL_PATTERN = re.compile(
    r"\b[a-zA-Z0-9](?:[a-zA-Z0-9._-]*[a-zA-Z0-9])?"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9.-]*[a-zA-Z0-9])?\.[a-zA-Z]{2,}\b"
)


def _unique(values: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def extract_urls(text: str) -> List[str]:
    """http(s) URLs in order of appearance, without duplicates."""
    if not text or not text.strip():
        return []
    return _unique([url.strip() for url in _URL_PATTERN.findall(text)])


def extract_emails(text: str) -> List[str]:
    """Email addresses, lowercased, in order of appearance, without duplicates."""
    if not text or not text.strip():
        return []
    return _unique([email.strip().lower() for email in _EMAIL_PATTERN.findall(text)])


def is_valid_json(text: str) -> bool:
    """Whether the trimmed text is a JSON object or array."""
    if not text:
        return False
    trimmed = text.strip()
    if not trimmed or len(trimmed) > MAX_JSON_CHECK_LENGTH:
        return False
    if not trimmed.startswith(("{", "[")):
        return False
    try:
        json.loads(trimmed)
    except ValueError:
        return False
    return True


def build_search_url(url_template: str, keyword: str) -> str:
    """Substitute the URL-encoded keyword for every `{query}`."""
    return url_template.replace("{query}", quote(keyword, safe="-_.!~*'()"))


def detect_search_intent(
    query: str,
    engines: Sequence[SearchEngineConfig]
) -> Optional[SearchIntent]:
    """
    Match `query` against engine prefixes, longest prefix first.

    A prefix only counts when followed by a space, so "g" alone is not a
    Google search but "g " is, even with no keyword yet. The query is not
    trimmed before matching.
    """
    if not query or not query.strip() or not engines:
        return None

    for engine in sorted(engines, key=lambda e: len(e.prefix), reverse=True):
        if not engine.prefix:
            continue
        prefix = engine.prefix if engine.prefix.endswith(" ") else engine.prefix + " "
        if query.startswith(prefix):
            keyword = query[len(prefix):].strip()
            return SearchIntent(
                engine=engine.name,
                prefix=engine.prefix,
                keyword=keyword,
                url=build_search_url(engine.url, keyword),
            )
    return None
