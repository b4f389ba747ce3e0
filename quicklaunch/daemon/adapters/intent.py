"""Query-text detectors: URLs, emails, JSON and search-engine prefixes.

Synchronous like the plugin adapter. Each detector owns one presented slot
and commits through the gate on its own.
"""

from typing import Any, Callable, Dict, Mapping, Sequence

from ..config import SearchEngineConfig
from ..gate import CommitGate, QueryTicket
from ..intent import detect_search_intent, extract_emails, extract_urls, is_valid_json
from ..models import Source

INTENT_SOURCES = (
    Source.DETECTED_URLS,
    Source.DETECTED_EMAILS,
    Source.DETECTED_JSON,
    Source.SEARCH_INTENT,
)


class QueryIntentAdapter:

    def __init__(
        self,
        engines: Sequence[SearchEngineConfig],
        gate: CommitGate,
        setters: Mapping[Source, Callable[[QueryTicket, Any], None]]
    ):
        missing = [s.value for s in INTENT_SOURCES if s not in setters]
        if missing:
            raise ValueError(f"Missing setters for {', '.join(missing)}")
        self.engines = list(engines)
        self.gate = gate
        self.setters = dict(setters)

    def detect(self, text: str) -> Dict[Source, Any]:
        """Run every detector on `text` without committing anything."""
        if not text or not text.strip():
            return {Source.DETECTED_URLS: [], Source.DETECTED_EMAILS: [],
                    Source.DETECTED_JSON: None, Source.SEARCH_INTENT: None}
        return {
            Source.DETECTED_URLS: extract_urls(text),
            Source.DETECTED_EMAILS: extract_emails(text),
            Source.DETECTED_JSON: text.strip() if is_valid_json(text) else None,
            Source.SEARCH_INTENT: detect_search_intent(text, self.engines),
        }

    def search(self, ticket: QueryTicket) -> Dict[Source, Any]:
        """Detect and commit all four slots; returns what was detected."""
        detected = self.detect(ticket.text)
        for source, value in detected.items():
            self.gate.commit(ticket, self.setters[source], value, source=source)
        return detected
