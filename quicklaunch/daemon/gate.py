"""Live query state, presented results and the commit gate.

Every adapter invocation carries a `QueryTicket` taken when it started.
When the adapter finishes it hands its value to `CommitGate.commit`, which
applies it only if the ticket still describes the live query. Two checks
must pass: the generation (bumped by every `set_query`) and the trimmed
text. The generation rejects a slow result for an earlier, identically
spelled query; the text rejects direct per-source calls made with text
that is not the current query.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

from loguru import logger

from .bus import Event, EventBus
from .models import DirectPathResult, Source


V = TypeVar("V")


@dataclass(frozen=True)
class QueryTicket:
    """Query text and generation captured when an adapter was invoked."""
    text: str
    generation: int

    @property
    def normalized(self) -> str:
        return self.text.strip()

    @property
    def is_blank(self) -> bool:
        return not self.normalized


class QueryState:
    """Single source of truth for what the user is asking for right now."""

    def __init__(self):
        self._text = ""
        self._generation = 0

    @property
    def text(self) -> str:
        return self._text

    @property
    def generation(self) -> int:
        return self._generation

    def advance(self, text: str) -> QueryTicket:
        """Make `text` the live query under a fresh generation."""
        self._generation += 1
        self._text = text
        return QueryTicket(text=text, generation=self._generation)

    def ticket(self, text: Optional[str] = None) -> QueryTicket:
        """Ticket for an invocation outside a fan-out, bound to the live generation."""
        return QueryTicket(
            text=self._text if text is None else text,
            generation=self._generation
        )

    def is_current(self, ticket: QueryTicket) -> bool:
        return (
            ticket.generation == self._generation
            and ticket.normalized == self._text.strip()
        )


def _empty_value(source: Source) -> Any:
    if source is Source.DIRECT_PATH:
        return DirectPathResult.absent()
    if source in (Source.DETECTED_JSON, Source.SEARCH_INTENT):
        return None
    return []


class PresentedResults:
    """What the rendering layer currently shows, one value per source."""

    def __init__(self):
        self._values: Dict[Source, Any] = {source: _empty_value(source) for source in Source}
        self._generations: Dict[Source, int] = {source: 0 for source in Source}

    def get(self, source: Source) -> Any:
        return self._values[source]

    def generation_of(self, source: Source) -> int:
        """Generation of the query whose result is shown for `source`."""
        return self._generations[source]

    def setter(self, source: Source) -> Callable[[QueryTicket, Any], None]:
        def apply(ticket: QueryTicket, value: Any) -> None:
            self._values[source] = value
            self._generations[source] = ticket.generation
        return apply

    def snapshot(self) -> Dict[str, Any]:
        return {source.value: value for source, value in self._values.items()}


class CommitGate:
    """Staleness check performed before any result becomes visible."""

    def __init__(self, state: QueryState, bus: Optional[EventBus] = None):
        self.state = state
        self.bus = bus
        self.committed = 0
        self.discarded = 0

    def commit(
        self,
        ticket: QueryTicket,
        setter: Callable[[QueryTicket, V], None],
        value: V,
        source: Optional[Source] = None
    ) -> bool:
        """
        Apply `value` through `setter` if `ticket` is still current.

        Returns True when applied. A stale value is dropped without error.
        """
        name = source.value if source else "unknown"

        if not self.state.is_current(ticket):
            self.discarded += 1
            logger.debug(
                f"Discarded {name} result for {ticket.text!r} "
                f"(gen {ticket.generation}, live gen {self.state.generation})"
            )
            self._emit("results.discarded", {
                'source': name,
                'generation': ticket.generation,
            })
            return False

        setter(ticket, value)
        self.committed += 1
        self._emit("results.committed", {
            'source': name,
            'generation': ticket.generation,
            'count': _count(value),
        })
        return True

    def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.bus is not None and self.bus.running:
            self.bus.emit_nowait(Event(type=event_type, data=data, source="gate"))


def _count(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, DirectPathResult):
        return 1 if value.present else 0
    if isinstance(value, str):
        return 1
    try:
        return len(value)
    except TypeError:
        return 1
