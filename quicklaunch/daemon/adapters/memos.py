"""Notes adapter: filters the always-loaded memo list."""

from typing import Any, Callable, Optional

from ..bus import EventBus
from ..error_handling import HealthTracker
from ..gate import CommitGate, QueryTicket
from ..models import MemoItem, Source
from ..backends import MemoStore
from .base import SourceAdapter, contains


class MemoAdapter(SourceAdapter):
    source = Source.MEMOS

    def __init__(
        self,
        store: MemoStore,
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        max_results: int = 10,
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        super().__init__(gate, setter, health=health, bus=bus)
        self.store = store
        self.max_results = max_results

    async def search(self, ticket: QueryTicket) -> bool:
        # Notes are in memory, but a blank query still short-circuits
        if ticket.is_blank:
            return self.commit(ticket, [])

        needle = ticket.normalized.lower()
        matches = [memo for memo in self.store.memos if self.matches(memo, needle)]
        return self.commit(ticket, matches[:self.max_results])

    @staticmethod
    def matches(memo: MemoItem, needle: str) -> bool:
        return contains(memo.title, needle) or contains(memo.content, needle)
