"""Plugin registry adapter: synchronous, no cache, no I/O."""

from typing import Any, Callable, List, Optional

from ..bus import EventBus
from ..error_handling import HealthTracker
from ..gate import CommitGate, QueryTicket
from ..models import PluginDescriptor, Source
from ..plugins import PluginRegistry
from .base import SourceAdapter


class PluginAdapter(SourceAdapter):
    source = Source.PLUGINS

    def __init__(
        self,
        registry: PluginRegistry,
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        super().__init__(gate, setter, health=health, bus=bus)
        self.registry = registry

    def search(self, ticket: QueryTicket) -> List[PluginDescriptor]:
        """Filter the registry and commit; returns the filtered list."""
        if ticket.is_blank:
            results: List[PluginDescriptor] = []
        else:
            results = self.registry.search(ticket.text)
        self.commit(ticket, results)
        return results
