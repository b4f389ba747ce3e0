"""Direct-path adapter: the raw query read as a filesystem path."""

from typing import Any, Callable, Optional

from loguru import logger

from ..backends import PathResolver, looks_like_absolute_path
from ..bus import EventBus
from ..error_handling import HealthTracker
from ..gate import CommitGate, QueryTicket
from ..models import DirectPathResult, Source
from .base import SourceAdapter


class DirectPathAdapter(SourceAdapter):
    """
    Commits the resolved record, or an absent marker.

    Not-found, resolver failure and text that does not look like an
    absolute path all present as absent. "Not resolved yet" is not
    distinguished from "confirmed absent".
    """

    source = Source.DIRECT_PATH

    def __init__(
        self,
        resolver: PathResolver,
        gate: CommitGate,
        setter: Callable[[QueryTicket, Any], None],
        path_filter: Callable[[str], bool] = looks_like_absolute_path,
        health: Optional[HealthTracker] = None,
        bus: Optional[EventBus] = None
    ):
        super().__init__(gate, setter, health=health, bus=bus)
        self.resolver = resolver
        self.path_filter = path_filter

    async def search(self, ticket: QueryTicket) -> bool:
        if ticket.is_blank or not self.path_filter(ticket.text):
            return self.commit(ticket, DirectPathResult.absent())

        try:
            record = await self.resolver.check_path_exists(ticket.text)
        except Exception as e:
            logger.error(f"Direct path lookup failed for {ticket.text!r}: {e}")
            self.health.record_failure(self.name, e, {'path': ticket.text})
            return self.commit(ticket, DirectPathResult.absent())

        self.health.record_success(self.name)
        if record is None:
            return self.commit(ticket, DirectPathResult.absent())
        return self.commit(ticket, DirectPathResult.found(record))
