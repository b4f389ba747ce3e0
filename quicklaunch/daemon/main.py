"""Launcher search service wiring and logging setup."""

import sys
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger

from .backends import (
    Backends,
    InMemoryHistoryStore,
    InMemoryMemoStore,
    LocalApplicationStore,
    LocalFolderStore,
    LocalPathResolver,
    MimeIconResolver,
)
from .bus import EventBus
from .config import Config
from .controller import QueryController
from .plugins import PluginRegistry


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(config: Config, level: Optional[str] = None) -> None:
    """Replace loguru's default sink with the launcher's sinks."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level or config.logging.level)

    log_file = config.log_path
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation=config.logging.rotation,
            retention=config.logging.retention,
            level="DEBUG"
        )


def build_local_backends(config: Config) -> Backends:
    """Collaborators backed by this machine's filesystem."""
    apps = config.applications
    return Backends(
        memos=InMemoryMemoStore(),
        folders=LocalFolderStore(),
        applications=LocalApplicationStore(
            scan_dirs=apps.scan_dirs,
            max_depth=apps.max_depth,
            max_apps=apps.max_apps
        ),
        history=InMemoryHistoryStore(max_items=config.history.max_items),
        paths=LocalPathResolver(),
        icons=MimeIconResolver(),
    )


class LauncherService:
    """Owns the event bus and the query controller."""

    def __init__(
        self,
        config: Config,
        backends: Optional[Backends] = None,
        registry: Optional[PluginRegistry] = None
    ):
        self.config = config
        self.start_time = datetime.now()
        self.event_bus = EventBus()
        self.backends = backends or build_local_backends(config)
        self.controller = QueryController(
            self.backends,
            config=config,
            registry=registry,
            event_bus=self.event_bus
        )

    async def start(self) -> None:
        logger.info("Starting launcher search service...")
        await self.event_bus.start()
        logger.info("Launcher search service started")

    async def stop(self) -> None:
        logger.info("Stopping launcher search service...")
        await self.controller.close()
        await self.event_bus.drain()
        await self.event_bus.stop()
        logger.info("Launcher search service stopped")

    async def __aenter__(self) -> "LauncherService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def status(self) -> Dict[str, Any]:
        """Service status and statistics."""
        uptime = (datetime.now() - self.start_time).total_seconds()
        return {
            "status": "running" if self.event_bus.running else "stopped",
            "uptime": f"{uptime:.0f}s",
            "search": self.controller.statistics(),
            "events": self.event_bus.get_stats(),
        }
