"""Configuration management for quicklaunch."""

from pathlib import Path
from typing import List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .error_handling import ConfigError


DEFAULT_EXCLUDED_APP_PATTERNS = [
    "uninstall",
    "卸载",
    "readme",
    "release notes",
    "help and support",
    "documentation",
    "windows kits",
    "debuggable package manager",
    "com.apple.",
    "org.freedesktop.",
]


class SearchEngineConfig(BaseModel):
    """A web search reached by typing `prefix` before the keyword."""
    prefix: str
    url: str
    name: str

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        if "{query}" not in v:
            raise ValueError("url must contain a {query} placeholder")
        return v


def _default_search_engines() -> List[SearchEngineConfig]:
    return [
        SearchEngineConfig(prefix="g ", url="https://www.google.com/search?q={query}", name="Google"),
        SearchEngineConfig(prefix="bd ", url="https://www.baidu.com/s?wd={query}", name="百度"),
        SearchEngineConfig(prefix="b ", url="https://www.bing.com/search?q={query}", name="必应"),
        SearchEngineConfig(prefix="gh ", url="https://github.com/search?q={query}", name="GitHub"),
        SearchEngineConfig(prefix="so ", url="https://stackoverflow.com/search?q={query}", name="Stack Overflow"),
    ]


class SearchConfig(BaseModel):
    max_results: int = 10
    yield_before_search: bool = True
    engines: List[SearchEngineConfig] = Field(default_factory=_default_search_engines)

    @field_validator('max_results')
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_results must be at least 1")
        return v


class ApplicationsConfig(BaseModel):
    excluded_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_APP_PATTERNS)
    )
    scan_dirs: Optional[List[Path]] = None
    max_depth: int = 3
    max_apps: int = 2000


class HistoryConfig(BaseModel):
    max_items: int = 500


class LoggingConfig(BaseModel):
    level: str = "INFO"
    # Relative paths live under Config.data_dir
    log_file: Optional[Path] = None
    rotation: str = "1 day"
    retention: str = "7 days"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v


def _default_data_dir() -> Path:
    return Path.home() / ".local" / "share" / "quicklaunch"


class Config(BaseModel):
    """Main configuration for the launcher search core."""

    data_dir: Path = Field(default_factory=_default_data_dir)
    search: SearchConfig = Field(default_factory=SearchConfig)
    applications: ApplicationsConfig = Field(default_factory=ApplicationsConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('data_dir')
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()

    @property
    def log_path(self) -> Optional[Path]:
        """Resolved log file location, or None when file logging is off."""
        log_file = self.logging.log_file
        if log_file is None:
            return None
        log_file = log_file.expanduser()
        if not log_file.is_absolute():
            log_file = self.data_dir / log_file
        return log_file

    @classmethod
    def default(cls) -> "Config":
        return cls()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file."""
        if config_path is None:
            candidates = [
                Path("quicklaunch.yaml"),
                Path.home() / ".config" / "quicklaunch" / "config.yaml",
                Path("/etc/quicklaunch/config.yaml"),
            ]
            for candidate in candidates:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                raise FileNotFoundError(
                    f"No config file found. Searched: {[str(c) for c in candidates]}"
                )

        logger.info(f"Loading config from: {config_path}")
        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(
                f"Invalid configuration in {config_path}: expected a mapping, got {type(data).__name__}"
            )

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(
                self.model_dump(mode='json'),
                f,
                default_flow_style=False,
                allow_unicode=True
            )
