"""
Configuration Management for agentlog

Loads configuration from ~/.agentlog/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ConfigurationError

logger = logging.getLogger("agentlog.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".agentlog"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_LOG_DIR = "AgentLogs"
DEFAULT_REQUEST_TIMEOUT_MS = 30000
DEFAULT_MAX_LINES_PER_BLOB = 800
DEFAULT_MAX_BATCH_BYTES = 1024 * 1024
DEFAULT_RETRY_LIMIT = 3
DEFAULT_RETRY_BASE_MS = 1000
ACE_USER_AGENT = "augment.cli/0.12.0/mcp"


def get_positive_int(value: Any, fallback: int) -> int:
    """Parse a positive integer, returning ``fallback`` for anything else."""
    try:
        parsed = int(str(value if value is not None else "").strip())
    except ValueError:
        return fallback
    if parsed <= 0:
        return fallback
    return parsed


def normalize_log_dir_name(name: Optional[str]) -> str:
    """Trim the log directory name and drop any leading ``./``."""
    trimmed = str(name or "").strip()
    if not trimmed:
        return DEFAULT_LOG_DIR
    while trimmed.startswith("./"):
        trimmed = trimmed[2:].lstrip("/")
    return trimmed or DEFAULT_LOG_DIR


@dataclass
class AceConfig:
    """Remote retrieval service configuration"""
    base_url: str = ""
    api_key: str = ""
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    max_lines_per_blob: int = DEFAULT_MAX_LINES_PER_BLOB
    max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES
    retry_limit: int = DEFAULT_RETRY_LIMIT
    retry_base_ms: int = DEFAULT_RETRY_BASE_MS
    user_agent: str = ACE_USER_AGENT

    @property
    def is_configured(self) -> bool:
        return bool((self.base_url or "").strip() and (self.api_key or "").strip())

    def require(self) -> "AceConfig":
        """Fail fast when the service cannot be reached at all."""
        if not self.is_configured:
            raise ConfigurationError(
                "search-logs requires ACE_BASE_URL and ACE_API_KEY to be configured"
            )
        return self


@dataclass
class StoreConfig:
    """Local log store configuration"""
    root_dir: str = field(default_factory=os.getcwd)
    log_dir: str = DEFAULT_LOG_DIR


@dataclass
class ServerConfig:
    """MCP server configuration"""
    name: str = "agent-log-server"
    log_level: str = "INFO"


@dataclass
class AgentLogConfig:
    """Main agentlog configuration"""
    ace: AceConfig = field(default_factory=AceConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _parse_ace_config(data: dict) -> AceConfig:
    """Parse ace section from config dict"""
    ace_data = data.get("ace", {})
    return AceConfig(
        base_url=ace_data.get("base_url") or "",
        api_key=ace_data.get("api_key") or "",
        request_timeout_ms=get_positive_int(
            ace_data.get("request_timeout_ms"), DEFAULT_REQUEST_TIMEOUT_MS
        ),
        max_lines_per_blob=get_positive_int(
            ace_data.get("max_lines_per_blob"), DEFAULT_MAX_LINES_PER_BLOB
        ),
    )


def _parse_store_config(data: dict) -> StoreConfig:
    """Parse store section from config dict"""
    store_data = data.get("store", {})
    return StoreConfig(
        root_dir=store_data.get("root_dir") or os.getcwd(),
        log_dir=normalize_log_dir_name(store_data.get("log_dir")),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    return ServerConfig(
        name=server_data.get("name", "agent-log-server"),
        log_level=server_data.get("log_level", "INFO"),
    )


def _resolve_config_path() -> Path:
    override = os.getenv("AGENT_LOG_CONFIG")
    if override:
        return Path(os.path.expanduser(override))
    return CONFIG_PATH


def load_config() -> AgentLogConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.agentlog/config.json, or $AGENT_LOG_CONFIG)
    3. Default values
    """
    config = AgentLogConfig()

    config_path = _resolve_config_path()
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)

            config.ace = _parse_ace_config(data)
            config.store = _parse_store_config(data)
            config.server = _parse_server_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", config_path, e)

    # Environment variable overrides
    if os.getenv("ACE_BASE_URL"):
        config.ace.base_url = os.getenv("ACE_BASE_URL")
    if os.getenv("ACE_API_KEY"):
        config.ace.api_key = os.getenv("ACE_API_KEY")
    if os.getenv("ACE_REQUEST_TIMEOUT_MS"):
        config.ace.request_timeout_ms = get_positive_int(
            os.getenv("ACE_REQUEST_TIMEOUT_MS"), DEFAULT_REQUEST_TIMEOUT_MS
        )
    if os.getenv("ACE_MAX_LINES_PER_BLOB"):
        config.ace.max_lines_per_blob = get_positive_int(
            os.getenv("ACE_MAX_LINES_PER_BLOB"), DEFAULT_MAX_LINES_PER_BLOB
        )

    if os.getenv("AGENT_LOG_DIR"):
        config.store.log_dir = normalize_log_dir_name(os.getenv("AGENT_LOG_DIR"))
    if os.getenv("AGENT_LOG_ROOT"):
        config.store.root_dir = os.getenv("AGENT_LOG_ROOT")

    if os.getenv("MCP_SERVER_NAME"):
        config.server.name = os.getenv("MCP_SERVER_NAME")
    if os.getenv("AGENT_LOG_LEVEL"):
        config.server.log_level = os.getenv("AGENT_LOG_LEVEL")

    return config
