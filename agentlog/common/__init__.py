from .config import (
    AgentLogConfig,
    AceConfig,
    StoreConfig,
    ServerConfig,
    load_config,
    get_positive_int,
)
from .errors import (
    AgentLogError,
    ConfigurationError,
    ValidationError,
    RetrievalError,
    NetworkError,
    ServiceError,
    ClientError,
    ProtocolError,
    LogStoreError,
    LogNotFoundError,
)

__all__ = [
    "AgentLogConfig",
    "AceConfig",
    "StoreConfig",
    "ServerConfig",
    "load_config",
    "get_positive_int",
    "AgentLogError",
    "ConfigurationError",
    "ValidationError",
    "RetrievalError",
    "NetworkError",
    "ServiceError",
    "ClientError",
    "ProtocolError",
    "LogStoreError",
    "LogNotFoundError",
]
