"""
Error taxonomy for agentlog.

Retryable errors (NetworkError, ServiceError) are retried by the request
executor; everything else propagates to the caller on first occurrence.
"""

from typing import Optional


class AgentLogError(Exception):
    """Base class for all agentlog errors."""
    pass


class ConfigurationError(AgentLogError):
    """Required configuration (base URL, API key) is missing or invalid."""
    pass


class ValidationError(AgentLogError):
    """Caller-supplied input was rejected before any I/O."""
    pass


class RetrievalError(AgentLogError):
    """Failure while talking to the remote retrieval service."""

    retryable: bool = False


class NetworkError(RetrievalError):
    """Connection failure or per-attempt timeout."""

    retryable = True


class ServiceError(RetrievalError):
    """HTTP 429 or 5xx from the retrieval service."""

    retryable = True

    def __init__(self, message: str, status_code: int, retry_after: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class ClientError(RetrievalError):
    """Any other non-2xx status. Never retried."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(RetrievalError):
    """A 2xx response whose body is missing data the client requires."""
    pass


class LogStoreError(AgentLogError):
    """Local log directory could not be used."""
    pass


class LogNotFoundError(LogStoreError):
    """The requested log file does not exist."""
    pass
