"""
agentlog Schemas

Log store results and retrieval-service wire models.
"""

from .log_entry import (
    RecordedLog,
    LogSummary,
    LogListing,
    LogEntry,
)
from .wire import (
    BlobPayload,
    BatchUploadRequest,
    BatchUploadResponse,
    BlobSet,
    RetrievalRequest,
    RetrievalResponse,
)

__all__ = [
    "RecordedLog",
    "LogSummary",
    "LogListing",
    "LogEntry",
    "BlobPayload",
    "BatchUploadRequest",
    "BatchUploadResponse",
    "BlobSet",
    "RetrievalRequest",
    "RetrievalResponse",
]
