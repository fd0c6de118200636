"""
Retriever - Semantic search over work logs

Turns a growing set of local Markdown logs into a query against a remote
semantic-retrieval service, within its size limits and across transient
failures.

Key Components:
- segmenter: Splits documents into line-bounded content blocks
- batch_builder: Packs blocks into byte-bounded upload batches
- SessionContext: Process-wide session id, fresh request id per attempt
- RequestExecutor: Timeout, classification and retry/backoff for every call
- UploadClient / RetrievalClient: The two service endpoints
- LogSearcher: End-to-end search pipeline
"""

from .batch_builder import build_batches, block_size
from .clients import (
    NO_RESULTS_MESSAGE,
    RetrievalClient,
    UploadClient,
    normalize_base_url,
)
from .executor import AttemptOutcome, OutcomeKind, RequestExecutor, parse_retry_after
from .searcher import NOTHING_TO_SEARCH_MESSAGE, LogSearcher, SearchOutcome
from .segmenter import sanitize_content, segment, segment_all
from .session import SessionContext

__all__ = [
    "build_batches",
    "block_size",
    "NO_RESULTS_MESSAGE",
    "RetrievalClient",
    "UploadClient",
    "normalize_base_url",
    "AttemptOutcome",
    "OutcomeKind",
    "RequestExecutor",
    "parse_retry_after",
    "NOTHING_TO_SEARCH_MESSAGE",
    "LogSearcher",
    "SearchOutcome",
    "sanitize_content",
    "segment",
    "segment_all",
    "SessionContext",
]
