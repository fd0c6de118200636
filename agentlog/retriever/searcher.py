"""
Log Searcher

Semantic search over the local work logs via the remote retrieval service.

Pipeline:
1. Collect every log from the store as a Document
2. Segment documents into line-bounded content blocks
3. Pack blocks into byte-bounded batches
4. Upload batches sequentially, pooling the returned blob names
5. Run one retrieval query against the pooled blob names
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.config import AceConfig
from ..common.errors import ValidationError
from ..store import LogStore
from .batch_builder import build_batches
from .clients import RetrievalClient, UploadClient, normalize_base_url
from .executor import RequestExecutor
from .segmenter import segment_all
from .session import SessionContext

logger = logging.getLogger("agentlog.retriever.searcher")

NOTHING_TO_SEARCH_MESSAGE = "The log directory is empty; there is nothing to search."


@dataclass
class SearchOutcome:
    """Result of one search-logs call"""
    query: str
    results: str
    log_dir: str

    def to_dict(self) -> dict:
        return {"query": self.query, "results": self.results, "log_dir": self.log_dir}


class LogSearcher:
    """
    Searches work logs through the remote retrieval service.

    Nothing is cached between searches: every call re-collects, re-uploads
    and queries the full corpus.
    """

    def __init__(
        self,
        store: LogStore,
        ace_config: AceConfig,
        session: SessionContext,
        executor: Optional[RequestExecutor] = None,
    ):
        """
        Args:
            store: Source of the documents to search.
            ace_config: Service location, credentials and limits.
            session: Process-wide session context shared by all requests.
            executor: Optional pre-built executor; built from ``ace_config``
                on first search otherwise.
        """
        self.store = store
        self.config = ace_config
        self.session = session
        self._executor = executor

    def _get_executor(self) -> RequestExecutor:
        if self._executor is None:
            self._executor = RequestExecutor(
                api_key=self.config.api_key,
                session=self.session,
                timeout_ms=self.config.request_timeout_ms,
                retry_limit=self.config.retry_limit,
                retry_base_ms=self.config.retry_base_ms,
                user_agent=self.config.user_agent,
            )
        return self._executor

    async def aclose(self) -> None:
        if self._executor is not None:
            await self._executor.aclose()

    async def search(self, query: str) -> SearchOutcome:
        """
        Run one semantic search.

        Raises:
            ValidationError: Blank query.
            ConfigurationError: Base URL or API key missing; raised before any I/O.
            RetrievalError: Any network, service or protocol failure.
        """
        query = str(query or "").strip()
        if not query:
            raise ValidationError("query must not be empty")

        self.config.require()
        base_url = normalize_base_url(self.config.base_url)

        documents = self.store.collect_documents()
        if not documents:
            return SearchOutcome(query=query, results=NOTHING_TO_SEARCH_MESSAGE, log_dir=self.store.log_dir_name)

        blocks = segment_all(documents, self.config.max_lines_per_blob)
        batches = build_batches(blocks, self.config.max_batch_bytes)
        logger.info(
            "Searching %d logs as %d blocks in %d batches",
            len(documents), len(blocks), len(batches),
        )

        executor = self._get_executor()
        blob_names = await UploadClient(executor).upload(base_url, batches)
        results = await RetrievalClient(executor).retrieve(base_url, query, blob_names)

        return SearchOutcome(query=query, results=results, log_dir=self.store.log_dir_name)
