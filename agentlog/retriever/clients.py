"""
Upload and retrieval clients for the remote retrieval service.

Both go through a RequestExecutor, so retries, timeouts and headers are
handled in one place.
"""

import logging
from typing import List, Sequence

import httpx
from pydantic import ValidationError as SchemaError

from ..common.documents import ContentBlock
from ..common.errors import ConfigurationError, ProtocolError, ValidationError
from ..common.schemas import (
    BatchUploadRequest,
    BatchUploadResponse,
    BlobPayload,
    BlobSet,
    RetrievalRequest,
    RetrievalResponse,
)
from .executor import RequestExecutor

logger = logging.getLogger("agentlog.retriever.clients")

UPLOAD_PATH = "/batch-upload"
RETRIEVAL_PATH = "/agents/codebase-retrieval"
NO_RESULTS_MESSAGE = "No relevant content found."


def normalize_base_url(base_url: str) -> str:
    """Force https, drop trailing slashes, and reject URLs httpx cannot parse."""
    normalized = str(base_url or "").strip()
    if not normalized:
        raise ConfigurationError("ACE_BASE_URL must not be empty")
    if normalized.startswith("http://"):
        normalized = "https://" + normalized[len("http://"):]
    elif not normalized.startswith("https://"):
        normalized = f"https://{normalized}"
    normalized = normalized.rstrip("/")
    try:
        httpx.URL(normalized)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"ACE_BASE_URL is not a valid URL: {e}") from e
    return normalized


def _read_json(response: httpx.Response) -> dict:
    """Response body as a dict; anything unparseable reads as empty."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class UploadClient:
    """Uploads batches of content blocks and collects the returned blob names."""

    def __init__(self, executor: RequestExecutor):
        self.executor = executor

    async def upload(self, base_url: str, batches: Sequence[Sequence[ContentBlock]]) -> List[str]:
        """
        Upload every batch, one request at a time.

        Returns:
            All blob names from all batches, pooled in response order.

        Raises:
            ProtocolError: A batch came back without any blob names.
        """
        if not batches:
            return []

        endpoint = f"{base_url}{UPLOAD_PATH}"
        blob_names: List[str] = []

        for index, batch in enumerate(batches, start=1):
            request = BatchUploadRequest(
                blobs=[BlobPayload(path=block.path, content=block.content) for block in batch]
            )
            logger.debug("Uploading batch %d/%d (%d blobs)", index, len(batches), len(batch))
            response = await self.executor.execute(endpoint, request.model_dump())

            try:
                result = BatchUploadResponse.model_validate(_read_json(response))
            except SchemaError as e:
                raise ProtocolError(f"Malformed upload response: {e}") from e
            if not result.blob_names:
                raise ProtocolError("Upload produced no blob identifiers; cannot continue the search")

            blob_names.extend(result.blob_names)

        return blob_names


class RetrievalClient:
    """Runs a single retrieval query over a pooled set of blob names."""

    def __init__(self, executor: RequestExecutor):
        self.executor = executor

    async def retrieve(self, base_url: str, query: str, blob_names: Sequence[str]) -> str:
        """
        Query the service against every uploaded blob.

        Each call is a fresh, full-corpus query: no checkpoint, nothing deleted.

        Returns:
            The service's formatted retrieval text, or NO_RESULTS_MESSAGE.
        """
        query = str(query or "").strip()
        if not query:
            raise ValidationError("query must not be empty")
        if not blob_names:
            raise ValueError("retrieve() requires at least one blob name")

        request = RetrievalRequest(
            information_request=query,
            blobs=BlobSet(checkpoint_id=None, added_blobs=list(blob_names), deleted_blobs=[]),
        )
        response = await self.executor.execute(f"{base_url}{RETRIEVAL_PATH}", request.model_dump())

        try:
            result = RetrievalResponse.model_validate(_read_json(response))
        except SchemaError:
            logger.warning("Retrieval response had an unexpected shape; treating as empty")
            return NO_RESULTS_MESSAGE

        formatted = (result.formatted_retrieval or "").strip()
        return formatted or NO_RESULTS_MESSAGE
