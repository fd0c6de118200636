"""
Wire schemas for the remote retrieval service.

Two endpoints live beneath the configured base URL:
- POST /batch-upload                  {blobs: [...]}         -> {blob_names: [...]}
- POST /agents/codebase-retrieval     {information_request}  -> {formatted_retrieval}
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# ============================================================================
# Upload
# ============================================================================

class BlobPayload(BaseModel):
    """One content block as sent to the upload endpoint"""
    path: str
    content: str


class BatchUploadRequest(BaseModel):
    blobs: List[BlobPayload]


class BatchUploadResponse(BaseModel):
    """Upload result; blob names are opaque and unordered"""
    blob_names: List[str] = Field(default_factory=list)


# ============================================================================
# Retrieval
# ============================================================================

class BlobSet(BaseModel):
    """Blob delta relative to a checkpoint. Every search is a full, fresh query."""
    checkpoint_id: Optional[str] = None
    added_blobs: List[str] = Field(default_factory=list)
    deleted_blobs: List[str] = Field(default_factory=list)


class RetrievalRequest(BaseModel):
    information_request: str
    blobs: BlobSet
    dialog: List[dict] = Field(default_factory=list)
    max_output_length: int = 0
    disable_codebase_retrieval: bool = False
    enable_commit_retrieval: bool = False


class RetrievalResponse(BaseModel):
    formatted_retrieval: Optional[str] = None
