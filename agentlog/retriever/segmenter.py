"""
Segmenter

Splits a document into content blocks of at most ``max_lines`` lines each.
Blocks of one document are contiguous, non-overlapping and in order, so
joining them with newlines reproduces the sanitized text exactly.
"""

import math
import re
from typing import Iterable, List

from ..common.config import DEFAULT_MAX_LINES_PER_BLOB
from ..common.documents import ContentBlock, Document

# Control characters the retrieval service rejects; \t \n \r are kept
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_content(text: str) -> str:
    return _CONTROL_CHARS.sub("", text or "")


def chunk_path(path: str, index: int, total: int) -> str:
    """Name of the ``index``-th (1-based) of ``total`` chunks."""
    return f"{path}#chunk{index}of{total}"


def segment(document: Document, max_lines: int = DEFAULT_MAX_LINES_PER_BLOB) -> List[ContentBlock]:
    """
    Split one document into content blocks.

    Args:
        document: The document to split.
        max_lines: Maximum number of lines per block (positive).

    Returns:
        A single block named after the document when it fits, otherwise
        ``ceil(lines / max_lines)`` blocks named ``{path}#chunk{i}of{n}``.
    """
    if max_lines <= 0:
        raise ValueError(f"max_lines must be positive, got {max_lines}")

    content = sanitize_content(document.text)
    lines = content.split("\n")
    if len(lines) <= max_lines:
        return [ContentBlock(path=document.path, content=content)]

    total = math.ceil(len(lines) / max_lines)
    blocks = []
    for i in range(total):
        start = i * max_lines
        chunk = "\n".join(lines[start:start + max_lines])
        blocks.append(ContentBlock(path=chunk_path(document.path, i + 1, total), content=chunk))
    return blocks


def segment_all(documents: Iterable[Document], max_lines: int = DEFAULT_MAX_LINES_PER_BLOB) -> List[ContentBlock]:
    """Segment every document, keeping input order."""
    blocks = []
    for document in documents:
        blocks.extend(segment(document, max_lines))
    return blocks
