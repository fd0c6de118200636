"""
Batch Builder

Greedy first-fit packing of content blocks into upload batches.
"""

from typing import List, Sequence

from ..common.config import DEFAULT_MAX_BATCH_BYTES
from ..common.documents import ContentBlock

Batch = List[ContentBlock]


def block_size(block: ContentBlock) -> int:
    """Wire size of a block: UTF-8 bytes of its path plus its content."""
    return len(block.path.encode("utf-8")) + len(block.content.encode("utf-8"))


def build_batches(
    blocks: Sequence[ContentBlock],
    max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
) -> List[Batch]:
    """
    Pack blocks into batches in input order.

    A batch is closed as soon as the next block would push it over
    ``max_batch_bytes``. A block that is larger than the budget on its own
    still gets a batch of its own; it is never dropped or split here.
    """
    batches: List[Batch] = []
    current: Batch = []
    current_size = 0

    for block in blocks:
        size = block_size(block)
        if current and current_size + size > max_batch_bytes:
            batches.append(current)
            current = []
            current_size = 0
        current.append(block)
        current_size += size

    if current:
        batches.append(current)

    return batches
