"""Split an ordered tour into overlapping windows sized for the directions provider."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Point
from .models import Chunk

# Origin, destination and up to 7 intermediate stops per request.
DEFAULT_MAX_CHUNK_SIZE = 9


def build_chunks(tour: Sequence[Point], max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> list[Chunk]:
    """Cut the tour into windows of ``max_chunk_size`` points sharing one boundary point.

    The window that reaches the end of the tour takes every remaining point and
    is the last one, so the final chunk may be shorter.
    """
    if max_chunk_size < 2:
        raise ValueError(f"max_chunk_size must be at least 2, got {max_chunk_size}")
    if len(tour) < 2:
        return []

    step = max_chunk_size - 1
    chunks: list[Chunk] = []
    for start in range(0, len(tour), step):
        if start + max_chunk_size >= len(tour):
            chunks.append(Chunk(index=len(chunks), points=tuple(tour[start:])))
            break
        chunks.append(Chunk(index=len(chunks), points=tuple(tour[start : start + max_chunk_size])))
    return chunks


def closing_chunk(tour: Sequence[Point], index: int) -> Chunk | None:
    """Chunk from the last tour point back to the anchor, or None when they coincide."""
    if not tour or tour[-1] == tour[0]:
        return None
    return Chunk(index=index, points=(tour[-1], tour[0]))


def reassemble(chunks: Sequence[Chunk]) -> tuple[Point, ...]:
    """Join chunks back into a tour, dropping each shared boundary point once."""
    points: list[Point] = []
    for position, chunk in enumerate(chunks):
        points.extend(chunk.points if position == 0 else chunk.points[1:])
    return tuple(points)
