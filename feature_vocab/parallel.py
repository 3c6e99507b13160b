"""Data-parallel helpers: contiguous row chunks mapped over a thread pool.

Results are always returned in chunk order, whatever the worker count, so
reductions over them are deterministic.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

ChunkCallback = Callable[[int, int, T], None]


def chunk_bounds(n: int, chunk_size: int) -> List[Tuple[int, int]]:
    """Split ``range(n)`` into contiguous ``(start, stop)`` pairs."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [(start, min(start + chunk_size, n)) for start in range(0, n, chunk_size)]


def _collect(
    bounds: List[Tuple[int, int]],
    results: Iterable[T],
    on_done: Optional[ChunkCallback],
) -> List[T]:
    out: List[T] = []
    for (start, stop), result in zip(bounds, results):
        if on_done is not None:
            on_done(start, stop, result)
        out.append(result)
    return out


def map_chunks(
    fn: Callable[[int, int], T],
    n: int,
    chunk_size: int,
    workers: int = 1,
    on_done: Optional[ChunkCallback] = None,
) -> List[T]:
    """Apply ``fn(start, stop)`` to every chunk of ``range(n)``.

    With ``workers == 1`` (or a single chunk) the calls run inline.
    ``on_done(start, stop, result)`` is called in the calling thread, once
    per chunk and in chunk order, so it needs no locking of its own.
    Exceptions raised by ``fn`` propagate to the caller.
    """
    bounds = chunk_bounds(n, chunk_size)
    if workers <= 1 or len(bounds) <= 1:
        return _collect(bounds, (fn(start, stop) for start, stop in bounds), on_done)
    with ThreadPoolExecutor(max_workers=min(workers, len(bounds))) as pool:
        return _collect(bounds, pool.map(lambda b: fn(*b), bounds), on_done)
