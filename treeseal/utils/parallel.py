"""Order-preserving parallel map for per-file hashing."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def ordered_map(
    func: Callable[[T], R],
    items: Iterable[T],
    jobs: int = 1,
) -> Iterator[R]:
    """Apply func to items, yielding results in input order.

    With jobs > 1 the calls run on a thread pool. An exception raised by
    func is re-raised when its result is reached.

    Args:
        func: Function to apply.
        items: Inputs.
        jobs: Number of worker threads.

    Yields:
        func(item) for each item, in the order of items.
    """
    if jobs <= 1:
        for item in items:
            yield func(item)
        return

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        yield from executor.map(func, items)
