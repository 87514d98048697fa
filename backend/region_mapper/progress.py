from typing import Iterable, Iterator, Tuple, TypeVar

T = TypeVar("T")


def with_progress(items: Iterable[T]) -> Iterator[Tuple[int, int, T]]:
    """Yield ``(index, total, item)`` with a 1-based index."""
    seq = list(items)
    total = len(seq)
    for index, item in enumerate(seq, start=1):
        yield index, total, item
