"""Helpers for operations that need more than one upstream round trip.

Calls are issued strictly one after another. The first failing call aborts
the whole operation, so callers never see a partially assembled result.
"""

from collections.abc import Awaitable, Callable, Iterator, Sequence
from typing import TypeVar

from catalog_bridge.constants import BATCH_PAGE_SIZE
from catalog_bridge.params import Query

T = TypeVar("T")
P = TypeVar("P")
C = TypeVar("C")


def chunked(values: Sequence[T], size: int = BATCH_PAGE_SIZE) -> Iterator[list[T]]:
    if size < 1:
        raise ValueError("size must be >= 1")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


def quote_identifier(identifier: str) -> str:
    return '"' + identifier.replace('"', '\\"') + '"'


def batch_query(ids: Sequence[str]) -> Query:
    return Query("id:(" + " OR ".join(quote_identifier(i) for i in ids) + ")")


async def flatten_children(
    parents: Sequence[P],
    fetch_children: Callable[[P], Awaitable[list[C]]],
) -> list[C]:
    """Fetch children for each parent in order and concatenate them."""
    children: list[C] = []
    for parent in parents:
        children.extend(await fetch_children(parent))
    return children
