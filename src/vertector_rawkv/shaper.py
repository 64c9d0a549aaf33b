"""Reshape raw delegate results into what the client returns."""

from itertools import chain, islice
from typing import Iterable, TypeVar

from vertector_rawkv.types import Key, KvPair

T = TypeVar("T")


def truncate(pairs: Iterable[KvPair], limit: int) -> list[KvPair]:
    """Keep the first ``limit`` pairs. A no-op when there are fewer."""
    return list(islice(pairs, limit))


def project_keys(pairs: Iterable[KvPair]) -> list[Key]:
    return [pair.into_key() for pair in pairs]


def flatten(per_range: Iterable[Iterable[KvPair]]) -> list[KvPair]:
    """Concatenate per-range batch scan results, keeping range order."""
    return list(chain.from_iterable(per_range))


def shape_scan(pairs: Iterable[KvPair], limit: int, key_only: bool = False) -> list[KvPair] | list[Key]:
    """
    Shape a scan result.

    The delegate may return more than ``limit`` pairs because the limit is
    applied per region, so truncation always runs before key projection.
    """
    pairs = truncate(pairs, limit)
    if key_only:
        return project_keys(pairs)
    return pairs


def shape_batch_scan(per_range: Iterable[Iterable[KvPair]], key_only: bool = False) -> list[KvPair] | list[Key]:
    """
    Shape a batch scan result.

    No truncation: ``each_limit`` is enforced per region by the execution
    layer and a range may legitimately return more than ``each_limit`` pairs.
    """
    pairs = flatten(per_range)
    if key_only:
        return project_keys(pairs)
    return pairs


def pass_through(result: Iterable[T] | None) -> list[T]:
    """Return a batch result as a list, in whatever order the delegate used."""
    if result is None:
        return []
    return list(result)
