"""
Raw request descriptors and their builders.

Each raw operation is described by one frozen dataclass. Builders turn
caller arguments into a descriptor scoped to a column family and perform the
validation that must fail before anything is dispatched. They do no I/O.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Union

from vertector_rawkv.errors import MaxScanLimitExceeded, RawKVValidationError
from vertector_rawkv.types import (
    BoundRange,
    ColumnFamily,
    Key,
    KeyLike,
    KvPair,
    KvPairLike,
    RangeLike,
    Value,
    to_value,
)

MAX_RAW_KV_SCAN_LIMIT = 10240


class WriteIntent(str, Enum):
    """Marks a write as a plain put or an update; both upsert unconditionally."""
    PUT = "put"
    UPDATE = "update"


@dataclass(frozen=True)
class RawGetRequest:
    operation: ClassVar[str] = "raw_get"
    key: Key
    cf: ColumnFamily | None = None


@dataclass(frozen=True)
class RawBatchGetRequest:
    operation: ClassVar[str] = "raw_batch_get"
    keys: tuple[Key, ...]
    cf: ColumnFamily | None = None


@dataclass(frozen=True)
class RawPutRequest:
    key: Key
    value: Value
    cf: ColumnFamily | None = None
    intent: WriteIntent = WriteIntent.PUT

    @property
    def operation(self) -> str:
        return "raw_update" if self.intent is WriteIntent.UPDATE else "raw_put"


@dataclass(frozen=True)
class RawBatchPutRequest:
    pairs: tuple[KvPair, ...]
    cf: ColumnFamily | None = None
    intent: WriteIntent = WriteIntent.PUT

    @property
    def operation(self) -> str:
        return "raw_batch_update" if self.intent is WriteIntent.UPDATE else "raw_batch_put"


@dataclass(frozen=True)
class RawDeleteRequest:
    operation: ClassVar[str] = "raw_delete"
    key: Key
    cf: ColumnFamily | None = None


@dataclass(frozen=True)
class RawBatchDeleteRequest:
    operation: ClassVar[str] = "raw_batch_delete"
    keys: tuple[Key, ...]
    cf: ColumnFamily | None = None


@dataclass(frozen=True)
class RawDeleteRangeRequest:
    operation: ClassVar[str] = "raw_delete_range"
    range: BoundRange
    cf: ColumnFamily | None = None


@dataclass(frozen=True)
class RawScanRequest:
    operation: ClassVar[str] = "raw_scan"
    range: BoundRange
    limit: int
    key_only: bool = False
    cf: ColumnFamily | None = None


@dataclass(frozen=True)
class RawBatchScanRequest:
    """
    Bounded scan over several ranges.

    ``each_limit`` is applied by the execution layer per region touched by a
    range, not per range, so one range may yield more than ``each_limit``
    pairs.
    """
    operation: ClassVar[str] = "raw_batch_scan"
    ranges: tuple[BoundRange, ...]
    each_limit: int
    key_only: bool = False
    cf: ColumnFamily | None = None


RawRequest = Union[
    RawGetRequest,
    RawBatchGetRequest,
    RawPutRequest,
    RawBatchPutRequest,
    RawDeleteRequest,
    RawBatchDeleteRequest,
    RawDeleteRangeRequest,
    RawScanRequest,
    RawBatchScanRequest,
]


def check_scan_limit(limit: int) -> None:
    """
    Reject scan limits outside ``0..MAX_RAW_KV_SCAN_LIMIT``.

    Raises:
        MaxScanLimitExceeded: If limit is above the cap
        RawKVValidationError: If limit is negative or not an integer
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise RawKVValidationError("limit must be an integer", field="limit", value=limit)
    if limit < 0:
        raise RawKVValidationError("limit must not be negative", field="limit", value=limit)
    if limit > MAX_RAW_KV_SCAN_LIMIT:
        raise MaxScanLimitExceeded(limit, MAX_RAW_KV_SCAN_LIMIT)


def new_raw_get_request(key: KeyLike, cf: ColumnFamily | None = None) -> RawGetRequest:
    return RawGetRequest(Key.of(key), cf)


def new_raw_batch_get_request(keys: Iterable[KeyLike], cf: ColumnFamily | None = None) -> RawBatchGetRequest:
    return RawBatchGetRequest(tuple(Key.of(k) for k in keys), cf)


def new_raw_put_request(key: KeyLike, value: Value | str, cf: ColumnFamily | None = None) -> RawPutRequest:
    return RawPutRequest(Key.of(key), to_value(value), cf)


def new_raw_batch_put_request(pairs: Iterable[KvPairLike], cf: ColumnFamily | None = None) -> RawBatchPutRequest:
    return RawBatchPutRequest(tuple(KvPair.of(p) for p in pairs), cf)


def new_raw_update_request(key: KeyLike, value: Value | str, cf: ColumnFamily | None = None) -> RawPutRequest:
    return RawPutRequest(Key.of(key), to_value(value), cf, WriteIntent.UPDATE)


def new_raw_batch_update_request(pairs: Iterable[KvPairLike], cf: ColumnFamily | None = None) -> RawBatchPutRequest:
    return RawBatchPutRequest(tuple(KvPair.of(p) for p in pairs), cf, WriteIntent.UPDATE)


def new_raw_delete_request(key: KeyLike, cf: ColumnFamily | None = None) -> RawDeleteRequest:
    return RawDeleteRequest(Key.of(key), cf)


def new_raw_batch_delete_request(keys: Iterable[KeyLike], cf: ColumnFamily | None = None) -> RawBatchDeleteRequest:
    return RawBatchDeleteRequest(tuple(Key.of(k) for k in keys), cf)


def new_raw_delete_range_request(range: RangeLike, cf: ColumnFamily | None = None) -> RawDeleteRangeRequest:
    return RawDeleteRangeRequest(BoundRange.of(range), cf)


def new_raw_scan_request(
    range: RangeLike,
    limit: int,
    key_only: bool = False,
    cf: ColumnFamily | None = None,
) -> RawScanRequest:
    check_scan_limit(limit)
    return RawScanRequest(BoundRange.of(range), limit, key_only, cf)


def new_raw_batch_scan_request(
    ranges: Iterable[RangeLike],
    each_limit: int,
    key_only: bool = False,
    cf: ColumnFamily | None = None,
) -> RawBatchScanRequest:
    check_scan_limit(each_limit)
    return RawBatchScanRequest(tuple(BoundRange.of(r) for r in ranges), each_limit, key_only, cf)
