"""
Key, value and range primitives shared by every raw request.

Keys are ordered byte strings, values are plain bytes, and ranges are pairs
of bounds over the key space.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Values carry no ordering semantics, plain bytes are enough.
Value = bytes


class ColumnFamily(str, Enum):
    """Keyspace partitions a raw client can be scoped to."""
    DEFAULT = "default"
    LOCK = "lock"
    WRITE = "write"


def _to_bytes(data: Any, what: str) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    raise TypeError(f"Cannot convert {type(data).__name__} to {what}")


@dataclass(frozen=True, order=True)
class Key:
    """
    Immutable byte-string key.

    Keys compare byte-lexicographically, which is the order the store
    returns them in.
    """
    data: bytes = b""

    @classmethod
    def of(cls, key: "KeyLike") -> "Key":
        """Coerce bytes, str or an existing Key into a Key."""
        if isinstance(key, Key):
            return key
        return cls(_to_bytes(key, "Key"))

    def next_key(self) -> "Key":
        """Smallest key strictly greater than this one."""
        return Key(self.data + b"\x00")

    def is_empty(self) -> bool:
        return not self.data

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"Key({self.data!r})"


KeyLike = Union[Key, bytes, bytearray, memoryview, str]


def to_value(value: Any) -> Value:
    """Coerce bytes-like or str input into a Value."""
    return _to_bytes(value, "Value")


@dataclass(frozen=True)
class KvPair:
    """An owned key-value pair."""
    key: Key
    value: Value = b""

    @classmethod
    def of(cls, pair: "KvPairLike") -> "KvPair":
        """Coerce a KvPair or a ``(key, value)`` tuple into a KvPair."""
        if isinstance(pair, KvPair):
            return pair
        if not isinstance(pair, (tuple, list)) or len(pair) != 2:
            raise TypeError(
                f"Expected KvPair or (key, value) tuple, got {type(pair).__name__}"
            )
        key, value = pair
        return cls(Key.of(key), to_value(value))

    def into_key(self) -> Key:
        return self.key

    def __iter__(self):
        yield self.key
        yield self.value


KvPairLike = Union[KvPair, tuple[Any, Any]]


class BoundKind(str, Enum):
    INCLUDED = "included"
    EXCLUDED = "excluded"
    UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class Bound:
    """One end of a BoundRange."""
    kind: BoundKind
    key: Key | None = None

    @classmethod
    def included(cls, key: KeyLike) -> "Bound":
        return cls(BoundKind.INCLUDED, Key.of(key))

    @classmethod
    def excluded(cls, key: KeyLike) -> "Bound":
        return cls(BoundKind.EXCLUDED, Key.of(key))

    @classmethod
    def unbounded(cls) -> "Bound":
        return cls(BoundKind.UNBOUNDED)

    @property
    def is_unbounded(self) -> bool:
        return self.kind is BoundKind.UNBOUNDED


@dataclass(frozen=True)
class BoundRange:
    """
    Interval over the key space, each end inclusive, exclusive or unbounded.

    Start <= end is not checked: an empty or inverted range is valid and
    simply matches no keys.

    Example:
        >>> BoundRange.range("a", "c").contains("b")
        True
        >>> BoundRange.range_inclusive("a", "c").contains("c")
        True
    """
    start: Bound = field(default_factory=Bound.unbounded)
    end: Bound = field(default_factory=Bound.unbounded)

    @classmethod
    def range(cls, start: KeyLike, end: KeyLike) -> "BoundRange":
        """Half-open ``[start, end)``."""
        return cls(Bound.included(start), Bound.excluded(end))

    @classmethod
    def range_inclusive(cls, start: KeyLike, end: KeyLike) -> "BoundRange":
        """Closed ``[start, end]``."""
        return cls(Bound.included(start), Bound.included(end))

    @classmethod
    def range_from(cls, start: KeyLike) -> "BoundRange":
        return cls(Bound.included(start), Bound.unbounded())

    @classmethod
    def range_to(cls, end: KeyLike) -> "BoundRange":
        return cls(Bound.unbounded(), Bound.excluded(end))

    @classmethod
    def range_to_inclusive(cls, end: KeyLike) -> "BoundRange":
        return cls(Bound.unbounded(), Bound.included(end))

    @classmethod
    def full(cls) -> "BoundRange":
        return cls(Bound.unbounded(), Bound.unbounded())

    @classmethod
    def of(cls, value: "RangeLike") -> "BoundRange":
        """
        Coerce a BoundRange or a ``(start, end)`` tuple into a BoundRange.

        Tuples are half-open; ``None`` on either side means unbounded.
        """
        if isinstance(value, BoundRange):
            return value
        if isinstance(value, tuple) and len(value) == 2:
            start, end = value
            return cls(
                Bound.unbounded() if start is None else Bound.included(start),
                Bound.unbounded() if end is None else Bound.excluded(end),
            )
        raise TypeError(
            f"Expected BoundRange or (start, end) tuple, got {type(value).__name__}"
        )

    def contains(self, key: KeyLike) -> bool:
        key = Key.of(key)

        if self.start.kind is BoundKind.INCLUDED and key < self.start.key:
            return False
        if self.start.kind is BoundKind.EXCLUDED and key <= self.start.key:
            return False
        if self.end.kind is BoundKind.INCLUDED and key > self.end.key:
            return False
        if self.end.kind is BoundKind.EXCLUDED and key >= self.end.key:
            return False
        return True

    def into_keys(self) -> tuple[Key, Key | None]:
        """
        Normalize into a half-open ``[start, end)`` key pair.

        An unbounded start becomes the empty key and an unbounded end becomes
        ``None``.
        """
        if self.start.kind is BoundKind.UNBOUNDED:
            start = Key()
        elif self.start.kind is BoundKind.EXCLUDED:
            start = self.start.key.next_key()
        else:
            start = self.start.key

        if self.end.kind is BoundKind.UNBOUNDED:
            end = None
        elif self.end.kind is BoundKind.INCLUDED:
            end = self.end.key.next_key()
        else:
            end = self.end.key

        return start, end


RangeLike = Union[BoundRange, tuple[Any, Any]]
