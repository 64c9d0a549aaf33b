"""
Tests for key, pair and range primitives.
"""

import pytest

from vertector_rawkv import Bound, BoundKind, BoundRange, ColumnFamily, Key, KvPair


# ============================================================================
# Key Tests
# ============================================================================

@pytest.mark.unit
class TestKey:
    """Test Key construction and ordering."""

    def test_from_str_encodes_utf8(self):
        assert Key.of("TiKV").data == b"TiKV"
        assert Key.of("ключ").data == "ключ".encode("utf-8")

    def test_from_bytes_like(self):
        assert Key.of(b"a") == Key(b"a")
        assert Key.of(bytearray(b"a")) == Key(b"a")
        assert Key.of(memoryview(b"a")) == Key(b"a")

    def test_of_existing_key_is_identity(self):
        key = Key(b"k")
        assert Key.of(key) is key

    def test_invalid_type_raises(self):
        with pytest.raises(TypeError):
            Key.of(42)

    def test_byte_lexicographic_order(self):
        keys = [Key(b"b"), Key(b"a\xff"), Key(b"a"), Key(b""), Key(b"ab")]
        assert sorted(keys) == [Key(b""), Key(b"a"), Key(b"ab"), Key(b"a\xff"), Key(b"b")]

    def test_immutable(self):
        key = Key(b"a")
        with pytest.raises(AttributeError):
            key.data = b"b"

    def test_hashable(self):
        assert len({Key(b"a"), Key.of("a"), Key(b"b")}) == 2

    def test_next_key(self):
        assert Key(b"a").next_key() == Key(b"a\x00")
        assert Key(b"a") < Key(b"a").next_key() < Key(b"b")

    def test_bytes_and_len(self):
        key = Key(b"abc")
        assert bytes(key) == b"abc"
        assert len(key) == 3
        assert Key().is_empty()


# ============================================================================
# KvPair Tests
# ============================================================================

@pytest.mark.unit
class TestKvPair:
    """Test KvPair construction."""

    def test_from_tuple(self):
        pair = KvPair.of(("PD", "Go"))
        assert pair.key == Key(b"PD")
        assert pair.value == b"Go"

    def test_into_key_is_lossless(self):
        pair = KvPair(Key(b"k"), b"v")
        assert pair.into_key() == Key(b"k")

    def test_unpacking(self):
        key, value = KvPair(Key(b"k"), b"v")
        assert key == Key(b"k")
        assert value == b"v"

    def test_invalid_pair_raises(self):
        with pytest.raises(TypeError):
            KvPair.of("not a pair")
        with pytest.raises(TypeError):
            KvPair.of(("k", 1))
        with pytest.raises(TypeError):
            KvPair.of("ab")
        with pytest.raises(TypeError):
            KvPair.of(("k", "v", "extra"))

    def test_from_list(self):
        assert KvPair.of(["k", "v"]) == KvPair(Key(b"k"), b"v")


# ============================================================================
# BoundRange Tests
# ============================================================================

@pytest.mark.unit
class TestBoundRange:
    """Test range membership and normalization."""

    def test_half_open_range(self):
        r = BoundRange.range("a", "c")
        assert r.contains("a")
        assert r.contains("b")
        assert not r.contains("c")

    def test_inclusive_range(self):
        r = BoundRange.range_inclusive("a", "c")
        assert r.contains("a")
        assert r.contains("c")
        assert not r.contains("c\x00")

    def test_exclusive_start(self):
        r = BoundRange(Bound.excluded("a"), Bound.included("c"))
        assert not r.contains("a")
        assert r.contains("a\x00")
        assert r.contains("c")

    def test_unbounded_sides(self):
        assert BoundRange.full().contains("")
        assert BoundRange.full().contains(b"\xff" * 8)
        assert BoundRange.range_from("m").contains("z")
        assert not BoundRange.range_from("m").contains("l")
        assert BoundRange.range_to("m").contains("")
        assert not BoundRange.range_to("m").contains("m")
        assert BoundRange.range_to_inclusive("m").contains("m")

    def test_inverted_range_matches_nothing(self):
        r = BoundRange.range("z", "a")
        assert not any(r.contains(k) for k in ("a", "m", "z"))

    def test_tuple_coercion_is_half_open(self):
        r = BoundRange.of(("a", "c"))
        assert r.start == Bound.included("a")
        assert r.end == Bound.excluded("c")

    def test_tuple_none_means_unbounded(self):
        r = BoundRange.of(("a", None))
        assert r.end.kind is BoundKind.UNBOUNDED
        assert BoundRange.of((None, None)) == BoundRange.full()

    def test_of_rejects_other_types(self):
        with pytest.raises(TypeError):
            BoundRange.of("abc")

    def test_into_keys(self):
        assert BoundRange.range("a", "c").into_keys() == (Key(b"a"), Key(b"c"))
        assert BoundRange.range_inclusive("a", "c").into_keys() == (Key(b"a"), Key(b"c\x00"))
        assert BoundRange(Bound.excluded("a"), Bound.unbounded()).into_keys() == (Key(b"a\x00"), None)
        assert BoundRange.full().into_keys() == (Key(b""), None)


@pytest.mark.unit
def test_column_families():
    assert {cf.value for cf in ColumnFamily} == {"default", "lock", "write"}
    assert ColumnFamily("write") is ColumnFamily.WRITE
