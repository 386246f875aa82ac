"""Unit tests for the set-associative LFU cache core.

They cover:

- geometry derivation and configuration errors
- hit/miss behaviour of lookup (cold start, hit stability, offsets)
- LFU eviction, including the lowest-way tie break
- structural invariants after a long pseudo-random access stream
"""

from copy import deepcopy

import pytest
from src.core.cache import (
    CACHE_SIZE,
    CacheLine,
    CacheResult,
    ConfigurationError,
    SetAssociativeCache,
)
from src.core.generators import MultiplyWithCarry, make_generator


def test_default_geometry():
    c = SetAssociativeCache(line_size=128, num_ways=4)
    assert c.capacity == CACHE_SIZE == 64 * 1024
    assert c.total_lines == 512
    assert c.num_sets == 128
    assert c.byte_offset_bits == 7
    assert c.set_index_bits == 7
    assert c.num_sets * c.num_ways == c.total_lines
    # all lines start invalid with zeroed fields
    for s in c.sets:
        assert len(s) == 4
        for line in s:
            assert line == CacheLine(tag=0, valid=False, counter=0)


@pytest.mark.parametrize('line_size,ways', [
    (100, 4),     # line size not a power of two
    (0, 4),       # zero line size
    (-64, 4),
    (128, 0),     # no ways
    (128, -2),
    (128, 3),     # 512 lines do not split into 3-way sets
    (128, 1024),  # more ways than lines
    (128, 24),    # 24 does not divide 512
])
def test_invalid_geometry_raises(line_size, ways):
    with pytest.raises(ConfigurationError):
        SetAssociativeCache(line_size, ways)


def test_invalid_capacity_raises():
    with pytest.raises(ConfigurationError):
        SetAssociativeCache(64, 2, capacity=3000)
    with pytest.raises(ConfigurationError):
        SetAssociativeCache(256, 1, capacity=128)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        SetAssociativeCache(12, 1)


def test_direct_mapped_and_fully_associative_geometries():
    dm = SetAssociativeCache(64, 1)
    assert dm.num_sets == 1024
    fa = SetAssociativeCache(64, 1024)
    assert fa.num_sets == 1
    assert fa.set_index_bits == 0
    # with a single set every block lands in set 0
    assert fa.access(0x12345).set_index == 0


def test_cold_start_then_hit():
    c = SetAssociativeCache(128, 4)
    assert c.lookup(0x1000) is CacheResult.MISS
    assert c.lookup(0x1000) is CacheResult.HIT
    # same block, different offset
    assert c.lookup(0x107F) is CacheResult.HIT
    # next block
    assert c.lookup(0x1080) is CacheResult.MISS


def test_counter_updates_on_hit_and_install():
    c = SetAssociativeCache(128, 4)
    info = c.access(0)
    line = c.sets[info.set_index][info.way_index]
    assert line.valid is True
    assert line.counter == 1
    c.lookup(0)
    c.lookup(5)
    assert line.counter == 3


def test_spread_addresses_fill_different_sets():
    # 0, 128, 256, 384, 512 are consecutive blocks -> sets 0..4
    c = SetAssociativeCache(128, 4)
    infos = [c.access(a) for a in (0, 128, 256, 384, 512)]
    assert [i.result for i in infos] == [CacheResult.MISS] * 5
    assert [i.set_index for i in infos] == [0, 1, 2, 3, 4]
    assert all(i.way_index == 0 for i in infos)
    assert all(i.cold for i in infos)


def test_same_set_fifth_block_evicts_way_zero():
    # stride of num_sets * line_size keeps every block in set 0
    c = SetAssociativeCache(128, 4)
    stride = c.num_sets * c.line_size
    addrs = [k * stride for k in range(5)]
    for k, a in enumerate(addrs[:4]):
        info = c.access(a)
        assert info.result is CacheResult.MISS
        assert info.set_index == 0
        assert info.way_index == k
    assert [line.counter for line in c.sets[0]] == [1, 1, 1, 1]

    info = c.access(addrs[4])
    assert info.result is CacheResult.MISS
    assert info.cold is False
    assert info.way_index == 0
    assert info.evicted is not None
    assert info.evicted.tag == 0
    assert c.sets[0][0].tag == 4
    assert c.sets[0][0].counter == 1
    # block 0 is gone, the others are still resident
    assert c.lookup(addrs[0]) is CacheResult.MISS


def test_lfu_evicts_least_frequently_used():
    c = SetAssociativeCache(128, 4)
    stride = c.num_sets * c.line_size
    for k in range(4):
        c.lookup(k * stride)
    # counters: way0=3, way1=2, way2=1, way3=2
    c.lookup(0)
    c.lookup(0)
    c.lookup(stride)
    c.lookup(3 * stride)
    assert [line.counter for line in c.sets[0]] == [3, 2, 1, 2]
    info = c.access(4 * stride)
    assert info.way_index == 2
    assert info.evicted.tag == 2
    assert info.evicted.counter == 1


def test_replacement_resets_counter_to_one():
    c = SetAssociativeCache(64, 1, capacity=128)
    # two sets, direct mapped; addresses 0 and 128 share set 0
    for _ in range(10):
        c.lookup(0)
    assert c.sets[0][0].counter == 10
    assert c.lookup(128) is CacheResult.MISS
    assert c.sets[0][0].counter == 1
    assert c.sets[0][0].tag == 1


def test_search_and_insert_halves():
    c = SetAssociativeCache(32, 2)
    assert c.search(0x40) is False
    info = c.insert(0x40)
    assert info.result is CacheResult.MISS
    assert c.search(0x40) is True
    assert c.sets[info.set_index][info.way_index].counter == 2


def test_wide_addresses_are_accepted():
    c = SetAssociativeCache(128, 4)
    assert c.lookup(0xFFFFFFFF) is CacheResult.MISS
    assert c.lookup(0xFFFFFFFF) is CacheResult.HIT
    assert c.lookup(1 << 40) is CacheResult.MISS


def test_negative_address_rejected():
    c = SetAssociativeCache(128, 4)
    with pytest.raises(ValueError):
        c.lookup(-1)


def test_reset_invalidates_everything():
    c = SetAssociativeCache(128, 4)
    for a in range(0, 8192, 128):
        c.lookup(a)
    assert c.valid_lines() == 64
    c.reset()
    assert c.valid_lines() == 0
    for s in c.sets:
        for line in s:
            assert line.valid is False
            assert line.counter == 0
    assert c.lookup(0) is CacheResult.MISS


def test_dump_and_block_address():
    c = SetAssociativeCache(128, 4)
    c.lookup(0x4080)
    rows = list(c.dump(only_valid=True))
    assert len(rows) == 1
    si, wi, valid, counter, tag = rows[0]
    assert (wi, valid, counter) == (0, True, 1)
    assert c.block_address(tag, si) == 0x4080
    assert len(list(c.dump())) == c.total_lines
    assert c.resident_tags(si) == [tag]


def test_invariants_after_random_stream():
    c = SetAssociativeCache(64, 4, capacity=4096)
    rng = MultiplyWithCarry()
    hits = misses = 0
    for _ in range(5000):
        if c.lookup(rng() % (16 * 1024)) is CacheResult.HIT:
            hits += 1
        else:
            misses += 1
    assert hits + misses == 5000
    for si, s in enumerate(c.sets):
        assert len(s) == c.num_ways
        tags = c.resident_tags(si)
        assert len(tags) == len(set(tags))
        for line in s:
            if line.valid:
                assert line.counter >= 1


def test_deterministic_replay():
    def run():
        c = SetAssociativeCache(32, 2, capacity=2048)
        rng = MultiplyWithCarry()
        results = [c.lookup(rng() % 8192) for _ in range(2000)]
        return results, list(c.dump())

    assert run() == run()


def test_insert_does_not_duplicate_resident_block():
    c = SetAssociativeCache(32, 2)
    first = c.insert(0x40)
    again = c.insert(0x44)
    assert again.result is CacheResult.HIT
    assert again.way_index == first.way_index
    assert c.resident_tags(first.set_index) == [first.tag]
    # the resident line is left untouched
    assert c.sets[first.set_index][first.way_index].counter == 1


def test_each_lookup_changes_exactly_one_line():
    c = SetAssociativeCache(64, 4, capacity=2048)
    gen = make_generator("memgen2")
    for _ in range(3000):
        before = deepcopy(c.sets)
        c.lookup(gen() % 8192)
        changed = [
            (si, wi)
            for si in range(c.num_sets)
            for wi in range(c.num_ways)
            if before[si][wi] != c.sets[si][wi]
        ]
        assert len(changed) == 1, f"lines changed: {changed}"
