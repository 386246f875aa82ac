"""Core cache implementation

Set-associative cache model with LFU replacement. Only address presence
is modelled, there is no data storage.
Behavior:
- Cache capacity (default 64 KiB) is split into lines of `line_size`
  bytes; lines are grouped into sets of `num_ways` ways.
  tag, set_index = decode(address, byte_offset_bits, set_index_bits)
- lookup(address) returns CacheResult.HIT or CacheResult.MISS. A hit
  bumps the line's counter; a miss installs the block (free way first,
  otherwise the least frequently used way) with counter = 1.
- access(address) does the same and returns an AccessInfo describing
  which set/way was touched and what was evicted.
"""

import enum
import logging
from dataclasses import dataclass, replace
from typing import Iterator, List, NamedTuple, Optional, Tuple

from src.core.address import block_base, decode
from src.core.replacement_policies import LFUReplacement

CACHE_SIZE = 64 * 1024

log = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when cache geometry parameters are invalid."""


class CacheResult(enum.IntEnum):
    MISS = 0
    HIT = 1

    @property
    def label(self) -> str:
        return "Hit" if self is CacheResult.HIT else "Miss"


@dataclass
class CacheLine:
    """One way of a set.

    Fields:
    - tag: tag of the resident block (meaningless while invalid)
    - valid: whether the way holds a block
    - counter: access frequency used by LFU
    """

    tag: int = 0
    valid: bool = False
    counter: int = 0


class AccessInfo(NamedTuple):
    result: CacheResult
    set_index: int
    way_index: int
    tag: int
    # True when a miss filled an invalid way (cold start)
    cold: bool = False
    evicted: Optional[CacheLine] = None

    @property
    def hit(self) -> bool:
        return self.result is CacheResult.HIT


def _log2_exact(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    if value & (value - 1):
        raise ConfigurationError(f"{name} must be a power of two, got {value}")
    return value.bit_length() - 1


class SetAssociativeCache:
    """Set-associative cache with LFU replacement."""

    def __init__(self, line_size: int, num_ways: int, capacity: int = CACHE_SIZE):
        self.capacity = capacity
        self.byte_offset_bits = _log2_exact(line_size, "line_size")
        _log2_exact(capacity, "capacity")
        if not isinstance(num_ways, int) or isinstance(num_ways, bool) or num_ways <= 0:
            raise ConfigurationError(f"num_ways must be a positive integer, got {num_ways!r}")
        if line_size > capacity:
            raise ConfigurationError(f"line_size {line_size} exceeds cache capacity {capacity}")

        self.line_size = line_size
        self.num_ways = num_ways
        self.total_lines = capacity // line_size
        if self.total_lines % num_ways != 0:
            raise ConfigurationError(
                f"{self.total_lines} lines cannot be split evenly into {num_ways}-way sets"
            )
        self.num_sets = self.total_lines // num_ways
        # total_lines is a power of two, so this only fails when num_ways is not
        self.set_index_bits = _log2_exact(self.num_sets, "number of sets")
        self.policy = LFUReplacement()

        # num_sets x num_ways matrix of empty lines
        self.sets: List[List[CacheLine]] = [
            [CacheLine() for _ in range(num_ways)] for _ in range(self.num_sets)
        ]
        log.debug(
            "cache: %d bytes, line %d, %d-way, %d sets (offset bits %d, index bits %d)",
            capacity, line_size, num_ways, self.num_sets,
            self.byte_offset_bits, self.set_index_bits,
        )

    def _decode(self, address: int) -> Tuple[int, int]:
        """Decode address into (tag, set_index)."""
        return decode(address, self.byte_offset_bits, self.set_index_bits)

    def _find(self, cache_set: List[CacheLine], tag: int) -> Optional[int]:
        # first match wins
        for wi, line in enumerate(cache_set):
            if line.valid and line.tag == tag:
                return wi
        return None

    def search(self, address: int) -> bool:
        """Return True if the block is resident, counting the hit."""
        tag, set_index = self._decode(address)
        cache_set = self.sets[set_index]
        wi = self._find(cache_set, tag)
        if wi is None:
            return False
        self.policy.touch(cache_set[wi])
        return True

    def insert(self, address: int) -> AccessInfo:
        """Install the block for `address`, evicting by LFU if the set is full.

        A block that is already resident is left as it is and reported
        as a hit on its current way, so a set never holds a tag twice.
        """
        tag, set_index = self._decode(address)
        cache_set = self.sets[set_index]
        wi = self._find(cache_set, tag)
        if wi is not None:
            return AccessInfo(CacheResult.HIT, set_index, wi, tag)
        return self._install(cache_set, set_index, tag)

    def _install(self, cache_set: List[CacheLine], set_index: int, tag: int) -> AccessInfo:
        wi = self.policy.free_way(cache_set)
        if wi is not None:
            self.policy.fill(cache_set[wi], tag)
            return AccessInfo(CacheResult.MISS, set_index, wi, tag, cold=True)

        wi = self.policy.victim(cache_set)
        evicted = replace(cache_set[wi])
        log.debug(
            "evict set %d way %d: tag 0x%x (counter %d) -> tag 0x%x",
            set_index, wi, evicted.tag, evicted.counter, tag,
        )
        self.policy.fill(cache_set[wi], tag)
        return AccessInfo(CacheResult.MISS, set_index, wi, tag, cold=False, evicted=evicted)

    def access(self, address: int) -> AccessInfo:
        """Perform one cache access and describe what happened."""
        tag, set_index = self._decode(address)
        cache_set = self.sets[set_index]
        wi = self._find(cache_set, tag)
        if wi is not None:
            self.policy.touch(cache_set[wi])
            return AccessInfo(CacheResult.HIT, set_index, wi, tag)
        # miss, cold start or conflict alike
        return self._install(cache_set, set_index, tag)

    def lookup(self, address: int) -> CacheResult:
        return self.access(address).result

    def reset(self):
        """Invalidate every line."""
        for s in self.sets:
            for line in s:
                line.tag = 0
                line.valid = False
                line.counter = 0

    def block_address(self, tag: int, set_index: int) -> int:
        return block_base(tag, set_index, self.byte_offset_bits, self.set_index_bits)

    def resident_tags(self, set_index: int) -> List[int]:
        return [line.tag for line in self.sets[set_index] if line.valid]

    def valid_lines(self) -> int:
        return sum(1 for s in self.sets for line in s if line.valid)

    def dump(self, only_valid: bool = False) -> Iterator[Tuple[int, int, bool, int, int]]:
        """Yield (set, way, valid, counter, tag) for every line."""
        for si, s in enumerate(self.sets):
            for wi, line in enumerate(s):
                if only_valid and not line.valid:
                    continue
                yield si, wi, line.valid, line.counter, line.tag
