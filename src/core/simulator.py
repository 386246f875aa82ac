"""CacheSimulator coordinates cache accesses and statistics.
Feeds addresses into the core cache and updates simple stats.
"""
from typing import Callable, Iterable, List, Optional

from .cache import AccessInfo, CacheResult, SetAssociativeCache
from ..data.stats_export import Statistics


def cache_sim(cache: SetAssociativeCache, address: int) -> CacheResult:
    """One simulation step: search first, insert on a miss."""
    if cache.search(address):
        return CacheResult.HIT
    # cold start or conflict, both are reported as a plain miss
    cache.insert(address)
    return CacheResult.MISS


class CacheSimulator:
    def __init__(self, cache: SetAssociativeCache, stats: Optional[Statistics] = None):
        self.cache = cache
        self.stats = stats or Statistics()
        self.sequence: List[int] = []
        self.index = 0

    def reset(self):
        # clear stats and rewind the sequence pointer
        self.stats.reset()
        self.index = 0
        # also clear cache contents
        self.cache.reset()

    def load_sequence(self, addresses: Iterable[int]):
        self.sequence = list(addresses)
        self.index = 0

    def has_next(self) -> bool:
        return self.index < len(self.sequence)

    def _access(self, address: int) -> dict:
        info: AccessInfo = self.cache.access(address)
        self.stats.record_access(info.hit, cold=info.cold)
        return {
            'address': address,
            'result': info.result,
            'hit': info.hit,
            'set_index': info.set_index,
            'way_index': info.way_index,
            'tag': info.tag,
            'cold': info.cold,
            'evicted': info.evicted,
        }

    def step(self) -> Optional[dict]:
        if not self.has_next():
            return None
        address = self.sequence[self.index]
        self.index += 1
        return self._access(address)

    def run_all(self, callback: Optional[Callable[[dict], None]] = None):
        while self.has_next():
            info = self.step()
            if callback:
                callback(info)

    def run(self, source: Callable[[], int], iterations: int,
            callback: Optional[Callable[[dict], None]] = None) -> Statistics:
        """Pull `iterations` addresses from `source` and access each one."""
        if iterations < 0:
            raise ValueError("iterations must be >= 0")
        for _ in range(iterations):
            info = self._access(source())
            if callback:
                callback(info)
        return self.stats
