"""Least-Frequently-Used replacement for the set-associative cache.

The frequency counter lives on each cache line, so the policy itself
keeps no state. The cache calls it with a set (list of lines):

- touch(line): a hit on `line`, bump its counter
- fill(line, tag): install `tag` into `line` with counter = 1
- free_way(cache_set): lowest-indexed invalid way, or None if full
- victim(cache_set): way to evict from a full set

Victim selection scans left to right and keeps the first strictly
smaller counter, so ties go to the lowest way index.
"""

from typing import List, Optional


class LFUReplacement:
    """LFU policy operating on CacheLine objects."""

    name = "LFU"

    def touch(self, line) -> None:
        line.counter += 1

    def fill(self, line, tag: int) -> None:
        # counter restarts at 1, previous history is dropped
        line.valid = True
        line.tag = tag
        line.counter = 1

    def free_way(self, cache_set: List) -> Optional[int]:
        for wi, line in enumerate(cache_set):
            if not line.valid:
                return wi
        return None

    def victim(self, cache_set: List) -> int:
        """Return the way with the smallest counter (lowest index on ties)."""
        least_way = 0
        least = cache_set[0].counter
        for wi in range(1, len(cache_set)):
            if cache_set[wi].counter < least:
                least = cache_set[wi].counter
                least_way = wi
        return least_way


__all__ = ["LFUReplacement"]
