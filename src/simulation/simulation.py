"""Simulation driver

Turns a SimulationConfig into a cache, an address generator and a
simulator, runs the configured number of iterations and prints the
results.
"""
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, TextIO

from src.core.cache import CACHE_SIZE, ConfigurationError, SetAssociativeCache
from src.core.generators import make_generator
from src.core.simulator import CacheSimulator
from src.data.stats_export import Statistics
from src.simulation.report import format_access, format_summary

log = logging.getLogger(__name__)

NO_OF_ITERATIONS = 1000000


@dataclass
class SimulationConfig:
    line_size: int = 128
    ways: int = 4
    capacity: int = CACHE_SIZE
    generator: str = "memgen4"
    iterations: int = NO_OF_ITERATIONS
    # print one line per access
    verbose: bool = True
    # keep a hit-rate sample every N accesses (0 disables)
    sample_every: int = 0


class Simulation:
    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.cache: Optional[SetAssociativeCache] = None
        self.sim: Optional[CacheSimulator] = None

    def _create_cache(self):
        # Only create the cache once so repeated runs keep its state.
        if self.cache is not None:
            return
        cfg = self.config
        self.cache = SetAssociativeCache(cfg.line_size, cfg.ways, capacity=cfg.capacity)
        self.sim = CacheSimulator(self.cache, Statistics(sample_every=cfg.sample_every))

    def run(self, out: Optional[TextIO] = None, details: bool = False) -> Statistics:
        out = out or sys.stdout
        cfg = self.config
        self._create_cache()
        source = make_generator(cfg.generator)

        def _print_access(info):
            print(format_access(info['address'], info['result']), file=out)

        print("Set Associative Cache Simulator", file=out)
        stats = self.sim.run(source, cfg.iterations, callback=_print_access if cfg.verbose else None)
        print(format_summary(stats, cfg.generator, cfg.line_size, cfg.ways, details=details), file=out)
        return stats


def sweep(line_sizes: Sequence[int], ways: Sequence[int], generator: str = "memgen4",
          iterations: int = NO_OF_ITERATIONS, capacity: int = CACHE_SIZE) -> List[dict]:
    """Run every (line_size, ways) pair and collect hit/miss ratios.

    Geometries that cannot be built are skipped.
    """
    rows = []
    for ls in line_sizes:
        for w in ways:
            try:
                cache = SetAssociativeCache(ls, w, capacity=capacity)
            except ConfigurationError as e:
                log.warning("skipping line_size=%s ways=%s: %s", ls, w, e)
                continue
            stats = CacheSimulator(cache).run(make_generator(generator), iterations)
            rows.append({
                'line_size': ls,
                'ways': w,
                'hit_ratio': stats.hit_ratio,
                'miss_ratio': stats.miss_ratio,
            })
    return rows
