"""Text formatting for simulation output."""
from typing import Iterable, List

from src.core.cache import CacheResult, SetAssociativeCache
from src.data.stats_export import Statistics


def format_access(address: int, result: CacheResult) -> str:
    return f"0x{address:08x} ({result.label})"


def format_summary(stats: Statistics, generator: str = None, line_size: int = None,
                   ways: int = None, details: bool = False) -> str:
    lines: List[str] = []
    if generator is not None:
        lines.append(f"This is the output using {generator}, line size = {line_size}, "
                     f"and number of ways = {ways}")
    lines.append(f"Number of hits = {stats.hits}")
    lines.append(f"Number of misses = {stats.misses}")
    if details:
        lines.append(f"  cold misses = {stats.cold_misses}")
        lines.append(f"  conflict misses = {stats.conflict_misses}")
    lines.append(f"Hit ratio = {stats.hit_ratio:g}")
    lines.append(f"Miss ratio = {stats.miss_ratio:g}")
    return "\n".join(lines)


def format_dump(cache: SetAssociativeCache, only_valid: bool = True) -> str:
    """One row per line: set, way, valid, counter, tag (hex)."""
    rows = ["set\tway\tvalid\tcounter\ttag"]
    for si, wi, valid, counter, tag in cache.dump(only_valid=only_valid):
        rows.append(f"{si}\t{wi}\t{int(valid)}\t{counter}\t{tag:x}")
    return "\n".join(rows)


def format_sweep(rows: Iterable[dict], generator: str) -> str:
    out = [f"Sweep using {generator}", "line_size\tways\thit%\tmiss%"]
    for r in rows:
        out.append(f"{r['line_size']}\t{r['ways']}\t{r['hit_ratio']:.2f}\t{r['miss_ratio']:.2f}")
    return "\n".join(out)
