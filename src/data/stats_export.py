"""Statistics and exporter.
"""
import csv
import json
from typing import Dict, List, Optional


class Statistics:
    def __init__(self, sample_every: int = 0):
        # sample_every > 0 keeps a hit-rate sample every N accesses
        if sample_every < 0:
            raise ValueError("sample_every must be >= 0")
        self.sample_every = sample_every
        self.reset()

    def reset(self):
        # counters start from zero
        self.accesses = 0
        self.hits = 0
        self.misses = 0
        self.cold_misses = 0
        self.conflict_misses = 0
        self.hit_rate_history: List[float] = []

    def record_access(self, hit: bool, cold: bool = False):
        # call this for every cache access
        self.accesses += 1
        if hit:
            self.hits += 1
        else:
            self.misses += 1
            if cold:
                self.cold_misses += 1
            else:
                self.conflict_misses += 1
        if self.sample_every and self.accesses % self.sample_every == 0:
            self.hit_rate_history.append(self.hit_rate)

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    @property
    def hit_ratio(self):
        """Hit ratio in percent."""
        return (100.0 * self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_ratio(self):
        """Miss ratio in percent."""
        return (100.0 * self.misses / self.accesses) if self.accesses else 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            'accesses': self.accesses,
            'hits': self.hits,
            'misses': self.misses,
            'cold_misses': self.cold_misses,
            'conflict_misses': self.conflict_misses,
            'hit_ratio': self.hit_ratio,
            'miss_ratio': self.miss_ratio,
        }


def export_chart_json(hit_rate_history: List[float], stats: Dict[str, float], fpath: str) -> str:
    """Export hit-rate history and stats to a JSON file. Returns the saved path.
    """
    data = {
        'hit_rate_history': list(hit_rate_history),
        'stats': stats
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    return fpath


def export_chart_pdf(hit_rate_history: List[float], fpath: str, title: Optional[str] = None) -> str:
    """Render the hit-rate history with matplotlib and save it.

    The output format follows the file extension (pdf, png, svg...).
    Returns the saved file path.
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    data = list(hit_rate_history) or [0]
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.plot(range(len(data)), data, color='#FFA500', linewidth=2)
    ax.fill_between(range(len(data)), data, color='#FFA500', alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Sample')
    ax.set_ylabel('Hit rate')
    if title:
        ax.set_title(title)
    ax.grid(False)
    fig.tight_layout()
    fig.savefig(fpath, dpi=150)
    plt.close(fig)
    return fpath


class Exporter:
    FIELDS = ['accesses', 'hits', 'misses', 'cold_misses', 'conflict_misses', 'hit_ratio', 'miss_ratio']

    @staticmethod
    def export_stats_csv(path: str, stats: Statistics):
        row = stats.as_dict()
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(Exporter.FIELDS)
            writer.writerow([row[k] for k in Exporter.FIELDS])

    @staticmethod
    def export_sweep_csv(path: str, rows: List[dict]):
        with open(path, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=['line_size', 'ways', 'hit_ratio', 'miss_ratio'])
            writer.writeheader()
            for r in rows:
                writer.writerow(r)
