"""Entry point for the set-associative cache simulator.

Usage:
    python run.py                              # memgen4, 128-byte lines, 4 ways
    python run.py --generator memgen2 --line-size 64 --ways 8 --quiet
    python run.py --sweep --generator memgen6 --iterations 100000
"""
import argparse
import logging
import sys

from src.core.cache import CACHE_SIZE, ConfigurationError
from src.core.generators import GENERATORS
from src.data.stats_export import Exporter, export_chart_json, export_chart_pdf
from src.simulation import Simulation, SimulationConfig, sweep
from src.simulation.report import format_dump, format_sweep

SWEEP_LINE_SIZES = [16, 32, 64, 128]
SWEEP_WAYS = [1, 2, 4, 8, 16]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("--line-size", type=int, default=128, help="bytes per line, power of two (default: 128)")
    ap.add_argument("--ways", type=int, default=4, help="associativity (default: 4)")
    ap.add_argument("--capacity", type=int, default=CACHE_SIZE, help="cache size in bytes (default: 65536)")
    ap.add_argument("--generator", choices=sorted(GENERATORS), default="memgen4", help="address pattern")
    ap.add_argument("--iterations", type=int, default=1000000, help="number of accesses")
    ap.add_argument("--quiet", action="store_true", help="only print the summary")
    ap.add_argument("--details", action="store_true", help="split misses into cold and conflict")
    ap.add_argument("--dump", action="store_true", help="print valid cache lines after the run")
    ap.add_argument("--csv", metavar="PATH", help="write statistics as CSV")
    ap.add_argument("--json", metavar="PATH", help="write statistics and hit-rate history as JSON")
    ap.add_argument("--chart", metavar="PATH", help="plot the hit-rate history (pdf/png)")
    ap.add_argument("--sample-every", type=int, default=1000, help="hit-rate sample interval")
    ap.add_argument("--sweep", action="store_true", help="sweep line sizes and ways instead of a single run")
    ap.add_argument("--debug", action="store_true", help="enable debug logging")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    if args.iterations < 0:
        print("error: --iterations must be >= 0", file=sys.stderr)
        return 2
    if args.sample_every < 0:
        print("error: --sample-every must be >= 0", file=sys.stderr)
        return 2

    if args.sweep:
        rows = sweep(SWEEP_LINE_SIZES, SWEEP_WAYS, generator=args.generator,
                     iterations=args.iterations, capacity=args.capacity)
        print(format_sweep(rows, args.generator))
        if args.csv:
            Exporter.export_sweep_csv(args.csv, rows)
        return 0

    config = SimulationConfig(
        line_size=args.line_size,
        ways=args.ways,
        capacity=args.capacity,
        generator=args.generator,
        iterations=args.iterations,
        verbose=not args.quiet,
        sample_every=args.sample_every if (args.json or args.chart) else 0,
    )
    simulation = Simulation(config)
    try:
        stats = simulation.run(details=args.details)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.dump:
        print(format_dump(simulation.cache))
    if args.csv:
        Exporter.export_stats_csv(args.csv, stats)
    if args.json:
        export_chart_json(stats.hit_rate_history, stats.as_dict(), args.json)
    if args.chart:
        export_chart_pdf(stats.hit_rate_history, args.chart,
                         title=f"{args.generator}, line {args.line_size}, {args.ways}-way")
    return 0


if __name__ == '__main__':
    sys.exit(main())
