# main.py
import argparse
import json
import logging
import sys

from benchmark import BenchmarkRunner
from cache import CacheGeometry
from errors import ConfigurationError, CsimError, ResourceError
from simulator import simulate_file
from visualize import plot_hit_miss_rate, plot_sweep


def load_config(path="config.json"):
    try:
        with open(path, "r") as f:
            return json.load(f)
    except OSError as exc:
        raise ResourceError(f"error opening config file {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"config file {path} is not valid JSON: {exc}") from exc


def format_summary(summary):
    return (f"hits:{summary.hits} misses:{summary.misses} evictions:{summary.evictions} "
            f"dirty_bytes_in_cache:{summary.dirty_bytes} dirty_bytes_evicted:{summary.dirty_evictions}")


def save_summary(summary, path):
    with open(path, "w") as f:
        json.dump(summary._asdict(), f, indent=2)
    return path


def run_benchmark(cfg):
    runner = BenchmarkRunner(cfg)
    print("Starting benchmark with workload:", cfg.get("workload", {}))
    results = runner.run()
    out_cfg = cfg.get("output", {})
    results_path = runner.save_results(results, out_cfg)
    for result in results:
        print(f"s={result['s']} E={result['E']} b={result['b']}: hit rate {result['hit_rate']:.3f}, "
              f"evictions {result['evictions']}, dirty bytes evicted {result['dirty_evictions']}")
    print("Results saved to:", results_path)
    plot_sweep(results, out_cfg.get("sweep_plot", "results/sweep.png"))
    print("Plots saved in", out_cfg.get("results_dir", "results"))
    return results


def build_parser():
    parser = argparse.ArgumentParser(
        prog="csim",
        description="Trace-driven write-back, write-allocate LRU cache simulator.",
        epilog="The -s, -b, -E, and -t options must be supplied for all simulations.")
    parser.add_argument("-v", dest="verbose", action="store_true",
                        help="Verbose mode: report effects of each memory operation")
    parser.add_argument("-s", type=int, help="Number of set index bits (there are 2**s sets)")
    parser.add_argument("-b", type=int, help="Number of block bits (there are 2**b blocks)")
    parser.add_argument("-E", type=int, help="Number of lines per set (associativity)")
    parser.add_argument("-t", dest="trace", metavar="TRACE", help="File name of the memory trace to process")
    parser.add_argument("--json", dest="json_path", metavar="PATH", help="Also write the summary as JSON")
    parser.add_argument("--plot", metavar="PATH", help="Save a hit/miss pie chart of the run")
    parser.add_argument("--config", metavar="PATH", help="Run the geometry sweep described by a JSON config")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level (stderr)")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.config:
            if args.s is not None or args.b is not None or args.E is not None or args.trace is not None:
                parser.error("--config cannot be combined with -s, -b, -E or -t")
            run_benchmark(load_config(args.config))
            return 0
        if args.s is None or args.b is None or args.E is None or args.trace is None:
            parser.error("mandatory arguments missing: -s, -b, -E and -t are required")
        geometry = CacheGeometry(s=args.s, E=args.E, b=args.b)
        summary = simulate_file(geometry, args.trace, sys.stdout if args.verbose else None)
        print(format_summary(summary))
        if args.json_path:
            save_summary(summary, args.json_path)
        if args.plot:
            plot_hit_miss_rate(summary, args.plot)
    except CsimError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
