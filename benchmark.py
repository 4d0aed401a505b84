# benchmark.py
import os
import json
import time
import logging
import numpy as np

from cache import CacheGeometry
from errors import ConfigurationError
from simulator import simulate
from tracefile import AccessRecord, Operation

logger = logging.getLogger(__name__)

PATTERNS = ("sequential", "random", "mixed", "strided")


class WorkloadGenerator:
    def __init__(self, num_accesses=10000, working_set_bytes=64 * 1024, pattern="mixed",
                 store_ratio=0.2, access_size=8, stride_bytes=64, random_seed=None):
        if pattern not in PATTERNS:
            raise ConfigurationError(f"unknown access pattern {pattern!r}, expected one of {PATTERNS}")
        if num_accesses < 0 or access_size <= 0 or working_set_bytes < access_size:
            raise ConfigurationError("workload needs num_accesses >= 0 and working_set_bytes >= access_size > 0")
        if not 0.0 <= store_ratio <= 1.0:
            raise ConfigurationError(f"store_ratio must be within [0, 1], got {store_ratio}")
        self.num_accesses = num_accesses
        self.working_set_bytes = working_set_bytes
        self.pattern = pattern
        self.store_ratio = store_ratio
        self.access_size = access_size
        self.stride_bytes = stride_bytes
        self.rng = np.random.default_rng(random_seed)
        # addresses are access_size aligned slots inside the working set
        self.num_slots = working_set_bytes // access_size

    def _slots(self):
        n = self.num_accesses
        if self.pattern == "sequential":
            return np.arange(n) % self.num_slots
        if self.pattern == "random":
            return self.rng.integers(0, self.num_slots, size=n)
        if self.pattern == "strided":
            step = max(1, self.stride_bytes // self.access_size)
            return (np.arange(n) * step) % self.num_slots
        # mixed: mostly sequential with some random
        sequential = self.rng.random(n) < 0.8
        seq_ptr = (np.cumsum(sequential) - 1) % self.num_slots
        random_slots = self.rng.integers(0, self.num_slots, size=n)
        return np.where(sequential, seq_ptr, random_slots)

    def records(self):
        """
        Generate the access trace as a list of AccessRecords.
        The same generator state always produces the same trace.
        """
        addresses = self._slots() * self.access_size
        stores = self.rng.random(self.num_accesses) < self.store_ratio
        return [
            AccessRecord(Operation.STORE if store else Operation.LOAD, int(address), self.access_size)
            for address, store in zip(addresses, stores)
        ]


def _geometry(entry):
    try:
        return CacheGeometry(s=entry["s"], E=entry["E"], b=entry["b"])
    except (KeyError, TypeError) as exc:
        raise ConfigurationError(f"sweep entry {entry!r} needs integer s, E and b") from exc


class BenchmarkRunner:
    """Runs one generated trace through a fresh simulator for every geometry in the sweep."""

    def __init__(self, cfg):
        self.cfg = cfg
        workload_cfg = cfg.get("workload", {})
        try:
            self.generator = WorkloadGenerator(**workload_cfg)
        except TypeError as exc:
            raise ConfigurationError(f"bad workload section: {exc}") from exc
        sweep = cfg.get("sweep")
        if not sweep:
            raise ConfigurationError("config needs a non-empty 'sweep' list of geometries")
        self.geometries = [_geometry(entry) for entry in sweep]

    def run(self):
        records = self.generator.records()
        results = []
        for geometry in self.geometries:
            start = time.perf_counter()
            summary = simulate(geometry, records)
            end = time.perf_counter()
            total = summary.hits + summary.misses
            result = {"s": geometry.s, "E": geometry.E, "b": geometry.b}
            result.update(summary._asdict())
            result["hit_rate"] = summary.hit_rate
            result["throughput_accesses_per_sec"] = total / (end - start) if (end - start) > 0 else 0
            logger.info("s=%d E=%d b=%d hit rate %.3f", geometry.s, geometry.E, geometry.b, result["hit_rate"])
            results.append(result)
        return results

    def save_results(self, results, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
        with open(path, "w") as f:
            json.dump({"workload": self.cfg.get("workload", {}), "results": results}, f, indent=2)
        return path
