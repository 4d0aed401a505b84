# simulator.py
import logging
from collections import namedtuple
from enum import Enum

from cache import Cache, CacheGeometry, select_victim
from tracefile import Operation, format_record, open_trace

logger = logging.getLogger(__name__)

class Summary(namedtuple("Summary", "hits misses evictions dirty_bytes dirty_evictions")):
    __slots__ = ()

    @property
    def hit_rate(self):
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class Outcome(Enum):
    HIT = "hit"
    MISS = "miss"
    MISS_EVICTION = "miss eviction"


class Statistics:
    """Running counters for one simulation session."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        # bytes of dirty blocks currently resident
        self.dirty_bytes = 0
        # cumulative dirty bytes written back by evictions
        self.dirty_evictions = 0

    def snapshot(self):
        return Summary(self.hits, self.misses, self.evictions, self.dirty_bytes, self.dirty_evictions)


class AccessSimulator:
    """
    Write-back, write-allocate, LRU set-associative cache driven one access at a time.

    Each instance owns its cache, its statistics and its recency clock, so
    independent sessions never influence each other.
    """

    def __init__(self, geometry: CacheGeometry):
        self.geometry = geometry
        self.cache = Cache(geometry)
        self.stats = Statistics()
        self.clock = 0

    def _tick(self):
        now = self.clock
        self.clock += 1
        return now

    def access(self, address, op: Operation) -> Outcome:
        """Apply one load or store and return what happened."""
        block_size = self.geometry.block_size
        store = op is Operation.STORE
        cache_set, tag = self.cache.lookup(address)
        stats = self.stats

        line = cache_set.find(tag)
        if line is not None:
            stats.hits += 1
            line.lru = self._tick()
            if store and not line.dirty:
                line.dirty = True
                stats.dirty_bytes += block_size
            return Outcome.HIT

        stats.misses += 1
        if not cache_set.is_full:
            line = cache_set.lines[cache_set.fill_count]
            line.fill(tag, self._tick(), store)
            if store:
                stats.dirty_bytes += block_size
            cache_set.fill_count += 1
            return Outcome.MISS

        victim = cache_set.lines[select_victim(cache_set)]
        if victim.dirty:
            stats.dirty_evictions += block_size
            stats.dirty_bytes -= block_size
        victim.fill(tag, self._tick(), store)
        if store:
            stats.dirty_bytes += block_size
        # recency reflects the access itself, after the fill
        victim.lru = self._tick()
        stats.evictions += 1
        return Outcome.MISS_EVICTION

    def summary(self):
        return self.stats.snapshot()


def verbose_line(record, outcome, stats):
    text = f"{format_record(record)} {outcome.value} dirty_bytes:{stats.dirty_bytes}"
    if outcome is Outcome.MISS_EVICTION:
        text += f" dirty_evictions:{stats.dirty_evictions}"
    return text


def simulate(geometry, records, verbose_stream=None):
    """Run a record sequence through a fresh simulator and return its Summary."""
    sim = AccessSimulator(geometry)
    logger.info("simulating s=%d E=%d b=%d", geometry.s, geometry.E, geometry.b)
    for record in records:
        outcome = sim.access(record.address, record.op)
        logger.debug("%s -> %s", format_record(record), outcome.value)
        if verbose_stream is not None:
            print(verbose_line(record, outcome, sim.stats), file=verbose_stream)
    summary = sim.summary()
    logger.info("done: %s", summary)
    return summary


def simulate_file(geometry, path, verbose_stream=None):
    with open_trace(path) as records:
        return simulate(geometry, records, verbose_stream)
