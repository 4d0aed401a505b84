# cache.py
from dataclasses import dataclass

from errors import ConfigurationError

ADDRESS_BITS = 64


@dataclass(frozen=True)
class CacheGeometry:
    """
    Shape of a set-associative cache.
    s: set-index bits (2**s sets), E: lines per set, b: block-offset bits (2**b bytes per block).
    """
    s: int
    E: int
    b: int

    def __post_init__(self):
        for name in ("s", "E", "b"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.s < 0 or self.b < 0:
            raise ConfigurationError(f"s and b must be non-negative (s = {self.s}, b = {self.b})")
        if self.E < 1:
            raise ConfigurationError(f"E must be at least 1 (E = {self.E})")
        if self.s >= ADDRESS_BITS or self.b >= ADDRESS_BITS or self.s + self.b >= ADDRESS_BITS:
            raise ConfigurationError(f"s + b is too large (s = {self.s}, b = {self.b})")

    @property
    def num_sets(self):
        return 1 << self.s

    @property
    def block_size(self):
        return 1 << self.b


def decode(address, s, b):
    """
    Split an address into (set_index, tag).
    Layout: | tag | set index (s bits) | block offset (b bits) |
    """
    set_index = (address >> b) & ((1 << s) - 1) if s else 0
    tag = address >> (b + s)
    return set_index, tag


class CacheLine:
    __slots__ = ("valid", "dirty", "tag", "lru")

    def __init__(self):
        self.valid = False
        self.dirty = False
        self.tag = 0
        # bigger = more recently used
        self.lru = 0

    def fill(self, tag, lru, dirty):
        self.valid = True
        self.tag = tag
        self.lru = lru
        self.dirty = dirty

    def __repr__(self):
        return f"CacheLine(valid={self.valid}, dirty={self.dirty}, tag={self.tag:#x}, lru={self.lru})"


class CacheSet:
    """
    E lines filled in index order; fill_count is the next free slot.
    Once fill_count reaches E every miss in the set is an eviction.
    """

    def __init__(self, E):
        self.lines = [CacheLine() for _ in range(E)]
        self.fill_count = 0

    @property
    def is_full(self):
        return self.fill_count == len(self.lines)

    def find(self, tag):
        for line in self.lines:
            if line.valid and line.tag == tag:
                return line
        return None

    def tags(self):
        return {line.tag for line in self.lines if line.valid}


class Cache:
    """
    Metadata-only model: 2**s sets of E lines, no data bytes are stored.
    Sets are created on first use, so wide set-index fields cost nothing until touched.
    """

    def __init__(self, geometry: CacheGeometry):
        self.geometry = geometry
        self.sets = {}

    def get_set(self, set_index):
        cache_set = self.sets.get(set_index)
        if cache_set is None:
            cache_set = self.sets[set_index] = CacheSet(self.geometry.E)
        return cache_set

    def lookup(self, address):
        set_index, tag = decode(address, self.geometry.s, self.geometry.b)
        return self.get_set(set_index), tag

    def resident_tags(self, set_index):
        cache_set = self.sets.get(set_index)
        return cache_set.tags() if cache_set is not None else set()

    def dirty_line_count(self):
        return sum(1 for cache_set in self.sets.values() for line in cache_set.lines if line.valid and line.dirty)


def select_victim(cache_set: CacheSet):
    """
    Index of the least recently used line in a full set.
    Ties go to the lowest index.
    """
    if not cache_set.is_full:
        raise ValueError("victim selection requires a full set")
    lines = cache_set.lines
    victim = 0
    min_lru = lines[0].lru
    for i, line in enumerate(lines):
        if line.lru < min_lru:
            min_lru = line.lru
            victim = i
    return victim
