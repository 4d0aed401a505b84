import json

import pytest

from benchmark import BenchmarkRunner, WorkloadGenerator
from errors import ConfigurationError
from tracefile import Operation


def config(tmp_path, **workload):
    base = {"num_accesses": 500, "working_set_bytes": 4096, "pattern": "mixed",
            "store_ratio": 0.3, "access_size": 8, "random_seed": 1}
    base.update(workload)
    return {
        "workload": base,
        "sweep": [{"s": 2, "E": 1, "b": 4}, {"s": 0, "E": 4, "b": 4}, {"s": 4, "E": 8, "b": 5}],
        "output": {"results_dir": str(tmp_path / "results")},
    }


@pytest.mark.parametrize("pattern", ["sequential", "random", "mixed", "strided"])
def test_generator_stays_in_working_set(pattern):
    records = WorkloadGenerator(num_accesses=300, working_set_bytes=1024, pattern=pattern,
                                access_size=4, random_seed=0).records()
    assert len(records) == 300
    assert all(0 <= r.address < 1024 and r.address % 4 == 0 for r in records)
    assert all(r.size == 4 for r in records)


def test_generator_is_seeded():
    a = WorkloadGenerator(num_accesses=200, random_seed=9).records()
    b = WorkloadGenerator(num_accesses=200, random_seed=9).records()
    assert a == b


def test_store_ratio_extremes():
    loads = WorkloadGenerator(num_accesses=50, store_ratio=0.0, random_seed=0).records()
    stores = WorkloadGenerator(num_accesses=50, store_ratio=1.0, random_seed=0).records()
    assert {r.op for r in loads} == {Operation.LOAD}
    assert {r.op for r in stores} == {Operation.STORE}


def test_sequential_addresses_wrap():
    records = WorkloadGenerator(num_accesses=6, working_set_bytes=32, pattern="sequential",
                                access_size=8).records()
    assert [r.address for r in records] == [0, 8, 16, 24, 0, 8]


@pytest.mark.parametrize("kwargs", [
    {"pattern": "zigzag"},
    {"store_ratio": 1.5},
    {"access_size": 0},
    {"working_set_bytes": 2, "access_size": 8},
])
def test_generator_rejects_bad_workload(kwargs):
    with pytest.raises(ConfigurationError):
        WorkloadGenerator(**kwargs)


def test_runner_sweep(tmp_path):
    cfg = config(tmp_path)
    runner = BenchmarkRunner(cfg)
    results = runner.run()
    assert [(r["s"], r["E"], r["b"]) for r in results] == [(2, 1, 4), (0, 4, 4), (4, 8, 5)]
    for r in results:
        assert r["hits"] + r["misses"] == 500
        assert 0.0 <= r["hit_rate"] <= 1.0
    # 16 sets of 8 lines of 32 bytes hold the whole 4 KiB working set
    assert results[2]["evictions"] == 0

    path = runner.save_results(results, cfg["output"])
    with open(path) as f:
        saved = json.load(f)
    assert saved["results"][0]["misses"] == results[0]["misses"]


def test_runner_repeatable(tmp_path):
    first = BenchmarkRunner(config(tmp_path)).run()
    second = BenchmarkRunner(config(tmp_path)).run()
    keys = ("hits", "misses", "evictions", "dirty_bytes", "dirty_evictions")
    assert [[r[k] for k in keys] for r in first] == [[r[k] for k in keys] for r in second]


@pytest.mark.parametrize("cfg", [
    {"workload": {}, "sweep": []},
    {"workload": {}},
    {"workload": {}, "sweep": [{"s": 1, "E": 1}]},
    {"workload": {}, "sweep": [{"s": 40, "E": 1, "b": 30}]},
    {"workload": {"colour": "red"}, "sweep": [{"s": 1, "E": 1, "b": 1}]},
])
def test_runner_rejects_bad_config(cfg):
    with pytest.raises(ConfigurationError):
        BenchmarkRunner(cfg)
