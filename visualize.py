# visualize.py
import os
import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    directory = os.path.dirname(outpath)
    if directory:
        os.makedirs(directory, exist_ok=True)


def plot_hit_miss_rate(summary, outpath):
    _ensure_dir(outpath)
    hit_rate = summary.hit_rate
    plt.figure(figsize=(4,4))
    labels = ['Hit', 'Miss']
    sizes = [hit_rate, 1.0 - hit_rate]
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title(f"Cache Hit/Miss Rate ({summary.evictions} evictions)")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_sweep(results, outpath):
    """Hit rate and dirty bytes evicted for each geometry of a benchmark sweep."""
    _ensure_dir(outpath)
    labels = [f"s={r['s']} E={r['E']} b={r['b']}" for r in results]
    positions = range(len(results))
    fig, (ax_rate, ax_dirty) = plt.subplots(2, 1, figsize=(8,6), sharex=True)
    ax_rate.bar(positions, [r["hit_rate"] for r in results])
    ax_rate.set_ylabel("Hit rate")
    ax_rate.set_ylim(0, 1)
    ax_rate.grid(True, axis='y')
    ax_dirty.bar(positions, [r["dirty_evictions"] for r in results], color='tab:orange')
    ax_dirty.set_ylabel("Dirty bytes evicted")
    ax_dirty.grid(True, axis='y')
    ax_dirty.set_xticks(list(positions))
    ax_dirty.set_xticklabels(labels, rotation=30, ha='right')
    fig.suptitle("Geometry Sweep")
    fig.tight_layout()
    fig.savefig(outpath)
    plt.close(fig)
