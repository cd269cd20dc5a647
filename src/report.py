"""
report - charts for a reduced workload.
"""

from pathlib import Path

import matplotlib.pyplot as plt

from slots import ReadTask


def plot_tasks_per_block(workload, path, first_block: int = 0):
    reads = [sum(1 for t in tasks if isinstance(t, ReadTask)) for tasks in workload]
    writes = [len(tasks) - r for tasks, r in zip(workload, reads)]
    blocks = list(range(first_block, first_block + len(workload)))
    plt.figure()
    plt.bar(blocks, reads, label="reads")
    plt.bar(blocks, writes, bottom=reads, label="writes")
    plt.xlabel("Block")
    plt.ylabel("Tasks")
    plt.title("Reduced I/O tasks per block")
    plt.legend()
    plt.tight_layout()
    plt.savefig(path)
    plt.close()


def plot_hottest_keys(stats, path, n: int = 20):
    hottest = stats.hottest(n)
    labels = [f"{key.address.hex()[:8]}:{key.slot:x}"[:20] for key, _, _ in hottest]
    reads = [r for _, r, _ in hottest]
    writes = [w for _, _, w in hottest]
    plt.figure(figsize=(8, 4))
    plt.bar(range(len(hottest)), reads, label="reads")
    plt.bar(range(len(hottest)), writes, bottom=reads, label="writes")
    plt.xticks(range(len(hottest)), labels, rotation=90, fontsize=6)
    plt.ylabel("Accesses")
    plt.title("Most accessed storage slots")
    plt.legend()
    plt.tight_layout()
    plt.savefig(path)
    plt.close()


def write_charts(workload, stats, charts_dir, first_block: int = 0) -> list:
    charts = Path(charts_dir)
    charts.mkdir(parents=True, exist_ok=True)
    paths = [charts / "tasks_per_block.png", charts / "hottest_slots.png"]
    plot_tasks_per_block(workload, paths[0], first_block)
    plot_hottest_keys(stats, paths[1])
    return paths
