"""
reducer - turn the full chronological access log into a seed state and a
compact per-block workload.

Log shape: blocks -> transactions -> accesses (Read/Write from slots).
"""

import random
from collections import defaultdict
from itertools import chain

from slots import Read, ReadTask, Write, WriteTask, word_to_bytes


class ReductionStats:
    def __init__(self):
        self.blocks = 0
        self.transactions = 0
        self.accesses = 0
        self.touched = 0
        self.initial_entries = 0
        self.read_tasks = 0
        self.write_tasks = 0
        # StorageKey -> [reads, writes]
        self.per_key = defaultdict(lambda: [0, 0])

    def hottest(self, n: int = 10):
        """The n keys with the most accesses, busiest first."""
        ranked = sorted(self.per_key.items(), key=lambda kv: kv[1][0] + kv[1][1], reverse=True)
        return [(key, reads, writes) for key, (reads, writes) in ranked[:n]]


def _flatten(log):
    return chain.from_iterable(chain.from_iterable(log))


def first_touch_values(log, stats: ReductionStats = None) -> dict:
    """
    Keys whose first access over the whole log is a Read of a non-zero value,
    mapped to that value. Insertion order is first-touch order.
    """
    touched = set()
    frontier = {}
    for access in _flatten(log):
        key = access.key
        if key not in touched:
            touched.add(key)
            if isinstance(access, Read) and access.value != 0:
                frontier[key] = access.value
        if stats is not None:
            stats.accesses += 1
            stats.per_key[key][0 if isinstance(access, Read) else 1] += 1
    if stats is not None:
        stats.touched = len(touched)
        stats.initial_entries = len(frontier)
    return frontier


def initial_state(log, rng: random.Random = None, stats: ReductionStats = None) -> list:
    """(digest, 32-byte value) seed entries in a uniformly shuffled order."""
    entries = [(key.digest(), word_to_bytes(value))
               for key, value in first_touch_values(log, stats).items()]
    (rng or random.Random()).shuffle(entries)
    return entries


def reduce_block(block) -> list:
    """
    Compact one block: one ReadTask per key whose first access in the block
    is a Read, then one WriteTask per written key carrying its last written
    value. Keys keep first-encounter order.
    """
    groups = {}
    for access in chain.from_iterable(block):
        groups.setdefault(access.key, []).append(access)

    reads = []
    writes = []
    for key, group in groups.items():
        if isinstance(group[0], Read):
            reads.append(ReadTask(key.digest()))
        last_write = next((a for a in reversed(group) if isinstance(a, Write)), None)
        if last_write is not None:
            writes.append(WriteTask(key.digest(), word_to_bytes(last_write.value)))
    return reads + writes


def block_workload(log, stats: ReductionStats = None) -> list:
    workload = [reduce_block(block) for block in log]
    if stats is not None:
        for tasks in workload:
            for task in tasks:
                if isinstance(task, ReadTask):
                    stats.read_tasks += 1
                else:
                    stats.write_tasks += 1
    return workload


def reduce(log, rng: random.Random = None):
    """
    Run both passes over `log`.
    Returns (initial_state_entries, per_block_tasks, stats).
    """
    log = [[list(tx) for tx in block] for block in log]
    stats = ReductionStats()
    stats.blocks = len(log)
    stats.transactions = sum(len(block) for block in log)
    init = initial_state(log, rng, stats)
    workload = block_workload(log, stats)
    return init, workload, stats
