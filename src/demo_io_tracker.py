"""
demo_io_tracker.py - replays hand-built vmTraces for two contracts, reduces
the resulting access log and writes the replay files plus charts.
"""
import json
import random
import sys
from pathlib import Path

from vm import TraceWalker
from reducer import reduce
from report import write_charts
from slots import Read
from tracefile import encode_initial_state, encode_workload, encode_log, write_file

OUT = Path(__file__).parent.parent / "outputs"
CHARTS = Path(__file__).parent.parent / "charts"

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20


def op(name, *push, sub=None):
    return {"op": name, "ex": {"push": [hex(v) for v in push]}, "sub": sub}


def trace(*ops):
    return {"code": "0x", "ops": [dict(o, pc=i) for i, o in enumerate(ops)]}


# Contract A: counter += 1 at slot 0
def counter_trace(old):
    return trace(
        op("PUSH1", 0),
        op("SLOAD", old),
        op("PUSH1", 1),
        op("ADD", old + 1),
        op("PUSH1", 0),
        op("SSTORE"),
        op("STOP"),
    )


# Contract B: reads slot 1, calls A, stores 9 at slot 1, then runs A's code on its own storage
def caller_trace(b_slot1, a_counter, b_counter):
    return trace(
        op("PUSH1", 1),
        op("SLOAD", b_slot1),
        op("POP"),
        *[op("PUSH1", 0) for _ in range(5)],
        op("PUSH20", int(A, 16)),
        op("PUSH2", 0xFFFF),
        op("CALL", 1, sub=counter_trace(a_counter)),
        op("POP"),
        op("PUSH1", 9),
        op("PUSH1", 1),
        op("SSTORE"),
        *[op("PUSH1", 0) for _ in range(4)],
        op("PUSH20", int(A, 16)),
        op("PUSH2", 0xFFFF),
        op("DELEGATECALL", 1, sub=counter_trace(b_counter)),
        op("STOP"),
    )


blocks = [
    [(caller_trace(5, 41, 0), B), (counter_trace(42), A)],
    [(caller_trace(9, 43, 1), B)],
]


def main(out=OUT, charts=CHARTS, seed=7):
    out.mkdir(parents=True, exist_ok=True)
    walker = TraceWalker()
    log = []
    for number, block in enumerate(blocks):
        block_log = []
        for vm_trace, contract in block:
            accesses = walker.walk_transaction(vm_trace, contract)
            print(f"Block {number} tx -> {contract}: {len(accesses)} accesses")
            block_log.append(accesses)
        log.append(block_log)

    init, workload, stats = reduce(log, random.Random(seed))
    print(f"Touched set {stats.touched}, init set {stats.initial_entries}")
    print(f"Final task {stats.read_tasks} r {stats.write_tasks} w")

    write_file(out / "demo.trace", encode_log(log))
    write_file(out / "real_trace.init", encode_initial_state(init))
    write_file(out / "real_trace.data", encode_workload(workload))

    readable = [[[{"kind": "read" if isinstance(a, Read) else "write",
                   "contract": "0x" + a.key.address.hex(),
                   "slot": a.key.slot,
                   "value": a.value} for a in tx] for tx in block] for block in log]
    with open(out / "accesses.json", "w") as f:
        json.dump(readable, f, indent=2)

    write_charts(workload, stats, charts)
    print(f"Demo complete. Outputs and charts written to {out} and {charts}.")
    return log, init, workload


if __name__ == "__main__":
    main(*[Path(p) for p in sys.argv[1:3]])
