"""
io_tracker - EVM IO tracker command line.

  fetch    replay a batch of blocks from a node into data/<start>_<n>.trace
  combine  splice contiguous shards into combined_<start>_<n>.trace
  seal     reduce a combined log into real_trace.init and real_trace.data
"""

import argparse
import logging
import os
import random
import sys
from pathlib import Path

import fetcher
import shards
from reducer import reduce
from report import write_charts
from tracefile import decode_log, encode_initial_state, encode_workload, read_file, write_file

logger = logging.getLogger("io_tracker")

INIT_FILE = "real_trace.init"
DATA_FILE = "real_trace.data"


def seal(input_path, output_dir="data", seed=None, charts_dir=None):
    log = decode_log(read_file(input_path))
    init, workload, stats = reduce(log, random.Random(seed))

    print(f"Blocks {stats.blocks}, txs {stats.transactions}, ops {stats.accesses}")
    print(f"Touched set {stats.touched}, init set {stats.initial_entries}")
    print(f"Final task {stats.read_tasks} r {stats.write_tasks} w")

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    write_file(out / INIT_FILE, encode_initial_state(init))
    write_file(out / DATA_FILE, encode_workload(workload))
    if charts_dir:
        write_charts(workload, stats, charts_dir)
    logger.info("wrote %s and %s", out / INIT_FILE, out / DATA_FILE)
    return out / INIT_FILE, out / DATA_FILE


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(prog="io-tracker", description="EVM IO Tracker.")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("fetch", help="replay blocks from a node into a shard")
    p.add_argument("--node-url", default=os.environ.get("IO_TRACKER_NODE_URL", fetcher.DEFAULT_NODE_URL))
    p.add_argument("--start-block", type=int, required=True)
    p.add_argument("--batch-size", type=positive_int, default=fetcher.DEFAULT_BATCH_SIZE)
    p.add_argument("--data-dir", default="data")

    p = sub.add_parser("combine", help="splice contiguous shards")
    p.add_argument("--start-block", type=int)
    p.add_argument("--end-block", type=int)
    p.add_argument("--path", default="data")

    p = sub.add_parser("seal", help="reduce a combined log into replay files")
    p.add_argument("--input", required=True)
    p.add_argument("--output", default="data")
    p.add_argument("--seed", type=int, help="seed for the initial-state shuffle")
    p.add_argument("--charts", help="directory for workload charts")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s: %(name)s - %(message)s")

    if args.command == "fetch":
        w3 = fetcher.connect(args.node_url)
        fetcher.fetch_to_shard(w3, args.start_block, args.batch_size, args.data_dir)
    elif args.command == "combine":
        shards.combine(args.path, args.start_block, args.end_block)
    elif args.command == "seal":
        seal(args.input, args.output, args.seed, args.charts)
    return 0


if __name__ == "__main__":
    sys.exit(main())
