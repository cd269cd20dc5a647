"""
shards - name, discover and splice per-batch access-log files.

A shard holding `length` blocks starting at block `start` is called
`<start>_<length>.trace`. Combining requires the selected shards to cover
one gap-free, non-overlapping range.
"""

import logging
import re
from pathlib import Path

from errors import NoShardsFound, ShardContiguityViolation
from tracefile import decode_log, encode_log, read_file, write_file

logger = logging.getLogger(__name__)

SHARD_NAME = re.compile(r"^(\d+)_(\d+)\.trace$")


def shard_name(start: int, length: int) -> str:
    return f"{start}_{length}.trace"


def find_shards(directory, start_block=None, end_block=None) -> list:
    """(path, start, length) of shards overlapping [start_block, end_block), sorted by start."""
    found = []
    for path in Path(directory).iterdir():
        if not path.is_file():
            continue
        m = SHARD_NAME.match(path.name)
        if not m:
            continue
        start, length = int(m.group(1)), int(m.group(2))
        if start_block is not None and start + length <= start_block:
            continue
        if end_block is not None and start >= end_block:
            continue
        found.append((path, start, length))
    found.sort(key=lambda s: s[1])
    return found


def check_contiguous(shards):
    for (prev_path, prev_start, prev_len), (next_path, next_start, _) in zip(shards, shards[1:]):
        if prev_start + prev_len != next_start:
            raise ShardContiguityViolation(prev_path, next_path)


def combine_logs(shards, loader, start_block=None, end_block=None) -> list:
    """Concatenate the block logs of contiguous shards, keeping blocks inside the range."""
    if not shards:
        raise NoShardsFound("Not found traces")
    check_contiguous(shards)
    combined = []
    for path, start, _ in shards:
        for offset, block in enumerate(loader(path)):
            number = start + offset
            if start_block is not None and number < start_block:
                continue
            if end_block is not None and number >= end_block:
                continue
            combined.append(block)
    return combined


def combine(directory, start_block=None, end_block=None, output_dir=None) -> Path:
    shards = find_shards(directory, start_block, end_block)
    combined = combine_logs(shards, lambda p: decode_log(read_file(p)), start_block, end_block)
    actual_start = start_block if start_block is not None else shards[0][1]
    output = Path(output_dir or directory) / f"combined_{actual_start}_{len(combined)}.trace"
    write_file(output, encode_log(combined))
    logger.info("combined %d shard(s) into %s (%d blocks)", len(shards), output, len(combined))
    return output
