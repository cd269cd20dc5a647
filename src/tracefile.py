"""
tracefile - binary files exchanged between fetch, combine and seal.

access log (.trace):     MAGIC_LOG  [u32 blocks]  per block [u32 txs]
                         per tx [u32 accesses]  per access [u8 tag][address:20][slot:32][value:32]
initial state (.init):   MAGIC_INIT [u32 count]   per entry [digest:32][value:32]
workload (.data):        MAGIC_WORK [u32 blocks]  per block [u32 tasks]
                         per task [u8 tag][digest:32] (+ [value:32] for writes)

Integers are big-endian. Tags: 0 = read, 1 = write.
"""

import struct
from pathlib import Path

from errors import TraceFileError
from slots import Read, ReadTask, StorageKey, Write, WriteTask, word_from_bytes, word_to_bytes

MAGIC_LOG = b"IOTRACE1"
MAGIC_INIT = b"IOINIT01"
MAGIC_WORK = b"IOWORK01"

TAG_READ = 0
TAG_WRITE = 1

_COUNT = struct.Struct(">I")


class _Reader:
    def __init__(self, data: bytes, magic: bytes):
        self.data = data
        self.pos = 0
        if self.take(len(magic)) != magic:
            raise TraceFileError(f"bad magic, expected {magic!r}")

    def take(self, n: int) -> bytes:
        end = self.pos + n
        if end > len(self.data):
            raise TraceFileError(f"truncated file: wanted {n} bytes at offset {self.pos}")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def count(self) -> int:
        return _COUNT.unpack(self.take(_COUNT.size))[0]

    def tag(self) -> int:
        tag = self.take(1)[0]
        if tag not in (TAG_READ, TAG_WRITE):
            raise TraceFileError(f"unknown tag {tag} at offset {self.pos - 1}")
        return tag

    def finish(self):
        if self.pos != len(self.data):
            raise TraceFileError(f"{len(self.data) - self.pos} trailing bytes")


def encode_log(log) -> bytes:
    out = [MAGIC_LOG, _COUNT.pack(len(log))]
    for block in log:
        out.append(_COUNT.pack(len(block)))
        for tx in block:
            out.append(_COUNT.pack(len(tx)))
            for access in tx:
                tag = TAG_READ if isinstance(access, Read) else TAG_WRITE
                out.append(bytes([tag]))
                out.append(access.key.address)
                out.append(word_to_bytes(access.key.slot))
                out.append(word_to_bytes(access.value))
    return b"".join(out)


def decode_log(data: bytes) -> list:
    r = _Reader(data, MAGIC_LOG)
    log = []
    for _ in range(r.count()):
        block = []
        for _ in range(r.count()):
            tx = []
            for _ in range(r.count()):
                kind = Read if r.tag() == TAG_READ else Write
                key = StorageKey(r.take(20), word_from_bytes(r.take(32)))
                tx.append(kind(key, word_from_bytes(r.take(32))))
            block.append(tx)
        log.append(block)
    r.finish()
    return log


def encode_initial_state(entries) -> bytes:
    out = [MAGIC_INIT, _COUNT.pack(len(entries))]
    for digest, value in entries:
        out.append(digest)
        out.append(value)
    return b"".join(out)


def decode_initial_state(data: bytes) -> list:
    r = _Reader(data, MAGIC_INIT)
    entries = [(r.take(32), r.take(32)) for _ in range(r.count())]
    r.finish()
    return entries


def encode_workload(workload) -> bytes:
    out = [MAGIC_WORK, _COUNT.pack(len(workload))]
    for tasks in workload:
        out.append(_COUNT.pack(len(tasks)))
        for task in tasks:
            if isinstance(task, ReadTask):
                out.append(bytes([TAG_READ]))
                out.append(task.digest)
            else:
                out.append(bytes([TAG_WRITE]))
                out.append(task.digest)
                out.append(task.value)
    return b"".join(out)


def decode_workload(data: bytes) -> list:
    r = _Reader(data, MAGIC_WORK)
    workload = []
    for _ in range(r.count()):
        tasks = []
        for _ in range(r.count()):
            if r.tag() == TAG_READ:
                tasks.append(ReadTask(r.take(32)))
            else:
                tasks.append(WriteTask(r.take(32), r.take(32)))
        workload.append(tasks)
    r.finish()
    return workload


def write_file(path, data: bytes):
    with open(Path(path), "wb") as f:
        f.write(data)


def read_file(path) -> bytes:
    with open(Path(path), "rb") as f:
        return f.read()
