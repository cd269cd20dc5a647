"""
slots - storage keys, observed accesses and reduced workload tasks.

A StorageKey names one storage cell (contract address, slot). Accesses are
what the walker observes; tasks are what the reducer emits for replay, keyed
only by an opaque keccak digest of the StorageKey.
"""

from typing import NamedTuple, Union

from eth_utils import keccak, to_canonical_address

WORD_BITS = 256
WORD_MASK = (1 << WORD_BITS) - 1
ZERO_ADDRESS = b"\x00" * 20


class StorageKey(NamedTuple):
    address: bytes  # 20 raw bytes
    slot: int

    def digest(self) -> bytes:
        return key_digest(self.address, self.slot)


class Read(NamedTuple):
    key: StorageKey
    value: int


class Write(NamedTuple):
    key: StorageKey
    value: int


class ReadTask(NamedTuple):
    digest: bytes


class WriteTask(NamedTuple):
    digest: bytes
    value: bytes  # 32 bytes big-endian


Access = Union[Read, Write]
WorkloadTask = Union[ReadTask, WriteTask]


def word_to_bytes(value: int) -> bytes:
    return value.to_bytes(32, "big")


def word_from_bytes(raw: bytes) -> int:
    return int.from_bytes(raw, "big")


def word_to_address(value: int) -> bytes:
    # low 20 bytes of the word
    return word_to_bytes(value & WORD_MASK)[-20:]


def parse_word(value) -> int:
    """Trace values arrive as hex strings; some tools hand us ints already."""
    if isinstance(value, int):
        return value
    return int(value, 16)


def parse_address(value) -> bytes:
    if isinstance(value, (bytes, bytearray)) and len(value) == 20:
        return bytes(value)
    return to_canonical_address(value)


def key_digest(address: bytes, slot: int) -> bytes:
    """keccak256(address ++ slot as 32-byte big-endian)"""
    return keccak(address + word_to_bytes(slot))
