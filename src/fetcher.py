"""
fetcher - pull vmTraces and receipts for a range of blocks from a node and
turn them into access-log shards.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from web3 import Web3

from shards import shard_name
from slots import parse_address
from tracefile import encode_log, write_file
from vm import TraceWalker

logger = logging.getLogger(__name__)

DEFAULT_NODE_URL = "http://127.0.0.1:8545/"
DEFAULT_BATCH_SIZE = 50


class RPCError(Exception):
    pass


def connect(node_url: str = DEFAULT_NODE_URL) -> Web3:
    return Web3(Web3.HTTPProvider(node_url, request_kwargs={"timeout": 600}))


def _request(w3: Web3, method: str, params: list):
    resp = w3.provider.make_request(method, params)
    if resp.get("error"):
        raise RPCError(f"{method} failed: {resp['error']}")
    return resp["result"]


def acting_contract(receipt: dict):
    """Receipt's `to`, or the created contract for deployments; None if neither."""
    to, created = receipt.get("to"), receipt.get("contractAddress")
    if to:
        return parse_address(to)
    if created:
        return parse_address(created)
    return None


def block_accesses(replays: list, receipts: list, walker: TraceWalker = None) -> list:
    if len(replays) != len(receipts):
        raise RPCError(f"{len(replays)} traces but {len(receipts)} receipts")
    walker = walker or TraceWalker()
    block = []
    for replay, receipt in zip(replays, receipts):
        contract = acting_contract(receipt)
        if contract is None:
            continue
        vm_trace = replay.get("vmTrace")
        if vm_trace is None:
            continue
        block.append(walker.walk_transaction(vm_trace, contract))
    return block


def fetch_block(w3: Web3, number: int, walker: TraceWalker = None) -> list:
    tag = hex(number)
    replays = _request(w3, "trace_replayBlockTransactions", [tag, ["trace", "vmTrace"]])
    receipts = _request(w3, "eth_getBlockReceipts", [tag])
    return block_accesses(replays, receipts, walker)


def fetch_batch(w3: Web3, start_block: int, batch_size: int = DEFAULT_BATCH_SIZE) -> list:
    """
    Fetch `batch_size` consecutive blocks in parallel. Any failure aborts
    the whole batch; results are in block order.
    """
    if batch_size < 1:
        raise ValueError(f"batch size must be positive, got {batch_size}")
    with ThreadPoolExecutor(max_workers=batch_size) as pool:
        futures = [pool.submit(fetch_block, w3, start_block + i) for i in range(batch_size)]
        return [f.result() for f in futures]


def fetch_to_shard(w3: Web3, start_block: int, batch_size: int = DEFAULT_BATCH_SIZE, data_dir="data") -> Path:
    start = time.perf_counter()
    blocks = fetch_batch(w3, start_block, batch_size)
    out = Path(data_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / shard_name(start_block, batch_size)
    write_file(path, encode_log(blocks))
    items = sum(len(tx) for block in blocks for tx in block)
    print(f"Block number {start_block} to {start_block + batch_size - 1}: "
          f"{items} items ({time.perf_counter() - start:.2f}s)")
    return path
