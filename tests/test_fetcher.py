import shutil
import tempfile
import unittest
from pathlib import Path

import fetcher
from slots import Read, StorageKey, Write
from tracefile import decode_log

from tracebuild import addr, op, trace

TO = addr(0x10)
CREATED = addr(0x20)


def tx_trace(slot, value):
    return trace(op("PUSH1", slot), op("SLOAD", value), op("PUSH1", slot), op("SSTORE"))


class FakeProvider:
    def __init__(self, blocks, fail_on=None):
        self.blocks = blocks
        self.fail_on = fail_on
        self.calls = []

    def make_request(self, method, params):
        self.calls.append((method, params))
        number = int(params[0], 16)
        if number == self.fail_on:
            return {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "boom"}}
        replays, receipts = self.blocks[number]
        if method == "trace_replayBlockTransactions":
            self.assert_trace_types(params[1])
            return {"jsonrpc": "2.0", "id": 1, "result": replays}
        return {"jsonrpc": "2.0", "id": 1, "result": receipts}

    @staticmethod
    def assert_trace_types(types):
        assert types == ["trace", "vmTrace"], types


class FakeWeb3:
    def __init__(self, provider):
        self.provider = provider


def sample_blocks():
    return {
        7: (
            [{"vmTrace": tx_trace(1, 5)}, {"vmTrace": tx_trace(2, 6)}, {"vmTrace": None}, {"vmTrace": tx_trace(3, 0)}],
            [{"to": "0x" + TO.hex(), "contractAddress": None},
             {"to": None, "contractAddress": "0x" + CREATED.hex()},
             {"to": "0x" + TO.hex(), "contractAddress": None},
             {"to": None, "contractAddress": None}],
        ),
        8: ([], []),
    }


class TestFetchBlock(unittest.TestCase):
    def test_block_accesses(self):
        w3 = FakeWeb3(FakeProvider(sample_blocks()))
        block = fetcher.fetch_block(w3, 7)
        self.assertEqual(block, [
            [Read(StorageKey(TO, 1), 5), Write(StorageKey(TO, 1), 5)],
            [Read(StorageKey(CREATED, 2), 6), Write(StorageKey(CREATED, 2), 6)],
        ])
        self.assertEqual([c[0] for c in w3.provider.calls], ["trace_replayBlockTransactions", "eth_getBlockReceipts"])

    def test_mismatched_lengths(self):
        with self.assertRaises(fetcher.RPCError):
            fetcher.block_accesses([{"vmTrace": None}], [])

    def test_rpc_error(self):
        w3 = FakeWeb3(FakeProvider(sample_blocks(), fail_on=7))
        with self.assertRaises(fetcher.RPCError):
            fetcher.fetch_block(w3, 7)

    def test_acting_contract(self):
        self.assertEqual(fetcher.acting_contract({"to": "0x" + TO.hex()}), TO)
        self.assertEqual(fetcher.acting_contract({"to": None, "contractAddress": "0x" + CREATED.hex()}), CREATED)
        self.assertIsNone(fetcher.acting_contract({"to": None, "contractAddress": None}))


class TestFetchBatch(unittest.TestCase):
    def setUp(self) -> None:
        self.dir = Path(tempfile.mkdtemp())

    def tearDown(self) -> None:
        shutil.rmtree(self.dir)

    def test_batch_in_block_order(self):
        w3 = FakeWeb3(FakeProvider(sample_blocks()))
        path = fetcher.fetch_to_shard(w3, 7, 2, self.dir)
        self.assertEqual(path.name, "7_2.trace")
        log = decode_log(path.read_bytes())
        self.assertEqual(len(log), 2)
        self.assertEqual(len(log[0]), 2)
        self.assertEqual(log[1], [])

    def test_empty_batch_is_rejected(self):
        w3 = FakeWeb3(FakeProvider(sample_blocks()))
        for size in (0, -1):
            with self.assertRaisesRegex(ValueError, "batch size must be positive"):
                fetcher.fetch_batch(w3, 7, size)
        self.assertEqual(w3.provider.calls, [])

    def test_one_failure_aborts_the_batch(self):
        w3 = FakeWeb3(FakeProvider(sample_blocks(), fail_on=8))
        with self.assertRaises(fetcher.RPCError):
            fetcher.fetch_to_shard(w3, 7, 2, self.dir)
        self.assertEqual(list(self.dir.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
