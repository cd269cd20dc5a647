"""
vm - replay of a transaction's vmTrace to recover its storage accesses.

Features:
- Simulated operand stack per call frame, advanced by instruction arity and
  the pushes the trace reports
- Integrity checks on every instruction before the stack moves
- Nested CALL/STATICCALL/CALLCODE/DELEGATECALL/CREATE/CREATE2 sub-traces
  walked with the right storage context, depth-first, before the calling
  instruction's own effect
- Explicit frame stack instead of native recursion, with a depth limit
"""

import logging

from opcodes import CALL_FAMILY, DELEGATING_CALLS, STANDARD_CALLS, Op, arity, resolve
from errors import CallDepthExceeded, IntegrityMismatch, StackUnderflow, UnresolvedCreationAddress
from integrity import verify
from slots import Read, StorageKey, Write, ZERO_ADDRESS, parse_address, parse_word, word_to_address

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 1024


class Frame:
    """One call frame: the ops still to replay, its own stack and storage context."""

    def __init__(self, trace: dict, contract: bytes, depth: int):
        self.ops = [op for op in (trace.get("ops") or []) if op.get("ex") is not None]
        self.ip = 0
        self.stack = []
        self.contract = contract
        self.depth = depth
        # instruction waiting for its sub-trace to finish
        self.pending = None

    def next_op(self):
        if self.ip >= len(self.ops):
            return None
        op = self.ops[self.ip]
        self.ip += 1
        return op

    def peek(self, n: int, pc=None) -> int:
        """n-th operand from the top, 1-based"""
        if len(self.stack) < n:
            raise StackUnderflow(n, len(self.stack), pc)
        return self.stack[-n]


def _pushes(op: dict) -> list:
    return [parse_word(v) for v in (op["ex"].get("push") or [])]


class TraceWalker:
    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def walk_transaction(self, vm_trace: dict, contract) -> list:
        """
        Replay `vm_trace` for a transaction whose acting contract is `contract`
        and return its storage accesses in execution order.
        """
        accesses = []
        frames = [Frame(vm_trace, parse_address(contract), 0)]
        while frames:
            frame = frames[-1]
            if frame.pending is not None:
                op, opcode, pushes = frame.pending
                frame.pending = None
                self._finish(frame, op, opcode, pushes, accesses)
                continue

            op = frame.next_op()
            if op is None:
                frames.pop()
                if frames:
                    logger.debug("return to depth %d", frames[-1].depth)
                continue

            opcode = resolve(op.get("op"))
            pushes = _pushes(op)
            pc = op.get("pc")
            verify(opcode, frame.stack, pushes, pc)

            sub = op.get("sub")
            if sub is not None and opcode in CALL_FAMILY:
                callee = self._callee(frame, opcode, pushes, pc)
                if frame.depth + 1 > self.max_depth:
                    raise CallDepthExceeded(self.max_depth)
                logger.debug("%s at pc %s enters 0x%s at depth %d",
                             opcode.name, pc, callee.hex(), frame.depth + 1)
                frame.pending = (op, opcode, pushes)
                frames.append(Frame(sub, callee, frame.depth + 1))
                continue

            self._finish(frame, op, opcode, pushes, accesses)
        return accesses

    def _callee(self, frame: Frame, opcode: Op, pushes: list, pc) -> bytes:
        if opcode in STANDARD_CALLS:
            # gas, address, ...
            return word_to_address(frame.peek(2, pc))
        if opcode in DELEGATING_CALLS:
            return frame.contract
        if not pushes:
            raise UnresolvedCreationAddress(pc)
        if pushes[0] == 0:
            logger.warning("%s at pc %s reported no created address, using the zero address", opcode.name, pc)
            return ZERO_ADDRESS
        return word_to_address(pushes[0])

    def _finish(self, frame: Frame, op: dict, opcode: Op, pushes: list, accesses: list):
        pc = op.get("pc")
        if opcode == Op.SLOAD:
            if not pushes:
                raise IntegrityMismatch(opcode, pc, "a loaded value", pushes)
            key = StorageKey(frame.contract, frame.peek(1, pc))
            accesses.append(Read(key, pushes[0]))
        elif opcode == Op.SSTORE:
            key = StorageKey(frame.contract, frame.peek(1, pc))
            accesses.append(Write(key, frame.peek(2, pc)))

        pops = arity(opcode)
        if len(frame.stack) < pops:
            raise StackUnderflow(pops, len(frame.stack), pc)
        if pops:
            del frame.stack[-pops:]
        frame.stack.extend(pushes)


def walk_transaction(vm_trace: dict, contract, max_depth: int = DEFAULT_MAX_DEPTH) -> list:
    return TraceWalker(max_depth).walk_transaction(vm_trace, contract)
