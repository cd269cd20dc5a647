"""
opcodes - instruction table for the trace walker.

Every defined instruction code with its canonical name and the number of
stack operands it consumes. Undefined codes resolve to INVALID (arity 0).
The pop counts for DUPn/SWAPn follow the trace format: the node reports the
whole rewritten window as pushes, so DUPn pops n and SWAPn pops n+1.
"""

import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


class Op(IntEnum):
    STOP = 0x00
    ADD = 0x01
    MUL = 0x02
    SUB = 0x03
    DIV = 0x04
    SDIV = 0x05
    MOD = 0x06
    SMOD = 0x07
    ADDMOD = 0x08
    MULMOD = 0x09
    EXP = 0x0A
    SIGNEXTEND = 0x0B
    LT = 0x10
    GT = 0x11
    SLT = 0x12
    SGT = 0x13
    EQ = 0x14
    ISZERO = 0x15
    AND = 0x16
    OR = 0x17
    XOR = 0x18
    NOT = 0x19
    BYTE = 0x1A
    SHL = 0x1B
    SHR = 0x1C
    SAR = 0x1D
    KECCAK256 = 0x20
    ADDRESS = 0x30
    BALANCE = 0x31
    ORIGIN = 0x32
    CALLER = 0x33
    CALLVALUE = 0x34
    CALLDATALOAD = 0x35
    CALLDATASIZE = 0x36
    CALLDATACOPY = 0x37
    CODESIZE = 0x38
    CODECOPY = 0x39
    GASPRICE = 0x3A
    EXTCODESIZE = 0x3B
    EXTCODECOPY = 0x3C
    RETURNDATASIZE = 0x3D
    RETURNDATACOPY = 0x3E
    EXTCODEHASH = 0x3F
    BLOCKHASH = 0x40
    COINBASE = 0x41
    TIMESTAMP = 0x42
    NUMBER = 0x43
    PREVRANDAO = 0x44
    GASLIMIT = 0x45
    CHAINID = 0x46
    SELFBALANCE = 0x47
    BASEFEE = 0x48
    BLOBHASH = 0x49
    BLOBBASEFEE = 0x4A
    POP = 0x50
    MLOAD = 0x51
    MSTORE = 0x52
    MSTORE8 = 0x53
    SLOAD = 0x54
    SSTORE = 0x55
    JUMP = 0x56
    JUMPI = 0x57
    PC = 0x58
    MSIZE = 0x59
    GAS = 0x5A
    JUMPDEST = 0x5B
    TLOAD = 0x5C
    TSTORE = 0x5D
    MCOPY = 0x5E
    PUSH0 = 0x5F
    PUSH1 = 0x60
    PUSH2 = 0x61
    PUSH3 = 0x62
    PUSH4 = 0x63
    PUSH5 = 0x64
    PUSH6 = 0x65
    PUSH7 = 0x66
    PUSH8 = 0x67
    PUSH9 = 0x68
    PUSH10 = 0x69
    PUSH11 = 0x6A
    PUSH12 = 0x6B
    PUSH13 = 0x6C
    PUSH14 = 0x6D
    PUSH15 = 0x6E
    PUSH16 = 0x6F
    PUSH17 = 0x70
    PUSH18 = 0x71
    PUSH19 = 0x72
    PUSH20 = 0x73
    PUSH21 = 0x74
    PUSH22 = 0x75
    PUSH23 = 0x76
    PUSH24 = 0x77
    PUSH25 = 0x78
    PUSH26 = 0x79
    PUSH27 = 0x7A
    PUSH28 = 0x7B
    PUSH29 = 0x7C
    PUSH30 = 0x7D
    PUSH31 = 0x7E
    PUSH32 = 0x7F
    DUP1 = 0x80
    DUP2 = 0x81
    DUP3 = 0x82
    DUP4 = 0x83
    DUP5 = 0x84
    DUP6 = 0x85
    DUP7 = 0x86
    DUP8 = 0x87
    DUP9 = 0x88
    DUP10 = 0x89
    DUP11 = 0x8A
    DUP12 = 0x8B
    DUP13 = 0x8C
    DUP14 = 0x8D
    DUP15 = 0x8E
    DUP16 = 0x8F
    SWAP1 = 0x90
    SWAP2 = 0x91
    SWAP3 = 0x92
    SWAP4 = 0x93
    SWAP5 = 0x94
    SWAP6 = 0x95
    SWAP7 = 0x96
    SWAP8 = 0x97
    SWAP9 = 0x98
    SWAP10 = 0x99
    SWAP11 = 0x9A
    SWAP12 = 0x9B
    SWAP13 = 0x9C
    SWAP14 = 0x9D
    SWAP15 = 0x9E
    SWAP16 = 0x9F
    LOG0 = 0xA0
    LOG1 = 0xA1
    LOG2 = 0xA2
    LOG3 = 0xA3
    LOG4 = 0xA4
    CREATE = 0xF0
    CALL = 0xF1
    CALLCODE = 0xF2
    RETURN = 0xF3
    DELEGATECALL = 0xF4
    CREATE2 = 0xF5
    STATICCALL = 0xFA
    REVERT = 0xFD
    INVALID = 0xFE
    SELFDESTRUCT = 0xFF


_FIXED_POPS = {
    Op.STOP: 0,
    Op.ADD: 2, Op.MUL: 2, Op.SUB: 2, Op.DIV: 2, Op.SDIV: 2,
    Op.MOD: 2, Op.SMOD: 2, Op.EXP: 2, Op.SIGNEXTEND: 2,
    Op.ADDMOD: 3, Op.MULMOD: 3,
    Op.LT: 2, Op.GT: 2, Op.SLT: 2, Op.SGT: 2, Op.EQ: 2,
    Op.ISZERO: 1, Op.NOT: 1,
    Op.AND: 2, Op.OR: 2, Op.XOR: 2, Op.BYTE: 2,
    Op.SHL: 2, Op.SHR: 2, Op.SAR: 2,
    Op.KECCAK256: 2,
    Op.ADDRESS: 0, Op.BALANCE: 1, Op.ORIGIN: 0, Op.CALLER: 0, Op.CALLVALUE: 0,
    Op.CALLDATALOAD: 1, Op.CALLDATASIZE: 0, Op.CALLDATACOPY: 3,
    Op.CODESIZE: 0, Op.CODECOPY: 3, Op.GASPRICE: 0,
    Op.EXTCODESIZE: 1, Op.EXTCODECOPY: 4,
    Op.RETURNDATASIZE: 0, Op.RETURNDATACOPY: 3, Op.EXTCODEHASH: 1,
    Op.BLOCKHASH: 1, Op.COINBASE: 0, Op.TIMESTAMP: 0, Op.NUMBER: 0,
    Op.PREVRANDAO: 0, Op.GASLIMIT: 0, Op.CHAINID: 0, Op.SELFBALANCE: 0,
    Op.BASEFEE: 0, Op.BLOBHASH: 1, Op.BLOBBASEFEE: 0,
    Op.POP: 1, Op.MLOAD: 1, Op.MSTORE: 2, Op.MSTORE8: 2,
    Op.SLOAD: 1, Op.SSTORE: 2, Op.JUMP: 1, Op.JUMPI: 2,
    Op.PC: 0, Op.MSIZE: 0, Op.GAS: 0, Op.JUMPDEST: 0,
    Op.TLOAD: 1, Op.TSTORE: 2, Op.MCOPY: 3,
    Op.CREATE: 3, Op.CALL: 7, Op.CALLCODE: 7, Op.RETURN: 2,
    Op.DELEGATECALL: 6, Op.CREATE2: 4, Op.STATICCALL: 6,
    Op.REVERT: 2, Op.INVALID: 0, Op.SELFDESTRUCT: 1,
}


def _build_pops():
    pops = dict(_FIXED_POPS)
    for n in range(33):
        pops[Op(Op.PUSH0 + n)] = 0
    for n in range(1, 17):
        pops[Op(Op.DUP1 + n - 1)] = n
        pops[Op(Op.SWAP1 + n - 1)] = n + 1
    for n in range(5):
        pops[Op(Op.LOG0 + n)] = n + 2
    return pops


POPS = _build_pops()

# names some nodes still report for renamed instructions
ALIASES = {
    "SHA3": Op.KECCAK256,
    "DIFFICULTY": Op.PREVRANDAO,
    "SUICIDE": Op.SELFDESTRUCT,
}

STANDARD_CALLS = frozenset({Op.CALL, Op.STATICCALL})
DELEGATING_CALLS = frozenset({Op.CALLCODE, Op.DELEGATECALL})
CREATES = frozenset({Op.CREATE, Op.CREATE2})
CALL_FAMILY = STANDARD_CALLS | DELEGATING_CALLS | CREATES


def arity(opcode) -> int:
    """Number of stack operands consumed by `opcode` (0 for undefined codes)."""
    try:
        return POPS[Op(opcode)]
    except ValueError:
        return 0


def dup_depth(opcode: Op) -> int:
    return opcode - Op.DUP1 + 1


def swap_depth(opcode: Op) -> int:
    return opcode - Op.SWAP1 + 1


def is_dup(opcode: Op) -> bool:
    return Op.DUP1 <= opcode <= Op.DUP16


def is_swap(opcode: Op) -> bool:
    return Op.SWAP1 <= opcode <= Op.SWAP16


def resolve(op) -> Op:
    """
    Map an instruction as reported by a trace (name or numeric code) to an Op.
    Unrecognized instructions are logged and treated as INVALID.
    """
    if isinstance(op, int):
        try:
            return Op(op)
        except ValueError:
            logger.warning("Unknown opcode: 0x%02x", op)
            return Op.INVALID
    name = str(op).strip().upper()
    if name in Op.__members__:
        return Op[name]
    if name in ALIASES:
        return ALIASES[name]
    logger.warning("Unknown opcode: %s", op)
    return Op.INVALID
