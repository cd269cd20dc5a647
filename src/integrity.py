"""
integrity - recompute a subset of instruction results and compare them with
what the trace reports.

The walker never computes results itself; it trusts the trace's pushes.
These checks are what catch a wrong arity entry, a misrouted sub-call or a
corrupted trace before the simulated stack drifts silently.

Stacks are lists with the top at the end. Reported pushes are in the same
order (last element ends up on top).
"""

from opcodes import Op, dup_depth, is_dup, is_swap, swap_depth
from errors import IntegrityMismatch, StackUnderflow
from slots import WORD_BITS, WORD_MASK


def _div(a, b):
    return 0 if b == 0 else a // b


def _mod(a, b):
    return 0 if b == 0 else a % b


def _byte(i, x):
    if i >= 32:
        return 0
    return (x >> (8 * (31 - i))) & 0xFF


def _shl(shift, value):
    if shift >= WORD_BITS:
        return 0
    return (value << shift) & WORD_MASK


def _shr(shift, value):
    if shift >= WORD_BITS:
        return 0
    return value >> shift


def _signed(x):
    return x - (1 << WORD_BITS) if x >> (WORD_BITS - 1) else x


def _sdiv(a, b):
    sa, sb = _signed(a), _signed(b)
    if sb == 0:
        return 0
    q = abs(sa) // abs(sb)
    # truncates toward zero; MIN / -1 wraps back to MIN
    return (-q if (sa < 0) != (sb < 0) else q) & WORD_MASK


def _smod(a, b):
    sa, sb = _signed(a), _signed(b)
    if sb == 0:
        return 0
    r = abs(sa) % abs(sb)
    return (-r if sa < 0 else r) & WORD_MASK


def _signextend(size, x):
    if size >= 31:
        return x
    sign_bit = 8 * size + 7
    low = (1 << (sign_bit + 1)) - 1
    if x >> sign_bit & 1:
        return x | (WORD_MASK ^ low)
    return x & low


def _sar(shift, value):
    return (_signed(value) >> min(shift, WORD_BITS)) & WORD_MASK


# a is the top of the stack, b the operand below it
BINARY = {
    Op.ADD: lambda a, b: (a + b) & WORD_MASK,
    Op.SUB: lambda a, b: (a - b) & WORD_MASK,
    Op.MUL: lambda a, b: (a * b) & WORD_MASK,
    Op.DIV: _div,
    Op.MOD: _mod,
    Op.EXP: lambda a, b: pow(a, b, 1 << WORD_BITS),
    Op.LT: lambda a, b: int(a < b),
    Op.GT: lambda a, b: int(a > b),
    Op.EQ: lambda a, b: int(a == b),
    Op.AND: lambda a, b: a & b,
    Op.OR: lambda a, b: a | b,
    Op.XOR: lambda a, b: a ^ b,
    Op.BYTE: _byte,
    Op.SHL: _shl,
    Op.SHR: _shr,
    Op.SDIV: _sdiv,
    Op.SMOD: _smod,
    Op.SIGNEXTEND: _signextend,
    Op.SLT: lambda a, b: int(_signed(a) < _signed(b)),
    Op.SGT: lambda a, b: int(_signed(a) > _signed(b)),
    Op.SAR: _sar,
}

UNARY = {
    Op.ISZERO: lambda a: int(a == 0),
    Op.NOT: lambda a: a ^ WORD_MASK,
}


def _operands(stack, count, pc):
    if len(stack) < count:
        raise StackUnderflow(count, len(stack), pc)
    return stack[len(stack) - count:]


def _single_push(opcode, pc, expected, pushes):
    if not pushes:
        raise IntegrityMismatch(opcode, pc, expected, None)
    if pushes[0] != expected:
        raise IntegrityMismatch(opcode, pc, expected, pushes[0])


def check_binary(opcode, stack, pushes, pc=None):
    b, a = _operands(stack, 2, pc)
    _single_push(opcode, pc, BINARY[opcode](a, b), pushes)


def check_unary(opcode, stack, pushes, pc=None):
    (a,) = _operands(stack, 1, pc)
    _single_push(opcode, pc, UNARY[opcode](a), pushes)


def check_dup(opcode, stack, pushes, pc=None):
    k = dup_depth(opcode)
    window = _operands(stack, k, pc)
    expected = window + [window[0]]
    if list(pushes) != expected:
        raise IntegrityMismatch(opcode, pc, expected, list(pushes))


def check_swap(opcode, stack, pushes, pc=None):
    k = swap_depth(opcode)
    window = _operands(stack, k + 1, pc)
    expected = [window[-1]] + window[1:-1] + [window[0]]
    if list(pushes) != expected:
        raise IntegrityMismatch(opcode, pc, expected, list(pushes))


def _build_checkers():
    checkers = {}
    for opcode in BINARY:
        checkers[opcode] = check_binary
    for opcode in UNARY:
        checkers[opcode] = check_unary
    for opcode in Op:
        if is_dup(opcode):
            checkers[opcode] = check_dup
        elif is_swap(opcode):
            checkers[opcode] = check_swap
    return checkers


CHECKERS = _build_checkers()


def verify(opcode, stack, pushes, pc=None):
    """
    Raise IntegrityMismatch if the reported pushes of a checked instruction
    disagree with a recomputation from `stack` (the simulated stack before
    the instruction). Unchecked instructions always pass.
    """
    checker = CHECKERS.get(opcode)
    if checker is not None:
        checker(opcode, stack, pushes, pc)
