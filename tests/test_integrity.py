import unittest

from errors import IntegrityMismatch, StackUnderflow
from integrity import BINARY, UNARY, verify
from opcodes import Op

MAX = 2 ** 256 - 1


class TestArithmetic(unittest.TestCase):
    def test_add_wraps(self):
        # top of stack is the last element
        verify(Op.ADD, [1, MAX], [0])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.ADD, [1, MAX], [2 ** 256])

    def test_div_by_zero_is_zero(self):
        verify(Op.DIV, [0, 10], [0])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.DIV, [0, 10], [1])

    def test_operand_order(self):
        # a = top, b = below: SUB is a - b, DIV is a // b
        verify(Op.SUB, [3, 10], [7])
        verify(Op.SUB, [10, 3], [MAX - 6])
        verify(Op.DIV, [3, 10], [3])
        verify(Op.LT, [3, 10], [0])
        verify(Op.GT, [3, 10], [1])

    def test_mul_wraps(self):
        verify(Op.MUL, [2, 2 ** 255], [0])

    def test_shifts_and_byte(self):
        verify(Op.SHL, [0xFF, 8], [0xFF00])
        verify(Op.SHL, [1, 256], [0])
        verify(Op.SHR, [0xFF00, 8], [0xFF])
        verify(Op.BYTE, [0xAB, 31], [0xAB])
        verify(Op.BYTE, [0xAB, 32], [0])

    def test_literal_results(self):
        # operand order matters for these: a = top, b = below
        verify(Op.EXP, [3, 2], [8])
        verify(Op.EXP, [2, 3], [9])
        verify(Op.MOD, [3, 10], [1])
        verify(Op.MOD, [0, 10], [0])
        verify(Op.BYTE, [0x1122, 30], [0x11])
        verify(Op.BYTE, [0xAB << 248, 0], [0xAB])
        verify(Op.SHL, [3, 4], [48])
        verify(Op.SHR, [48, 4], [3])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.EXP, [3, 2], [9])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SHR, [48, 4], [768])

    def test_signed_comparisons(self):
        verify(Op.SLT, [0, MAX], [1])
        verify(Op.SLT, [MAX, 0], [0])
        verify(Op.SGT, [MAX, 0], [1])
        verify(Op.SGT, [0, MAX], [0])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SLT, [0, MAX], [0])

    def test_sar(self):
        verify(Op.SAR, [MAX - 1, 1], [MAX])
        verify(Op.SAR, [16, 2], [4])
        verify(Op.SAR, [MAX - 1, 300], [MAX])
        verify(Op.SAR, [16, 300], [0])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SAR, [MAX - 1, 1], [(MAX - 1) >> 1])

    def test_signed_division(self):
        minus_ten = 2 ** 256 - 10
        verify(Op.SDIV, [MAX, 10], [minus_ten])
        verify(Op.SDIV, [3, minus_ten], [2 ** 256 - 3])
        verify(Op.SDIV, [0, minus_ten], [0])
        verify(Op.SDIV, [MAX, 2 ** 255], [2 ** 255])
        verify(Op.SMOD, [3, minus_ten], [MAX])
        verify(Op.SMOD, [2 ** 256 - 3, 10], [1])
        verify(Op.SMOD, [0, 10], [0])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SDIV, [MAX, 10], [0])

    def test_signextend(self):
        verify(Op.SIGNEXTEND, [0xFF, 0], [MAX])
        verify(Op.SIGNEXTEND, [0x7F, 0], [0x7F])
        verify(Op.SIGNEXTEND, [0x1280, 0], [MAX - 0x7F])
        verify(Op.SIGNEXTEND, [0x8000, 1], [MAX - 0x7FFF])
        verify(Op.SIGNEXTEND, [0xFF, 31], [0xFF])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SIGNEXTEND, [0xFF, 0], [0xFF])

    def test_self_consistent_results_pass(self):
        samples = [(0, 0), (1, 2), (MAX, MAX), (2 ** 128, 3), (7, 0), (255, 256)]
        for opcode, fn in BINARY.items():
            for a, b in samples:
                verify(opcode, [b, a], [fn(a, b)])
                with self.assertRaises(IntegrityMismatch):
                    verify(opcode, [b, a], [(fn(a, b) + 1) & MAX])
        for opcode, fn in UNARY.items():
            verify(opcode, [5], [fn(5)])

    def test_iszero_and_not(self):
        verify(Op.ISZERO, [0], [1])
        verify(Op.NOT, [0], [MAX])

    def test_missing_push_is_a_mismatch(self):
        with self.assertRaises(IntegrityMismatch):
            verify(Op.ADD, [1, 2], [])

    def test_underflow(self):
        with self.assertRaises(StackUnderflow) as ctx:
            verify(Op.ADD, [1], [1], pc=12)
        self.assertEqual(ctx.exception.needed, 2)
        self.assertEqual(ctx.exception.pc, 12)

    def test_mismatch_carries_position(self):
        with self.assertRaises(IntegrityMismatch) as ctx:
            verify(Op.ADD, [1, 1], [3], pc=40)
        self.assertEqual(ctx.exception.opcode, Op.ADD)
        self.assertEqual(ctx.exception.pc, 40)
        self.assertEqual(ctx.exception.expected, 2)
        self.assertEqual(ctx.exception.reported, 3)


class TestStackShuffles(unittest.TestCase):
    def test_dup3(self):
        a, b, c = 10, 20, 30
        verify(Op.DUP3, [99, a, b, c], [a, b, c, a])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.DUP3, [99, a, b, c], [a, b, c, c])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.DUP3, [99, a, b, c], [a, 21, c, a])

    def test_dup_underflow(self):
        with self.assertRaises(StackUnderflow):
            verify(Op.DUP3, [1, 2], [1, 2, 1])

    def test_swap2(self):
        x, y, z = 1, 2, 3
        verify(Op.SWAP2, [x, y, z], [z, y, x])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SWAP2, [x, y, z], [z, 5, x])
        with self.assertRaises(IntegrityMismatch):
            verify(Op.SWAP2, [x, y, z], [x, y, z])

    def test_swap1(self):
        verify(Op.SWAP1, [4, 5], [5, 4])

    def test_unchecked_instructions_pass(self):
        verify(Op.SLOAD, [], [])
        verify(Op.CALL, [], [123])
        verify(Op.INVALID, [], [])


if __name__ == "__main__":
    unittest.main()
