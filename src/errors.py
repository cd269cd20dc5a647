"""Failures raised while replaying traces and handling trace files."""


class TraceReplayError(Exception):
    pass


class IntegrityMismatch(TraceReplayError):
    def __init__(self, opcode, pc, expected, reported):
        self.opcode = opcode
        self.pc = pc
        self.expected = expected
        self.reported = reported
        super().__init__(f"Integrity check fail: {getattr(opcode, 'name', opcode)} at pc {pc}: "
                         f"expected {expected!r}, trace reported {reported!r}")


class StackUnderflow(TraceReplayError):
    def __init__(self, needed: int, depth: int, pc=None):
        self.needed = needed
        self.depth = depth
        self.pc = pc
        super().__init__(f"Stack underflow at pc {pc}: need {needed} operand(s), simulated depth is {depth}")


class UnresolvedCreationAddress(TraceReplayError):
    def __init__(self, pc):
        self.pc = pc
        super().__init__(f"Contract creation at pc {pc} has a sub-trace but no reported address")


class CallDepthExceeded(TraceReplayError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Call depth limit {limit} exceeded")


class ShardContiguityViolation(TraceReplayError):
    def __init__(self, previous, following):
        self.previous = previous
        self.following = following
        super().__init__(f"Provided files are not consecutive ranges: {previous} -> {following}.")


class NoShardsFound(TraceReplayError):
    pass


class TraceFileError(TraceReplayError):
    pass
