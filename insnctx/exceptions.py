"""
Exceptions raised by the instruction context.

All errors are raised synchronously to the direct caller, before any state is
mutated. Nothing in this package logs or swallows them.
"""


class InstructionContextError(Exception):
    """Base class for every error raised by insnctx."""


class InvalidOperand(InstructionContextError, ValueError):
    """An operand or opcode value does not fit the architecture."""


class InvalidArgument(InstructionContextError, TypeError):
    """A caller passed an argument the record cannot accept (e.g. None)."""


class StaleHandleError(InstructionContextError, LookupError):
    """A node handle was resolved after its arena was released, or against a foreign arena."""
