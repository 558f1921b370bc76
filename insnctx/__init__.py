"""
Instruction-level semantic context for dynamic binary analysis.
"""

# Record and value types
from .core import (
    MAX_OPCODE_SIZE,
    AccessEntry,
    AccessSet,
    AccessView,
    ExpressionArena,
    ExpressionKind,
    Immediate,
    Instruction,
    InstructionPool,
    MemoryAccess,
    NodeHandle,
    OperandType,
    RecordState,
    Register,
    RegisterSnapshot,
    SymbolicExpression,
    register_id,
)
from .exceptions import InstructionContextError, InvalidArgument, InvalidOperand, StaleHandleError

# Ambient
from .config import Settings
from .logging_config import configure_logging

__version__ = "0.1.0"

__all__ = [
    "MAX_OPCODE_SIZE",
    "AccessEntry",
    "AccessSet",
    "AccessView",
    "ExpressionArena",
    "ExpressionKind",
    "Immediate",
    "Instruction",
    "InstructionPool",
    "MemoryAccess",
    "NodeHandle",
    "OperandType",
    "RecordState",
    "Register",
    "RegisterSnapshot",
    "SymbolicExpression",
    "register_id",
    "InstructionContextError",
    "InvalidArgument",
    "InvalidOperand",
    "StaleHandleError",
    "Settings",
    "configure_logging",
]
