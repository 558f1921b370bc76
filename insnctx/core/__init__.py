"""
Instruction record and the value types it aggregates.
"""

from .access_set import AccessEntry, AccessSet, AccessView
from .expressions import ExpressionArena, ExpressionKind, NodeHandle, SymbolicExpression
from .instruction import MAX_OPCODE_SIZE, Instruction, RecordState
from .operands import Immediate, MemoryAccess, Operand, OperandType, Register
from .pool import InstructionPool
from .register_state import RegisterSnapshot
from .registers import ID_REG_INVALID, REGISTER_TABLE, RegisterSpec, register_id

__all__ = [
    "AccessEntry",
    "AccessSet",
    "AccessView",
    "ExpressionArena",
    "ExpressionKind",
    "NodeHandle",
    "SymbolicExpression",
    "MAX_OPCODE_SIZE",
    "Instruction",
    "RecordState",
    "Immediate",
    "MemoryAccess",
    "Operand",
    "OperandType",
    "Register",
    "InstructionPool",
    "RegisterSnapshot",
    "ID_REG_INVALID",
    "REGISTER_TABLE",
    "RegisterSpec",
    "register_id",
]
