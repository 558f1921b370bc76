"""
Collaborator interfaces.

The lifter, the expression builder and the taint/symbolic engine live outside
this package. These protocols describe what the instruction record expects
from them; any object with matching methods can drive a record.
"""

from typing import Protocol, runtime_checkable

from .core.expressions import ExpressionArena
from .core.instruction import Instruction


@runtime_checkable
class Lifter(Protocol):
    """Decodes raw bytes: fills opcodes, scalars, disassembly and operands."""

    def disassembly(self, inst: Instruction) -> None:
        ...


@runtime_checkable
class SemanticsBuilder(Protocol):
    """
    Emits the semantics of a decoded instruction into an arena and registers
    each access/expression on the record (set_*_access, set_*_register,
    set_read_immediate, add_symbolic_expression).
    """

    arena: ExpressionArena

    def build_semantics(self, inst: Instruction) -> bool:
        ...


@runtime_checkable
class TaintEngine(Protocol):
    """Consumes a lifted record and propagates taint into global machine state."""

    def process(self, inst: Instruction) -> None:
        ...


def process_instruction(
    inst: Instruction, lifter: Lifter, builder: SemanticsBuilder, engine: TaintEngine
) -> bool:
    """
    Run one record through the pipeline: decode, lift, taint.

    Returns:
        The result of `builder.build_semantics` (False if the builder did not
        support the instruction). The record is finalized in either case.
    """
    lifter.disassembly(inst)
    supported = builder.build_semantics(inst)
    inst.compute_taint()
    engine.process(inst)
    return supported
