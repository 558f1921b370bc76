"""
Instruction record: the semantic context of one processed machine instruction.

The record is filled in pipeline order. The lifter sets the opcode bytes,
scalars and operand list; the expression builder registers every access with
the node that models it and attaches its symbolic expressions; the taint
engine finally calls `compute_taint()`. After that the record is read-only
until `reset()` (new, unrelated instruction) or `partial_reset()` (re-lift of
the same instruction keeping the observed register state and memory log).

The record is not synchronized. Use one record per analysis thread.

Every NodeHandle and SymbolicExpression stored here is a non-owning reference
into an ExpressionArena. Reading them after the arena is released is a
precondition violation (StaleHandleError is raised on resolution).
"""

import io
from enum import Enum
from typing import Iterable, List, Optional, Union

from ..exceptions import InvalidArgument, InvalidOperand
from .access_set import AccessSet, AccessView
from .expressions import NodeHandle, SymbolicExpression
from .operands import MAX_ADDRESS, Immediate, MemoryAccess, Operand, Register
from .register_state import RegisterSnapshot

# Capacity of the opcode buffer. x86 instructions are at most 15 bytes long.
MAX_OPCODE_SIZE = 16


class RecordState(Enum):
    """
    Lifecycle of a record: FRESH after construction or a reset, LIFTED once
    anything is set, FINALIZED after compute_taint().

    FRESH does not imply empty concrete state: after partial_reset() the
    register snapshot and memory-access log are still populated.
    """

    FRESH = 1
    LIFTED = 2
    FINALIZED = 3


class Instruction:
    """
    Semantic context of a single instruction.

    Args:
        opcodes: Optional raw instruction bytes to load with `set_opcodes`
        size: Number of bytes of `opcodes` to use (defaults to all of them)
    """

    def __init__(self, opcodes: Optional[Iterable[int]] = None, size: Optional[int] = None):
        self._address = 0
        self._size = 0
        self._type = 0
        self._prefix = 0
        self._thread_id = 0
        self._branch = False
        self._control_flow = False
        self._condition_taken = False
        self._tainted = False
        self._opcodes = bytearray(MAX_OPCODE_SIZE)
        self._disassembly = io.StringIO()
        self._operands: List[Operand] = []

        self._load_access: AccessSet[MemoryAccess] = AccessSet()
        self._store_access: AccessSet[MemoryAccess] = AccessSet()
        self._read_registers: AccessSet[Register] = AccessSet()
        self._written_registers: AccessSet[Register] = AccessSet()
        self._read_immediates: AccessSet[Immediate] = AccessSet()
        self._symbolic_expressions: List[SymbolicExpression] = []

        # Survive partial_reset()
        self._register_state = RegisterSnapshot()
        self._memory_access: List[MemoryAccess] = []

        self._state = RecordState.FRESH

        if opcodes is not None:
            self.set_opcodes(opcodes, size)

    def _touch(self) -> None:
        if self._state is RecordState.FRESH:
            self._state = RecordState.LIFTED

    # --- Copy ---

    def copy(self) -> "Instruction":
        """
        Value copy of scalars and collections.

        Node handles and symbolic expressions are shared with the source, not
        cloned; mutating the copy's collections leaves the source untouched.
        """
        other = Instruction()
        other._address = self._address
        other._size = self._size
        other._type = self._type
        other._prefix = self._prefix
        other._thread_id = self._thread_id
        other._branch = self._branch
        other._control_flow = self._control_flow
        other._condition_taken = self._condition_taken
        other._tainted = self._tainted
        other._opcodes = bytearray(self._opcodes)
        other._disassembly.write(self._disassembly.getvalue())
        other._operands = list(self._operands)
        other._load_access = self._load_access.copy()
        other._store_access = self._store_access.copy()
        other._read_registers = self._read_registers.copy()
        other._written_registers = self._written_registers.copy()
        other._read_immediates = self._read_immediates.copy()
        other._symbolic_expressions = list(self._symbolic_expressions)
        other._register_state = self._register_state.copy()
        other._memory_access = list(self._memory_access)
        other._state = self._state
        return other

    def __copy__(self) -> "Instruction":
        return self.copy()

    def __deepcopy__(self, memo) -> "Instruction":
        # The expression graph belongs to its arena and is never cloned.
        return self.copy()

    # --- Scalars ---

    def get_address(self) -> int:
        return self._address

    def set_address(self, address: int) -> None:
        self._address = address & MAX_ADDRESS
        self._touch()

    def get_next_address(self) -> int:
        """
        Address of the following instruction.

        Precondition: the size has been set (decode done). Before that the
        result is simply the instruction address.
        """
        return (self._address + self._size) & MAX_ADDRESS

    def get_size(self) -> int:
        return self._size

    def set_size(self, size: int) -> None:
        if not 0 <= size <= MAX_OPCODE_SIZE:
            raise InvalidOperand(f"Instruction.set_size(): Invalid size {size} (max {MAX_OPCODE_SIZE}).")
        self._size = size
        self._touch()

    def get_opcodes(self) -> bytes:
        return bytes(self._opcodes[: self._size])

    def set_opcodes(self, opcodes: Iterable[int], size: Optional[int] = None) -> None:
        """
        Load the raw instruction bytes.

        Args:
            opcodes: Instruction bytes
            size: Number of bytes to copy; defaults to len(opcodes)

        Raises:
            InvalidOperand: if size exceeds MAX_OPCODE_SIZE or the data given.
                The previous opcodes and size are left unchanged.
        """
        data = bytes(opcodes)
        if size is None:
            size = len(data)
        if size > MAX_OPCODE_SIZE:
            raise InvalidOperand("Instruction.set_opcodes(): Invalid size (too big).")
        if size < 0 or size > len(data):
            raise InvalidOperand(f"Instruction.set_opcodes(): Invalid size {size} for {len(data)} bytes.")

        self._opcodes[:] = bytes(MAX_OPCODE_SIZE)
        self._opcodes[:size] = data[:size]
        self._size = size
        self._touch()

    def get_type(self) -> int:
        return self._type

    def set_type(self, insn_type: int) -> None:
        self._type = insn_type
        self._touch()

    def get_prefix(self) -> int:
        return self._prefix

    def set_prefix(self, prefix: int) -> None:
        self._prefix = prefix
        self._touch()

    def is_prefixed(self) -> bool:
        return self._prefix != 0

    def get_thread_id(self) -> int:
        return self._thread_id

    def set_thread_id(self, thread_id: int) -> None:
        self._thread_id = thread_id

    def get_disassembly(self) -> str:
        return self._disassembly.getvalue()

    def set_disassembly(self, text: str) -> None:
        self._disassembly.seek(0)
        self._disassembly.truncate()
        self._disassembly.write(text)
        self._touch()

    def is_branch(self) -> bool:
        return self._branch

    def set_branch(self, flag: bool) -> None:
        self._branch = flag
        self._touch()

    def is_control_flow(self) -> bool:
        return self._control_flow

    def set_control_flow(self, flag: bool) -> None:
        self._control_flow = flag
        self._touch()

    def is_condition_taken(self) -> bool:
        return self._condition_taken

    def set_condition_taken(self, flag: bool) -> None:
        self._condition_taken = flag
        self._touch()

    # --- Operands ---

    def get_operands(self) -> List[Operand]:
        return list(self._operands)

    def set_operands(self, operands: Iterable[Operand]) -> None:
        self._operands = list(operands)
        self._touch()

    def add_operand(self, operand: Operand) -> None:
        self._operands.append(operand)
        self._touch()

    # --- Accesses ---
    # Getters return read-only views over the live sets. Register accesses
    # through the set_* methods below; copy() a view to keep a snapshot.

    def get_load_access(self) -> AccessView[MemoryAccess]:
        return self._load_access.view()

    def get_store_access(self) -> AccessView[MemoryAccess]:
        return self._store_access.view()

    def get_read_registers(self) -> AccessView[Register]:
        return self._read_registers.view()

    def get_written_registers(self) -> AccessView[Register]:
        return self._written_registers.view()

    def get_read_immediates(self) -> AccessView[Immediate]:
        return self._read_immediates.view()

    def set_load_access(self, mem: MemoryAccess, node: Optional[NodeHandle]) -> None:
        self._load_access.add(mem, node)
        self._touch()

    def set_store_access(self, mem: MemoryAccess, node: Optional[NodeHandle]) -> None:
        self._store_access.add(mem, node)
        self._touch()

    def set_read_register(self, reg: Register, node: Optional[NodeHandle]) -> None:
        self._read_registers.add(reg, node)
        self._touch()

    def set_written_register(self, reg: Register, node: Optional[NodeHandle]) -> None:
        self._written_registers.add(reg, node)
        self._touch()

    def set_read_immediate(self, imm: Immediate, node: Optional[NodeHandle]) -> None:
        self._read_immediates.add(imm, node)
        self._touch()

    def is_memory_read(self) -> bool:
        return len(self._load_access) > 0

    def is_memory_write(self) -> bool:
        return len(self._store_access) > 0

    # --- Concrete context ---

    def update_context(self, operand: Union[Register, MemoryAccess]) -> None:
        """
        Record concrete machine state seen while processing this instruction.

        A Register updates the register snapshot (last write wins per parent
        register). A MemoryAccess is appended to the memory access log, which
        also keeps touches that have no symbolic node.
        """
        if isinstance(operand, Register):
            self._register_state.update(operand)
        elif isinstance(operand, MemoryAccess):
            self._memory_access.append(operand)
        else:
            raise InvalidArgument(
                f"Instruction.update_context(): expected Register or MemoryAccess, got {type(operand).__name__}"
            )

    def get_register_state(self, reg: Union[Register, int]) -> Register:
        """
        Concrete value recorded for a register.

        Returns a zero-valued register when nothing was recorded; callers
        cannot tell "never written" from "written with zero" through this call.
        """
        return self._register_state.get(reg)

    def get_register_snapshot(self) -> RegisterSnapshot:
        return self._register_state

    def get_memory_access_log(self) -> List[MemoryAccess]:
        return list(self._memory_access)

    # --- Symbolic expressions & taint ---

    def add_symbolic_expression(self, expr: SymbolicExpression) -> None:
        if expr is None:
            raise InvalidArgument("Instruction.add_symbolic_expression(): Cannot add a null expression.")
        self._symbolic_expressions.append(expr)
        self._touch()

    def get_symbolic_expressions(self) -> List[SymbolicExpression]:
        return list(self._symbolic_expressions)

    def compute_taint(self) -> bool:
        """
        Recompute the cached taint summary from the attached expressions.

        Per-expression taint must already be resolved by the expression
        builder. Returns the new summary.
        """
        self._tainted = any(expr.is_tainted for expr in self._symbolic_expressions)
        self._state = RecordState.FINALIZED
        return self._tainted

    def is_tainted(self) -> bool:
        """Taint summary as of the last compute_taint() call."""
        return self._tainted

    def is_symbolized(self) -> bool:
        """True if any attached expression contains a free variable. Independent of taint."""
        return any(expr.is_symbolized() for expr in self._symbolic_expressions)

    # --- Lifecycle ---

    def get_state(self) -> RecordState:
        return self._state

    def reset(self) -> None:
        """Clear everything, including the register snapshot and memory log."""
        self.partial_reset()
        self._memory_access.clear()
        self._register_state.clear()

    def partial_reset(self) -> None:
        """
        Clear the record for a re-lift of the same instruction.

        Scalars, flags, opcodes, disassembly, operands, access sets and
        symbolic expressions are cleared. The register snapshot and the memory
        access log are kept.
        """
        self._address = 0
        self._size = 0
        self._type = 0
        self._prefix = 0
        self._thread_id = 0
        self._branch = False
        self._control_flow = False
        self._condition_taken = False
        self._tainted = False
        self._opcodes[:] = bytes(MAX_OPCODE_SIZE)
        self._disassembly.seek(0)
        self._disassembly.truncate()
        self._operands.clear()
        self._load_access.clear()
        self._store_access.clear()
        self._read_registers.clear()
        self._written_registers.clear()
        self._read_immediates.clear()
        self._symbolic_expressions.clear()
        self._state = RecordState.FRESH

    def __str__(self) -> str:
        return f"{self._address:x}: {self.get_disassembly()}"

    def __repr__(self) -> str:
        return f"<Instruction {self._address:#x} size={self._size} state={self._state.name}>"
