import copy

import pytest
import z3

from insnctx.core.expressions import ExpressionArena, SymbolicExpression
from insnctx.core.instruction import Instruction, RecordState
from insnctx.core.operands import Immediate, MemoryAccess, Register
from insnctx.core.registers import register_id
from insnctx.exceptions import StaleHandleError


def _lifted(arena, make_expr) -> Instruction:
    inst = Instruction(b"\x48\x8b\x03")
    inst.set_address(0x401000)
    inst.set_disassembly("mov rax, qword ptr [rbx]")
    inst.set_type(12)
    inst.set_prefix(0x66)
    inst.set_thread_id(3)
    inst.set_branch(True)
    inst.set_operands([Register("rax"), MemoryAccess(0x2000, 8)])
    inst.set_load_access(MemoryAccess(0x2000, 8), arena.new_node(z3.BitVec("mem_2000", 64)))
    inst.set_read_register(Register("rbx"), arena.new_node(z3.BitVecVal(0x2000, 64)))
    inst.set_written_register(Register("rax"), arena.new_node(z3.BitVec("mem_2000", 64)))
    inst.set_read_immediate(Immediate(1, 1), arena.new_node(z3.BitVecVal(1, 8)))
    inst.add_symbolic_expression(make_expr(z3.BitVec("mem_2000", 64), tainted=True))
    inst.update_context(Register("rax", 0x10))
    inst.update_context(MemoryAccess(0x2000, 8, concrete_value=0x10))
    inst.compute_taint()
    return inst


def _assert_fresh(inst: Instruction) -> None:
    fresh = Instruction()
    assert inst.get_address() == fresh.get_address()
    assert inst.get_size() == fresh.get_size()
    assert inst.get_opcodes() == fresh.get_opcodes()
    assert inst.get_type() == fresh.get_type()
    assert inst.get_prefix() == fresh.get_prefix()
    assert not inst.is_prefixed()
    assert inst.get_thread_id() == fresh.get_thread_id()
    assert inst.get_disassembly() == ""
    assert not (inst.is_branch() or inst.is_control_flow() or inst.is_condition_taken() or inst.is_tainted())
    assert inst.get_operands() == []
    for access in (
        inst.get_load_access(),
        inst.get_store_access(),
        inst.get_read_registers(),
        inst.get_written_registers(),
        inst.get_read_immediates(),
    ):
        assert len(access) == 0
    assert inst.get_symbolic_expressions() == []
    assert not inst.is_symbolized()
    assert inst.get_state() == RecordState.FRESH


def test_reset_matches_fresh_record(arena, make_expr):
    inst = _lifted(arena, make_expr)
    inst.reset()
    _assert_fresh(inst)
    assert len(inst.get_register_snapshot()) == 0
    assert inst.get_memory_access_log() == []


def test_partial_reset_keeps_concrete_state(arena, make_expr):
    """Register snapshot and memory log survive a partial reset."""
    inst = _lifted(arena, make_expr)
    inst.partial_reset()
    _assert_fresh(inst)
    assert inst.get_register_state(register_id("rax")).get_concrete_value() == 0x10
    assert len(inst.get_load_access()) == 0
    assert len(inst.get_memory_access_log()) == 1
    # FRESH again, yet still carrying concrete state
    assert inst.get_state() == RecordState.FRESH
    assert len(inst.get_register_snapshot()) == 1


def test_state_transitions(arena, make_expr):
    inst = Instruction()
    assert inst.get_state() == RecordState.FRESH
    inst.set_address(0x10)
    assert inst.get_state() == RecordState.LIFTED
    inst.compute_taint()
    assert inst.get_state() == RecordState.FINALIZED
    # Further lifting without reset keeps the record finalized
    inst.set_read_register(Register("rax"), arena.new_node(z3.BitVecVal(0, 64)))
    assert inst.get_state() == RecordState.FINALIZED
    inst.partial_reset()
    assert inst.get_state() == RecordState.FRESH


def test_relift_without_reset_accumulates(arena, make_expr):
    inst = _lifted(arena, make_expr)
    # A second lift produces new nodes, so the entries are not deduplicated
    inst.set_load_access(MemoryAccess(0x2000, 8), arena.new_node(z3.BitVec("mem_2000", 64)))
    inst.add_symbolic_expression(make_expr(z3.BitVec("mem_2000", 64)))
    assert len(inst.get_load_access()) == 2
    assert len(inst.get_symbolic_expressions()) == 2


def test_copy_is_value_copy(arena, make_expr):
    inst = _lifted(arena, make_expr)
    clone = inst.copy()

    assert clone.get_address() == inst.get_address()
    assert clone.get_opcodes() == inst.get_opcodes()
    assert clone.get_disassembly() == inst.get_disassembly()
    assert clone.get_thread_id() == inst.get_thread_id()
    assert clone.is_tainted() == inst.is_tainted()
    assert clone.get_load_access() == inst.get_load_access()
    assert clone.get_read_registers() == inst.get_read_registers()
    assert clone.get_register_snapshot() == inst.get_register_snapshot()
    assert clone.get_memory_access_log() == inst.get_memory_access_log()
    assert clone.get_state() == inst.get_state()
    # Expressions are shared, not cloned
    assert clone.get_symbolic_expressions()[0] is inst.get_symbolic_expressions()[0]

    clone.set_store_access(MemoryAccess(0x3000, 8), arena.new_node(z3.BitVecVal(0, 64)))
    clone.update_context(Register("rcx", 5))
    clone.add_symbolic_expression(make_expr())
    clone.set_disassembly("nop")
    assert not inst.is_memory_write()
    assert not inst.get_register_snapshot().contains(Register("rcx"))
    assert len(inst.get_symbolic_expressions()) == 1
    assert inst.get_disassembly() == "mov rax, qword ptr [rbx]"


def test_copy_module_protocol(arena, make_expr):
    inst = _lifted(arena, make_expr)
    shallow = copy.copy(inst)
    deep = copy.deepcopy(inst)
    assert shallow.get_load_access() == inst.get_load_access()
    assert deep.get_symbolic_expressions()[0] is inst.get_symbolic_expressions()[0]


def test_reset_copy_leaves_source_intact(arena, make_expr):
    inst = _lifted(arena, make_expr)
    clone = inst.copy()
    clone.reset()
    assert inst.get_size() == 3
    assert len(inst.get_register_snapshot()) == 1


def test_symbolized_after_arena_release_raises():
    arena = ExpressionArena()
    inst = Instruction()
    inst.add_symbolic_expression(SymbolicExpression(0, arena.new_node(z3.BitVec("x", 8)), arena))
    arena.release()
    with pytest.raises(StaleHandleError):
        inst.is_symbolized()
