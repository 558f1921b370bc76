import pytest

from insnctx.core.operands import Immediate, MemoryAccess, OperandType, Register
from insnctx.core.registers import ID_REG_INVALID, REGISTER_TABLE, register_id
from insnctx.exceptions import InvalidOperand


def test_register_by_name_and_id():
    """Registers can be built from a name or a table id."""
    ah = Register("ah", 0x18)
    assert ah.get_name() == "ah"
    assert ah.get_id() == register_id("ah")
    assert Register(register_id("ah")) == ah
    assert ah.get_concrete_value() == 0x18
    assert ah.get_type() == OperandType.REG


def test_register_geometry():
    ah = Register("ah")
    assert ah.get_bit_size() == 8
    assert ah.get_size() == 1
    assert ah.get_bitvector() == (15, 8)
    assert ah.get_parent().get_name() == "rax"
    assert str(ah) == "ah:8 bv[15..8]"
    assert str(Register("rax")) == "rax:64 bv[63..0]"


def test_register_value_is_masked():
    assert Register("al", 0x1234).get_concrete_value() == 0x34
    assert Register("eax", -1).get_concrete_value() == 0xFFFFFFFF


def test_register_identity_ignores_value():
    """Equality and hashing use the register id only."""
    a = Register("rbx", 1)
    b = Register("rbx", 2)
    assert a == b
    assert hash(a) == hash(b)
    assert a != Register("ebx", 1)
    assert b.with_value(7).get_concrete_value() == 7


def test_flags_and_validity():
    zf = Register("zf", 1)
    assert zf.is_flag()
    assert not zf.is_register()
    assert zf.get_parent() == zf
    assert Register("rip").is_register()

    invalid = Register(ID_REG_INVALID)
    assert not invalid.is_valid()
    assert invalid.get_bit_size() == 0


def test_unknown_register_rejected():
    with pytest.raises(InvalidOperand):
        Register("xyz")
    with pytest.raises(InvalidOperand):
        Register(len(REGISTER_TABLE) + 10)


def test_register_table_parents_are_full_width():
    for spec in REGISTER_TABLE[1:]:
        parent = REGISTER_TABLE[spec.parent]
        assert parent.parent == parent.id
        assert spec.high <= parent.high


def test_memory_access():
    mem = MemoryAccess(0x1000, 8, concrete_value=0xDEAD, base=Register("rsp"), displacement=-8)
    assert mem.get_address() == 0x1000
    assert mem.get_bit_size() == 64
    assert mem.get_type() == OperandType.MEM
    assert mem.get_base_register() == Register("rsp")
    assert mem.get_displacement() == -8
    assert str(mem) == "[@0x1000]:64 bv[63..0]"
    # Decoration does not take part in identity
    assert mem == MemoryAccess(0x1000, 8)
    assert mem != MemoryAccess(0x1000, 4)


def test_memory_access_invalid_size():
    with pytest.raises(InvalidOperand):
        MemoryAccess(0x1000, 0)


def test_immediate():
    imm = Immediate(0x10, 1)
    assert imm.get_value() == 0x10
    assert str(imm) == "0x10:8 bv[7..0]"
    assert imm.get_type() == OperandType.IMM
    assert Immediate(0x1FF, 1).get_value() == 0xFF
    assert Immediate(1, 1) != Immediate(1, 2)
