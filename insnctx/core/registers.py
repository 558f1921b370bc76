"""
x86-64 register table.

Each register is described by a RegisterSpec: its numeric id, name, bit range
inside its parent and the id of that parent. Full-width registers and flags
are their own parent. Id 0 is reserved for the invalid register.
"""

from typing import Dict, List, NamedTuple, Optional


class RegisterSpec(NamedTuple):
    id: int
    name: str
    high: int
    low: int
    parent: int
    is_flag: bool = False

    @property
    def bit_size(self) -> int:
        if self.id == ID_REG_INVALID:
            return 0
        return self.high - self.low + 1


ID_REG_INVALID = 0

INVALID_REGISTER = RegisterSpec(ID_REG_INVALID, "unknown", 0, 0, ID_REG_INVALID)

# (parent, 32-bit, 16-bit, low 8-bit, high 8-bit or None)
_GPR_FAMILIES = [
    ("rax", "eax", "ax", "al", "ah"),
    ("rbx", "ebx", "bx", "bl", "bh"),
    ("rcx", "ecx", "cx", "cl", "ch"),
    ("rdx", "edx", "dx", "dl", "dh"),
    ("rdi", "edi", "di", "dil", None),
    ("rsi", "esi", "si", "sil", None),
    ("rbp", "ebp", "bp", "bpl", None),
    ("rsp", "esp", "sp", "spl", None),
    ("r8", "r8d", "r8w", "r8b", None),
    ("r9", "r9d", "r9w", "r9b", None),
    ("r10", "r10d", "r10w", "r10b", None),
    ("r11", "r11d", "r11w", "r11b", None),
    ("r12", "r12d", "r12w", "r12b", None),
    ("r13", "r13d", "r13w", "r13b", None),
    ("r14", "r14d", "r14w", "r14b", None),
    ("r15", "r15d", "r15w", "r15b", None),
]

_FLAGS = ["af", "cf", "df", "if", "of", "pf", "sf", "tf", "zf"]


def _build_table() -> List[RegisterSpec]:
    table: List[RegisterSpec] = [INVALID_REGISTER]

    def add(name: str, high: int, low: int, parent: Optional[int] = None, is_flag: bool = False) -> int:
        reg_id = len(table)
        table.append(RegisterSpec(reg_id, name, high, low, reg_id if parent is None else parent, is_flag))
        return reg_id

    for full, dword, word, byte_low, byte_high in _GPR_FAMILIES:
        parent_id = add(full, 63, 0)
        add(dword, 31, 0, parent_id)
        add(word, 15, 0, parent_id)
        if byte_high is not None:
            add(byte_high, 15, 8, parent_id)
        add(byte_low, 7, 0, parent_id)

    rip = add("rip", 63, 0)
    add("eip", 31, 0, rip)
    add("ip", 15, 0, rip)

    for flag in _FLAGS:
        add(flag, 0, 0, is_flag=True)

    return table


REGISTER_TABLE: List[RegisterSpec] = _build_table()

REGISTERS_BY_NAME: Dict[str, RegisterSpec] = {spec.name: spec for spec in REGISTER_TABLE[1:]}


def lookup_register(reg_id: int) -> Optional[RegisterSpec]:
    """Return the spec for a register id, or None if the id is unknown."""
    if 0 <= reg_id < len(REGISTER_TABLE):
        return REGISTER_TABLE[reg_id]
    return None


def lookup_register_by_name(name: str) -> Optional[RegisterSpec]:
    """Return the spec for a register name (case-insensitive), or None."""
    return REGISTERS_BY_NAME.get(name.lower())


def register_id(name: str) -> int:
    """Convenience for tests and lifters: id of a named register, ID_REG_INVALID if unknown."""
    spec = lookup_register_by_name(name)
    return spec.id if spec is not None else ID_REG_INVALID
