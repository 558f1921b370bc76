"""
Operand descriptors: registers, memory accesses and immediates.

Descriptors are frozen value types. Equality and hashing use the operand
identity only (register id, memory address/size, immediate value/size), so
two reads of the same register with different observed values are the same
operand. Concrete values are masked to the operand width.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

from ..exceptions import InvalidOperand
from .registers import (
    ID_REG_INVALID,
    RegisterSpec,
    lookup_register,
    lookup_register_by_name,
)

MAX_ADDRESS = (1 << 64) - 1


class OperandType(Enum):
    INVALID = 0
    IMM = 1
    MEM = 2
    REG = 3


def _mask(value: int, bit_size: int) -> int:
    if bit_size <= 0:
        return 0
    return value & ((1 << bit_size) - 1)


@dataclass(frozen=True)
class Register:
    """
    A CPU register operand.

    Args:
        reg_id: Register id from the register table, or its name (e.g. "ah")
        concrete_value: Value observed for this register, masked to its width
    """

    reg_id: Union[int, str]
    concrete_value: int = field(default=0, compare=False)

    def __post_init__(self):
        if isinstance(self.reg_id, str):
            spec = lookup_register_by_name(self.reg_id)
            if spec is None:
                raise InvalidOperand(f"Register(): unknown register name {self.reg_id!r}")
        else:
            spec = lookup_register(self.reg_id)
            if spec is None:
                raise InvalidOperand(f"Register(): unknown register id {self.reg_id}")
        object.__setattr__(self, "reg_id", spec.id)
        object.__setattr__(self, "concrete_value", _mask(self.concrete_value, spec.bit_size))

    @property
    def spec(self) -> RegisterSpec:
        return lookup_register(self.reg_id)  # type: ignore[return-value]

    def get_id(self) -> int:
        return self.reg_id  # type: ignore[return-value]

    def get_name(self) -> str:
        return self.spec.name

    def get_bit_size(self) -> int:
        return self.spec.bit_size

    def get_size(self) -> int:
        """Size in bytes; single-bit flags occupy one byte."""
        return (self.get_bit_size() + 7) // 8

    def get_bitvector(self) -> Tuple[int, int]:
        """(high, low) bit positions inside the parent register."""
        return self.spec.high, self.spec.low

    def get_parent(self) -> "Register":
        """The full-width register this one aliases, with no concrete value."""
        return Register(self.spec.parent)

    def get_parent_id(self) -> int:
        return self.spec.parent

    def get_concrete_value(self) -> int:
        return self.concrete_value

    def with_value(self, value: int) -> "Register":
        """Return a copy of this register carrying another concrete value."""
        return replace(self, concrete_value=value)

    def get_type(self) -> OperandType:
        return OperandType.REG

    def is_valid(self) -> bool:
        return self.reg_id != ID_REG_INVALID

    def is_flag(self) -> bool:
        return self.spec.is_flag

    def is_register(self) -> bool:
        return self.is_valid() and not self.is_flag()

    def __str__(self) -> str:
        high, low = self.get_bitvector()
        return f"{self.get_name()}:{self.get_bit_size()} bv[{high}..{low}]"


@dataclass(frozen=True)
class MemoryAccess:
    """
    A memory operand: `size` bytes at `address`.

    Only (address, size) take part in equality; the concrete value and the
    addressing components (base, index, scale, displacement) are decoration
    recorded by the lifter.
    """

    address: int
    size: int
    concrete_value: int = field(default=0, compare=False)
    base: Optional[Register] = field(default=None, compare=False)
    index: Optional[Register] = field(default=None, compare=False)
    scale: int = field(default=1, compare=False)
    displacement: int = field(default=0, compare=False)

    def __post_init__(self):
        if self.size <= 0:
            raise InvalidOperand(f"MemoryAccess(): invalid size {self.size}")
        object.__setattr__(self, "address", self.address & MAX_ADDRESS)
        object.__setattr__(self, "concrete_value", _mask(self.concrete_value, self.size * 8))

    def get_address(self) -> int:
        return self.address

    def get_size(self) -> int:
        return self.size

    def get_bit_size(self) -> int:
        return self.size * 8

    def get_bitvector(self) -> Tuple[int, int]:
        return self.get_bit_size() - 1, 0

    def get_concrete_value(self) -> int:
        return self.concrete_value

    def with_value(self, value: int) -> "MemoryAccess":
        return replace(self, concrete_value=value)

    def get_base_register(self) -> Optional[Register]:
        return self.base

    def get_index_register(self) -> Optional[Register]:
        return self.index

    def get_scale(self) -> int:
        return self.scale

    def get_displacement(self) -> int:
        return self.displacement

    def get_type(self) -> OperandType:
        return OperandType.MEM

    def __str__(self) -> str:
        high, low = self.get_bitvector()
        return f"[@{self.address:#x}]:{self.get_bit_size()} bv[{high}..{low}]"


@dataclass(frozen=True)
class Immediate:
    """A constant operand of `size` bytes."""

    value: int
    size: int

    def __post_init__(self):
        if self.size <= 0:
            raise InvalidOperand(f"Immediate(): invalid size {self.size}")
        object.__setattr__(self, "value", _mask(self.value, self.size * 8))

    def get_value(self) -> int:
        return self.value

    def get_size(self) -> int:
        return self.size

    def get_bit_size(self) -> int:
        return self.size * 8

    def get_bitvector(self) -> Tuple[int, int]:
        return self.get_bit_size() - 1, 0

    def get_type(self) -> OperandType:
        return OperandType.IMM

    def __str__(self) -> str:
        high, low = self.get_bitvector()
        return f"{self.value:#x}:{self.get_bit_size()} bv[{high}..{low}]"


Operand = Union[Register, MemoryAccess, Immediate]
