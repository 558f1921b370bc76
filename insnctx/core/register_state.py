"""
Concrete register state observed while processing one instruction.
"""

from typing import Dict, Iterator, Optional, Union

from .operands import Register
from .registers import ID_REG_INVALID, lookup_register


class RegisterSnapshot:
    """
    Maps parent register ids to full-width concrete values.

    Writes through a sub-register (e.g. `ah`) are merged into the recorded
    bits of its parent (`rax`); any later write to overlapping bits wins.
    Lookups project the parent value back onto the requested register.
    """

    def __init__(self, entries: Optional[Dict[int, Register]] = None):
        self._entries: Dict[int, Register] = dict(entries or {})

    def update(self, reg: Register) -> None:
        parent_id = reg.get_parent_id()
        if reg.get_id() == parent_id:
            self._entries[parent_id] = reg
            return

        high, low = reg.get_bitvector()
        field_mask = ((1 << (high - low + 1)) - 1) << low
        previous = self._entries.get(parent_id)
        current = previous.get_concrete_value() if previous is not None else 0
        merged = (current & ~field_mask) | (reg.get_concrete_value() << low)
        self._entries[parent_id] = Register(parent_id, merged)

    def get(self, reg: Union[Register, int]) -> Register:
        """
        Return the recorded state of a register.

        A register that was never recorded comes back with a zero value; an
        unknown id comes back as the invalid register. Neither case raises.
        """
        if not isinstance(reg, Register):
            if lookup_register(reg) is None:
                return Register(ID_REG_INVALID)
            reg = Register(reg)

        entry = self._entries.get(reg.get_parent_id())
        if entry is None:
            return Register(reg.get_id())
        high, low = reg.get_bitvector()
        value = (entry.get_concrete_value() >> low) & ((1 << (high - low + 1)) - 1)
        return Register(reg.get_id(), value)

    def contains(self, reg: Union[Register, int]) -> bool:
        if not isinstance(reg, Register):
            spec = lookup_register(reg)
            if spec is None:
                return False
            return spec.parent in self._entries
        return reg.get_parent_id() in self._entries

    def clear(self) -> None:
        self._entries.clear()

    def copy(self) -> "RegisterSnapshot":
        return RegisterSnapshot(self._entries)

    def as_dict(self) -> Dict[str, int]:
        return {reg.get_name(): reg.get_concrete_value() for reg in self._entries.values()}

    def __contains__(self, reg) -> bool:
        return self.contains(reg)

    def __iter__(self) -> Iterator[Register]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RegisterSnapshot):
            return NotImplemented
        return self.as_dict() == other.as_dict()
