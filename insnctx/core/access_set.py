"""
Deduplicated, insertion-ordered sets of (operand, node handle) pairs.
"""

from typing import Dict, Generic, Iterator, List, NamedTuple, Optional, Tuple, TypeVar

from .expressions import NodeHandle
from .operands import Immediate, MemoryAccess, Register

OperandT = TypeVar("OperandT", Register, MemoryAccess, Immediate)


class AccessEntry(NamedTuple):
    operand: object
    node: Optional[NodeHandle]


class AccessView(Generic[OperandT]):
    """
    Read-only view over operand/node pairs.

    A view shares its entries with the AccessSet it was taken from, so it
    follows later insertions and resets of that set but cannot change it.
    Use `copy()` for an independent, mutable snapshot.
    """

    def __init__(self, entries: Dict[Tuple[OperandT, Optional[NodeHandle]], AccessEntry]):
        self._entries = entries

    def operands(self) -> List[OperandT]:
        return [entry.operand for entry in self._entries.values()]  # type: ignore[misc]

    def nodes(self) -> List[Optional[NodeHandle]]:
        return [entry.node for entry in self._entries.values()]

    def copy(self) -> "AccessSet[OperandT]":
        return AccessSet(self._entries)

    def __contains__(self, item) -> bool:
        if isinstance(item, tuple) and len(item) == 2:
            return tuple(item) in self._entries
        return False

    def __iter__(self) -> Iterator[AccessEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AccessView):
            return NotImplemented
        return list(self._entries) == list(other._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({[(str(e.operand), str(e.node)) for e in self._entries.values()]})"


class AccessSet(AccessView[OperandT]):
    """
    Ordered set of operand/node pairs.

    Keys are (operand, handle): the operand compares on its identity, the
    handle on (arena, index). Re-adding an identical pair is a no-op, while
    the same operand paired with a different node is a new entry.
    Iteration follows first-insertion order.
    """

    def __init__(self, entries: Optional[Dict[Tuple[OperandT, Optional[NodeHandle]], AccessEntry]] = None):
        super().__init__(dict(entries or {}))

    def add(self, operand: OperandT, node: Optional[NodeHandle]) -> bool:
        """Insert a pair. Returns False if it was already present."""
        key = (operand, node)
        if key in self._entries:
            return False
        self._entries[key] = AccessEntry(operand, node)
        return True

    def clear(self) -> None:
        self._entries.clear()

    def view(self) -> AccessView[OperandT]:
        return AccessView(self._entries)
