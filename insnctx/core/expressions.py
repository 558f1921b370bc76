"""
Expression graph handles and symbolic expressions.

The expression graph itself (z3 bit-vector ASTs) is built and owned by the
expression builder. Nodes live in a session-scoped ExpressionArena; everything
else in this package, instruction records included, only holds NodeHandle
values pointing into it.

Lifetime precondition: a handle is only meaningful while its arena is alive.
Records must be reset or dropped before (or together with) the arena's
release. Resolving a handle after release raises StaleHandleError.
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

import structlog
import z3

from ..exceptions import InvalidArgument, StaleHandleError
from .operands import MemoryAccess, Register

logger = structlog.get_logger()

_arena_ids = itertools.count(1)


def has_free_variables(expr: z3.ExprRef) -> bool:
    """
    Check whether an expression mentions an uninterpreted constant.

    Walks the DAG iteratively and visits each shared node once, so the cost
    is linear in the number of distinct nodes.
    """
    seen = set()
    stack = [expr]
    while stack:
        node = stack.pop()
        node_id = node.get_id()
        if node_id in seen:
            continue
        seen.add(node_id)
        if z3.is_const(node) and node.decl().kind() == z3.Z3_OP_UNINTERPRETED:
            return True
        stack.extend(node.children())
    return False


@dataclass(frozen=True)
class NodeHandle:
    """Lightweight, hashable reference to a node owned by an ExpressionArena."""

    arena_id: int
    index: int

    def __str__(self) -> str:
        return f"node#{self.arena_id}.{self.index}"


class ExpressionArena:
    """
    Owns the z3 expressions produced during one analysis session.

    Nodes are appended and never freed individually; `release()` drops the
    whole graph at once and invalidates every handle issued so far.
    """

    def __init__(self):
        self.arena_id = next(_arena_ids)
        self._nodes: List[z3.ExprRef] = []
        self._released = False

    def new_node(self, expr: z3.ExprRef) -> NodeHandle:
        """Store an expression and return a handle to it."""
        if self._released:
            raise StaleHandleError(f"ExpressionArena {self.arena_id} was released")
        if not isinstance(expr, z3.ExprRef):
            raise InvalidArgument(f"ExpressionArena.new_node(): expected a z3 expression, got {type(expr).__name__}")
        self._nodes.append(expr)
        return NodeHandle(self.arena_id, len(self._nodes) - 1)

    def resolve(self, handle: NodeHandle) -> z3.ExprRef:
        """Return the expression behind a handle."""
        if self._released:
            raise StaleHandleError(f"{handle} resolved after arena {self.arena_id} was released")
        if handle.arena_id != self.arena_id or not 0 <= handle.index < len(self._nodes):
            raise StaleHandleError(f"{handle} does not belong to arena {self.arena_id}")
        return self._nodes[handle.index]

    def owns(self, handle: NodeHandle) -> bool:
        return not self._released and handle.arena_id == self.arena_id and handle.index < len(self._nodes)

    def release(self) -> None:
        """Tear down the graph. Every outstanding handle becomes stale."""
        if self._released:
            return
        logger.debug("Releasing expression arena", arena_id=self.arena_id, nodes=len(self._nodes))
        self._nodes.clear()
        self._released = True

    def is_released(self) -> bool:
        return self._released

    def __len__(self) -> int:
        return len(self._nodes)

    def __enter__(self) -> "ExpressionArena":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ExpressionKind(Enum):
    REGISTER = 1
    MEMORY = 2
    VOLATILE = 3


class SymbolicExpression:
    """
    An engine-owned expression attributed to an instruction.

    Pairs a node handle with the taint flag resolved by the expression builder.
    Compared by identity: two expressions over the same node are still two
    distinct semantic effects.
    """

    def __init__(
        self,
        expr_id: int,
        node: NodeHandle,
        arena: ExpressionArena,
        kind: ExpressionKind = ExpressionKind.VOLATILE,
        comment: str = "",
        is_tainted: bool = False,
        origin: Optional[Union[Register, MemoryAccess]] = None,
    ):
        self.id = expr_id
        self.node = node
        self.arena = arena
        self.kind = kind
        self.comment = comment
        self.is_tainted = is_tainted
        self.origin = origin

    def get_id(self) -> int:
        return self.id

    def get_node(self) -> NodeHandle:
        return self.node

    def get_ast(self) -> z3.ExprRef:
        """Resolve the node through the owning arena (arena must be alive)."""
        return self.arena.resolve(self.node)

    def get_kind(self) -> ExpressionKind:
        return self.kind

    def get_comment(self) -> str:
        return self.comment

    def get_origin(self) -> Optional[Union[Register, MemoryAccess]]:
        return self.origin

    def set_tainted(self, flag: bool) -> None:
        self.is_tainted = flag

    def is_symbolized(self) -> bool:
        """True if the node contains at least one free variable."""
        return has_free_variables(self.get_ast())

    def __str__(self) -> str:
        text = f"ref!{self.id} = {self.get_ast()}"
        if self.comment:
            text += f" ; {self.comment}"
        return text

    def __repr__(self) -> str:
        return f"SymbolicExpression(id={self.id}, node={self.node}, kind={self.kind.name}, tainted={self.is_tainted})"
