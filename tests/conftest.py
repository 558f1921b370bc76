import itertools

import pytest
import z3

from insnctx.core.expressions import ExpressionArena, ExpressionKind, SymbolicExpression


@pytest.fixture
def arena():
    with ExpressionArena() as arena:
        yield arena


@pytest.fixture
def make_expr(arena):
    """Factory attaching a z3 expression to the arena as a SymbolicExpression."""
    ids = itertools.count()

    def _make(expr=None, tainted=False, kind=ExpressionKind.VOLATILE, comment=""):
        if expr is None:
            expr = z3.BitVecVal(0, 64)
        node = arena.new_node(expr)
        return SymbolicExpression(next(ids), node, arena, kind=kind, comment=comment, is_tainted=tainted)

    return _make
