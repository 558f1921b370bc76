"""
Read-only rendering of instruction records for trace output.

Usage:
    export_to_json(records, "trace.json", arena=arena)
    export_to_yaml(records, "trace.yaml", arena=arena)

Rendering resolves node handles, so the expression arena must still be alive.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .core.access_set import AccessView
from .core.expressions import ExpressionArena, NodeHandle
from .core.instruction import Instruction


def _render_node(node: Optional[NodeHandle], arena: Optional[ExpressionArena]) -> Optional[str]:
    if node is None:
        return None
    if arena is None:
        return str(node)
    return str(arena.resolve(node))


def _render_access(entries: AccessView, arena: Optional[ExpressionArena]) -> List[Dict[str, Any]]:
    return [
        {"operand": str(entry.operand), "node": _render_node(entry.node, arena)}
        for entry in entries
    ]


def instruction_to_dict(inst: Instruction, arena: Optional[ExpressionArena] = None) -> Dict[str, Any]:
    """
    Snapshot an instruction record as plain data.

    Args:
        inst: Record to render (not modified)
        arena: Arena used to print nodes; handles are printed as-is without it

    Returns:
        Dictionary of JSON/YAML friendly values
    """
    return {
        "address": hex(inst.get_address()),
        "next_address": hex(inst.get_next_address()),
        "thread_id": inst.get_thread_id(),
        "size": inst.get_size(),
        "opcodes": inst.get_opcodes().hex(),
        "type": inst.get_type(),
        "prefix": inst.get_prefix(),
        "disassembly": inst.get_disassembly(),
        "operands": [str(op) for op in inst.get_operands()],
        "branch": inst.is_branch(),
        "control_flow": inst.is_control_flow(),
        "condition_taken": inst.is_condition_taken(),
        "tainted": inst.is_tainted(),
        "loads": _render_access(inst.get_load_access(), arena),
        "stores": _render_access(inst.get_store_access(), arena),
        "read_registers": _render_access(inst.get_read_registers(), arena),
        "written_registers": _render_access(inst.get_written_registers(), arena),
        "read_immediates": _render_access(inst.get_read_immediates(), arena),
        "register_state": {name: hex(value) for name, value in inst.get_register_snapshot().as_dict().items()},
        "memory_log": [str(mem) for mem in inst.get_memory_access_log()],
        "symbolic_expressions": [
            {
                "id": expr.get_id(),
                "kind": expr.get_kind().name,
                "tainted": expr.is_tainted,
                "ast": _render_node(expr.get_node(), arena),
                "comment": expr.get_comment(),
            }
            for expr in inst.get_symbolic_expressions()
        ],
    }


def export_to_json(instructions: Iterable[Instruction], filename: str, arena: Optional[ExpressionArena] = None) -> None:
    """Export records to a JSON file"""
    data = [instruction_to_dict(inst, arena) for inst in instructions]
    with open(filename, "w") as f:
        json.dump(data, f, indent=2)


def export_to_yaml(instructions: Iterable[Instruction], filename: str, arena: Optional[ExpressionArena] = None) -> None:
    """Export records to a YAML file"""
    data = [instruction_to_dict(inst, arena) for inst in instructions]
    with open(filename, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
