"""Combo tree program representation, text I/O and evaluation."""

from comboforge.combo.types import Builtin, DataType, NodeType, OutputFormat
from comboforge.combo.nodes import (
    Node,
    OperatorNode,
    ArgumentNode,
    ConstantNode,
    EnumNode,
    MessageNode,
    WildCardNode,
    AnnNode,
)
from comboforge.combo.tree import ComboTree
from comboforge.combo.iostream import parse, render, parse_output_format
from comboforge.combo.interpreter import TreeInterpreter, evaluate_tree

__all__ = [
    "Builtin",
    "DataType",
    "NodeType",
    "OutputFormat",
    "Node",
    "OperatorNode",
    "ArgumentNode",
    "ConstantNode",
    "EnumNode",
    "MessageNode",
    "WildCardNode",
    "AnnNode",
    "ComboTree",
    "parse",
    "render",
    "parse_output_format",
    "TreeInterpreter",
    "evaluate_tree",
]
