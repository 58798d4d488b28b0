"""Vectorized evaluation of combo trees over tables of input rows.

Each column of the input table is one argument ($1 is the first column).
A tree evaluates to one value per row: a boolean vector for logical trees,
a float vector for contin trees.
"""

from __future__ import annotations

from typing import Callable
import numpy as np
import pandas as pd

from comboforge.combo.types import Builtin
from comboforge.combo.nodes import ArgumentNode, ConstantNode, Node, OperatorNode
from comboforge.combo.tree import ComboTree


def _as_bool(x: np.ndarray) -> np.ndarray:
    if x.dtype == bool:
        return x
    return x.astype(float) != 0.0


def _as_float(x: np.ndarray) -> np.ndarray:
    return x.astype(float)


def _cond(*args: np.ndarray) -> np.ndarray:
    if len(args) % 2 != 1:
        raise ValueError("cond takes condition/value pairs followed by a default")
    if len(args) == 1:
        return _as_float(args[0])
    conditions = [_as_bool(c) for c in args[0:-1:2]]
    values = [_as_float(v) for v in args[1:-1:2]]
    return np.select(conditions, values, default=_as_float(args[-1]))


class TreeInterpreter:
    """Evaluates combo trees on numpy/pandas input tables.

    Only the logical, arithmetic and mixed builtins are evaluable; list,
    lambda and neural-net vertices raise ValueError.
    """

    OPERATORS: dict[Builtin, Callable[..., np.ndarray]] = {}

    def __init__(self, seed: int | None = None) -> None:
        self.rng = np.random.default_rng(seed)
        self._register_operators()

    def _register_operators(self) -> None:
        """Register all operator implementations."""
        self.OPERATORS = {
            # Logic
            Builtin.LOGICAL_AND: lambda *xs: np.logical_and.reduce([_as_bool(x) for x in xs]),
            Builtin.LOGICAL_OR: lambda *xs: np.logical_or.reduce([_as_bool(x) for x in xs]),
            Builtin.LOGICAL_NOT: lambda x: ~_as_bool(x),

            # Arithmetic
            Builtin.PLUS: lambda *xs: np.sum([_as_float(x) for x in xs], axis=0),
            Builtin.TIMES: lambda *xs: np.prod([_as_float(x) for x in xs], axis=0),
            Builtin.DIV: lambda x, y: _as_float(x) / _as_float(y),
            Builtin.LOG: lambda x: np.log(_as_float(x)),
            Builtin.EXP: lambda x: np.exp(_as_float(x)),
            Builtin.SIN: lambda x: np.sin(_as_float(x)),

            # Mixed
            Builtin.GREATER_THAN_ZERO: lambda x: _as_float(x) > 0.0,
            Builtin.IMPULSE: lambda x: _as_bool(x).astype(float),
            Builtin.CONTIN_IF: lambda c, x, y: np.where(_as_bool(c), _as_float(x), _as_float(y)),
            Builtin.COND: _cond,
            Builtin.EQU: lambda x, y: x == y,
        }

    def evaluate(self, tree: ComboTree, inputs: pd.DataFrame | np.ndarray) -> np.ndarray:
        """Evaluate a tree on every row of inputs.

        Args:
            tree: The tree to evaluate
            inputs: Table with one column per argument

        Returns:
            Array with one entry per row
        """
        if isinstance(inputs, pd.DataFrame):
            table = inputs.to_numpy(dtype=float)
        else:
            table = np.asarray(inputs, dtype=float)
        if table.ndim != 2:
            raise ValueError(f"Inputs must be a 2-D table, got shape {table.shape}")

        needed = tree.get_arguments()
        if needed and needed[-1] > table.shape[1]:
            raise ValueError(
                f"Missing columns: tree uses ${needed[-1]} but inputs have {table.shape[1]}"
            )

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            result = self._evaluate_node(tree.root, table)
        return np.broadcast_to(result, (table.shape[0],)).copy()

    def _evaluate_node(self, node: Node, table: np.ndarray) -> np.ndarray:
        """Recursively evaluate a node."""
        n_rows = table.shape[0]

        if isinstance(node, ArgumentNode):
            column = table[:, node.abs_index_from_zero]
            if node.is_negated:
                return ~_as_bool(column)
            return column

        if isinstance(node, ConstantNode):
            return np.full(n_rows, node.value)

        if isinstance(node, OperatorNode):
            if node.builtin == Builtin.LOGICAL_TRUE:
                return np.ones(n_rows, dtype=bool)
            if node.builtin == Builtin.LOGICAL_FALSE:
                return np.zeros(n_rows, dtype=bool)
            if node.builtin == Builtin.RAND:
                return self.rng.random(n_rows)

            op_func = self.OPERATORS.get(node.builtin)
            if op_func is None:
                raise ValueError(f"Cannot evaluate operator: {node.builtin.token}")

            args = [self._evaluate_node(child, table) for child in node.children]
            return op_func(*args)

        raise ValueError(f"Cannot evaluate vertex of type {type(node).__name__}")


_INTERPRETER: TreeInterpreter | None = None


def get_interpreter() -> TreeInterpreter:
    """Get the shared interpreter instance."""
    global _INTERPRETER
    if _INTERPRETER is None:
        _INTERPRETER = TreeInterpreter()
    return _INTERPRETER


def evaluate_tree(tree: ComboTree, inputs: pd.DataFrame | np.ndarray) -> np.ndarray:
    """Convenience function to evaluate a tree with the shared interpreter."""
    return get_interpreter().evaluate(tree, inputs)
