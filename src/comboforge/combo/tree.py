"""Combo tree: the program representation.

A ComboTree wraps a root node, for example the tree for
    and($1 !$2 0<(+($3 -0.5)))

Trees are validated on construction and treated as immutable once built;
composite trees are assembled from nodes and grafted copies, then wrapped.
"""

from dataclasses import dataclass, field
from typing import Any
import hashlib

from comboforge.combo.types import Builtin, DataType
from comboforge.combo.nodes import (
    ArgumentNode,
    Node,
    OperatorNode,
    children_of,
    collect_nodes,
    count_nodes,
    get_depth,
)


@dataclass(eq=False)
class ComboTree:
    """Ordered, rooted tree of vertices.

    Attributes:
        root: The root node of the tree
        metadata: Optional metadata (e.g. origin, deme)
    """

    root: Node
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate tree structure."""
        problem = self._find_problem()
        if problem:
            raise ValueError(f"Invalid combo tree structure: {problem}")

    @classmethod
    def from_builtin(cls, builtin: Builtin, *children: Node) -> "ComboTree":
        """Build a tree whose root is builtin with the given children."""
        return cls(root=OperatorNode(builtin=builtin, children=list(children)))

    @property
    def size(self) -> int:
        """Get total number of nodes."""
        return count_nodes(self.root)

    @property
    def depth(self) -> int:
        """Get tree depth."""
        return get_depth(self.root)

    @property
    def return_type(self) -> DataType:
        """Get the return type of the tree."""
        return self.root.return_type

    @property
    def formula(self) -> str:
        """Get the canonical combo text of the tree."""
        from comboforge.combo.iostream import render

        return render(self)

    @property
    def hash(self) -> str:
        """Get a hash of the formula for deduplication."""
        return hashlib.md5(self.formula.encode()).hexdigest()[:12]

    def is_valid(self) -> bool:
        """Check if tree is structurally valid."""
        return self._find_problem() is None

    def _find_problem(self) -> str | None:
        seen: set[int] = set()
        stack = [self.root]
        while stack:
            node = stack.pop()
            if id(node) in seen:
                return "node shared between branches (not a strict tree)"
            seen.add(id(node))
            if isinstance(node, OperatorNode) and not node.is_complete():
                return (
                    f"operator '{node.builtin.token}' cannot take "
                    f"{len(node.children)} children"
                )
            stack.extend(children_of(node))
        return None

    def clone(self) -> "ComboTree":
        """Create a deep copy of the tree."""
        return ComboTree(
            root=self.root.clone(),
            metadata=dict(self.metadata),
        )

    def get_nodes(self) -> list[Node]:
        """Get all nodes in the tree (pre-order)."""
        return collect_nodes(self.root)

    def get_arguments(self) -> list[int]:
        """Get the sorted absolute argument indices used in the tree."""
        indices = {
            node.abs_index for node in self.get_nodes()
            if isinstance(node, ArgumentNode)
        }
        return sorted(indices)

    def get_operators(self) -> list[Builtin]:
        """Get builtins used in the tree, in pre-order."""
        return [
            node.builtin for node in self.get_nodes()
            if isinstance(node, OperatorNode)
        ]

    def __str__(self) -> str:
        return self.formula

    def __repr__(self) -> str:
        return f"ComboTree({self.formula}, size={self.size}, depth={self.depth})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComboTree):
            return False
        return self.root == other.root

    def __hash__(self) -> int:
        return hash(self.formula)
