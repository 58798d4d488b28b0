"""Combo tree nodes.

Each node holds one vertex of a program:
- OperatorNode: Builtins with children (e.g. and, +, 0<)
- ArgumentNode: Input column references (e.g. $3, !$2)
- ConstantNode: Contin literals (e.g. 0.5)
- EnumNode, MessageNode, WildCardNode, AnnNode: carried through as-is
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import uuid

from comboforge.combo.types import (
    BUILTIN_SIGNATURES,
    Builtin,
    DataType,
    NodeType,
    OperatorSignature,
)


def _new_id() -> str:
    return str(uuid.uuid4())[:8]


@dataclass
class Node(ABC):
    """Abstract base class for combo tree nodes.

    Equality is structural: node_id is excluded from comparison.
    """

    node_id: str = field(default_factory=_new_id, compare=False, repr=False)

    @property
    @abstractmethod
    def node_type(self) -> NodeType:
        """Get the kind of vertex held by this node."""
        pass

    @property
    @abstractmethod
    def return_type(self) -> DataType:
        """Get the return type of this node."""
        pass

    @property
    def arity(self) -> int:
        """Get the number of children attached to this node."""
        return 0

    @abstractmethod
    def clone(self) -> "Node":
        """Create a deep copy of this node."""
        pass


@dataclass(eq=False)
class BranchNode(Node):
    """Node that owns an ordered list of children."""

    children: list[Node] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.children)

    def append_child(self, child: Node) -> Node:
        """Append child as the new rightmost child and return it."""
        self.children.append(child)
        return child

    def graft(self, subtree: Node) -> Node:
        """Append a deep copy of subtree, leaving the source untouched."""
        return self.append_child(subtree.clone())

    def _key(self) -> tuple:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._key() == other._key() and self.children == other.children


@dataclass(eq=False)
class OperatorNode(BranchNode):
    """Builtin operator node.

    Represents e.g. and($1 $2), +(0.5 $3), 0<(...).
    """

    builtin: Builtin = Builtin.NULL_VERTEX

    @property
    def node_type(self) -> NodeType:
        return NodeType.OPERATOR

    @property
    def signature(self) -> OperatorSignature:
        """Get the operator signature."""
        return BUILTIN_SIGNATURES[self.builtin]

    @property
    def return_type(self) -> DataType:
        return self.signature.return_type

    def is_complete(self) -> bool:
        """Check that the child count honors the arity contract."""
        return self.signature.accepts_arity(len(self.children))

    def clone(self) -> "OperatorNode":
        return OperatorNode(
            builtin=self.builtin,
            children=[c.clone() for c in self.children],
        )

    def _key(self) -> tuple:
        return (self.builtin,)


@dataclass(eq=False)
class AnnNode(BranchNode):
    """Artificial neural net vertex: a hidden node ($N) or an input ($I)."""

    kind: str = "node"
    index: int = 0

    KINDS = ("node", "input")

    def __post_init__(self) -> None:
        if self.kind not in self.KINDS:
            raise ValueError(f"Unknown ann kind: {self.kind}")

    @property
    def node_type(self) -> NodeType:
        return NodeType.ANN

    @property
    def return_type(self) -> DataType:
        return DataType.CONTIN

    @property
    def token(self) -> str:
        prefix = "$N" if self.kind == "node" else "$I"
        return f"{prefix}{self.index}"

    def clone(self) -> "AnnNode":
        return AnnNode(
            kind=self.kind,
            index=self.index,
            children=[c.clone() for c in self.children],
        )

    def _key(self) -> tuple:
        return (self.kind, self.index)


@dataclass
class ArgumentNode(Node):
    """Reference to an input column.

    The magnitude is the 1-based column index; a negative index means the
    input is logically negated.
    """

    index: int = 1

    def __post_init__(self) -> None:
        self.index = int(self.index)
        if self.index == 0:
            raise ValueError("Argument index must be nonzero")

    @property
    def node_type(self) -> NodeType:
        return NodeType.ARGUMENT

    @property
    def return_type(self) -> DataType:
        return DataType.UNKNOWN

    @property
    def is_negated(self) -> bool:
        return self.index < 0

    @property
    def abs_index(self) -> int:
        return abs(self.index)

    @property
    def abs_index_from_zero(self) -> int:
        return abs(self.index) - 1

    def negated(self) -> "ArgumentNode":
        return ArgumentNode(index=-self.index)

    def clone(self) -> "ArgumentNode":
        return ArgumentNode(index=self.index)


@dataclass
class ConstantNode(Node):
    """Contin literal, used for weights, biases and thresholds."""

    value: float = 0.0

    def __post_init__(self) -> None:
        # Adding 0.0 folds -0.0 into 0.0
        self.value = float(self.value) + 0.0

    @property
    def node_type(self) -> NodeType:
        return NodeType.CONSTANT

    @property
    def return_type(self) -> DataType:
        return DataType.CONTIN

    def clone(self) -> "ConstantNode":
        return ConstantNode(value=self.value)


@dataclass
class EnumNode(Node):
    """Enumerated label, spelled enum:<label>."""

    label: str = ""

    PREFIX = "enum:"

    def __post_init__(self) -> None:
        if '"' in self.label:
            raise ValueError(f"Enum label cannot contain a double quote: {self.label!r}")

    @property
    def node_type(self) -> NodeType:
        return NodeType.ENUM

    @property
    def return_type(self) -> DataType:
        return DataType.UNKNOWN

    def clone(self) -> "EnumNode":
        return EnumNode(label=self.label)


@dataclass
class MessageNode(Node):
    """String literal, spelled message:"<text>"."""

    text: str = ""

    PREFIX = "message:"

    def __post_init__(self) -> None:
        if '"' in self.text:
            raise ValueError(f"Message text cannot contain a double quote: {self.text!r}")

    @property
    def node_type(self) -> NodeType:
        return NodeType.MESSAGE

    @property
    def return_type(self) -> DataType:
        return DataType.UNKNOWN

    def clone(self) -> "MessageNode":
        return MessageNode(text=self.text)


@dataclass
class WildCardNode(Node):
    """Wild card vertex, spelled _*_."""

    TOKEN = "_*_"

    @property
    def node_type(self) -> NodeType:
        return NodeType.WILD_CARD

    @property
    def return_type(self) -> DataType:
        return DataType.UNKNOWN

    def clone(self) -> "WildCardNode":
        return WildCardNode()


def children_of(node: Node) -> list[Node]:
    """Children of a node; leaves have none."""
    if isinstance(node, BranchNode):
        return node.children
    return []


def count_nodes(node: Node) -> int:
    """Count total nodes in a subtree."""
    return 1 + sum(count_nodes(c) for c in children_of(node))


def get_depth(node: Node) -> int:
    """Get the depth of a subtree."""
    kids = children_of(node)
    if kids:
        return 1 + max(get_depth(c) for c in kids)
    return 1


def collect_nodes(node: Node) -> list[Node]:
    """Collect all nodes in a subtree (pre-order traversal)."""
    result = [node]
    for child in children_of(node):
        result.extend(collect_nodes(child))
    return result
