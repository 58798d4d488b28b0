"""Vertex vocabulary and arity contracts for combo trees.

Every builtin operator carries a signature that the tree validator uses
to check child counts.
"""

from enum import Enum, auto
from dataclasses import dataclass


class DataType(Enum):
    """Data types produced by combo tree nodes."""

    BOOLEAN = auto()     # Truth value
    CONTIN = auto()      # Continuous (real) value
    LIST = auto()        # List of values
    LAMBDA = auto()      # Function object (binder)
    UNKNOWN = auto()     # Depends on children (e.g. car, apply)

    def is_numeric(self) -> bool:
        """Check if type is numeric."""
        return self == DataType.CONTIN


class NodeType(Enum):
    """Kinds of vertex a tree node can hold."""

    OPERATOR = auto()    # Builtin with children
    ARGUMENT = auto()    # Input column reference
    CONSTANT = auto()    # Contin literal
    ENUM = auto()        # Enumerated label
    MESSAGE = auto()     # String literal
    WILD_CARD = auto()   # Matches anything
    ANN = auto()         # Neural-net node or input


class Builtin(Enum):
    """Builtin operators. Values are the canonical combo tokens."""

    NULL_VERTEX = "null_vertex"

    # Logic
    LOGICAL_AND = "and"
    LOGICAL_OR = "or"
    LOGICAL_NOT = "not"
    LOGICAL_TRUE = "true"
    LOGICAL_FALSE = "false"

    # Arithmetic
    PLUS = "+"
    TIMES = "*"
    DIV = "/"
    LOG = "log"
    EXP = "exp"
    SIN = "sin"
    RAND = "rand"

    # Mixed
    GREATER_THAN_ZERO = "0<"
    IMPULSE = "impulse"
    CONTIN_IF = "contin_if"
    COND = "cond"
    EQU = "equ"

    # Lists and higher order
    LIST = "list"
    CAR = "car"
    CDR = "cdr"
    CONS = "cons"
    FOLDR = "foldr"
    FOLDL = "foldl"
    LAMBDA = "->"
    APPLY = "apply"

    # Neural nets
    ANN = "ann"

    @property
    def token(self) -> str:
        """Canonical combo spelling."""
        return self.value


# Long spellings accepted by the parser in addition to the canonical tokens
BUILTIN_ALIASES: dict[str, Builtin] = {
    "logical_and": Builtin.LOGICAL_AND,
    "logical_or": Builtin.LOGICAL_OR,
    "logical_not": Builtin.LOGICAL_NOT,
    "logical_true": Builtin.LOGICAL_TRUE,
    "logical_false": Builtin.LOGICAL_FALSE,
    "plus": Builtin.PLUS,
    "times": Builtin.TIMES,
    "div": Builtin.DIV,
    "lambda": Builtin.LAMBDA,
    "contin_boolean_if": Builtin.CONTIN_IF,
}


def builtin_from_token(token: str) -> Builtin | None:
    """Look up a builtin by canonical token or alias."""
    try:
        return Builtin(token)
    except ValueError:
        return BUILTIN_ALIASES.get(token)


@dataclass(frozen=True)
class OperatorSignature:
    """Arity contract for a builtin.

    A max_arity of None means the operator is variadic.
    """

    name: str
    min_arity: int
    max_arity: int | None
    return_type: DataType

    def __post_init__(self) -> None:
        if self.min_arity < 0:
            raise ValueError(f"min_arity must be non-negative, got {self.min_arity}")
        if self.max_arity is not None and self.max_arity < self.min_arity:
            raise ValueError(
                f"max_arity ({self.max_arity}) must be >= min_arity ({self.min_arity})"
            )

    @property
    def is_variadic(self) -> bool:
        return self.max_arity is None

    def accepts_arity(self, n_children: int) -> bool:
        """Check if the given number of children is acceptable."""
        if n_children < self.min_arity:
            return False
        return self.max_arity is None or n_children <= self.max_arity


def _sig(builtin: Builtin, lo: int, hi: int | None, ret: DataType) -> OperatorSignature:
    return OperatorSignature(builtin.token, lo, hi, ret)


BUILTIN_SIGNATURES: dict[Builtin, OperatorSignature] = {
    Builtin.NULL_VERTEX: _sig(Builtin.NULL_VERTEX, 0, 0, DataType.UNKNOWN),

    Builtin.LOGICAL_AND: _sig(Builtin.LOGICAL_AND, 1, None, DataType.BOOLEAN),
    Builtin.LOGICAL_OR: _sig(Builtin.LOGICAL_OR, 1, None, DataType.BOOLEAN),
    Builtin.LOGICAL_NOT: _sig(Builtin.LOGICAL_NOT, 1, 1, DataType.BOOLEAN),
    Builtin.LOGICAL_TRUE: _sig(Builtin.LOGICAL_TRUE, 0, 0, DataType.BOOLEAN),
    Builtin.LOGICAL_FALSE: _sig(Builtin.LOGICAL_FALSE, 0, 0, DataType.BOOLEAN),

    Builtin.PLUS: _sig(Builtin.PLUS, 1, None, DataType.CONTIN),
    Builtin.TIMES: _sig(Builtin.TIMES, 1, None, DataType.CONTIN),
    Builtin.DIV: _sig(Builtin.DIV, 2, 2, DataType.CONTIN),
    Builtin.LOG: _sig(Builtin.LOG, 1, 1, DataType.CONTIN),
    Builtin.EXP: _sig(Builtin.EXP, 1, 1, DataType.CONTIN),
    Builtin.SIN: _sig(Builtin.SIN, 1, 1, DataType.CONTIN),
    Builtin.RAND: _sig(Builtin.RAND, 0, 0, DataType.CONTIN),

    Builtin.GREATER_THAN_ZERO: _sig(Builtin.GREATER_THAN_ZERO, 1, 1, DataType.BOOLEAN),
    Builtin.IMPULSE: _sig(Builtin.IMPULSE, 1, 1, DataType.CONTIN),
    Builtin.CONTIN_IF: _sig(Builtin.CONTIN_IF, 3, 3, DataType.CONTIN),
    Builtin.COND: _sig(Builtin.COND, 1, None, DataType.UNKNOWN),
    Builtin.EQU: _sig(Builtin.EQU, 2, 2, DataType.BOOLEAN),

    Builtin.LIST: _sig(Builtin.LIST, 0, None, DataType.LIST),
    Builtin.CAR: _sig(Builtin.CAR, 1, 1, DataType.UNKNOWN),
    Builtin.CDR: _sig(Builtin.CDR, 1, 1, DataType.LIST),
    Builtin.CONS: _sig(Builtin.CONS, 2, 2, DataType.LIST),
    Builtin.FOLDR: _sig(Builtin.FOLDR, 3, 3, DataType.UNKNOWN),
    Builtin.FOLDL: _sig(Builtin.FOLDL, 3, 3, DataType.UNKNOWN),
    Builtin.LAMBDA: _sig(Builtin.LAMBDA, 1, None, DataType.LAMBDA),
    Builtin.APPLY: _sig(Builtin.APPLY, 1, None, DataType.UNKNOWN),

    Builtin.ANN: _sig(Builtin.ANN, 1, None, DataType.CONTIN),
}


def get_operators_returning(return_type: DataType) -> list[Builtin]:
    """Get all builtins that return the specified type."""
    return [
        builtin for builtin, sig in BUILTIN_SIGNATURES.items()
        if sig.return_type == return_type
    ]


class OutputFormat(Enum):
    """Target syntaxes a combo tree can be rendered to."""

    COMBO = "combo"
    PYTHON = "python"
    SCHEME = "scheme"
