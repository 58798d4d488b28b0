"""Reading and writing combo trees as text.

Output targets:
- combo: canonical prefix form, e.g. and($1 !$2)
- python: e.g. (i[0] and not(i[1]))
- scheme: link form, e.g. (AndLink (PredicateNode "$1") (NotLink (PredicateNode "$2")))

Only the combo form is parsed back. Human readable variable names are
handled by two text passes: placeholders_to_labels on output and
labels_to_placeholders on input.
"""

from __future__ import annotations

from typing import Sequence
import re

from comboforge.combo.types import Builtin, OutputFormat, builtin_from_token
from comboforge.combo.nodes import (
    AnnNode,
    ArgumentNode,
    BranchNode,
    ConstantNode,
    EnumNode,
    MessageNode,
    Node,
    OperatorNode,
    WildCardNode,
    children_of,
)
from comboforge.combo.tree import ComboTree


class ComboParseError(ValueError):
    """Raised when text is not a well-formed combo program."""


class LabelError(KeyError):
    """Raised when a variable has no matching label (or index)."""


class UnknownFormatError(ValueError):
    """Raised for an output format name that is not supported."""


class UnsupportedVertexError(ValueError):
    """Raised when a target syntax has no spelling for a vertex."""


# Characters that end a $variable during label substitution
_LABEL_DELIMITERS = frozenset(" )\n")

_ANN_TOKEN = re.compile(r"^\$([NI])(\d+)$")
_TOKEN = re.compile(r'\(|\)|[A-Za-z_]+:"[^"]*"|[^\s()]+')
_BARE_WORD = re.compile(r"^[^\s()\"]+$")


PYTHON_NAMES: dict[Builtin, str] = {
    Builtin.NULL_VERTEX: "null_vertex",
    Builtin.LOGICAL_AND: "and",
    Builtin.LOGICAL_OR: "or",
    Builtin.LOGICAL_NOT: "not",
    Builtin.LOGICAL_TRUE: "True",
    Builtin.LOGICAL_FALSE: "False",
    Builtin.PLUS: "adds",
    Builtin.TIMES: "muls",
    Builtin.DIV: "pdiv",
    Builtin.GREATER_THAN_ZERO: "l0",
    Builtin.IMPULSE: "impulse",
    Builtin.LOG: "log",
    Builtin.EXP: "exp",
    Builtin.SIN: "sin",
}

SCHEME_NAMES: dict[Builtin, str] = {
    Builtin.NULL_VERTEX: "null_vertex",
    Builtin.LOGICAL_AND: "AndLink",
    Builtin.LOGICAL_OR: "OrLink",
    Builtin.LOGICAL_NOT: "NotLink",
    Builtin.LOGICAL_TRUE: 'PredicateNode "Top"',
    Builtin.LOGICAL_FALSE: 'PredicateNode "Bottom"',
}


def parse_output_format(name: str) -> OutputFormat:
    """Map a format name (combo, python, scheme) to an OutputFormat."""
    try:
        return OutputFormat(name)
    except ValueError:
        raise UnknownFormatError(f"Format {name} not supported") from None


# =============================================================================
# Label substitution
# =============================================================================

def _label_for(index_text: str, labels: Sequence[str]) -> str:
    index = int(index_text)
    if not 1 <= index <= len(labels):
        raise LabelError(f"No label for variable ${index_text} ({len(labels)} labels given)")
    return labels[index - 1]


def _index_for(label: str, labels: Sequence[str]) -> str:
    if label in labels:
        return str(list(labels).index(label) + 1)
    if _ANN_TOKEN.match("$" + label):
        return label
    raise LabelError(f"No label {label} matching")


def _substitute_variables(text: str, replace) -> str:
    out: list[str] = []
    match: list[str] = []
    matching = False
    for c in text:
        if not matching:
            out.append(c)
            if c == "$":
                matching = True
        elif c in _LABEL_DELIMITERS:
            out.append(replace("".join(match)))
            out.append(c)
            match.clear()
            matching = False
        else:
            match.append(c)
    if matching:
        out.append(replace("".join(match)))
    return "".join(out)


def placeholders_to_labels(text: str, labels: Sequence[str]) -> str:
    """Replace $<index> variables with $<label>.

    A variable runs from '$' to the next space, ')' or newline. ANN
    tokens such as $N3 are left untouched.
    """
    def replace(match: str) -> str:
        if match.isdigit():
            return _label_for(match, labels)
        return match

    return _substitute_variables(text, replace)


def labels_to_placeholders(text: str, labels: Sequence[str]) -> str:
    """Replace $<label> variables with $<index> (inverse of placeholders_to_labels)."""
    return _substitute_variables(text, lambda match: _index_for(match, labels))


def parse_combo_variables(text: str) -> list[str]:
    """List variable names ($ prefixed) in order of appearance."""
    found: list[str] = []

    def record(match: str) -> str:
        found.append(match)
        return match

    _substitute_variables(text, record)
    return found


# =============================================================================
# Rendering
# =============================================================================

def _format_contin(value: float) -> str:
    return repr(float(value))


def _combo_vertex(node: Node, abbreviate_negation: bool) -> str:
    if isinstance(node, OperatorNode):
        return node.builtin.token
    if isinstance(node, ArgumentNode):
        if not node.is_negated:
            return f"${node.abs_index}"
        if abbreviate_negation:
            return f"!${node.abs_index}"
        return f"not(${node.abs_index})"
    if isinstance(node, ConstantNode):
        return _format_contin(node.value)
    if isinstance(node, AnnNode):
        return node.token
    if isinstance(node, EnumNode):
        if _BARE_WORD.match(node.label):
            return f"{EnumNode.PREFIX}{node.label}"
        return f'{EnumNode.PREFIX}"{node.label}"'
    if isinstance(node, MessageNode):
        return f'{MessageNode.PREFIX}"{node.text}"'
    if isinstance(node, WildCardNode):
        return WildCardNode.TOKEN
    raise UnsupportedVertexError(f"Don't know how to print {type(node).__name__}")


def _render_combo(node: Node, abbreviate_negation: bool) -> str:
    head = _combo_vertex(node, abbreviate_negation)
    kids = children_of(node)
    if not kids:
        return head
    body = " ".join(_render_combo(c, abbreviate_negation) for c in kids)
    return f"{head}({body})"


def _render_python(node: Node) -> str:
    if isinstance(node, ArgumentNode):
        if node.is_negated:
            return f"not(i[{node.abs_index_from_zero}])"
        return f"i[{node.abs_index_from_zero}]"
    if isinstance(node, ConstantNode):
        return _format_contin(node.value)
    if not isinstance(node, OperatorNode) or node.builtin not in PYTHON_NAMES:
        raise UnsupportedVertexError(f"No python spelling for {_combo_vertex(node, True)}")

    name = PYTHON_NAMES[node.builtin]
    kids = [_render_python(c) for c in node.children]
    if node.builtin in (Builtin.LOGICAL_AND, Builtin.LOGICAL_OR):
        return "(" + f" {name} ".join(kids) + ")"
    if not kids:
        return name
    return f"{name}({', '.join(kids)})"


def _render_scheme(node: Node, labels: Sequence[str] | None) -> str:
    if isinstance(node, ArgumentNode):
        if labels:
            name = _label_for(str(node.abs_index), labels)
        else:
            name = f"${node.abs_index}"
        predicate = f'(PredicateNode "{name}")'
        if node.is_negated:
            return f"(NotLink {predicate})"
        return predicate
    if not isinstance(node, OperatorNode) or node.builtin not in SCHEME_NAMES:
        raise UnsupportedVertexError(f"No scheme spelling for {_combo_vertex(node, True)}")

    parts = [SCHEME_NAMES[node.builtin]]
    parts.extend(_render_scheme(c, labels) for c in node.children)
    return "(" + " ".join(parts) + ")"


def render(
    tree: ComboTree | Node,
    fmt: OutputFormat | str = OutputFormat.COMBO,
    labels: Sequence[str] | None = None,
    abbreviate_negation: bool = True,
) -> str:
    """Render a tree (or subtree) in the requested syntax.

    Args:
        tree: Tree or node to render
        fmt: Target syntax, as an OutputFormat or its name
        labels: Optional variable names; labels[k-1] names $k
        abbreviate_negation: Write !$k rather than not($k) (combo only)

    Returns:
        The rendered program text
    """
    if isinstance(fmt, str):
        fmt = parse_output_format(fmt)
    root = tree.root if isinstance(tree, ComboTree) else tree

    if fmt == OutputFormat.COMBO:
        text = _render_combo(root, abbreviate_negation)
        return placeholders_to_labels(text, labels) if labels else text
    if fmt == OutputFormat.PYTHON:
        return _render_python(root)
    if fmt == OutputFormat.SCHEME:
        return _render_scheme(root, labels)
    raise UnknownFormatError(f"Format {fmt} not supported")


# =============================================================================
# Parsing
# =============================================================================

def _vertex_from_token(token: str) -> Node:
    builtin = builtin_from_token(token)
    if builtin is not None:
        return OperatorNode(builtin=builtin)
    if token == WildCardNode.TOKEN:
        return WildCardNode()

    ann = _ANN_TOKEN.match(token)
    if ann:
        kind = "node" if ann.group(1) == "N" else "input"
        return AnnNode(kind=kind, index=int(ann.group(2)))

    if token.startswith("$") or token.startswith("!$"):
        negated = token.startswith("!")
        digits = token[2:] if negated else token[1:]
        if digits.isdigit():
            try:
                index = int(digits)
                return ArgumentNode(index=-index if negated else index)
            except ValueError as e:
                raise ComboParseError(f"bad argument {token}: {e}") from e

    try:
        return ConstantNode(value=float(token))
    except ValueError:
        pass

    if token.startswith(MessageNode.PREFIX):
        body = token[len(MessageNode.PREFIX):]
        if len(body) >= 2 and body[0] == '"' and body[-1] == '"':
            return MessageNode(text=body[1:-1])
    elif token.startswith(EnumNode.PREFIX):
        body = token[len(EnumNode.PREFIX):]
        if len(body) >= 2 and body[0] == '"' and body[-1] == '"':
            body = body[1:-1]
        try:
            return EnumNode(label=body)
        except ValueError as e:
            raise ComboParseError(f"bad enum {token}: {e}") from e

    raise ComboParseError(f"unknown token {token!r}")


def tokenize(text: str) -> list[str]:
    """Split combo text into vertex tokens and parentheses."""
    return _TOKEN.findall(text)


class _Parser:
    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> str:
        token = self.peek()
        if token is None:
            raise ComboParseError("unexpected end of input")
        self.pos += 1
        return token

    def parse_node(self) -> Node:
        token = self.next()
        if token in ("(", ")"):
            raise ComboParseError(f"unexpected {token!r} at token {self.pos}")
        node = _vertex_from_token(token)

        if self.peek() != "(":
            return node
        if not isinstance(node, BranchNode):
            raise ComboParseError(f"{token!r} cannot have children")

        self.next()
        while self.peek() != ")":
            if self.peek() is None:
                raise ComboParseError("missing ')'")
            node.append_child(self.parse_node())
        self.next()
        return node


def parse(text: str, labels: Sequence[str] | None = None) -> ComboTree:
    """Parse canonical combo text into a tree.

    Args:
        text: Program text, e.g. "or(and($1 !$2) $3)"
        labels: Optional variable names used in the text instead of indices

    Returns:
        The parsed ComboTree
    """
    if labels:
        text = labels_to_placeholders(text, labels)

    parser = _Parser(tokenize(text))
    root = parser.parse_node()
    if parser.peek() is not None:
        raise ComboParseError(f"trailing input after program: {parser.peek()!r}")

    try:
        return ComboTree(root=root)
    except ValueError as e:
        raise ComboParseError(str(e)) from e
