"""Tests for the combo tree model."""

import pytest

from comboforge.combo.tree import ComboTree
from comboforge.combo.nodes import (
    ArgumentNode,
    ConstantNode,
    OperatorNode,
    collect_nodes,
)
from comboforge.combo.types import (
    BUILTIN_SIGNATURES,
    Builtin,
    DataType,
    builtin_from_token,
    get_operators_returning,
)


def and_not_tree() -> ComboTree:
    # and($1 !$2)
    return ComboTree.from_builtin(
        Builtin.LOGICAL_AND,
        ArgumentNode(index=1),
        ArgumentNode(index=-2),
    )


class TestVocabulary:
    """Test builtin lookup and arity contracts."""

    def test_aliases(self):
        assert builtin_from_token("and") == Builtin.LOGICAL_AND
        assert builtin_from_token("logical_and") == Builtin.LOGICAL_AND
        assert builtin_from_token("plus") == Builtin.PLUS
        assert builtin_from_token("lambda") == Builtin.LAMBDA
        assert builtin_from_token("frobnicate") is None

    def test_arity(self):
        assert BUILTIN_SIGNATURES[Builtin.LOGICAL_NOT].accepts_arity(1)
        assert not BUILTIN_SIGNATURES[Builtin.LOGICAL_NOT].accepts_arity(2)
        assert BUILTIN_SIGNATURES[Builtin.PLUS].is_variadic
        assert BUILTIN_SIGNATURES[Builtin.PLUS].accepts_arity(7)
        assert not BUILTIN_SIGNATURES[Builtin.DIV].accepts_arity(3)
        assert BUILTIN_SIGNATURES[Builtin.LOGICAL_TRUE].accepts_arity(0)

    def test_operators_returning(self):
        boolean_ops = get_operators_returning(DataType.BOOLEAN)
        assert Builtin.LOGICAL_AND in boolean_ops
        assert Builtin.GREATER_THAN_ZERO in boolean_ops
        assert Builtin.PLUS not in boolean_ops


class TestNodes:
    """Test vertex nodes."""

    def test_argument_zero_rejected(self):
        with pytest.raises(ValueError):
            ArgumentNode(index=0)

    def test_argument_negation(self):
        arg = ArgumentNode(index=-3)
        assert arg.is_negated
        assert arg.abs_index == 3
        assert arg.abs_index_from_zero == 2
        assert arg.negated() == ArgumentNode(index=3)

    def test_equality_ignores_node_id(self):
        assert ConstantNode(value=0.5) == ConstantNode(value=0.5)
        assert ConstantNode(value=0.5).node_id != ConstantNode(value=0.5).node_id
        assert ConstantNode(value=-0.0) == ConstantNode(value=0.0)

    def test_graft_copies(self):
        source = OperatorNode(builtin=Builtin.LOGICAL_NOT, children=[ArgumentNode(index=1)])
        parent = OperatorNode(builtin=Builtin.LOGICAL_OR)
        grafted = parent.graft(source)

        assert grafted == source
        assert grafted is not source
        assert grafted.children[0] is not source.children[0]

        grafted.children[0] = ArgumentNode(index=2)
        assert source.children[0] == ArgumentNode(index=1)

    def test_pre_order(self):
        tree = and_not_tree()
        nodes = collect_nodes(tree.root)
        assert [type(n) for n in nodes] == [OperatorNode, ArgumentNode, ArgumentNode]
        assert nodes[2].index == -2


class TestComboTree:
    """Test ComboTree class."""

    def test_create_tree(self):
        tree = and_not_tree()

        assert tree.size == 3
        assert tree.depth == 2
        assert tree.return_type == DataType.BOOLEAN
        assert tree.formula == "and($1 !$2)"

    def test_arity_violation(self):
        with pytest.raises(ValueError):
            ComboTree(root=OperatorNode(builtin=Builtin.LOGICAL_NOT))
        with pytest.raises(ValueError):
            ComboTree.from_builtin(
                Builtin.DIV, ConstantNode(value=1.0), ConstantNode(value=2.0), ConstantNode(value=3.0)
            )

    def test_shared_node_rejected(self):
        shared = ArgumentNode(index=1)
        with pytest.raises(ValueError):
            ComboTree.from_builtin(Builtin.LOGICAL_AND, shared, shared)

    def test_clone(self):
        tree = and_not_tree()
        cloned = tree.clone()

        assert cloned == tree
        assert cloned.root is not tree.root
        assert hash(cloned) == hash(tree)

    def test_structural_equality(self):
        assert and_not_tree() == and_not_tree()
        other = ComboTree.from_builtin(
            Builtin.LOGICAL_AND, ArgumentNode(index=1), ArgumentNode(index=2)
        )
        assert other != and_not_tree()

    def test_arguments_and_operators(self):
        tree = ComboTree.from_builtin(
            Builtin.LOGICAL_OR,
            ArgumentNode(index=-3),
            OperatorNode(
                builtin=Builtin.LOGICAL_AND,
                children=[ArgumentNode(index=1), ArgumentNode(index=3)],
            ),
        )
        assert tree.get_arguments() == [1, 3]
        assert tree.get_operators() == [Builtin.LOGICAL_OR, Builtin.LOGICAL_AND]
        assert len(tree.hash) == 12
