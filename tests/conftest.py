"""
Pytest fixtures for comboforge tests.

Truth tables are small and exhaustive so every expected error can be
worked out by hand.
"""

import itertools

import numpy as np
import pandas as pd
import pytest

from comboforge.combo.iostream import parse
from comboforge.ensemble.scored import ScoredComboTree


@pytest.fixture
def truth_table() -> pd.DataFrame:
    """All 8 assignments of three boolean inputs a, b, c."""
    rows = list(itertools.product([0, 1], repeat=3))
    return pd.DataFrame(rows, columns=["a", "b", "c"])


@pytest.fixture
def or_target(truth_table) -> pd.Series:
    """Target a or (b and c): true on 5 of the 8 rows."""
    t = truth_table
    return (t["a"] == 1) | ((t["b"] == 1) & (t["c"] == 1))


@pytest.fixture
def blank_inputs():
    """Factory for an n-row input table, for tests driven by fixed bscores."""

    def make(n_rows: int) -> pd.DataFrame:
        return pd.DataFrame({"x": np.zeros(n_rows)})

    return make


@pytest.fixture
def candidate():
    """Factory for a candidate with a given behavioral vector.

    The scalar score is the sum of the vector, as the scorers compute it.
    """

    def make(program: str, bscore) -> ScoredComboTree:
        bs = np.asarray(bscore, dtype=float)
        return ScoredComboTree(tree=parse(program), score=float(bs.sum()), bscore=bs)

    return make
