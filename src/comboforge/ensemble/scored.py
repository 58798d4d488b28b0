"""Scored candidate programs.

A ScoredComboTree binds a tree to its scalar score, its behavioral score
vector (one entry per data row) and a boosting weight.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable
import numpy as np

from comboforge.combo.tree import ComboTree


@dataclass(eq=False)
class ScoredComboTree:
    """Candidate program with its evaluation.

    Attributes:
        tree: The candidate program (read only once scored)
        score: Scalar score, higher is better
        bscore: Behavioral score per row; >= 0 means the row is handled
            correctly, negative means it is not
        weight: Boosting weight; 1.0 until an ensemble assigns one
    """

    tree: ComboTree
    score: float = 0.0
    bscore: np.ndarray = field(default_factory=lambda: np.zeros(0))
    weight: float = 1.0

    def __post_init__(self) -> None:
        self.bscore = np.asarray(self.bscore, dtype=float)

    def with_weight(self, weight: float) -> "ScoredComboTree":
        """Return a copy carrying a different weight (the tree is shared)."""
        return replace(self, weight=float(weight))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScoredComboTree):
            return False
        return self.tree == other.tree and self.weight == other.weight

    def __hash__(self) -> int:
        return hash((self.tree, self.weight))

    def __str__(self) -> str:
        return f"{self.weight} {self.tree.formula} [score={self.score}]"


def best_candidate(candidates: Iterable[ScoredComboTree]) -> ScoredComboTree | None:
    """Return the first candidate with the highest scalar score."""
    best = None
    for cand in candidates:
        if best is None or cand.score > best.score:
            best = cand
    return best
