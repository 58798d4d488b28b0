"""Weighted behavioral scorers.

The ensemble engine drives a scorer through the WeightedScorer protocol:
it reads errors under the current row weights and pushes new row weights
after every promotion. Two concrete scorers over a boolean truth table are
provided:

- AccuracyScorer: row is correct when the tree output equals the target
- PrecisionScorer: row selection, scoring only the rows a tree selects
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Protocol, Sequence, Union, runtime_checkable
import logging
import numpy as np
import pandas as pd

from comboforge.combo.tree import ComboTree
from comboforge.combo.interpreter import TreeInterpreter, get_interpreter
from comboforge.ensemble.scored import ScoredComboTree

logger = logging.getLogger(__name__)

ErrorTarget = Union[ComboTree, ScoredComboTree, Sequence[float], np.ndarray]


@runtime_checkable
class WeightedScorer(Protocol):
    """Scoring collaborator consumed by the ensemble engine."""

    def size(self) -> int:
        """Number of rows scored."""
        ...

    def error_of(self, target: ErrorTarget) -> float:
        """Weighted error of a tree, a scored candidate or a behavioral vector."""
        ...

    def reset_weights(self) -> None:
        """Set every row weight to 1.0."""
        ...

    def update_weights(self, weights: Sequence[float]) -> None:
        """Install new row weights."""
        ...

    def __call__(self, trees: Iterable[ScoredComboTree]) -> np.ndarray:
        """Behavioral vector of a set of candidates acting together."""
        ...


class BehavioralScorer(ABC):
    """Base scorer over a table of input rows and a boolean target.

    Subclasses define how a tree's output becomes a behavioral vector, how
    a behavioral vector becomes a weighted error, and how several trees'
    outputs are combined.
    """

    def __init__(
        self,
        inputs: pd.DataFrame,
        target: pd.Series | Sequence[bool],
        cumulative: bool = False,
        interpreter: TreeInterpreter | None = None,
    ):
        """Initialize scorer.

        Args:
            inputs: One column per argument, one row per sample
            target: Desired boolean output per row
            cumulative: Multiply new weights into the current ones and
                renormalize (classic AdaBoost) instead of replacing them
            interpreter: Interpreter to evaluate trees with
        """
        self.inputs = inputs
        self.target = np.asarray(target, dtype=bool)
        if len(self.target) != len(inputs):
            raise ValueError(
                f"Target length ({len(self.target)}) must match inputs ({len(inputs)})"
            )
        self.cumulative = cumulative
        self.interpreter = interpreter or get_interpreter()
        self.weights = np.ones(len(self.target))

    def size(self) -> int:
        return len(self.target)

    def reset_weights(self) -> None:
        self.weights = np.ones(self.size())

    def update_weights(self, weights: Sequence[float]) -> None:
        new = np.asarray(weights, dtype=float)
        if new.shape != (self.size(),):
            raise ValueError(f"Expected {self.size()} weights, got {new.shape}")
        if np.any(new < 0):
            raise ValueError("Row weights must be non-negative")

        if self.cumulative:
            new = self.weights * new
            total = new.sum()
            if total > 0:
                new *= self.size() / total
        self.weights = new

    def outputs(self, tree: ComboTree) -> np.ndarray:
        """Boolean output of a tree on every row."""
        result = self.interpreter.evaluate(tree, self.inputs)
        return result.astype(float) != 0.0

    def score_tree(self, tree: ComboTree) -> np.ndarray:
        """Behavioral vector of a tree."""
        return self._behavior(self.outputs(tree))

    def score(self, tree: ComboTree) -> float:
        """Scalar score of a tree (sum of its behavioral vector)."""
        return float(self.score_tree(tree).sum())

    def make_candidate(self, tree: ComboTree) -> ScoredComboTree:
        """Score a tree into a candidate ready for ensemble combination."""
        bscore = self.score_tree(tree)
        return ScoredComboTree(tree=tree, score=float(bscore.sum()), bscore=bscore)

    def error_of(self, target: ErrorTarget) -> float:
        if isinstance(target, ComboTree):
            bscore = self.score_tree(target)
        elif isinstance(target, ScoredComboTree):
            bscore = target.bscore
        else:
            bscore = np.asarray(target, dtype=float)
        if bscore.shape != (self.size(),):
            raise ValueError(f"Expected {self.size()} behavioral scores, got {bscore.shape}")
        return float(self._error(bscore))

    def __call__(self, trees: Iterable[ScoredComboTree]) -> np.ndarray:
        members = list(trees)
        if not members:
            return np.zeros(self.size())
        outputs = np.array([self.outputs(m.tree) for m in members])
        weights = np.array([m.weight for m in members], dtype=float)
        return self._behavior(self._combine(outputs, weights))

    @abstractmethod
    def _behavior(self, outputs: np.ndarray) -> np.ndarray:
        """Map boolean outputs to a behavioral vector."""
        pass

    @abstractmethod
    def _error(self, bscore: np.ndarray) -> float:
        """Weighted error of a behavioral vector, in [0, 1]."""
        pass

    @abstractmethod
    def _combine(self, outputs: np.ndarray, weights: np.ndarray) -> np.ndarray:
        """Combine member outputs (members x rows) into one boolean row vector."""
        pass


class AccuracyScorer(BehavioralScorer):
    """Scores trees by agreement with the target.

    Rows score 0.0 when correct and -1.0 when wrong. The error is the
    weight of wrong rows over the total weight. A set of trees predicts by
    weighted vote.
    """

    def _behavior(self, outputs: np.ndarray) -> np.ndarray:
        return np.where(outputs == self.target, 0.0, -1.0)

    def _error(self, bscore: np.ndarray) -> float:
        total = self.weights.sum()
        if total <= 0:
            raise ValueError("Row weights sum to zero")
        wrong = bscore <= -0.5
        return self.weights[wrong].sum() / total

    def _combine(self, outputs: np.ndarray, weights: np.ndarray) -> np.ndarray:
        votes = np.where(outputs, 1.0, -1.0)
        return weights @ votes > 0.0


class PrecisionScorer(BehavioralScorer):
    """Scores trees as row selectors.

    A selected positive row scores +0.5, a selected negative row -0.5 and
    an unselected row 0.0. The error is the weight of wrongly selected rows
    over the weight of all selected rows; a tree selecting nothing gets
    0.5. A set of trees selects a row when any member does.
    """

    def _behavior(self, outputs: np.ndarray) -> np.ndarray:
        hit = np.where(self.target, 0.5, -0.5)
        return np.where(outputs, hit, 0.0)

    def _error(self, bscore: np.ndarray) -> float:
        selected = bscore != 0.0
        total = self.weights[selected].sum()
        if total <= 0:
            return 0.5
        wrong = bscore < 0.0
        return self.weights[wrong].sum() / total

    def _combine(self, outputs: np.ndarray, weights: np.ndarray) -> np.ndarray:
        return outputs.any(axis=0)


SCORERS: dict[str, type[BehavioralScorer]] = {
    "accuracy": AccuracyScorer,
    "precision": PrecisionScorer,
}


def make_scorer(name: str, inputs: pd.DataFrame, target: pd.Series, **kwargs) -> BehavioralScorer:
    """Create a scorer by name ("accuracy" or "precision")."""
    try:
        scorer_cls = SCORERS[name]
    except KeyError:
        raise ValueError(f"Unknown scorer: {name}. Valid: {sorted(SCORERS)}") from None
    logger.debug(f"Creating {scorer_cls.__name__} over {len(inputs)} rows")
    return scorer_cls(inputs, target, **kwargs)
