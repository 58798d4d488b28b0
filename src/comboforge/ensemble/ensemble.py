"""Boosted ensembles of combo trees.

Combines a pool of scored candidate programs into a single weighted
decision procedure, using either:
- AdaBoost: repeatedly promote the best candidate, weighting it by
  alpha = 0.5 * ln((1 - err) / err) and up-weighting the rows it gets wrong
- Experts: promote candidates that precisely select rows, either exactly
  (perfect selectors, OR-ed together) or inexactly (weighted vote against
  a bias; experimental)

Usage:
    scorer = AccuracyScorer(inputs, target)
    ensemble = Ensemble(scorer, EnsembleParameters(do_boosting=True, num_to_promote=10))
    ensemble.add_candidates([scorer.make_candidate(t) for t in trees])
    tree = ensemble.get_weighted_tree()
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import numpy as np

from comboforge.combo.types import Builtin
from comboforge.combo.nodes import ConstantNode, OperatorNode
from comboforge.combo.tree import ComboTree
from comboforge.ensemble.scored import ScoredComboTree, best_candidate
from comboforge.ensemble.scoring import WeightedScorer

logger = logging.getLogger(__name__)

# Machine epsilon of the score type (float64)
EPSILON_SCORE = float(np.finfo(float).eps)


class BoostingContractError(RuntimeError):
    """Raised when the scorer reports an error outside its legal range."""


class ExperimentalModeError(RuntimeError):
    """Raised when inexact experts are requested without opting in."""


def is_correct(value: float) -> bool:
    """Whether a behavioral score marks its row as correct.

    For boolean scores correct is 0.0 and incorrect is -1.0.
    """
    return -0.5 < value


@dataclass
class EnsembleParameters:
    """Configuration for ensemble combination.

    Attributes:
        do_boosting: Keep row weights at all; if False the ensemble is a
            plain container
        experts: Use expert row selection instead of AdaBoost
        exact_experts: Accept only perfect row selectors
        expalpha: Fixed reweighting factor for exact experts
        num_to_promote: Maximum promotions per add_candidates call
        bias_scale: Scale of the bias threshold in the inexact expert tree
        experimental_inexact_experts: Opt in to the inexact expert mode,
            whose bias accounting is unfinished
    """

    do_boosting: bool = False
    experts: bool = False
    exact_experts: bool = True
    expalpha: float = 2.0
    num_to_promote: int = 1
    bias_scale: float = 1.0
    experimental_inexact_experts: bool = False

    def __post_init__(self) -> None:
        if self.num_to_promote < 1:
            raise ValueError(f"num_to_promote must be >= 1, got {self.num_to_promote}")
        if self.expalpha <= 0:
            raise ValueError(f"expalpha must be positive, got {self.expalpha}")
        if self.inexact_experts and not self.experimental_inexact_experts:
            raise ExperimentalModeError(
                "Inexact experts are experimental; set experimental_inexact_experts=True"
            )

    @property
    def inexact_experts(self) -> bool:
        return self.experts and not self.exact_experts


class Ensemble:
    """Ensemble of weighted combo trees built by boosting.

    The scorer is owned by the ensemble while boosting: each promotion
    pushes new row weights that the next selection depends on, so calls
    must not be interleaved with other users of the same scorer.
    """

    def __init__(
        self,
        scorer: WeightedScorer,
        params: EnsembleParameters | None = None,
    ):
        """Initialize ensemble.

        Args:
            scorer: Weighted scoring collaborator
            params: Ensemble configuration
        """
        self.scorer = scorer
        self.params = params or EnsembleParameters()
        self._scored_trees: list[ScoredComboTree] = []
        self._tolerance = 0.0
        self._bias = 0.0
        self._row_bias: np.ndarray | None = None

        # Leave the scorer weights alone if not boosting.
        if not self.params.do_boosting:
            return

        self.scorer.reset_weights()

        # Estimate of the rounding error accumulated when totaling
        # bscore_len terms; grows as the square root of the length.
        bscore_len = self.scorer.size()
        self._tolerance = 2.0 * EPSILON_SCORE * math.sqrt(bscore_len)

        if self.params.inexact_experts:
            self._row_bias = np.zeros(bscore_len)
            logger.warning("Experts: inexact bias accounting is experimental")

        logger.info(f"Boosting: number to promote: {self.params.num_to_promote}")
        if self.params.experts:
            logger.info(f"Boosting: exact experts: {self.params.exact_experts}")
            logger.info(f"Boosting: expalpha: {self.params.expalpha}")

    @property
    def scored_trees(self) -> list[ScoredComboTree]:
        """Members of the ensemble, in promotion order."""
        return list(self._scored_trees)

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def bias(self) -> float:
        return self._bias

    @property
    def row_bias(self) -> np.ndarray | None:
        return None if self._row_bias is None else self._row_bias.copy()

    def __len__(self) -> int:
        return len(self._scored_trees)

    def __iter__(self):
        return iter(list(self._scored_trees))

    def _insert(self, cand: ScoredComboTree) -> bool:
        """Add a member unless an equal (tree, weight) pair is present."""
        if cand in self._scored_trees:
            return False
        self._scored_trees.append(cand)
        return True

    def add_candidates(self, cands: list[ScoredComboTree]) -> None:
        """Add candidates from the pool using the configured strategy.

        Args:
            cands: Candidate pool; AdaBoost and pass-through remove the
                candidates they promote
        """
        if not self.params.do_boosting:
            self._add_unweighted(cands)
        elif self.params.experts:
            self.add_expert(cands)
        else:
            self.add_adaboost(cands)

    def _add_unweighted(self, cands: list[ScoredComboTree]) -> None:
        """Move the best candidates into the ensemble without weighting."""
        promoted = 0
        while cands and promoted < self.params.num_to_promote:
            best = best_candidate(cands)
            self._insert(best)
            cands.remove(best)
            promoted += 1

    def add_adaboost(self, cands: list[ScoredComboTree]) -> None:
        """Grow the ensemble with the classic AdaBoost algorithm.

        Args:
            cands: Candidate pool; promoted candidates are removed from it
        """
        promoted = 0

        while cands:
            # Least error is the highest score.
            best = best_candidate(cands)
            logger.info(f"Boosting: candidate score={best.score}")

            err = self.scorer.error_of(best)
            if not (0.0 <= err < 1.0):
                raise BoostingContractError(f"boosting score out of range; got {err}")

            # Perfect score: the boosting done so far is superfluous, so
            # the ensemble is replaced by this single tree.
            if err < self._tolerance:
                logger.info(f"Boosting: perfect score found: {best.tree}")
                self._scored_trees.clear()
                self._insert(best.with_weight(1.0))
                self.scorer.reset_weights()
                return

            # Half gives a weight of zero; worse gives a negative weight.
            if err >= 0.5:
                logger.info("Boosting: no improvement, ensemble not expanded")
                break

            alpha = 0.5 * math.log((1.0 - err) / err)
            expalpha = math.exp(alpha)
            rcpalpha = 1.0 / expalpha
            logger.info(
                f"Boosting: add to ensemble {best.tree} "
                f"with err={err} alpha={alpha} exp(alpha)={expalpha}"
            )

            self._insert(best.with_weight(alpha))

            weights = [rcpalpha if is_correct(v) else expalpha for v in best.bscore]
            self.scorer.update_weights(weights)

            cands.remove(best)

            promoted += 1
            if promoted >= self.params.num_to_promote:
                break

    def add_expert(self, cands: list[ScoredComboTree]) -> None:
        """Grow the ensemble with trees that expertly select rows.

        Any tree that expertly selects rows is admitted, even if the
        ensemble already selects those same rows. The pool is scanned in
        order and left unchanged.

        Args:
            cands: Candidate pool
        """
        promoted = 0
        tol = self._tolerance

        for num, cand in enumerate(cands, start=1):
            err = self.scorer.error_of(cand.tree)
            if not (0.0 <= err + tol and err - tol <= 1.0):
                raise BoostingContractError(f"boosting score out of range; got {err}")

            if self.params.exact_experts:
                if not self._add_exact_expert(num, cand, err):
                    continue
            else:
                if not self._add_inexact_expert(num, cand, err):
                    continue

            promoted += 1
            if promoted >= self.params.num_to_promote:
                break

    def _add_exact_expert(self, num: int, cand: ScoredComboTree, err: float) -> bool:
        # Only perfect row selectors are accepted.
        if self._tolerance < err:
            logger.debug(
                f"Exact expert {num} not good enough, err={err} score={cand.score}"
            )
            return False

        logger.info(f"Exact expert {num} add to ensemble: {cand}")
        self._insert(cand)

        # Rows the tree selects correctly (strictly positive) lose weight;
        # everything else gains.
        expalpha = self.params.expalpha
        rcpalpha = 1.0 / expalpha
        bscore = self.scorer([cand])
        weights = np.where(bscore > 0.0, rcpalpha, expalpha)
        self.scorer.update_weights(weights)
        return True

    def _add_inexact_expert(self, num: int, cand: ScoredComboTree, err: float) -> bool:
        if err >= 0.5:
            logger.debug(f"Expert {num}: terrible precision, ensemble not expanded: {err}")
            return False

        # AdaBoost-style alpha, except that perfect scorers are allowed.
        err = max(err, self._tolerance)
        alpha = 0.5 * math.log((1.0 - err) / err)
        expalpha = math.exp(alpha)
        logger.info(
            f"Expert {num}: add to ensemble; err={err} alpha={alpha} "
            f"exp(alpha)={expalpha}: {cand}"
        )
        self._insert(cand.with_weight(alpha))

        # Rows wrongly selected carry a negative score; each one raises
        # the bias the vote must beat. The -2 cancels the -0.5 of a bad row.
        bscore = cand.bscore
        if self._row_bias is None:
            self._row_bias = np.zeros(self.scorer.size())
        wrong = bscore < 0.0
        self._row_bias[wrong] += -2.0 * alpha * bscore[wrong]
        self._bias = max(self._bias, float(self._row_bias.max(initial=0.0)))
        logger.info(f"Experts: bias is now: {self._bias}")

        rcpalpha = 1.0 / expalpha
        weights = np.where(bscore > 0.0, rcpalpha, expalpha)
        self.scorer.update_weights(weights)
        return True

    # =========================================================================
    # Composite tree synthesis
    # =========================================================================

    def get_weighted_tree(self) -> ComboTree:
        """Return the ensemble as a single tree, per the configured strategy."""
        if self.params.experts:
            if self.params.exact_experts:
                return self.get_exact_tree()
            return self.get_expert_tree()
        return self.get_adaboost_tree()

    def _single_or_none(self) -> ComboTree | None:
        if not self._scored_trees:
            raise ValueError("Ensemble is empty")
        if len(self._scored_trees) == 1:
            return self._scored_trees[0].tree.clone()
        return None

    def get_adaboost_tree(self) -> ComboTree:
        """Return the tree for (sum_i weight_i * (tree_i ? 0.5 : -0.5)) > 0.

        That is, true if the weighted vote is positive, as per standard
        AdaBoost.
        """
        single = self._single_or_none()
        if single is not None:
            return single

        head = OperatorNode(builtin=Builtin.GREATER_THAN_ZERO)
        plus = head.append_child(OperatorNode(builtin=Builtin.PLUS))

        for sct in self._scored_trees:
            times = plus.append_child(OperatorNode(builtin=Builtin.TIMES))
            times.append_child(ConstantNode(value=sct.weight))

            # +0.5 if the tree is true, else -0.5
            minus = times.append_child(OperatorNode(builtin=Builtin.PLUS))
            minus.append_child(ConstantNode(value=-0.5))
            impulse = minus.append_child(OperatorNode(builtin=Builtin.IMPULSE))
            impulse.graft(sct.tree.root)

        return ComboTree(root=head)

    def get_exact_tree(self) -> ComboTree:
        """Return the tree for or_i tree_i: true if any member is true."""
        single = self._single_or_none()
        if single is not None:
            return single

        head = OperatorNode(builtin=Builtin.LOGICAL_OR)
        for sct in self._scored_trees:
            head.graft(sct.tree.root)
        return ComboTree(root=head)

    def get_expert_tree(self) -> ComboTree:
        """Return the tree for (sum_i weight_i * (tree_i ? 1 : 0)) > bias.

        The bias neuters members that make mistakes in their selection.
        """
        single = self._single_or_none()
        if single is not None:
            return single

        head = OperatorNode(builtin=Builtin.GREATER_THAN_ZERO)
        plus = head.append_child(OperatorNode(builtin=Builtin.PLUS))
        plus.append_child(ConstantNode(value=-self._bias * self.params.bias_scale))

        for sct in self._scored_trees:
            times = plus.append_child(OperatorNode(builtin=Builtin.TIMES))
            times.append_child(ConstantNode(value=sct.weight))
            impulse = times.append_child(OperatorNode(builtin=Builtin.IMPULSE))
            impulse.graft(sct.tree.root)

        return ComboTree(root=head)

    def flat_score(self) -> float:
        """Unweighted score of the ensemble used as a predictor.

        The weighted score only applies during training and is driven
        toward 50% wrong; this is the score the ensemble gets in use.
        """
        bscore = self.scorer(self._scored_trees)
        return float(np.sum(bscore))
