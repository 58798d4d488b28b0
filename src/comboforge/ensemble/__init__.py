"""Ensemble combination of scored combo trees (AdaBoost and experts)."""

from comboforge.ensemble.scored import ScoredComboTree
from comboforge.ensemble.scoring import (
    WeightedScorer,
    BehavioralScorer,
    AccuracyScorer,
    PrecisionScorer,
    make_scorer,
)
from comboforge.ensemble.ensemble import (
    Ensemble,
    EnsembleParameters,
    BoostingContractError,
    ExperimentalModeError,
)

__all__ = [
    "ScoredComboTree",
    "WeightedScorer",
    "BehavioralScorer",
    "AccuracyScorer",
    "PrecisionScorer",
    "make_scorer",
    "Ensemble",
    "EnsembleParameters",
    "BoostingContractError",
    "ExperimentalModeError",
]
