"""
comboforge: combination of evolved combo programs into boosted ensembles.

This package implements:
- Combo trees: typed program trees over input columns, constants and builtins
- Text I/O: combo, python and scheme renderings; combo parsing with labels
- Ensembles: AdaBoost and expert boosting over a pool of scored programs
"""

__version__ = "0.1.0"

from comboforge.combo.tree import ComboTree
from comboforge.combo.iostream import parse, render
from comboforge.ensemble.ensemble import Ensemble, EnsembleParameters
from comboforge.ensemble.scored import ScoredComboTree

__all__ = [
    "__version__",
    "ComboTree",
    "parse",
    "render",
    "Ensemble",
    "EnsembleParameters",
    "ScoredComboTree",
]
