"""Example: Combining candidate programs with boosting.

This example demonstrates:
- Parsing combo programs with named variables
- Scoring candidates against a truth table
- AdaBoost and exact-expert ensembles
- Rendering the combined tree as combo, python and scheme
"""

import itertools

import pandas as pd

from comboforge.combo.iostream import parse, render
from comboforge.combo.types import OutputFormat
from comboforge.ensemble import Ensemble, EnsembleParameters
from comboforge.ensemble.scoring import AccuracyScorer, PrecisionScorer


def main():
    """Run ensemble example."""
    print("=" * 80)
    print("comboforge Ensemble Combination")
    print("=" * 80)

    # =========================================================================
    # Step 1: Build a truth table
    # =========================================================================
    print("\n[Step 1] Building truth table for y = rain or (cold and wind)...")

    labels = ["rain", "cold", "wind"]
    table = pd.DataFrame(list(itertools.product([0, 1], repeat=3)), columns=labels)
    target = (table["rain"] == 1) | ((table["cold"] == 1) & (table["wind"] == 1))

    print(f"Rows: {len(table)}, positive: {int(target.sum())}")

    programs = ["$rain", "and($cold $wind)", "$cold", "or($cold $wind)"]
    trees = [parse(p, labels=labels) for p in programs]

    # =========================================================================
    # Step 2: AdaBoost
    # =========================================================================
    print("\n[Step 2] AdaBoost ensemble...")

    scorer = AccuracyScorer(table, target)
    boosted = Ensemble(scorer, EnsembleParameters(do_boosting=True, num_to_promote=3))
    boosted.add_candidates([scorer.make_candidate(t) for t in trees])

    for member in boosted:
        print(f"  {render(member.tree, labels=labels):20s} weight={member.weight:.4f}")
    print(f"Flat score: {boosted.flat_score():.1f}")
    print(render(boosted.get_weighted_tree(), labels=labels))

    # =========================================================================
    # Step 3: Exact experts
    # =========================================================================
    print("\n[Step 3] Exact expert ensemble...")

    scorer = PrecisionScorer(table, target)
    params = EnsembleParameters(do_boosting=True, experts=True, num_to_promote=10)
    experts = Ensemble(scorer, params)
    experts.add_candidates([scorer.make_candidate(t) for t in trees])

    tree = experts.get_weighted_tree()
    print(f"Members: {len(experts)}, flat score: {experts.flat_score():.1f}")

    # =========================================================================
    # Step 4: Render
    # =========================================================================
    print("\n[Step 4] Rendering...")

    for fmt in OutputFormat:
        print(f"  {fmt.value:7s} {render(tree, fmt, labels=labels)}")

    print("\n" + "=" * 80)
    print("Done")
    print("=" * 80)


if __name__ == "__main__":
    main()
