"""Tests for weighted behavioral scorers."""

import numpy as np
import pytest

from comboforge.combo.iostream import parse
from comboforge.ensemble.scored import ScoredComboTree, best_candidate
from comboforge.ensemble.scoring import (
    AccuracyScorer,
    PrecisionScorer,
    WeightedScorer,
    make_scorer,
)


class TestAccuracyScorer:
    """Test agreement scoring."""

    @pytest.fixture
    def scorer(self, truth_table, or_target):
        return AccuracyScorer(truth_table, or_target)

    def test_protocol(self, scorer):
        assert isinstance(scorer, WeightedScorer)
        assert scorer.size() == 8

    def test_behavior(self, scorer):
        # $1 misses the single row where a is false but b and c are true
        bscore = scorer.score_tree(parse("$1"))
        assert bscore.tolist() == [0.0, 0.0, 0.0, -1.0, 0.0, 0.0, 0.0, 0.0]
        assert scorer.score(parse("$1")) == -1.0

    def test_error(self, scorer):
        assert scorer.error_of(parse("$1")) == pytest.approx(1 / 8)
        assert scorer.error_of(parse("or($1 and($2 $3))")) == 0.0
        assert scorer.error_of(parse("not(or($1 and($2 $3)))")) == 1.0

    def test_error_of_vector_and_candidate(self, blank_inputs):
        scorer = AccuracyScorer(blank_inputs(4), [True] * 4)
        bscore = [1.0, -1.0, 1.0, 1.0]
        cand = ScoredComboTree(tree=parse("$1"), score=2.0, bscore=bscore)

        assert scorer.error_of(bscore) == pytest.approx(0.25)
        assert scorer.error_of(cand) == pytest.approx(0.25)
        with pytest.raises(ValueError):
            scorer.error_of([0.0, 0.0])

    def test_weighted_error(self, scorer):
        weights = np.ones(8)
        weights[3] = 9.0
        scorer.update_weights(weights)
        assert scorer.error_of(parse("$1")) == pytest.approx(9 / 16)

        scorer.reset_weights()
        assert scorer.error_of(parse("$1")) == pytest.approx(1 / 8)

    def test_update_weights_validation(self, scorer):
        with pytest.raises(ValueError):
            scorer.update_weights([1.0, 2.0])
        with pytest.raises(ValueError):
            scorer.update_weights([-1.0] * 8)

    def test_cumulative_weights(self, truth_table, or_target):
        scorer = AccuracyScorer(truth_table, or_target, cumulative=True)
        scorer.update_weights([2.0] + [1.0] * 7)
        scorer.update_weights([2.0] + [1.0] * 7)

        assert scorer.weights.sum() == pytest.approx(8.0)
        assert scorer.weights[0] / scorer.weights[1] == pytest.approx(4.0)

    def test_weighted_vote(self, scorer):
        members = [
            scorer.make_candidate(parse("$1")).with_weight(2.0),
            scorer.make_candidate(parse("and($2 $3)")).with_weight(0.5),
            scorer.make_candidate(parse("false")).with_weight(1.0),
        ]
        # $1 outvotes the other two, so the set behaves like $1
        np.testing.assert_array_equal(scorer(members), scorer.score_tree(parse("$1")))
        assert scorer([]).tolist() == [0.0] * 8


class TestPrecisionScorer:
    """Test row-selection scoring."""

    @pytest.fixture
    def scorer(self, truth_table, or_target):
        return PrecisionScorer(truth_table, or_target)

    def test_behavior(self, scorer):
        bscore = scorer.score_tree(parse("$2"))
        # rows with b set: 010 (negative), 011, 110, 111 (positive)
        assert bscore.tolist() == [0.0, 0.0, -0.5, 0.5, 0.0, 0.0, 0.5, 0.5]

    def test_error(self, scorer):
        assert scorer.error_of(parse("$1")) == 0.0
        assert scorer.error_of(parse("$2")) == pytest.approx(0.25)
        assert scorer.error_of(parse("false")) == 0.5

    def test_selection_union(self, scorer):
        members = [
            scorer.make_candidate(parse("$1")),
            scorer.make_candidate(parse("and($2 $3)")),
        ]
        assert scorer(members).sum() == pytest.approx(2.5)


class TestHelpers:
    """Test scorer factory and candidate helpers."""

    def test_make_scorer(self, truth_table, or_target):
        assert isinstance(make_scorer("accuracy", truth_table, or_target), AccuracyScorer)
        assert isinstance(make_scorer("precision", truth_table, or_target), PrecisionScorer)
        with pytest.raises(ValueError):
            make_scorer("recall", truth_table, or_target)

    def test_target_length(self, truth_table):
        with pytest.raises(ValueError):
            AccuracyScorer(truth_table, [True, False])

    def test_best_candidate(self, candidate):
        pool = [
            candidate("$1", [-1, 0]),
            candidate("$2", [0, 0]),
            candidate("$3", [0, 0]),
        ]
        assert best_candidate(pool).tree == parse("$2")
        assert best_candidate([]) is None

    def test_candidate_identity(self, candidate):
        a = candidate("$1", [0, 0])
        b = candidate("$1", [-1, -1])
        assert a == b
        assert a != a.with_weight(0.3)
        assert a.with_weight(0.3).tree is a.tree
