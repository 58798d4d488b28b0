"""Tests for the command-line interface."""

import itertools
import json

import pytest
from click.testing import CliRunner

from comboforge.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_file(tmp_path):
    """Truth table for y = a or (b and c)."""
    lines = ["a,b,c,y"]
    for a, b, c in itertools.product([0, 1], repeat=3):
        lines.append(f"{a},{b},{c},{int(a or (b and c))}")
    path = tmp_path / "data.csv"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def candidates_file(tmp_path):
    path = tmp_path / "candidates.txt"
    path.write_text("# candidate programs\n$a\n$b\n\nand($b $c)\n")
    return path


class TestRender:
    """Test the render command."""

    def test_combo(self, runner):
        result = runner.invoke(main, ["render", "and($1 not($2))"])
        assert result.exit_code == 0
        assert result.output.strip() == "and($1 !$2)"

    def test_no_abbreviate(self, runner):
        result = runner.invoke(main, ["render", "and($1 !$2)", "--no-abbreviate"])
        assert result.output.strip() == "and($1 not($2))"

    def test_python(self, runner):
        result = runner.invoke(main, ["render", "or($1 $2)", "-f", "python"])
        assert result.output.strip() == "(i[0] or i[1])"

    def test_labels(self, runner):
        result = runner.invoke(main, ["render", "and($x !$y)", "-l", "x,y", "-f", "scheme"])
        assert result.exit_code == 0
        assert result.output.strip() == (
            '(AndLink (PredicateNode "x") (NotLink (PredicateNode "y")))'
        )

    def test_unknown_format(self, runner):
        result = runner.invoke(main, ["render", "$1", "-f", "json"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_parse_error(self, runner):
        result = runner.invoke(main, ["render", "and($1 @x)"])
        assert result.exit_code == 1


class TestVariables:
    """Test the variables command."""

    def test_variables(self, runner):
        result = runner.invoke(main, ["variables", "or($rain and($sun !$wind))"])
        assert result.exit_code == 0
        assert result.output.split() == ["rain", "sun", "wind"]


class TestEnsemble:
    """Test the ensemble command."""

    def test_exact_experts(self, runner, data_file, candidates_file, tmp_path):
        out = tmp_path / "result.json"
        result = runner.invoke(
            main,
            ["ensemble", str(data_file), str(candidates_file), "--experts", "-o", str(out)],
        )

        assert result.exit_code == 0
        assert "Ensemble size: 2" in result.output
        assert "or($a and($b $c))" in result.output

        saved = json.loads(out.read_text())
        assert saved["tree"] == "or($a and($b $c))"
        assert saved["format"] == "combo"
        assert saved["flat_score"] == pytest.approx(2.5)
        assert [m["tree"] for m in saved["members"]] == ["$a", "and($b $c)"]

    def test_adaboost(self, runner, data_file, tmp_path):
        candidates = tmp_path / "boost.txt"
        candidates.write_text("$a\nand($b $c)\n")
        result = runner.invoke(main, ["ensemble", str(data_file), str(candidates)])

        assert result.exit_code == 0
        assert "Ensemble size: 2" in result.output
        assert "0<(+(" in result.output

    def test_inexact_requires_opt_in(self, runner, data_file, candidates_file):
        result = runner.invoke(
            main,
            ["ensemble", str(data_file), str(candidates_file), "--experts", "--inexact-experts"],
        )
        assert result.exit_code == 1
        assert "experimental" in result.output

    def test_no_improvement(self, runner, data_file, tmp_path):
        candidates = tmp_path / "bad.txt"
        candidates.write_text("not($a)\n")
        result = runner.invoke(main, ["ensemble", str(data_file), str(candidates)])

        assert result.exit_code == 0
        assert "No candidate improved the ensemble." in result.output

    def test_missing_target(self, runner, data_file, candidates_file):
        result = runner.invoke(
            main, ["ensemble", str(data_file), str(candidates_file), "-t", "z"]
        )
        assert result.exit_code == 1
