"""
Command-line interface for comboforge.

Provides commands for:
- Rendering combo programs in other syntaxes
- Listing the variables of a program
- Combining candidate programs into a boosted ensemble
"""

import json
import logging
import sys
from pathlib import Path

import click

from comboforge import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("comboforge")

FORMATS = ["combo", "python", "scheme"]


def _split_labels(labels: str | None) -> list[str] | None:
    if not labels:
        return None
    return [label.strip() for label in labels.split(",")]


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """comboforge - Combo program ensembles."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
@click.argument("program")
@click.option("--format", "-f", "fmt", default="combo", help="Output syntax: combo, python or scheme")
@click.option("--labels", "-l", default=None, help="Comma separated variable names")
@click.option("--no-abbreviate", is_flag=True, help="Write not($n) instead of !$n")
def render(program: str, fmt: str, labels: str, no_abbreviate: bool) -> None:
    """Parse a combo PROGRAM and print it in another syntax."""
    from comboforge.combo.iostream import parse, render as render_tree

    label_list = _split_labels(labels)
    try:
        tree = parse(program, labels=label_list)
        click.echo(
            render_tree(
                tree,
                fmt,
                labels=label_list,
                abbreviate_negation=not no_abbreviate,
            )
        )
    except (ValueError, KeyError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("program")
def variables(program: str) -> None:
    """List the variables used by a combo PROGRAM."""
    from comboforge.combo.iostream import parse_combo_variables

    for name in parse_combo_variables(program):
        click.echo(name)


@main.command()
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("candidates_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--target", "-t", default=None, help="Target column (default: last column)")
@click.option("--scorer", "scorer_name", default=None, help="accuracy or precision (default by mode)")
@click.option("--experts", is_flag=True, help="Use expert row selection instead of AdaBoost")
@click.option("--exact-experts/--inexact-experts", default=True, help="Expert acceptance mode")
@click.option("--experimental", is_flag=True, help="Allow the experimental inexact expert mode")
@click.option("--expalpha", default=2.0, help="Reweighting factor for exact experts")
@click.option("--num-to-promote", "-n", default=10, help="Maximum number of promotions")
@click.option("--bias-scale", default=1.0, help="Scale of the inexact expert bias")
@click.option("--format", "-f", "fmt", default="combo", help="Output syntax: combo, python or scheme")
@click.option("--output", "-o", default=None, help="Output file for results (JSON)")
def ensemble(
    data_file: str,
    candidates_file: str,
    target: str,
    scorer_name: str,
    experts: bool,
    exact_experts: bool,
    experimental: bool,
    expalpha: float,
    num_to_promote: int,
    bias_scale: float,
    fmt: str,
    output: str,
) -> None:
    """Combine the programs in CANDIDATES_FILE into one ensemble tree.

    DATA_FILE is a CSV truth table whose column names are the variable
    labels. CANDIDATES_FILE holds one combo program per line.
    """
    import pandas as pd

    from comboforge.combo.iostream import parse, parse_output_format, render as render_tree
    from comboforge.ensemble.ensemble import Ensemble, EnsembleParameters
    from comboforge.ensemble.scoring import make_scorer

    try:
        out_format = parse_output_format(fmt)
        params = EnsembleParameters(
            do_boosting=True,
            experts=experts,
            exact_experts=exact_experts,
            expalpha=expalpha,
            num_to_promote=num_to_promote,
            bias_scale=bias_scale,
            experimental_inexact_experts=experimental,
        )
    except (ValueError, RuntimeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    table = pd.read_csv(data_file)
    target_col = target or table.columns[-1]
    if target_col not in table.columns:
        click.echo(f"Error: no column {target_col} in {data_file}", err=True)
        sys.exit(1)
    inputs = table.drop(columns=[target_col])
    labels = [str(c) for c in inputs.columns]

    name = scorer_name or ("precision" if experts else "accuracy")
    scorer = make_scorer(name, inputs, table[target_col].astype(bool))

    lines = Path(candidates_file).read_text().splitlines()
    programs = [line.strip() for line in lines if line.strip() and not line.startswith("#")]
    click.echo(f"Scoring {len(programs)} candidates on {len(table)} rows...")

    try:
        pool = [scorer.make_candidate(parse(p, labels=labels)) for p in programs]
        combiner = Ensemble(scorer, params)
        combiner.add_candidates(pool)
    except (ValueError, KeyError, RuntimeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if len(combiner) == 0:
        click.echo("No candidate improved the ensemble.")
        return

    tree = combiner.get_weighted_tree()
    try:
        text = render_tree(tree, out_format, labels=labels)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    flat = combiner.flat_score()

    click.echo(f"Ensemble size: {len(combiner)}")
    click.echo(f"Flat score: {flat:.4f}")
    click.echo(text)

    if output:
        result = {
            "tree": text,
            "format": out_format.value,
            "flat_score": flat,
            "members": [
                {"tree": render_tree(m.tree, labels=labels), "weight": m.weight}
                for m in combiner
            ],
        }
        Path(output).write_text(json.dumps(result, indent=2))
        click.echo(f"\nResults saved to {output}")


@main.command()
def info() -> None:
    """Show comboforge installation info."""
    import numpy as np
    import pandas as pd

    click.echo(f"comboforge v{__version__}\n")
    click.echo("Dependencies:")
    click.echo(f"  numpy: {np.__version__}")
    click.echo(f"  pandas: {pd.__version__}")
    click.echo(f"\nOutput formats: {', '.join(FORMATS)}")


if __name__ == "__main__":
    main()
