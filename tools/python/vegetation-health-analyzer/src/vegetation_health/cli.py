"""
Vegetation Health Analyzer — CLI Entry Point
=============================================
Installed as the ``veg-health`` command via ``pyproject.toml``.

Usage::

    veg-health flights/block_a.jpg --output-dir output/block_a
    veg-health block_*.jpg --profile succulent --threshold 0.05 --no-equalize
    veg-health ortho.tif --sample-stride 1 --verbose
    veg-health --list-profiles

Run ``veg-health --help`` for the full option list.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from shared.python.exceptions import VegScanError
from vegetation_health.analyzer import VegetationHealthAnalyzer
from vegetation_health.profiles import DEFAULT_MAX_DIMENSION, DEFAULT_PROFILE, PROFILES, AnalysisSettings

logger = logging.getLogger("vegscan.vegetation_health.cli")


def _echo_profiles() -> None:
    for slug, config in PROFILES.items():
        filters = [
            name for name, on in (("flowers", config.filter_flowers), ("fabric", config.filter_fabric)) if on
        ]
        click.echo(
            f"  {slug:<20} threshold={config.index_threshold:+.2f}  "
            f"filters={','.join(filters) or '-':<14} {config.description}"
        )


@click.command(
    name="veg-health",
    help="Classify plant health in aerial RGB images and write a colour-coded map plus JSON statistics.",
)
@click.argument(
    "inputs",
    nargs=-1,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--profile", "-p",
    type=click.Choice(list(PROFILES), case_sensitive=False),
    default=DEFAULT_PROFILE,
    show_default=True,
    help="Vegetation profile (index formula, default threshold, filters).",
)
@click.option(
    "--threshold", "-t",
    type=click.FloatRange(-1.0, 1.0),
    default=None,
    help="Override the profile's index threshold (-1 to 1).",
)
@click.option(
    "--equalize/--no-equalize",
    default=True,
    show_default=True,
    help="Apply luminance histogram equalisation before classifying.",
)
@click.option(
    "--max-dimension",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_DIMENSION,
    show_default=True,
    help="Downsample so the longest side is at most this many pixels.",
)
@click.option(
    "--sample-stride",
    type=click.IntRange(min=1),
    default=None,
    help="Gather statistics from every Nth pixel (default: automatic, ~100k samples).",
)
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("output"),
    show_default=True,
    help="Directory for the PNG / JSON / GeoTIFF outputs.",
)
@click.option(
    "--fail-on-empty",
    is_flag=True,
    default=False,
    help="Treat an image with no vegetation pixels as an error.",
)
@click.option("--list-profiles", is_flag=True, default=False, help="List the built-in profiles and exit.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(
    inputs: tuple[Path, ...],
    profile: str,
    threshold: float | None,
    equalize: bool,
    max_dimension: int,
    sample_stride: int | None,
    output_dir: Path,
    fail_on_empty: bool,
    list_profiles: bool,
    verbose: bool,
) -> None:
    """CLI entry point — wires Click options into VegetationHealthAnalyzer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if list_profiles:
        click.echo("Available profiles:")
        _echo_profiles()
        return

    if not inputs:
        click.echo("Error: At least one input image must be provided. See --help.", err=True)
        sys.exit(1)

    settings = AnalysisSettings(
        profile=profile.lower(),
        threshold=threshold,
        equalize=equalize,
        max_dimension=max_dimension,
        sample_stride=sample_stride,
        fail_on_empty=fail_on_empty,
    )

    failed = 0
    for input_path in inputs:
        tool = VegetationHealthAnalyzer(input_path, output_dir, settings, verbose=verbose)
        try:
            tool.run()
        except VegScanError as exc:
            click.echo(f"Error: {exc.message}", err=True)
            failed += 1
            continue

        run = tool.run_result
        click.echo(f"\n{input_path.name}: {run.result}")
        if run.result.needs_attention:
            click.echo("  Significant stress detected. Consider investigating affected areas.")
        for path in tool.outputs or ():
            click.echo(f"  → {path}")

    if failed:
        click.echo(f"\n{failed} of {len(inputs)} input(s) failed.", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
