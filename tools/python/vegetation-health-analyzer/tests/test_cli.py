"""Tests for the ``veg-health`` Click command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from conftest import solid, split_green_red
from vegetation_health.cli import main


def test_list_profiles() -> None:
    result = CliRunner().invoke(main, ["--list-profiles"])
    assert result.exit_code == 0
    assert "Available profiles:" in result.output
    assert "nursery-production" in result.output
    assert "succulent" in result.output


def test_no_inputs_is_an_error() -> None:
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 1
    assert "At least one input image" in result.output


def test_analyses_each_input(png_file, tmp_path: Path) -> None:
    first = png_file(split_green_red(), "first")
    second = png_file(solid(4, 4, (0, 255, 0)), "second")
    out_dir = tmp_path / "results"

    result = CliRunner().invoke(
        main,
        [str(first), str(second), "-o", str(out_dir), "-p", "green-foliage", "--no-equalize"],
    )

    assert result.exit_code == 0, result.output
    assert "first.png: health=50.0%" in result.output
    assert "second.png: health=100.0%" in result.output
    assert (out_dir / "first_health.png").exists()
    doc = json.loads((out_dir / "second_health.json").read_text(encoding="utf-8"))
    assert doc["profile"] == "green-foliage"
    assert doc["settings"]["histogram_equalization"] is False


def test_threshold_option(png_file, tmp_path: Path) -> None:
    image = png_file(split_green_red())
    result = CliRunner().invoke(
        main, [str(image), "-o", str(tmp_path), "-p", "green-foliage", "-t", "-0.25"]
    )
    assert result.exit_code == 0, result.output
    doc = json.loads((tmp_path / "image_health.json").read_text(encoding="utf-8"))
    assert doc["threshold"] == -0.25


def test_threshold_out_of_range(png_file) -> None:
    result = CliRunner().invoke(main, [str(png_file(split_green_red())), "-t", "1.5"])
    assert result.exit_code == 2


def test_unknown_profile(png_file) -> None:
    result = CliRunner().invoke(main, [str(png_file(split_green_red())), "-p", "moss"])
    assert result.exit_code == 2


def test_corrupt_image_reports_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"not a png")
    result = CliRunner().invoke(main, [str(path), "-o", str(tmp_path / "out")])
    assert result.exit_code == 1
    assert "Error: Cannot decode image 'broken.png'" in result.output


def test_bad_input_does_not_stop_the_batch(png_file, tmp_path: Path) -> None:
    first = png_file(split_green_red(), "a")
    broken = tmp_path / "b.png"
    broken.write_bytes(b"not a png")
    last = png_file(solid(4, 4, (0, 255, 0)), "c")
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        main, [str(first), str(broken), str(last), "-o", str(out_dir), "--no-equalize"]
    )

    assert result.exit_code == 1
    assert "Error: Cannot decode image 'b.png'" in result.output
    assert "1 of 3 input(s) failed." in result.output
    assert (out_dir / "a_health.png").exists()
    assert (out_dir / "c_health.png").exists()
    assert not (out_dir / "b_health.png").exists()


def test_stress_warning(png_file, tmp_path: Path) -> None:
    image = png_file(solid(4, 4, (255, 0, 0)))
    result = CliRunner().invoke(
        main, [str(image), "-o", str(tmp_path), "-p", "green-foliage", "--no-equalize"]
    )
    assert result.exit_code == 0, result.output
    assert "Significant stress detected" in result.output
