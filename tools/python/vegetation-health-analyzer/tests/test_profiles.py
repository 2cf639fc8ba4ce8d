"""Tests for the built-in profiles, run settings and shared validators."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pytest

from shared.python.exceptions import (
    BandIndexError,
    InputValidationError,
    ProfileNotFoundError,
)
from shared.python.validators import Validators
from vegetation_health.profiles import PROFILES, AnalysisSettings, Domain, get_profile


class TestProfiles:
    def test_six_builtins(self) -> None:
        assert list(PROFILES) == [
            "nursery-production",
            "green-foliage",
            "purple-foliage",
            "variegated",
            "flowering",
            "succulent",
        ]

    @pytest.mark.parametrize(
        ("slug", "threshold", "flowers", "fabric"),
        [
            ("nursery-production", 0.15, True, True),
            ("green-foliage", 0.1, False, False),
            ("purple-foliage", -0.2, False, False),
            ("variegated", 0.05, False, False),
            ("flowering", 0.1, True, False),
            ("succulent", 0.08, False, False),
        ],
    )
    def test_defaults(self, slug: str, threshold: float, flowers: bool, fabric: bool) -> None:
        config = get_profile(slug)
        assert config.index_threshold == threshold
        assert (config.filter_flowers, config.filter_fabric) == (flowers, fabric)
        assert config.filtering_enabled == (flowers or fabric)

    def test_nursery_domain(self) -> None:
        assert get_profile("nursery-production").domain is Domain.NURSERY

    def test_unknown_profile(self) -> None:
        with pytest.raises(ProfileNotFoundError) as excinfo:
            get_profile("cactus")
        assert "green-foliage" in excinfo.value.message
        assert isinstance(excinfo.value, InputValidationError)

    def test_with_threshold_returns_copy(self) -> None:
        base = get_profile("green-foliage")
        tuned = base.with_threshold(0.3)
        assert tuned.index_threshold == 0.3
        assert base.index_threshold == 0.1
        assert tuned.domain is base.domain

    @pytest.mark.parametrize("bad", [1.01, -1.5, math.nan, math.inf])
    def test_with_threshold_rejects_out_of_range(self, bad: float) -> None:
        with pytest.raises(InputValidationError):
            get_profile("green-foliage").with_threshold(bad)


class TestAnalysisSettings:
    def test_defaults_are_valid(self) -> None:
        settings = AnalysisSettings()
        settings.validate()
        assert settings.profile == "nursery-production"
        assert settings.equalize is True
        assert settings.max_dimension == 2000

    def test_resolve_keeps_profile_threshold(self) -> None:
        assert AnalysisSettings(profile="succulent").resolve_config().index_threshold == 0.08

    def test_resolve_applies_override(self) -> None:
        config = AnalysisSettings(profile="succulent", threshold=-0.4).resolve_config()
        assert config.index_threshold == -0.4

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"threshold": 2.0},
            {"max_dimension": 0},
            {"sample_stride": 0},
            {"chunk_rows": -1},
            {"max_dimension": True},
        ],
    )
    def test_invalid_fields(self, kwargs: dict) -> None:
        with pytest.raises(InputValidationError):
            AnalysisSettings(**kwargs).validate()

    def test_invalid_profile(self) -> None:
        with pytest.raises(ProfileNotFoundError):
            AnalysisSettings(profile="bonsai").validate()


class TestValidators:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(InputValidationError):
            Validators.assert_file_exists(tmp_path / "nope.jpg")

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(InputValidationError):
            Validators.assert_file_exists(tmp_path)

    def test_extension_case_insensitive(self, tmp_path: Path) -> None:
        Validators.assert_supported_extension(tmp_path / "A.JPG", [".jpg"])
        with pytest.raises(InputValidationError):
            Validators.assert_supported_extension(tmp_path / "a.gif", [".jpg"])

    def test_output_dir_created(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"
        Validators.assert_output_dir_writable(target)
        assert target.is_dir()

    def test_positive_int_accepts_numpy_integers(self) -> None:
        Validators.assert_positive_int(np.int64(2), "sample_stride")
        Validators.assert_positive_int(np.uint8(1), "chunk_rows")
        with pytest.raises(InputValidationError):
            Validators.assert_positive_int(np.int32(0), "chunk_rows")

    @pytest.mark.parametrize("bad", [True, 2.0, "3"])
    def test_positive_int_rejects_non_integers(self, bad: object) -> None:
        with pytest.raises(InputValidationError):
            Validators.assert_positive_int(bad, "max_dimension")  # type: ignore[arg-type]

    def test_band_index(self) -> None:
        Validators.assert_band_index_valid(3, 3)
        with pytest.raises(BandIndexError):
            Validators.assert_band_index_valid(0, 3)
