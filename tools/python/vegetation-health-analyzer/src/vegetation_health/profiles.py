"""
Vegetation Health Analyzer — Profiles & Settings
=================================================
Domain profiles (index formula + default threshold + filter flags) and the
per-run settings bundle.

Classes:
    Domain              Closed set of index-formula variants.
    AnalysisConfig      Immutable profile; six built-ins live in ``PROFILES``.
    AnalysisSettings    Mutable per-run configuration (threshold override,
                        histogram equalisation, dimension cap, sampling).

Usage::

    from vegetation_health.profiles import AnalysisSettings, get_profile

    config = get_profile("nursery-production").with_threshold(0.2)
    settings = AnalysisSettings(profile="succulent", equalize=False)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from shared.python.exceptions import ProfileNotFoundError
from shared.python.validators import Validators

DEFAULT_PROFILE = "nursery-production"
DEFAULT_MAX_DIMENSION = 2000
DEFAULT_CHUNK_ROWS = 512
THRESHOLD_RANGE = (-1.0, 1.0)


class Domain(str, Enum):
    """Vegetation domain; selects which index formula is evaluated."""

    STANDARD = "standard"
    PURPLE = "purple"
    VARIEGATED = "variegated"
    FLOWERING = "flowering"
    SUCCULENT = "succulent"
    NURSERY = "nursery"


@dataclass(frozen=True)
class AnalysisConfig:
    """Immutable vegetation-domain profile.

    Attributes:
        name: Display name.
        description: One-line display description.
        index_threshold: Health/stress cutoff for the computed index.
        domain: Which index formula variant to use.
        filter_flowers: Screen out flower and new-growth pixels.
        filter_fabric: Screen out ground fabric, gravel and shadow pixels.
    """

    name: str
    description: str
    index_threshold: float
    domain: Domain
    filter_flowers: bool = False
    filter_fabric: bool = False

    @property
    def filtering_enabled(self) -> bool:
        return self.filter_flowers or self.filter_fabric

    def with_threshold(self, threshold: float) -> AnalysisConfig:
        """Return a copy using *threshold* instead of the profile default.

        Raises:
            InputValidationError: If *threshold* is outside [-1, 1].
        """
        Validators.assert_in_range(threshold, *THRESHOLD_RANGE, "threshold")
        return replace(self, index_threshold=float(threshold))


PROFILES: dict[str, AnalysisConfig] = {
    "nursery-production": AnalysisConfig(
        name="Nursery Production",
        description="Filters flowers, new growth, and ground fabric",
        index_threshold=0.15,
        domain=Domain.NURSERY,
        filter_flowers=True,
        filter_fabric=True,
    ),
    "green-foliage": AnalysisConfig(
        name="Green Foliage Plants",
        description="Standard green plants (most common)",
        index_threshold=0.1,
        domain=Domain.STANDARD,
    ),
    "purple-foliage": AnalysisConfig(
        name="Purple/Red Foliage",
        description="Plants with naturally purple or red leaves",
        index_threshold=-0.2,
        domain=Domain.PURPLE,
    ),
    "variegated": AnalysisConfig(
        name="Variegated Plants",
        description="Plants with mixed color patterns",
        index_threshold=0.05,
        domain=Domain.VARIEGATED,
    ),
    "flowering": AnalysisConfig(
        name="Flowering Plants",
        description="Focus on foliage, ignore flowers",
        index_threshold=0.1,
        domain=Domain.FLOWERING,
        filter_flowers=True,
    ),
    "succulent": AnalysisConfig(
        name="Succulents/Cacti",
        description="Blue-green or gray-green foliage",
        index_threshold=0.08,
        domain=Domain.SUCCULENT,
    ),
}


def get_profile(name: str) -> AnalysisConfig:
    """Look up a built-in profile by its slug.

    Raises:
        ProfileNotFoundError: If *name* is not in :data:`PROFILES`.
    """
    try:
        return PROFILES[name]
    except KeyError:
        raise ProfileNotFoundError(name, list(PROFILES)) from None


@dataclass
class AnalysisSettings:
    """Configuration for one analysis run.

    Attributes:
        profile: Slug of a built-in profile in :data:`PROFILES`.
        threshold: Index threshold override.  ``None`` keeps the profile
                   default.
        equalize: Apply luminance histogram equalisation before classifying.
        max_dimension: Longest side, in pixels, the image is processed at.
        sample_stride: Statistics are gathered from every Nth pixel.
                       ``None`` picks ``max(1, total_pixels // 100_000)``.
        fail_on_empty: Raise :class:`EmptyVegetationError` instead of
                       returning a degenerate result.
        chunk_rows: Rows classified between cancellation checks.
        bands: 1-based (red, green, blue) band indices for GeoTIFF input.
    """

    profile: str = DEFAULT_PROFILE
    threshold: float | None = None
    equalize: bool = True
    max_dimension: int = DEFAULT_MAX_DIMENSION
    sample_stride: int | None = None
    fail_on_empty: bool = False
    chunk_rows: int = DEFAULT_CHUNK_ROWS
    bands: tuple[int, int, int] = (1, 2, 3)

    def validate(self) -> None:
        """Check every field, raising on the first bad value.

        Raises:
            ProfileNotFoundError: If ``profile`` is unknown.
            InputValidationError: If a numeric field is out of range.
        """
        get_profile(self.profile)
        if self.threshold is not None:
            Validators.assert_in_range(self.threshold, *THRESHOLD_RANGE, "threshold")
        Validators.assert_positive_int(self.max_dimension, "max_dimension")
        Validators.assert_positive_int(self.chunk_rows, "chunk_rows")
        if self.sample_stride is not None:
            Validators.assert_positive_int(self.sample_stride, "sample_stride")

    def resolve_config(self) -> AnalysisConfig:
        """Return the selected profile with the threshold override applied."""
        config = get_profile(self.profile)
        if self.threshold is None:
            return config
        return config.with_threshold(self.threshold)
