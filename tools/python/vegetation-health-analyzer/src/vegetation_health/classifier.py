"""
Vegetation Health Analyzer — Pixel Classifier
==============================================
Per-pixel decision procedure: screen out non-vegetation (ground fabric,
flowers, new growth), otherwise compute a VARI-style vegetation index with
the formula selected by the profile's :class:`~vegetation_health.profiles.Domain`.

Each formula is an :class:`IndexStrategy` subclass (Strategy pattern);
``INDEX_STRATEGIES`` is the closed lookup table from domain to strategy.

Decision order (first match wins):

1. Fabric / background (``filter_fabric`` only): true black, bluish-gray
   fabric, neutral gray fabric.
2. Flower (``filter_flowers`` only): saturated and not green-dominant.
3. New growth (``filter_flowers`` only): reddish, mid brightness.
4. Vegetation: domain index, non-finite values replaced by 0.

All masks and formulas are written once against numpy arrays;
:func:`classify_pixel` runs the same code on a one-pixel array so the
scalar and raster paths cannot disagree.

Health buckets are derived later from ``d = index - threshold``:

    ============  ====================
    bucket        d range
    ============  ====================
    very healthy  d > 0.2
    healthy       0.05 < d <= 0.2
    borderline    -0.05 <= d <= 0.05
    stressed      -0.2 <= d < -0.05
    severe        d < -0.2
    ============  ====================
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import numpy.typing as npt

from shared.python.exceptions import AnalysisCancelledError
from vegetation_health.profiles import AnalysisConfig, Domain
from vegetation_health.raster import RasterImage

logger = logging.getLogger("vegscan.vegetation_health.classifier")

FloatArray = npt.NDArray[np.float64]

# Guards the index denominators against exact zero.
EPSILON = 0.001

# Fabric / background screen
BLACK_MAX_CHANNEL = 0.1
BLUE_FABRIC_MAX_SATURATION = 0.15
BLUE_FABRIC_BRIGHTNESS = (0.25, 0.6)
BLUE_FABRIC_MIN_DOMINANCE = 0.05
GRAY_FABRIC_MAX_SATURATION = 0.05
GRAY_FABRIC_BRIGHTNESS = (0.2, 0.45)
GRAY_FABRIC_MAX_CHANNEL_DIFF = 0.05

# Flower / new-growth screens
FLOWER_MIN_SATURATION = 0.4
NEW_GROWTH_RED_RATIO = (1.2, 1.8)
NEW_GROWTH_BRIGHTNESS = (0.3, 0.6)

# Domain formula tuning
VARIEGATION_DAMPING = 0.2
FLOWERING_MAX_SATURATION = 0.5
SUCCULENT_RED_WEIGHT = 0.8
SUCCULENT_BLUE_WEIGHT = 1.2

# Bucket edges, as offsets from the configured threshold
VERY_HEALTHY_ABOVE = 0.2
HEALTHY_ABOVE = 0.05
BORDERLINE_FROM = -0.05
STRESSED_FROM = -0.2


class PixelCategory(IntEnum):
    """Per-pixel tag stored in the ``uint8`` category raster."""

    VEGETATION = 0
    FABRIC = 1
    FLOWER = 2
    NEW_GROWTH = 3

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    PixelCategory.VEGETATION: "vegetation",
    PixelCategory.FABRIC: "fabric",
    PixelCategory.FLOWER: "flower",
    PixelCategory.NEW_GROWTH: "newgrowth",
}


class HealthBucket(IntEnum):
    """Five-way health classification of a vegetation pixel."""

    VERY_HEALTHY = 0
    HEALTHY = 1
    BORDERLINE = 2
    STRESSED = 3
    SEVERE_STRESS = 4

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class PixelClassification:
    """Classification of one pixel.

    Attributes:
        category: Which screen (if any) matched.
        index: Vegetation index for ``VEGETATION`` pixels, else ``None``.
    """

    category: PixelCategory
    index: float | None = None

    @property
    def is_vegetation(self) -> bool:
        return self.category is PixelCategory.VEGETATION


@dataclass(frozen=True)
class ClassificationMap:
    """Classification of every pixel of a raster.

    Attributes:
        categories: ``(H, W)`` ``uint8`` array of :class:`PixelCategory` codes.
        index: ``(H, W)`` float64 index; 0 wherever the pixel is not vegetation.
    """

    categories: npt.NDArray[np.uint8]
    index: FloatArray

    @property
    def shape(self) -> tuple[int, int]:
        return self.categories.shape  # type: ignore[return-value]

    def vegetation_mask(self) -> npt.NDArray[np.bool_]:
        return self.categories == PixelCategory.VEGETATION


# ---------------------------------------------------------------------------
# Index strategy ABC + concrete implementations
# ---------------------------------------------------------------------------


class IndexStrategy(ABC):
    """Abstract base for a vegetation-index formula.

    Channels arrive as float64 arrays normalised to [0, 1].  Results may
    contain ``inf`` / ``nan`` where a denominator vanishes; the caller
    replaces those with a neutral 0.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short formula name used in logs."""

    @abstractmethod
    def compute(self, r: FloatArray, g: FloatArray, b: FloatArray) -> FloatArray:
        """Compute the index for every element of the channel arrays."""


class StandardVARIStrategy(IndexStrategy):
    """Green foliage: ``(G - R) / (G + R - B + ε)``."""

    @property
    def name(self) -> str:
        return "VARI"

    def compute(self, r: FloatArray, g: FloatArray, b: FloatArray) -> FloatArray:
        return (g - r) / (g + r - b + EPSILON)


class PurpleFoliageStrategy(IndexStrategy):
    """Purple/red foliage, where healthy leaves lean red: ``(R - G) / (R + G - B + ε)``."""

    @property
    def name(self) -> str:
        return "VARI-purple"

    def compute(self, r: FloatArray, g: FloatArray, b: FloatArray) -> FloatArray:
        return (r - g) / (r + g - b + EPSILON)


class VariegatedStrategy(IndexStrategy):
    """Standard VARI damped by channel spread.

    ``VARI * (1 - 0.2 * (|G-R| + |G-B| + |R-B|))``
    """

    @property
    def name(self) -> str:
        return "VARI-variegated"

    def compute(self, r: FloatArray, g: FloatArray, b: FloatArray) -> FloatArray:
        variance = np.abs(g - r) + np.abs(g - b) + np.abs(r - b)
        vari = (g - r) / (g + r - b + EPSILON)
        return vari * (1.0 - variance * VARIEGATION_DAMPING)


class FloweringStrategy(IndexStrategy):
    """Standard VARI, but highly saturated pixels score a neutral 0."""

    @property
    def name(self) -> str:
        return "VARI-flowering"

    def compute(self, r: FloatArray, g: FloatArray, b: FloatArray) -> FloatArray:
        saturation = np.maximum(np.maximum(r, g), b) - np.minimum(np.minimum(r, g), b)
        vari = (g - r) / (g + r - b + EPSILON)
        return np.where(saturation > FLOWERING_MAX_SATURATION, 0.0, vari)


class SucculentStrategy(IndexStrategy):
    """Blue-green foliage: ``(G - 0.8R) / (G + R - 1.2B + ε)``."""

    @property
    def name(self) -> str:
        return "VARI-succulent"

    def compute(self, r: FloatArray, g: FloatArray, b: FloatArray) -> FloatArray:
        return (g - r * SUCCULENT_RED_WEIGHT) / (g + r - b * SUCCULENT_BLUE_WEIGHT + EPSILON)


INDEX_STRATEGIES: dict[Domain, IndexStrategy] = {
    Domain.STANDARD: StandardVARIStrategy(),
    Domain.PURPLE: PurpleFoliageStrategy(),
    Domain.VARIEGATED: VariegatedStrategy(),
    Domain.FLOWERING: FloweringStrategy(),
    Domain.SUCCULENT: SucculentStrategy(),
    Domain.NURSERY: StandardVARIStrategy(),
}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def normalize_channels(rgb: npt.NDArray[np.uint8]) -> tuple[FloatArray, FloatArray, FloatArray]:
    """Split an ``(..., 3)`` uint8 array into float64 R, G, B in [0, 1]."""
    values = rgb.astype(np.float64) / 255.0
    return values[..., 0], values[..., 1], values[..., 2]


def _fabric_mask(r: FloatArray, g: FloatArray, b: FloatArray) -> npt.NDArray[np.bool_]:
    brightness = (r + g + b) / 3
    max_c = np.maximum(np.maximum(r, g), b)
    min_c = np.minimum(np.minimum(r, g), b)
    saturation = max_c - min_c

    black = max_c < BLACK_MAX_CHANNEL

    # Fabric has blue leading green; plants have green leading blue.
    with np.errstate(divide="ignore", invalid="ignore"):
        blue_dominance = (b - g) / b
    bluish_gray = (
        (b > g) & (g > r)
        & (saturation < BLUE_FABRIC_MAX_SATURATION)
        & (brightness > BLUE_FABRIC_BRIGHTNESS[0])
        & (brightness < BLUE_FABRIC_BRIGHTNESS[1])
        & (blue_dominance > BLUE_FABRIC_MIN_DOMINANCE)
    )

    channel_diff = np.abs(r - g) + np.abs(g - b) + np.abs(r - b)
    neutral_gray = (
        (saturation < GRAY_FABRIC_MAX_SATURATION)
        & (brightness > GRAY_FABRIC_BRIGHTNESS[0])
        & (brightness < GRAY_FABRIC_BRIGHTNESS[1])
        & (channel_diff < GRAY_FABRIC_MAX_CHANNEL_DIFF)
    )
    return black | bluish_gray | neutral_gray


def _flower_mask(r: FloatArray, g: FloatArray, b: FloatArray) -> npt.NDArray[np.bool_]:
    saturation = np.maximum(np.maximum(r, g), b) - np.minimum(np.minimum(r, g), b)
    return (saturation > FLOWER_MIN_SATURATION) & (g < np.maximum(r, b))


def _new_growth_mask(r: FloatArray, g: FloatArray, b: FloatArray) -> npt.NDArray[np.bool_]:
    brightness = (r + g + b) / 3
    return (
        (r > g * NEW_GROWTH_RED_RATIO[0])
        & (r < g * NEW_GROWTH_RED_RATIO[1])
        & (brightness > NEW_GROWTH_BRIGHTNESS[0])
        & (brightness < NEW_GROWTH_BRIGHTNESS[1])
    )


def classify_channels(
    r: FloatArray,
    g: FloatArray,
    b: FloatArray,
    config: AnalysisConfig,
) -> tuple[npt.NDArray[np.uint8], FloatArray]:
    """Classify every element of the normalised channel arrays.

    Args:
        r: Red channel in [0, 1].
        g: Green channel in [0, 1].
        b: Blue channel in [0, 1].
        config: Profile providing the domain formula and filter flags.

    Returns:
        ``(categories, index)`` arrays shaped like the inputs.  ``index`` is
        0 for non-vegetation pixels and for non-finite formula results.
    """
    conditions: list[npt.NDArray[np.bool_]] = []
    choices: list[int] = []
    if config.filter_fabric:
        conditions.append(_fabric_mask(r, g, b))
        choices.append(PixelCategory.FABRIC)
    if config.filter_flowers:
        conditions.append(_flower_mask(r, g, b))
        choices.append(PixelCategory.FLOWER)
        conditions.append(_new_growth_mask(r, g, b))
        choices.append(PixelCategory.NEW_GROWTH)

    if conditions:
        categories = np.select(conditions, choices, default=PixelCategory.VEGETATION)
        categories = categories.astype(np.uint8)
    else:
        categories = np.full(np.shape(r), PixelCategory.VEGETATION, dtype=np.uint8)

    strategy = INDEX_STRATEGIES[config.domain]
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        index = strategy.compute(r, g, b)
    index = np.where(np.isfinite(index), index, 0.0)
    index = np.where(categories == PixelCategory.VEGETATION, index, 0.0)
    return categories, index.astype(np.float64)


def classify_pixel(r: float, g: float, b: float, config: AnalysisConfig) -> PixelClassification:
    """Classify a single pixel given normalised RGB in [0, 1].

    Example::

        >>> cfg = get_profile("green-foliage")
        >>> round(classify_pixel(0.0, 1.0, 0.0, cfg).index, 3)
        0.999
    """
    channels = [np.array([value], dtype=np.float64) for value in (r, g, b)]
    categories, index = classify_channels(*channels, config)
    category = PixelCategory(int(categories[0]))
    if category is PixelCategory.VEGETATION:
        return PixelClassification(category, float(index[0]))
    return PixelClassification(category)


def classify_raster(
    raster: RasterImage,
    config: AnalysisConfig,
    *,
    chunk_rows: int = 512,
    cancel: threading.Event | None = None,
) -> ClassificationMap:
    """Classify every pixel of *raster*, a block of rows at a time.

    Args:
        raster: Source raster; only its RGB channels are read.
        config: Profile to classify with.
        chunk_rows: Rows per block.
        cancel: Optional event checked before each block.

    Raises:
        AnalysisCancelledError: If *cancel* is set before the last block.
    """
    height, width = raster.height, raster.width
    categories = np.empty((height, width), dtype=np.uint8)
    index = np.empty((height, width), dtype=np.float64)
    rgb = raster.rgb()

    logger.debug(
        "Classifying %d×%d with %s in blocks of %d rows",
        width, height, INDEX_STRATEGIES[config.domain].name, chunk_rows,
    )
    for start in range(0, height, chunk_rows):
        if cancel is not None and cancel.is_set():
            raise AnalysisCancelledError(start, height)
        stop = min(start + chunk_rows, height)
        r, g, b = normalize_channels(rgb[start:stop])
        categories[start:stop], index[start:stop] = classify_channels(r, g, b, config)

    return ClassificationMap(categories=categories, index=index)


# ---------------------------------------------------------------------------
# Health buckets
# ---------------------------------------------------------------------------


def health_bucket(index: float, threshold: float) -> HealthBucket:
    """Bucket one vegetation index relative to *threshold*."""
    d = index - threshold
    if d > VERY_HEALTHY_ABOVE:
        return HealthBucket.VERY_HEALTHY
    if d > HEALTHY_ABOVE:
        return HealthBucket.HEALTHY
    if d >= BORDERLINE_FROM:
        return HealthBucket.BORDERLINE
    if d >= STRESSED_FROM:
        return HealthBucket.STRESSED
    return HealthBucket.SEVERE_STRESS


def health_buckets(index: FloatArray, threshold: float) -> npt.NDArray[np.uint8]:
    """Vectorised :func:`health_bucket` over an index array."""
    d = index - threshold
    return np.select(
        [d > VERY_HEALTHY_ABOVE, d > HEALTHY_ABOVE, d >= BORDERLINE_FROM, d >= STRESSED_FROM],
        [HealthBucket.VERY_HEALTHY, HealthBucket.HEALTHY, HealthBucket.BORDERLINE, HealthBucket.STRESSED],
        default=HealthBucket.SEVERE_STRESS,
    ).astype(np.uint8)
