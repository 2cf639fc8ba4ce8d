"""
Vegetation Health Analyzer — Renderer
======================================
Paints every pixel a flat, fully opaque colour keyed by its category or
health bucket, and builds the matching legend.

The source raster is never written to; the classified view is a new
:class:`~vegetation_health.raster.RasterImage` of identical dimensions.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vegetation_health.classifier import (
    ClassificationMap,
    HealthBucket,
    PixelCategory,
    health_buckets,
)
from vegetation_health.profiles import AnalysisConfig
from vegetation_health.raster import GeoReference, RasterImage

RGB = tuple[int, int, int]

CATEGORY_COLORS: dict[PixelCategory, RGB] = {
    PixelCategory.FABRIC: (50, 50, 50),
    PixelCategory.FLOWER: (255, 192, 203),
    PixelCategory.NEW_GROWTH: (255, 245, 186),
}

BUCKET_COLORS: dict[HealthBucket, RGB] = {
    HealthBucket.VERY_HEALTHY: (0, 255, 0),
    HealthBucket.HEALTHY: (34, 200, 34),
    HealthBucket.BORDERLINE: (255, 255, 0),
    HealthBucket.STRESSED: (255, 140, 0),
    HealthBucket.SEVERE_STRESS: (255, 0, 0),
}

# Palette rows: the five buckets first, then the screened categories.
_PALETTE = np.array(
    [BUCKET_COLORS[bucket] for bucket in HealthBucket]
    + [CATEGORY_COLORS[PixelCategory.FABRIC],
       CATEGORY_COLORS[PixelCategory.FLOWER],
       CATEGORY_COLORS[PixelCategory.NEW_GROWTH]],
    dtype=np.uint8,
)
_CATEGORY_ROWS = {
    PixelCategory.FABRIC: len(HealthBucket),
    PixelCategory.FLOWER: len(HealthBucket) + 1,
    PixelCategory.NEW_GROWTH: len(HealthBucket) + 2,
}


@dataclass(frozen=True)
class LegendEntry:
    """One row of the classification legend."""

    label: str
    color: RGB

    @property
    def hex(self) -> str:
        return "#{:02X}{:02X}{:02X}".format(*self.color)

    def to_dict(self) -> dict:
        return {"label": self.label, "color": self.hex, "rgb": list(self.color)}


def render(
    classification: ClassificationMap,
    threshold: float,
    georef: GeoReference | None = None,
) -> RasterImage:
    """Paint the classification as an RGBA raster.

    Args:
        classification: Per-pixel categories and indices.
        threshold: Index threshold the health buckets are offset from.
        georef: Georeferencing to carry onto the output, if any.
    """
    rows = health_buckets(classification.index, threshold)
    for category, row in _CATEGORY_ROWS.items():
        rows = np.where(classification.categories == category, row, rows)

    height, width = classification.shape
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[:, :, :3] = _PALETTE[rows]
    out[:, :, 3] = 255
    return RasterImage(out, georef)


def legend(config: AnalysisConfig) -> list[LegendEntry]:
    """Legend rows for *config*: health scale, then any screened categories."""
    entries = [
        LegendEntry("Very Healthy", BUCKET_COLORS[HealthBucket.VERY_HEALTHY]),
        LegendEntry(
            f"Healthy (>{config.index_threshold:.2f})",
            BUCKET_COLORS[HealthBucket.HEALTHY],
        ),
        LegendEntry("Borderline", BUCKET_COLORS[HealthBucket.BORDERLINE]),
        LegendEntry("Stressed", BUCKET_COLORS[HealthBucket.STRESSED]),
        LegendEntry("Severe Stress", BUCKET_COLORS[HealthBucket.SEVERE_STRESS]),
    ]
    if config.filter_flowers:
        entries.append(LegendEntry("Flowers (ignored)", CATEGORY_COLORS[PixelCategory.FLOWER]))
        entries.append(
            LegendEntry("New Growth (neutral)", CATEGORY_COLORS[PixelCategory.NEW_GROWTH])
        )
    if config.filter_fabric:
        entries.append(LegendEntry("Black Fabric (ignored)", CATEGORY_COLORS[PixelCategory.FABRIC]))
    return entries
