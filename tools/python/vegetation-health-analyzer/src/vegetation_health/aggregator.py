"""
Vegetation Health Analyzer — Aggregator
========================================
Tallies a :class:`~vegetation_health.classifier.ClassificationMap` into an
immutable :class:`AnalysisResult`.

Statistics are gathered from a fixed-stride sample of the row-major pixel
stream: pixel ``i`` is counted when ``i % sample_stride == 0``.  At the
default stride (``max(1, total_pixels // 100_000)``) large images are
sampled, so every pixel *count* in the result is a count of sampled
pixels, not an exact image total.  :meth:`AnalysisResult.estimated_pixels`
scales a count back up by the stride.  The health score is a ratio and is
unaffected by the stride.

Invariants:
    * ``healthy_pixels + stressed_pixels == total_vegetation_pixels``
    * ``total_vegetation_pixels + fabric_pixels + flower_pixels
      + new_growth_pixels == sampled_pixels``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from shared.python.validators import Validators
from vegetation_health.classifier import (
    ClassificationMap,
    HealthBucket,
    PixelCategory,
    health_buckets,
)

logger = logging.getLogger("vegscan.vegetation_health.aggregator")

SAMPLE_TARGET = 100_000
STRESS_ALERT_SCORE = 50.0


def default_sample_stride(total_pixels: int) -> int:
    """Stride that samples roughly :data:`SAMPLE_TARGET` pixels."""
    return max(1, total_pixels // SAMPLE_TARGET)


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregate statistics for one analysis run.

    Attributes:
        health_score: Percentage of vegetation pixels with index >= threshold.
        mean_index: Mean index over vegetation pixels (0 if none).
        min_index: Minimum index over vegetation pixels (0 if none).
        max_index: Maximum index over vegetation pixels (0 if none).
        healthy_pixels: Vegetation pixels with index >= threshold.
        stressed_pixels: Vegetation pixels with index < threshold.
        total_vegetation_pixels: ``healthy_pixels + stressed_pixels``.
        fabric_pixels: Pixels screened as ground fabric or shadow.
        flower_pixels: Pixels screened as flowers.
        new_growth_pixels: Pixels screened as new growth.
        bucket_counts: Vegetation pixels per :class:`HealthBucket`, in enum order.
        sampled_pixels: Pixels inspected (all categories).
        sample_stride: One pixel in every ``sample_stride`` was inspected.
        threshold: Index threshold the run used.
        degenerate: ``True`` when no vegetation pixel was found.
    """

    health_score: float
    mean_index: float
    min_index: float
    max_index: float
    healthy_pixels: int
    stressed_pixels: int
    total_vegetation_pixels: int
    fabric_pixels: int
    flower_pixels: int
    new_growth_pixels: int
    bucket_counts: tuple[int, int, int, int, int]
    sampled_pixels: int
    sample_stride: int
    threshold: float
    degenerate: bool

    @property
    def needs_attention(self) -> bool:
        """Significant stress: health score under 50 % on a real result."""
        return not self.degenerate and self.health_score < STRESS_ALERT_SCORE

    def bucket_count(self, bucket: HealthBucket) -> int:
        return self.bucket_counts[bucket]

    def estimated_pixels(self, category: PixelCategory) -> int:
        """Scale a sampled category count up to an image-wide estimate."""
        counts = {
            PixelCategory.VEGETATION: self.total_vegetation_pixels,
            PixelCategory.FABRIC: self.fabric_pixels,
            PixelCategory.FLOWER: self.flower_pixels,
            PixelCategory.NEW_GROWTH: self.new_growth_pixels,
        }
        return counts[PixelCategory(category)] * self.sample_stride

    def to_dict(self) -> dict:
        """JSON-serialisable representation."""
        return {
            "health_score": round(self.health_score, 4),
            "mean_index": self.mean_index,
            "min_index": self.min_index,
            "max_index": self.max_index,
            "healthy_pixels": self.healthy_pixels,
            "stressed_pixels": self.stressed_pixels,
            "total_vegetation_pixels": self.total_vegetation_pixels,
            "fabric_pixels": self.fabric_pixels,
            "flower_pixels": self.flower_pixels,
            "new_growth_pixels": self.new_growth_pixels,
            "buckets": {
                bucket.label: self.bucket_counts[bucket] for bucket in HealthBucket
            },
            "sampled_pixels": self.sampled_pixels,
            "sample_stride": self.sample_stride,
            "counts_are_sampled": self.sample_stride > 1,
            "threshold": self.threshold,
            "degenerate": self.degenerate,
            "needs_attention": self.needs_attention,
        }

    def __str__(self) -> str:
        return (
            f"health={self.health_score:.1f}% "
            f"index mean={self.mean_index:.3f} "
            f"min={self.min_index:.3f} max={self.max_index:.3f} "
            f"veg_px={self.total_vegetation_pixels:,} "
            f"(stride {self.sample_stride})"
        )


def aggregate(
    classification: ClassificationMap,
    threshold: float,
    *,
    sample_stride: int | None = None,
) -> AnalysisResult:
    """Compute :class:`AnalysisResult` statistics from a classification.

    Args:
        classification: Per-pixel categories and indices.
        threshold: Index cutoff between healthy and stressed.
        sample_stride: Inspect one pixel in every ``sample_stride``.
                       ``None`` uses :func:`default_sample_stride`.

    Returns:
        The aggregate result.  When no vegetation pixel is sampled the
        index statistics and health score are 0 and ``degenerate`` is set.
    """
    categories = classification.categories.ravel()
    index = classification.index.ravel()
    stride = default_sample_stride(categories.size) if sample_stride is None else sample_stride
    Validators.assert_positive_int(stride, "sample_stride")
    stride = int(stride)

    sampled_categories = categories[::stride]
    sampled_index = index[::stride]
    category_counts = np.bincount(sampled_categories, minlength=len(PixelCategory))

    vegetation = sampled_index[sampled_categories == PixelCategory.VEGETATION]
    total = int(vegetation.size)
    healthy = int(np.count_nonzero(vegetation >= threshold))
    buckets = np.bincount(health_buckets(vegetation, threshold), minlength=len(HealthBucket))

    if total:
        health_score = healthy / total * 100
        mean_index = float(vegetation.mean())
        min_index = float(vegetation.min())
        max_index = float(vegetation.max())
    else:
        health_score = mean_index = min_index = max_index = 0.0

    result = AnalysisResult(
        health_score=float(health_score),
        mean_index=mean_index,
        min_index=min_index,
        max_index=max_index,
        healthy_pixels=healthy,
        stressed_pixels=total - healthy,
        total_vegetation_pixels=total,
        fabric_pixels=int(category_counts[PixelCategory.FABRIC]),
        flower_pixels=int(category_counts[PixelCategory.FLOWER]),
        new_growth_pixels=int(category_counts[PixelCategory.NEW_GROWTH]),
        bucket_counts=tuple(int(c) for c in buckets),  # type: ignore[arg-type]
        sampled_pixels=int(sampled_categories.size),
        sample_stride=stride,
        threshold=float(threshold),
        degenerate=total == 0,
    )
    logger.debug("Aggregated %d sampled pixel(s): %s", result.sampled_pixels, result)
    return result
