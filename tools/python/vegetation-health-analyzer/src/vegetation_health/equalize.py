"""
Vegetation Health Analyzer — Contrast Normaliser
=================================================
Global histogram equalisation on luminance, applied by rescaling each
colour channel so a pixel's luminance lands on its CDF position.

Algorithm::

    L              = round(0.299 R + 0.587 G + 0.114 B)      per pixel
    hist           = 256-bin histogram of L
    cdf            = cumulative sum of hist
    normalized[i]  = round(cdf[i] / total_pixels * 255)
    scale          = normalized[L] / L                       for L > 0
    R', G', B'     = clamp(channel * scale, 0, 255)

Pixels with ``L == 0`` are left untouched.  Rounding is half-up for the
luminance and CDF steps and half-to-even when storing channel values,
matching canvas ``Uint8ClampedArray`` semantics.  Alpha is never changed.

A single-valued image is *not* a fixed point: its only luminance ``L``
maps to 255, so every channel is multiplied by ``255 / L``.
"""

from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt

from vegetation_health.raster import RasterImage

logger = logging.getLogger("vegscan.vegetation_health.equalize")

LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def _round_half_up(values: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    return np.floor(values + 0.5)


def luminance(rgb: npt.NDArray[np.uint8]) -> npt.NDArray[np.int64]:
    """Integer luminance in [0, 255] for an ``(..., 3)`` uint8 array."""
    channels = rgb.astype(np.float64)
    luma = (
        LUMA_WEIGHTS[0] * channels[..., 0]
        + LUMA_WEIGHTS[1] * channels[..., 1]
        + LUMA_WEIGHTS[2] * channels[..., 2]
    )
    return np.clip(_round_half_up(luma), 0, 255).astype(np.int64)


def equalization_lut(luma: npt.NDArray[np.int64]) -> npt.NDArray[np.float64]:
    """Return the 256-entry normalised CDF for a luminance array."""
    histogram = np.bincount(luma.ravel(), minlength=256)
    cdf = np.cumsum(histogram)
    return _round_half_up(cdf / luma.size * 255)


def equalize_histogram(raster: RasterImage) -> RasterImage:
    """Return a contrast-equalised copy of *raster*.

    The input raster is not modified.
    """
    pixels = raster.pixels
    rgb = pixels[:, :, :3]
    luma = luminance(rgb)
    lut = equalization_lut(luma)

    lit = luma > 0
    scale = np.ones(luma.shape, dtype=np.float64)
    scale[lit] = lut[luma[lit]] / luma[lit]

    scaled = rgb.astype(np.float64) * scale[:, :, np.newaxis]
    out = pixels.copy()
    out[:, :, :3] = np.rint(np.clip(scaled, 0, 255)).astype(np.uint8)

    logger.debug(
        "Equalised %d×%d raster (%d dark pixel(s) left unchanged)",
        raster.width, raster.height, int(luma.size - lit.sum()),
    )
    return RasterImage(out, raster.georef)
