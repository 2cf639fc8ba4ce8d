"""Tests for luminance histogram equalisation."""

from __future__ import annotations

import numpy as np

from conftest import solid
from vegetation_health.equalize import equalization_lut, equalize_histogram, luminance
from vegetation_health.raster import RasterImage


class TestLuminance:
    def test_weights(self) -> None:
        """0.299·200 + 0.587·100 + 0.114·50 = 124.2 → 124."""
        assert luminance(np.array([[200, 100, 50]], dtype=np.uint8))[0] == 124

    def test_rounds_half_up(self) -> None:
        """Red 5 → 1.495 → 1; red 10 → 2.99 → 3."""
        luma = luminance(np.array([[5, 0, 0], [10, 0, 0]], dtype=np.uint8))
        assert luma.tolist() == [1, 3]

    def test_white_is_255(self) -> None:
        assert luminance(np.array([[255, 255, 255]], dtype=np.uint8))[0] == 255


class TestEqualizationLut:
    def test_lut_is_monotone_and_ends_at_255(self) -> None:
        rng = np.random.default_rng(0)
        lut = equalization_lut(rng.integers(0, 256, size=1000))
        assert np.all(np.diff(lut) >= 0)
        assert lut[255] == 255

    def test_half_point_rounds_up(self) -> None:
        """Half the pixels at or below L=50: 0.5·255 = 127.5 → 128."""
        lut = equalization_lut(np.array([50, 50, 150, 150]))
        assert lut[50] == 128
        assert lut[150] == 255


class TestEqualizeHistogram:
    def test_constant_gray_is_stretched_to_white(self) -> None:
        """A single luminance level maps to the top of the CDF."""
        raster = RasterImage.from_array(solid(4, 4, (100, 100, 100)))
        out = equalize_histogram(raster).pixels
        assert np.all(out[:, :, :3] == 255)

    def test_constant_white_is_unchanged(self) -> None:
        raster = RasterImage.from_array(solid(3, 5, (255, 255, 255)))
        np.testing.assert_array_equal(equalize_histogram(raster).pixels, raster.pixels)

    def test_black_pixels_are_left_alone(self) -> None:
        arr = solid(2, 4, (200, 200, 200))
        arr[:, :2] = 0
        out = equalize_histogram(RasterImage.from_array(arr)).pixels
        assert np.all(out[:, :2, :3] == 0)
        assert np.all(out[:, 2:, :3] == 255)

    def test_two_levels(self) -> None:
        arr = solid(2, 2, (50, 50, 50))
        arr[1] = 150
        out = equalize_histogram(RasterImage.from_array(arr)).pixels
        assert out[0, 0, :3].tolist() == [128, 128, 128]
        assert out[1, 0, :3].tolist() == [255, 255, 255]

    def test_colour_scaled_and_clamped(self) -> None:
        """L=124 → 255: scale 255/124; red clamps, green/blue round."""
        raster = RasterImage.from_array(solid(2, 2, (200, 100, 50)))
        out = equalize_histogram(raster).pixels
        assert out[0, 0].tolist() == [255, 206, 103, 255]

    def test_alpha_preserved(self) -> None:
        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        rgba[..., :3] = 120
        rgba[..., 3] = [[0, 64], [128, 255]]
        out = equalize_histogram(RasterImage(rgba)).pixels
        np.testing.assert_array_equal(out[..., 3], rgba[..., 3])

    def test_source_not_modified(self) -> None:
        rng = np.random.default_rng(9)
        arr = rng.integers(0, 256, size=(16, 16, 3), dtype=np.uint8)
        raster = RasterImage.from_array(arr)
        before = raster.pixels.copy()
        out = equalize_histogram(raster)
        assert out is not raster
        np.testing.assert_array_equal(raster.pixels, before)
        assert out.pixels.shape == raster.pixels.shape
