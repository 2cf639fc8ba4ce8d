"""
Shared fixtures for the Vegetation Health Analyzer tests.

Every image is synthesised in ``tmp_path`` with Pillow or rasterio, so no
real drone imagery is required.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import numpy as np
import numpy.typing as npt
import pytest
import rasterio
from PIL import Image
from rasterio.transform import from_bounds

GREEN = (0, 255, 0)
RED = (255, 0, 0)


def solid(height: int, width: int, color: tuple[int, int, int]) -> npt.NDArray[np.uint8]:
    """``(H, W, 3)`` uint8 array filled with one colour."""
    return np.tile(np.array(color, dtype=np.uint8), (height, width, 1))


def split_green_red(height: int = 4, width: int = 4) -> npt.NDArray[np.uint8]:
    """Left half pure green, right half pure red."""
    arr = solid(height, width, GREEN)
    arr[:, width // 2:] = RED
    return arr


def png_bytes(array: npt.NDArray[np.uint8]) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(array).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an RGB array to ``tmp_path/<name>.png``."""

    def _write(array: npt.NDArray[np.uint8], name: str = "image") -> Path:
        path = tmp_path / f"{name}.png"
        path.write_bytes(png_bytes(array))
        return path

    return _write


@pytest.fixture
def geotiff_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a ``(bands, H, W)`` array to a georeferenced GeoTIFF."""

    def _write(bands: npt.NDArray, name: str = "ortho") -> Path:
        count, height, width = bands.shape
        path = tmp_path / f"{name}.tif"
        with rasterio.open(
            path, "w",
            driver="GTiff",
            height=height,
            width=width,
            count=count,
            dtype=str(bands.dtype),
            crs="EPSG:4326",
            transform=from_bounds(0, 0, width, height, width, height),
        ) as dst:
            dst.write(bands)
        return path

    return _write
