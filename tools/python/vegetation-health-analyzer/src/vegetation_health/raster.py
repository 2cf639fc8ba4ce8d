"""
Vegetation Health Analyzer — Raster Container & Loader
=======================================================
:class:`RasterImage` owns an ``(height, width, 4)`` RGBA ``uint8`` buffer
(row-major, 4 bytes per pixel).  The buffer is write-protected once
constructed; every pipeline stage that changes pixels returns a new
instance, so the original upload stays available for side-by-side display.

:func:`load_image` decodes encoded bytes (JPEG / PNG / WebP via Pillow),
in-memory bitmaps, or GeoTIFF orthomosaics (via rasterio) and downsamples
anything whose longest side exceeds the dimension cap.

Usage::

    from vegetation_health.raster import load_image

    original = load_image(Path("flights/block_a.jpg"), max_dimension=2000)
    print(original.width, original.height)
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt
import rasterio
from PIL import Image, ImageOps, UnidentifiedImageError
from rasterio.enums import Resampling
from rasterio.errors import RasterioIOError
from rasterio.transform import Affine

from shared.python.exceptions import ImageDecodeError, InputValidationError
from shared.python.validators import Validators

logger = logging.getLogger("vegscan.vegetation_health.raster")

GEOTIFF_EXTENSIONS = (".tif", ".tiff")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".bmp") + GEOTIFF_EXTENSIONS

_WIDE_GRAY_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")
_SIXTEEN_TO_EIGHT_BIT = 257.0

ImageSource = Union[bytes, bytearray, str, Path, Image.Image, np.ndarray]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeoReference:
    """Georeferencing carried over from a GeoTIFF source.

    Attributes:
        transform: Pixel → map affine transform at the processed resolution.
        crs_wkt: Coordinate reference system as WKT, or ``None``.
    """

    transform: Affine
    crs_wkt: str | None = None


@dataclass(frozen=True)
class RasterImage:
    """Immutable RGBA raster.

    Attributes:
        pixels: ``(height, width, 4)`` ``uint8`` array, read-only.
        georef: Georeferencing when the source was a GeoTIFF, else ``None``.
    """

    pixels: npt.NDArray[np.uint8]
    georef: GeoReference | None = None

    def __post_init__(self) -> None:
        arr = np.asarray(self.pixels)
        if arr.dtype != np.uint8:
            raise InputValidationError(
                f"RasterImage expects uint8 pixels, got {arr.dtype}. "
                "Scale the data to 0-255 and convert it before loading."
            )
        arr = np.array(arr, copy=True, order="C")
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise InputValidationError(
                f"RasterImage expects an (height, width, 4) array, got shape {arr.shape}."
            )
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InputValidationError("RasterImage cannot be empty.")
        arr.setflags(write=False)
        object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_array(
        cls,
        array: npt.ArrayLike,
        georef: GeoReference | None = None,
    ) -> RasterImage:
        """Build a raster from an ``(H, W, 3)`` RGB or ``(H, W, 4)`` RGBA array.

        RGB input gets a fully opaque alpha channel.

        Raises:
            InputValidationError: If *array* is not ``uint8``.
        """
        arr = np.asarray(array)
        if arr.ndim == 3 and arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        return cls(arr, georef)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    def rgb(self) -> npt.NDArray[np.uint8]:
        """Read-only ``(H, W, 3)`` view of the colour channels."""
        return self.pixels[:, :, :3]

    def to_bytes(self) -> bytes:
        """Flat row-major RGBA byte buffer."""
        return self.pixels.tobytes()

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))

    def __repr__(self) -> str:
        geo = ", georeferenced" if self.georef else ""
        return f"RasterImage({self.width}×{self.height}{geo})"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Return ``(width, height)`` scaled so the longest side fits *max_dimension*.

    Both sides are multiplied by ``max_dimension / max(width, height)`` and
    rounded down; images already within the cap are returned unchanged.
    """
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height
    scale = max_dimension / longest
    return max(1, math.floor(width * scale)), max(1, math.floor(height * scale))


def load_image(
    source: ImageSource,
    *,
    max_dimension: int = 2000,
    bands: tuple[int, int, int] = (1, 2, 3),
) -> RasterImage:
    """Decode *source* into a :class:`RasterImage`, downsampling if needed.

    Args:
        source: Encoded image bytes, a file path, a Pillow image, or an
                ``(H, W, 3|4)`` uint8 array.  ``.tif`` / ``.tiff`` paths are
                read with rasterio and keep their georeferencing.
        max_dimension: Longest side, in pixels, of the returned raster.
        bands: 1-based (red, green, blue) bands for GeoTIFF sources.

    Returns:
        A new, independently owned raster.

    Raises:
        ImageDecodeError: If the data cannot be decoded.
        BandIndexError: If a GeoTIFF lacks one of *bands*.
        InputValidationError: If *max_dimension* is not positive.
    """
    Validators.assert_positive_int(max_dimension, "max_dimension")

    if isinstance(source, (str, Path)):
        path = Path(source)
        if path.suffix.lower() in GEOTIFF_EXTENSIONS:
            return _load_geotiff(path, max_dimension, bands)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImageDecodeError(path.name, str(exc)) from exc
        return _load_encoded(data, path.name, max_dimension)

    if isinstance(source, (bytes, bytearray)):
        return _load_encoded(bytes(source), "<bytes>", max_dimension)

    if isinstance(source, Image.Image):
        return _fit_pil(_to_rgba(source), max_dimension)

    if isinstance(source, np.ndarray):
        raster = RasterImage.from_array(source)
        if max(raster.width, raster.height) <= max_dimension:
            return raster
        return _fit_pil(raster.to_pil(), max_dimension)

    raise InputValidationError(
        f"Unsupported image source type: {type(source).__name__}."
    )


def _load_encoded(data: bytes, name: str, max_dimension: int) -> RasterImage:
    """Decode JPEG / PNG / WebP bytes with Pillow."""
    if not data:
        raise ImageDecodeError(name, "empty input")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            rgba = _to_rgba(oriented)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageDecodeError(name, str(exc)) from exc

    logger.debug("Decoded %s: %s %d×%d", name, rgba.mode, rgba.width, rgba.height)
    return _fit_pil(rgba, max_dimension)


def _to_rgba(img: Image.Image) -> Image.Image:
    """Convert *img* to RGBA, rescaling 16-bit grayscale to 8 bits first.

    Pillow clips ``I``/``I;16`` values to 255 on conversion instead of
    scaling them.
    """
    if img.mode in _WIDE_GRAY_MODES:
        levels = np.asarray(img, dtype=np.float64) / _SIXTEEN_TO_EIGHT_BIT
        img = Image.fromarray(np.clip(np.rint(levels), 0, 255).astype(np.uint8))
    return img.convert("RGBA")


def _fit_pil(img: Image.Image, max_dimension: int) -> RasterImage:
    """Downsample a Pillow RGBA image to the cap and wrap it."""
    target = fit_within(img.width, img.height, max_dimension)
    if target != img.size:
        logger.info(
            "Scaling image from %d×%d to %d×%d for processing",
            img.width, img.height, *target,
        )
        img = img.resize(target, Image.Resampling.BILINEAR)
    return RasterImage(np.asarray(img, dtype=np.uint8))


def _load_geotiff(
    path: Path,
    max_dimension: int,
    bands: tuple[int, int, int],
) -> RasterImage:
    """Read three bands of a GeoTIFF, decimating on read when over the cap."""
    try:
        with rasterio.open(path) as src:
            for band in bands:
                Validators.assert_band_index_valid(band, src.count)
            out_w, out_h = fit_within(src.width, src.height, max_dimension)
            if (out_w, out_h) != (src.width, src.height):
                logger.info(
                    "Scaling %s from %d×%d to %d×%d for processing",
                    path.name, src.width, src.height, out_w, out_h,
                )
            data = src.read(
                list(bands),
                out_shape=(3, out_h, out_w),
                resampling=Resampling.bilinear,
            )
            georef = None
            if src.crs is not None:
                transform = src.transform * Affine.scale(
                    src.width / out_w, src.height / out_h
                )
                georef = GeoReference(transform=transform, crs_wkt=src.crs.to_wkt())
    except RasterioIOError as exc:
        raise ImageDecodeError(path.name, str(exc)) from exc

    rgb = np.moveaxis(_stretch_to_uint8(data), 0, -1)
    return RasterImage.from_array(rgb, georef)


def _stretch_to_uint8(data: npt.NDArray) -> npt.NDArray[np.uint8]:
    """Linearly rescale non-``uint8`` band data to 0–255 over its valid range."""
    if data.dtype == np.uint8:
        return data
    values = data.astype(np.float64)
    finite = np.isfinite(values)
    if not finite.any():
        return np.zeros(data.shape, dtype=np.uint8)
    lo = float(values[finite].min())
    hi = float(values[finite].max())
    if hi <= lo:
        return np.zeros(data.shape, dtype=np.uint8)
    scaled = np.where(finite, (values - lo) / (hi - lo) * 255.0, 0.0)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
