"""
VegScan — Custom Exception Hierarchy
=====================================
All VegScan tools raise exceptions from this module so callers can
catch them at the right level of granularity.

Hierarchy::

    VegScanError                         ← catch-all base
    ├── InputValidationError             ← bad files, bad settings, etc.
    │   └── ProfileNotFoundError         ← unknown analysis profile name
    ├── RasterError                      ← Pillow / rasterio / numpy raster issues
    │   ├── ImageDecodeError             ← bytes cannot be decoded to pixels
    │   └── BandIndexError               ← requested band does not exist
    ├── EmptyVegetationError             ← no vegetation pixels (soft)
    ├── AnalysisCancelledError           ← cancellation token was set
    └── OutputWriteError                 ← cannot write to output path

Usage::

    from shared.python.exceptions import ImageDecodeError

    raise ImageDecodeError("upload.jpg", "cannot identify image file")
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class VegScanError(Exception):
    """Base exception for all VegScan tools.

    Catch this to handle any tool-specific error without caring about
    the exact subtype.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(VegScanError):
    """Raised when a tool's inputs fail pre-processing validation.

    This is the parent class for more specific input problems.
    """


class ProfileNotFoundError(InputValidationError):
    """Raised when an analysis profile name is not one of the built-ins.

    Args:
        name: The profile name that was requested.
        available: Names of the profiles that DO exist, used to
                   generate a helpful error message.

    Example::

        raise ProfileNotFoundError("cactus", list(PROFILES))
    """

    def __init__(self, name: str, available: list[str]) -> None:
        available_str = ", ".join(f"'{p}'" for p in available)
        super().__init__(
            f"Unknown analysis profile '{name}'. Available profiles: {available_str}"
        )
        self.name: str = name
        self.available: list[str] = available


# ---------------------------------------------------------------------------
# Raster
# ---------------------------------------------------------------------------


class RasterError(VegScanError):
    """Raised for general raster processing failures (Pillow / rasterio / numpy).

    Subclass this for more specific raster errors.
    """


class ImageDecodeError(RasterError):
    """Raised when input bytes cannot be decoded into an RGB raster.

    Fatal for the analysis run: there is nothing to classify.

    Args:
        source: Short description of the input (file name or ``"<bytes>"``).
        reason: Underlying decoder error message.

    Example::

        raise ImageDecodeError("field_07.webp", "truncated file")
    """

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Cannot decode image '{source}': {reason}")
        self.source: str = source
        self.reason: str = reason


class BandIndexError(RasterError):
    """Raised when an RGB band selection points past the bands of a GeoTIFF.

    Args:
        band_index: 1-based band requested for red, green or blue.
        total_bands: Bands actually present in the file.
    """

    def __init__(self, band_index: int, total_bands: int) -> None:
        super().__init__(
            f"Cannot use band {band_index} as a colour channel: "
            f"the GeoTIFF has {total_bands} band(s), numbered from 1."
        )
        self.band_index: int = band_index
        self.total_bands: int = total_bands


# ---------------------------------------------------------------------------
# Analysis outcome
# ---------------------------------------------------------------------------


class EmptyVegetationError(VegScanError):
    """Raised when an analysis finds no vegetation pixels at all.

    This condition is soft by default: the analyser returns a result
    flagged ``degenerate`` with zeroed statistics.  It is only raised when
    the caller opts in with ``AnalysisSettings(fail_on_empty=True)``.

    Args:
        sampled_pixels: Number of pixels that were inspected.
    """

    def __init__(self, sampled_pixels: int) -> None:
        super().__init__(
            f"No vegetation pixels found among {sampled_pixels:,} sampled pixel(s)."
        )
        self.sampled_pixels: int = sampled_pixels


class AnalysisCancelledError(VegScanError):
    """Raised when an analysis is cancelled between classification chunks.

    Args:
        rows_done: Image rows classified before cancellation was observed.
        rows_total: Total image rows.
    """

    def __init__(self, rows_done: int, rows_total: int) -> None:
        super().__init__(
            f"Analysis cancelled after {rows_done} of {rows_total} row(s)."
        )
        self.rows_done: int = rows_done
        self.rows_total: int = rows_total


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputWriteError(VegScanError):
    """Raised when a classification PNG, results JSON or GeoTIFF cannot be written.

    Args:
        output_path: The file or directory that failed.
        reason: Error text from the OS, Pillow or rasterio.

    Example::

        raise OutputWriteError("/read-only/dir/out.png", "Permission denied")
    """

    def __init__(self, output_path: str, reason: str) -> None:
        super().__init__(
            f"Cannot write '{output_path}': {reason}"
        )
        self.output_path: str = output_path
        self.reason: str = reason
