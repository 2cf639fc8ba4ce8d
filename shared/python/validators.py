"""
VegScan — Input Validators
===========================
Precondition checks used by tool ``validate_inputs`` methods and by the
settings objects.  Each check either returns ``None`` or raises a
:mod:`shared.python.exceptions` error, so a tool's validation reads as a
flat list of assertions::

    def validate_inputs(self) -> None:
        Validators.assert_file_exists(self.input_path)
        Validators.assert_supported_extension(self.input_path, IMAGE_EXTENSIONS)
        Validators.assert_output_dir_writable(self.output_path)
"""

from __future__ import annotations

import math
import numbers
from pathlib import Path
from typing import Sequence

from shared.python.exceptions import (
    BandIndexError,
    InputValidationError,
    OutputWriteError,
)


class Validators:
    """Namespace of static checks; never instantiated."""

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Raise :class:`InputValidationError` unless *path* is an existing file."""
        path = Path(path)
        if not path.exists():
            raise InputValidationError(f"Image not found: '{path}'.")
        if not path.is_file():
            raise InputValidationError(f"'{path}' is not a file.")

    @staticmethod
    def assert_output_dir_writable(output_dir: Path) -> None:
        """Create *output_dir* (and parents) if needed.

        Raises:
            OutputWriteError: If it cannot be created or is not a directory.
        """
        output_dir = Path(output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(str(output_dir), str(exc)) from exc
        if not output_dir.is_dir():
            raise OutputWriteError(str(output_dir), "path exists and is not a directory")

    @staticmethod
    def assert_supported_extension(path: Path, extensions: Sequence[str]) -> None:
        """Raise unless the suffix of *path* is one of *extensions* (case-insensitive).

        Args:
            path: File to check.
            extensions: Dotted suffixes such as ``(".jpg", ".png", ".tif")``.
        """
        suffix = Path(path).suffix.lower()
        accepted = tuple(ext.lower() for ext in extensions)
        if suffix not in accepted:
            raise InputValidationError(
                f"'{Path(path).name}' is not a supported image type "
                f"(expected one of {', '.join(accepted)})."
            )

    # ------------------------------------------------------------------
    # Numbers
    # ------------------------------------------------------------------

    @staticmethod
    def assert_in_range(value: float, low: float, high: float, name: str) -> None:
        """Raise unless *value* is finite and ``low <= value <= high``.

        Example::

            Validators.assert_in_range(0.15, -1.0, 1.0, "threshold")
        """
        if not math.isfinite(value) or not low <= value <= high:
            raise InputValidationError(
                f"{name} must be a finite number in [{low}, {high}], got {value!r}."
            )

    @staticmethod
    def assert_positive_int(value: int, name: str) -> None:
        """Raise unless *value* is an integer (not ``bool``) of at least 1.

        numpy integer scalars are accepted alongside ``int``.
        """
        if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
            raise InputValidationError(
                f"{name} must be a positive integer, got {value!r}."
            )

    # ------------------------------------------------------------------
    # Rasters
    # ------------------------------------------------------------------

    @staticmethod
    def assert_band_index_valid(band_index: int, total_bands: int) -> None:
        """Raise :class:`BandIndexError` unless ``1 <= band_index <= total_bands``."""
        if not 1 <= band_index <= total_bands:
            raise BandIndexError(band_index, total_bands)
