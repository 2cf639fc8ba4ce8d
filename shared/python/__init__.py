"""
VegScan — Shared Python Package
================================
Re-exports the shared base class, exception hierarchy, and validator
utilities so individual tools can import from a single location::

    from shared.python import VegScanTool, Validators
    from shared.python.exceptions import ImageDecodeError
"""

from shared.python.base_tool import VegScanTool
from shared.python.exceptions import (
    AnalysisCancelledError,
    BandIndexError,
    EmptyVegetationError,
    ImageDecodeError,
    InputValidationError,
    OutputWriteError,
    ProfileNotFoundError,
    RasterError,
    VegScanError,
)
from shared.python.validators import Validators

__all__ = [
    "VegScanTool",
    "Validators",
    "VegScanError",
    "InputValidationError",
    "ProfileNotFoundError",
    "RasterError",
    "ImageDecodeError",
    "BandIndexError",
    "EmptyVegetationError",
    "AnalysisCancelledError",
    "OutputWriteError",
]
