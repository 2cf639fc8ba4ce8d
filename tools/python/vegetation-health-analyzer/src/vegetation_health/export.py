"""
Vegetation Health Analyzer — Export
====================================
Writes an :class:`~vegetation_health.analyzer.AnalysisRun` to disk:

* ``<stem>_health.png``   rendered classification (Pillow)
* ``<stem>_health.json``  results document: statistics + run configuration
* ``<stem>_health.tif``   4-band GeoTIFF of the rendering, only when the
  source carried georeferencing (rasterio)
"""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.errors import RasterioIOError

from shared.python.exceptions import OutputWriteError
from vegetation_health.raster import RasterImage

if TYPE_CHECKING:
    from vegetation_health.analyzer import AnalysisRun

logger = logging.getLogger("vegscan.vegetation_health.export")


@dataclass(frozen=True)
class ExportPaths:
    """Files written by :func:`write_outputs`."""

    png: Path
    json: Path
    geotiff: Path | None = None

    def __iter__(self) -> Iterator[Path]:
        return iter(p for p in (self.png, self.json, self.geotiff) if p is not None)


def build_results_document(
    run: AnalysisRun,
    *,
    source_name: str | None = None,
    timestamp: datetime | None = None,
) -> dict:
    """Assemble the JSON results document for *run*.

    Args:
        run: Completed analysis.
        source_name: Input file name recorded in the document.
        timestamp: Export time; defaults to now (UTC).
    """
    when = timestamp or datetime.now(timezone.utc)
    return {
        "timestamp": when.isoformat(),
        "source": source_name,
        "profile": run.profile,
        "profile_name": run.config.name,
        "threshold": run.config.index_threshold,
        "image": {"width": run.original.width, "height": run.original.height},
        "results": run.result.to_dict(),
        "settings": run.settings_snapshot(),
        "legend": [entry.to_dict() for entry in run.legend],
    }


def encode_png(raster: RasterImage) -> bytes:
    """Encode *raster* as PNG bytes."""
    buf = io.BytesIO()
    raster.to_pil().save(buf, format="PNG")
    return buf.getvalue()


def write_png(raster: RasterImage, path: Path) -> Path:
    """Write *raster* as a PNG file.

    Raises:
        OutputWriteError: If the file cannot be written.
    """
    try:
        Path(path).write_bytes(encode_png(raster))
    except OSError as exc:
        raise OutputWriteError(str(path), str(exc)) from exc
    return Path(path)


def write_json(document: dict, path: Path, *, indent: int = 2) -> Path:
    """Serialise *document* to JSON.

    Raises:
        OutputWriteError: If the file cannot be written.
    """
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(document, fh, indent=indent, default=str)
    except OSError as exc:
        raise OutputWriteError(str(path), str(exc)) from exc
    return Path(path)


def write_geotiff(raster: RasterImage, path: Path) -> Path:
    """Write a georeferenced RGBA GeoTIFF.

    Raises:
        OutputWriteError: If *raster* has no georeferencing or the file
            cannot be written.
    """
    if raster.georef is None:
        raise OutputWriteError(str(path), "raster has no georeferencing")

    profile = {
        "driver": "GTiff",
        "dtype": "uint8",
        "count": 4,
        "height": raster.height,
        "width": raster.width,
        "transform": raster.georef.transform,
        "crs": CRS.from_wkt(raster.georef.crs_wkt) if raster.georef.crs_wkt else None,
        "compress": "lzw",
    }
    try:
        with rasterio.open(path, "w", **profile) as dst:
            dst.write(np.moveaxis(raster.pixels, -1, 0))
    except (OSError, RasterioIOError) as exc:
        raise OutputWriteError(str(path), str(exc)) from exc
    return Path(path)


def write_outputs(
    run: AnalysisRun,
    output_dir: Path,
    stem: str,
    *,
    source_name: str | None = None,
) -> ExportPaths:
    """Write the PNG, JSON and (when georeferenced) GeoTIFF for *run*.

    Args:
        run: Completed analysis.
        output_dir: Existing directory to write into.
        stem: File name prefix, usually the input file's stem.
        source_name: Input file name recorded in the JSON document.
    """
    output_dir = Path(output_dir)
    png = write_png(run.rendered, output_dir / f"{stem}_health.png")
    document = build_results_document(run, source_name=source_name)
    json_path = write_json(document, output_dir / f"{stem}_health.json")

    geotiff = None
    if run.rendered.georef is not None:
        geotiff = write_geotiff(run.rendered, output_dir / f"{stem}_health.tif")

    paths = ExportPaths(png=png, json=json_path, geotiff=geotiff)
    for path in paths:
        logger.info("  wrote %s", path.name)
    return paths
