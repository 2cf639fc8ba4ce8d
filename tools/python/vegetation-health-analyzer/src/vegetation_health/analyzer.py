"""
Vegetation Health Analyzer — Core Module
=========================================
Runs the full pipeline over one aerial RGB image:

    load → (equalise) → classify → {aggregate, render}

:func:`analyze_raster` is the pure pipeline over an in-memory raster;
:func:`analyze` adds decoding; :func:`analyze_many` processes several
images independently.  :class:`VegetationHealthAnalyzer` wraps the
pipeline in the shared validate → process → report tool template and
writes the PNG / JSON / GeoTIFF outputs.

Re-running with a different threshold or equalisation flag re-executes
the pipeline from the stored original; nothing is recomputed
incrementally and no state is shared between runs.

Usage::

    from pathlib import Path
    from vegetation_health.analyzer import VegetationHealthAnalyzer
    from vegetation_health.profiles import AnalysisSettings

    tool = VegetationHealthAnalyzer(
        input_path=Path("flights/block_a.jpg"),
        output_dir=Path("output/block_a"),
        settings=AnalysisSettings(profile="nursery-production", threshold=0.12),
    )
    tool.run()
    print(tool.run_result.result)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from shared.python.base_tool import VegScanTool
from shared.python.exceptions import AnalysisCancelledError, EmptyVegetationError, VegScanError
from shared.python.validators import Validators
from vegetation_health.aggregator import AnalysisResult, aggregate
from vegetation_health.classifier import ClassificationMap, classify_raster
from vegetation_health.equalize import equalize_histogram
from vegetation_health.export import ExportPaths, write_outputs
from vegetation_health.profiles import AnalysisConfig, AnalysisSettings
from vegetation_health.raster import IMAGE_EXTENSIONS, ImageSource, RasterImage, load_image
from vegetation_health.renderer import LegendEntry, legend, render

logger = logging.getLogger("vegscan.vegetation_health.analyzer")


@dataclass(frozen=True)
class AnalysisRun:
    """Everything one analysis produced.

    Attributes:
        original: The decoded (and possibly downsampled) input, untouched.
        processed: The raster that was classified (equalised copy or ``original``).
        classification: Per-pixel categories and indices.
        rendered: Classification visualisation, same size as ``original``.
        result: Aggregate statistics.
        config: Profile with the effective threshold.
        profile: Profile slug.
        equalized: Whether histogram equalisation ran.
        legend: Legend rows for ``rendered``.
    """

    original: RasterImage
    processed: RasterImage
    classification: ClassificationMap
    rendered: RasterImage
    result: AnalysisResult
    config: AnalysisConfig
    profile: str
    equalized: bool
    legend: list[LegendEntry]

    def settings_snapshot(self) -> dict:
        """Run configuration, recorded next to the results on export."""
        return {
            "profile": self.profile,
            "threshold": self.config.index_threshold,
            "histogram_equalization": self.equalized,
            "filtering_enabled": self.config.filtering_enabled,
            "filter_flowers": self.config.filter_flowers,
            "filter_fabric": self.config.filter_fabric,
            "sample_stride": self.result.sample_stride,
        }


def analyze_raster(
    original: RasterImage,
    settings: AnalysisSettings | None = None,
    *,
    cancel: threading.Event | None = None,
) -> AnalysisRun:
    """Run equalise → classify → aggregate → render on a decoded raster.

    Args:
        original: Input raster; never modified.
        settings: Run settings; defaults to :class:`AnalysisSettings()`.
        cancel: Optional event checked between classification blocks.

    Raises:
        InputValidationError: If *settings* are invalid.
        EmptyVegetationError: If no vegetation is found and
            ``settings.fail_on_empty`` is set.
        AnalysisCancelledError: If *cancel* is set mid-run.
    """
    settings = settings or AnalysisSettings()
    settings.validate()
    config = settings.resolve_config()

    processed = equalize_histogram(original) if settings.equalize else original
    classification = classify_raster(
        processed, config, chunk_rows=settings.chunk_rows, cancel=cancel
    )
    result = aggregate(
        classification, config.index_threshold, sample_stride=settings.sample_stride
    )
    rendered = render(classification, config.index_threshold, original.georef)

    logger.info(
        "Processed %d×%d with profile '%s' (threshold %.2f, equalise=%s): %s",
        original.width, original.height, settings.profile,
        config.index_threshold, settings.equalize, result,
    )
    if result.degenerate:
        logger.warning(
            "No vegetation pixels found in %d sampled pixel(s); statistics default to 0.",
            result.sampled_pixels,
        )
        if settings.fail_on_empty:
            raise EmptyVegetationError(result.sampled_pixels)
    elif result.needs_attention:
        logger.warning(
            "Significant stress detected (health score %.1f%%).", result.health_score
        )

    return AnalysisRun(
        original=original,
        processed=processed,
        classification=classification,
        rendered=rendered,
        result=result,
        config=config,
        profile=settings.profile,
        equalized=settings.equalize,
        legend=legend(config),
    )


def analyze(
    source: ImageSource,
    settings: AnalysisSettings | None = None,
    *,
    cancel: threading.Event | None = None,
) -> AnalysisRun:
    """Decode *source* and analyse it.

    Raises:
        ImageDecodeError: If *source* cannot be decoded.
    """
    settings = settings or AnalysisSettings()
    settings.validate()
    original = load_image(
        source, max_dimension=settings.max_dimension, bands=settings.bands
    )
    return analyze_raster(original, settings, cancel=cancel)


def analyze_many(
    sources: Iterable[ImageSource],
    settings: AnalysisSettings | None = None,
    *,
    cancel: threading.Event | None = None,
) -> list[BatchItem]:
    """Analyse each source independently, in order.

    A :class:`VegScanError` raised for one source (an undecodable image, an
    empty result under ``fail_on_empty``) is recorded on that source's
    :class:`BatchItem` and the batch moves on to the next source.

    Raises:
        InputValidationError: If *settings* are invalid; nothing is analysed.
        AnalysisCancelledError: If *cancel* is set; the whole batch stops.
    """
    settings = settings or AnalysisSettings()
    settings.validate()

    items: list[BatchItem] = []
    for position, source in enumerate(sources):
        try:
            items.append(BatchItem(position, run=analyze(source, settings, cancel=cancel)))
        except AnalysisCancelledError:
            raise
        except VegScanError as exc:
            logger.warning("Image %d skipped: %s", position, exc.message)
            items.append(BatchItem(position, error=exc))
    return items


@dataclass(frozen=True)
class BatchItem:
    """Outcome of one source in :func:`analyze_many`.

    Exactly one of ``run`` and ``error`` is set.
    """

    position: int
    run: AnalysisRun | None = None
    error: VegScanError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Main tool class
# ---------------------------------------------------------------------------


class VegetationHealthAnalyzer(VegScanTool):
    """Analyse one aerial image and write the classification + results.

    Inherits the Template Method pipeline from :class:`~shared.python.VegScanTool`.

    Outputs written to ``output_dir``:

    * ``<stem>_health.png`` — classification rendering
    * ``<stem>_health.json`` — results document
    * ``<stem>_health.tif`` — only for georeferenced GeoTIFF input

    Args:
        input_path: Aerial image (JPEG, PNG, WebP, BMP or GeoTIFF).
        output_dir: Directory for the outputs; created if missing.
        settings: Run settings.
        verbose: Enable DEBUG-level logging.
    """

    def __init__(
        self,
        input_path: Path,
        output_dir: Path,
        settings: AnalysisSettings | None = None,
        *,
        verbose: bool = False,
    ) -> None:
        super().__init__(input_path, output_dir, verbose=verbose)
        self.settings = settings or AnalysisSettings()
        self._run: AnalysisRun | None = None
        self._outputs: ExportPaths | None = None

    # ------------------------------------------------------------------
    # VegScanTool abstract method implementations
    # ------------------------------------------------------------------

    def validate_inputs(self) -> None:
        """Validate the input image path, the settings and the output directory.

        Raises:
            InputValidationError: If the file is missing, has an unsupported
                extension, or a setting is out of range.
            ProfileNotFoundError: If the profile name is unknown.
            OutputWriteError: If the output directory cannot be created.
        """
        Validators.assert_file_exists(self.input_path)
        Validators.assert_supported_extension(self.input_path, IMAGE_EXTENSIONS)
        self.settings.validate()
        Validators.assert_output_dir_writable(self.output_path)
        logger.debug("Inputs validated: %s, profile '%s'.", self.input_path.name, self.settings.profile)

    def process(self) -> None:
        """Decode, analyse and export.

        Raises:
            ImageDecodeError: If the image cannot be decoded.
            EmptyVegetationError: If configured to fail on empty results.
            OutputWriteError: If an output file cannot be written.
        """
        run = analyze(self.input_path, self.settings)
        self._outputs = write_outputs(
            run, self.output_path, self.input_path.stem, source_name=self.input_path.name
        )
        self._run = run

    def summary(self) -> str:
        if self._run is None:
            return super().summary()
        return f"{self._run.result} → {self.output_path}"

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    @property
    def run_result(self) -> AnalysisRun | None:
        """The :class:`AnalysisRun` from the last successful run, or ``None``."""
        return self._run

    @property
    def outputs(self) -> ExportPaths | None:
        """Files written by the last run, or ``None``."""
        return self._outputs
