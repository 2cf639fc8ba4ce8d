"""
Vegetation Health Analyzer
===========================
VARI-based plant-health classification for aerial nursery imagery, with
fabric / flower / new-growth screening, histogram equalisation, sampled
statistics and a colour-coded classification map.
"""

from vegetation_health.aggregator import AnalysisResult, aggregate
from vegetation_health.analyzer import (
    AnalysisRun,
    BatchItem,
    VegetationHealthAnalyzer,
    analyze,
    analyze_many,
    analyze_raster,
)
from vegetation_health.classifier import (
    ClassificationMap,
    HealthBucket,
    PixelCategory,
    PixelClassification,
    classify_pixel,
    classify_raster,
    health_bucket,
)
from vegetation_health.equalize import equalize_histogram
from vegetation_health.profiles import (
    PROFILES,
    AnalysisConfig,
    AnalysisSettings,
    Domain,
    get_profile,
)
from vegetation_health.raster import GeoReference, RasterImage, load_image
from vegetation_health.renderer import LegendEntry, legend, render

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "AnalysisRun",
    "AnalysisSettings",
    "BatchItem",
    "ClassificationMap",
    "Domain",
    "GeoReference",
    "HealthBucket",
    "LegendEntry",
    "PROFILES",
    "PixelCategory",
    "PixelClassification",
    "RasterImage",
    "VegetationHealthAnalyzer",
    "aggregate",
    "analyze",
    "analyze_many",
    "analyze_raster",
    "classify_pixel",
    "classify_raster",
    "equalize_histogram",
    "get_profile",
    "health_bucket",
    "legend",
    "load_image",
    "render",
]
__version__ = "1.0.0"
