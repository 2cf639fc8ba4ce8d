"""Tests for the classification renderer and legend."""

from __future__ import annotations

import numpy as np
import pytest

from vegetation_health.classifier import ClassificationMap, PixelCategory
from vegetation_health.profiles import get_profile
from vegetation_health.renderer import legend, render

V = PixelCategory.VEGETATION


@pytest.fixture
def every_colour() -> ClassificationMap:
    """One pixel per bucket (threshold 0) plus one per screened category."""
    categories = np.array(
        [[V, V, V, V], [V, PixelCategory.FABRIC, PixelCategory.FLOWER, PixelCategory.NEW_GROWTH]],
        dtype=np.uint8,
    )
    index = np.array([[0.5, 0.1, 0.0, -0.1], [-0.5, 0.0, 0.0, 0.0]])
    return ClassificationMap(categories=categories, index=index)


class TestRender:
    def test_colours(self, every_colour: ClassificationMap) -> None:
        out = render(every_colour, 0.0).pixels
        assert out[0, 0, :3].tolist() == [0, 255, 0]
        assert out[0, 1, :3].tolist() == [34, 200, 34]
        assert out[0, 2, :3].tolist() == [255, 255, 0]
        assert out[0, 3, :3].tolist() == [255, 140, 0]
        assert out[1, 0, :3].tolist() == [255, 0, 0]
        assert out[1, 1, :3].tolist() == [50, 50, 50]
        assert out[1, 2, :3].tolist() == [255, 192, 203]
        assert out[1, 3, :3].tolist() == [255, 245, 186]

    def test_fully_opaque_and_same_size(self, every_colour: ClassificationMap) -> None:
        out = render(every_colour, 0.0)
        assert (out.height, out.width) == every_colour.shape
        assert np.all(out.pixels[..., 3] == 255)

    def test_threshold_shifts_buckets(self, every_colour: ClassificationMap) -> None:
        """Index 0.5 at threshold 0.4 is only 0.1 above: healthy, not very healthy."""
        out = render(every_colour, 0.4).pixels
        assert out[0, 0, :3].tolist() == [34, 200, 34]

    def test_deterministic(self, every_colour: ClassificationMap) -> None:
        assert render(every_colour, 0.1).to_bytes() == render(every_colour, 0.1).to_bytes()


class TestLegend:
    def test_nursery_lists_all_filters(self) -> None:
        labels = [e.label for e in legend(get_profile("nursery-production"))]
        assert labels == [
            "Very Healthy",
            "Healthy (>0.15)",
            "Borderline",
            "Stressed",
            "Severe Stress",
            "Flowers (ignored)",
            "New Growth (neutral)",
            "Black Fabric (ignored)",
        ]

    def test_flowering_has_no_fabric_row(self) -> None:
        labels = [e.label for e in legend(get_profile("flowering"))]
        assert len(labels) == 7
        assert "Black Fabric (ignored)" not in labels

    def test_unfiltered_profile_has_health_rows_only(self) -> None:
        assert len(legend(get_profile("succulent"))) == 5

    def test_threshold_in_label(self) -> None:
        config = get_profile("green-foliage").with_threshold(-0.25)
        assert legend(config)[1].label == "Healthy (>-0.25)"

    def test_hex_and_dict(self) -> None:
        entry = legend(get_profile("green-foliage"))[1]
        assert entry.hex == "#22C822"
        assert entry.to_dict() == {"label": "Healthy (>0.10)", "color": "#22C822", "rgb": [34, 200, 34]}
