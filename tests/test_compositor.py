import io

import pytest
from PIL import Image

from src.media.compositor import (
    GAP,
    LABEL_HEIGHT,
    PADDING,
    canvas_size,
    compose_lookbook_grid,
    grid_cell_boxes,
    grid_label_anchors,
    render_grid,
)
from src.specs.common.errors import CompositionError
from tests.helpers import data_uri, make_png


def test_constants():
    assert (GAP, PADDING, LABEL_HEIGHT) == (40, 60, 80)


def test_canvas_size_formula():
    assert canvas_size(100, 200) == (100 * 2 + 40 + 120, 200 * 2 + 40 + 120 + 160)


def test_cell_positions():
    assert grid_cell_boxes(100, 200) == [(60, 140), (200, 140), (60, 380), (200, 380)]


def test_composite_png_has_expected_dimensions_and_cells():
    colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
    refs = [data_uri(make_png(c, (100, 120))) for c in colors]
    png = compose_lookbook_grid(refs)
    img = Image.open(io.BytesIO(png)).convert("RGB")
    assert img.size == canvas_size(100, 120)
    for (x, y), color in zip(grid_cell_boxes(100, 120), colors):
        assert img.getpixel((x + 50, y + 60)) == color


@pytest.mark.parametrize("count", [0, 3, 5])
def test_requires_exactly_four_images(count):
    refs = [data_uri(make_png())] * count
    with pytest.raises(CompositionError):
        compose_lookbook_grid(refs)


def test_unloadable_image_fails_whole_composite():
    refs = [data_uri(make_png())] * 3 + ["data:image/png;base64,bm90LWFuLWltYWdl"]
    with pytest.raises(CompositionError) as info:
        compose_lookbook_grid(refs)
    assert info.value.details["index"] == 3


def test_labels_follow_pose_order_under_each_cell():
    anchors = grid_label_anchors(100, 120)
    assert [label for label, _ in anchors] == ["Frontal", "3/4 View", "Profile", "Dynamic"]
    for (x, y), (_, (lx, ly)) in zip(grid_cell_boxes(100, 120), anchors):
        assert lx == x + 50
        assert y + 120 < ly < y + 120 + LABEL_HEIGHT


def test_label_text_is_drawn_at_each_anchor():
    images = [Image.new("RGB", (100, 120), (255, 255, 255)) for _ in range(4)]
    canvas = render_grid(images)
    for _, (lx, ly) in grid_label_anchors(100, 120):
        region = canvas.crop((int(lx) - 45, ly, int(lx) + 45, ly + 24)).convert("L")
        assert min(region.getdata()) < 200
