"""
Lookbook grid compositor.

Lays out the four pose renders in a padded, labeled 2x2 grid and encodes
the result as a single PNG. Grid math uses the first image's size and the
images are pasted at their native size; inputs with different dimensions
will overlap or leave gaps.
"""
import io
from typing import Callable, List, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter

from src.media.image_generator import draw_centered, pick_font, text_size
from src.media.ingestion import ingest_reference
from src.shared.logging_utils import info as log_info
from src.specs.agents.tryon_instructions import POSE_LABELS
from src.specs.common.errors import CompositionError
from src.specs.models.domain import POSE_COUNT, ImagePayload

GAP = 40
PADDING = 60
LABEL_HEIGHT = 80
CARD_MARGIN = 10

TITLE = "Lookbook - 4 Poses"
FOOTER = "Spring / Summer 2025"

BACKGROUND = (250, 250, 249)
TITLE_COLOR = (28, 25, 23)
CARD_COLOR = (255, 255, 255)
BORDER_COLOR = (231, 229, 228)
LABEL_COLOR = (120, 113, 108)
FOOTER_COLOR = (168, 162, 158)


def canvas_size(img_width: int, img_height: int) -> Tuple[int, int]:
    width = img_width * 2 + GAP + PADDING * 2
    height = img_height * 2 + GAP + PADDING * 2 + LABEL_HEIGHT * 2
    return width, height


def grid_cell_boxes(img_width: int, img_height: int) -> List[Tuple[int, int]]:
    """Top-left corner of each cell in input order: TL, TR, BL, BR."""
    left = PADDING
    right = PADDING + img_width + GAP
    top = PADDING + LABEL_HEIGHT
    bottom = PADDING + img_height + GAP + LABEL_HEIGHT
    return [(left, top), (right, top), (left, bottom), (right, bottom)]


def grid_label_anchors(img_width: int, img_height: int) -> List[Tuple[str, Tuple[float, int]]]:
    """Pose label and the top-centre point it is drawn at, in cell order."""
    return [
        (label, (x + img_width / 2, y + img_height + CARD_MARGIN + 6))
        for label, (x, y) in zip(POSE_LABELS, grid_cell_boxes(img_width, img_height))
    ]


def load_images(
    image_refs: Sequence[str],
    loader: Callable[[str], ImagePayload] = ingest_reference,
) -> List[Image.Image]:
    images: List[Image.Image] = []
    for index, ref in enumerate(image_refs):
        try:
            payload = loader(ref)
            img = Image.open(io.BytesIO(payload.rawBytes))
            img.load()
        except Exception as exc:
            raise CompositionError(
                f"Could not load image {index + 1} of {len(image_refs)}: {exc}",
                details={"index": index},
            )
        images.append(img.convert("RGB"))
    return images


def _draw_card_shadows(canvas: Image.Image, boxes: Sequence[Tuple[int, int]], w: int, h: int) -> None:
    shadow = Image.new("L", canvas.size, 0)
    sd = ImageDraw.Draw(shadow)
    for x, y in boxes:
        sd.rectangle(
            (x - CARD_MARGIN, y - CARD_MARGIN + 10, x + w + CARD_MARGIN, y + h + CARD_MARGIN + 10),
            fill=26,
        )
    shadow = shadow.filter(ImageFilter.GaussianBlur(10))
    canvas.paste(Image.new("RGB", canvas.size, (0, 0, 0)), (0, 0), shadow)


def render_grid(images: Sequence[Image.Image]) -> Image.Image:
    if len(images) != POSE_COUNT:
        raise CompositionError(f"Lookbook grid needs exactly {POSE_COUNT} images, got {len(images)}")
    w, h = images[0].size
    canvas = Image.new("RGB", canvas_size(w, h), BACKGROUND)
    boxes = grid_cell_boxes(w, h)
    _draw_card_shadows(canvas, boxes, w, h)

    draw = ImageDraw.Draw(canvas)
    title_font = pick_font(48, serif=True)
    label_font = pick_font(14)
    footer_font = pick_font(24, serif=True)

    _, title_h = text_size(draw, TITLE, title_font)
    draw_centered(draw, TITLE, canvas.width / 2, max(4, 50 - title_h), title_font, TITLE_COLOR)

    for img, (x, y), (label, (lx, ly)) in zip(images, boxes, grid_label_anchors(w, h)):
        card = (x - CARD_MARGIN, y - CARD_MARGIN, x + w + CARD_MARGIN, y + h + CARD_MARGIN)
        draw.rectangle(card, fill=CARD_COLOR)
        canvas.paste(img, (x, y))
        draw.rectangle(card, outline=BORDER_COLOR, width=2)
        draw_centered(draw, label.upper(), lx, ly, label_font, LABEL_COLOR)

    _, footer_h = text_size(draw, FOOTER, footer_font)
    draw_centered(draw, FOOTER, canvas.width / 2, canvas.height - 30 - footer_h, footer_font, FOOTER_COLOR)
    return canvas


def compose_lookbook_grid(
    image_refs: Sequence[str],
    *,
    loader: Callable[[str], ImagePayload] = ingest_reference,
    run_trace_id=None,
) -> bytes:
    """Compose four pose image references into one PNG lookbook.

    Any image that fails to load fails the whole composite.
    """
    if len(image_refs) != POSE_COUNT:
        raise CompositionError(
            f"Lookbook grid needs exactly {POSE_COUNT} images, got {len(image_refs)}",
            details={"count": len(image_refs)},
        )
    images = load_images(image_refs, loader)
    grid = render_grid(images)
    buf = io.BytesIO()
    grid.save(buf, format="PNG")
    log_info(run_trace_id, "compose:grid_rendered", width=grid.width, height=grid.height)
    return buf.getvalue()
