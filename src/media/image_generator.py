import io
import os
from typing import Dict, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

_SERIF_FONTS: Sequence[str] = (
    "/System/Library/Fonts/Supplemental/Georgia Italic.ttf",
    "/Library/Fonts/Georgia Italic.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSerif-Italic.ttf",
    "/usr/share/fonts/dejavu/DejaVuSerif-Italic.ttf",
)

_SANS_FONTS: Sequence[str] = (
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/Library/Fonts/Arial.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
)


def pick_font(size: int, *, serif: bool = False) -> ImageFont.ImageFont:
    # Try a few common fonts; fallback to default
    extra = os.getenv("LOOKBOOK_FONT_PATH")
    candidates = ([extra] if extra else []) + list(_SERIF_FONTS if serif else _SANS_FONTS)
    for name in candidates:
        try:
            return ImageFont.truetype(name, size=size)
        except OSError:
            continue
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        # Pillow < 10.1 has no sized default font
        return ImageFont.load_default()


def text_size(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont) -> Tuple[int, int]:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    return right - left, bottom - top


def draw_centered(
    draw: ImageDraw.ImageDraw,
    text: str,
    center_x: float,
    top: float,
    font: ImageFont.ImageFont,
    fill: Tuple[int, int, int],
) -> None:
    tw, _ = text_size(draw, text, font)
    draw.text((center_x - tw / 2, top), text, fill=fill, font=font)


def _wrap_text(text: str, draw: ImageDraw.ImageDraw, max_width: int, font: ImageFont.ImageFont) -> str:
    words = text.split()
    lines = []
    line = ""
    for w in words:
        test = (line + " " + w).strip()
        w_px, _ = text_size(draw, test, font)
        if w_px <= max_width or not line:
            line = test
        else:
            lines.append(line)
            line = w
    if line:
        lines.append(line)
    return "\n".join(lines)


def generate_placeholder_image(
    caption: str,
    *,
    title: str = "Lookbook",
    size: Tuple[int, int] = (768, 1024),
    footer: Optional[str] = "placeholder image",
) -> Tuple[bytes, Dict]:
    """Create a simple placeholder image containing the caption text.

    Returns (png_bytes, metadata)
    """
    img = Image.new("RGB", size, color=(245, 245, 245))
    draw = ImageDraw.Draw(img)
    w, h = size
    title_font = pick_font(56, serif=True)
    body_font = pick_font(32)

    draw_centered(draw, title, w / 2, 60, title_font, (30, 30, 30))

    margin = 80
    wrapped = _wrap_text(caption.strip(), draw, w - margin * 2, body_font)
    _, line_h = text_size(draw, "Ag", body_font)
    lines = wrapped.splitlines() if wrapped else []
    block_h = len(lines) * (line_h + 8)
    y = (h - block_h) / 2
    for line in lines:
        draw_centered(draw, line, w / 2, y, body_font, (50, 50, 50))
        y += line_h + 8

    if footer:
        small = pick_font(20)
        _, fh = text_size(draw, footer, small)
        draw_centered(draw, footer, w / 2, h - fh - 24, small, (120, 120, 120))

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue(), {"provider": "placeholder", "width": w, "height": h}
