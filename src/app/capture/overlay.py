import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from app.models.photo import PhotoMetadata

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
CARDINAL_DIRECTIONS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


@dataclass
class OverlayLayout:
    # Proportions relative to the image width / text size
    TEXT_SIZE_RATIO: float = 0.035
    LINE_SPACING_RATIO: float = 0.3
    PADDING_RATIO: float = 0.5
    CORNER_RADIUS_RATIO: float = 0.4

    # Colors (RGBA)
    TEXT_COLOR: Tuple[int, int, int, int] = (255, 255, 255, 255)
    PANEL_COLOR: Tuple[int, int, int, int] = (0, 0, 0, 0xDD)

    # Fonts tried in order before Pillow's bundled font
    FONT_CANDIDATES: Tuple[str, ...] = ("DejaVuSans.ttf", "Arial.ttf", "LiberationSans-Regular.ttf")

    JPEG_QUALITY: int = 92


LAYOUT = OverlayLayout()


def bearing_to_cardinal(bearing: float) -> str:
    """Maps a bearing in degrees to one of the eight compass points."""
    normalized = (bearing % 360 + 360) % 360
    # round half up; Python's round() would send 22.5 to N
    index = int(normalized / 45 + 0.5) % len(CARDINAL_DIRECTIONS)
    return CARDINAL_DIRECTIONS[index]


def build_watermark_lines(metadata: PhotoMetadata) -> List[str]:
    lines = [f"Date: {metadata.timestamp.astimezone().strftime(DISPLAY_FORMAT)}"]

    location = metadata.location
    if location is not None:
        lines.append(f"Coords: {location.latitude:.6f}, {location.longitude:.6f}")
        if location.altitude is not None:
            lines.append(f"Altitude: {location.altitude:.1f} m")
        bearing = metadata.bearing
        if bearing is not None:
            lines.append(f"Bearing: {bearing:.0f}° {bearing_to_cardinal(bearing)}")
    else:
        lines.append("Coords: unavailable")

    info = metadata.project_info
    lines.append(f"Project: {info.project_name}")
    lines.append(f"Appraiser: {info.valuer_name}")
    if info.company_name.strip():
        lines.append(info.company_name)
    return lines


def load_font(size: int) -> ImageFont.ImageFont:
    for candidate in LAYOUT.FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug(f"No TrueType font found, using Pillow default at size {size}")
    return ImageFont.load_default(size=size)


def compute_panel(
    image_size: Tuple[int, int],
    line_widths: List[float],
    text_size: float,
) -> Tuple[float, float, float, float]:
    """
    Returns the (left, top, right, bottom) box of the panel anchored to the
    bottom-right corner of the image.
    """
    width, height = image_size
    spacing = text_size * LAYOUT.LINE_SPACING_RATIO
    padding = text_size * LAYOUT.PADDING_RATIO

    max_text_width = max(line_widths, default=0.0)
    count = len(line_widths)
    total_text_height = count * text_size + max(count - 1, 0) * spacing

    return (
        width - max_text_width - padding * 2,
        height - total_text_height - padding * 2,
        float(width),
        float(height),
    )


def render_overlay(image: Image.Image, lines: List[str]) -> Image.Image:
    """Draws the watermark panel onto a copy of ``image`` and returns it as RGB."""
    base = image.convert("RGBA")
    text_size = max(int(round(base.width * LAYOUT.TEXT_SIZE_RATIO)), 1)
    font = load_font(text_size)

    panel = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(panel)

    line_widths = [draw.textlength(line, font=font) for line in lines]
    left, top, right, bottom = compute_panel(base.size, line_widths, text_size)
    draw.rounded_rectangle(
        (int(left), int(top), int(right), int(bottom)),
        radius=int(text_size * LAYOUT.CORNER_RADIUS_RATIO),
        fill=LAYOUT.PANEL_COLOR,
    )

    padding = text_size * LAYOUT.PADDING_RATIO
    spacing = text_size * LAYOUT.LINE_SPACING_RATIO
    y = top + padding
    for line in lines:
        draw.text((left + padding, y), line, font=font, fill=LAYOUT.TEXT_COLOR)
        y += text_size + spacing

    return Image.alpha_composite(base, panel).convert("RGB")


def apply_overlay(path: Path, metadata: PhotoMetadata, quality: Optional[int] = None) -> bool:
    """
    Stamps the watermark onto the JPEG at ``path`` and overwrites it.

    An unreadable or undecodable file is logged and left untouched; returns
    whether the overlay was written.
    """
    try:
        with Image.open(path) as img:
            img.load()
            stamped = render_overlay(img, build_watermark_lines(metadata))
        stamped.save(path, format="JPEG", quality=quality or LAYOUT.JPEG_QUALITY)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.warning(f"Failed to apply overlay to {path}: {e}")
        return False

    logger.debug(f"Overlay applied to {path}")
    return True
