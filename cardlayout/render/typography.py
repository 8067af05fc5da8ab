from __future__ import annotations

import logging
import platform
from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

LOGGER = logging.getLogger("cardlayout.typography")

_BOLD_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}


def _system_font_candidates(bold: bool = False) -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        return [
            Path(r"C:\Windows\Fonts\arialbd.ttf" if bold else r"C:\Windows\Fonts\arial.ttf"),
            Path(r"C:\Windows\Fonts\segoeui.ttf"),
        ]
    if "darwin" in system:
        return [
            Path("/Library/Fonts/Arial Bold.ttf" if bold else "/Library/Fonts/Arial.ttf"),
            Path("/System/Library/Fonts/Supplemental/Arial.ttf"),
            Path("/System/Library/Fonts/Helvetica.ttc"),
        ]
    return [
        Path(
            "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf"
            if bold
            else "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"
        ),
        Path(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"
            if bold
            else "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"
        ),
    ]


def is_bold_weight(font_weight: str | None) -> bool:
    return str(font_weight or "").strip().lower() in _BOLD_WEIGHTS


@lru_cache(maxsize=64)
def load_font(font_path: Path | None, size: int, bold: bool = False) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    candidates: list[Path] = []
    if font_path:
        candidates.append(font_path)
    candidates.extend(_system_font_candidates(bold))
    for candidate in candidates:
        if candidate.exists():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                LOGGER.debug("font not loadable: %s", candidate)
                continue
    return ImageFont.load_default(size=size)


def text_size(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont) -> tuple[int, int]:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    return right - left, bottom - top


def measure_text_width(
    text: str,
    font_size: float,
    *,
    font_path: Path | None = None,
    font_weight: str | None = None,
) -> int:
    """Rendered width in pixels of ``text`` at ``font_size`` on a raster surface.

    Multi-line text measures as its widest line.
    """
    if not text:
        return 0
    size = max(1, int(round(font_size)))
    font = load_font(font_path, size, is_bold_weight(font_weight))
    draw = ImageDraw.Draw(Image.new("L", (1, 1)))
    return max(text_size(draw, line, font)[0] for line in text.split("\n"))
