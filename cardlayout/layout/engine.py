# Render-context bindings: map fractional placements onto a preview (percent)
# or export (integer pixel) surface. Fractions are never altered here.
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping

from cardlayout.constants import PREVIEW_LINE_HEIGHT, PREVIEW_MAX_WIDTH
from cardlayout.layout.normalize import normalize
from cardlayout.models import NormalizedPlacements, PhotoPlacement, TemplateGeometry, TextPlacement
from cardlayout.render.typography import measure_text_width

LOGGER = logging.getLogger("cardlayout.engine")

DEFAULT_PERCENT_PRECISION = 4
DEFAULT_EXPORT_SIZE = (1012, 638)

TextMeasurer = Callable[[TextPlacement, str, float], float]


class RenderContext(str, Enum):
    PREVIEW = "preview"
    EXPORT = "export"

    @classmethod
    def parse(cls, value: "RenderContext | str") -> "RenderContext":
        if isinstance(value, RenderContext):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"render context must be preview or export, got: {value!r}")


def percent(fraction: float, precision: int = DEFAULT_PERCENT_PRECISION) -> str:
    text = f"{fraction * 100.0:.{max(0, precision)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in {"-0", ""}:
        text = "0"
    return f"{text}%"


def preview_photo_style(photo: PhotoPlacement, precision: int = DEFAULT_PERCENT_PRECISION) -> dict[str, str]:
    return {
        "left": percent(photo.left_fraction, precision),
        "top": percent(photo.top_fraction, precision),
        "width": percent(photo.width_fraction, precision),
        "height": percent(photo.height_fraction, precision),
    }


def preview_font_size(
    text: TextPlacement,
    reference_height: float | None = None,
    container_height: float | None = None,
) -> str:
    """CSS font size for the preview.

    Without a container height the size stays in reference pixels, which is
    only faithful while the preview is drawn at the reference size. With both
    heights the size is scaled like the export side so text keeps its share of
    the card.
    """
    if (reference_height or 0) > 0 and (container_height or 0) > 0:
        size = round(text.font_size * float(container_height) / float(reference_height), 2)
        return f"{size:g}px"
    return f"{text.font_size:g}px"


def preview_text_style(
    text: TextPlacement,
    precision: int = DEFAULT_PERCENT_PRECISION,
    *,
    reference_height: float | None = None,
    container_height: float | None = None,
) -> dict[str, str]:
    return {
        "left": percent(text.left_fraction, precision),
        "top": percent(text.top_fraction, precision),
        "font-size": preview_font_size(text, reference_height, container_height),
        "font-weight": text.font_weight,
        "color": text.color,
        "font-family": text.font_family,
        "text-align": text.text_align,
        "line-height": PREVIEW_LINE_HEIGHT,
        "white-space": "pre",
        "width": "max-content",
        "max-width": PREVIEW_MAX_WIDTH,
        "transform": text.anchor_transform.css_transform(),
    }


def _check_surface(surface_width: int, surface_height: int) -> None:
    if surface_width <= 0 or surface_height <= 0:
        raise ValueError(f"export surface must be positive, got {surface_width}x{surface_height}")


def export_photo_box(photo: PhotoPlacement, surface_width: int, surface_height: int) -> tuple[int, int, int, int]:
    """Integer ``(left, top, right, bottom)`` on the export surface, unclamped."""
    _check_surface(surface_width, surface_height)
    left = int(round(photo.left_fraction * surface_width))
    top = int(round(photo.top_fraction * surface_height))
    right = int(round((photo.left_fraction + photo.width_fraction) * surface_width))
    bottom = int(round((photo.top_fraction + photo.height_fraction) * surface_height))
    return (left, top, right, bottom)


def export_font_size(text: TextPlacement, reference_height: float, surface_height: int) -> int:
    scale = surface_height / float(reference_height)
    return max(1, int(round(text.font_size * scale)))


def export_text_origin(
    text: TextPlacement,
    surface_width: int,
    surface_height: int,
    rendered_width: float,
) -> tuple[int, int]:
    """Top-left pixel at which to draw ``text`` after applying its anchor shift."""
    _check_surface(surface_width, surface_height)
    anchor_x = text.left_fraction * surface_width
    x = anchor_x + text.anchor_transform.apply(rendered_width)
    y = text.top_fraction * surface_height
    return (int(round(x)), int(round(y)))


def pillow_text_measurer(font_path: Path | None = None) -> TextMeasurer:
    def _measure(text: TextPlacement, value: str, font_size: float) -> float:
        return measure_text_width(value, font_size, font_path=font_path, font_weight=text.font_weight)

    return _measure


@dataclass(slots=True)
class LayoutResult:
    context: RenderContext
    placements: NormalizedPlacements
    photo_binding: dict[str, Any] = field(default_factory=dict)
    text_bindings: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context.value,
            "placements": self.placements.to_dict(),
            "photo": dict(self.photo_binding),
            "text_fields": [dict(item) for item in self.text_bindings],
        }


def _log_percentages(placements: NormalizedPlacements, source: str) -> None:
    if not LOGGER.isEnabledFor(logging.DEBUG):
        return
    LOGGER.debug(
        "[%s] photo left=%s top=%s width=%s height=%s",
        source,
        percent(placements.photo.left_fraction),
        percent(placements.photo.top_fraction),
        percent(placements.photo.width_fraction),
        percent(placements.photo.height_fraction),
    )
    for text in placements.text_fields:
        LOGGER.debug(
            "[%s] field %s left=%s top=%s align=%s",
            source,
            text.id,
            percent(text.left_fraction),
            percent(text.top_fraction),
            text.anchor_transform.align,
        )


def _usable_width(value: float) -> bool:
    return math.isfinite(value) and value >= 0


def _bind_export(
    placements: NormalizedPlacements,
    surface_size: tuple[int, int],
    texts: Mapping[str, str],
    rendered_widths: Mapping[str, float],
    measurer: TextMeasurer | None,
) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    surface_w, surface_h = surface_size
    left, top, right, bottom = export_photo_box(placements.photo, surface_w, surface_h)
    photo_binding = {"box": [left, top, right, bottom], "size": [right - left, bottom - top]}
    text_bindings: list[dict[str, Any]] = []
    for text in placements.text_fields:
        font_size = export_font_size(text, placements.reference_height, surface_h)
        rendered_width = rendered_widths.get(text.id)
        if rendered_width is not None and not _usable_width(rendered_width):
            LOGGER.warning("ignoring rendered width %r for field %s", rendered_width, text.id)
            rendered_width = None
        if rendered_width is None and measurer is not None and text.id in texts:
            rendered_width = measurer(text, texts[text.id], font_size)
        # unmeasured text is anchored as if it had zero width
        x, y = export_text_origin(text, surface_w, surface_h, rendered_width or 0.0)
        text_bindings.append(
            {
                "id": text.id,
                "x": x,
                "y": y,
                "font_size": font_size,
                "rendered_width": rendered_width,
                "align": text.anchor_transform.align,
            }
        )
    return photo_binding, text_bindings


def layout_template(
    geometry: TemplateGeometry,
    context: RenderContext | str = RenderContext.PREVIEW,
    *,
    surface_size: tuple[int, int] | None = None,
    texts: Mapping[str, str] | None = None,
    rendered_widths: Mapping[str, float] | None = None,
    measurer: TextMeasurer | None = None,
    precision: int = DEFAULT_PERCENT_PRECISION,
    source: str = "template",
) -> LayoutResult:
    """Normalize ``geometry`` and bind it for the requested render context.

    ``preview`` yields percent styles and CSS self-shift transforms; when
    ``surface_size`` is given it is the preview container and font sizes are
    scaled to its height.
    ``export`` yields integer pixels at ``surface_size``; text widths come from
    ``rendered_widths`` or, for ids present in ``texts``, from ``measurer``
    (Pillow by default). The fractional placements are the same for both.
    """
    render_context = RenderContext.parse(context)
    placements = normalize(geometry)
    _log_percentages(placements, source)

    if render_context is RenderContext.PREVIEW:
        container_height = surface_size[1] if surface_size else None
        photo_binding: dict[str, Any] = preview_photo_style(placements.photo, precision)
        text_bindings: list[dict[str, Any]] = [
            {
                "id": text.id,
                **preview_text_style(
                    text,
                    precision,
                    reference_height=placements.reference_height,
                    container_height=container_height,
                ),
            }
            for text in placements.text_fields
        ]
    else:
        photo_binding, text_bindings = _bind_export(
            placements,
            surface_size or DEFAULT_EXPORT_SIZE,
            texts or {},
            rendered_widths or {},
            measurer if measurer is not None else pillow_text_measurer(),
        )
    return LayoutResult(
        context=render_context,
        placements=placements,
        photo_binding=photo_binding,
        text_bindings=text_bindings,
    )
