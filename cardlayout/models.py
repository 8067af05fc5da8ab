from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from cardlayout.constants import ALIGN_LEFT, DEFAULT_FONT_FAMILY, DEFAULT_FONT_WEIGHT, DEFAULT_TEXT_COLOR


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class TextField:
    id: str
    x: float
    y: float
    font_size: float
    font_weight: str = DEFAULT_FONT_WEIGHT
    color: str = DEFAULT_TEXT_COLOR
    font_family: str = DEFAULT_FONT_FAMILY
    text_align: str = ALIGN_LEFT


@dataclass(frozen=True, slots=True)
class TemplateGeometry:
    reference_width: float
    reference_height: float
    photo_placement: Rect
    text_fields: tuple[TextField, ...] = ()
    template_image_path: str | None = None

    @property
    def reference_size(self) -> tuple[float, float]:
        return (self.reference_width, self.reference_height)


@dataclass(frozen=True, slots=True)
class AnchorTransform:
    align: str
    shift_x: float
    anchor_fraction: float
    shift_y: float = 0.0

    def css_transform(self) -> str:
        return f"translate({_css_percent(self.shift_x)}, {_css_percent(self.shift_y)})"

    def apply(self, rendered_width: float) -> float:
        """Pixel offset for content already measured at ``rendered_width``.

        Left-aligned text never moves; an unusable width counts as unmeasured.
        """
        width = float(rendered_width)
        if self.shift_x == 0 or not math.isfinite(width) or width <= 0:
            return 0.0
        return self.shift_x * width

    def to_dict(self) -> dict[str, Any]:
        return {
            "align": self.align,
            "shift_x": self.shift_x,
            "shift_y": self.shift_y,
            "anchor_fraction": self.anchor_fraction,
        }


@dataclass(frozen=True, slots=True)
class PhotoPlacement:
    left_fraction: float
    top_fraction: float
    width_fraction: float
    height_fraction: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "left_fraction": self.left_fraction,
            "top_fraction": self.top_fraction,
            "width_fraction": self.width_fraction,
            "height_fraction": self.height_fraction,
        }


@dataclass(frozen=True, slots=True)
class TextPlacement:
    id: str
    left_fraction: float
    top_fraction: float
    font_size: float
    font_weight: str
    color: str
    font_family: str
    text_align: str
    anchor_transform: AnchorTransform

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "left_fraction": self.left_fraction,
            "top_fraction": self.top_fraction,
            "font_size": self.font_size,
            "font_weight": self.font_weight,
            "color": self.color,
            "font_family": self.font_family,
            "text_align": self.text_align,
            "anchor_transform": self.anchor_transform.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class NormalizedPlacements:
    reference_width: float
    reference_height: float
    photo: PhotoPlacement
    text_fields: tuple[TextPlacement, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "reference_width": self.reference_width,
            "reference_height": self.reference_height,
            "photo": self.photo.to_dict(),
            "text_fields": [item.to_dict() for item in self.text_fields],
        }


@dataclass(frozen=True, slots=True)
class Finding:
    code: str
    message: str
    severity: str = "warning"
    field_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity,
            "field_id": self.field_id,
            "message": self.message,
            "details": dict(self.details),
        }


def _css_percent(fraction: float) -> str:
    if fraction == 0:
        return "0"
    text = f"{fraction * 100.0:.4f}".rstrip("0").rstrip(".")
    return f"{text}%"
