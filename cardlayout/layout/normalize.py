from __future__ import annotations

import math

from cardlayout.errors import InvalidGeometryError
from cardlayout.layout.anchor import normalize_text_align, resolve_anchor
from cardlayout.models import NormalizedPlacements, PhotoPlacement, TemplateGeometry, TextPlacement


def _check_reference(geometry: TemplateGeometry) -> tuple[float, float]:
    width = geometry.reference_width
    height = geometry.reference_height
    for label, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidGeometryError(f"reference {label} must be a number, got {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise InvalidGeometryError(f"reference {label} must be positive and finite, got {value!r}")
    return float(width), float(height)


def normalize(geometry: TemplateGeometry) -> NormalizedPlacements:
    """Convert reference-pixel geometry into fractions of the reference size.

    x and width are divided by the reference width, y and height by the
    reference height. Values are not clamped: fields authored outside the
    image keep their negative or >1 fractions.
    """
    width, height = _check_reference(geometry)
    rect = geometry.photo_placement
    photo = PhotoPlacement(
        left_fraction=rect.x / width,
        top_fraction=rect.y / height,
        width_fraction=rect.width / width,
        height_fraction=rect.height / height,
    )
    text_fields: list[TextPlacement] = []
    for field in geometry.text_fields:
        left_fraction = field.x / width
        text_fields.append(
            TextPlacement(
                id=field.id,
                left_fraction=left_fraction,
                top_fraction=field.y / height,
                font_size=field.font_size,
                font_weight=field.font_weight,
                color=field.color,
                font_family=field.font_family,
                text_align=normalize_text_align(field.text_align),
                anchor_transform=resolve_anchor(field, left_fraction),
            )
        )
    return NormalizedPlacements(
        reference_width=width,
        reference_height=height,
        photo=photo,
        text_fields=tuple(text_fields),
    )
