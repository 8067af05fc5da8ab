from __future__ import annotations

from cardlayout.constants import ALIGN_LEFT, ALIGN_SHIFT_X
from cardlayout.models import AnchorTransform, TextField


def normalize_text_align(value: object) -> str:
    text = str(value or "").strip().lower()
    if text in ALIGN_SHIFT_X:
        return text
    return ALIGN_LEFT


def resolve_anchor(field: TextField, left_fraction: float) -> AnchorTransform:
    """Self-shift a surface applies to a text block after placing its anchor.

    The authored x is the left edge for ``left``, the horizontal center for
    ``center`` and the right edge for ``right``. The shift is a fraction of the
    rendered content width, which only the drawing surface can measure.
    Unknown alignments resolve to ``left``.
    """
    align = normalize_text_align(field.text_align)
    return AnchorTransform(
        align=align,
        shift_x=ALIGN_SHIFT_X[align],
        anchor_fraction=left_fraction,
    )
