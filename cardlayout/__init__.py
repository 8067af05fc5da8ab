"""Coordinate normalization and field layout for ID-card templates."""
from __future__ import annotations

from cardlayout.errors import GeometryWarning, InvalidGeometryError, LayoutError
from cardlayout.layout.anchor import resolve_anchor
from cardlayout.layout.engine import RenderContext, layout_template
from cardlayout.layout.normalize import normalize
from cardlayout.layout.verify import verify
from cardlayout.template_loader import geometry_from_dict, load_geometry

__all__ = [
    "GeometryWarning",
    "InvalidGeometryError",
    "LayoutError",
    "RenderContext",
    "geometry_from_dict",
    "layout_template",
    "load_geometry",
    "normalize",
    "resolve_anchor",
    "verify",
]
