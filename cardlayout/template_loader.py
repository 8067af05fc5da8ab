from __future__ import annotations

import json
import math
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import yaml

from cardlayout.constants import (
    ALIGN_LEFT,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_REFERENCE_SIZE,
    DEFAULT_TEXT_COLOR,
    TEMPLATE_SUFFIXES,
)
from cardlayout.errors import InvalidGeometryError
from cardlayout.models import Rect, TemplateGeometry, TextField


def list_builtin_templates() -> list[str]:
    files = resources.files("cardlayout.templates")
    names = []
    for item in files.iterdir():
        if item.name.endswith(TEMPLATE_SUFFIXES):
            names.append(Path(item.name).stem)
    return sorted(set(names))


def _parse_text(text: str, suffix: str, origin: str) -> dict[str, Any]:
    try:
        if suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidGeometryError(f"template file is not parseable: {origin}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidGeometryError(f"template file is not a dict: {origin}")
    return data


def _load_file(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    return _parse_text(text, path.suffix.lower(), str(path))


def _load_builtin(name: str) -> dict[str, Any]:
    pkg = resources.files("cardlayout.templates")
    for suffix in TEMPLATE_SUFFIXES:
        candidate = pkg / f"{name}{suffix}"
        if candidate.is_file():
            return _parse_text(candidate.read_text(encoding="utf-8"), suffix, f"builtin:{name}")
    raise FileNotFoundError(f"built-in template not found: {name}")


def _is_absent(data: Mapping[str, Any], key: str) -> bool:
    return data.get(key) is None


def _number(value: Any, label: str) -> float:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or value is None:
        raise InvalidGeometryError(f"{label} must be a number, got {value!r}")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidGeometryError(f"{label} must be a number, got {value!r}") from exc
    if not math.isfinite(parsed):
        raise InvalidGeometryError(f"{label} must be finite, got {value!r}")
    return parsed


def _text(value: Any, default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text or default


def _reference_size(data: Mapping[str, Any]) -> tuple[float, float]:
    dims = data.get("templateDimensions")
    if dims is not None and not isinstance(dims, Mapping):
        raise InvalidGeometryError(f"templateDimensions must be an object, got {type(dims).__name__}")
    source: Mapping[str, Any]
    if isinstance(dims, Mapping):
        source = {"width": dims.get("width"), "height": dims.get("height")}
    else:
        source = {"width": data.get("referenceWidth"), "height": data.get("referenceHeight")}

    width_absent = _is_absent(source, "width")
    height_absent = _is_absent(source, "height")
    if width_absent and height_absent:
        return (float(DEFAULT_REFERENCE_SIZE[0]), float(DEFAULT_REFERENCE_SIZE[1]))
    if width_absent or height_absent:
        missing = "width" if width_absent else "height"
        raise InvalidGeometryError(f"reference {missing} is missing while the other dimension is set")

    width = _number(source["width"], "reference width")
    height = _number(source["height"], "reference height")
    if width <= 0 or height <= 0:
        raise InvalidGeometryError(f"reference size must be positive, got {width:g}x{height:g}")
    return (width, height)


def _photo_placement(data: Mapping[str, Any]) -> Rect:
    raw = data.get("photoPlacement")
    if raw is None:
        raise InvalidGeometryError("photoPlacement is missing")
    if not isinstance(raw, Mapping):
        raise InvalidGeometryError(f"photoPlacement must be an object, got {type(raw).__name__}")
    # Non-positive width/height stays representable; verify() reports it.
    return Rect(
        x=_number(raw.get("x"), "photoPlacement.x"),
        y=_number(raw.get("y"), "photoPlacement.y"),
        width=_number(raw.get("width"), "photoPlacement.width"),
        height=_number(raw.get("height"), "photoPlacement.height"),
    )


def _text_field(raw: Any, index: int) -> TextField:
    if not isinstance(raw, Mapping):
        raise InvalidGeometryError(f"textFields[{index}] must be an object, got {type(raw).__name__}")
    field_id = _text(raw.get("id"), "")
    if not field_id:
        raise InvalidGeometryError(f"textFields[{index}].id is missing")
    label = f"textFields[{index}] ({field_id})"
    font_size_raw = raw.get("fontSize")
    font_size = float(DEFAULT_FONT_SIZE) if font_size_raw is None else _number(font_size_raw, f"{label}.fontSize")
    align_raw = raw.get("textAlign", raw.get("align"))
    return TextField(
        id=field_id,
        x=_number(raw.get("x"), f"{label}.x"),
        y=_number(raw.get("y"), f"{label}.y"),
        font_size=font_size,
        font_weight=_text(raw.get("fontWeight"), DEFAULT_FONT_WEIGHT),
        color=_text(raw.get("color"), DEFAULT_TEXT_COLOR),
        font_family=_text(raw.get("fontFamily"), DEFAULT_FONT_FAMILY),
        # kept verbatim, resolve_anchor() owns the fallback
        text_align=_text(align_raw, ALIGN_LEFT),
    )


def geometry_from_dict(data: Mapping[str, Any]) -> TemplateGeometry:
    """Build a validated geometry from a persisted template configuration.

    Accepts the stored shape (``templateDimensions: {width, height}``) and the
    flat ``referenceWidth``/``referenceHeight`` form. Raises
    ``InvalidGeometryError`` before any fraction is computed.
    """
    if not isinstance(data, Mapping):
        raise InvalidGeometryError(f"template configuration must be an object, got {type(data).__name__}")
    width, height = _reference_size(data)
    photo = _photo_placement(data)

    fields_raw = data.get("textFields")
    if fields_raw is None:
        raise InvalidGeometryError("textFields is missing")
    if not isinstance(fields_raw, (list, tuple)):
        raise InvalidGeometryError(f"textFields must be a list, got {type(fields_raw).__name__}")
    fields = tuple(_text_field(item, index) for index, item in enumerate(fields_raw))

    image_path = data.get("templateImagePath")
    return TemplateGeometry(
        reference_width=width,
        reference_height=height,
        photo_placement=photo,
        text_fields=fields,
        template_image_path=str(image_path) if image_path else None,
    )


def load_geometry(template_name_or_path: str | Path) -> TemplateGeometry:
    path = Path(template_name_or_path)
    if path.exists():
        raw = _load_file(path)
    else:
        raw = _load_builtin(str(template_name_or_path))
    return geometry_from_dict(raw)
