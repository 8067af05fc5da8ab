import math

import pytest

from cardlayout.layout.engine import (
    RenderContext,
    export_font_size,
    export_photo_box,
    export_text_origin,
    layout_template,
    percent,
    preview_font_size,
    preview_text_style,
)
from cardlayout.layout.normalize import normalize
from cardlayout.render.typography import measure_text_width
from cardlayout.template_loader import geometry_from_dict, load_geometry


def test_context_never_changes_fractions(example_config) -> None:
    geometry = geometry_from_dict(example_config)
    preview = layout_template(geometry, "preview")
    export_small = layout_template(geometry, RenderContext.EXPORT, surface_size=(428, 270))
    export_large = layout_template(geometry, "export", surface_size=(3000, 2000))

    assert preview.placements == export_small.placements == export_large.placements == normalize(geometry)


def test_preview_binding_uses_percentages(example_config) -> None:
    result = layout_template(geometry_from_dict(example_config), "preview")

    assert result.context is RenderContext.PREVIEW
    assert result.photo_binding == {
        "left": "5.8411%",
        "top": "9.2593%",
        "width": "23.3645%",
        "height": "46.2963%",
    }
    (name,) = result.text_bindings
    assert name["id"] == "name"
    assert name["left"] == "35.0467%"
    assert name["top"] == "18.5185%"
    assert name["transform"] == "translate(-50%, 0)"
    assert name["font-size"] == "28px"
    assert name["max-width"] == "80%"


def test_preview_text_style_for_right_align() -> None:
    geometry = load_geometry("school_id")
    blood = next(text for text in normalize(geometry).text_fields if text.id == "bloodGroup")
    style = preview_text_style(blood, precision=2)
    assert style["transform"] == "translate(-100%, 0)"
    assert style["text-align"] == "right"
    assert style["left"] == "94.16%"


def test_percent_formatting() -> None:
    assert percent(0.5) == "50%"
    assert percent(0.0) == "0%"
    assert percent(-0.0) == "0%"
    assert percent(-10 / 856) == "-1.1682%"
    assert percent(1 / 3, precision=0) == "33%"


def test_export_binding_at_double_resolution(example_config) -> None:
    result = layout_template(
        geometry_from_dict(example_config),
        "export",
        surface_size=(1712, 1080),
        rendered_widths={"name": 120},
    )

    assert result.photo_binding == {"box": [100, 100, 500, 600], "size": [400, 500]}
    (name,) = result.text_bindings
    # centered: 600 px anchor minus half of 120 px
    assert (name["x"], name["y"]) == (540, 200)
    assert name["font_size"] == 56
    assert name["rendered_width"] == 120


def test_export_text_origin_by_alignment(example_config) -> None:
    for align, expected_x in (("left", 600), ("center", 540), ("right", 480), ("bogus", 600)):
        example_config["textFields"][0]["textAlign"] = align
        (text,) = normalize(geometry_from_dict(example_config)).text_fields
        assert export_text_origin(text, 1712, 1080, 120) == (expected_x, 200)


def test_export_photo_box_is_not_clamped() -> None:
    geometry = geometry_from_dict(
        {
            "photoPlacement": {"x": -10, "y": 50, "width": 200, "height": 250},
            "textFields": [],
        }
    )
    left, _top, right, _bottom = export_photo_box(normalize(geometry).photo, 856, 540)
    assert left == -10
    assert right == 190


def test_export_rejects_empty_surface(example_config) -> None:
    photo = normalize(geometry_from_dict(example_config)).photo
    with pytest.raises(ValueError):
        export_photo_box(photo, 0, 540)


def test_export_font_size_scales_with_surface(example_config) -> None:
    (text,) = normalize(geometry_from_dict(example_config)).text_fields
    assert export_font_size(text, 540, 540) == 28
    assert export_font_size(text, 540, 270) == 14
    assert export_font_size(text, 540, 1) == 1


def test_export_measures_text_with_measurer(example_config) -> None:
    calls = []

    def fake_measurer(text, value, font_size):
        calls.append((text.id, value, font_size))
        return 100.0

    result = layout_template(
        geometry_from_dict(example_config),
        "export",
        surface_size=(856, 540),
        texts={"name": "John Doe"},
        measurer=fake_measurer,
    )
    assert calls == [("name", "John Doe", 28)]
    assert result.text_bindings[0]["x"] == 250


def test_export_measures_with_pillow_by_default(example_config) -> None:
    result = layout_template(
        geometry_from_dict(example_config),
        "export",
        surface_size=(856, 540),
        texts={"name": "John Doe"},
    )
    binding = result.text_bindings[0]
    assert binding["rendered_width"] > 0
    assert binding["x"] < 300


def test_unmeasured_text_anchors_at_zero_width(example_config) -> None:
    result = layout_template(geometry_from_dict(example_config), "export", surface_size=(856, 540))
    assert result.text_bindings[0]["x"] == 300
    assert result.text_bindings[0]["rendered_width"] is None


@pytest.mark.parametrize("align", ["left", "center", "right"])
def test_non_finite_width_counts_as_unmeasured(example_config, align: str) -> None:
    example_config["textFields"][0]["textAlign"] = align
    result = layout_template(
        geometry_from_dict(example_config),
        "export",
        surface_size=(856, 540),
        rendered_widths={"name": math.inf},
    )
    assert result.text_bindings[0]["x"] == 300
    assert result.text_bindings[0]["rendered_width"] is None


def test_preview_font_size_follows_container(example_config) -> None:
    geometry = geometry_from_dict(example_config)
    result = layout_template(geometry, "preview", surface_size=(428, 270))
    (name,) = result.text_bindings
    assert name["font-size"] == "14px"
    assert name["left"] == "35.0467%"

    (text,) = normalize(geometry).text_fields
    assert preview_font_size(text) == "28px"
    assert preview_font_size(text, 540, 300) == "15.56px"


def test_unknown_context_is_rejected(example_config) -> None:
    with pytest.raises(ValueError):
        layout_template(geometry_from_dict(example_config), "print")


def test_render_context_parse() -> None:
    assert RenderContext.parse(" Export ") is RenderContext.EXPORT
    assert RenderContext.parse(RenderContext.PREVIEW) is RenderContext.PREVIEW


def test_measure_text_width_grows_with_text() -> None:
    assert measure_text_width("", 20) == 0
    narrow = measure_text_width("W", 20)
    wide = measure_text_width("WWWW", 20)
    assert 0 < narrow < wide
    assert measure_text_width("WWWW\nW", 20) == wide


def test_layout_result_to_dict(example_config) -> None:
    payload = layout_template(geometry_from_dict(example_config), "preview").to_dict()
    assert payload["context"] == "preview"
    assert payload["placements"]["text_fields"][0]["anchor_transform"]["shift_x"] == -0.5
    assert payload["photo"]["left"] == "5.8411%"
