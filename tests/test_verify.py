import logging
from pathlib import Path

import pytest
from PIL import Image

from cardlayout.errors import GeometryWarning
from cardlayout.layout.normalize import normalize
from cardlayout.layout.verify import CollectingFindingSink, WarningsFindingSink, measure_asset_size, verify
from cardlayout.models import Rect, TemplateGeometry, TextField
from cardlayout.template_loader import geometry_from_dict


def _codes(findings) -> list[str]:
    return [finding.code for finding in findings]


def test_verify_clean_template_has_no_findings(example_config) -> None:
    sink = CollectingFindingSink()
    assert verify(geometry_from_dict(example_config), sink=sink) == []
    assert sink.reports == []


def test_duplicate_field_id_warns_but_both_are_placed(example_config) -> None:
    example_config["textFields"].append({"id": "name", "x": 300, "y": 140, "textAlign": "left"})
    geometry = geometry_from_dict(example_config)

    findings = verify(geometry, sink=CollectingFindingSink())

    duplicates = [finding for finding in findings if finding.code == "duplicate_field_id"]
    assert len(duplicates) == 1
    assert duplicates[0].severity == "warning"
    assert duplicates[0].field_id == "name"
    assert [text.id for text in normalize(geometry).text_fields] == ["name", "name"]


def test_fraction_far_outside_reference_is_reported() -> None:
    # fields placed against a 1712 wide image, reference later shrunk to 856
    geometry = TemplateGeometry(
        reference_width=856,
        reference_height=540,
        photo_placement=Rect(x=100, y=100, width=400, height=500),
        text_fields=(TextField(id="name", x=1500, y=200, font_size=20),),
    )
    findings = verify(geometry, sink=CollectingFindingSink())

    out_of_range = [finding for finding in findings if finding.code == "fraction_out_of_range"]
    assert {finding.field_id for finding in out_of_range} == {"name"}
    assert out_of_range[0].details["edge"] == "left"


def test_slight_bleed_is_not_reported() -> None:
    geometry = TemplateGeometry(
        reference_width=856,
        reference_height=540,
        photo_placement=Rect(x=-10, y=-10, width=200, height=250),
    )
    assert "fraction_out_of_range" not in _codes(verify(geometry, sink=CollectingFindingSink()))


def test_fraction_bounds_are_configurable() -> None:
    geometry = TemplateGeometry(
        reference_width=856,
        reference_height=540,
        photo_placement=Rect(x=-10, y=50, width=200, height=250),
    )
    findings = verify(geometry, sink=CollectingFindingSink(), fraction_min=0.0, fraction_max=1.0)
    assert _codes(findings) == ["fraction_out_of_range"]


def test_non_positive_photo_size_is_reported() -> None:
    geometry = TemplateGeometry(
        reference_width=856,
        reference_height=540,
        photo_placement=Rect(x=50, y=50, width=0, height=-5),
    )
    assert "non_positive_photo_size" in _codes(verify(geometry, sink=CollectingFindingSink()))


def test_invalid_reference_size_is_a_finding_not_an_error() -> None:
    geometry = TemplateGeometry(
        reference_width=0,
        reference_height=540,
        photo_placement=Rect(x=50, y=50, width=200, height=250),
    )
    findings = verify(geometry, sink=CollectingFindingSink())
    assert _codes(findings) == ["invalid_reference_size"]


def test_font_size_and_align_are_checked() -> None:
    geometry = TemplateGeometry(
        reference_width=856,
        reference_height=540,
        photo_placement=Rect(x=50, y=50, width=200, height=250),
        text_fields=(TextField(id="name", x=300, y=100, font_size=0, text_align="middle"),),
    )
    findings = verify(geometry, sink=CollectingFindingSink())
    assert _codes(findings) == ["non_positive_font_size", "unknown_text_align"]
    assert findings[1].severity == "info"


def test_scaled_asset_is_info_only(example_config) -> None:
    findings = verify(geometry_from_dict(example_config), asset_size=(1712, 1080), sink=CollectingFindingSink())
    assert _codes(findings) == ["reference_size_mismatch"]
    assert findings[0].severity == "info"


def test_asset_aspect_mismatch_is_warned(tmp_path: Path, example_config) -> None:
    asset = tmp_path / "template.png"
    Image.new("RGB", (800, 800), color="#FFFFFF").save(asset)
    assert measure_asset_size(asset) == (800, 800)

    findings = verify(geometry_from_dict(example_config), asset_path=asset, sink=CollectingFindingSink())

    assert _codes(findings) == ["reference_size_mismatch", "aspect_ratio_mismatch"]
    assert findings[1].severity == "warning"


def test_unreadable_asset_is_a_finding(tmp_path: Path, example_config) -> None:
    asset = tmp_path / "front.png"
    asset.write_text("not an image", encoding="utf-8")

    findings = verify(geometry_from_dict(example_config), asset_path=asset, sink=CollectingFindingSink())

    assert _codes(findings) == ["asset_unreadable"]
    assert findings[0].severity == "warning"
    assert findings[0].details == {"path": str(asset)}


def test_unknown_live_field_is_reported(example_config) -> None:
    findings = verify(
        geometry_from_dict(example_config),
        live_field_ids=["name", "nickname"],
        sink=CollectingFindingSink(),
    )
    assert _codes(findings) == ["unknown_field_reference"]
    assert findings[0].field_id == "nickname"


def test_verify_does_not_change_placements(example_config) -> None:
    example_config["textFields"].append({"id": "name", "x": 5000, "y": 100})
    geometry = geometry_from_dict(example_config)
    before = normalize(geometry)
    verify(geometry, asset_size=(100, 900), sink=CollectingFindingSink())
    assert normalize(geometry) == before


def test_sink_receives_source_label(example_config) -> None:
    example_config["textFields"].append({"id": "name", "x": 300, "y": 140})
    sink = CollectingFindingSink()
    verify(geometry_from_dict(example_config), sink=sink, source="school")
    assert [source for source, _finding in sink.reports] == ["school"]
    assert sink.findings[0].code == "duplicate_field_id"


def test_default_sink_logs_findings(example_config, caplog: pytest.LogCaptureFixture) -> None:
    example_config["textFields"].append({"id": "name", "x": 300, "y": 140})
    with caplog.at_level(logging.INFO, logger="cardlayout.verify"):
        verify(geometry_from_dict(example_config), source="school")
    assert any("duplicate_field_id" in record.getMessage() for record in caplog.records)
    assert all(record.levelno == logging.WARNING for record in caplog.records)


def test_warnings_sink_emits_geometry_warning(example_config) -> None:
    example_config["textFields"].append({"id": "name", "x": 300, "y": 140})
    with pytest.warns(GeometryWarning, match="duplicate_field_id"):
        verify(geometry_from_dict(example_config), sink=WarningsFindingSink())
