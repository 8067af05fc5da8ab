"""Advisory consistency checks for template geometry.

Runs off the render path. Findings are reported to a sink and returned; they
never raise and never change what ``normalize`` produces for the same geometry.
"""
from __future__ import annotations

import logging
import math
import warnings
from collections import Counter
from pathlib import Path
from typing import Iterable, Protocol

from PIL import Image, UnidentifiedImageError

from cardlayout.constants import ALIGN_OPTIONS
from cardlayout.errors import GeometryWarning
from cardlayout.models import Finding, TemplateGeometry

LOGGER = logging.getLogger("cardlayout.verify")

SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

DEFAULT_FRACTION_MIN = -0.5
DEFAULT_FRACTION_MAX = 1.5
DEFAULT_ASPECT_TOLERANCE = 0.01


class FindingSink(Protocol):
    def report(self, finding: Finding, *, source: str) -> None: ...


class LoggingFindingSink:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def report(self, finding: Finding, *, source: str) -> None:
        level = logging.WARNING if finding.severity == SEVERITY_WARNING else logging.INFO
        self._logger.log(level, "[%s] %s: %s", source, finding.code, finding.message)


class CollectingFindingSink:
    def __init__(self) -> None:
        self.reports: list[tuple[str, Finding]] = []

    def report(self, finding: Finding, *, source: str) -> None:
        self.reports.append((source, finding))

    @property
    def findings(self) -> list[Finding]:
        return [finding for _source, finding in self.reports]


class WarningsFindingSink:
    """Re-emits warning-level findings through the ``warnings`` module."""

    def report(self, finding: Finding, *, source: str) -> None:
        if finding.severity == SEVERITY_WARNING:
            warnings.warn(f"[{source}] {finding.code}: {finding.message}", GeometryWarning, stacklevel=2)


def measure_asset_size(path: Path) -> tuple[int, int]:
    # Only the header is read; Pillow defers pixel decoding.
    with Image.open(path) as image:
        return image.size


def _valid_dimension(value: float) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value) and value > 0


def _fraction_findings(
    geometry: TemplateGeometry,
    fraction_min: float,
    fraction_max: float,
) -> list[Finding]:
    width = float(geometry.reference_width)
    height = float(geometry.reference_height)
    rect = geometry.photo_placement
    checks: list[tuple[str | None, str, float]] = [
        (None, "photo left", rect.x / width),
        (None, "photo top", rect.y / height),
        (None, "photo right", (rect.x + rect.width) / width),
        (None, "photo bottom", (rect.y + rect.height) / height),
    ]
    for field in geometry.text_fields:
        checks.append((field.id, "left", field.x / width))
        checks.append((field.id, "top", field.y / height))

    findings: list[Finding] = []
    for field_id, label, fraction in checks:
        if fraction_min <= fraction <= fraction_max:
            continue
        owner = f"field {field_id!r} {label}" if field_id is not None else label
        findings.append(
            Finding(
                code="fraction_out_of_range",
                message=(
                    f"{owner} sits at {fraction * 100.0:.2f}% of the reference size; "
                    "the reference dimensions may have changed after fields were placed"
                ),
                field_id=field_id,
                details={"edge": label, "fraction": fraction},
            )
        )
    return findings


def _asset_findings(
    geometry: TemplateGeometry,
    asset_size: tuple[float, float],
    aspect_tolerance: float,
) -> list[Finding]:
    asset_w, asset_h = float(asset_size[0]), float(asset_size[1])
    declared_w, declared_h = float(geometry.reference_width), float(geometry.reference_height)
    findings: list[Finding] = []
    if (asset_w, asset_h) != (declared_w, declared_h):
        findings.append(
            Finding(
                code="reference_size_mismatch",
                message=(
                    f"declared reference size {declared_w:g}x{declared_h:g} "
                    f"differs from the template image {asset_w:g}x{asset_h:g}"
                ),
                severity=SEVERITY_INFO,
                details={"declared": [declared_w, declared_h], "asset": [asset_w, asset_h]},
            )
        )
    if asset_w > 0 and asset_h > 0:
        declared_ratio = declared_w / declared_h
        asset_ratio = asset_w / asset_h
        drift = abs(asset_ratio - declared_ratio) / declared_ratio
        if drift > aspect_tolerance:
            findings.append(
                Finding(
                    code="aspect_ratio_mismatch",
                    message=(
                        f"template image aspect {asset_ratio:.4f} differs from declared "
                        f"{declared_ratio:.4f} by {drift * 100.0:.2f}%; fields will drift"
                    ),
                    details={"declared": declared_ratio, "asset": asset_ratio},
                )
            )
    return findings


def verify(
    geometry: TemplateGeometry,
    *,
    asset_size: tuple[float, float] | None = None,
    asset_path: Path | None = None,
    live_field_ids: Iterable[str] | None = None,
    sink: FindingSink | None = None,
    source: str = "template",
    fraction_min: float = DEFAULT_FRACTION_MIN,
    fraction_max: float = DEFAULT_FRACTION_MAX,
    aspect_tolerance: float = DEFAULT_ASPECT_TOLERANCE,
) -> list[Finding]:
    """Return advisory findings for ``geometry`` and report each to ``sink``.

    ``asset_size`` (or ``asset_path``, measured with Pillow) is the live size
    of the template image. ``live_field_ids`` names the fields the caller has
    data for. ``source`` labels the caller in reports, e.g. a dashboard name.
    """
    findings: list[Finding] = []
    reference_ok = _valid_dimension(geometry.reference_width) and _valid_dimension(geometry.reference_height)
    if not reference_ok:
        findings.append(
            Finding(
                code="invalid_reference_size",
                message=(
                    f"reference size {geometry.reference_width!r}x{geometry.reference_height!r} "
                    "is not positive; the template cannot be rendered"
                ),
            )
        )

    rect = geometry.photo_placement
    if rect.width <= 0 or rect.height <= 0:
        findings.append(
            Finding(
                code="non_positive_photo_size",
                message=f"photo placement is {rect.width:g}x{rect.height:g}; the photo will not be visible",
                details={"width": rect.width, "height": rect.height},
            )
        )

    if reference_ok:
        findings.extend(_fraction_findings(geometry, fraction_min, fraction_max))

    counts = Counter(field.id for field in geometry.text_fields)
    for field_id, count in counts.items():
        if count > 1:
            findings.append(
                Finding(
                    code="duplicate_field_id",
                    message=f"field id {field_id!r} is used by {count} text fields",
                    field_id=field_id,
                    details={"count": count},
                )
            )

    for field in geometry.text_fields:
        if field.font_size <= 0:
            findings.append(
                Finding(
                    code="non_positive_font_size",
                    message=f"field {field.id!r} has font size {field.font_size:g}",
                    field_id=field.id,
                )
            )
        align = str(field.text_align or "").strip().lower()
        if align not in ALIGN_OPTIONS:
            findings.append(
                Finding(
                    code="unknown_text_align",
                    message=f"field {field.id!r} has text align {field.text_align!r}; rendering as left",
                    severity=SEVERITY_INFO,
                    field_id=field.id,
                )
            )

    if asset_size is None and asset_path is not None:
        try:
            asset_size = measure_asset_size(asset_path)
        except (OSError, UnidentifiedImageError) as exc:
            findings.append(
                Finding(
                    code="asset_unreadable",
                    message=f"template image {asset_path} could not be read: {exc}",
                    details={"path": str(asset_path)},
                )
            )
    if asset_size is not None and reference_ok:
        findings.extend(_asset_findings(geometry, asset_size, aspect_tolerance))

    if live_field_ids is not None:
        for field_id in sorted(set(live_field_ids) - set(counts)):
            findings.append(
                Finding(
                    code="unknown_field_reference",
                    message=f"live data names field {field_id!r}, which the template does not declare",
                    severity=SEVERITY_INFO,
                    field_id=field_id,
                )
            )

    reporter = sink if sink is not None else LoggingFindingSink()
    for finding in findings:
        reporter.report(finding, source=source)
    return findings
