from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import NoReturn

import typer

from cardlayout.config import export_size, load_config, verify_options, write_default_config
from cardlayout.errors import InvalidGeometryError
from cardlayout.layout.engine import RenderContext, layout_template, pillow_text_measurer
from cardlayout.layout.verify import verify
from cardlayout.models import TemplateGeometry
from cardlayout.template_loader import list_builtin_templates, load_geometry

app = typer.Typer(add_completion=False, no_args_is_help=True, help="ID-card template layout CLI.")
LOGGER = logging.getLogger("cardlayout")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_pairs(values: list[str], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, item = str(value).partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"{option} expects ID=VALUE, got: {value!r}")
        pairs[key] = item
    return pairs


def _parse_widths(values: list[str]) -> dict[str, float]:
    widths: dict[str, float] = {}
    for key, value in _parse_pairs(values, "--text-width").items():
        try:
            width = float(value)
        except ValueError as exc:
            raise ValueError(f"--text-width expects a number for {key}, got: {value!r}") from exc
        if not math.isfinite(width) or width < 0:
            raise ValueError(f"--text-width expects a finite, non-negative width for {key}, got: {value!r}")
        widths[key] = width
    return widths


def _surface_size(
    geometry: TemplateGeometry,
    width: int | None,
    height: int | None,
    default: tuple[int, int],
) -> tuple[int, int]:
    # a single given side keeps the template's aspect ratio
    ratio = geometry.reference_height / geometry.reference_width
    if width and not height:
        return (width, max(1, int(round(width * ratio))))
    if height and not width:
        return (max(1, int(round(height / ratio))), height)
    return (width or default[0], height or default[1])


def _fail(message: str) -> NoReturn:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(1)


def _load(template: str) -> TemplateGeometry:
    try:
        return load_geometry(template)
    except FileNotFoundError as exc:
        _fail(str(exc))
    except InvalidGeometryError as exc:
        _fail(f"Template geometry invalid: {exc}")


@app.command()
def layout(
    template: str = typer.Argument(..., help="Built-in template name or .json/.yaml file path."),
    context: str | None = typer.Option(None, "--context", help="preview|export"),
    width: int | None = typer.Option(
        None, "--width", min=1, help="Surface width in pixels; height follows the template aspect when omitted."
    ),
    height: int | None = typer.Option(
        None, "--height", min=1, help="Surface height in pixels; width follows the template aspect when omitted."
    ),
    text: list[str] | None = typer.Option(None, "--text", help="Field text to measure for export, ID=VALUE."),
    text_width: list[str] | None = typer.Option(None, "--text-width", help="Already measured width, ID=PX."),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Print placements for a template in the given render context."""
    cfg = load_config()
    _setup_logging(log_level or str(cfg.get("log_level", "info")))

    try:
        render_context = RenderContext.parse(context or str(cfg.get("context", "preview")))
        texts = _parse_pairs(text or [], "--text")
        widths = _parse_widths(text_width or [])
    except ValueError as exc:
        _fail(str(exc))

    geometry = _load(template)
    if render_context is RenderContext.EXPORT or width or height:
        surface_size: tuple[int, int] | None = _surface_size(geometry, width, height, export_size(cfg))
    else:
        surface_size = None
    font_path = cfg.get("font_path")
    try:
        result = layout_template(
            geometry,
            render_context,
            surface_size=surface_size,
            texts=texts,
            rendered_widths=widths,
            measurer=pillow_text_measurer(Path(font_path) if font_path else None),
            precision=int(cfg.get("percent_precision", 4)),
            source=template,
        )
    except InvalidGeometryError as exc:
        _fail(f"Template geometry invalid: {exc}")
    typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


@app.command("verify")
def verify_template(
    template: str = typer.Argument(..., help="Built-in template name or .json/.yaml file path."),
    asset: Path | None = typer.Option(
        None,
        "--asset",
        exists=True,
        dir_okay=False,
        resolve_path=True,
        help="Template image to compare against the declared reference size.",
    ),
    live_field: list[str] | None = typer.Option(None, "--live-field", help="Field id present in live data."),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Report advisory findings for a template. Findings never fail the command."""
    cfg = load_config()
    _setup_logging(log_level or str(cfg.get("log_level", "info")))
    geometry = _load(template)
    findings = verify(
        geometry,
        asset_path=asset,
        live_field_ids=live_field or None,
        source=template,
        **verify_options(cfg),
    )
    payload = {
        "template": template,
        "findings": [finding.to_dict() for finding in findings],
    }
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    LOGGER.info("%d finding(s) for %s", len(findings), template)


@app.command("templates")
def templates() -> None:
    for name in list_builtin_templates():
        typer.echo(name)


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
