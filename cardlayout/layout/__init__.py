from __future__ import annotations

from cardlayout.layout.anchor import resolve_anchor
from cardlayout.layout.engine import LayoutResult, RenderContext, layout_template
from cardlayout.layout.normalize import normalize
from cardlayout.layout.verify import CollectingFindingSink, FindingSink, LoggingFindingSink, verify

__all__ = [
    "CollectingFindingSink",
    "FindingSink",
    "LayoutResult",
    "LoggingFindingSink",
    "RenderContext",
    "layout_template",
    "normalize",
    "resolve_anchor",
    "verify",
]
