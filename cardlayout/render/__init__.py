from __future__ import annotations

from cardlayout.render.typography import measure_text_width

__all__ = ["measure_text_width"]
