from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def example_config() -> dict[str, Any]:
    return {
        "templateDimensions": {"width": 856, "height": 540},
        "photoPlacement": {"x": 50, "y": 50, "width": 200, "height": 250},
        "textFields": [
            {"id": "name", "x": 300, "y": 100, "fontSize": 28, "fontWeight": "bold", "textAlign": "center"},
        ],
    }
