# Long-edge ID-card proportion (85.6 x 54 mm) at the conventional authoring DPI.
DEFAULT_REFERENCE_WIDTH = 856
DEFAULT_REFERENCE_HEIGHT = 540
DEFAULT_REFERENCE_SIZE = (DEFAULT_REFERENCE_WIDTH, DEFAULT_REFERENCE_HEIGHT)

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"
ALIGN_OPTIONS = (ALIGN_LEFT, ALIGN_CENTER, ALIGN_RIGHT)

# Self-shift as a fraction of the rendered content width.
ALIGN_SHIFT_X = {
    ALIGN_LEFT: 0.0,
    ALIGN_CENTER: -0.5,
    ALIGN_RIGHT: -1.0,
}

DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_FONT_FAMILY = "Arial, sans-serif"
DEFAULT_FONT_WEIGHT = "normal"
DEFAULT_FONT_SIZE = 16

PREVIEW_LINE_HEIGHT = "1.2"
PREVIEW_MAX_WIDTH = "80%"

TEMPLATE_SUFFIXES = (".json", ".yaml", ".yml")
