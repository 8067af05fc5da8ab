from __future__ import annotations


class LayoutError(ValueError):
    """Base class for layout failures raised to the caller."""


class InvalidGeometryError(LayoutError):
    """Template geometry is malformed or missing required parts.

    Fatal to the render call: rendering with fabricated geometry would
    produce a misleading card, so this always propagates.
    """


class GeometryWarning(UserWarning):
    """Category for suspicious but usable geometry.

    Never raised by the engine; it tags findings collected by ``verify``.
    """
