"""Viewport-relative pointer positions.

Gestures are expressed as fractions of the current viewport so the same
scenario works from small phones to large desktops.
"""

from collections.abc import Mapping
from typing import Any

# Desktop browser size; emulated devices bring their own
DESKTOP_VIEWPORT = {"width": 1920, "height": 1080}


def relative_point(
    viewport: Mapping[str, int] | None,
    fraction: tuple[float, float],
) -> tuple[float, float]:
    """Compute a pointer position as a fraction of the viewport size.

    Args:
        viewport: Playwright viewport size ({"width": ..., "height": ...}) or None
        fraction: (x, y) fractions, each strictly between 0 and 1

    Returns:
        (x, y) in CSS pixels

    Raises:
        ValueError: If the viewport is not defined or a fraction is out of range

    Example:
        >>> relative_point({"width": 1920, "height": 1080}, (0.35, 0.5))
        (672.0, 540.0)
    """
    if not viewport:
        raise ValueError("Viewport is not defined")

    fx, fy = fraction
    if not (0 < fx < 1 and 0 < fy < 1):
        raise ValueError(f"Viewport fractions must be between 0 and 1, got {fraction}")

    return viewport["width"] * fx, viewport["height"] * fy


def with_desktop_viewport(context_args: dict[str, Any], device: str | None) -> dict[str, Any]:
    """Browser context arguments with the desktop viewport unless a device is emulated."""
    if device:
        return context_args
    return {**context_args, "viewport": dict(DESKTOP_VIEWPORT)}
