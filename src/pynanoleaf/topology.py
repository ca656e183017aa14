"""Panel layout helpers.

The device reports its layout from ``GET panelLayout/layout``; fetching it is
the caller's job. These helpers turn the response into ``Panel`` records and
do the layout maths the builders and the CLI need.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Sequence
from typing import Any

from pynanoleaf.exceptions import LayoutParseError
from pynanoleaf.models import Panel, ShapeType


def parse_layout(layout: dict[str, Any] | str | bytes) -> list[Panel]:
    """Parse a ``panelLayout/layout`` response into panels.

    Args:
        layout: Decoded JSON object, or the raw JSON text

    Returns:
        Panels in the order the device reported them

    Raises:
        LayoutParseError: If the JSON is invalid or an entry is missing a key
    """
    if isinstance(layout, (str, bytes)):
        try:
            layout = json.loads(layout)
        except json.JSONDecodeError as e:
            raise LayoutParseError(f"Invalid layout JSON: {e}") from e
    if not isinstance(layout, dict) or "positionData" not in layout:
        raise LayoutParseError("Layout has no positionData")

    panels = []
    for entry in layout["positionData"]:
        try:
            panels.append(
                Panel(
                    id=int(entry["panelId"]),
                    x=int(entry["x"]),
                    y=int(entry["y"]),
                    orientation=int(entry["o"]),
                    shape=ShapeType.from_code(int(entry["shapeType"])),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise LayoutParseError(f"Invalid panel entry {entry!r}: {e}") from e
    return panels


def find_panel(panels: Iterable[Panel], panel_id: int) -> Panel | None:
    for panel in panels:
        if panel.id == panel_id:
            return panel
    return None


def panel_ids(panels: Iterable[Panel]) -> list[int]:
    return [panel.id for panel in panels]


def layout_centroid(panels: Sequence[Panel]) -> tuple[int, int]:
    """Centroid of a layout, averaging the distinct x and distinct y values.

    Args:
        panels: Panels of the layout (must not be empty)

    Returns:
        (x, y), each truncated toward zero

    Raises:
        ValueError: If ``panels`` is empty
    """
    if not panels:
        raise ValueError("Cannot compute the centroid of an empty layout")
    xs = list(dict.fromkeys(p.x for p in panels))
    ys = list(dict.fromkeys(p.y for p in panels))
    return int(sum(xs) / len(xs)), int(sum(ys) / len(ys))


def rotate_panels(panels: Sequence[Panel], global_orientation: int) -> list[Panel]:
    """Rotate a layout about its centroid by the device's global orientation.

    Args:
        panels: Panels as reported by the device
        global_orientation: Value of ``panelLayout/globalOrientation`` in degrees

    Returns:
        New panels with rotated coordinates, truncated to ints
    """
    if not panels:
        return []
    if global_orientation == 360:
        global_orientation = 0
    origin_x, origin_y = layout_centroid(panels)
    angle = math.radians(global_orientation)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)

    rotated = []
    for p in panels:
        x = p.x - origin_x
        y = p.y - origin_y
        new_x = x * cos_a - y * sin_a
        new_y = x * sin_a + y * cos_a
        rotated.append(
            Panel(
                id=p.id,
                x=int(new_x + origin_x),
                y=int(new_y + origin_y),
                orientation=p.orientation,
                shape=p.shape,
            )
        )
    return rotated
