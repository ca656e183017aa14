"""Value types shared by the codec, the builders and the effect model.

Frames carry the RGB components that go on the wire. Colors are HSB
canonical, the way the device reports and stores them, and only derive RGB
when a frame is made from them.
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from pynanoleaf.exceptions import EffectParseError

# Transition time of a frame that is shown once and is not part of a loop cycle
INITIAL_FRAME = -1


@dataclass(frozen=True)
class Frame:
    """One panel's color and transition time at one animation step.

    Attributes:
        red: Red component (0-255)
        green: Green component (0-255)
        blue: Blue component (0-255)
        transition_time: Time to fade in from the previous frame, in 100 ms
            units. ``INITIAL_FRAME`` (-1) marks a frame outside the loop cycle.
        white: Reserved by the device, always 0
    """

    red: int
    green: int
    blue: int
    transition_time: int = INITIAL_FRAME
    white: int = field(default=0, init=False)

    @classmethod
    def from_color(cls, color: Color, transition_time: int = INITIAL_FRAME) -> Frame:
        """Create a frame from the RGB view of an HSB color."""
        red, green, blue = color.rgb
        return cls(red, green, blue, transition_time)

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.red, self.green, self.blue)


@dataclass(frozen=True)
class Color:
    """HSB color as stored in palettes.

    RGB is derived on demand and is lossy: converting RGB to HSB truncates
    each component to an integer, so an RGB -> HSB -> RGB round trip is not
    exact in general.

    Attributes:
        hue: Hue in degrees (0-360)
        saturation: Saturation (0-100)
        brightness: Brightness (0-100)
        probability: Palette weight, unused by the animation codec
    """

    hue: int
    saturation: int
    brightness: int
    probability: float = 0.0

    @classmethod
    def from_hsb(cls, hue: int, saturation: int, brightness: int) -> Color:
        return cls(hue, saturation, brightness)

    @classmethod
    def from_rgb(cls, red: int, green: int, blue: int) -> Color:
        """Create a color from 0-255 RGB components.

        Args:
            red: Red component (0-255)
            green: Green component (0-255)
            blue: Blue component (0-255)

        Returns:
            Color with each HSB component truncated to an integer
        """
        h, s, v = colorsys.rgb_to_hsv(red / 255, green / 255, blue / 255)
        return cls(int(h * 360), int(s * 100), int(v * 100))

    @classmethod
    def from_hex(cls, hex_color: str) -> Color:
        """Create a color from a ``#rrggbb`` or ``0xrrggbb`` string.

        Raises:
            ValueError: If the string is not a 24-bit hex color
        """
        text = hex_color.strip()
        if text.startswith("#"):
            text = text[1:]
        elif text.lower().startswith("0x"):
            text = text[2:]
        if len(text) != 6:
            raise ValueError(f"Hex color must have 6 digits, got {hex_color!r}")
        value = int(text, 16)
        return cls.from_rgb((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    @property
    def rgb(self) -> tuple[int, int, int]:
        r, g, b = colorsys.hsv_to_rgb(
            self.hue / 360, self.saturation / 100, self.brightness / 100
        )
        return (int(r * 255 + 0.5), int(g * 255 + 0.5), int(b * 255 + 0.5))

    @property
    def red(self) -> int:
        return self.rgb[0]

    @property
    def green(self) -> int:
        return self.rgb[1]

    @property
    def blue(self) -> int:
        return self.rgb[2]

    def to_json(self) -> dict[str, Any]:
        return {
            "hue": self.hue,
            "saturation": self.saturation,
            "brightness": self.brightness,
            "probability": self.probability,
        }

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Color:
        """Parse a palette color object.

        Raises:
            EffectParseError: If hue, saturation or brightness is missing
        """
        for key in ("hue", "saturation", "brightness"):
            if key not in obj:
                raise EffectParseError(f"missing {key} in color")
        try:
            return cls(
                int(obj["hue"]),
                int(obj["saturation"]),
                int(obj["brightness"]),
                float(obj.get("probability", 0.0)),
            )
        except (TypeError, ValueError) as e:
            raise EffectParseError(f"invalid color {obj!r}: {e}") from e


class Colors:
    """Named colors."""

    BLACK = Color.from_rgb(0, 0, 0)
    WHITE = Color.from_rgb(255, 255, 255)
    RED = Color.from_rgb(255, 0, 0)
    GREEN = Color.from_rgb(0, 255, 0)
    BLUE = Color.from_rgb(0, 0, 255)
    MAGENTA = Color.from_rgb(255, 0, 255)
    YELLOW = Color.from_rgb(255, 255, 0)
    CYAN = Color.from_rgb(0, 255, 255)
    GRAY = Color.from_rgb(128, 128, 128)
    LIGHT_GRAY = Color.from_rgb(192, 192, 192)
    DARK_GRAY = Color.from_rgb(64, 64, 64)
    PINK = Color.from_rgb(255, 175, 175)
    ORANGE = Color.from_rgb(255, 200, 0)


@dataclass(frozen=True)
class Palette:
    """Ordered list of palette colors."""

    colors: tuple[Color, ...] = ()

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self):
        return iter(self.colors)

    def with_color(self, color: Color) -> Palette:
        return Palette(self.colors + (color,))

    def without_color(self, color: Color) -> Palette:
        """Return a palette without the first occurrence of ``color``."""
        colors = list(self.colors)
        if color in colors:
            colors.remove(color)
        return Palette(tuple(colors))

    def to_json(self) -> list[dict[str, Any]]:
        return [color.to_json() for color in self.colors]

    @classmethod
    def from_json(cls, arr: list[dict[str, Any]] | None) -> Palette:
        if arr is None:
            return cls()
        if not isinstance(arr, list):
            raise EffectParseError(f"palette must be a list, got {type(arr).__name__}")
        return cls(tuple(Color.from_json(obj) for obj in arr))


class ShapeType(IntEnum):
    """Panel shape codes reported in ``positionData``."""

    TRIANGLE_AURORA = 0
    RHYTHM = 1
    SQUARE = 2
    SQUARE_MASTER = 3
    SQUARE_PASSIVE = 4
    HEXAGON = 7
    TRIANGLE_SHAPES = 8
    MINI_TRIANGLE = 9
    SHAPES_CONTROLLER = 12

    @property
    def side_length(self) -> int:
        return _SIDE_LENGTHS[self]

    @classmethod
    def from_code(cls, code: int) -> ShapeType | int:
        """Map a shape code to a member, keeping unknown codes as plain ints."""
        try:
            return cls(code)
        except ValueError:
            return code


_SIDE_LENGTHS = {
    ShapeType.TRIANGLE_AURORA: 150,
    ShapeType.RHYTHM: 0,
    ShapeType.SQUARE: 100,
    ShapeType.SQUARE_MASTER: 100,
    ShapeType.SQUARE_PASSIVE: 100,
    ShapeType.HEXAGON: 67,
    ShapeType.TRIANGLE_SHAPES: 134,
    ShapeType.MINI_TRIANGLE: 67,
    ShapeType.SHAPES_CONTROLLER: 0,
}


@dataclass(frozen=True)
class Panel:
    """One light panel of a device layout.

    Attributes:
        id: Panel id, unique within a layout
        x: X coordinate of the panel centre
        y: Y coordinate of the panel centre
        orientation: Rotation in degrees
        shape: ShapeType member, or the raw code for shapes this library
            does not know yet
    """

    id: int
    x: int
    y: int
    orientation: int
    shape: ShapeType | int

    @property
    def side_length(self) -> int:
        if isinstance(self.shape, ShapeType):
            return self.shape.side_length
        return 0

    def to_json(self) -> dict[str, int]:
        return {
            "panelId": self.id,
            "x": self.x,
            "y": self.y,
            "o": self.orientation,
            "shapeType": int(self.shape),
        }
