"""Low latency touch event datagrams.

When touch event streaming is enabled, Shapes and Canvas devices send one UDP
datagram per touch update to the port the client registered. Layout:

    num_panels    u16be
    per panel:
      panel_id    u16be
      touch       1 byte: bit 7 reserved, bits 6-4 touch type, bits 3-0 strength
      swipe_from  u16be (0xFFFF when the touch is not a swipe)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import cast

from construct import (
    Array,
    BitsInteger,
    BitStruct,
    Construct,
    ConstructError,
    Container,
    Int16ub,
    Padding,
    Rebuild,
    Struct,
    len_,
    this,
)

from pynanoleaf.exceptions import TouchDatagramError

NO_PANEL = 0xFFFF


class TouchType(IntEnum):
    """Touch type codes."""

    HOVER = 0
    DOWN = 1
    HOLD = 2
    UP = 3
    SWIPE = 4

    @classmethod
    def from_code(cls, code: int) -> TouchType | int:
        try:
            return cls(code)
        except ValueError:
            return code


@dataclass(frozen=True)
class TouchEvent:
    """One panel's touch state from a touch datagram.

    Attributes:
        panel_id: Panel being touched
        touch_type: TouchType member, or the raw code if unknown
        strength: Touch strength (0-15)
        swipe_from: Panel the swipe started on, None if not a swipe
    """

    panel_id: int
    touch_type: TouchType | int
    strength: int
    swipe_from: int | None = None


TouchPanelEvent: Construct = Struct(
    "panel_id" / Int16ub,
    "touch"
    / BitStruct(
        Padding(1),
        "touch_type" / BitsInteger(3),
        "strength" / BitsInteger(4),
    ),
    "swipe_from" / Int16ub,
)

TouchDatagram: Construct = Struct(
    "num_panels" / Rebuild(Int16ub, len_(this.events)),
    "events" / Array(this.num_panels, TouchPanelEvent),
)


def parse_touch_datagram(payload: bytes) -> list[TouchEvent]:
    """Parse a touch event datagram.

    Trailing bytes after the declared events are ignored; devices send into
    fixed-size buffers.

    Raises:
        TouchDatagramError: If the datagram is shorter than its panel count says
    """
    try:
        parsed = TouchDatagram.parse(payload)
    except ConstructError as e:
        raise TouchDatagramError(f"Invalid touch datagram: {e}") from e

    return [
        TouchEvent(
            panel_id=ev.panel_id,
            touch_type=TouchType.from_code(ev.touch.touch_type),
            strength=ev.touch.strength,
            swipe_from=None if ev.swipe_from == NO_PANEL else ev.swipe_from,
        )
        for ev in parsed.events
    ]


def build_touch_datagram(events: Iterable[TouchEvent]) -> bytes:
    """Build a touch event datagram, e.g. to replay captured touches.

    Raises:
        ValueError: If a field does not fit its bit width
    """
    msg = Container(
        events=[
            Container(
                panel_id=ev.panel_id,
                touch=Container(touch_type=int(ev.touch_type), strength=ev.strength),
                swipe_from=NO_PANEL if ev.swipe_from is None else ev.swipe_from,
            )
            for ev in events
        ]
    )
    try:
        return cast(bytes, TouchDatagram.build(msg))
    except ConstructError as e:
        raise ValueError(f"Touch events do not fit the datagram: {e}") from e
