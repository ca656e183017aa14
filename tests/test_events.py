"""Tests for touch event datagrams."""

from __future__ import annotations

import pytest

from pynanoleaf.events import (
    TouchEvent,
    TouchType,
    build_touch_datagram,
    parse_touch_datagram,
)
from pynanoleaf.exceptions import TouchDatagramError


def test_parse_touch_datagram() -> None:
    """Test a two panel touch datagram."""
    payload = bytes(
        [
            0x00, 0x02,
            0x00, 0x6B, 0x15, 0xFF, 0xFF,  # panel 107: DOWN, strength 5
            0x00, 0x08, 0x4A, 0x00, 0x72,  # panel 8: SWIPE from 114, strength 10
        ]
    )  # fmt: skip

    events = parse_touch_datagram(payload)

    assert events == [
        TouchEvent(107, TouchType.DOWN, 5),
        TouchEvent(8, TouchType.SWIPE, 10, swipe_from=114),
    ]


def test_unknown_touch_type() -> None:
    """Test unknown touch codes are kept as ints."""
    events = parse_touch_datagram(bytes([0x00, 0x01, 0x00, 0x01, 0x70, 0xFF, 0xFF]))
    assert events[0].touch_type == 7
    assert not isinstance(events[0].touch_type, TouchType)


def test_trailing_bytes_ignored() -> None:
    """Test padding after the declared events is ignored."""
    payload = bytes([0x00, 0x01, 0x00, 0x01, 0x30, 0xFF, 0xFF, 0x00, 0x00])
    assert parse_touch_datagram(payload) == [TouchEvent(1, TouchType.UP, 0)]


@pytest.mark.parametrize(
    "payload",
    [b"", b"\x00", b"\x00\x01", b"\x00\x02\x00\x01\x10\xff\xff"],
)
def test_truncated(payload: bytes) -> None:
    """Test datagrams shorter than their panel count are rejected."""
    with pytest.raises(TouchDatagramError, match="Invalid touch datagram"):
        parse_touch_datagram(payload)


def test_build_touch_datagram() -> None:
    """Test building matches the documented layout."""
    events = [
        TouchEvent(107, TouchType.DOWN, 5),
        TouchEvent(8, TouchType.SWIPE, 10, swipe_from=114),
    ]
    payload = build_touch_datagram(events)

    assert payload == bytes.fromhex("0002006b15ffff00084a0072")
    assert parse_touch_datagram(payload) == events


def test_build_out_of_range() -> None:
    """Test a strength wider than four bits is rejected."""
    with pytest.raises(ValueError, match="do not fit"):
        build_touch_datagram([TouchEvent(1, TouchType.HOLD, 16)])
