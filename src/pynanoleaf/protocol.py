"""Animation data codec for custom effects and UDP external streaming.

This module provides sans-io encoding and decoding of the Nanoleaf ``animData``
format. Three renditions of the same token sequence are supported:

* legacy: whitespace separated decimal fields, one token per field
* external streaming v2: the 16-bit fields (panel count, panel id and
  transition time) are split into a big-endian high and low byte token
* datagram: the token list with every token packed into one unsigned byte,
  which is what the device expects on its streaming UDP port
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import cast

from construct import (
    Array,
    Construct,
    ConstructError,
    Container,
    Int8ub,
    Int16ub,
    Rebuild,
    Struct,
    Terminated,
    len_,
    this,
)

from pynanoleaf.exceptions import MalformedAnimationDataError
from pynanoleaf.models import Frame, Panel

_LOGGER = logging.getLogger(__name__)

# Protocol constants
API_PORT = 16021  # HTTP OpenAPI port
EXTERNAL_STREAMING_PORT = 60222  # UDP port for extControl v2
BYTE_SIZE = 256

Timeline = Mapping[int, Sequence[Frame]]
# (panel_id, [(r, g, b, w, t), ...]) in wire order
PanelGroup = tuple[int, list[tuple[int, int, int, int, int]]]


class StreamVersion(IntEnum):
    """Wire rendition of animation data."""

    LEGACY = 1
    V2 = 2


def big_endian_split(value: int) -> tuple[int, int]:
    """Split a 16-bit value into its big-endian (high, low) byte pair.

    Uses floor division so that ``big_endian_join`` inverts it for any int,
    including the -1 initial-frame transition time.

    Args:
        value: Integer to split, 0-65535 for values that fit on the wire

    Returns:
        Tuple of (high, low) where ``high * 256 + low == value``
    """
    high = value // BYTE_SIZE
    return high, value - BYTE_SIZE * high


def big_endian_join(high: int, low: int) -> int:
    """Merge a big-endian (high, low) byte pair back into one value."""
    return high * BYTE_SIZE + low


def _wide(value: int) -> list[int]:
    return list(big_endian_split(value))


def _panel_groups(panel_ids: Iterable[int], timeline: Timeline) -> list[PanelGroup]:
    """Collect the panels that have frames, in the given id order."""
    groups: list[PanelGroup] = []
    for panel_id in panel_ids:
        frames = timeline.get(panel_id, ())
        if not frames:
            continue
        groups.append(
            (
                panel_id,
                [(f.red, f.green, f.blue, f.white, f.transition_time) for f in frames],
            )
        )
    return groups


def _group_tokens(groups: Sequence[PanelGroup], version: StreamVersion) -> list[int]:
    if version == StreamVersion.V2:
        tokens = _wide(len(groups))
        for panel_id, frames in groups:
            tokens.extend(_wide(panel_id))
            tokens.append(len(frames))
            for r, g, b, w, t in frames:
                tokens.extend((r, g, b, w))
                tokens.extend(_wide(t))
        return tokens

    tokens = [len(groups)]
    for panel_id, frames in groups:
        tokens.extend((panel_id, len(frames)))
        for frame in frames:
            tokens.extend(frame)
    return tokens


def _join(tokens: Iterable[int]) -> str:
    return " ".join(str(token) for token in tokens)


def encode_animation_data(
    panels: Iterable[Panel],
    timeline: Timeline,
    version: StreamVersion = StreamVersion.LEGACY,
) -> str:
    """Encode a per-panel frame timeline as animation data.

    Panels are visited in topology order. Panels without frames are left out
    entirely and are not counted in the leading panel count. Frame fields are
    not range checked.

    Args:
        panels: Device topology, in the order panels should appear on the wire
        timeline: Mapping of panel id to frames; ids absent from ``panels``
            are ignored
        version: LEGACY for effect animData, V2 for external streaming

    Returns:
        Space separated token string
    """
    groups = _panel_groups((panel.id for panel in panels), timeline)
    data = _join(_group_tokens(groups, version))
    _LOGGER.debug(
        "Encoded %d panel(s) as %s animation data (%d chars)",
        len(groups),
        version.name,
        len(data),
    )
    return data


def encode_legacy(panels: Iterable[Panel], timeline: Timeline) -> str:
    """Encode a timeline in the legacy one-token-per-field form."""
    return encode_animation_data(panels, timeline, StreamVersion.LEGACY)


def encode_streaming_v2(panels: Iterable[Panel], timeline: Timeline) -> str:
    """Encode a timeline in the external streaming v2 form."""
    return encode_animation_data(panels, timeline, StreamVersion.V2)


def parse_tokens(animation_data: str) -> list[int]:
    """Split animation data on whitespace and parse every token as an int.

    Raises:
        MalformedAnimationDataError: If the data is empty or a token is not
            an integer
    """
    fields = animation_data.split()
    if not fields:
        raise MalformedAnimationDataError("Animation data is empty")
    try:
        return [int(f) for f in fields]
    except ValueError as e:
        raise MalformedAnimationDataError(f"Non-integer token in animation data: {e}") from e


class _TokenReader:
    """Bounds checked cursor over a token list."""

    def __init__(self, tokens: Sequence[int]) -> None:
        self.tokens = tokens
        self.offset = 0

    @property
    def exhausted(self) -> bool:
        return self.offset >= len(self.tokens)

    def read(self, count: int = 1) -> list[int]:
        end = self.offset + count
        if end > len(self.tokens):
            raise MalformedAnimationDataError(
                f"Animation data truncated: need {count} token(s) at offset "
                f"{self.offset}, only {len(self.tokens) - self.offset} left"
            )
        values = list(self.tokens[self.offset : end])
        self.offset = end
        return values

    def read_one(self) -> int:
        return self.read(1)[0]

    def read_wide(self) -> int:
        high, low = self.read(2)
        return big_endian_join(high, low)


def read_panel_groups(
    tokens: Sequence[int], version: StreamVersion = StreamVersion.LEGACY
) -> list[PanelGroup]:
    """Walk a token list and split it into per-panel frame groups.

    Args:
        tokens: Full token list including the leading panel count
        version: Which rendition the tokens are in

    Returns:
        List of (panel_id, frames) in wire order, frames as (r, g, b, w, t)

    Raises:
        MalformedAnimationDataError: If a read runs past the end, a frame
            count is negative, a panel id repeats, or the declared panel
            count does not match the number of panel groups found
    """
    reader = _TokenReader(tokens)
    wide = version == StreamVersion.V2
    declared = reader.read_wide() if wide else reader.read_one()

    groups: list[PanelGroup] = []
    seen: set[int] = set()
    while not reader.exhausted:
        panel_id = reader.read_wide() if wide else reader.read_one()
        if panel_id in seen:
            raise MalformedAnimationDataError(f"Panel {panel_id} appears more than once")
        seen.add(panel_id)
        frame_count = reader.read_one()
        if frame_count < 0:
            raise MalformedAnimationDataError(
                f"Negative frame count {frame_count} for panel {panel_id}"
            )
        frames = []
        for _ in range(frame_count):
            r, g, b, w = reader.read(4)
            t = reader.read_wide() if wide else reader.read_one()
            frames.append((r, g, b, w, t))
        groups.append((panel_id, frames))

    if declared != len(groups):
        raise MalformedAnimationDataError(
            f"Declared panel count {declared} does not match {len(groups)} panel group(s)"
        )
    return groups


def widen_to_v2(animation_data: str) -> str:
    """Re-split the 16-bit fields of legacy animation data for streaming.

    Post-processing counterpart of ``encode_streaming_v2``: every frame of
    every panel is carried over, not only the first one.

    Raises:
        MalformedAnimationDataError: If the input is not valid legacy data
    """
    groups = read_panel_groups(parse_tokens(animation_data), StreamVersion.LEGACY)
    return _join(_group_tokens(groups, StreamVersion.V2))


def narrow_from_v2(animation_data: str) -> str:
    """Merge the big-endian byte pairs of v2 animation data back into single fields.

    Raises:
        MalformedAnimationDataError: If the input is not valid v2 data
    """
    groups = read_panel_groups(parse_tokens(animation_data), StreamVersion.V2)
    return _join(_group_tokens(groups, StreamVersion.LEGACY))


@dataclass(frozen=True)
class AnimationData:
    """Decoded animation data.

    Both views are built in one pass. Accessors return copies, so callers
    can not mutate the decoded result.
    """

    _by_step: dict[int, list[Frame]] = field(default_factory=dict)
    _by_panel: dict[int, list[Frame]] = field(default_factory=dict)

    @classmethod
    def from_groups(cls, groups: Iterable[PanelGroup]) -> AnimationData:
        by_step: dict[int, list[Frame]] = {}
        by_panel: dict[int, list[Frame]] = {}
        for panel_id, frames in groups:
            panel_frames = by_panel.setdefault(panel_id, [])
            for step, (r, g, b, _w, t) in enumerate(frames):
                frame = Frame(r, g, b, t)
                by_step.setdefault(step, []).append(frame)
                panel_frames.append(frame)
        return cls(by_step, by_panel)

    @property
    def frames_by_step(self) -> dict[int, list[Frame]]:
        """Step index (from 0) to the frames of all panels at that step."""
        return {step: list(frames) for step, frames in self._by_step.items()}

    @property
    def frames_by_panel(self) -> dict[int, list[Frame]]:
        """Panel id to that panel's ordered frames."""
        return {panel_id: list(frames) for panel_id, frames in self._by_panel.items()}

    @property
    def panel_ids(self) -> list[int]:
        return list(self._by_panel)

    @property
    def num_steps(self) -> int:
        return len(self._by_step)

    def frames(self, panel: int | Panel) -> list[Frame]:
        """Get the frames of one panel, empty if the panel has none."""
        panel_id = panel.id if isinstance(panel, Panel) else panel
        return list(self._by_panel.get(panel_id, ()))


def decode_animation_data(
    animation_data: str, version: StreamVersion = StreamVersion.LEGACY
) -> AnimationData:
    """Decode animation data into per-step and per-panel frame maps.

    A single-panel update ("1 id 1 r g b 0 t") is the degenerate one-group
    case and needs no special handling.

    Args:
        animation_data: Token string
        version: LEGACY for effect animData, V2 for external streaming data

    Returns:
        AnimationData with both views

    Raises:
        MalformedAnimationDataError: If the data does not match the grammar
    """
    groups = read_panel_groups(parse_tokens(animation_data), version)
    decoded = AnimationData.from_groups(groups)
    _LOGGER.debug(
        "Decoded %s animation data: %d panel(s), %d step(s)",
        version.name,
        len(groups),
        decoded.num_steps,
    )
    return decoded


def animation_data_to_bytes(animation_data: str) -> bytes:
    """Pack each token of animation data into one unsigned byte.

    Raises:
        MalformedAnimationDataError: If a token is not an integer
        ValueError: If a token does not fit in a byte
    """
    tokens = parse_tokens(animation_data)
    for i, token in enumerate(tokens):
        if not 0 <= token <= 0xFF:
            raise ValueError(f"Token {i} ({token}) does not fit in a byte")
    return bytes(tokens)


def bytes_to_animation_data(payload: bytes) -> str:
    """Render a streaming datagram back as space separated tokens."""
    return _join(payload)


# Legacy (v1) streaming datagram: every field one byte
LegacyFrame: Construct = Struct(
    "red" / Int8ub,
    "green" / Int8ub,
    "blue" / Int8ub,
    "white" / Int8ub,
    "transition_time" / Int8ub,
)

LegacyPanel: Construct = Struct(
    "panel_id" / Int8ub,
    "frame_count" / Rebuild(Int8ub, len_(this.frames)),
    "frames" / Array(this.frame_count, LegacyFrame),
)

LegacyDatagram: Construct = Struct(
    "num_panels" / Rebuild(Int8ub, len_(this.panels)),
    "panels" / Array(this.num_panels, LegacyPanel),
    Terminated,
)


# External streaming v2 datagram: panel count, panel id and transition time are u16be
StreamingV2Frame: Construct = Struct(
    "red" / Int8ub,
    "green" / Int8ub,
    "blue" / Int8ub,
    "white" / Int8ub,
    "transition_time" / Int16ub,
)

StreamingV2Panel: Construct = Struct(
    "panel_id" / Int16ub,
    "frame_count" / Rebuild(Int8ub, len_(this.frames)),
    "frames" / Array(this.frame_count, StreamingV2Frame),
)

StreamingV2Datagram: Construct = Struct(
    "num_panels" / Rebuild(Int16ub, len_(this.panels)),
    "panels" / Array(this.num_panels, StreamingV2Panel),
    Terminated,
)


def _datagram_struct(version: StreamVersion) -> Construct:
    return StreamingV2Datagram if version == StreamVersion.V2 else LegacyDatagram


def build_streaming_datagram(
    panels: Iterable[Panel],
    timeline: Timeline,
    version: StreamVersion = StreamVersion.V2,
) -> bytes:
    """Build a streaming datagram for a timeline.

    Produces the same bytes as packing the output of ``encode_animation_data``
    with ``animation_data_to_bytes``.

    Args:
        panels: Device topology, in wire order
        timeline: Mapping of panel id to frames
        version: V2 for extControl v2 devices, LEGACY for v1

    Returns:
        Datagram payload ready to send to the streaming port

    Raises:
        ValueError: If a field does not fit its wire width
    """
    groups = _panel_groups((panel.id for panel in panels), timeline)
    return _build_datagram(groups, version)


def build_frames_datagram(
    frames_by_panel: Timeline, version: StreamVersion = StreamVersion.V2
) -> bytes:
    """Build a streaming datagram, keeping the panel order of the mapping.

    Use this for frames that are already in wire order, such as the
    ``frames_by_panel`` view of decoded animation data.

    Raises:
        ValueError: If a field does not fit its wire width
    """
    return _build_datagram(_panel_groups(frames_by_panel, frames_by_panel), version)


def _build_datagram(groups: Sequence[PanelGroup], version: StreamVersion) -> bytes:
    msg = Container(
        panels=[
            Container(
                panel_id=panel_id,
                frames=[
                    Container(red=r, green=g, blue=b, white=w, transition_time=t)
                    for r, g, b, w, t in frames
                ],
            )
            for panel_id, frames in groups
        ]
    )
    try:
        return cast(bytes, _datagram_struct(version).build(msg))
    except ConstructError as e:
        raise ValueError(f"Frames do not fit the {version.name} datagram: {e}") from e


def parse_streaming_datagram(
    payload: bytes, version: StreamVersion = StreamVersion.V2
) -> AnimationData:
    """Parse a streaming datagram into frame maps.

    Raises:
        MalformedAnimationDataError: If the payload is truncated, has
            trailing bytes or repeats a panel id
    """
    try:
        parsed = _datagram_struct(version).parse(payload)
    except ConstructError as e:
        raise MalformedAnimationDataError(f"Invalid {version.name} datagram: {e}") from e

    groups: list[PanelGroup] = [
        (
            p.panel_id,
            [(f.red, f.green, f.blue, f.white, f.transition_time) for f in p.frames],
        )
        for p in parsed.panels
    ]
    ids = [panel_id for panel_id, _frames in groups]
    if len(set(ids)) != len(ids):
        raise MalformedAnimationDataError(f"Repeated panel id in {version.name} datagram: {ids}")
    return AnimationData.from_groups(groups)
