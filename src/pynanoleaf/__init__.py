"""pynanoleaf - Sans-io library for Nanoleaf custom effects and external streaming.

This library provides a pure sans-io implementation of the Nanoleaf animation
data format used by custom and static effects and by UDP external streaming,
along with a reference CLI implementation.

Example:
    >>> from pynanoleaf import CustomEffectBuilder, Frame, NanoleafStreamingClient
    >>> builder = CustomEffectBuilder(panels)  # panels from parse_layout(...)
    >>> builder.add_frame(panels[0], Frame(255, 0, 0, 10))
    >>> client = NanoleafStreamingClient("192.168.1.20")
    >>> sock.sendto(client.prepare_animation(panels, builder.frames), client.address)
"""

import importlib.metadata as _importlib_metadata

from pynanoleaf.builders import (
    CustomEffectBuilder,
    StaticEffectBuilder,
    build_panel_update,
)
from pynanoleaf.client import NanoleafStreamingClient, PlaybackSequence
from pynanoleaf.events import (
    TouchEvent,
    TouchType,
    build_touch_datagram,
    parse_touch_datagram,
)
from pynanoleaf.exceptions import (
    EffectParseError,
    LayoutParseError,
    MalformedAnimationDataError,
    NanoleafError,
    TouchDatagramError,
    UnknownPanelError,
)
from pynanoleaf.models import (
    INITIAL_FRAME,
    Color,
    Colors,
    Frame,
    Palette,
    Panel,
    ShapeType,
)
from pynanoleaf.protocol import (
    API_PORT,
    EXTERNAL_STREAMING_PORT,
    AnimationData,
    StreamVersion,
    animation_data_to_bytes,
    big_endian_join,
    big_endian_split,
    build_frames_datagram,
    build_streaming_datagram,
    bytes_to_animation_data,
    decode_animation_data,
    encode_animation_data,
    encode_legacy,
    encode_streaming_v2,
    narrow_from_v2,
    parse_streaming_datagram,
    widen_to_v2,
)
from pynanoleaf.semantic import (
    CustomAnimation,
    Effect,
    EffectType,
    PluginAnimation,
    create_custom_effect,
    create_static_effect,
    write_command,
)
from pynanoleaf.topology import (
    find_panel,
    layout_centroid,
    panel_ids,
    parse_layout,
    rotate_panels,
)

__version__: str = _importlib_metadata.version(__package__ or __name__)

__all__ = [
    # Version
    "__version__",
    # Client (high-level API)
    "NanoleafStreamingClient",
    "PlaybackSequence",
    # Builders
    "CustomEffectBuilder",
    "StaticEffectBuilder",
    "build_panel_update",
    # Protocol (low-level)
    "API_PORT",
    "EXTERNAL_STREAMING_PORT",
    "StreamVersion",
    "AnimationData",
    "encode_animation_data",
    "encode_legacy",
    "encode_streaming_v2",
    "decode_animation_data",
    "widen_to_v2",
    "narrow_from_v2",
    "big_endian_split",
    "big_endian_join",
    "animation_data_to_bytes",
    "bytes_to_animation_data",
    "build_streaming_datagram",
    "build_frames_datagram",
    "parse_streaming_datagram",
    # Models
    "INITIAL_FRAME",
    "Frame",
    "Color",
    "Colors",
    "Palette",
    "Panel",
    "ShapeType",
    # Topology
    "parse_layout",
    "find_panel",
    "panel_ids",
    "layout_centroid",
    "rotate_panels",
    # Semantic
    "EffectType",
    "Effect",
    "CustomAnimation",
    "PluginAnimation",
    "create_custom_effect",
    "create_static_effect",
    "write_command",
    # Touch events
    "TouchType",
    "TouchEvent",
    "parse_touch_datagram",
    "build_touch_datagram",
    # Exceptions
    "NanoleafError",
    "UnknownPanelError",
    "MalformedAnimationDataError",
    "EffectParseError",
    "LayoutParseError",
    "TouchDatagramError",
]
