"""Builders that turn per-panel frames into effects and animation data.

The builders own their timeline: accessors hand out copies, and building
does not reset or freeze the builder, so ``build`` can be called again after
more frames are added. Builders do no locking; share one between threads
only with external synchronization.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pynanoleaf.exceptions import UnknownPanelError
from pynanoleaf.models import Frame, Panel
from pynanoleaf.protocol import StreamVersion, encode_animation_data
from pynanoleaf.semantic import Effect, create_custom_effect, create_static_effect
from pynanoleaf.topology import parse_layout

_LOGGER = logging.getLogger(__name__)


def _topology(panels: Iterable[Panel]) -> tuple[Panel, ...]:
    topology = tuple(panels)
    seen: set[int] = set()
    for panel in topology:
        if panel.id in seen:
            raise ValueError(f"Duplicate panel id {panel.id} in topology")
        seen.add(panel.id)
    return topology


def _panel_id(panel: int | Panel) -> int:
    return panel.id if isinstance(panel, Panel) else panel


class CustomEffectBuilder:
    """Accumulates frames per panel and encodes them as a custom effect.

    Frames can be added to panels in any order; on the wire panels appear in
    topology order and each panel's frames in the order they were added.

    Example:
        >>> builder = CustomEffectBuilder(panels)
        >>> builder.add_frame(1, Frame(255, 0, 0, 10))
        >>> builder.add_frame_to_all_panels(Frame(0, 0, 0, 5))
        >>> effect = builder.build("Red flash", loop=True)
    """

    def __init__(self, panels: Iterable[Panel]) -> None:
        """Initialize a builder for a fixed topology.

        Args:
            panels: Device panels; the order is kept as the wire order

        Raises:
            ValueError: If two panels share an id
        """
        self._panels = _topology(panels)
        self._frames: dict[int, list[Frame]] = {panel.id: [] for panel in self._panels}

    @classmethod
    def from_layout(cls, layout: dict[str, Any] | str) -> CustomEffectBuilder:
        """Create a builder from a ``panelLayout/layout`` response."""
        return cls(parse_layout(layout))

    @property
    def panels(self) -> tuple[Panel, ...]:
        return self._panels

    @property
    def frames(self) -> dict[int, list[Frame]]:
        """Copy of the timeline: panel id to frames."""
        return {panel_id: list(frames) for panel_id, frames in self._frames.items()}

    def _frames_for(self, panel: int | Panel) -> list[Frame]:
        panel_id = _panel_id(panel)
        if panel_id not in self._frames:
            raise UnknownPanelError(panel_id)
        return self._frames[panel_id]

    def add_frame(self, panel: int | Panel, frame: Frame) -> CustomEffectBuilder:
        """Append a frame to one panel.

        Raises:
            UnknownPanelError: If the panel is not in the topology
        """
        self._frames_for(panel).append(frame)
        return self

    def add_frame_to_all_panels(self, frame: Frame) -> CustomEffectBuilder:
        """Append the same frame to every panel."""
        for frames in self._frames.values():
            frames.append(frame)
        return self

    def remove_frame(self, panel: int | Panel, frame: Frame) -> bool:
        """Remove the first frame equal to ``frame`` from a panel.

        Returns:
            True if a frame was removed, False if the panel had no such frame

        Raises:
            UnknownPanelError: If the panel is not in the topology
        """
        frames = self._frames_for(panel)
        try:
            frames.remove(frame)
        except ValueError:
            return False
        return True

    def encode(self, version: StreamVersion = StreamVersion.LEGACY) -> str:
        """Encode the current timeline as animation data."""
        return encode_animation_data(self._panels, self._frames, version)

    def build(self, name: str, loop: bool) -> Effect:
        """Create a custom effect from a snapshot of the current timeline.

        Args:
            name: Effect name
            loop: Whether the device should loop the effect

        Returns:
            Custom effect with default version and an empty palette
        """
        animation_data = self.encode(StreamVersion.LEGACY)
        _LOGGER.debug(
            "Built custom effect %r: %d frame(s) over %d panel(s)",
            name,
            sum(len(frames) for frames in self._frames.values()),
            len(self._panels),
        )
        return create_custom_effect(name, animation_data, loop)


class StaticEffectBuilder:
    """Assigns one frame per panel and encodes them as a static effect."""

    def __init__(self, panels: Iterable[Panel]) -> None:
        self._panels = _topology(panels)
        self._ids = {panel.id for panel in self._panels}
        self._frames: dict[int, Frame] = {}

    @classmethod
    def from_layout(cls, layout: dict[str, Any] | str) -> StaticEffectBuilder:
        return cls(parse_layout(layout))

    @property
    def panels(self) -> tuple[Panel, ...]:
        return self._panels

    @property
    def frames(self) -> dict[int, Frame]:
        return dict(self._frames)

    def set_panel(self, panel: int | Panel, frame: Frame) -> StaticEffectBuilder:
        """Set the frame of one panel, replacing any previous one.

        Raises:
            UnknownPanelError: If the panel is not in the topology
        """
        panel_id = _panel_id(panel)
        if panel_id not in self._ids:
            raise UnknownPanelError(panel_id)
        self._frames[panel_id] = frame
        return self

    def set_all_panels(self, frame: Frame) -> StaticEffectBuilder:
        for panel in self._panels:
            self._frames[panel.id] = frame
        return self

    def encode(self, version: StreamVersion = StreamVersion.LEGACY) -> str:
        timeline = {panel_id: [frame] for panel_id, frame in self._frames.items()}
        return encode_animation_data(self._panels, timeline, version)

    def build(self, name: str) -> Effect:
        """Create a static effect; panels never set are left out."""
        return create_static_effect(name, self.encode(StreamVersion.LEGACY))


def build_panel_update(
    panel_id: int,
    red: int,
    green: int,
    blue: int,
    transition_time: int,
    version: StreamVersion = StreamVersion.LEGACY,
) -> str:
    """Build animation data that sets a single panel.

    Args:
        panel_id: Target panel
        red: Red component (0-255)
        green: Green component (0-255)
        blue: Blue component (0-255)
        transition_time: Fade time in 100 ms units
        version: LEGACY ("1 id 1 r g b 0 t") or V2 for streaming

    Returns:
        One-panel, one-frame animation data
    """
    panel = Panel(panel_id, 0, 0, 0, 0)
    return encode_animation_data(
        [panel], {panel_id: [Frame(red, green, blue, transition_time)]}, version
    )
