"""High-level sans-io client for external streaming.

This module composes the codec into the operations a streaming controller
needs: the request body that switches a device into extControl v2 mode, and
the UDP datagrams that drive its panels. It remains strictly sans-io - the
caller sends the HTTP request and the datagrams.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pynanoleaf.exceptions import EffectParseError
from pynanoleaf.models import Color, Frame, Panel
from pynanoleaf.protocol import (
    EXTERNAL_STREAMING_PORT,
    AnimationData,
    StreamVersion,
    Timeline,
    build_frames_datagram,
    build_streaming_datagram,
    decode_animation_data,
)
from pynanoleaf.semantic import Effect

_LOGGER = logging.getLogger(__name__)

# Transition times are in units of 100 ms
TRANSITION_TIME_UNIT = 0.1


def _immediate(frame: Frame) -> Frame:
    if frame.transition_time >= 0:
        return frame
    return Frame(frame.red, frame.green, frame.blue, 0)


class PlaybackSequence:
    """Streams stored animation data one step at a time.

    Step ``i`` becomes one v2 datagram holding frame ``i`` of every panel
    that has at least ``i + 1`` frames. The delay after a step is its longest
    transition time.
    """

    def __init__(self, animation: AnimationData) -> None:
        """Initialize a playback sequence.

        Args:
            animation: Decoded animation data to play
        """
        self.animation = animation
        self._messages: list[tuple[str, bytes, float]] = []
        self._build_messages()

    def _build_messages(self) -> None:
        """Build one datagram per animation step."""
        by_panel = self.animation.frames_by_panel
        num_steps = max((len(frames) for frames in by_panel.values()), default=0)
        for step in range(num_steps):
            # initial frames (-1) are streamed as immediate
            step_frames = {
                panel_id: [_immediate(frames[step])]
                for panel_id, frames in by_panel.items()
                if len(frames) > step
            }
            longest = max(
                (frames[0].transition_time for frames in step_frames.values()), default=0
            )
            self._messages.append(
                (
                    f"Step {step}: {len(step_frames)} panel(s), transition {longest}",
                    build_frames_datagram(step_frames, StreamVersion.V2),
                    longest * TRANSITION_TIME_UNIT,
                )
            )

    def messages(self) -> list[tuple[str, bytes, float]]:
        """Get the datagrams to send.

        Returns:
            List of (description, datagram, delay_after_s) tuples in order
        """
        return self._messages

    def __len__(self) -> int:
        """Get the number of steps in the sequence."""
        return len(self._messages)

    def __iter__(self):
        """Iterate over steps in the sequence."""
        return iter(self._messages)


class NanoleafStreamingClient:
    """Sans-io client for Nanoleaf external streaming (extControl v2).

    Example:
        >>> client = NanoleafStreamingClient("192.168.1.20")
        >>> body = client.prepare_enable_streaming()  # PUT /effects
        >>> sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        >>> sock.sendto(client.prepare_panel_update(12, (255, 0, 0), 1), client.address)
    """

    def __init__(self, host: str, port: int = EXTERNAL_STREAMING_PORT) -> None:
        self.host = host
        self.port = port

    @property
    def address(self) -> tuple[str, int]:
        """Socket address of the device's streaming controller."""
        return (self.host, self.port)

    def prepare_enable_streaming(self) -> dict[str, Any]:
        """Body of the ``PUT /effects`` request that enables external streaming."""
        return {
            "write": {
                "command": "display",
                "animType": "extControl",
                "extControlVersion": "v2",
            }
        }

    def prepare_display_effect(self, effect: Effect) -> dict[str, Any]:
        """Body of the ``PUT /effects`` request that displays an effect without saving it."""
        return {"write": effect.to_json("display")}

    def prepare_effect(self, effect: Effect) -> bytes:
        """Prepare a datagram that shows a custom or static effect.

        The datagram carries every frame of every panel, in the order of the
        effect's animation data. Initial frames (-1) are sent as immediate.

        Args:
            effect: Effect carrying legacy animation data

        Returns:
            v2 datagram

        Raises:
            EffectParseError: If the effect is a plugin effect
            MalformedAnimationDataError: If its animation data is invalid
            ValueError: If a value does not fit its wire width
        """
        if effect.animation_data is None:
            raise EffectParseError(f"Plugin effect {effect.name!r} can not be streamed")
        by_panel = effect.decode().frames_by_panel
        datagram = build_frames_datagram(
            {
                panel_id: [_immediate(frame) for frame in frames]
                for panel_id, frames in by_panel.items()
            },
            StreamVersion.V2,
        )
        _LOGGER.debug("Prepared effect %r: %d byte datagram", effect.name, len(datagram))
        return datagram

    def prepare_animation(self, panels: Iterable[Panel], timeline: Timeline) -> bytes:
        """Prepare a datagram for a timeline, panels in topology order."""
        return build_streaming_datagram(panels, timeline, StreamVersion.V2)

    def prepare_panel_update(
        self,
        panel_id: int,
        color: Color | tuple[int, int, int],
        transition_time: int = 1,
    ) -> bytes:
        """Prepare a datagram that changes the color of a single panel.

        Args:
            panel_id: Target panel
            color: HSB color or (red, green, blue) tuple
            transition_time: Fade time in 100 ms units

        Returns:
            v2 datagram with one panel and one frame
        """
        red, green, blue = color.rgb if isinstance(color, Color) else color
        frame = Frame(red, green, blue, transition_time)
        return build_frames_datagram({panel_id: [frame]}, StreamVersion.V2)

    def prepare_playback(self, source: Effect | str) -> PlaybackSequence:
        """Prepare a step-by-step stream of a stored effect.

        Args:
            source: Custom or static effect, or its legacy animation data

        Returns:
            PlaybackSequence with one datagram per step

        Raises:
            EffectParseError: If ``source`` is a plugin effect
            MalformedAnimationDataError: If the animation data is invalid
        """
        animation = (
            source.decode() if isinstance(source, Effect) else decode_animation_data(source)
        )
        return PlaybackSequence(animation)
