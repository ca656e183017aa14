"""Tests for the sans-io streaming client."""

from __future__ import annotations

import pytest

from pynanoleaf.builders import StaticEffectBuilder
from pynanoleaf.client import NanoleafStreamingClient, PlaybackSequence
from pynanoleaf.exceptions import EffectParseError
from pynanoleaf.models import INITIAL_FRAME, Colors, Frame, Panel
from pynanoleaf.protocol import (
    StreamVersion,
    bytes_to_animation_data,
    decode_animation_data,
    parse_streaming_datagram,
)
from pynanoleaf.semantic import Effect, EffectType, PluginAnimation, create_custom_effect


@pytest.fixture
def client() -> NanoleafStreamingClient:
    return NanoleafStreamingClient("192.168.1.20")


class TestStreamingClient:
    """Tests for NanoleafStreamingClient."""

    def test_address(self, client: NanoleafStreamingClient) -> None:
        """Test the default streaming address."""
        assert client.address == ("192.168.1.20", 60222)
        assert NanoleafStreamingClient("h", 1234).address == ("h", 1234)

    def test_enable_streaming(self, client: NanoleafStreamingClient) -> None:
        """Test the extControl v2 request body."""
        assert client.prepare_enable_streaming() == {
            "write": {
                "command": "display",
                "animType": "extControl",
                "extControlVersion": "v2",
            }
        }

    def test_display_effect(self, client: NanoleafStreamingClient) -> None:
        """Test an effect can be displayed without being saved."""
        body = client.prepare_display_effect(create_custom_effect("Blink", "0", loop=False))
        assert body["write"]["command"] == "display"
        assert body["write"]["animName"] == "Blink"

    def test_prepare_effect(self, client: NanoleafStreamingClient) -> None:
        """Test a custom effect is widened and packed."""
        effect = create_custom_effect("Two", "2 1 1 255 0 0 0 10 2 1 0 255 0 0 20", loop=False)
        datagram = client.prepare_effect(effect)
        assert bytes_to_animation_data(datagram) == "0 2 0 1 1 255 0 0 0 0 10 0 2 1 0 255 0 0 0 20"

    def test_prepare_static_effect_with_initial_frames(
        self, client: NanoleafStreamingClient, two_panels: list[Panel]
    ) -> None:
        """Test a static effect built from default frames streams them as immediate."""
        effect = StaticEffectBuilder(two_panels).set_all_panels(Frame(255, 0, 0)).build("Red")
        assert effect.animation_data == "2 1 1 255 0 0 0 -1 2 1 255 0 0 0 -1"

        datagram = client.prepare_effect(effect)

        assert bytes_to_animation_data(datagram) == "0 2 0 1 1 255 0 0 0 0 0 0 2 1 255 0 0 0 0 0"

    def test_prepare_effect_multiple_frames(self, client: NanoleafStreamingClient) -> None:
        """Test every frame of a panel is carried, only -1 is rewritten."""
        effect = create_custom_effect("Fade", "1 4 2 1 2 3 0 -1 4 5 6 0 300", loop=True)
        datagram = client.prepare_effect(effect)
        assert parse_streaming_datagram(datagram).frames(4) == [
            Frame(1, 2, 3, 0),
            Frame(4, 5, 6, 300),
        ]

    def test_prepare_plugin_effect(self, client: NanoleafStreamingClient) -> None:
        """Test plugin effects can not be streamed."""
        effect = Effect("Flow", EffectType.PLUGIN, PluginAnimation("color", "uuid"))
        with pytest.raises(EffectParseError, match="can not be streamed"):
            client.prepare_effect(effect)

    def test_prepare_animation(
        self, client: NanoleafStreamingClient, two_panels: list[Panel]
    ) -> None:
        """Test a timeline is sent in topology order."""
        datagram = client.prepare_animation(two_panels, {2: [Frame(0, 0, 255, 2)]})
        assert parse_streaming_datagram(datagram).frames_by_panel == {2: [Frame(0, 0, 255, 2)]}

    def test_panel_update_rgb(self, client: NanoleafStreamingClient) -> None:
        """Test a single panel update from an RGB tuple."""
        datagram = client.prepare_panel_update(300, (10, 20, 30), 5)
        assert datagram == bytes([0, 1, 1, 44, 1, 10, 20, 30, 0, 0, 5])

    def test_panel_update_color(self, client: NanoleafStreamingClient) -> None:
        """Test a single panel update from an HSB color."""
        datagram = client.prepare_panel_update(4, Colors.BLUE)
        assert parse_streaming_datagram(datagram).frames(4) == [Frame(0, 0, 255, 1)]


class TestPlayback:
    """Tests for step by step playback."""

    def test_steps(self, client: NanoleafStreamingClient) -> None:
        """Test one datagram per step with the longest transition as delay."""
        sequence = client.prepare_playback("2 1 2 1 1 1 0 5 2 2 2 0 20 7 1 3 3 3 0 10")

        assert len(sequence) == 2
        messages = sequence.messages()

        _desc, first, delay = messages[0]
        assert parse_streaming_datagram(first).frames_by_panel == {
            1: [Frame(1, 1, 1, 5)],
            7: [Frame(3, 3, 3, 10)],
        }
        assert delay == pytest.approx(1.0)

        _desc, second, delay = messages[1]
        assert parse_streaming_datagram(second).frames_by_panel == {1: [Frame(2, 2, 2, 20)]}
        assert delay == pytest.approx(2.0)

    def test_initial_frames_are_immediate(self, client: NanoleafStreamingClient) -> None:
        """Test -1 transition times are streamed as 0."""
        effect = create_custom_effect("Start", f"1 3 1 9 9 9 0 {INITIAL_FRAME}", loop=True)
        sequence = client.prepare_playback(effect)

        [(_desc, datagram, delay)] = list(sequence)
        assert parse_streaming_datagram(datagram).frames(3) == [Frame(9, 9, 9, 0)]
        assert delay == 0

    def test_wire_order_kept(self) -> None:
        """Test playback keeps the panel order of the animation data."""
        animation = decode_animation_data("2 9 1 1 1 1 0 1 3 1 2 2 2 0 1")
        [(_desc, datagram, _delay)] = PlaybackSequence(animation).messages()
        assert parse_streaming_datagram(datagram, StreamVersion.V2).panel_ids == [9, 3]

    def test_empty(self, client: NanoleafStreamingClient) -> None:
        """Test an effect with no panels has no steps."""
        assert len(client.prepare_playback("0")) == 0
