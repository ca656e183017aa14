"""Tests for the custom and static effect builders."""

from __future__ import annotations

import logging

import pytest

from pynanoleaf.builders import CustomEffectBuilder, StaticEffectBuilder, build_panel_update
from pynanoleaf.exceptions import UnknownPanelError
from pynanoleaf.models import Frame, Panel, ShapeType
from pynanoleaf.protocol import StreamVersion, decode_animation_data
from pynanoleaf.semantic import EffectType

RED = Frame(255, 0, 0, 10)
GREEN = Frame(0, 255, 0, 20)


class TestCustomEffectBuilder:
    """Tests for CustomEffectBuilder."""

    def test_end_to_end(self, two_panels: list[Panel]) -> None:
        """Test two panels encode in topology order."""
        builder = CustomEffectBuilder(two_panels)
        builder.add_frame(2, GREEN)
        builder.add_frame(1, RED)

        assert builder.encode() == "2 1 1 255 0 0 0 10 2 1 0 255 0 0 20"

    def test_add_frame_by_panel(self, two_panels: list[Panel]) -> None:
        """Test frames can be added with a Panel instead of an id."""
        builder = CustomEffectBuilder(two_panels).add_frame(two_panels[1], RED)
        assert builder.frames == {1: [], 2: [RED]}

    def test_unknown_panel_rejected(self, two_panels: list[Panel]) -> None:
        """Test adding to an unknown panel fails and changes nothing."""
        builder = CustomEffectBuilder(two_panels).add_frame(1, RED)
        before = builder.frames

        with pytest.raises(UnknownPanelError, match="Panel with id 3 does not exist") as exc:
            builder.add_frame(3, GREEN)

        assert exc.value.panel_id == 3
        assert builder.frames == before

    def test_unknown_panel_is_key_error(self, two_panels: list[Panel]) -> None:
        """Test unknown panels can be caught as KeyError."""
        with pytest.raises(KeyError):
            CustomEffectBuilder(two_panels).remove_frame(3, RED)

    def test_add_frame_to_all_panels(self, two_panels: list[Panel]) -> None:
        """Test a frame added to all panels lands once on each."""
        builder = CustomEffectBuilder(two_panels)
        builder.add_frame(1, RED).add_frame_to_all_panels(GREEN)
        assert builder.frames == {1: [RED, GREEN], 2: [GREEN]}

    def test_remove_frame(self, two_panels: list[Panel]) -> None:
        """Test only the first equal frame is removed."""
        builder = CustomEffectBuilder(two_panels)
        builder.add_frame(1, RED).add_frame(1, GREEN).add_frame(1, RED)

        assert builder.remove_frame(1, RED) is True
        assert builder.frames[1] == [GREEN, RED]

    def test_remove_missing_frame(self, two_panels: list[Panel]) -> None:
        """Test removing an absent frame reports False."""
        builder = CustomEffectBuilder(two_panels).add_frame(1, RED)
        assert builder.remove_frame(1, GREEN) is False
        assert builder.frames[1] == [RED]

    def test_frames_is_a_copy(self, two_panels: list[Panel]) -> None:
        """Test callers can not change the builder through its frames."""
        builder = CustomEffectBuilder(two_panels).add_frame(1, RED)
        frames = builder.frames
        frames[1].append(GREEN)
        frames[2] = [RED]

        assert builder.frames == {1: [RED], 2: []}

    def test_build(self, two_panels: list[Panel], caplog: pytest.LogCaptureFixture) -> None:
        """Test building a looping custom effect."""
        builder = CustomEffectBuilder(two_panels).add_frame(1, RED)

        with caplog.at_level(logging.DEBUG, logger="pynanoleaf.builders"):
            effect = builder.build("Flash", loop=True)

        assert effect.effect_type is EffectType.CUSTOM
        assert effect.name == "Flash"
        assert effect.loop is True
        assert effect.version == "2.0"
        assert len(effect.palette) == 0
        assert effect.animation_data == "1 1 1 255 0 0 0 10"
        assert "Built custom effect 'Flash'" in caplog.text

    def test_build_again_after_more_frames(self, two_panels: list[Panel]) -> None:
        """Test a builder stays usable after build."""
        builder = CustomEffectBuilder(two_panels).add_frame(1, RED)
        first = builder.build("One", loop=False)
        builder.add_frame(2, GREEN)
        second = builder.build("Two", loop=False)

        assert first.animation_data == "1 1 1 255 0 0 0 10"
        assert decode_animation_data(second.animation_data or "").panel_ids == [1, 2]

    def test_encode_v2(self, two_panels: list[Panel]) -> None:
        """Test the builder can encode for streaming."""
        builder = CustomEffectBuilder(two_panels).add_frame(2, Frame(1, 2, 3, 300))
        assert builder.encode(StreamVersion.V2) == "0 1 0 2 1 1 2 3 0 1 44"

    def test_duplicate_panel_ids(self) -> None:
        """Test a topology with repeated ids is rejected."""
        panels = [Panel(1, 0, 0, 0, ShapeType.SQUARE), Panel(1, 100, 0, 0, ShapeType.SQUARE)]
        with pytest.raises(ValueError, match="Duplicate panel id 1"):
            CustomEffectBuilder(panels)

    def test_from_layout(self, layout: dict) -> None:
        """Test a builder can be created from a layout response."""
        builder = CustomEffectBuilder.from_layout(layout)
        assert [p.id for p in builder.panels] == [107, 114, 8]
        builder.add_frame(8, RED).add_frame(107, GREEN)
        assert builder.encode() == "2 107 1 0 255 0 0 20 8 1 255 0 0 0 10"


class TestStaticEffectBuilder:
    """Tests for StaticEffectBuilder."""

    def test_build(self, two_panels: list[Panel]) -> None:
        """Test a static effect holds one frame per panel."""
        builder = StaticEffectBuilder(two_panels)
        builder.set_panel(2, GREEN).set_panel(1, GREEN).set_panel(1, RED)

        effect = builder.build("Still")

        assert effect.effect_type is EffectType.STATIC
        assert effect.loop is False
        assert effect.animation_data == "2 1 1 255 0 0 0 10 2 1 0 255 0 0 20"

    def test_unset_panels_are_omitted(self, two_panels: list[Panel]) -> None:
        """Test panels without a frame are left out."""
        builder = StaticEffectBuilder(two_panels).set_panel(2, RED)
        assert builder.encode() == "1 2 1 255 0 0 0 10"

    def test_set_all_panels(self, two_panels: list[Panel]) -> None:
        """Test every panel gets the frame."""
        builder = StaticEffectBuilder(two_panels).set_all_panels(RED)
        assert builder.frames == {1: RED, 2: RED}

    def test_unknown_panel(self, two_panels: list[Panel]) -> None:
        """Test unknown panels are rejected."""
        with pytest.raises(UnknownPanelError):
            StaticEffectBuilder(two_panels).set_panel(9, RED)


class TestPanelUpdate:
    """Tests for build_panel_update."""

    def test_legacy(self) -> None:
        """Test the single-panel legacy form."""
        assert build_panel_update(12, 255, 128, 0, 5) == "1 12 1 255 128 0 0 5"

    def test_v2(self) -> None:
        """Test the single-panel streaming form."""
        assert build_panel_update(300, 1, 2, 3, 10, StreamVersion.V2) == "0 1 1 44 1 1 2 3 0 0 10"
