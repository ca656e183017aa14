"""Exceptions raised by pynanoleaf."""

from __future__ import annotations


class NanoleafError(Exception):
    """Base class for all pynanoleaf errors."""


class UnknownPanelError(NanoleafError, KeyError):
    """A builder operation referenced a panel id that is not in the topology."""

    def __init__(self, panel_id: int) -> None:
        super().__init__(panel_id)
        self.panel_id = panel_id

    def __str__(self) -> str:
        return f"Panel with id {self.panel_id} does not exist"


class MalformedAnimationDataError(NanoleafError, ValueError):
    """Animation data does not match the animData grammar."""


class EffectParseError(NanoleafError, ValueError):
    """An effect or color JSON object is missing fields or has the wrong type."""


class LayoutParseError(NanoleafError, ValueError):
    """A panel layout response could not be parsed."""


class TouchDatagramError(NanoleafError, ValueError):
    """A touch event datagram is truncated or inconsistent."""
