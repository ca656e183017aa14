"""Shared fixtures for pynanoleaf tests."""

from __future__ import annotations

import copy

import pytest

from pynanoleaf.models import Panel, ShapeType

LAYOUT = {
    "numPanels": 3,
    "sideLength": 150,
    "positionData": [
        {"panelId": 107, "x": 99, "y": 173, "o": 300, "shapeType": 0},
        {"panelId": 114, "x": 149, "y": 86, "o": 240, "shapeType": 0},
        {"panelId": 8, "x": 199, "y": 173, "o": 180, "shapeType": 0},
    ],
}


@pytest.fixture
def two_panels() -> list[Panel]:
    """Two triangle panels with ids 1 and 2."""
    return [
        Panel(1, 0, 0, 0, ShapeType.TRIANGLE_AURORA),
        Panel(2, 150, 0, 60, ShapeType.TRIANGLE_AURORA),
    ]


@pytest.fixture
def layout() -> dict:
    """A three panel ``panelLayout/layout`` response."""
    return copy.deepcopy(LAYOUT)
