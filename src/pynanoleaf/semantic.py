"""Effect model - the JSON objects exchanged with ``/effects``.

An effect is one record with shared fields (name, version, color type,
palette) and an ``animation`` body that depends on its type: custom and
static effects carry animation data, plugin effects carry a plugin
reference and its options.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pynanoleaf.exceptions import EffectParseError
from pynanoleaf.models import Palette
from pynanoleaf.protocol import AnimationData, decode_animation_data

DEFAULT_VERSION = "2.0"
DEFAULT_COLOR_TYPE = "HSB"


class EffectType(str, Enum):
    """``animType`` values."""

    PLUGIN = "plugin"
    CUSTOM = "custom"
    STATIC = "static"

    @classmethod
    def from_anim_type(cls, anim_type: str) -> EffectType:
        """Map an ``animType`` string, treating rhythm effects as plugins.

        Raises:
            EffectParseError: If the type is not one of the known values
        """
        if anim_type == "rhythm":
            return cls.PLUGIN
        try:
            return cls(anim_type)
        except ValueError as e:
            raise EffectParseError(f"Unknown animType {anim_type!r}") from e


@dataclass(frozen=True)
class CustomAnimation:
    """Body of a custom or static effect."""

    animation_data: str
    loop: bool = False


@dataclass(frozen=True)
class PluginAnimation:
    """Body of a plugin (or rhythm) effect.

    Attributes:
        plugin_type: ``pluginType``, e.g. "color" or "rhythm"
        plugin_uuid: ``pluginUuid`` of the plugin
        options: Option name to value
    """

    plugin_type: str
    plugin_uuid: str
    options: dict[str, Any] = field(default_factory=dict)

    def options_json(self) -> list[dict[str, Any]]:
        return [{"name": name, "value": value} for name, value in self.options.items()]


Animation = Union[CustomAnimation, PluginAnimation]


@dataclass(frozen=True)
class Effect:
    """An effect stored on or sent to a device."""

    name: str
    effect_type: EffectType
    animation: Animation
    version: str = DEFAULT_VERSION
    color_type: str = DEFAULT_COLOR_TYPE
    palette: Palette = field(default_factory=Palette)

    def __post_init__(self) -> None:
        is_plugin = self.effect_type == EffectType.PLUGIN
        if is_plugin != isinstance(self.animation, PluginAnimation):
            raise ValueError(
                f"{self.effect_type.value} effect can not carry {type(self.animation).__name__}"
            )
        if self.effect_type == EffectType.STATIC and self.animation.loop:
            raise ValueError("Static effects can not loop")

    @property
    def animation_data(self) -> str | None:
        if isinstance(self.animation, CustomAnimation):
            return self.animation.animation_data
        return None

    @property
    def loop(self) -> bool:
        return isinstance(self.animation, CustomAnimation) and self.animation.loop

    def decode(self) -> AnimationData:
        """Decode the animation data of a custom or static effect.

        Raises:
            EffectParseError: If this is a plugin effect
            MalformedAnimationDataError: If the animation data is invalid
        """
        if not isinstance(self.animation, CustomAnimation):
            raise EffectParseError(f"Plugin effect {self.name!r} has no animation data")
        return decode_animation_data(self.animation.animation_data)

    def to_json(self, command: str | None = None) -> dict[str, Any]:
        """Serialize to the device's effect object.

        Args:
            command: Optional write command ("add", "display", ...) to include

        Returns:
            JSON-compatible dict
        """
        obj: dict[str, Any] = {}
        if command is not None:
            obj["command"] = command
        obj["version"] = self.version
        obj["animName"] = self.name
        obj["animType"] = self.effect_type.value
        obj["colorType"] = self.color_type
        obj["palette"] = self.palette.to_json()
        if isinstance(self.animation, CustomAnimation):
            obj["animData"] = self.animation.animation_data
            obj["loop"] = self.animation.loop
        else:
            obj["pluginType"] = self.animation.plugin_type
            obj["pluginUuid"] = self.animation.plugin_uuid
            obj["pluginOptions"] = self.animation.options_json()
        return obj

    def to_json_str(self, command: str | None = None) -> str:
        return json.dumps(self.to_json(command))

    @classmethod
    def from_json(cls, obj: dict[str, Any] | str) -> Effect:
        """Parse an effect object, dispatching on ``animType``.

        Args:
            obj: Decoded JSON object or JSON text

        Returns:
            Parsed effect

        Raises:
            EffectParseError: If ``animType`` is missing or unknown, or a
                required field is absent
        """
        if isinstance(obj, str):
            try:
                obj = json.loads(obj)
            except json.JSONDecodeError as e:
                raise EffectParseError(f"Invalid effect JSON: {e}") from e
        if not isinstance(obj, dict):
            raise EffectParseError(f"Effect must be an object, got {type(obj).__name__}")
        if "animType" not in obj:
            raise EffectParseError("Effect has no animType")

        effect_type = EffectType.from_anim_type(obj["animType"])
        animation: Animation
        if effect_type == EffectType.PLUGIN:
            if "pluginUuid" not in obj:
                raise EffectParseError("Plugin effect has no pluginUuid")
            try:
                options = {o["name"]: o["value"] for o in obj.get("pluginOptions") or []}
            except (KeyError, TypeError) as e:
                raise EffectParseError(f"Invalid pluginOptions: {e}") from e
            animation = PluginAnimation(
                plugin_type=obj.get("pluginType", obj["animType"]),
                plugin_uuid=obj["pluginUuid"],
                options=options,
            )
        else:
            loop = bool(obj.get("loop", False)) if effect_type == EffectType.CUSTOM else False
            animation = CustomAnimation(obj.get("animData", ""), loop)

        return cls(
            name=obj.get("animName", ""),
            effect_type=effect_type,
            animation=animation,
            version=obj.get("version", DEFAULT_VERSION),
            color_type=obj.get("colorType", DEFAULT_COLOR_TYPE),
            palette=Palette.from_json(obj.get("palette")),
        )


def create_custom_effect(name: str, animation_data: str, loop: bool) -> Effect:
    """Wrap animation data as a custom effect with default version and empty palette."""
    return Effect(name, EffectType.CUSTOM, CustomAnimation(animation_data, loop))


def create_static_effect(name: str, animation_data: str) -> Effect:
    """Wrap animation data as a static (non-looping) effect."""
    return Effect(name, EffectType.STATIC, CustomAnimation(animation_data, False))


def write_command(effect: Effect, command: str = "add") -> dict[str, Any]:
    """Build the ``PUT /effects`` body that writes an effect."""
    return {"write": effect.to_json(command)}
