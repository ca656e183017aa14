"""Tools for inspecting captured Nanoleaf streaming traffic and saved effects."""

__all__ = ["analyze"]
