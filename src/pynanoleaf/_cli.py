"""CLI application for streaming to Nanoleaf panels.

This module provides a command-line interface for sending solid colors, images
sampled onto the panel layout, or stored custom effects to a Nanoleaf device
over UDP external streaming.

External streaming must be enabled on the device first by sending the body
printed with --verbose to ``PUT /api/v1/<token>/effects``.
"""

from __future__ import annotations

import argparse
import json
import logging
import socket
import sys
import time
from typing import TYPE_CHECKING

from PIL import Image

from pynanoleaf.client import NanoleafStreamingClient
from pynanoleaf.models import Frame, Panel
from pynanoleaf.protocol import EXTERNAL_STREAMING_PORT, bytes_to_animation_data
from pynanoleaf.semantic import Effect
from pynanoleaf.topology import parse_layout

if TYPE_CHECKING:
    from PIL.Image import Image as PILImage

# Longest side of the image after downscaling, before panels are sampled
SAMPLE_SIZE = 64


def parse_rgb_color(color_str: str) -> tuple[int, int, int]:
    """Parse a color string to an RGB tuple.

    Accepts formats:
        - Hex: "#ff8800" or "0xff8800"
        - RGB: "r,g,b" where each is 0-255

    Args:
        color_str: Color string to parse

    Returns:
        (red, green, blue)

    Raises:
        ValueError: If format is invalid
    """
    color_str = color_str.strip()

    if "," in color_str:
        parts = color_str.split(",")
        if len(parts) != 3:
            raise ValueError(f"RGB format requires 3 components, got {len(parts)}")
        r, g, b = (int(p.strip()) for p in parts)
        if not (0 <= r <= 255 and 0 <= g <= 255 and 0 <= b <= 255):
            raise ValueError("RGB values must be 0-255")
        return (r, g, b)

    # Try hex format
    if color_str.startswith("#"):
        color_str = color_str[1:]
    elif color_str.startswith("0x") or color_str.startswith("0X"):
        color_str = color_str[2:]
    if len(color_str) != 6:
        raise ValueError("Hex color must be #rrggbb")
    value = int(color_str, 16)
    return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def load_layout(layout_path: str) -> list[Panel]:
    """Load panels from a saved ``panelLayout/layout`` response."""
    with open(layout_path, "r") as f:
        return parse_layout(f.read())


def sample_image(
    image_path: str, panels: list[Panel], transition_time: int
) -> dict[int, list[Frame]]:
    """Load an image and sample one color per panel.

    The image is stretched over the bounding box of the layout and each panel
    takes the color under its centre. Layout y grows upwards, image rows grow
    downwards.

    Args:
        image_path: Path to image file
        panels: Panels to sample for
        transition_time: Transition time of every frame

    Returns:
        Timeline with one frame per panel
    """
    img_raw = Image.open(image_path)

    img: PILImage
    if img_raw.mode != "RGB":
        img = img_raw.convert("RGB")
    else:
        img = img_raw

    # Downscale first so that each sample averages the area around it
    scale = SAMPLE_SIZE / max(img.width, img.height)
    if scale < 1:
        img = img.resize(
            (max(1, int(img.width * scale)), max(1, int(img.height * scale))),
            Image.Resampling.LANCZOS,
        )
    pixels = img.load()
    assert pixels is not None, "Failed to load image pixels"

    min_x = min(p.x for p in panels)
    max_x = max(p.x for p in panels)
    min_y = min(p.y for p in panels)
    max_y = max(p.y for p in panels)
    span_x = max(max_x - min_x, 1)
    span_y = max(max_y - min_y, 1)

    timeline: dict[int, list[Frame]] = {}
    for panel in panels:
        px = round((panel.x - min_x) / span_x * (img.width - 1))
        py = round((max_y - panel.y) / span_y * (img.height - 1))
        r, g, b = pixels[px, py][:3]
        timeline[panel.id] = [Frame(r, g, b, transition_time)]
    return timeline


def send_datagram(sock: socket.socket, datagram: bytes, address: tuple[str, int]) -> None:
    """Send one datagram. Failures propagate; there are no retries."""
    sock.sendto(datagram, address)


def send_messages(
    host: str,
    port: int,
    messages: list[tuple[str, bytes, float]],
    loop: bool = False,
    loop_delay: float = 0.1,
    verbose: bool = False,
    dry_run: bool = False,
) -> int:
    """Send datagrams to the streaming port.

    Args:
        host: Target host
        port: Target UDP port
        messages: (description, datagram, delay_after_s) tuples
        loop: If True, repeat the messages until interrupted
        loop_delay: Delay between loop iterations in seconds
        verbose: Show token dumps
        dry_run: Print the datagrams as tokens instead of sending

    Returns:
        Exit code (0 for success)
    """
    client = NanoleafStreamingClient(host, port)
    if verbose:
        body = json.dumps(client.prepare_enable_streaming())
        print(f"[*] Enable streaming with: PUT /effects {body}")

    if dry_run:
        for description, datagram, _delay in messages:
            print(f"  {description}: {bytes_to_animation_data(datagram)}")
        return 0

    print(f"[*] Streaming to {host}:{port} ({len(messages)} datagram(s))")
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    try:
        iteration = 0
        while True:
            iteration += 1
            loop_start = time.perf_counter()

            for i, (description, datagram, delay) in enumerate(messages):
                if verbose:
                    print(f"  [{i}] {description}: {len(datagram)} bytes")
                    print(f"      {bytes_to_animation_data(datagram)}")
                send_datagram(sock, datagram, client.address)
                if delay > 0:
                    time.sleep(delay)

            loop_elapsed = time.perf_counter() - loop_start
            print(
                f"[*] Pass #{iteration}: sent {len(messages)} datagram(s) "
                f"in {loop_elapsed * 1000:.2f} ms"
            )

            if not loop:
                break
            if loop_delay > 0:
                time.sleep(loop_delay)

        return 0

    except KeyboardInterrupt:
        print("\n[*] Interrupted by user")
        return 0

    except OSError as e:
        print(f"\n[!] ERROR: {e}")
        return 1

    finally:
        sock.close()


def prepare_messages(
    args: argparse.Namespace, client: NanoleafStreamingClient
) -> list[tuple[str, bytes, float]]:
    """Turn the parsed arguments into datagrams."""
    if args.effect:
        with open(args.effect, "r") as f:
            effect = Effect.from_json(f.read())
        print(f"[*] Loaded effect {effect.name!r} ({effect.effect_type.value})")
        return client.prepare_playback(effect).messages()

    if args.image:
        panels = load_layout(args.layout)
        print(f"[*] Sampling {args.image} onto {len(panels)} panel(s)")
        timeline = sample_image(args.image, panels, args.transition)
        return [("Image", client.prepare_animation(panels, timeline), 0.0)]

    rgb = parse_rgb_color(args.color)
    if args.panel is not None:
        return [
            (
                f"Panel {args.panel} -> {rgb}",
                client.prepare_panel_update(args.panel, rgb, args.transition),
                0.0,
            )
        ]

    panels = load_layout(args.layout)
    timeline = {panel.id: [Frame(*rgb, args.transition)] for panel in panels}
    return [
        (
            f"All {len(panels)} panel(s) -> {rgb}",
            client.prepare_animation(panels, timeline),
            0.0,
        )
    ]


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Stream colors, images or custom effects to Nanoleaf panels",
        epilog="Use --effect to play a saved effect step by step. "
        "Use --image with --layout to sample an image onto the panels. "
        "Use --color with --panel or --layout for solid colors.",
    )
    parser.add_argument("--host", required=True, help="Device IP address")
    parser.add_argument(
        "--port",
        type=int,
        default=EXTERNAL_STREAMING_PORT,
        help=f"Streaming UDP port (default: {EXTERNAL_STREAMING_PORT})",
    )
    parser.add_argument(
        "--layout", type=str, help="Path to a saved panelLayout/layout JSON response"
    )
    parser.add_argument(
        "--effect", type=str, help="Path to an effect JSON file (custom or static)"
    )
    parser.add_argument("--image", type=str, help="Path to image file to sample onto the layout")
    parser.add_argument(
        "--color",
        type=str,
        default="255,255,255",
        help="Color as r,g,b or #rrggbb (default: white)",
    )
    parser.add_argument("--panel", type=int, help="Only set this panel id (with --color)")
    parser.add_argument(
        "--transition",
        type=int,
        default=1,
        help="Transition time in 100 ms units (default: 1)",
    )
    parser.add_argument("--loop", action="store_true", help="Repeat until interrupted")
    parser.add_argument(
        "--loop-delay",
        type=float,
        default=0.1,
        help="Delay between passes in seconds (default: 0.1)",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Print the datagrams instead of sending"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show detailed datagram info")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    # Validate mutually exclusive options
    if args.effect and args.image:
        print("[!] Error: --effect and --image cannot be used together", file=sys.stderr)
        sys.exit(1)
    if args.image and not args.layout:
        print("[!] Error: --image requires --layout", file=sys.stderr)
        sys.exit(1)
    if not args.effect and not args.image and args.panel is None and not args.layout:
        print("[!] Error: --color requires --panel or --layout", file=sys.stderr)
        sys.exit(1)

    client = NanoleafStreamingClient(args.host, args.port)
    try:
        messages = prepare_messages(args, client)
    except (OSError, ValueError) as e:
        print(f"[!] Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        exit_code = send_messages(
            args.host,
            args.port,
            messages,
            loop=args.loop,
            loop_delay=args.loop_delay,
            verbose=args.verbose,
            dry_run=args.dry_run,
        )
        sys.exit(exit_code)
    except Exception as e:
        print(f"\n[!] FATAL ERROR: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(2)
