#!/usr/bin/env python3
"""Decode Nanoleaf streaming and touch datagrams from captures or effect files."""

from __future__ import annotations

import argparse
import json
import sys

from scapy.all import rdpcap

from pynanoleaf.events import parse_touch_datagram
from pynanoleaf.exceptions import NanoleafError
from pynanoleaf.protocol import (
    EXTERNAL_STREAMING_PORT,
    AnimationData,
    StreamVersion,
    bytes_to_animation_data,
    parse_streaming_datagram,
)
from pynanoleaf.semantic import Effect


def format_animation(animation, verbose=False):
    """
    Format decoded animation data.

    Args:
        animation: AnimationData to describe
        verbose: List every frame instead of a per-panel summary

    Returns:
        List of formatted strings
    """
    lines = []
    by_panel = animation.frames_by_panel
    lines.append(f"  → Panels: {len(by_panel)}, steps: {animation.num_steps}")
    for panel_id, frames in by_panel.items():
        if verbose:
            for step, frame in enumerate(frames):
                lines.append(
                    f"  → Panel {panel_id} step {step}: "
                    f"rgb({frame.red}, {frame.green}, {frame.blue}) t={frame.transition_time}"
                )
        else:
            first = frames[0] if frames else None
            summary = f"first rgb{first.rgb} t={first.transition_time}" if first else "no frames"
            lines.append(f"  → Panel {panel_id}: {len(frames)} frame(s), {summary}")
    return lines


def analyze_pcap(pcap_path, streaming_port, touch_port, version, verbose=False):
    """
    Decode every UDP datagram to the streaming port, and touch datagrams if a
    touch port is given.

    Returns:
        Number of datagrams that failed to decode
    """
    print(f"[*] Reading {pcap_path}...")
    packets = rdpcap(pcap_path)
    udp_packets = [p for p in packets if p.haslayer("UDP")]
    print(f"[*] {len(udp_packets)} UDP packet(s) of {len(packets)} total")

    failures = 0
    for i, p in enumerate(udp_packets):
        udp = p["UDP"]
        payload = bytes(udp.payload)

        if udp.dport == streaming_port:
            print(f"\n[Stream #{i}] {len(payload)} bytes")
            if verbose:
                print(f"  Tokens:   {bytes_to_animation_data(payload)}")
            try:
                animation = parse_streaming_datagram(payload, version)
            except NanoleafError as e:
                print(f"  [!] Decode error: {e}")
                failures += 1
                continue
            for line in format_animation(animation, verbose=verbose):
                print(line)

        elif touch_port is not None and udp.dport == touch_port:
            print(f"\n[Touch #{i}] {len(payload)} bytes")
            try:
                events = parse_touch_datagram(payload)
            except NanoleafError as e:
                print(f"  [!] Decode error: {e}")
                failures += 1
                continue
            for ev in events:
                touch = getattr(ev.touch_type, "name", ev.touch_type)
                swipe = f" from panel {ev.swipe_from}" if ev.swipe_from is not None else ""
                print(f"  → Panel {ev.panel_id}: {touch} strength={ev.strength}{swipe}")

    return failures


def analyze_effect_file(json_path, verbose=False):
    """
    Decode the animation data of a saved effect (or a list of effects, as
    returned by ``effects/effectsList`` with ``"command": "requestAll"``).

    Returns:
        Number of effects that failed to decode
    """
    with open(json_path, "r") as f:
        data = json.load(f)

    if isinstance(data, dict) and "animations" in data:
        data = data["animations"]
    objs = data if isinstance(data, list) else [data]

    failures = 0
    for obj in objs:
        try:
            effect = Effect.from_json(obj)
        except NanoleafError as e:
            print(f"\n[!] Invalid effect: {e}")
            failures += 1
            continue

        print(f"\n[{effect.effect_type.value}] {effect.name!r} (loop={effect.loop})")
        if effect.animation_data is None:
            print(f"  → Plugin: {effect.animation.plugin_uuid}")
            continue
        try:
            animation: AnimationData = effect.decode()
        except NanoleafError as e:
            print(f"  [!] Decode error: {e}")
            failures += 1
            continue
        for line in format_animation(animation, verbose=verbose):
            print(line)

    return failures


def main():
    parser = argparse.ArgumentParser(
        description="Decode Nanoleaf animation data from a pcap capture or effect JSON file"
    )
    parser.add_argument("input", help="Path to a pcap/pcapng capture or an effect JSON file")
    parser.add_argument(
        "--streaming-port",
        type=int,
        default=EXTERNAL_STREAMING_PORT,
        help=f"UDP port of streaming datagrams (default: {EXTERNAL_STREAMING_PORT})",
    )
    parser.add_argument("--touch-port", type=int, help="UDP port of touch event datagrams")
    parser.add_argument(
        "--legacy", action="store_true", help="Decode streaming datagrams as v1 (one byte fields)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show every frame and raw tokens"
    )
    args = parser.parse_args()

    print("=" * 80)
    print(f"Analyzing: {args.input}")
    print("=" * 80)

    if args.input.endswith(".json"):
        failures = analyze_effect_file(args.input, verbose=args.verbose)
    else:
        version = StreamVersion.LEGACY if args.legacy else StreamVersion.V2
        try:
            failures = analyze_pcap(
                args.input, args.streaming_port, args.touch_port, version, verbose=args.verbose
            )
        except OSError as e:
            print(f"[!] Error reading pcap: {e}")
            sys.exit(1)

    if failures:
        print(f"\n[!] {failures} item(s) failed to decode")
        sys.exit(1)


if __name__ == "__main__":
    main()
