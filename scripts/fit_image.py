#!/usr/bin/env python
"""Fit an image to a preset or free-text rule from the command line."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from photofit.client import PhotofitClient
from photofit.errors import PhotofitError
from photofit.services.rules import PRESET_LABELS, PRESETS
from photofit.services.uploads import content_type_for_path


def list_presets() -> None:
    for name, spec in PRESETS.items():
        print(
            f"{name:<12} {PRESET_LABELS[name]:<24} {spec.width}x{spec.height}px "
            f"{spec.min_kb:g}-{spec.max_kb:g} KB {spec.format.upper()}"
        )


def main() -> int:
    parser = argparse.ArgumentParser(description="Resize and re-encode an image to fit a size window")
    parser.add_argument("input", nargs="?", help="Source JPG or PNG image")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--preset", choices=sorted(PRESETS), help="Named preset")
    group.add_argument("--rule", help='Free-text rule, e.g. "200x230, 20-50kb, jpg"')
    parser.add_argument("-o", "--output", help="Output file (default: resized_<preset>.<ext>)")
    parser.add_argument("--server", help="Service base URL, e.g. http://localhost:3001/api")
    parser.add_argument("--local", action="store_true", help="Skip the service and process locally")
    parser.add_argument("--list-presets", action="store_true", help="Show the preset table and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.list_presets:
        list_presets()
        return 0
    if not args.input:
        parser.error("the input image is required")

    source = Path(args.input)
    with PhotofitClient(args.server) as client:
        try:
            result = client.process(
                source.read_bytes(),
                filename=source.name,
                content_type=content_type_for_path(source),
                preset=args.preset,
                rule_text=args.rule,
                mode="local" if args.local else "server",
            )
        except (PhotofitError, OSError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    report = result.report
    output = Path(args.output or f"resized_{args.preset or 'custom'}.{report.format.lower()}")
    output.write_bytes(result.data)

    if result.advisory:
        print(result.advisory, file=sys.stderr)
    print(f"Output: {output}")
    print(f"Dimensions: {report.width}x{report.height}px")
    print(f"File Size: {report.size_kb:.2f} KB")
    print(f"Format: {report.format}")
    print(f"Within limits: {'yes' if report.valid else 'no'} ({result.source})")
    return 0 if report.valid else 2


if __name__ == "__main__":
    sys.exit(main())
