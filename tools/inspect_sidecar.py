#!/usr/bin/env python3
"""
List every XML descriptor under a folder with the schema it matched and the identity it carries.

Usage:
  python tools/inspect_sidecar.py <folder>

Example:
  python tools/inspect_sidecar.py "E:\\Shoot_2024_05"
"""

import sys
from pathlib import Path

from footage_analyzer.exceptions import SidecarParseError
from footage_analyzer.scanning.filesystem import DiskScanner
from footage_analyzer.sidecar.parser import SidecarParser


def inspect_folder(folder):
    root = Path(folder)
    if not root.is_dir():
        print(f"Error: Not a folder: {folder}")
        sys.exit(1)

    parser = SidecarParser()
    descriptors = DiskScanner().find_sidecars(root)
    print(f"Inspecting {len(descriptors)} descriptors under {root}\n")

    print(f"{'schema':<16} | {'serial':<20} | {'model':<16} | {'videos':>6} | file")
    print("-" * 90)
    for path in descriptors:
        try:
            res = parser.inspect(path.read_bytes(), path)
        except (OSError, SidecarParseError) as e:
            print(f"{'ERROR':<16} | {'':<20} | {'':<16} | {'':>6} | {path} ({e})")
            continue

        schema = res.schema or "unknown"
        serial = res.record.serial_number if res.record else ""
        model = res.record.model if res.record else ""
        print(f"{schema:<16} | {serial:<20} | {model:<16} | {len(res.video_paths):>6} | {path.relative_to(root)}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python inspect_sidecar.py <folder>")
        sys.exit(1)
    inspect_folder(sys.argv[1])
