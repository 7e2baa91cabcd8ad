#!/usr/bin/env python3
"""
Generate favicon, apple-touch-icon and web manifest icons from one square PNG.

Source defaults to favicon-source.png in the project root, then snow-rider-3d.png.
The build copies the results into dist/ when building there.

Usage:
    python3 scripts/generate_favicons.py
    python3 scripts/generate_favicons.py path/to/source.png
"""

import argparse
import sys
from pathlib import Path

from PIL import Image

from site_utils import default_project_root

ICON_SIZES = [
    ('favicon-96x96.png', 96),
    ('apple-touch-icon.png', 180),
    ('web-app-manifest-192x192.png', 192),
    ('web-app-manifest-512x512.png', 512),
]

# favicon.ico so non-HTML URLs (sitemap.xml, robots.txt) show the same icon
ICO_SIZES = [(16, 16), (32, 32)]


def find_source(root: Path, source: Path = None):
    """Explicit source, else favicon-source.png, else snow-rider-3d.png. None if nothing exists."""
    candidates = [source] if source else [root / 'favicon-source.png', root / 'snow-rider-3d.png']
    for path in candidates:
        if path and Path(path).exists():
            return Path(path)
    return None


def generate_favicons(source: Path, out_dir: Path) -> list:
    """Write every icon into out_dir. Returns the written file names."""
    written = []
    with Image.open(source) as img:
        img = img.convert('RGBA')
        for name, size in ICON_SIZES:
            img.resize((size, size), Image.Resampling.LANCZOS).save(out_dir / name, 'PNG')
            written.append(name)
        img.save(out_dir / 'favicon.ico', format='ICO', sizes=ICO_SIZES)
        written.append('favicon.ico')
    return written


def main():
    parser = argparse.ArgumentParser(description='Generate favicons from a source PNG')
    parser.add_argument('source', nargs='?', type=Path, help='Source PNG (ideally 1024x1024)')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Project root (output folder)')
    args = parser.parse_args()

    source = find_source(args.root, args.source)
    if source is None:
        print("❌ Source image not found. Use favicon-source.png or snow-rider-3d.png "
              "in the project root, or pass a path.", file=sys.stderr)
        return 1

    for name in generate_favicons(source, args.root):
        print(f"Written: {name}")
    print("Done. Run scripts/build_site.py to copy them into the output.")
    return 0


if __name__ == '__main__':
    exit(main())
