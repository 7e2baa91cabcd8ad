#!/usr/bin/env python3
"""
Make the black (or near-black) background of a PNG transparent.

Usage:
    python3 scripts/make_favicon_transparent.py input.png output.png
"""

import sys
from pathlib import Path

from PIL import Image, ImageChops

BLACK_THRESHOLD = 25  # r, g and b all <= this become transparent


def make_transparent(img: Image.Image, threshold: int = BLACK_THRESHOLD) -> Image.Image:
    """RGBA copy of img with near-black pixels at alpha 0."""
    rgba = img.convert('RGBA')
    r, g, b, alpha = rgba.split()
    brightest = ImageChops.lighter(ImageChops.lighter(r, g), b)
    dark = brightest.point(lambda v: 255 if v <= threshold else 0)
    alpha.paste(0, mask=dark)
    rgba.putalpha(alpha)
    return rgba


def main():
    if len(sys.argv) != 3:
        print("Usage: python3 scripts/make_favicon_transparent.py <input.png> <output.png>", file=sys.stderr)
        return 1

    source, output = Path(sys.argv[1]), Path(sys.argv[2])
    if not source.exists():
        print(f"❌ {source} not found", file=sys.stderr)
        return 1

    with Image.open(source) as img:
        make_transparent(img).save(output, 'PNG')
    print(f"Done: {output}")
    return 0


if __name__ == '__main__':
    exit(main())
