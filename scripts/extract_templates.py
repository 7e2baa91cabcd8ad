#!/usr/bin/env python3
"""
One-time split of an existing site into build templates.

Takes index.html and cuts it into templates/layouts/base.html (everything
around the main wrapper, with SLOT:PAGE_CSS after the custom.css link and
SLOT:CONTENT in place of the wrapper) and templates/pages/home.html (the
wrapper itself). Optionally pulls game, category and static page bodies out
of existing built pages the same way.

Usage:
    python3 scripts/extract_templates.py
    python3 scripts/extract_templates.py --game slope/index.html --category puzzle.games/index.html \\
        --static about-us/index.html
"""

import argparse
import re
import sys
from pathlib import Path

from site_utils import default_project_root

PAGE_CSS_SLOT = '\t<!-- SLOT:PAGE_CSS -->'
CONTENT_SLOT = '\n\t<!-- SLOT:CONTENT -->\n'


def find_main_wrapper(lines: list):
    """
    (start, end) line indexes of the <div id="game-page" class="main-wrapper"> block.

    The end is the line where the div depth returns to zero. None if not found.
    """
    start = next((i for i, line in enumerate(lines)
                  if 'id="game-page"' in line and 'main-wrapper' in line), None)
    if start is None:
        return None
    depth = 0
    for i in range(start, len(lines)):
        depth += len(re.findall(r'<div[\s>]', lines[i])) - len(re.findall(r'</div>', lines[i]))
        if depth == 0:
            return start, i
    return None


def extract_main_content(html: str):
    """The main wrapper block of a page, or None."""
    lines = html.split('\n')
    span = find_main_wrapper(lines)
    if span is None:
        return None
    start, end = span
    return '\n'.join(lines[start:end + 1])


def split_index(html: str):
    """
    Cut a full index.html into (base layout, home content).

    Raises ValueError when the custom.css link or the main wrapper is missing.
    """
    lines = html.split('\n')
    css_line = next((i for i, line in enumerate(lines)
                     if 'custom.css' in line and 'stylesheet' in line), None)
    if css_line is None:
        raise ValueError('custom.css stylesheet link not found')
    lines.insert(css_line + 1, PAGE_CSS_SLOT)

    span = find_main_wrapper(lines)
    if span is None:
        raise ValueError('game-page main wrapper (or its closing div) not found')
    start, end = span
    base = '\n'.join(lines[:start]) + CONTENT_SLOT + '\n'.join(lines[end + 1:])
    return base, '\n'.join(lines[start:end + 1])


def main():
    parser = argparse.ArgumentParser(description='Extract build templates from an existing site')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Project root')
    parser.add_argument('--index', default='index.html', help='Page to split into base layout + home')
    parser.add_argument('--game', help='Built game page to extract game.html from')
    parser.add_argument('--category', help='Built category page to extract category.html from')
    parser.add_argument('--static', help='Built static page to extract static.html from')
    args = parser.parse_args()

    index_path = args.root / args.index
    if not index_path.exists():
        print(f"❌ {index_path} not found", file=sys.stderr)
        return 1
    try:
        base, home = split_index(index_path.read_text(encoding='utf-8'))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    layouts_dir = args.root / 'templates' / 'layouts'
    pages_dir = args.root / 'templates' / 'pages'
    layouts_dir.mkdir(parents=True, exist_ok=True)
    pages_dir.mkdir(parents=True, exist_ok=True)
    (layouts_dir / 'base.html').write_text(base, encoding='utf-8')
    (pages_dir / 'home.html').write_text(home, encoding='utf-8')
    print("Created templates/layouts/base.html and templates/pages/home.html")
    print(f"  Home content length: {len(home)}")

    for template, source in (('game', args.game), ('category', args.category), ('static', args.static)):
        if not source:
            continue
        source_path = args.root / source
        if not source_path.exists():
            print(f"⚠️  {source_path} not found, skipping {template}.html", file=sys.stderr)
            continue
        content = extract_main_content(source_path.read_text(encoding='utf-8'))
        if content is None:
            print(f"⚠️  No main wrapper in {source_path}, skipping {template}.html", file=sys.stderr)
            continue
        (pages_dir / f"{template}.html").write_text(content, encoding='utf-8')
        print(f"Created templates/pages/{template}.html")
    return 0


if __name__ == '__main__':
    exit(main())
