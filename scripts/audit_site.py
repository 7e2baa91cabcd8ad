#!/usr/bin/env python3
"""
Audit a built site: catalog data, page metadata, links, image alt text, sitemap.

Every check returns a list of "[FAIL] ..." / "[WARN] ..." strings; the build
fails when any [FAIL] is reported. Can also be run on its own against an
existing output folder.

Usage:
    python3 scripts/audit_site.py              # audit the configured output
    python3 scripts/audit_site.py --out dist   # audit a specific folder
"""

import argparse
import json
import re
import sys
from pathlib import Path

from bs4 import BeautifulSoup

from site_config import load_config
from site_utils import RESERVED_SLUGS, default_project_root

ALLOWED_PREFIXES = ('/404.html', '/sitemap.xml', '/robots.txt', '/themes/', '/data/', '/upload/', '/play/')


def iter_html_files(out_dir: Path, skip_dirs=()):
    """Yield (relative posix path, path) for every .html file, skipping top-level skip_dirs."""
    out_dir = Path(out_dir)
    if not out_dir.exists():
        return
    skip = set(skip_dirs)
    for path in sorted(out_dir.rglob('*.html')):
        rel = path.relative_to(out_dir)
        if len(rel.parts) > 1 and (rel.parts[0] in skip or rel.parts[0].startswith('.')):
            continue
        yield rel.as_posix(), path


# ============================================================================
# Data
# ============================================================================

def audit_data(games, reserved=RESERVED_SLUGS, root: Path = None):
    """Check normalized catalog records. Returns (fails, warns)."""
    fails, warns = [], []
    if not isinstance(games, list):
        return ['[FAIL] games is not an array'], warns

    seen = set()
    for i, game in enumerate(games):
        name = str(game.get('name') if game.get('name') is not None else '').strip()
        if not name:
            fails.append(f"[FAIL] Game at index {i} has no name")
        slug = str(game.get('slug') if game.get('slug') is not None else '').strip()
        if not slug:
            fails.append(f'[FAIL] Game "{name or f"index {i}"}" has empty slug after normalize')
        if slug and slug.lower() in reserved:
            fails.append(f'[FAIL] Game "{name}" slug "{slug}" is reserved')
        if slug and slug in seen:
            fails.append(f'[FAIL] Duplicate slug "{slug}" (game: {name})')
        if slug:
            seen.add(slug)

        if not isinstance(game.get('categories'), list) or not game['categories']:
            fails.append(f'[FAIL] Game "{name}" has no categories (must have at least one)')
        if not str(game.get('description') or '').strip():
            warns.append(f'[WARN] Game "{name}" has no description (fallback used)')
        image = game.get('image')
        if image and root:
            img_path = image[1:] if image.startswith('/') else image
            if not img_path.startswith('http') and not (Path(root) / img_path.split('?')[0]).exists():
                warns.append(f'[WARN] Game "{name}" image file not found: {img_path}')
    return fails, warns


# ============================================================================
# HTML
# ============================================================================

def _page_kind(rel_path: str, game_slugs: set, category_paths: set) -> str:
    parts = rel_path.split('/')
    if len(parts) == 1 and parts[0].endswith('.html') and parts[0][:-5] in game_slugs:
        return 'game'
    if len(parts) == 2 and parts[1] == 'index.html':
        if parts[0] in game_slugs:
            return 'game'
        if parts[0] in category_paths:
            return 'category'
    if len(parts) == 4 and parts[0] in category_paths and parts[1] == 'page' and parts[3] == 'index.html':
        return 'category'
    return ''


def audit_html_files(out_dir: Path, game_slugs: set, category_paths: set, skip_dirs=()):
    """Canonical and title everywhere; description and schema on game and category pages."""
    fails = []
    for rel_path, path in iter_html_files(out_dir, skip_dirs):
        html = path.read_text(encoding='utf-8')
        is_404 = rel_path == '404.html' or rel_path.startswith('404/')
        is_play = rel_path.startswith('play/')
        kind = _page_kind(rel_path, game_slugs, category_paths)

        # Hero game redirect pages carry only a canonical
        if kind == 'game' and 'http-equiv="refresh"' in html:
            continue

        if not is_404 and not is_play:
            if not re.search(r'<link\s+rel="canonical"\s+href=', html):
                fails.append(f"[FAIL] {rel_path} missing canonical")
            if not re.search(r'<title>[^<]+</title>', html):
                fails.append(f"[FAIL] {rel_path} missing title")
        if kind:
            if not re.search(r'<meta\s+name="description"\s+content=', html):
                fails.append(f"[FAIL] {rel_path} missing meta description")
            if not re.search(r'"@type"\s*:\s*"BreadcrumbList"', html):
                fails.append(f"[FAIL] {rel_path} missing BreadcrumbList schema")
        if kind == 'game' and not re.search(r'"@type"\s*:\s*"VideoGame"', html):
            fails.append(f"[FAIL] {rel_path} missing VideoGame schema")
    return fails


def audit_links(html: str, rel_path: str, game_slugs: set, category_paths: set):
    """No legacy /tag/, /games/ or /category/ links; category links end with a slash."""
    fails = []
    for href in re.findall(r'href="(/[^"]*)"', html):
        if '/tag/' in href:
            fails.append(f'[FAIL] {rel_path} has href="/tag/..." (forbidden)')
        if '/games/' in href:
            fails.append(f'[FAIL] {rel_path} has href="/games/..." (forbidden)')
        if '/category/' in href:
            fails.append(f'[FAIL] {rel_path} has href="/category/..." (forbidden)')
        if any(href == p or href.startswith(p) for p in ALLOWED_PREFIXES):
            continue
        if len(href) > 1 and not href.endswith('/'):
            path_part = href[1:].split('?')[0].split('#')[0]
            if path_part in category_paths:
                fails.append(f'[FAIL] {rel_path} category link missing trailing slash: href="{href}"')
    return fails


def audit_images_alt(html: str, rel_path: str):
    """Every <img> needs a non-empty alt unless its class mentions icon, logo or loading."""
    fails = []
    soup = BeautifulSoup(html, 'html.parser')
    for img in soup.find_all('img'):
        classes = ' '.join(img.get('class') or []).lower()
        if any(word in classes for word in ('icon', 'logo', 'loading')):
            continue
        if not (img.get('alt') or '').strip():
            fails.append(f"[FAIL] {rel_path} img missing alt: {str(img)[:60]}...")
    return fails


def audit_sitemap(xml: str, games_count: int):
    fails = []
    if '/tag/' in xml:
        fails.append('[FAIL] sitemap.xml contains /tag/')
    if '/games/' in xml:
        fails.append('[FAIL] sitemap.xml contains /games/')
    if '404.html' in xml:
        fails.append('[FAIL] sitemap.xml contains 404.html')
    if not re.search(r'<loc>[^<]*/</loc>', xml):
        fails.append('[FAIL] sitemap.xml missing home URL (/)')
    if games_count > 0 and not re.search(r'<loc>[^<]*/[a-z0-9-]+/?</loc>', xml):
        fails.append('[FAIL] sitemap.xml has no game URLs but games.json has entries')
    return fails


def run_audit(out_dir: Path, games: list, root: Path, category_slugs, skip_dirs=()):
    """
    Run every audit over a built site.

    skip_dirs only applies when out_dir is the project root (source folders).
    Returns (fails, warns).
    """
    out_dir = Path(out_dir)
    fails, warns = audit_data(games, RESERVED_SLUGS, root)

    game_slugs = {g.get('slug') for g in games or [] if g.get('slug')}
    category_paths = {f"{slug}.games" for slug in category_slugs or []}
    if out_dir.resolve() != Path(root).resolve():
        skip_dirs = ()

    fails += audit_html_files(out_dir, game_slugs, category_paths, skip_dirs)
    for rel_path, path in iter_html_files(out_dir, skip_dirs):
        html = path.read_text(encoding='utf-8')
        fails += audit_links(html, rel_path, game_slugs, category_paths)
        fails += audit_images_alt(html, rel_path)

    sitemap = out_dir / 'sitemap.xml'
    if sitemap.exists():
        fails += audit_sitemap(sitemap.read_text(encoding='utf-8'), len(games or []))
    return fails, warns


# ============================================================================
# Build hygiene
# ============================================================================

def check_templates_no_old_urls(templates_dir: Path, root: Path):
    """Template files that still contain /games/ or /tag/ paths."""
    bad = []
    for path in sorted(Path(templates_dir).rglob('*.html')):
        text = path.read_text(encoding='utf-8')
        if '/games/' in text or '/tag/' in text:
            bad.append(str(path.relative_to(root)))
    return bad


def check_output_no_old_urls(out_dir: Path, skip_dirs=()):
    """Output pages that still link to /games/ or /tag/."""
    bad = []
    for rel_path, path in iter_html_files(out_dir, skip_dirs):
        text = path.read_text(encoding='utf-8')
        if re.search(r'"/games/|"/tag/', text):
            bad.append(rel_path)
    return bad


def check_home_no_game_detail(out_dir: Path):
    """The home page must not carry game detail sections ("About <game>")."""
    index = Path(out_dir) / 'index.html'
    if not index.exists():
        return []
    if re.search(r'<h2[^>]*>\s*About\s+[^<]+</h2>', index.read_text(encoding='utf-8'), re.I):
        return ['[FAIL] index.html contains game detail (About <game name>). Home must only have home sections.']
    return []


def check_upload_refs(out_dir: Path, skip_dirs=()):
    """Every src="/upload/..." must exist under the output's upload/ folder."""
    out_dir = Path(out_dir)
    bad = []
    for rel_path, path in iter_html_files(out_dir, skip_dirs):
        text = path.read_text(encoding='utf-8')
        for file in re.findall(r'src="/upload/([^"]+)"', text):
            if not (out_dir / 'upload' / file).exists():
                bad.append(f"[FAIL] {rel_path}: /upload/{file} not found")
    return bad


def main():
    parser = argparse.ArgumentParser(description='Audit a built portal site')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Project root')
    parser.add_argument('--out', type=Path, help='Built site folder (default: configured output)')
    args = parser.parse_args()

    config = load_config(args.root, out_dir=args.out)
    games_file = config.out_dir / 'games.json'
    if not games_file.exists():
        print(f"❌ {games_file} not found. Run the build first.", file=sys.stderr)
        return 1
    games = json.loads(games_file.read_text(encoding='utf-8'))
    category_slugs = [p.name[:-len('.games')] for p in config.out_dir.glob('*.games') if p.is_dir()]

    fails, warns = run_audit(config.out_dir, games, config.root, category_slugs, config.root_keep_dirs)
    for w in warns:
        print(w, file=sys.stderr)
    for f in fails:
        print(f, file=sys.stderr)

    print("=" * 60)
    print(f"Audited {config.out_dir}: {len(fails)} failure(s), {len(warns)} warning(s)")
    print("=" * 60)
    return 1 if fails else 0


if __name__ == '__main__':
    exit(main())
