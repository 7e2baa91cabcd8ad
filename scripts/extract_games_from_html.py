#!/usr/bin/env python3
"""
Rebuild content/games.json from game pages already built at the project root.

Reads every <slug>.html next to index.html, takes name, description, genre,
rating and date from the VideoGame JSON-LD node, the image from og:image,
and fills sensible defaults for the rest. Output is sorted newest first.

Usage:
    python3 scripts/extract_games_from_html.py
    python3 scripts/extract_games_from_html.py --root . --output content/games.json
"""

import argparse
import json
import re
from pathlib import Path

from bs4 import BeautifulSoup

from site_config import HOME_GAME_SLUG
from site_utils import date_sort_key, default_project_root

EXCLUDE = {'index.html', '404.html'}

DEFAULT_RATING = 4.5
DEFAULT_RATING_COUNT = 100
DEFAULT_UPDATED_AT = '2026-01-01'

# Genre names seen in built pages -> navigation category slug
NAME_TO_SLUG = {
    'Hot Games': 'hot',
    'Trending Games': 'trending',
    'Snow Rider Games': 'snow-rider',
    'Clicker': 'clicker',
    'Io': 'io',
    'Adventure': 'adventure',
    '2 player': '2-player',
    'Shooting': 'shooting',
    'Sports': 'sports',
    'Car': 'car',
    'Puzzle': 'puzzle',
    'Casual': 'casual',
    'Kids': 'kids',
    'Runner': 'casual',
    'Popular Games': 'hot',
    'New Games': 'hot',
    'Other': 'casual',
}


def slug_for_category(name: str) -> str:
    name = (name or '').strip()
    if name in NAME_TO_SLUG:
        return NAME_TO_SLUG[name]
    return re.sub(r'[^a-z0-9-]', '', re.sub(r'\s+', '-', name.lower()))


def find_video_game(soup: BeautifulSoup):
    """First VideoGame node in the page's first JSON-LD block, or None."""
    script = soup.find('script', type='application/ld+json')
    if not script or not script.string:
        return None
    try:
        data = json.loads(script.string)
    except json.JSONDecodeError:
        return None
    graph = data.get('@graph') if isinstance(data, dict) else None
    nodes = graph if isinstance(graph, list) else [data]
    for node in nodes:
        if isinstance(node, dict) and node.get('@type') == 'VideoGame':
            return node
    return None


def extract_game(html: str, slug: str) -> dict:
    """Catalog record for one built game page."""
    soup = BeautifulSoup(html, 'html.parser')

    desc = ''
    meta_desc = soup.find('meta', attrs={'name': 'description'})
    if meta_desc and meta_desc.get('content'):
        desc = re.sub(r'\.\.\.?\s*Discover more at.*$', '', meta_desc['content'], flags=re.I).strip()

    image = '/upload/placeholder.png'
    og_image = soup.find('meta', attrs={'property': 'og:image'})
    if og_image:
        match = re.match(r'https?://[^/]+/(.+)', og_image.get('content') or '')
        if match:
            image = '/' + match.group(1)

    name = ''
    updated_at = ''
    genres = []
    rating_value = DEFAULT_RATING
    rating_count = DEFAULT_RATING_COUNT

    node = find_video_game(soup)
    if node:
        name = node.get('name') or ''
        desc = node.get('description') or desc
        updated_at = node.get('dateModified') or ''
        genres = node.get('genre') or []
        rating = node.get('aggregateRating')
        if rating:
            try:
                rating_value = float(rating.get('ratingValue')) or DEFAULT_RATING
            except (TypeError, ValueError):
                rating_value = DEFAULT_RATING
            try:
                rating_count = int(float(rating.get('ratingCount'))) or DEFAULT_RATING_COUNT
            except (TypeError, ValueError):
                rating_count = DEFAULT_RATING_COUNT

    if not name:
        title = soup.title.string if soup.title and soup.title.string else ''
        match = re.match(r'([^–|]+)[–|]', title)
        name = match.group(1).strip() if match else slug

    categories = []
    for genre in genres if isinstance(genres, list) else [genres]:
        genre_name = genre if isinstance(genre, str) else (genre or {}).get('name') or 'Other'
        categories.append({'name': genre_name, 'slug': slug_for_category(genre_name)})
    if not categories:
        categories.append({'name': 'Casual', 'slug': 'casual'})

    return {
        'name': name,
        'slug': slug,
        'image': image,
        'description': desc or f"Play {name} online for free.",
        'categories': categories,
        'categoryMain': categories[0],
        'ratingValue': rating_value,
        'ratingCount': rating_count,
        'playsPerMonth': int(rating_count * 50),
        'updatedAt': updated_at or DEFAULT_UPDATED_AT,
        'iframeUrl': '/play/' if slug == HOME_GAME_SLUG else '',
    }


def extract_games(root: Path) -> list:
    """All game records from <slug>.html files at root, newest first."""
    games = []
    for path in sorted(Path(root).glob('*.html')):
        if path.name in EXCLUDE:
            continue
        games.append(extract_game(path.read_text(encoding='utf-8'), path.stem))
    return sorted(games, key=lambda g: -date_sort_key(g.get('updatedAt')))


def main():
    parser = argparse.ArgumentParser(description='Rebuild the game catalog from built game pages')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Folder holding the built <slug>.html pages')
    parser.add_argument('--output', type=Path, help='Catalog to write (default: <root>/content/games.json)')
    args = parser.parse_args()

    games = extract_games(args.root)
    output = args.output or args.root / 'content' / 'games.json'
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        json.dump(games, f, indent=2, ensure_ascii=False)

    print(f"Wrote {len(games)} game(s) to {output}")
    print(f"Game slugs: {', '.join(g['slug'] for g in games)}")
    return 0


if __name__ == '__main__':
    exit(main())
