#!/usr/bin/env python3
"""
Game catalog: loading, validation, slug normalization and category membership.

The catalog is a flat JSON array of game records. Everything here mutates the
records in place so the normalized list can be written back to games.json.

Usage:
    from catalog import load_games, validate_games, normalize_game_slugs, derive_categories
    games = load_games(config.data_path)
    validate_games(games, config.root)
    changes = normalize_game_slugs(games)
    index = derive_categories(games)
"""

import base64
import json
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from site_config import (
    CATEGORY_ALIASES,
    CATEGORY_PRIORITY,
    FIXED_CATEGORIES,
    PLACEHOLDER_IMAGE_PATH,
    RELATED_LIMIT,
)
from site_utils import (
    RESERVED_SLUGS,
    category_key,
    is_slug_dirty,
    normalize_and_validate_slug,
    slugify,
)

ALL_GAMES = {'name': 'All Games', 'slug': 'all'}
OTHER_CATEGORY = {'name': 'Other', 'slug': 'other'}

# 1x1 transparent PNG
PLACEHOLDER_PNG = base64.b64decode(
    'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=='
)


@dataclass
class SlugChange:
    """A slug rewritten during the build (printed at the end of the run)."""
    kind: str
    old: str
    new: str
    name: str = ''

    def __str__(self):
        suffix = f" ({self.name})" if self.name else ''
        return f"[{self.kind}] {self.old} -> {self.new}{suffix}"


@dataclass
class CategoryIndex:
    """
    Category pages and the lookup used to resolve any raw category key.

    categories: canonical slug -> {'name', 'slug', 'games'}, in page order
    canonical_map: raw slugified key -> canonical slug
    """
    categories: Dict[str, dict] = field(default_factory=dict)
    canonical_map: Dict[str, str] = field(default_factory=dict)
    changes: List[SlugChange] = field(default_factory=list)

    def canonical(self, category: dict) -> str:
        key = category_key(category)
        return self.canonical_map.get(key) or key

    @property
    def paths(self) -> set:
        return {f"{slug}.games" for slug in self.categories}


# ============================================================================
# Loading and validation
# ============================================================================

def load_games(path: Path) -> list:
    """Read the catalog. Missing file or invalid JSON gives an empty list."""
    path = Path(path)
    if not path.exists():
        print(f"⚠️  Data file not found: {path}", file=sys.stderr)
        return []
    try:
        with open(path, encoding='utf-8') as f:
            games = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"⚠️  Could not load games data: {e}", file=sys.stderr)
        return []
    if not isinstance(games, list):
        print(f"⚠️  {path} is not a JSON array, ignoring it", file=sys.stderr)
        return []
    print(f"Loaded {len(games)} game(s) from {path.name}")
    return games


def ensure_placeholder_image(root: Path) -> Path:
    """Create upload/placeholder.png under root if it is not there yet."""
    placeholder = Path(root) / 'upload' / 'placeholder.png'
    if not placeholder.exists():
        placeholder.parent.mkdir(parents=True, exist_ok=True)
        placeholder.write_bytes(PLACEHOLDER_PNG)
        print("⚠️  Created upload/placeholder.png (1x1) for missing game images.", file=sys.stderr)
    return placeholder


def _warn(name: str, message: str):
    print(f'[validate] Game "{name}": {message}', file=sys.stderr)


def _local_image_missing(image: str, root: Path) -> str:
    """Return the missing file's display path, or '' if the image is fine."""
    if image.startswith('/upload/'):
        file = re.sub(r'^/upload/?', '', image).split('?')[0]
        if (root / 'upload' / file).exists() or (root / Path(file).name).exists():
            return ''
        return f"/upload/{file}"
    if image.startswith('/'):
        file = image[1:].split('?')[0]
        if file and not (root / file).exists():
            return f"/{file}"
    return ''


def _as_category(entry, game_name: str) -> dict:
    """A bare category name becomes {name, slug}; anything else that is not an object is fatal."""
    if isinstance(entry, dict):
        return entry
    if isinstance(entry, str) and entry.strip():
        return {'name': entry.strip(), 'slug': slugify(entry, 80)}
    raise ValueError(f'Game "{game_name}" has an invalid category entry: {entry!r}')


def validate_games(games: list, root: Path, placeholder: str = PLACEHOLDER_IMAGE_PATH):
    """
    Check required fields and fill defaults in place.

    A missing name or a record that is not an object is fatal (ValueError). Every
    other gap is filled and reported as a [validate] warning on stderr.
    """
    root = Path(root)
    ensure_placeholder_image(root)
    for i, game in enumerate(games):
        if not isinstance(game, dict):
            raise ValueError(f'Game at index {i} is not an object (got {type(game).__name__}).')
        name = str(game.get('name') if game.get('name') is not None else '').strip()
        if not name:
            raise ValueError(f'Game at index {i} has no name. Each game must have a "name" field.')

        if not str(game.get('slug') or '').strip():
            game['slug'] = slugify(game['name'], 80)
            _warn(name, f'missing slug, set to "{game["slug"]}"')

        image = str(game.get('image') or '').strip()
        if not image:
            game['image'] = placeholder
            _warn(name, f"missing image, using {placeholder}")
        else:
            missing = _local_image_missing(image, root)
            if missing:
                game['image'] = placeholder
                _warn(name, f"image {missing} not found, using {placeholder}")

        if not str(game.get('description') or '').strip():
            game['description'] = f"Play {game['name']} online for free."
            _warn(name, "missing description, using fallback")

        categories = game.get('categories')
        if isinstance(categories, list):
            categories = game['categories'] = [_as_category(c, name) for c in categories]
        if isinstance(game.get('categoryMain'), str):
            game['categoryMain'] = _as_category(game['categoryMain'], name)
        if not isinstance(categories, list) or not categories:
            game['categories'] = [dict(OTHER_CATEGORY)]
            game['categoryMain'] = dict(OTHER_CATEGORY)
            _warn(name, "missing categories, set to Other")
        elif not isinstance(game.get('categoryMain'), dict) or not game['categoryMain'].get('slug'):
            game['categoryMain'] = categories[0]


def normalize_game_slugs(games: list, reserved=RESERVED_SLUGS) -> List[SlugChange]:
    """
    Give every game a clean, unique, non-reserved slug.

    Clean existing slugs are kept (deduped); dirty ones are rebuilt from the name.
    """
    used = set()
    changes = []
    for game in games:
        original = game.get('slug')
        if original and not is_slug_dirty(original):
            source = original.strip()
        else:
            source = game.get('name') or 'game'
        slug = normalize_and_validate_slug(source, used, reserved, '-game', 80)
        if original and original != slug:
            changes.append(SlugChange('game', original, slug, game.get('name') or ''))
        game['slug'] = slug
    return changes


# ============================================================================
# Categories
# ============================================================================

def derive_categories(games: list, fixed_categories=None, aliases=None,
                      reserved=RESERVED_SLUGS) -> CategoryIndex:
    """
    Build category pages from the fixed navigation list plus the catalog.

    Fixed categories always get a page (even empty), then 'all', then any
    category found in the catalog that maps to nothing fixed. 'new-games' is
    a label, never a page.
    """
    fixed_categories = FIXED_CATEGORIES if fixed_categories is None else fixed_categories
    aliases = CATEGORY_ALIASES if aliases is None else aliases
    index = CategoryIndex()
    used = set()

    for cat in fixed_categories:
        used.add(cat['slug'])
        index.categories[cat['slug']] = {'name': cat['name'], 'slug': cat['slug'], 'games': []}
        index.canonical_map[cat['slug']] = cat['slug']
        index.canonical_map[slugify(cat['name'], 80)] = cat['slug']
    used.add(ALL_GAMES['slug'])
    index.categories[ALL_GAMES['slug']] = dict(ALL_GAMES, games=[])
    index.canonical_map[ALL_GAMES['slug']] = ALL_GAMES['slug']
    index.canonical_map.update(aliases)

    extras = {}
    for game in games:
        for c in game.get('categories') or []:
            raw = category_key(c)
            if raw == 'new-games' or raw in index.canonical_map or raw in extras:
                continue
            slug = normalize_and_validate_slug(raw, used, reserved, '-cat', 80)
            extras[raw] = {'slug': slug, 'name': c.get('name') or raw}
            if slug != raw:
                index.changes.append(SlugChange('category', raw, slug, c.get('name') or ''))
    for raw, extra in extras.items():
        index.categories[extra['slug']] = {'name': extra['name'], 'slug': extra['slug'], 'games': []}
        index.canonical_map[raw] = extra['slug']

    for game in games:
        snow_rider = index.categories.get('snow-rider')
        if snow_rider is not None and re.search(r'snow\s*rider', game.get('name') or '', re.I):
            _add_game(snow_rider, game)
        for c in game.get('categories') or []:
            raw = category_key(c)
            slug = aliases.get(raw) or index.canonical_map.get(raw) or raw
            entry = index.categories.get(slug)
            if entry is not None:
                _add_game(entry, game)

    index.categories[ALL_GAMES['slug']]['games'] = list(games)
    return index


def _add_game(entry: dict, game: dict):
    if not any(g.get('slug') == game.get('slug') for g in entry['games']):
        entry['games'].append(game)


def get_category_main(game: dict, priority=None) -> dict:
    """Category for breadcrumbs and tags: categoryMain, then priority order, then first."""
    priority = CATEGORY_PRIORITY if priority is None else priority
    cats = game.get('categories') or []
    cat = dict(game['categoryMain']) if game.get('categoryMain') else None
    if cat is None:
        if not cats:
            return dict(ALL_GAMES)
        # Priority names match a category by slug or by name
        by_key = {}
        for c in reversed(cats):
            by_key[slugify(str(c.get('name') or ''), 80)] = c
            by_key[category_key(c)] = c
        for pname in priority:
            found = by_key.get(slugify(pname, 80))
            if found:
                cat = found
                break
        if cat is None:
            cat = cats[0]

    if category_key(cat) == 'new-games':
        other = next((c for c in cats if category_key(c) != 'new-games'), None)
        return other or dict(ALL_GAMES)
    return cat


def get_related_games(games: list, current_slug: str, category_slug: str,
                      limit: int = RELATED_LIMIT, canonical_map: dict = None) -> list:
    """Games sharing the category first, padded with the rest of the catalog."""

    def canonical(c):
        if not c:
            return ''
        key = category_key(c)
        if canonical_map:
            return canonical_map.get(key) or key
        return key

    same = [
        g for g in games
        if g.get('slug') != current_slug and (
            canonical(get_category_main(g)) == category_slug
            or any(canonical(c) == category_slug for c in g.get('categories') or [])
        )
    ]
    if len(same) >= limit:
        return same[:limit]
    same_slugs = {g.get('slug') for g in same}
    rest = [g for g in games if g.get('slug') != current_slug and g.get('slug') not in same_slugs]
    return (same + rest)[:limit]
