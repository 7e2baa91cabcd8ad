#!/usr/bin/env python3
"""
Shared utilities for the portal build scripts.

This module consolidates the slug and string helpers used across the build,
audit and extraction scripts so every script normalizes URLs the same way.

Usage:
    from site_utils import slugify, normalize_and_validate_slug, RESERVED_SLUGS
    from site_utils import PROJECT_DIR, SCRIPTS_DIR
"""

import os
import re
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# ============================================================================
# Standard Paths
# ============================================================================

SCRIPTS_DIR = Path(__file__).parent
PROJECT_DIR = SCRIPTS_DIR.parent


def default_project_root() -> Path:
    """
    Project root used when --root is not given.

    Running from a checkout (scripts/ next to templates/) uses the checkout.
    Installed console scripts live in site-packages, so they use the current
    directory instead.
    """
    if (PROJECT_DIR / 'templates').is_dir():
        return PROJECT_DIR
    return Path.cwd()


# ============================================================================
# Slug Utilities
# ============================================================================

# Routes and asset folders that must never be used as a game/category slug.
RESERVED_SLUGS = frozenset(s.lower() for s in [
    'search', 'post', 'tag', 'games',
    'about-us', 'contact-us', 'dmca', 'privacy-policy', 'terms-of-service',
    'index', '404', 'sitemap', 'sitemap.xml', 'robots', 'robots.txt',
    'favicon', 'favicon.ico',
    'themes', 'data', 'upload', 'play',
])

CLEAN_SLUG_RE = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def slugify(text, max_len: int = 80) -> str:
    """
    Convert a name or title to a URL slug.

    Examples:
        "Snow Rider 3D" -> "snow-rider-3d"
        "Cut & Paste" -> "cut-and-paste"
        "Đường đua" -> "duong-dua"
        "!!!" -> "item"
    """
    if not isinstance(text, str):
        return 'item'
    slug = text.strip()
    if not slug:
        return 'item'

    # Strip diacritics
    slug = unicodedata.normalize('NFKD', slug)
    slug = ''.join(ch for ch in slug if not unicodedata.combining(ch))
    slug = slug.replace('đ', 'd').replace('Đ', 'd')
    slug = slug.replace('&', ' and ')

    slug = re.sub(r'[^a-z0-9]+', '-', slug.lower())
    slug = re.sub(r'-+', '-', slug).strip('-')
    if not slug:
        return 'item'

    if len(slug) > max_len:
        cut = slug[:max_len]
        last_dash = cut.rfind('-')
        slug = cut[:last_dash] if last_dash > 0 else cut
    slug = slug.rstrip('-')
    return slug or 'item'


def dedupe_slug(slug: str, used: set) -> str:
    """Return slug, or slug-2, slug-3, ... whichever is free. Adds it to used."""
    if not slug:
        slug = 'item'
    candidate = slug
    n = 2
    while candidate in used:
        candidate = f"{slug}-{n}"
        n += 1
    used.add(candidate)
    return candidate


def ensure_not_reserved(slug: str, reserved=RESERVED_SLUGS, suffix: str = '-game') -> str:
    """Append suffix when slug collides with a reserved route."""
    if not slug:
        return 'item' + suffix
    if slug.lower() in reserved:
        return slug + suffix
    return slug


def normalize_and_validate_slug(text, used: set, reserved=RESERVED_SLUGS,
                                suffix: str = '-game', max_len: int = 80) -> str:
    """slugify -> ensure_not_reserved -> dedupe_slug. Mutates used."""
    slug = slugify(text, max_len)
    slug = ensure_not_reserved(slug, reserved, suffix)
    return dedupe_slug(slug, used)


def is_slug_dirty(slug) -> bool:
    """True if slug is not strictly lowercase [a-z0-9] words joined by single dashes."""
    if not slug or not isinstance(slug, str):
        return True
    return not CLEAN_SLUG_RE.match(slug.strip())


def category_key(category: dict) -> str:
    """Slug key for a {name, slug} category entry (slug wins over name)."""
    raw = category.get('slug')
    if raw is None:
        raw = category.get('name')
    if raw is None:
        raw = 'games'
    return slugify(str(raw), 80) or 'games'


# ============================================================================
# String Utilities
# ============================================================================

def escape_html(text) -> str:
    """Escape &, <, > and double quotes for HTML text and attributes."""
    if not text:
        return ''
    return (str(text)
            .replace('&', '&amp;')
            .replace('<', '&lt;')
            .replace('>', '&gt;')
            .replace('"', '&quot;'))


def truncate_desc(text, max_len: int = 160) -> str:
    """
    Single-line description no longer than max_len.

    Cuts at the last space when that still leaves more than 120 characters,
    then appends '...'.
    """
    if not text:
        return ''
    flat = str(text).replace('\n', ' ').strip()
    if len(flat) <= max_len:
        return flat
    head = flat[:max_len - 3]
    last_space = head.rfind(' ')
    cut = head[:last_space] if last_space > 120 else head
    return cut + '...'


def strip_slashes(value) -> str:
    """Remove one leading and one trailing slash."""
    value = value or ''
    if value.startswith('/'):
        value = value[1:]
    if value.endswith('/'):
        value = value[:-1]
    return value


def rstrip_slash(url) -> str:
    """Drop a single trailing slash from a base URL."""
    url = str(url or '')
    return url[:-1] if url.endswith('/') else url


def absolute_url(path_or_url: str, base: str) -> str:
    """Leave http(s) URLs alone, otherwise join onto base with exactly one slash."""
    if not path_or_url:
        return ''
    if path_or_url.startswith('http'):
        return path_or_url
    rel = path_or_url if path_or_url.startswith('/') else '/' + path_or_url
    return f"{base}{rel}" if base else rel


# ============================================================================
# Date Utilities
# ============================================================================

def parse_date(value) -> Optional[datetime]:
    """
    Parse an ISO date or datetime string to an aware UTC datetime.

    Returns None for empty or unparsable values.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def date_sort_key(value) -> float:
    """Timestamp used for newest-first ordering; missing dates sort as epoch."""
    parsed = parse_date(value)
    return parsed.timestamp() if parsed else 0.0


# ============================================================================
# Environment Utilities
# ============================================================================

def load_env(env_path: Path = None):
    """
    Load environment variables from a .env file.

    Args:
        env_path: Path to .env file. Defaults to <project>/.env
    """
    if env_path is None:
        env_path = PROJECT_DIR / ".env"

    if not env_path.exists():
        return

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                key = key.replace('export ', '').strip()
                value = value.strip().strip('"').strip("'")
                os.environ.setdefault(key, value)
