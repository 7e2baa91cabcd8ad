#!/usr/bin/env python3
"""
Site configuration for the portal build.

Defaults live here as module constants. A site.yaml next to the templates
overrides any of them (keys are the lowercase field names of SiteConfig), and
a few environment variables control where the build reads and writes:

    PUBLISH_ROOT  anything but "0" writes the site into the project root
                  (GitHub Pages); "0" writes into dist/
    DATA_FILE     catalog path relative to the project root
    PORT          dev server port

Usage:
    from site_config import load_config
    config = load_config(PROJECT_DIR)
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from site_utils import load_env

SITE_URL = 'https://snowrider-3d.org'
SITE_NAME = 'Snow Rider 3D'

DEFAULT_DATA_FILE = 'content/games.json'
DEFAULT_PORT = 5501

# List sizes
HOME_NEW_GAMES_LIMIT = 24
HOME_TRENDING_LIMIT = 20
HOME_SNOWRIDER_LIMIT = 9
GAME_PAGE_NEW_GAMES_LIMIT = 30
RELATED_LIMIT = 7
CATEGORY_GAMES_PER_PAGE = 24
NOT_FOUND_HOT_LIMIT = 8

# Game shown in the home hero; its own URL redirects to /
HOME_GAME_SLUG = 'snow-rider-3d'

HOME_TITLE = 'Snow Rider 3D – Sled Down the Slopes & Dodge Obstacles'
HOME_DESCRIPTION = ('Steer your sled down snowy hills, dodge obstacles, and collect items. '
                    'Snow Rider 3D brings fast winter racing to your browser.')
HOME_GENRES = ['Arcade', 'Racing', 'Casual']

OG_IMAGE_PATH = '/data/image/snow-rider-3d-og-image.png'
LOGO_PATH = '/data/image/logo-snow-rider-3d.png'
PLACEHOLDER_IMAGE_PATH = '/upload/placeholder.png'

# Navigation categories: always built, even when empty
FIXED_CATEGORIES = [
    {'name': 'Hot Games', 'slug': 'hot'},
    {'name': 'Trending Games', 'slug': 'trending'},
    {'name': 'Snow Rider Games', 'slug': 'snow-rider'},
    {'name': 'Clicker', 'slug': 'clicker'},
    {'name': 'Io', 'slug': 'io'},
    {'name': 'Adventure', 'slug': 'adventure'},
    {'name': '2 player', 'slug': '2-player'},
    {'name': 'Shooting', 'slug': 'shooting'},
    {'name': 'Sports', 'slug': 'sports'},
    {'name': 'Car', 'slug': 'car'},
    {'name': 'Puzzle', 'slug': 'puzzle'},
    {'name': 'Casual', 'slug': 'casual'},
    {'name': 'Kids', 'slug': 'kids'},
]

# Breadcrumb/tag category when a game has several (top wins)
CATEGORY_PRIORITY = [
    'Hot Games', 'Trending Games', 'Snow Rider Games', 'Clicker', 'Io',
    'Adventure', '2 player', 'Shooting', 'Sports', 'Car', 'Puzzle',
    'Casual', 'Kids',
]

# Slugified catalog category -> fixed category slug
CATEGORY_ALIASES = {
    'hot-games': 'hot',
    'trending-games': 'trending',
    'trending': 'trending',
    'snow-rider': 'snow-rider',
    'snow-rider-games': 'snow-rider',
    'clicker': 'clicker',
    'io': 'io',
    'adventure': 'adventure',
    '2-player': '2-player',
    '2-player-games': '2-player',
    'shooting': 'shooting',
    'sports': 'sports',
    'car': 'car',
    'puzzle': 'puzzle',
    'casual': 'casual',
    'kids': 'kids',
}

# Stickers on the home page
HOME_CATEGORIES = [
    {'name': 'Hot Games', 'slug': 'hot'},
    {'name': 'Snow Rider Games', 'slug': 'snow-rider'},
    {'name': 'Sports', 'slug': 'sports'},
]

STATIC_PAGES = [
    {'slug': 'about-us', 'title': 'About Us', 'file': 'about-us.html'},
    {'slug': 'contact-us', 'title': 'Contact Us', 'file': 'contact-us.html'},
    {'slug': 'dmca', 'title': 'DMCA', 'file': 'dmca.html'},
    {'slug': 'privacy-policy', 'title': 'Privacy Policy', 'file': 'privacy-policy.html'},
    {'slug': 'terms-of-service', 'title': 'Terms of Service', 'file': 'terms-of-service.html'},
]

# Folders in the output that belong to the site, never stale game folders
OUTPUT_KEEP_DIRS = ['search', 'about-us', 'contact-us', 'dmca', 'privacy-policy',
                    'terms-of-service', 'data', 'themes', 'upload', 'play']

# Source folders at the project root (skipped when building into the root)
ROOT_KEEP_DIRS = ['templates', 'content', 'scripts', 'docs', 'tests', 'dist', 'build', '.cursor',
                  '.git', 'node_modules', '.venv', 'venv']

ASSET_DIRS = ['themes', 'data', 'upload', 'play']

ROOT_ASSETS = ['favicon-96x96.png', 'favicon.ico', 'favicon.svg', 'apple-touch-icon.png',
               'site.webmanifest', 'web-app-manifest-192x192.png',
               'web-app-manifest-512x512.png', 'snow-rider-3d.png', 'browserconfig.xml']


@dataclass
class SiteConfig:
    """Everything the build needs to know about one site."""
    root: Path
    site_url: str = SITE_URL
    site_name: str = SITE_NAME
    data_file: str = DEFAULT_DATA_FILE
    publish_root: bool = True
    out_dir: Optional[Path] = None
    port: int = DEFAULT_PORT

    home_new_games_limit: int = HOME_NEW_GAMES_LIMIT
    home_trending_limit: int = HOME_TRENDING_LIMIT
    home_snowrider_limit: int = HOME_SNOWRIDER_LIMIT
    game_page_new_games_limit: int = GAME_PAGE_NEW_GAMES_LIMIT
    related_limit: int = RELATED_LIMIT
    category_games_per_page: int = CATEGORY_GAMES_PER_PAGE
    not_found_hot_limit: int = NOT_FOUND_HOT_LIMIT

    home_game_slug: str = HOME_GAME_SLUG
    home_title: str = HOME_TITLE
    home_description: str = HOME_DESCRIPTION
    home_genres: List[str] = field(default_factory=lambda: list(HOME_GENRES))
    og_image_path: str = OG_IMAGE_PATH
    logo_path: str = LOGO_PATH
    placeholder_image_path: str = PLACEHOLDER_IMAGE_PATH

    fixed_categories: List[Dict] = field(default_factory=lambda: [dict(c) for c in FIXED_CATEGORIES])
    category_priority: List[str] = field(default_factory=lambda: list(CATEGORY_PRIORITY))
    category_aliases: Dict[str, str] = field(default_factory=lambda: dict(CATEGORY_ALIASES))
    home_categories: List[Dict] = field(default_factory=lambda: [dict(c) for c in HOME_CATEGORIES])
    category_meta: Dict[str, Dict] = field(default_factory=dict)
    static_pages: List[Dict] = field(default_factory=lambda: [dict(p) for p in STATIC_PAGES])
    static_descriptions: Dict[str, str] = field(default_factory=dict)

    output_keep_dirs: List[str] = field(default_factory=lambda: list(OUTPUT_KEEP_DIRS))
    root_keep_dirs: List[str] = field(default_factory=lambda: list(ROOT_KEEP_DIRS))
    asset_dirs: List[str] = field(default_factory=lambda: list(ASSET_DIRS))
    root_assets: List[str] = field(default_factory=lambda: list(ROOT_ASSETS))

    def __post_init__(self):
        self.root = Path(self.root)
        if self.out_dir is None:
            self.out_dir = self.root if self.publish_root else self.root / 'dist'
        self.out_dir = Path(self.out_dir)

    @property
    def templates_dir(self) -> Path:
        return self.root / 'templates'

    @property
    def layouts_dir(self) -> Path:
        return self.templates_dir / 'layouts'

    @property
    def pages_dir(self) -> Path:
        return self.templates_dir / 'pages'

    @property
    def content_dir(self) -> Path:
        return self.root / 'content'

    @property
    def data_path(self) -> Path:
        return (self.root / self.data_file).resolve()

    @property
    def builds_into_root(self) -> bool:
        return self.out_dir.resolve() == self.root.resolve()


def read_site_yaml(path: Path) -> dict:
    """Load overrides from site.yaml. Returns empty dict if missing."""
    if not path.exists():
        return {}
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(root: Path, out_dir: Path = None, data_file: str = None) -> SiteConfig:
    """
    Build the SiteConfig for a project root.

    Precedence: explicit arguments > environment > site.yaml > defaults.
    """
    root = Path(root)
    load_env(root / '.env')

    overrides = read_site_yaml(root / 'site.yaml')
    known = {f.name for f in fields(SiteConfig)} - {'root', 'out_dir'}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown site.yaml keys: {', '.join(unknown)}")

    kwargs = dict(overrides)
    if os.environ.get('PUBLISH_ROOT') is not None:
        kwargs['publish_root'] = os.environ['PUBLISH_ROOT'] != '0'
    if os.environ.get('DATA_FILE'):
        kwargs['data_file'] = os.environ['DATA_FILE']
    if os.environ.get('PORT'):
        kwargs['port'] = int(os.environ['PORT'])
    if data_file:
        kwargs['data_file'] = data_file

    return SiteConfig(root=root, out_dir=out_dir, **kwargs)


def get_base_url(config: SiteConfig) -> str:
    """
    Canonical base URL without trailing slash.

    A CNAME file at the project root wins (www. and protocol stripped),
    otherwise the configured site_url.
    """
    cname = config.root / 'CNAME'
    if cname.exists():
        domain = cname.read_text(encoding='utf-8').strip()
        for prefix in ('https://', 'http://'):
            if domain.startswith(prefix):
                domain = domain[len(prefix):]
        domain = domain.split('/')[0]
        if domain:
            if domain.lower().startswith('www.'):
                domain = domain[4:]
            return f"https://{domain}"
    return config.site_url.rstrip('/')
