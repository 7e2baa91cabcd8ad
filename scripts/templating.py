#!/usr/bin/env python3
"""
Marker-driven templating for the portal build.

Templates are plain HTML with comment markers. A slot marker such as
<!-- GAME:TITLE --> is replaced in place; a block such as
<!-- HOME:NEW_GAMES_START --> ... <!-- HOME:NEW_GAMES_END --> holds one card
template between <!-- CARD:..._START --> / <!-- CARD:..._END --> markers and
is replaced, markers included, by one rendered card per game.
"""

import re
from datetime import datetime, timedelta, timezone

from site_utils import escape_html, parse_date, slugify, strip_slashes

CARD_TEMPLATE = ('<!-- CARD:TEMPLATE_START -->', '<!-- CARD:TEMPLATE_END -->')
NEW_GAMES_CARD = ('<!-- CARD:NEW_GAMES_TEMPLATE_START -->', '<!-- CARD:NEW_GAMES_TEMPLATE_END -->')
HOT_GAMES_CARD = ('<!-- CARD:HOT_GAMES_TEMPLATE_START -->', '<!-- CARD:HOT_GAMES_TEMPLATE_END -->')
TRENDING_CARD = ('<!-- CARD:TRENDING_TEMPLATE_START -->', '<!-- CARD:TRENDING_TEMPLATE_END -->')
SNOWRIDER_CARD = ('<!-- CARD:SNOWRIDER_TEMPLATE_START -->', '<!-- CARD:SNOWRIDER_TEMPLATE_END -->')

PAGE_CSS = {
    'home': 'home.css',
    'game': 'game.css',
    'category': 'category.css',
    'static': 'static.css',
    'search': 'search.css',
    '404': '404.css',
}

LABEL_HOT = {'class': 'GameThumbLabel_Hot', 'text': 'Hot'}
LABEL_TRENDING = {'class': 'GameThumbLabel_Trending', 'text': 'Trending'}
LABEL_NEW = {'class': 'GameThumbLabel_New', 'text': 'New'}

NEW_WINDOW = timedelta(days=30)

HOME_ICON_SVG = (
    '<svg fill="#fff" height="20" viewbox="0 0 64 64" width="20" xmlns="http://www.w3.org/2000/svg">'
    '<path d="M 32 3 L 1 28 L 1.4921875 28.654297 C 2.8591875 30.477297 5.4694688 30.791703 '
    '7.2304688 29.345703 L 32 9 L 56.769531 29.345703 C 58.530531 30.791703 61.140812 30.477297 '
    '62.507812 28.654297 L 63 28 L 54 20.742188 L 54 8 L 45 8 L 45 13.484375 L 32 3 z M 32 13 '
    'L 8 32 L 8 56 L 56 56 L 56 35 L 32 13 z M 26 34 L 38 34 L 38 52 L 26 52 L 26 34 z"></path></svg>'
)
BREADCRUMB_SEP = '<span class="bread-crumb-sep">»</span>'


# ============================================================================
# Marker helpers
# ============================================================================

def extract_between(html: str, start_mark: str, end_mark: str) -> str:
    """Text strictly between the two markers, '' if either is missing."""
    i = html.find(start_mark)
    j = html.find(end_mark)
    if i == -1 or j == -1 or j <= i:
        return ''
    return html[i + len(start_mark):j]


def replace_between(html: str, start_mark: str, end_mark: str, new_content: str) -> str:
    """Replace the markers and everything between them. Unchanged if a marker is missing."""
    i = html.find(start_mark)
    j = html.find(end_mark)
    if i == -1 or j == -1:
        return html
    return html[:i] + new_content + html[j + len(end_mark):]


def extract_card_template(block: str, markers=CARD_TEMPLATE) -> str:
    return extract_between(block, *markers).strip()


def fill_card_block(html: str, start_mark: str, end_mark: str, games: list,
                    card_markers=CARD_TEMPLATE, joiner: str = '\n\t\t\t\t\t\t',
                    label: dict = None, ref_date: datetime = None) -> str:
    """Render one card per game into a START/END block. No card template -> unchanged."""
    block = extract_between(html, start_mark, end_mark)
    template = extract_card_template(block, card_markers)
    if not template:
        return html
    cards = joiner.join(render_card(template, g, label, ref_date) for g in games)
    return replace_between(html, start_mark, end_mark, cards)


# ============================================================================
# URLs
# ============================================================================

def game_url(slug) -> str:
    """Canonical game URL: /<slug> (no trailing slash)."""
    return '/' + strip_slashes(slug)


def category_path(slug: str) -> str:
    """Output folder of a category: <slug>.games"""
    return f"{slug}.games"


def category_url(slug, page: int = 1) -> str:
    """Canonical category URL: /<slug>.games/ or /<slug>.games/page/N/"""
    s = strip_slashes(slug)
    if not s:
        return '/'
    if page <= 1:
        return f"/{s}.games/"
    return f"/{s}.games/page/{page}/"


# ============================================================================
# Cards
# ============================================================================

def is_within_last_30_days(updated_at, ref_date: datetime = None) -> bool:
    """Published or updated within the last 30 days (never in the future)."""
    parsed = parse_date(updated_at)
    if parsed is None:
        return False
    ref_date = ref_date or datetime.now(timezone.utc)
    diff = ref_date - parsed
    return timedelta(0) <= diff <= NEW_WINDOW


def _category_text(category: dict) -> str:
    value = category.get('slug')
    if value is None:
        value = category.get('name')
    return str(value if value is not None else '')


def thumb_label(game: dict, ref_date: datetime = None) -> dict:
    """Card label from categories: Hot > Trending > New, Hot when nothing matches."""
    cats = game.get('categories') or []
    has_hot = any(re.search(r'hot', _category_text(c), re.I) for c in cats)
    has_trending = any(re.search(r'trending', _category_text(c), re.I) for c in cats)
    has_new = any(
        re.fullmatch(r'new', str(c.get('slug') or ''), re.I)
        or re.search(r'\bnew\s*games?\b', str(c.get('name') or ''), re.I)
        for c in cats
    )
    if has_hot:
        return LABEL_HOT
    if has_trending:
        return LABEL_TRENDING
    if has_new or is_within_last_30_days(game.get('updatedAt'), ref_date):
        return LABEL_NEW
    return LABEL_HOT


def render_card(template: str, game: dict, label: dict = None, ref_date: datetime = None) -> str:
    """Fill a card template with one game's link, thumbnail, name and label."""
    name = (game.get('name') or '').replace('&', '&amp;').replace('<', '&lt;').replace('"', '&quot;')
    image = (game.get('image') or '').replace('&', '&amp;').replace('"', '&quot;')
    href = game_url(game.get('slug') or '')
    label = label or thumb_label(game, ref_date)
    label_div = f'<div class="GameThumbLabel {label["class"]}">{label["text"]}</div>'

    def first_href(match):
        return f'href="{href}"' if match.group(0).startswith('href="/') else match.group(0)

    out = re.sub(r'href="[^"]*"', first_href, template, count=1)
    out = out.replace('href="/__SLUG__/"', f'href="{href}"')
    out = re.sub(r'\bsrc="[^"]*"', lambda m: f'src="{image}"', out, count=1)
    out = re.sub(r'\balt="[^"]*"', lambda m: f'alt="{name} game thumbnail"', out, count=1)
    out = re.sub(r'\btitle="[^"]*"', lambda m: f'title="{name}"', out)
    out = re.sub(r'(<span class="text-overflow">)[^<]*(</span>)',
                 lambda m: f'{m.group(1)}{name}{m.group(2)}', out, count=1)
    out = re.sub(r'<div class="GameThumbLabel GameThumbLabel_(Hot|Trending|New)">[^<]*</div>',
                 lambda m: label_div, out, count=1)
    return out


def has_category_matching(game: dict, pattern: str) -> bool:
    """True if any category slug (or name when no slug) matches pattern."""
    return any(re.search(pattern, _category_text(c), re.I) for c in game.get('categories') or [])


# ============================================================================
# Page assembly
# ============================================================================

def page_css_link(page_type: str) -> str:
    css_file = PAGE_CSS.get(page_type, 'static.css')
    return f'\t<link rel="stylesheet" type="text/css" href="/data/css/pages/{css_file}">'


def build_page(base_html: str, content_html: str, page_type: str) -> str:
    """Drop page content and its stylesheet into the base layout."""
    return (base_html
            .replace('<!-- SLOT:CONTENT -->', content_html, 1)
            .replace('<!-- SLOT:PAGE_CSS -->', page_css_link(page_type), 1))


def breadcrumb(*tail: str) -> str:
    """Home icon followed by the given crumb fragments."""
    parts = [f'<a class="bread-crumb-item" href="/">{HOME_ICON_SVG}</a>']
    for crumb in tail:
        parts.append(BREADCRUMB_SEP)
        parts.append(crumb)
    return ''.join(parts)


def current_crumb(text: str) -> str:
    return f'<span class="bread-crumb-item bread-crumb-current">{escape_html(text)}</span>'


def category_sticker(name: str, slug: str) -> str:
    return f'<a class="us-sticker game-cate-link" href="{category_url(slug)}">{escape_html(name)}</a>'


# ============================================================================
# Link rewriting
# ============================================================================

def replace_category_links(html: str, canonical_map: dict) -> str:
    """Rewrite legacy /category/<x>/ links to canonical /<slug>.games/ URLs."""
    canonical_map = canonical_map or {}

    def repl(match):
        raw = slugify(match.group(1), 80)
        return f'href="{category_url(canonical_map.get(raw) or raw)}"'

    html = re.sub(r'href="/category/more/?"', 'href="/"', html)
    return re.sub(r'href="/category/([^"/]+)/?"', repl, html)


def replace_game_links(html: str, site_url: str) -> str:
    """Rewrite legacy /games/<slug> links (and share data-href URLs) to /<slug>."""
    html = re.sub(r'href="/games/([^"]+?)"', lambda m: f'href="{game_url(m.group(1))}"', html)
    return re.sub(r'data-href="https:[^"]*/games/([^"]+?)"',
                  lambda m: f'data-href="{site_url}{game_url(m.group(1))}"', html)
