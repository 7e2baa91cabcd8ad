#!/usr/bin/env python3
"""
SEO metadata for generated pages.

Rewrites the <head> tags that the base layout already carries (title, meta
description, canonical, Open Graph, Twitter) and swaps the layout's JSON-LD
block for page-specific schema.org markup. Titles stay within 60 characters
and descriptions within 160, with no "free / online / no download" filler.
"""

import json
import re

from site_utils import absolute_url, escape_html, rstrip_slash, truncate_desc

MAX_TITLE = 60
MAX_DESC = 160


# ============================================================================
# Head tags
# ============================================================================

def _sub_tag(pattern: str, replacement: str, html: str, count: int = 1) -> str:
    return re.sub(pattern, lambda m: replacement, html, count=count)


def inject_meta_and_og(html: str, title: str = None, desc: str = None, canonical: str = '/',
                       base_url: str = '', og_title: str = None, og_desc: str = None,
                       image: str = None, url: str = None) -> str:
    """
    Replace title, meta description, canonical and OG/Twitter tags.

    Relative canonical/url/image values are made absolute against base_url.
    og_title/og_desc fall back to title/desc when empty.
    """
    base = rstrip_slash(base_url)
    canonical_rel = canonical if canonical.startswith('/') else '/' + canonical
    canonical_full = canonical if canonical.startswith('http') else f"{base}{canonical_rel}"
    if url:
        page_url = url if url.startswith('http') or not base else absolute_url(url, base)
    else:
        page_url = canonical_full
    image_full = absolute_url(image, base) if image else ''
    title_for_og = og_title or title
    desc_for_og = og_desc or desc

    out = html
    if title is not None:
        out = _sub_tag(r'<title>[^<]*</title>', f'<title>{escape_html(title)}</title>', out)
        out = _sub_tag(r'<meta name="title" content="[^"]*">',
                       f'<meta name="title" content="{escape_html(title)}">', out)
    if desc is not None:
        out = _sub_tag(r'<meta name="description"[\s\S]*?content="[^"]*">',
                       f'<meta name="description" content="{escape_html(desc)}">', out)

    canonical_tag = f'<link rel="canonical" href="{escape_html(canonical_full)}">'
    if 'rel="canonical"' in out:
        out = _sub_tag(r'<link rel="canonical" href="[^"]*">', canonical_tag, out)
    else:
        out = out.replace('</head>', f'\t{canonical_tag}\n</head>', 1)

    if title_for_og is not None:
        for prop in ('og:title', 'twitter:title'):
            out = _sub_tag(rf'<meta property="{prop}" content="[^"]*">',
                           f'<meta property="{prop}" content="{escape_html(title_for_og)}">', out)
    if desc_for_og is not None:
        for prop in ('og:description', 'twitter:description'):
            out = _sub_tag(rf'<meta property="{prop}"[\s\S]*?content="[^"]*">',
                           f'<meta property="{prop}" content="{escape_html(desc_for_og)}">', out)
    for prop in ('og:url', 'twitter:url'):
        out = _sub_tag(rf'<meta property="{prop}" content="[^"]*">',
                       f'<meta property="{prop}" content="{escape_html(page_url)}">', out)
    if image_full:
        for prop in ('og:image', 'twitter:image'):
            out = _sub_tag(rf'<meta property="{prop}" content="[^"]*">',
                           f'<meta property="{prop}" content="{escape_html(image_full)}">', out)

    out = _sub_tag(r'<meta property="og:type" content="[^"]*">',
                   '<meta property="og:type" content="website">', out)
    card = '<meta property="twitter:card" content="summary_large_image">'
    if 'twitter:card' not in out:
        out = out.replace('</head>', f'\t{card}\n</head>', 1)
    else:
        out = _sub_tag(r'<meta property="twitter:card" content="[^"]*">', card, out)
    return out


def inject_json_ld(html: str, schema_markup: str) -> str:
    """Replace the first JSON-LD script block."""
    return _sub_tag(r'<script type="application/ld\+json">[\s\S]*?</script>',
                    schema_markup.strip(), html)


def json_ld_script(schema: dict) -> str:
    return ('<script type="application/ld+json">\n'
            + json.dumps(schema, ensure_ascii=False, separators=(',', ':'))
            + '\n\t</script>')


def strip_keywords(html: str) -> str:
    return re.sub(r'<meta name="keywords"[^>]*>\s*', '', html, flags=re.I)


def set_robots_noindex(html: str) -> str:
    """Force robots to noindex,follow (inserted before </head> if absent)."""
    html = re.sub(r'<meta name="robots" content="[^"]*">',
                  '<meta name="robots" content="noindex,follow">', html)
    if 'noindex,follow' not in html:
        html = html.replace('</head>', '\t<meta name="robots" content="noindex,follow">\n</head>', 1)
    return html


# ============================================================================
# Titles and descriptions
# ============================================================================

def with_games_suffix(name: str) -> str:
    """'Puzzle' -> 'Puzzle Games'; names already ending in ' games' are kept."""
    name = name or ''
    return name if name.lower().endswith(' games') else name + ' Games'


def game_meta_title(game_name: str, site_name: str) -> str:
    name = str(game_name or '').strip()
    site = str(site_name or '').strip()
    candidate = f"{name} – Play & Master the Run | {site}"
    if len(candidate) <= MAX_TITLE:
        return candidate
    short = f"{name} | {site}"
    return short if len(short) <= MAX_TITLE else short[:57] + '...'


def sanitize_game_description(text) -> str:
    """Strip 'free / online / no download' filler. Falls back to the input when nothing is left."""
    if not text or not isinstance(text, str):
        return ''
    t = re.sub(r'\b(play\s+[^.]*?\s+)(online\s+)?(for\s+)?free\b', r'\1', text, flags=re.I)
    t = re.sub(r'\bonline\s+for\s+free\b', '', t, flags=re.I)
    t = re.sub(r'\bfor\s+free\b', '', t, flags=re.I)
    t = re.sub(r'\bno\s+download\b', '', t, flags=re.I)
    t = re.sub(r'\bfree\s+online\b', '', t, flags=re.I)
    t = re.sub(r'\s+', ' ', t).strip()
    t = re.sub(r'\s+([.,;])', r'\1', t)
    t = re.sub(r'^[.\s,;]+|[.\s,;]+$', '', t).strip()
    return t or text.strip()


def game_description_fallback(game: dict) -> str:
    """Short action-oriented description by category flavour."""
    name = game.get('name') or 'Game'
    cats = [(c.get('name') or '').lower() for c in game.get('categories') or []]

    def any_cat(pattern):
        return any(re.search(pattern, c, re.I) for c in cats)

    if any_cat(r'clicker|idle'):
        return f"Click, upgrade, and grow your empire. {name} rewards strategy and persistence."
    if any_cat(r'puzzle'):
        return f"Slide tiles and solve the puzzle. {name} challenges your logic and focus."
    if any_cat(r'racing|car|sports'):
        return f"Race, stunt, and beat the clock. {name} puts your reflexes to the test."
    if any_cat(r'runner|adventure'):
        return f"Dodge obstacles and run as far as you can. {name} keeps you on the edge."
    return f"Master the controls and beat your high score. {name} brings fast, fun gameplay to your browser."


def game_meta_description(game: dict) -> str:
    raw = str(game.get('description') or '').strip()
    generic = (not raw
               or re.search(r'play\s+.*\s+(online\s+)?(for\s+)?free', raw, re.I)
               or len(raw) < 40)
    if generic:
        raw = game_description_fallback(game)
    desc = truncate_desc(sanitize_game_description(raw) or raw, MAX_DESC)
    if len(desc) < 120 and len(raw) > 120:
        return truncate_desc(raw, MAX_DESC)
    return desc


def game_og_description(meta_desc: str, site_name: str) -> str:
    """OG/Twitter text: the meta description plus a 'Discover more' tail."""
    if not meta_desc or len(meta_desc) < 80:
        return meta_desc
    tail = f" Discover more at {site_name}."
    max_len = min(MAX_DESC - len(tail), 140)
    if len(meta_desc) <= max_len:
        lead = meta_desc.strip()
    else:
        lead = re.sub(r'\s+\S*$', '', meta_desc[:max_len - 3]) + '...'
    return lead + tail


def category_meta_title(category_name: str, page: int, total_pages: int, site_name: str) -> str:
    display = with_games_suffix(category_name)
    suffix = f" | {site_name}"
    if total_pages > 1:
        return f"{display} – Page {page}{suffix}"[:MAX_TITLE]
    title = f"{display} – New & Popular Picks{suffix}"
    return title if len(title) <= MAX_TITLE else (display + suffix)[:MAX_TITLE]


def category_meta_desc(category_name: str) -> str:
    name = with_games_suffix(category_name)
    return truncate_desc(f"Browse {name} and discover new picks. Find your next favorite in this "
                         f"collection. We add new titles regularly. Start playing now.", MAX_DESC)


def category_og_desc(category_name: str) -> str:
    name = with_games_suffix(category_name)
    return truncate_desc(f"Explore {name}. New and popular picks in this collection.", MAX_DESC)


def static_meta_title(page_title: str, site_name: str) -> str:
    part = str(page_title or '').strip()
    site = str(site_name or '').strip()
    title = f"{part} | {site}"
    if len(title) <= MAX_TITLE:
        return title
    short = f"{part[:max(0, MAX_TITLE - len('... | ') - len(site))]}... | {site}"
    return short if len(short) <= MAX_TITLE else short[:57] + '...'


# ============================================================================
# Structured data
# ============================================================================

def _website(site_name: str, home_url: str) -> dict:
    return {'@type': 'WebSite', 'name': site_name, 'url': home_url}


def _breadcrumbs(*items) -> dict:
    return {
        '@type': 'BreadcrumbList',
        'itemListElement': [
            {'@type': 'ListItem', 'position': i, 'name': name, 'item': item}
            for i, (name, item) in enumerate(items, start=1)
        ],
    }


def home_schema_graph(base_url: str, site_name: str, description: str,
                      genres: list, logo_path: str, og_image_path: str) -> dict:
    """WebSite (with SearchAction) + Organization + VideoGame for the hero game."""
    base = rstrip_slash(base_url)
    home_url = base + '/'
    website = _website(site_name, home_url)
    website['potentialAction'] = {
        '@type': 'SearchAction',
        'target': {'@type': 'EntryPoint', 'urlTemplate': base + '/search?q={search_term_string}'},
        'query-input': 'required name=search_term_string',
    }
    return {
        '@context': 'https://schema.org',
        '@graph': [
            website,
            {'@type': 'Organization', 'name': site_name, 'url': home_url, 'logo': base + logo_path},
            {
                '@type': 'VideoGame',
                'name': site_name,
                'url': home_url,
                'description': description,
                'genre': list(genres),
                'image': base + og_image_path,
                'operatingSystem': 'Web',
                'applicationCategory': 'Game',
                'inLanguage': 'en',
            },
        ],
    }


def game_page_schema_graph(game: dict, base_url: str, site_name: str,
                           category: dict, category_url_path: str) -> dict:
    """BreadcrumbList + WebPage + VideoGame for a game page."""
    base = rstrip_slash(base_url)
    home_url = base + '/'
    game_url_abs = f"{base}/{game.get('slug') or ''}"
    image_abs = absolute_url(game.get('image') or '', base)

    description = str(game.get('description') or '').strip()
    if description:
        schema_desc = truncate_desc(sanitize_game_description(description), MAX_DESC)
    else:
        schema_desc = game_description_fallback(game)

    webpage = {
        '@type': 'WebPage',
        'name': game.get('name'),
        'url': game_url_abs,
        'inLanguage': 'en',
        'isPartOf': _website(site_name, home_url),
    }
    video_game = {
        '@type': 'VideoGame',
        'name': game.get('name'),
        'url': game_url_abs,
        'description': schema_desc,
    }
    if image_abs:
        video_game['image'] = [image_abs]
    genres = [c.get('name') for c in game.get('categories') or [] if c.get('name')]
    if genres:
        video_game['genre'] = genres
    video_game.update({
        'operatingSystem': 'Web',
        'applicationCategory': 'Game',
        'inLanguage': 'en',
        'publisher': {'@type': 'Organization', 'name': site_name, 'url': home_url},
    })
    if game.get('updatedAt'):
        video_game['dateModified'] = str(game['updatedAt'])[:10]
    if game.get('ratingValue') is not None and game.get('ratingCount') is not None:
        video_game['aggregateRating'] = {
            '@type': 'AggregateRating',
            'ratingValue': str(game['ratingValue']),
            'ratingCount': str(game['ratingCount']),
            'bestRating': '5',
            'worstRating': '1',
        }
    video_game['offers'] = {'@type': 'Offer', 'price': '0', 'priceCurrency': 'USD'}

    return {
        '@context': 'https://schema.org',
        '@graph': [
            _breadcrumbs(('Home', home_url),
                         (category.get('name'), base + category_url_path),
                         (game.get('name'), game_url_abs)),
            webpage,
            video_game,
        ],
    }


def category_page_schema_graph(category: dict, games_for_page: list, path_with_page: str,
                               base_url: str, site_name: str) -> dict:
    """BreadcrumbList + CollectionPage + ItemList (first 20 games) for a category page."""
    base = rstrip_slash(base_url)
    path_norm = path_with_page.strip('/')
    canonical = f"{base}/{path_norm}/" if path_norm else f"{base}/"
    home_url = base + '/'
    name = with_games_suffix(category.get('name'))

    graph = [
        _breadcrumbs(('Home', home_url), (name, canonical)),
        {
            '@type': 'CollectionPage',
            'name': name,
            'url': canonical,
            'description': f"Browse {name} and discover new picks in this collection.",
            'inLanguage': 'en',
            'isPartOf': _website(site_name, home_url),
        },
    ]
    top = [g for g in (games_for_page or [])[:20] if g and g.get('slug') and g.get('name')]
    if top:
        graph.append({
            '@type': 'ItemList',
            'itemListElement': [
                {'@type': 'ListItem', 'position': i, 'url': f"{base}/{g['slug']}/", 'name': g['name']}
                for i, g in enumerate(top, start=1)
            ],
        })
    return {'@context': 'https://schema.org', '@graph': graph}


def static_page_schema(page_name: str, page_url: str, site_name: str, site_url: str) -> dict:
    """WebPage only (no VideoGame/Article) for static and search pages."""
    return {
        '@context': 'https://schema.org',
        '@type': 'WebPage',
        'name': page_name,
        'url': page_url,
        'inLanguage': 'en',
        'isPartOf': _website(site_name, site_url if site_url.endswith('/') else site_url + '/'),
    }
