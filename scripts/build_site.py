#!/usr/bin/env python3
"""
Build the static portal site from templates and the game catalog.

Reads templates/layouts/base.html and templates/pages/*.html, merges them with
content/games.json, and writes every page plus games.json, sitemap.xml and
robots.txt. By default the site is written into the project root (GitHub
Pages); PUBLISH_ROOT=0 or --out writes it elsewhere.

Pipeline:
    1. Load and validate the catalog (a game without a name fails the build)
    2. Normalize game slugs and derive category pages
    3. Remove stale game/category folders from the output
    4. Render home, 404, search, static, category and game pages
    5. Write games.json, sitemap.xml, robots.txt and copy assets
    6. Run hygiene checks and the full audit

Usage:
    python3 scripts/build_site.py                     # build into the project root
    python3 scripts/build_site.py --out dist          # build into dist/
    python3 scripts/build_site.py --data content/games.sample.json
    python3 scripts/build_site.py --no-audit          # skip the post-build audit
"""

import argparse
import json
import re
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path

from audit_site import (
    check_home_no_game_detail,
    check_output_no_old_urls,
    check_templates_no_old_urls,
    check_upload_refs,
    run_audit,
)
from catalog import (
    derive_categories,
    get_category_main,
    get_related_games,
    load_games,
    normalize_game_slugs,
    validate_games,
)
from seo import (
    category_meta_desc,
    category_meta_title,
    category_og_desc,
    category_page_schema_graph,
    game_meta_description,
    game_meta_title,
    game_og_description,
    game_page_schema_graph,
    home_schema_graph,
    inject_json_ld,
    inject_meta_and_og,
    json_ld_script,
    set_robots_noindex,
    static_meta_title,
    static_page_schema,
    strip_keywords,
    with_games_suffix,
)
from site_config import SiteConfig, get_base_url, load_config
from site_utils import category_key, date_sort_key, default_project_root, escape_html, truncate_desc
from templating import (
    HOT_GAMES_CARD,
    LABEL_TRENDING,
    NEW_GAMES_CARD,
    SNOWRIDER_CARD,
    TRENDING_CARD,
    breadcrumb,
    build_page,
    category_path,
    category_sticker,
    category_url,
    current_crumb,
    fill_card_block,
    game_url,
    has_category_matching,
    replace_category_links,
    replace_game_links,
)

NOT_FOUND_DESC = "Page not found. Return to the homepage or use search to find the game you're looking for."


# ============================================================================
# Output
# ============================================================================

def write_output(out_dir: Path, rel_path: str, content: str):
    """Write a file under the output folder, creating parent folders."""
    target = Path(out_dir) / rel_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding='utf-8')


def finalize_links(html: str, canonical_map: dict, config: SiteConfig) -> str:
    """Rewrite legacy /category/ and /games/ links left in the templates."""
    html = replace_category_links(html, canonical_map)
    return replace_game_links(html, config.site_url)


def newest_first(games: list) -> list:
    """Sort by updatedAt descending; equal dates keep catalog order."""
    return sorted(games, key=lambda g: -date_sort_key(g.get('updatedAt')))


def js_string_hash(text: str) -> int:
    """Signed 32-bit ((h << 5) - h + code) string hash."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


# ============================================================================
# Home
# ============================================================================

def _has_trending(game: dict) -> bool:
    return any('trending' in str(c.get('slug') or '').lower() or 'trending' in str(c.get('name') or '').lower()
               for c in game.get('categories') or [])


def build_home_content(home_html: str, games: list, config: SiteConfig, ref_date: datetime = None) -> str:
    """Fill the home template: new games, trending rail, snow rider rail, breadcrumb, stickers."""
    hero = config.home_game_slug
    others = [g for g in games if g.get('slug') != hero]
    out = home_html

    new_games = newest_first(others)[:config.home_new_games_limit]
    out = fill_card_block(out, '<!-- HOME:NEW_GAMES_START -->', '<!-- HOME:NEW_GAMES_END -->', new_games,
                          joiner='\n\t\t\t\t\t', ref_date=ref_date)

    trending = newest_first([g for g in others if _has_trending(g)])[:config.home_trending_limit]
    filled = fill_card_block(out, '<!-- HOME:TRENDING_START -->', '<!-- HOME:TRENDING_END -->', trending,
                             card_markers=TRENDING_CARD, label=LABEL_TRENDING, ref_date=ref_date)
    if filled != out:
        rows = '2' if len(trending) >= 10 else '1'
        out = filled.replace('data-rows="__TRENDING_ROWS__"', f'data-rows="{rows}"', 1)

    snowrider = newest_first([g for g in others if has_category_matching(g, r'snow-rider|snow\s*rider')])
    out = fill_card_block(out, '<!-- HOME:SNOWRIDER_START -->', '<!-- HOME:SNOWRIDER_END -->',
                          snowrider[:config.home_snowrider_limit],
                          card_markers=SNOWRIDER_CARD, ref_date=ref_date)

    out = out.replace('<!-- HOME:BREADCRUMB -->', breadcrumb(current_crumb('Home')), 1)
    stickers = ''.join(category_sticker(c['name'], c['slug']) for c in config.home_categories)
    return out.replace('<!-- HOME:CATE -->', stickers, 1)


def build_home_page(base_html: str, home_html: str, games: list, config: SiteConfig,
                    base_url: str, canonical_map: dict, ref_date: datetime = None) -> str:
    content = build_home_content(home_html, games, config, ref_date)
    html = build_page(base_html, content, 'home')
    html = inject_meta_and_og(html, title=config.home_title,
                              desc=truncate_desc(config.home_description, 160),
                              canonical='/', image=config.og_image_path, base_url=base_url)
    schema = home_schema_graph(base_url, config.site_name, config.home_description,
                               config.home_genres, config.logo_path, config.og_image_path)
    html = inject_json_ld(html, json_ld_script(schema))
    html = finalize_links(html, canonical_map, config)
    return html.replace('__HOME_CANONICAL_URL__', base_url + '/')


# ============================================================================
# Game pages
# ============================================================================

def read_about(path: Path):
    """Trimmed HTML fragment from a content file, or None when it does not exist."""
    if path.exists():
        return path.read_text(encoding='utf-8').strip()
    return None


def build_game_content(template: str, game: dict, games: list, canonical_map: dict,
                       config: SiteConfig, ref_date: datetime = None) -> str:
    name = game.get('name') or ''
    slug = game.get('slug') or ''
    about = read_about(config.content_dir / 'games' / f"{slug}-about.html")
    if about is None:
        about = escape_html(game.get('description') or '')
    image = (game.get('image') or '').replace('"', '&quot;')
    cat = get_category_main(game, config.category_priority)
    cat_slug = _canonical_category(cat, canonical_map)
    cat_link = category_url(cat_slug)

    html = template.replace('<!-- GAME:TITLE -->', escape_html(name))
    html = html.replace('<!-- GAME:DESCRIPTION -->', about, 1)

    thumb = (f'<img alt="{escape_html(name)} game thumbnail" height="80" src="{image}" '
             f'title="{escape_html(name)}" width="80" />')
    html = html.replace('<!-- GAME:THUMBNAIL -->', thumb, 1)

    iframe = ('<div class="game-flow game-flow--iframe" style="padding:0;margin-bottom:0">'
              '<iframe allowfullscreen="" border="0" class="iframe-default" frameborder="0" height="480" '
              f'id="iframehtml5" scrolling="no" src="{escape_html(game.get("iframeUrl") or "")}" '
              f'title="{escape_html(name)}" width="100%"></iframe></div>')
    html = html.replace('<!-- GAME:IFRAME -->', iframe, 1)

    cat_crumb = f'<a class="bread-crumb-item bread-crumb-cat" href="{cat_link}">{escape_html(cat.get("name"))}</a>'
    html = html.replace('<!-- GAME:BREADCRUMB -->', breadcrumb(cat_crumb, current_crumb(name)), 1)
    html = html.replace('<!-- GAME:CATEGORY_TAG -->', category_sticker(cat.get('name'), cat_slug), 1)

    related = get_related_games(games, slug, cat_slug, config.related_limit, canonical_map)
    html = fill_card_block(html, '<!-- GAME:RELATED_START -->', '<!-- GAME:RELATED_END -->', related,
                           joiner='\n\t\t\t\t\t\t\t', ref_date=ref_date)

    others = newest_first([g for g in games if g.get('slug') != slug])[:config.game_page_new_games_limit]
    html = fill_card_block(html, '<!-- GAME:HOT_GAMES_START -->', '<!-- GAME:HOT_GAMES_END -->', others,
                           card_markers=HOT_GAMES_CARD, joiner='\n\t\t\t\t\t\t\t', ref_date=ref_date)
    html = fill_card_block(html, '<!-- GAME:NEW_GAMES_START -->', '<!-- GAME:NEW_GAMES_END -->', others,
                           card_markers=NEW_GAMES_CARD, joiner='\n\t\t\t\t\t\t\t', ref_date=ref_date)
    return html


def _canonical_category(cat: dict, canonical_map: dict) -> str:
    key = category_key(cat)
    return canonical_map.get(key) or key


def build_redirect_to_home(base_url: str, site_name: str) -> str:
    """Standalone page sending the hero game's URL to the home page."""
    home = base_url + '/'
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{escape_html(site_name)} – Redirect</title>
  <link rel="canonical" href="{home}">
  <meta name="robots" content="noindex,follow">
  <meta http-equiv="refresh" content="0;url={home}">
  <script>window.location.replace({json.dumps(home)});</script>
</head>
<body>
  <p>Redirecting to <a href="{home}">{escape_html(site_name)}</a>…</p>
</body>
</html>"""


def build_game_page(base_html: str, template: str, game: dict, games: list, config: SiteConfig,
                    base_url: str, canonical_map: dict, ref_date: datetime = None) -> str:
    content = build_game_content(template, game, games, canonical_map, config, ref_date)
    html = build_page(base_html, content, 'game')

    game_path = game_url(game['slug'])
    desc = game_meta_description(game)
    html = inject_meta_and_og(html, title=game_meta_title(game.get('name'), config.site_name),
                              desc=desc, og_desc=game_og_description(desc, config.site_name),
                              canonical=game_path, image=game.get('image') or '',
                              url=game_path, base_url=base_url)
    html = strip_keywords(html)

    cat = get_category_main(game, config.category_priority)
    cat_slug = _canonical_category(cat, canonical_map)
    schema = game_page_schema_graph(game, base_url, config.site_name, cat, category_url(cat_slug))
    html = inject_json_ld(html, json_ld_script(schema))
    html = html.replace('__GAME_CANONICAL_URL__', base_url + game_path)
    return finalize_links(html, canonical_map, config)


def build_game_pages(base_html: str, template: str, games: list, config: SiteConfig,
                     base_url: str, canonical_map: dict, ref_date: datetime = None) -> int:
    """Write <slug>.html and <slug>/index.html for every game. Returns pages written."""
    count = 0
    for game in games:
        slug = game.get('slug')
        if not slug:
            continue
        if slug == config.home_game_slug:
            html = build_redirect_to_home(base_url, config.site_name)
        else:
            html = build_game_page(base_html, template, game, games, config, base_url, canonical_map, ref_date)
        write_output(config.out_dir, f"{slug}.html", html)
        write_output(config.out_dir, f"{slug}/index.html", html)
        count += 1
    return count


# ============================================================================
# Category pages
# ============================================================================

def other_categories(slug: str, fixed_categories: list, count: int = 4) -> list:
    """Deterministic pick of other navigation categories for a category page."""
    others = [c for c in fixed_categories if c['slug'] != slug]
    return sorted(others, key=lambda c: js_string_hash(slug + c['slug']))[:count]


def pagination_nav(slug: str, page: int, total_pages: int) -> str:
    if total_pages <= 1:
        return ''
    prev_link = ''
    next_link = ''
    if page > 1:
        prev_link = (f'<a class="category-pagination-link category-pagination-prev" '
                     f'href="{category_url(slug, page - 1)}">« Prev</a>')
    if page < total_pages:
        next_link = (f'<a class="category-pagination-link category-pagination-next" '
                     f'href="{category_url(slug, page + 1)}">Next »</a>')
    numbers = []
    for p in range(1, total_pages + 1):
        if p == page:
            numbers.append(f'<span class="category-pagination-current">{p}</span>')
        else:
            numbers.append(f'<a class="category-pagination-link" href="{category_url(slug, p)}">{p}</a>')
    return (f'<nav class="category-pagination" aria-label="Category pages">{prev_link}'
            f'<span class="category-pagination-numbers">{"".join(numbers)}</span>{next_link}</nav>')


def build_category_content(template: str, category: dict, games_for_page: list, page: int,
                           total_pages: int, total_games: int, config: SiteConfig,
                           ref_date: datetime = None) -> str:
    name = category.get('name') or ''
    slug = category.get('slug') or ''
    about_title = with_games_suffix(name)

    if page > 1:
        crumbs = breadcrumb(f'<a class="bread-crumb-item" href="{category_url(slug)}">{escape_html(about_title)}</a>',
                            current_crumb(f"Page {page}"))
    else:
        crumbs = breadcrumb(current_crumb(about_title))

    if total_games == 0:
        subtitle = 'No games in this category yet.'
        empty = ('<p class="category-empty-msg">No games in this category yet. '
                 'Check back later or try another category.</p>')
    else:
        subtitle = ('1 game' if total_games == 1 else f"{total_games} games") + ' in this category'
        empty = ''

    about = read_about(config.content_dir / 'categories' / f"{slug}-about.html")
    if about is None:
        desc = escape_html(f"Browse {about_title} and play free online in your browser.")
        names = '\n\t\t\t\t\t\t'.join(f'<li><a href="/{g["slug"]}/">{escape_html(g.get("name"))}</a></li>'
                                      for g in games_for_page[:10])
        about = (f'<p class="category-about-desc">{desc}</p>\n'
                 f'\t\t\t\t\t\t\t\t\t<h3 class="category-popular-heading">'
                 f'{escape_html(f"What are the most popular {about_title}")}</h3>\n'
                 f'\t\t\t\t\t\t\t\t\t<ul class="category-game-names-list">{names}</ul>')

    stickers = ''.join(category_sticker(c['name'], c['slug'])
                       for c in other_categories(slug, config.fixed_categories))

    html = template.replace('<!-- CATEGORY:BREADCRUMB -->', crumbs, 1)
    html = html.replace('<!-- CATEGORY:TITLE -->', escape_html(about_title))
    html = html.replace('<!-- CATEGORY:ABOUT_TITLE -->', escape_html(about_title))
    html = html.replace('<!-- CATEGORY:SUBTITLE -->', escape_html(subtitle), 1)
    html = html.replace('<!-- CATEGORY:ABOUT_BODY -->', about, 1)
    html = html.replace('<!-- CATEGORY:EMPTY -->', empty, 1)
    html = html.replace('<!-- CATEGORY:OTHER_CATE -->', stickers, 1)
    html = html.replace('<!-- CATEGORY:PAGINATION -->', pagination_nav(slug, page, total_pages), 1)
    return fill_card_block(html, '<!-- CATEGORY:LIST_START -->', '<!-- CATEGORY:LIST_END -->',
                           games_for_page, ref_date=ref_date)


def build_category_pages(base_html: str, template: str, categories: dict, config: SiteConfig,
                         base_url: str, canonical_map: dict, ref_date: datetime = None) -> int:
    """Write <slug>.games/index.html and <slug>.games/page/N/index.html. Returns pages written."""
    per_page = config.category_games_per_page
    count = 0
    for slug, category in categories.items():
        all_games = category.get('games') or []
        total_pages = max(1, -(-len(all_games) // per_page))
        name = category.get('name') or slug
        override = config.category_meta.get(slug)

        for page in range(1, total_pages + 1):
            games_for_page = all_games[(page - 1) * per_page:page * per_page]
            content = build_category_content(template, category, games_for_page, page, total_pages,
                                             len(all_games), config, ref_date)
            html = build_page(base_html, content, 'category')

            if override:
                if page > 1:
                    title = f"{name} – Page {page} | {config.site_name}"
                else:
                    title = f"{override['title']} | {config.site_name}"
                desc = truncate_desc(override['description'], 160)
                og_title = override.get('og_title') if page == 1 else None
                og_desc = truncate_desc(override.get('og_description') or override['description'], 160)
            else:
                title = category_meta_title(name, page, total_pages, config.site_name)
                desc = category_meta_desc(name)
                og_title = None
                og_desc = category_og_desc(name)

            canonical = category_url(slug, page)
            html = inject_meta_and_og(html, title=title, desc=desc, og_title=og_title, og_desc=og_desc,
                                      canonical=canonical, base_url=base_url,
                                      image=base_url + config.og_image_path, url=canonical)
            html = strip_keywords(html)
            schema_path = category_path(slug) if page <= 1 else f"{category_path(slug)}/page/{page}"
            schema = category_page_schema_graph(category, games_for_page, schema_path, base_url, config.site_name)
            html = inject_json_ld(html, json_ld_script(schema))
            html = finalize_links(html, canonical_map, config)

            rel = f"{category_path(slug)}/index.html" if page <= 1 else f"{category_path(slug)}/page/{page}/index.html"
            write_output(config.out_dir, rel, html)
            count += 1
    return count


# ============================================================================
# Static, 404 and search pages
# ============================================================================

def build_static_pages(base_html: str, template: str, config: SiteConfig, base_url: str,
                       canonical_map: dict) -> int:
    for page in config.static_pages:
        title = page['title']
        body = read_about(config.content_dir / 'static' / page['file'])
        if body is None:
            body = f'<h1 class="home-title">{escape_html(title)}</h1><p>Content for {escape_html(title)}.</p>'
        content = template.replace('<!-- STATIC:TITLE -->', '', 1).replace('<!-- STATIC:CONTENT -->', body, 1)

        html = build_page(base_html, content, 'static')
        desc = config.static_descriptions.get(page['slug']) or f"{title} - {config.site_name}."
        html = inject_meta_and_og(html, title=static_meta_title(title, config.site_name),
                                  desc=truncate_desc(desc, 160), canonical=f"/{page['slug']}/",
                                  base_url=base_url, image=base_url + config.logo_path)
        html = strip_keywords(html)
        schema = static_page_schema(title, f"{base_url}/{page['slug']}/", config.site_name, base_url + '/')
        html = inject_json_ld(html, json_ld_script(schema))
        html = finalize_links(html, canonical_map, config)
        write_output(config.out_dir, f"{page['slug']}/index.html", html)
    return len(config.static_pages)


def plays_per_month(game: dict) -> float:
    """playsPerMonth as a number; strings are coerced, anything unparsable counts as 0."""
    try:
        return float(game.get('playsPerMonth') or 0)
    except (TypeError, ValueError):
        return 0.0


def build_404_page(base_html: str, template: str, games: list, config: SiteConfig,
                   canonical_map: dict, ref_date: datetime = None) -> str:
    hot = [g for g in games if has_category_matching(g, r'hot')]
    hot = sorted(hot, key=lambda g: -plays_per_month(g))[:config.not_found_hot_limit]
    content = fill_card_block(template, '<!-- 404:HOT_GAMES_START -->', '<!-- 404:HOT_GAMES_END -->', hot,
                              joiner='\n\t\t\t\t\t', ref_date=ref_date)
    html = build_page(base_html, content, '404')

    title = f"Page Not Found | {config.site_name}"
    desc = escape_html(NOT_FOUND_DESC)
    html = re.sub(r'<title>[^<]*</title>', lambda m: f'<title>{escape_html(title)}</title>', html, count=1)
    html = re.sub(r'<meta name="title" content="[^"]*">\s*', '', html, flags=re.I)
    html = re.sub(r'<meta name="description"[\s\S]*?content="[^"]*">',
                  lambda m: f'<meta name="description" content="{desc}">', html, count=1)
    for prop in ('og:description', 'twitter:description'):
        html = re.sub(rf'<meta property="{prop}"[\s\S]*?content="[^"]*">',
                      lambda m: f'<meta property="{prop}" content="{desc}">', html, count=1)
    for prop in ('og:title', 'twitter:title'):
        html = re.sub(rf'<meta property="{prop}" content="[^"]*">',
                      lambda m: f'<meta property="{prop}" content="{escape_html(title)}">', html, count=1)
    html = set_robots_noindex(html)
    html = strip_keywords(html)
    html = re.sub(r'<link rel="canonical" href="[^"]*">\s*', '', html)
    html = re.sub(r'<meta property="(og|twitter):url" content="[^"]*">\s*', '', html, flags=re.I)
    html = re.sub(r'<script type="application/ld\+json">[\s\S]*?</script>\s*', '', html)
    return finalize_links(html, canonical_map, config)


def build_search_page(base_html: str, template: str, config: SiteConfig, base_url: str,
                      canonical_map: dict) -> str:
    html = build_page(base_html, template, 'search')
    desc = (f"Search {config.site_name} for free online games. "
            f"Find your favorite games by name, category, or keyword.")
    html = inject_meta_and_og(html, title=f"Search | {config.site_name}", desc=desc,
                              canonical='/search/', base_url=base_url)
    html = strip_keywords(html)
    schema = static_page_schema('Search', base_url + '/search/', config.site_name, base_url + '/')
    html = inject_json_ld(html, json_ld_script(schema))
    html = set_robots_noindex(html)
    return finalize_links(html, canonical_map, config)


# ============================================================================
# Sitemap, robots, games.json
# ============================================================================

def build_sitemap(base_url: str, games: list, category_slugs, static_pages: list,
                  build_date: str, home_game_slug: str) -> str:
    """Home, games (hero excluded), categories and static pages. Never search or 404."""
    urls = [(f"{base_url}/", build_date)]
    for game in games:
        slug = game.get('slug')
        if not slug or slug == home_game_slug:
            continue
        lastmod = str(game.get('updatedAt') or '')[:10] or build_date
        urls.append((f"{base_url}/{slug}", lastmod))
    for slug in category_slugs:
        urls.append((f"{base_url}/{category_path(slug)}/", build_date))
    for page in static_pages:
        urls.append((f"{base_url}/{page['slug']}/", build_date))

    lines = '\n'.join(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>" for loc, lastmod in urls)
    return ('<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            f"{lines}\n"
            '</urlset>\n')


def build_robots(base_url: str) -> str:
    return ("User-agent: *\n"
            "Allow: /\n"
            "Disallow: /dist/\n"
            "Disallow: /scripts/\n"
            "Disallow: /templates/\n"
            "Disallow: /docs/\n"
            "Disallow: /content/\n"
            f"Sitemap: {base_url}/sitemap.xml\n")


def games_json(games: list) -> str:
    """Normalized catalog for the client-side search and sidebars."""
    return json.dumps(games, ensure_ascii=False, separators=(',', ':'))


# ============================================================================
# Output housekeeping
# ============================================================================

def remove_stale_output(config: SiteConfig, game_slugs: set, category_paths: set) -> list:
    """
    Delete output folders for games and categories that no longer exist.

    When building into the project root, source folders are never touched.
    Returns the removed folder names.
    """
    out_dir = config.out_dir
    removed = []
    for legacy in ('games', 'category'):
        if (out_dir / legacy).is_dir():
            shutil.rmtree(out_dir / legacy)
            removed.append(legacy)
    if not out_dir.exists():
        return removed

    into_root = config.builds_into_root
    for entry in sorted(out_dir.iterdir()):
        if not entry.is_dir():
            continue
        name = entry.name
        if into_root and (name in config.root_keep_dirs or name.startswith('.') or name.endswith('.egg-info')):
            continue
        if name.endswith('.games'):
            stale = name not in category_paths
        else:
            stale = name not in config.output_keep_dirs and name not in game_slugs
        if stale:
            shutil.rmtree(entry)
            removed.append(name)
    return removed


def ensure_game_images_in_upload(root: Path, games: list) -> int:
    """Copy /upload/<file> images that sit at the project root into upload/."""
    upload_dir = Path(root) / 'upload'
    upload_dir.mkdir(parents=True, exist_ok=True)
    copied = 0
    for game in games:
        image = game.get('image')
        if not isinstance(image, str) or not image.startswith('/upload/'):
            continue
        file = re.sub(r'^/upload/?', '', image).split('?')[0]
        target = upload_dir / file
        source = Path(root) / Path(file).name
        if not target.exists() and source.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            copied += 1
    return copied


def copy_assets(config: SiteConfig):
    """Copy theme/data/upload/play folders and root favicons into a separate output folder."""
    if config.builds_into_root:
        return
    for name in config.asset_dirs:
        src = config.root / name
        if src.is_dir():
            shutil.copytree(src, config.out_dir / name, dirs_exist_ok=True)
    for name in config.root_assets:
        src = config.root / name
        if src.is_file():
            shutil.copyfile(src, config.out_dir / name)


def ensure_og_image(config: SiteConfig):
    """Fall back to the logo when the share image is missing from the output."""
    og_image = config.out_dir / config.og_image_path.lstrip('/')
    logo = config.out_dir / config.logo_path.lstrip('/')
    if not og_image.exists() and logo.exists():
        og_image.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(logo, og_image)
        print(f"⚠️  Created {config.og_image_path} from logo (add a 1200x630 image for better shares).",
              file=sys.stderr)


# ============================================================================
# Build
# ============================================================================

def read_templates(config: SiteConfig) -> dict:
    """Base layout and page templates. Missing files raise FileNotFoundError."""
    templates = {'base': (config.layouts_dir / 'base.html').read_text(encoding='utf-8')}
    for name in ('home', 'game', 'category', 'static', '404', 'search'):
        templates[name] = (config.pages_dir / f"{name}.html").read_text(encoding='utf-8')
    return templates


def report_failures(header: str, failures: list) -> bool:
    if not failures:
        return False
    print(header, file=sys.stderr)
    for f in failures:
        print(f"  {f}", file=sys.stderr)
    return True


def build(config: SiteConfig, run_audits: bool = True, ref_date: datetime = None) -> int:
    """Run the whole pipeline. Returns a process exit code."""
    ref_date = ref_date or datetime.now(timezone.utc)
    build_date = ref_date.date().isoformat()
    out_dir = config.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print(f"Building {config.site_name}")
    print("=" * 60)

    bad_templates = check_templates_no_old_urls(config.templates_dir, config.root)
    if report_failures("ERROR: templates contain forbidden URLs (/games/ or /tag/):", bad_templates):
        return 1
    templates = read_templates(config)

    games = load_games(config.data_path)
    validate_games(games, config.root, config.placeholder_image_path)
    slug_changes = normalize_game_slugs(games)
    index = derive_categories(games, config.fixed_categories, config.category_aliases)
    canonical_map = index.canonical_map
    game_slugs = {g['slug'] for g in games}

    removed = remove_stale_output(config, game_slugs, index.paths)
    if removed:
        print(f"Removed {len(removed)} stale folder(s): {', '.join(removed)}")

    base_url = get_base_url(config)
    base = templates['base']

    write_output(out_dir, 'index.html',
                 build_home_page(base, templates['home'], games, config, base_url, canonical_map, ref_date))
    write_output(out_dir, '404.html',
                 build_404_page(base, templates['404'], games, config, canonical_map, ref_date))
    write_output(out_dir, 'search/index.html',
                 build_search_page(base, templates['search'], config, base_url, canonical_map))
    write_output(out_dir, 'games.json', games_json(games))
    static_count = build_static_pages(base, templates['static'], config, base_url, canonical_map)
    category_count = build_category_pages(base, templates['category'], index.categories, config,
                                          base_url, canonical_map, ref_date)
    game_count = build_game_pages(base, templates['game'], games, config, base_url, canonical_map, ref_date)
    write_output(out_dir, 'sitemap.xml', build_sitemap(base_url, games, index.categories, config.static_pages,
                                                       build_date, config.home_game_slug))
    write_output(out_dir, 'robots.txt', build_robots(base_url))

    ensure_game_images_in_upload(config.root, games)
    copy_assets(config)
    ensure_og_image(config)

    print(f"  Game pages:     {game_count}")
    print(f"  Category pages: {category_count}")
    print(f"  Static pages:   {static_count}")

    skip_dirs = config.root_keep_dirs if config.builds_into_root else ()
    failed = report_failures("ERROR: output contains forbidden URLs (/games/ or /tag/):",
                             check_output_no_old_urls(out_dir, skip_dirs))
    home_fails = check_home_no_game_detail(out_dir)
    upload_fails = check_upload_refs(out_dir, skip_dirs)
    for f in home_fails + upload_fails:
        print(f, file=sys.stderr)
    if upload_fails:
        print("\nFix: point game images in the catalog at files in upload/.", file=sys.stderr)
    if failed or home_fails or upload_fails:
        return 1

    if run_audits:
        fails, warns = run_audit(out_dir, games, config.root, index.categories, config.root_keep_dirs)
        for w in warns:
            print(w, file=sys.stderr)
        if fails:
            for f in fails:
                print(f, file=sys.stderr)
            print("\nAudit failed. Fix the above and rebuild.", file=sys.stderr)
            return 1

    changes = slug_changes + index.changes
    if changes:
        print("\nSlug changes (old -> new):", file=sys.stderr)
        for change in changes:
            print(f"  {change}", file=sys.stderr)

    where = 'project root' if config.builds_into_root else str(out_dir)
    print(f"\n✅ Build done. Output at {where}")
    return 0


def main():
    parser = argparse.ArgumentParser(description='Build the static portal site')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Project root (templates, content)')
    parser.add_argument('--out', type=Path, help='Output folder (default: root, or dist/ with PUBLISH_ROOT=0)')
    parser.add_argument('--data', help='Catalog path relative to the root (default: content/games.json)')
    parser.add_argument('--no-audit', action='store_true', help='Skip the post-build audit')
    args = parser.parse_args()

    try:
        config = load_config(args.root, out_dir=args.out, data_file=args.data)
        return build(config, run_audits=not args.no_audit)
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    exit(main())
