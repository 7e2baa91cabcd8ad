"""Tests for the post-build audit and hygiene checks."""

from audit_site import (
    audit_data,
    audit_html_files,
    audit_images_alt,
    audit_links,
    audit_sitemap,
    check_home_no_game_detail,
    check_output_no_old_urls,
    check_templates_no_old_urls,
    check_upload_refs,
    iter_html_files,
    run_audit,
)

GAME_PAGE = """<html><head><title>Slope</title>
<meta name="description" content="Roll.">
<link rel="canonical" href="https://snowrider-3d.org/slope">
<script type="application/ld+json">{"@graph":[{"@type":"BreadcrumbList"},{"@type":"VideoGame"}]}</script>
</head><body><a href="/hot.games/">Hot</a></body></html>"""


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_audit_data_reports_bad_records(tmp_path) -> None:
    (tmp_path / "upload").mkdir()
    (tmp_path / "upload" / "ok.png").write_bytes(b"png")
    games = [
        {"name": "Ok", "slug": "ok", "categories": [{"name": "Car"}], "description": "d", "image": "/upload/ok.png"},
        {"name": "Dup", "slug": "ok", "categories": [{"name": "Car"}], "description": "d"},
        {"name": "", "slug": "search", "categories": []},
        {"name": "Img", "slug": "img", "categories": [{"name": "Car"}], "description": "d", "image": "/upload/no.png"},
    ]
    fails, warns = audit_data(games, root=tmp_path)
    assert '[FAIL] Duplicate slug "ok" (game: Dup)' in fails
    assert "[FAIL] Game at index 2 has no name" in fails
    assert '[FAIL] Game "" slug "search" is reserved' in fails
    assert '[FAIL] Game "" has no categories (must have at least one)' in fails
    assert '[WARN] Game "" has no description (fallback used)' in warns
    assert '[WARN] Game "Img" image file not found: upload/no.png' in warns
    assert not any('"Ok"' in w for w in warns)


def test_audit_data_rejects_non_list() -> None:
    assert audit_data({"name": "x"}) == (["[FAIL] games is not an array"], [])


def test_iter_html_files_skips_source_and_dot_dirs(tmp_path) -> None:
    _write(tmp_path / "index.html", "x")
    _write(tmp_path / "slope" / "index.html", "x")
    _write(tmp_path / "templates" / "pages" / "home.html", "x")
    _write(tmp_path / ".git" / "x.html", "x")
    rels = [rel for rel, _ in iter_html_files(tmp_path, ["templates"])]
    assert rels == ["index.html", "slope/index.html"]
    assert list(iter_html_files(tmp_path / "missing")) == []


def test_audit_html_files(tmp_path) -> None:
    _write(tmp_path / "slope.html", GAME_PAGE)
    _write(tmp_path / "slope" / "index.html", GAME_PAGE.replace('"VideoGame"', '"Thing"'))
    _write(tmp_path / "hot.games" / "page" / "2" / "index.html", "<title>Hot</title>")
    _write(tmp_path / "404.html", "<p>not found</p>")
    _write(tmp_path / "play" / "index.html", "<p>game</p>")
    _write(tmp_path / "snow-rider-3d.html", '<meta http-equiv="refresh" content="0;url=/">')

    fails = audit_html_files(tmp_path, {"slope", "snow-rider-3d"}, {"hot.games"})
    assert fails == [
        "[FAIL] hot.games/page/2/index.html missing canonical",
        "[FAIL] hot.games/page/2/index.html missing meta description",
        "[FAIL] hot.games/page/2/index.html missing BreadcrumbList schema",
        "[FAIL] slope/index.html missing VideoGame schema",
    ]


def test_audit_links() -> None:
    html = (
        '<a href="/tag/x/">t</a><a href="/games/slope">g</a><a href="/category/car/">c</a>'
        '<a href="/hot.games">h</a><a href="/hot.games/">ok</a><a href="/slope">ok</a>'
        '<a href="/upload/x.png">ok</a>'
    )
    fails = audit_links(html, "index.html", {"slope"}, {"hot.games"})
    assert fails == [
        '[FAIL] index.html has href="/tag/..." (forbidden)',
        '[FAIL] index.html has href="/games/..." (forbidden)',
        '[FAIL] index.html has href="/category/..." (forbidden)',
        '[FAIL] index.html category link missing trailing slash: href="/hot.games"',
    ]


def test_audit_images_alt() -> None:
    html = (
        '<img src="/a.png" alt="A">'
        '<img class="logo" src="/logo.png">'
        '<img class="nav-icon" src="/i.png" alt="">'
        '<img src="/b.png" alt="  ">'
        '<img src="/c.png">'
    )
    fails = audit_images_alt(html, "index.html")
    assert len(fails) == 2
    assert all(f.startswith("[FAIL] index.html img missing alt:") for f in fails)


def test_audit_sitemap() -> None:
    good = "<urlset><url><loc>https://x.org/</loc></url><url><loc>https://x.org/slope</loc></url></urlset>"
    assert audit_sitemap(good, 1) == []
    bad = "<urlset><url><loc>https://x.org/games/slope.html</loc></url><url><loc>https://x.org/404.html</loc></url></urlset>"
    fails = audit_sitemap(bad, 1)
    assert "[FAIL] sitemap.xml contains /games/" in fails
    assert "[FAIL] sitemap.xml contains 404.html" in fails
    assert "[FAIL] sitemap.xml missing home URL (/)" in fails
    assert "[FAIL] sitemap.xml has no game URLs but games.json has entries" in fails


def test_hygiene_checks(tmp_path) -> None:
    root = tmp_path
    _write(root / "templates" / "pages" / "game.html", '<a href="/games/x">x</a>')
    _write(root / "templates" / "pages" / "home.html", '<a href="/x">x</a>')
    assert check_templates_no_old_urls(root / "templates", root) == ["templates/pages/game.html"]

    out = tmp_path / "dist"
    _write(out / "index.html", '<h2 class="t">About Slope</h2><img src="/upload/a.png" alt="a">')
    _write(out / "slope" / "index.html", '<a href="/tag/x/">x</a>')
    assert check_output_no_old_urls(out) == ["slope/index.html"]
    assert check_home_no_game_detail(out) == [
        "[FAIL] index.html contains game detail (About <game name>). Home must only have home sections."
    ]
    assert check_upload_refs(out) == ["[FAIL] index.html: /upload/a.png not found"]
    _write(out / "upload" / "a.png", "png")
    assert check_upload_refs(out) == []


def test_run_audit_clean_site(tmp_path) -> None:
    out = tmp_path / "dist"
    _write(out / "slope.html", GAME_PAGE)
    _write(out / "index.html", '<title>Home</title><link rel="canonical" href="https://x.org/">')
    _write(out / "sitemap.xml", "<loc>https://x.org/</loc><loc>https://x.org/slope</loc>")
    games = [{"name": "Slope", "slug": "slope", "categories": [{"name": "Hot"}], "description": "d"}]
    fails, warns = run_audit(out, games, tmp_path, ["hot"], skip_dirs=["templates"])
    assert fails == []
    assert warns == []
