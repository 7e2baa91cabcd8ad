"""Tests for slug, string and date helpers."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

import site_utils
from site_utils import (
    RESERVED_SLUGS,
    absolute_url,
    category_key,
    date_sort_key,
    default_project_root,
    dedupe_slug,
    ensure_not_reserved,
    escape_html,
    is_slug_dirty,
    load_env,
    normalize_and_validate_slug,
    parse_date,
    slugify,
    strip_slashes,
    truncate_desc,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Snow Rider 3D", "snow-rider-3d"),
        ("Cut & Paste", "cut-and-paste"),
        ("Đường đua", "duong-dua"),
        ("  --Moto   X3M--  ", "moto-x3m"),
        ("!!!", "item"),
        ("", "item"),
        (None, "item"),
    ],
)
def test_slugify(text, expected) -> None:
    assert slugify(text) == expected


def test_slugify_cuts_at_last_dash_when_too_long() -> None:
    assert slugify("snow rider three d", max_len=10) == "snow"
    assert slugify("abcdefghijklmnop", max_len=5) == "abcde"


def test_dedupe_slug_appends_counter() -> None:
    used = {"slope", "slope-2"}
    assert dedupe_slug("slope", used) == "slope-3"
    assert "slope-3" in used
    assert dedupe_slug("", used) == "item"


def test_ensure_not_reserved() -> None:
    assert ensure_not_reserved("search") == "search-game"
    assert ensure_not_reserved("Play") == "Play-game"
    assert ensure_not_reserved("slope") == "slope"
    assert ensure_not_reserved("") == "item-game"


def test_normalize_and_validate_slug_full_chain() -> None:
    used = set()
    assert normalize_and_validate_slug("Search", used) == "search-game"
    assert normalize_and_validate_slug("Search", used) == "search-game-2"
    assert normalize_and_validate_slug("Tag", used, RESERVED_SLUGS, "-cat") == "tag-cat"


def test_index_slug_cannot_overwrite_home_page() -> None:
    assert "index" in RESERVED_SLUGS
    assert normalize_and_validate_slug("Index", set()) == "index-game"


@pytest.mark.parametrize(
    "slug, dirty",
    [("snow-rider-3d", False), ("2048", False), ("Snow", True), ("a--b", True), ("-a", True), ("", True), (None, True)],
)
def test_is_slug_dirty(slug, dirty) -> None:
    assert is_slug_dirty(slug) is dirty


def test_category_key_prefers_slug() -> None:
    assert category_key({"name": "Hot Games", "slug": "hot"}) == "hot"
    assert category_key({"name": "Hot Games"}) == "hot-games"
    assert category_key({}) == "games"


def test_escape_html() -> None:
    assert escape_html('<a href="x">Tom & Jerry</a>') == "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&lt;/a&gt;"
    assert escape_html(None) == ""


def test_truncate_desc_keeps_short_text_and_flattens_newlines() -> None:
    assert truncate_desc("line one\nline two") == "line one line two"


def test_truncate_desc_cuts_on_word_boundary() -> None:
    text = "word " * 40
    out = truncate_desc(text, 160)
    assert len(out) <= 160
    assert out.endswith("word...")


def test_strip_slashes_and_absolute_url() -> None:
    assert strip_slashes("/slope/") == "slope"
    assert strip_slashes(None) == ""
    assert absolute_url("/upload/a.png", "https://example.com") == "https://example.com/upload/a.png"
    assert absolute_url("upload/a.png", "https://example.com") == "https://example.com/upload/a.png"
    assert absolute_url("https://cdn.example.com/a.png", "https://example.com") == "https://cdn.example.com/a.png"
    assert absolute_url("", "https://example.com") == ""


def test_parse_date_variants() -> None:
    assert parse_date("2026-01-05") == datetime(2026, 1, 5, tzinfo=timezone.utc)
    assert parse_date("2026-01-05T10:00:00Z") == datetime(2026, 1, 5, 10, tzinfo=timezone.utc)
    assert parse_date("not a date") is None
    assert parse_date(None) is None


def test_date_sort_key_orders_missing_dates_last() -> None:
    dates = ["2025-01-01", None, "2026-01-01"]
    assert sorted(dates, key=lambda d: -date_sort_key(d)) == ["2026-01-01", "2025-01-01", None]


def test_load_env_does_not_override_existing(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PORTAL_TEST_KEEP", "original")
    monkeypatch.setenv("PORTAL_TEST_NEW", "")
    monkeypatch.delenv("PORTAL_TEST_NEW")
    env = tmp_path / ".env"
    env.write_text('# comment\nexport PORTAL_TEST_NEW="fresh"\nPORTAL_TEST_KEEP=changed\n')
    load_env(env)

    assert os.environ["PORTAL_TEST_NEW"] == "fresh"
    assert os.environ["PORTAL_TEST_KEEP"] == "original"


def test_default_project_root_prefers_checkout(tmp_path, monkeypatch) -> None:
    checkout = tmp_path / "checkout"
    (checkout / "templates").mkdir(parents=True)
    monkeypatch.setattr(site_utils, "PROJECT_DIR", checkout)
    assert default_project_root() == checkout


def test_default_project_root_falls_back_to_cwd(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(site_utils, "PROJECT_DIR", tmp_path / "lib" / "python3.11")
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    assert default_project_root() == Path.cwd()
