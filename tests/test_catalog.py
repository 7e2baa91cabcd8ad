"""Tests for catalog loading, validation, slug normalization and categories."""

import json

import pytest

from catalog import (
    PLACEHOLDER_PNG,
    SlugChange,
    derive_categories,
    ensure_placeholder_image,
    get_category_main,
    get_related_games,
    load_games,
    normalize_game_slugs,
    validate_games,
)
from site_config import FIXED_CATEGORIES


def _game(name, slug=None, *cats, **extra):
    game = {"name": name, "categories": [{"name": n, "slug": s} for n, s in cats]}
    if slug is not None:
        game["slug"] = slug
    game.update(extra)
    return game


# ============================================================================
# Loading and validation
# ============================================================================

def test_load_games_missing_and_invalid(tmp_path, capsys) -> None:
    assert load_games(tmp_path / "nope.json") == []
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert load_games(bad) == []
    obj = tmp_path / "obj.json"
    obj.write_text('{"name": "x"}')
    assert load_games(obj) == []
    err = capsys.readouterr().err
    assert "Data file not found" in err
    assert "Could not load games data" in err


def test_load_games_reads_array(tmp_path) -> None:
    path = tmp_path / "games.json"
    path.write_text(json.dumps([{"name": "Slope"}]))
    assert load_games(path) == [{"name": "Slope"}]


def test_ensure_placeholder_image_writes_once(tmp_path) -> None:
    path = ensure_placeholder_image(tmp_path)
    assert path.read_bytes() == PLACEHOLDER_PNG
    assert PLACEHOLDER_PNG.startswith(b"\x89PNG")
    path.write_bytes(b"custom")
    ensure_placeholder_image(tmp_path)
    assert path.read_bytes() == b"custom"


def test_validate_games_requires_name(tmp_path) -> None:
    with pytest.raises(ValueError, match="index 1 has no name"):
        validate_games([{"name": "Ok"}, {"name": "   "}], tmp_path)


@pytest.mark.parametrize("record", [None, "Slope", 42])
def test_validate_games_rejects_non_object_records(tmp_path, record) -> None:
    with pytest.raises(ValueError, match="index 1 is not an object"):
        validate_games([{"name": "Ok"}, record], tmp_path)


def test_validate_games_accepts_bare_category_names(tmp_path) -> None:
    games = [{"name": "Slope", "categories": ["Puzzle", {"name": "Hot", "slug": "hot"}], "categoryMain": "Hot"}]
    validate_games(games, tmp_path)
    assert games[0]["categories"] == [{"name": "Puzzle", "slug": "puzzle"}, {"name": "Hot", "slug": "hot"}]
    assert games[0]["categoryMain"] == {"name": "Hot", "slug": "hot"}


def test_validate_games_rejects_invalid_category_entry(tmp_path) -> None:
    with pytest.raises(ValueError, match='Game "Slope" has an invalid category entry: None'):
        validate_games([{"name": "Slope", "categories": [None]}], tmp_path)


def test_validate_games_fills_defaults(tmp_path, capsys) -> None:
    (tmp_path / "upload").mkdir()
    (tmp_path / "upload" / "slope.png").write_bytes(b"png")
    games = [
        {"name": "Cookie Clicker", "image": "/upload/missing.png"},
        _game("Slope", "slope", ("Sports", "sports"), image="/upload/slope.png", description="Roll."),
    ]
    validate_games(games, tmp_path)

    cookie, slope = games
    assert cookie["slug"] == "cookie-clicker"
    assert cookie["image"] == "/upload/placeholder.png"
    assert cookie["description"] == "Play Cookie Clicker online for free."
    assert cookie["categories"] == [{"name": "Other", "slug": "other"}]
    assert cookie["categoryMain"] == {"name": "Other", "slug": "other"}
    assert slope["image"] == "/upload/slope.png"
    assert slope["categoryMain"] == {"name": "Sports", "slug": "sports"}

    err = capsys.readouterr().err
    assert '[validate] Game "Cookie Clicker": missing slug, set to "cookie-clicker"' in err
    assert "image /upload/missing.png not found" in err
    assert '[validate] Game "Slope"' not in err


def test_validate_games_accepts_root_level_upload_image(tmp_path) -> None:
    (tmp_path / "hero.png").write_bytes(b"png")
    games = [_game("Hero", "hero", ("Hot Games", "hot"), image="/upload/hero.png", description="d")]
    validate_games(games, tmp_path)
    assert games[0]["image"] == "/upload/hero.png"


def test_normalize_game_slugs_cleans_dedupes_and_reports() -> None:
    games = [
        _game("Slope", "slope"),
        _game("Slope Two", "slope"),
        _game("Search", "search"),
        _game("Moto X3M", "Moto_X3M"),
        _game("No Slug"),
    ]
    changes = normalize_game_slugs(games)
    assert [g["slug"] for g in games] == ["slope", "slope-2", "search-game", "moto-x3m", "no-slug"]
    assert [str(c) for c in changes] == [
        "[game] slope -> slope-2 (Slope Two)",
        "[game] search -> search-game (Search)",
        "[game] Moto_X3M -> moto-x3m (Moto X3M)",
    ]


def test_slug_change_str_without_name() -> None:
    assert str(SlugChange("category", "a b", "a-b")) == "[category] a b -> a-b"


# ============================================================================
# Categories
# ============================================================================

def test_derive_categories_fixed_all_and_extras() -> None:
    games = [
        _game("Snow Rider 2", "snow-rider-2", ("Trending Games", "trending-games")),
        _game("Slope", "slope", ("Hot Games", "hot-games"), ("Sports", "sports")),
        _game("Tiny Fishing", "tiny-fishing", ("Idle Games", "idle"), ("New Games", "new-games")),
        _game("Weird", "weird", ("Search", "search")),
    ]
    index = derive_categories(games)

    slugs = list(index.categories)
    assert slugs[:len(FIXED_CATEGORIES)] == [c["slug"] for c in FIXED_CATEGORIES]
    assert slugs[len(FIXED_CATEGORIES)] == "all"
    assert "idle" in slugs and "search-cat" in slugs
    assert "new-games" not in slugs

    names = {slug: [g["slug"] for g in c["games"]] for slug, c in index.categories.items()}
    assert names["hot"] == ["slope"]
    assert names["trending"] == ["snow-rider-2"]
    assert names["snow-rider"] == ["snow-rider-2"]
    assert names["sports"] == ["slope"]
    assert names["idle"] == ["tiny-fishing"]
    assert names["kids"] == []
    assert names["all"] == ["snow-rider-2", "slope", "tiny-fishing", "weird"]

    assert index.canonical_map["hot-games"] == "hot"
    assert index.canonical_map["search"] == "search-cat"
    assert [str(c) for c in index.changes] == ["[category] search -> search-cat (Search)"]
    assert index.canonical({"name": "Hot Games"}) == "hot"
    assert "idle.games" in index.paths and "all.games" in index.paths


def test_derive_categories_never_duplicates_a_game() -> None:
    games = [_game("Snow Rider 3D", "snow-rider-3d", ("Snow Rider Games", "snow-rider"), ("Snow Rider", "snow-rider"))]
    index = derive_categories(games)
    assert len(index.categories["snow-rider"]["games"]) == 1


def test_get_category_main_order() -> None:
    explicit = _game("A", "a", ("Puzzle", "puzzle"), categoryMain={"name": "Kids", "slug": "kids"})
    assert get_category_main(explicit) == {"name": "Kids", "slug": "kids"}

    by_priority = _game("B", "b", ("Puzzle", "puzzle"), ("Hot Games", "hot"))
    assert get_category_main(by_priority) == {"name": "Hot Games", "slug": "hot"}

    first = _game("C", "c", ("Idle", "idle"), ("Fun", "fun"))
    assert get_category_main(first) == {"name": "Idle", "slug": "idle"}

    new_only = _game("D", "d", categoryMain={"name": "New Games", "slug": "new-games"})
    new_only["categories"] = [{"name": "New Games", "slug": "new-games"}, {"name": "Car", "slug": "car"}]
    assert get_category_main(new_only) == {"name": "Car", "slug": "car"}

    assert get_category_main({"name": "E"}) == {"name": "All Games", "slug": "all"}


def test_get_related_games_prefers_same_category_then_pads() -> None:
    games = [
        _game("Current", "current", ("Puzzle", "puzzle")),
        _game("Other", "other", ("Car", "car")),
        _game("Same", "same", ("Puzzle", "puzzle")),
        _game("Alias", "alias", ("Hot Games", "hot-games")),
    ]
    related = get_related_games(games, "current", "puzzle", limit=2)
    assert [g["slug"] for g in related] == ["same", "other"]

    hot = get_related_games(games, "current", "hot", limit=1, canonical_map={"hot-games": "hot"})
    assert [g["slug"] for g in hot] == ["alias"]
