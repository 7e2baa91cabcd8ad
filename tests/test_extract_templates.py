"""Tests for splitting an existing page into layout and page templates."""

import pytest

from extract_templates import extract_main_content, find_main_wrapper, split_index

INDEX = """<!DOCTYPE html>
<html>
<head>
\t<link rel="stylesheet" type="text/css" href="/data/css/custom.css">
</head>
<body>
\t<header>Nav</header>
\t<div id="game-page" class="main-wrapper">
\t\t<div class="game-box">
\t\t\t<div class="inner"><p>Hero</p></div>
\t\t</div>
\t</div>
\t<footer>Footer</footer>
</body>
</html>"""


def test_find_main_wrapper_tracks_div_depth() -> None:
    lines = INDEX.split("\n")
    start, end = find_main_wrapper(lines)
    assert 'id="game-page"' in lines[start]
    assert lines[end] == "\t</div>"
    assert lines[end + 1] == "\t<footer>Footer</footer>"


def test_find_main_wrapper_missing() -> None:
    assert find_main_wrapper(["<div>", "</div>"]) is None
    assert find_main_wrapper(['<div id="game-page" class="main-wrapper">', "<div>"]) is None


def test_split_index() -> None:
    base, home = split_index(INDEX)
    assert "<!-- SLOT:PAGE_CSS -->" in base
    assert base.index("custom.css") < base.index("<!-- SLOT:PAGE_CSS -->")
    assert "<!-- SLOT:CONTENT -->" in base
    assert "Hero" not in base
    assert "<footer>Footer</footer>" in base
    assert home.startswith('\t<div id="game-page" class="main-wrapper">')
    assert home.endswith("\t</div>")
    assert "<p>Hero</p>" in home


def test_split_index_requires_stylesheet_and_wrapper() -> None:
    with pytest.raises(ValueError, match="custom.css"):
        split_index("<html><body></body></html>")
    with pytest.raises(ValueError, match="main wrapper"):
        split_index('<link rel="stylesheet" href="/data/css/custom.css">\n<div>x</div>')


def test_extract_main_content() -> None:
    assert "<p>Hero</p>" in extract_main_content(INDEX)
    assert extract_main_content("<p>none</p>") is None
