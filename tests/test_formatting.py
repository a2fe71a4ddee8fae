from __future__ import annotations

import pytest

from strictify.emit.formatting import format_code


def test_fixed_style_profile() -> None:
    source = "def f( a, b ):\n    return [ a, b ]\n\nx = { 'k': ( 1, 2 ) }\nf( 1, 2 )"
    assert format_code(source) == "def f(a, b):\n  return [a, b]\n\nx = {'k': (1, 2)}\nf(1, 2)\n"


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("if x:\n    if y:\n        pass\n", "if x:\n  if y:\n    pass\n"),
        ("def g( *args ):\n    pass\n", "def g(*args):\n  pass\n"),
        ("def g( a, *, b ):\n    pass\n", "def g(a, *, b):\n  pass\n"),
        ("def g( a, **kw ):\n    pass\n", "def g(a, **kw):\n  pass\n"),
        ("print( 'a', end='' )\n", "print('a', end='')\n"),
    ],
)
def test_parameter_and_block_spacing(source: str, expected: str) -> None:
    assert format_code(source) == expected


def test_multiline_layout_survives() -> None:
    source = "x = [\n    1,\n    2,\n]\n"
    assert format_code(source) == source


def test_comments_and_markers_are_kept() -> None:
    source = "# strictify automated fix: --no-implicit-any\ndef f(a: int):\n    # body\n    return a\n"
    expected = "# strictify automated fix: --no-implicit-any\ndef f(a: int):\n  # body\n  return a\n"
    assert format_code(source) == expected
