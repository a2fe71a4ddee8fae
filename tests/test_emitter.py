from __future__ import annotations

from pathlib import Path

import libcst as cst

from strictify.emit.emitter import InPlaceEmitter, OutOfPlaceEmitter
from strictify.frontend.project import Project


def _project(write_tree) -> Project:
    root = write_tree(
        {
            "pkg/a.py": "x = 1\n",
            "pkg/b.py": "def f( a ):\n    return a\n",
        }
    )
    return Project.from_paths(root, [root])


def _edit(project: Project, name: str, code: str) -> Path:
    path = project.root / name
    project.source_file(path).replace_module(cst.parse_module(code))
    return path


def test_in_place_writes_only_changed_files(write_tree) -> None:
    project = _project(write_tree)
    path = _edit(project, "pkg/a.py", "x: int = 1\n")
    written = InPlaceEmitter().emit(project)
    assert written == [path]
    assert path.read_text() == "x: int = 1\n"
    assert (project.root / "pkg/b.py").read_text() == "def f( a ):\n    return a\n"


def test_format_touches_only_listed_paths(write_tree) -> None:
    project = _project(write_tree)
    path = _edit(project, "pkg/b.py", "def f( a: int ):\n    return a\n")
    emitter = InPlaceEmitter()
    assert emitter.format([path, project.root / "missing.py"], project) == [path]
    emitter.emit(project)
    assert path.read_text() == "def f(a: int):\n  return a\n"
    assert (project.root / "pkg/a.py").read_text() == "x = 1\n"


def test_out_of_place_mirrors_every_file(write_tree) -> None:
    project = _project(write_tree)
    _edit(project, "pkg/a.py", "x: int = 1\n")
    written = OutOfPlaceEmitter(Path("out")).emit(project)
    out = project.root / "out"
    assert sorted(written) == [out / "pkg/a.py", out / "pkg/b.py"]
    assert (out / "pkg/a.py").read_text() == "x: int = 1\n"
    assert (out / "pkg/b.py").read_text() == "def f( a ):\n    return a\n"
    assert (project.root / "pkg/a.py").read_text() == "x = 1\n"
