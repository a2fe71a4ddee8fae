from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Mapping

import libcst as cst
from libcst.metadata import MetadataWrapper

if TYPE_CHECKING:
    from strictify.frontend.semantics import SemanticModel

DEFAULT_EXCLUDE_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".mypy_cache",
        ".pytest_cache",
        ".tox",
        ".venv",
        "__pycache__",
        "build",
        "dist",
        "node_modules",
        "venv",
    }
)

_TEST_FILE_RE = re.compile(r"^(test_.*|.*_test|conftest)\.py$")


def is_test_path(path: Path) -> bool:
    return bool(_TEST_FILE_RE.match(path.name))


def iter_python_paths(
    paths: Iterable[Path],
    *,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> list[Path]:
    """Expand input paths to python files, pruning excluded directories early."""
    excluded = set(exclude_dirs)
    out: list[Path] = []
    for path in paths:
        if path.is_dir():
            for root, dirnames, filenames in os.walk(path, topdown=True):
                dirnames[:] = sorted(d for d in dirnames if d not in excluded)
                for filename in sorted(filenames):
                    if filename.endswith(".py"):
                        out.append(Path(root) / filename)
        elif path.suffix == ".py" and path.exists():
            out.append(path)
    seen: set[Path] = set()
    unique: list[Path] = []
    for item in sorted(out):
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def byte_offset(text: str, line: int, column: int) -> int:
    """Byte offset of a 1-based ``line`` and 0-based character ``column``."""
    lines = text.splitlines(keepends=True)
    offset = sum(len(item.encode("utf-8")) for item in lines[: max(line - 1, 0)])
    if 0 < line <= len(lines):
        offset += len(lines[line - 1][:column].encode("utf-8"))
    return offset


@dataclass(eq=False)
class SourceFile:
    """One python file of the project and its current parse generation."""

    path: Path
    original_text: str
    text: str = ""
    module: cst.Module | None = None
    syntax_error: cst.ParserSyntaxError | None = None
    generation: int = 0
    project: Project | None = None
    _wrapper: MetadataWrapper | None = field(default=None, repr=False)
    _semantics: SemanticModel | None = field(default=None, repr=False)

    @classmethod
    def from_text(cls, path: Path, text: str) -> SourceFile:
        source_file = cls(path=path, original_text=text)
        source_file._parse(text)
        return source_file

    @classmethod
    def load(cls, path: Path) -> SourceFile:
        return cls.from_text(path, path.read_text(encoding="utf-8"))

    @property
    def code(self) -> str:
        if self.module is None:
            return self.text
        return self.module.code

    @property
    def dirty(self) -> bool:
        return self.code != self.original_text

    @property
    def is_test_file(self) -> bool:
        return is_test_path(self.path)

    def _parse(self, text: str) -> None:
        self.generation += 1
        self.text = text
        self._wrapper = None
        self._semantics = None
        try:
            module = cst.parse_module(text)
        except cst.ParserSyntaxError as exc:
            self.module = None
            self.syntax_error = exc
            return
        self.syntax_error = None
        self._wrapper = MetadataWrapper(module)
        self.module = self._wrapper.module

    def reparse(self) -> None:
        """Start a new parse generation from the current source text."""
        self._parse(self.code)

    def replace_module(self, module: cst.Module) -> None:
        """Swap in an edited module. Node queries are invalid until reparse."""
        self.module = module
        self._wrapper = None
        self._semantics = None

    def wrapper(self) -> MetadataWrapper:
        if self._wrapper is None:
            self.reparse()
        if self._wrapper is None:
            raise ValueError(f"{self.path} has no syntax tree: {self.syntax_error}")
        return self._wrapper

    def semantics(self) -> SemanticModel:
        if self._semantics is None:
            from strictify.frontend.semantics import SemanticModel

            self._semantics = SemanticModel(self)
        return self._semantics


@dataclass
class Project:
    root: Path
    files: list[SourceFile] = field(default_factory=list)

    def __post_init__(self) -> None:
        for source_file in self.files:
            source_file.project = self

    @classmethod
    def from_paths(
        cls,
        root: Path,
        paths: Iterable[Path],
        *,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    ) -> Project:
        files = [
            SourceFile.load(path)
            for path in iter_python_paths(paths, exclude_dirs=exclude_dirs)
        ]
        return cls(root=root, files=files)

    @classmethod
    def from_sources(cls, root: Path, sources: Mapping[str, str]) -> Project:
        files = [
            SourceFile.from_text(root / name, text)
            for name, text in sorted(sources.items())
        ]
        return cls(root=root, files=files)

    def source_file(self, path: Path | str) -> SourceFile | None:
        target = Path(path)
        for source_file in self.files:
            if source_file.path == target:
                return source_file
        return None

    def module_name(self, source_file: SourceFile) -> str:
        rel = source_file.path.with_suffix("")
        if rel.is_relative_to(self.root):
            rel = rel.relative_to(self.root)
        parts = list(rel.parts)
        if parts and parts[0] == "src":
            parts = parts[1:]
        if parts and parts[-1] == "__init__":
            parts = parts[:-1]
        return ".".join(parts)

    def reparse(self) -> None:
        for source_file in self.files:
            source_file.reparse()
