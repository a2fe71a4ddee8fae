from __future__ import annotations

from pathlib import Path
from typing import Iterable

from strictify.emit.formatting import format_module
from strictify.frontend.project import Project, SourceFile


class Emitter:
    """Persists the project's current sources."""

    def format(self, paths: Iterable[Path], project: Project) -> list[Path]:
        """Re-render only the touched files with the fixed style profile."""
        formatted: list[Path] = []
        for path in sorted(set(paths)):
            source_file = project.source_file(path)
            if source_file is None or source_file.module is None:
                continue
            source_file.replace_module(format_module(source_file.module))
            formatted.append(path)
        return formatted

    def target_path(self, source_file: SourceFile, project: Project) -> Path:
        return source_file.path

    def should_write(self, source_file: SourceFile) -> bool:
        return source_file.dirty

    def emit(self, project: Project) -> list[Path]:
        written: list[Path] = []
        for source_file in project.files:
            if not self.should_write(source_file):
                continue
            target = self.target_path(source_file, project)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source_file.code, encoding="utf-8")
            written.append(target)
        return written


class InPlaceEmitter(Emitter):
    pass


class OutOfPlaceEmitter(Emitter):
    """Mirrors every source file under ``<root>/<output_dir>/``."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def target_path(self, source_file: SourceFile, project: Project) -> Path:
        base = self.output_dir if self.output_dir.is_absolute() else project.root / self.output_dir
        if source_file.path.is_relative_to(project.root):
            relative = source_file.path.relative_to(project.root)
        else:
            relative = Path(source_file.path.name)
        return base / relative

    def should_write(self, source_file: SourceFile) -> bool:
        return True
