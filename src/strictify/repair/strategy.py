"""Repair strategy protocol, shared state and marker comments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Mapping, Protocol, Sequence, runtime_checkable

import libcst as cst

from strictify.frontend.diagnostics import CHECK_FLAG_CODES, CheckFlag, CompilerDiagnostic
from strictify.frontend.project import Project, is_test_path
from strictify.reporting import Logger, NullLogger

MARKER_PREFIX = "# strictify automated fix: --"


class RepairMode(str, Enum):
    ALL = "all"
    COMMENT = "comment"


@dataclass(frozen=True)
class UnresolvedDeclaration:
    path: Path
    line: int
    column: int
    name: str
    affected: int

    def render(self) -> str:
        return (
            f"{self.path}:{self.line}:{self.column} - error: Unable to automatically "
            f"calculate type of '{self.name}'. {self.affected} dependent "
            "declaration(s) affected."
        )


@runtime_checkable
class RepairStrategy(Protocol):
    name: str
    unresolved: list[UnresolvedDeclaration]

    def applicable(self, diagnostics: Sequence[CompilerDiagnostic]) -> bool: ...

    def repair(self, diagnostics: Sequence[CompilerDiagnostic]) -> set[Path]: ...


class BaseRepairStrategy:
    flag: ClassVar[CheckFlag]
    kinds: ClassVar[frozenset[str]]

    def __init__(
        self,
        project: Project,
        *,
        mode: RepairMode = RepairMode.ALL,
        logger: Logger | None = None,
    ) -> None:
        self.project = project
        self.mode = mode
        self.logger = logger or NullLogger()
        self.unresolved: list[UnresolvedDeclaration] = []

    @property
    def name(self) -> str:
        return self.flag.value

    @property
    def codes(self) -> frozenset[int]:
        return CHECK_FLAG_CODES[self.flag]

    def applicable(self, diagnostics: Sequence[CompilerDiagnostic]) -> bool:
        """True when some targeted diagnostic lies outside test files."""
        return any(
            diagnostic.code in self.codes and not is_test_path(diagnostic.path)
            for diagnostic in diagnostics
        )

    def repair(self, diagnostics: Sequence[CompilerDiagnostic]) -> set[Path]:
        raise NotImplementedError


def marker_text(flag: CheckFlag, suggestion: str | None = None) -> str:
    text = f"{MARKER_PREFIX}{flag.value}"
    if suggestion:
        text = f"{text} ({suggestion})"
    return text


def _leading_lines(statement: cst.CSTNode, module: cst.Module | None) -> list[cst.EmptyLine]:
    lines = list(getattr(statement, "leading_lines", ()))
    # The parser moves the first statement's leading comments into the header.
    if module is not None and module.body and module.body[0] is statement:
        lines = [*module.header, *lines]
    return lines


def has_marker(
    statement: cst.CSTNode, flag: CheckFlag, module: cst.Module | None = None
) -> bool:
    needle = marker_text(flag)
    return any(
        line.comment is not None and needle in line.comment.value
        for line in _leading_lines(statement, module)
    )


def with_marker(statement: cst.CSTNode, text: str) -> cst.CSTNode:
    marker = cst.EmptyLine(comment=cst.Comment(text))
    return statement.with_changes(leading_lines=[*statement.leading_lines, marker])


class MarkingTransformer(cst.CSTTransformer):
    """Prefixes selected statements with a marker comment, once."""

    def __init__(
        self,
        module: cst.Module,
        flag: CheckFlag,
        markers: Mapping[cst.CSTNode, str | None],
    ) -> None:
        super().__init__()
        self.module = module
        self.flag = flag
        self.markers = markers

    def on_leave(self, original_node, updated_node):
        updated = super().on_leave(original_node, updated_node)
        if original_node not in self.markers:
            return updated
        if not isinstance(updated, (cst.SimpleStatementLine, cst.BaseCompoundStatement)):
            return updated
        if has_marker(original_node, self.flag, self.module):
            return updated
        return with_marker(updated, marker_text(self.flag, self.markers[original_node]))
