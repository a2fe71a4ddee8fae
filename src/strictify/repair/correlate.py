"""Pairing of compiler diagnostics with the syntax nodes that caused them."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Iterable, Sequence

import libcst as cst

from strictify.exceptions import CorrelationMismatchError
from strictify.frontend.diagnostics import CompilerDiagnostic
from strictify.frontend.project import Project, SourceFile
from strictify.frontend.semantics import SemanticModel


@dataclass(frozen=True, eq=False)
class NodeDiagnostic:
    node: cst.CSTNode
    diagnostic: CompilerDiagnostic
    source_file: SourceFile

    @property
    def model(self) -> SemanticModel:
        return self.source_file.semantics()


def filter_diagnostics(
    diagnostics: Iterable[CompilerDiagnostic], codes: Collection[int]
) -> list[CompilerDiagnostic]:
    return [diagnostic for diagnostic in diagnostics if diagnostic.code in codes]


def has_codes(diagnostics: Iterable[CompilerDiagnostic], codes: Collection[int]) -> bool:
    return any(diagnostic.code in codes for diagnostic in diagnostics)


def node_kind(node: cst.CSTNode) -> str:
    return type(node).__name__


def correlate(
    project: Project,
    diagnostics: Sequence[CompilerDiagnostic],
    codes: Collection[int],
    kinds: Collection[str],
    *,
    allow_unmatched: bool = False,
) -> list[NodeDiagnostic]:
    """Pair each diagnostic with the node of an accepted kind at its start offset.

    Each affected file is walked once in pre-order. Pairs come out in that
    order, ties broken by diagnostic order. A diagnostic with no matching node
    raises :class:`CorrelationMismatchError` unless ``allow_unmatched`` is set.
    """
    filtered = filter_diagnostics(diagnostics, codes)
    by_path: dict[Path, dict[int, list[tuple[int, CompilerDiagnostic]]]] = {}
    for index, diagnostic in enumerate(filtered):
        by_offset = by_path.setdefault(diagnostic.path, {})
        by_offset.setdefault(diagnostic.start, []).append((index, diagnostic))

    pairs: list[NodeDiagnostic] = []
    matched: set[int] = set()
    for path, by_offset in by_path.items():
        source_file = project.source_file(path)
        if source_file is None or source_file.module is None:
            continue
        model = source_file.semantics()
        for node in model.walk():
            if node_kind(node) not in kinds:
                continue
            for index, diagnostic in by_offset.get(model.offset(node), ()):
                pairs.append(NodeDiagnostic(node, diagnostic, source_file))
                matched.add(index)

    if len(pairs) != len(filtered) and not allow_unmatched:
        unmatched = [
            diagnostic for index, diagnostic in enumerate(filtered) if index not in matched
        ]
        raise CorrelationMismatchError(
            expected=len(filtered), found=len(pairs), unmatched=unmatched
        )
    return pairs
