"""Explicit ``return None`` for functions that otherwise fall off their end."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Sequence

import libcst as cst

from strictify.frontend.diagnostics import CheckFlag, CompilerDiagnostic
from strictify.frontend.project import SourceFile
from strictify.repair.correlate import NodeDiagnostic, correlate
from strictify.repair.strategy import (
    BaseRepairStrategy,
    MarkingTransformer,
    RepairMode,
    marker_text,
)


def _return_none(*, marked: bool) -> cst.SimpleStatementLine:
    leading: list[cst.EmptyLine] = []
    if marked:
        leading.append(
            cst.EmptyLine(comment=cst.Comment(marker_text(CheckFlag.NO_IMPLICIT_RETURNS)))
        )
    return cst.SimpleStatementLine(
        body=[cst.Return(value=cst.Name("None"))], leading_lines=leading
    )


class _ReturnTransformer(MarkingTransformer):
    def __init__(
        self,
        module: cst.Module,
        *,
        mode: RepairMode,
        bare_returns: set[cst.Return],
        open_functions: set[cst.FunctionDef],
        markers: dict[cst.CSTNode, str | None],
    ) -> None:
        super().__init__(module, CheckFlag.NO_IMPLICIT_RETURNS, markers)
        self.mode = mode
        self.bare_returns = bare_returns
        self.open_functions = open_functions

    def leave_Return(self, original_node: cst.Return, updated_node: cst.Return) -> cst.Return:
        if self.mode is RepairMode.ALL and original_node in self.bare_returns:
            return updated_node.with_changes(
                value=cst.Name("None"), whitespace_after_return=cst.SimpleWhitespace(" ")
            )
        return updated_node

    def leave_FunctionDef(
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.FunctionDef:
        if self.mode is not RepairMode.ALL or original_node not in self.open_functions:
            return updated_node
        body = updated_node.body
        if not isinstance(body, cst.IndentedBlock):
            return updated_node
        return updated_node.with_changes(
            body=body.with_changes(body=[*body.body, _return_none(marked=True)])
        )


class ImplicitReturnsStrategy(BaseRepairStrategy):
    flag = CheckFlag.NO_IMPLICIT_RETURNS
    kinds = frozenset({"Name", "Return"})

    def repair(self, diagnostics: Sequence[CompilerDiagnostic]) -> set[Path]:
        self.unresolved = []
        by_file: dict[SourceFile, list[NodeDiagnostic]] = defaultdict(list)
        for pair in correlate(self.project, diagnostics, self.codes, self.kinds):
            if not pair.source_file.is_test_file:
                by_file[pair.source_file].append(pair)

        modified: set[Path] = set()
        for source_file, pairs in by_file.items():
            module = source_file.module
            if module is None:
                continue
            model = source_file.semantics()
            bare_returns: set[cst.Return] = set()
            open_functions: set[cst.FunctionDef] = set()
            markers: dict[cst.CSTNode, str | None] = {}
            for pair in pairs:
                node = pair.node
                if isinstance(node, cst.Return):
                    bare_returns.add(node)
                    statement = model.enclosing_statement(node)
                    if statement is not None and statement not in markers:
                        markers[statement] = (
                            None if self.mode is RepairMode.ALL else "use 'return None'"
                        )
                    continue
                function_def = model.parent(node)
                if isinstance(function_def, cst.FunctionDef) and function_def.name is node:
                    open_functions.add(function_def)
                    if self.mode is RepairMode.COMMENT:
                        markers[function_def] = "add 'return None' at the end"
            transformer = _ReturnTransformer(
                module,
                mode=self.mode,
                bare_returns=bare_returns,
                open_functions=open_functions,
                markers=markers,
            )
            updated = module.visit(transformer)
            if updated.code != module.code:
                source_file.replace_module(updated)
                modified.add(source_file.path)
                self.logger.info(
                    f"{source_file.path}: patched {len(bare_returns)} bare return(s) "
                    f"and {len(open_functions)} function end(s)"
                )
        return modified
