"""Annotation inference for declarations the checker reports as implicitly Any."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Sequence

import libcst as cst

from strictify.frontend.diagnostics import CheckFlag, CompilerDiagnostic
from strictify.frontend.project import SourceFile
from strictify.frontend.semantics import (
    BindingKind,
    Declaration,
    DeclarationKey,
    DeclarationKind,
    SemanticModel,
)
from strictify.frontend.types import UNTYPED, referenced_names
from strictify.invariants import never
from strictify.repair.correlate import correlate
from strictify.repair.dependency_graph import DependencyGraph, Resolution, resolve
from strictify.repair.strategy import (
    BaseRepairStrategy,
    MarkingTransformer,
    RepairMode,
    UnresolvedDeclaration,
)


class _AnnotationTransformer(MarkingTransformer):
    def __init__(
        self,
        module: cst.Module,
        annotations: dict[cst.CSTNode, str],
        markers: dict[cst.CSTNode, str | None],
    ) -> None:
        super().__init__(module, CheckFlag.NO_IMPLICIT_ANY, markers)
        self.annotations = annotations

    def leave_Param(self, original_node: cst.Param, updated_node: cst.Param) -> cst.Param:
        text = self.annotations.get(original_node)
        if text is None:
            return updated_node
        changes: dict[str, object] = {"annotation": cst.Annotation(cst.parse_expression(text))}
        if updated_node.default is not None:
            changes["equal"] = cst.AssignEqual()
        return updated_node.with_changes(**changes)

    def leave_Assign(
        self, original_node: cst.Assign, updated_node: cst.Assign
    ) -> cst.BaseSmallStatement:
        text = self.annotations.get(original_node)
        if text is None:
            return updated_node
        return cst.AnnAssign(
            target=updated_node.targets[0].target,
            annotation=cst.Annotation(cst.parse_expression(text)),
            value=updated_node.value,
            semicolon=updated_node.semicolon,
        )


class ImplicitAnyStrategy(BaseRepairStrategy):
    flag = CheckFlag.NO_IMPLICIT_ANY
    kinds = frozenset({"Name"})

    def repair(self, diagnostics: Sequence[CompilerDiagnostic]) -> set[Path]:
        self.unresolved = []
        pairs = [
            pair
            for pair in correlate(self.project, diagnostics, self.codes, self.kinds)
            if not pair.source_file.is_test_file
        ]
        declarations: dict[DeclarationKey, Declaration] = {}
        for pair in pairs:
            if not isinstance(pair.node, cst.Name):
                never("correlated a non-identifier node", kind=type(pair.node).__name__)
            declaration = pair.model.declaration_for(pair.node)
            if declaration is not None:
                declarations.setdefault(declaration.key, declaration)
        if not declarations:
            return set()
        graph = self.build_graph(declarations)
        resolution = resolve(graph)
        self._report_unresolved(declarations, resolution)
        return self._rewrite(declarations, resolution)

    def build_graph(
        self, declarations: dict[DeclarationKey, Declaration]
    ) -> DependencyGraph[DeclarationKey]:
        graph: DependencyGraph[DeclarationKey] = DependencyGraph()
        for key in declarations:
            graph.add_vertex(key)
        for declaration in declarations.values():
            model = declaration.model
            initializer = model.initializer(declaration)
            if initializer is not None:
                graph.seed(
                    declaration.key,
                    self._admissible(declaration, model.expression_witnesses(initializer)),
                )
            for binding in model.bindings(declaration):
                if binding.kind is BindingKind.PLAIN and binding.value is not None:
                    self._link(graph, declaration, model, binding.value, foreign=False)
                else:
                    graph.seed(declaration.key, [UNTYPED])
            if declaration.kind is DeclarationKind.PARAMETER:
                self._link_call_sites(graph, declaration)
        return graph

    def _link_call_sites(
        self, graph: DependencyGraph[DeclarationKey], declaration: Declaration
    ) -> None:
        model = declaration.model
        param = declaration.owner
        if not isinstance(param, cst.Param):
            never("parameter declaration without a Param owner", key=declaration.key)
        function_def = model.enclosing_function(param)
        if function_def is None:
            return
        for site in model.call_sites(function_def):
            bound = site.bind(function_def, param)
            if bound.ambiguous:
                graph.seed(declaration.key, [UNTYPED])
            elif bound.value is not None:
                self._link(graph, declaration, site.model, bound.value, foreign=site.foreign)

    def _link(
        self,
        graph: DependencyGraph[DeclarationKey],
        declaration: Declaration,
        model: SemanticModel,
        expression: cst.BaseExpression,
        *,
        foreign: bool,
    ) -> None:
        """Add an edge from an under-typed source declaration, else seed its type."""
        if isinstance(expression, cst.Name):
            source = model.declaration_for(expression)
            if source is not None and source.key in graph:
                graph.add_edge(source.key, declaration.key)
                return
        witnesses = model.expression_witnesses(expression)
        graph.seed(declaration.key, self._admissible(declaration, witnesses, foreign=foreign))

    def _admissible(
        self, declaration: Declaration, witnesses: list[str], *, foreign: bool = False
    ) -> list[str]:
        """Replace witnesses that cannot be spelled at the declaration with ``Any``."""
        return [
            witness if self._writable(declaration, witness, foreign=foreign) else UNTYPED
            for witness in witnesses
        ]

    def _writable(self, declaration: Declaration, witness: str, *, foreign: bool = False) -> bool:
        names = referenced_names(witness)
        if not names:
            return True
        if foreign:
            return False
        model = declaration.model
        statement = model.enclosing_statement(declaration.owner)
        if statement is None:
            return False
        return all(model.is_bound_before(name, statement) for name in names)

    def _report_unresolved(
        self,
        declarations: dict[DeclarationKey, Declaration],
        resolution: Resolution[DeclarationKey],
    ) -> None:
        for key in resolution.roots:
            declaration = declarations.get(key)
            if declaration is None:
                continue
            self._record_unresolved(declaration, resolution.blast_radius.get(key, 0))

    def _record_unresolved(self, declaration: Declaration, affected: int) -> None:
        line, column = declaration.model.location(declaration.name_node)
        record = UnresolvedDeclaration(
            path=declaration.source_file.path,
            line=line,
            column=column,
            name=declaration.name,
            affected=affected,
        )
        self.unresolved.append(record)
        self.logger.error(record.render())

    def _rewrite(
        self,
        declarations: dict[DeclarationKey, Declaration],
        resolution: Resolution[DeclarationKey],
    ) -> set[Path]:
        by_file: dict[SourceFile, list[tuple[Declaration, str]]] = defaultdict(list)
        for key in sorted(declarations):
            annotation = resolution.annotation(key)
            if annotation is None:
                continue
            declaration = declarations[key]
            # Propagated witnesses may name a class bound after this declaration.
            if not self._writable(declaration, annotation):
                self._record_unresolved(declaration, 0)
                continue
            by_file[declaration.source_file].append((declaration, annotation))

        modified: set[Path] = set()
        for source_file, items in by_file.items():
            module = source_file.module
            if module is None:
                continue
            model = source_file.semantics()
            annotations: dict[cst.CSTNode, str] = {}
            suggestions: dict[cst.CSTNode, list[str]] = defaultdict(list)
            for declaration, annotation in items:
                statement = model.enclosing_statement(declaration.owner)
                if statement is None:
                    continue
                if self.mode is RepairMode.ALL:
                    annotations[declaration.owner] = annotation
                suggestions[statement].append(f"{declaration.name}: {annotation}")
            markers: dict[cst.CSTNode, str | None] = {
                statement: ", ".join(found) if self.mode is RepairMode.COMMENT else None
                for statement, found in suggestions.items()
            }
            updated = module.visit(_AnnotationTransformer(module, annotations, markers))
            if updated.code != module.code:
                source_file.replace_module(updated)
                modified.add(source_file.path)
                self.logger.info(
                    f"{source_file.path}: annotated {len(items)} declaration(s)"
                    if self.mode is RepairMode.ALL
                    else f"{source_file.path}: suggested {len(items)} annotation(s)"
                )
        return modified
