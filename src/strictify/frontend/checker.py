from __future__ import annotations

from typing import Iterable

import libcst as cst

from strictify.frontend.control_flow import FunctionExits, block_terminates
from strictify.frontend.diagnostics import (
    CheckFlag,
    CompilerDiagnostic,
    DiagnosticCode,
    sort_diagnostics,
)
from strictify.frontend.project import Project, SourceFile, byte_offset
from strictify.frontend.semantics import DeclarationKind, SemanticModel, positional_params

PARAMETER_MESSAGE = "Parameter '{name}' implicitly has an 'Any' type."
VARIABLE_MESSAGE = (
    "Variable '{name}' implicitly has type 'Any' in some locations where its "
    "type cannot be determined."
)
NO_RETURN_MESSAGE = "Not all code paths return a value."


def is_implicit_any_initializer(node: cst.BaseExpression | None) -> bool:
    """Initializers that give no usable type: ``None`` and empty displays."""
    if isinstance(node, cst.Name):
        return node.value == "None"
    if isinstance(node, (cst.List, cst.Tuple, cst.Dict)):
        return not node.elements
    return False


def _diagnostic(
    model: SemanticModel,
    node: cst.CSTNode,
    code: DiagnosticCode,
    message: str,
) -> CompilerDiagnostic:
    line, column = model.location(node)
    return CompilerDiagnostic(
        code=int(code),
        path=model.source_file.path,
        start=model.offset(node),
        length=model.length(node),
        message=message,
        line=line,
        column=column,
    )


def syntax_diagnostic(source_file: SourceFile) -> CompilerDiagnostic:
    error = source_file.syntax_error
    if error is None:
        raise ValueError(f"{source_file.path} parsed cleanly")
    return CompilerDiagnostic(
        code=int(DiagnosticCode.SYNTAX_ERROR),
        path=source_file.path,
        start=byte_offset(source_file.code, error.raw_line, error.raw_column),
        length=0,
        message=error.message,
        line=error.raw_line,
        column=error.raw_column + 1,
    )


def _skips_receiver(model: SemanticModel, function_def: cst.FunctionDef) -> bool:
    if not model.is_method(function_def):
        return False
    return not any(
        isinstance(decorator.decorator, cst.Name)
        and decorator.decorator.value == "staticmethod"
        for decorator in function_def.decorators
    )


def implicit_any_diagnostics(model: SemanticModel) -> list[CompilerDiagnostic]:
    out: list[CompilerDiagnostic] = []
    for node in model.walk():
        if isinstance(node, cst.FunctionDef):
            positional = list(positional_params(node))
            if positional and _skips_receiver(model, node):
                positional = positional[1:]
            for param in [*positional, *node.params.kwonly_params]:
                if param.annotation is not None:
                    continue
                if param.default is not None and not is_implicit_any_initializer(param.default):
                    continue
                out.append(
                    _diagnostic(
                        model,
                        param.name,
                        DiagnosticCode.PARAMETER_IMPLICITLY_ANY,
                        PARAMETER_MESSAGE.format(name=param.name.value),
                    )
                )
        elif isinstance(node, cst.Name) and model.plain_assign(node) is not None:
            declaration = model.declaration_for(node)
            if (
                declaration is None
                or declaration.kind is not DeclarationKind.VARIABLE
                or declaration.name_node is not node
            ):
                continue
            if is_implicit_any_initializer(model.initializer(declaration)):
                out.append(
                    _diagnostic(
                        model,
                        node,
                        DiagnosticCode.VARIABLE_IMPLICITLY_ANY,
                        VARIABLE_MESSAGE.format(name=node.value),
                    )
                )
    return out


def implicit_returns_diagnostics(model: SemanticModel) -> list[CompilerDiagnostic]:
    out: list[CompilerDiagnostic] = []
    for node in model.walk():
        if not isinstance(node, cst.FunctionDef):
            continue
        exits = FunctionExits.of(node)
        if exits.is_generator or not any(item.value is not None for item in exits.returns):
            continue
        if not block_terminates(node.body):
            out.append(
                _diagnostic(model, node.name, DiagnosticCode.CODE_PATH_NO_RETURN, NO_RETURN_MESSAGE)
            )
        for item in exits.returns:
            if item.value is None:
                out.append(
                    _diagnostic(model, item, DiagnosticCode.CODE_PATH_NO_RETURN, NO_RETURN_MESSAGE)
                )
    return out


class Frontend:
    """Checks a project under a set of check flags.

    The empty flag set only reports syntax errors.
    """

    def __init__(self, flags: Iterable[CheckFlag] = ()) -> None:
        self.flags = tuple(flags)

    def parse(self, project: Project) -> list[CompilerDiagnostic]:
        project.reparse()
        diagnostics: list[CompilerDiagnostic] = []
        for source_file in project.files:
            diagnostics.extend(self.check_file(source_file))
        return sort_diagnostics(diagnostics)

    def check_file(self, source_file: SourceFile) -> list[CompilerDiagnostic]:
        if source_file.syntax_error is not None:
            return [syntax_diagnostic(source_file)]
        model = source_file.semantics()
        out: list[CompilerDiagnostic] = []
        if CheckFlag.NO_IMPLICIT_ANY in self.flags:
            out.extend(implicit_any_diagnostics(model))
        if CheckFlag.NO_IMPLICIT_RETURNS in self.flags:
            out.extend(implicit_returns_diagnostics(model))
        return out
