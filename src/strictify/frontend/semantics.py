"""Per-generation query surface over one parsed source file.

A :class:`SemanticModel` is built lazily from a :class:`SourceFile`'s current
``MetadataWrapper`` and is discarded whenever the file is reparsed or its module
is replaced. Every node handed out by the model belongs to that generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Sequence

import libcst as cst
from libcst.helpers import get_full_name_for_node
from libcst.metadata import (
    Assignment,
    BaseAssignment,
    BuiltinAssignment,
    ByteSpanPositionProvider,
    ClassScope,
    FunctionScope,
    GlobalScope,
    ImportAssignment,
    ParentNodeProvider,
    PositionProvider,
    Scope,
    ScopeProvider,
)

from strictify.frontend.types import TypeEvaluator

if TYPE_CHECKING:
    from strictify.frontend.project import SourceFile

RECEIVER_NAMES: frozenset[str] = frozenset({"self", "cls"})


class DeclarationKind(str, Enum):
    PARAMETER = "parameter"
    VARIABLE = "variable"


@dataclass(frozen=True, order=True)
class DeclarationKey:
    """Canonical position of a declaration: file path and identifier offset."""

    path: str
    offset: int


@dataclass(frozen=True, eq=False)
class Declaration:
    key: DeclarationKey
    kind: DeclarationKind
    name: str
    source_file: SourceFile
    name_node: cst.Name
    owner: cst.CSTNode
    scope: Scope

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Declaration):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @property
    def model(self) -> SemanticModel:
        return self.source_file.semantics()


class BindingKind(str, Enum):
    PLAIN = "plain"
    OTHER = "other"


@dataclass(frozen=True)
class Binding:
    kind: BindingKind
    node: cst.CSTNode
    value: cst.BaseExpression | None = None


@dataclass(frozen=True)
class BoundArgument:
    """Argument bound to one parameter at a call site.

    ``value`` is None when the call omits the argument. ``ambiguous`` is set
    when star-arguments make the binding undecidable.
    """

    value: cst.BaseExpression | None
    ambiguous: bool = False


@dataclass(frozen=True, eq=False)
class CallSite:
    model: SemanticModel
    call: cst.Call
    receiver_offset: int = 0
    foreign: bool = False

    def bind(self, function_def: cst.FunctionDef, param: cst.Param) -> BoundArgument:
        positional = positional_params(function_def)
        keyword_allowed = not any(
            item is param for item in function_def.params.posonly_params
        )
        index = next(
            (i for i, item in enumerate(positional) if item is param), None
        )
        if index is not None:
            index -= self.receiver_offset
            if index < 0:
                return BoundArgument(None)
        seen_star = False
        seen_double_star = False
        positional_args: list[cst.Arg] = []
        for arg in self.call.args:
            if arg.star == "*":
                seen_star = True
                continue
            if arg.star == "**":
                seen_double_star = True
                continue
            if arg.keyword is not None:
                if keyword_allowed and arg.keyword.value == param.name.value:
                    return BoundArgument(arg.value)
                continue
            if not seen_star:
                positional_args.append(arg)
        if index is not None and index < len(positional_args):
            return BoundArgument(positional_args[index].value)
        if (index is not None and seen_star) or seen_double_star:
            return BoundArgument(None, ambiguous=True)
        return BoundArgument(None)


def is_plain_assign_target(name: cst.Name, parent: cst.CSTNode | None) -> bool:
    return isinstance(parent, cst.AssignTarget) and parent.target is name


class SemanticModel:
    def __init__(self, source_file: SourceFile) -> None:
        self.source_file = source_file
        wrapper = source_file.wrapper()
        self.module = wrapper.module
        self._scopes = wrapper.resolve(ScopeProvider)
        self._parents = wrapper.resolve(ParentNodeProvider)
        self._positions = wrapper.resolve(PositionProvider)
        self._spans = wrapper.resolve(ByteSpanPositionProvider)
        self._declarations: dict[DeclarationKey, Declaration] = {}
        self.types = TypeEvaluator(self)

    @property
    def path(self) -> str:
        return str(self.source_file.path)

    # Traversal and positions

    def walk(self, root: cst.CSTNode | None = None) -> Iterator[cst.CSTNode]:
        """Yield every descendant of ``root`` (default: the module) in pre-order."""
        stack: list[cst.CSTNode] = [self.module if root is None else root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def offset(self, node: cst.CSTNode) -> int:
        span = self._spans.get(node)
        return -1 if span is None else span.start

    def length(self, node: cst.CSTNode) -> int:
        span = self._spans.get(node)
        return 0 if span is None else span.length

    def location(self, node: cst.CSTNode) -> tuple[int, int]:
        """1-based line and column of the node's first character."""
        position = self._positions[node].start
        return position.line, position.column + 1

    def parent(self, node: cst.CSTNode) -> cst.CSTNode | None:
        return self._parents.get(node)

    def ancestors(self, node: cst.CSTNode) -> Iterator[cst.CSTNode]:
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def enclosing_statement(self, node: cst.CSTNode) -> cst.CSTNode | None:
        for ancestor in [node, *self.ancestors(node)]:
            if isinstance(ancestor, (cst.SimpleStatementLine, cst.BaseCompoundStatement)):
                return ancestor
        return None

    def enclosing_function(self, node: cst.CSTNode) -> cst.FunctionDef | None:
        for ancestor in self.ancestors(node):
            if isinstance(ancestor, cst.FunctionDef):
                return ancestor
        return None

    def scope_of(self, node: cst.CSTNode) -> Scope | None:
        return self._scopes.get(node)

    def is_method(self, function_def: cst.FunctionDef) -> bool:
        return isinstance(self.scope_of(function_def), ClassScope)

    # Name resolution

    def assignments_for(self, name: cst.Name) -> list[BaseAssignment]:
        """Bindings an identifier refers to (or, for a store, the binding it makes)."""
        scope = self.scope_of(name)
        if scope is None:
            return []
        found: list[BaseAssignment] = []
        for assignment in scope[name.value]:
            if isinstance(assignment, Assignment) and _binds(assignment, name):
                found.append(assignment)
        if not found:
            for access in scope.accesses[name.value]:
                if access.node is name:
                    found.extend(access.referents)
        return sorted(found, key=self._assignment_order)

    def _assignment_order(self, assignment: BaseAssignment) -> tuple[int, str]:
        if isinstance(assignment, Assignment):
            return self.offset(assignment.node), assignment.name
        return -1, assignment.name

    def first_binding(self, scope: Scope, name: str) -> Assignment | None:
        candidates = [
            item for item in scope.assignments[name] if isinstance(item, Assignment)
        ]
        if not candidates:
            return None
        return min(candidates, key=self._assignment_order)

    def is_bound_before(self, name: str, statement: cst.CSTNode) -> bool:
        """Whether ``name`` is already bound where ``statement`` evaluates annotations."""
        scope = self.scope_of(statement)
        if scope is None:
            return False
        limit = self.offset(statement)
        for assignment in scope[name]:
            if isinstance(assignment, BuiltinAssignment):
                return True
            if isinstance(assignment, Assignment) and self.offset(assignment.node) < limit:
                return True
        return False

    def annotation_for_binding(self, assignment: Assignment) -> cst.Annotation | None:
        node = assignment.node
        if isinstance(node, cst.Param):
            return node.annotation
        if isinstance(node, cst.Name):
            parent = self.parent(node)
            if isinstance(parent, cst.AnnAssign) and parent.target is node:
                return parent.annotation
        return None

    def assigned_value(self, assignment: Assignment) -> cst.BaseExpression | None:
        node = assignment.node
        if isinstance(node, cst.Param):
            return node.default
        if not isinstance(node, cst.Name):
            return None
        parent = self.parent(node)
        if is_plain_assign_target(node, parent):
            statement = self.parent(parent)
            if isinstance(statement, cst.Assign):
                return statement.value
        if isinstance(parent, cst.AnnAssign) and parent.target is node:
            return parent.value
        return None

    def plain_assign(self, name: cst.Name) -> cst.Assign | None:
        """The single-target ``name = value`` statement binding ``name``, if any."""
        parent = self.parent(name)
        if not is_plain_assign_target(name, parent):
            return None
        statement = self.parent(parent)
        if isinstance(statement, cst.Assign) and len(statement.targets) == 1:
            return statement
        return None

    # Declarations

    def parameter_declaration(self, param: cst.Param) -> Declaration | None:
        scope = self.scope_of(param)
        if scope is None:
            return None
        return self._declaration(
            DeclarationKind.PARAMETER, param.name, owner=param, scope=scope
        )

    def variable_declaration(self, scope: Scope, name: str) -> Declaration | None:
        """Declaration introduced by the first binding of ``name`` in ``scope``.

        Only module and function scopes declare variables, and only when the
        first binding is a single-target plain assignment.
        """
        if not isinstance(scope, (GlobalScope, FunctionScope)):
            return None
        first = self.first_binding(scope, name)
        if first is None:
            return None
        if isinstance(first.node, cst.Param):
            return self.parameter_declaration(first.node)
        if not isinstance(first.node, cst.Name):
            return None
        statement = self.plain_assign(first.node)
        if statement is None:
            return None
        return self._declaration(
            DeclarationKind.VARIABLE, first.node, owner=statement, scope=scope
        )

    def declaration_for(self, name: cst.Name) -> Declaration | None:
        parent = self.parent(name)
        if isinstance(parent, cst.Param) and parent.name is name:
            return self.parameter_declaration(parent)
        for assignment in self.assignments_for(name):
            if not isinstance(assignment, Assignment):
                continue
            if isinstance(assignment.node, cst.Param):
                return self.parameter_declaration(assignment.node)
            if isinstance(assignment.node, cst.Name):
                return self.variable_declaration(assignment.scope, assignment.name)
        return None

    def _declaration(
        self,
        kind: DeclarationKind,
        name_node: cst.Name,
        *,
        owner: cst.CSTNode,
        scope: Scope,
    ) -> Declaration:
        key = DeclarationKey(self.path, self.offset(name_node))
        declaration = self._declarations.get(key)
        if declaration is None:
            declaration = Declaration(
                key=key,
                kind=kind,
                name=name_node.value,
                source_file=self.source_file,
                name_node=name_node,
                owner=owner,
                scope=scope,
            )
            self._declarations[key] = declaration
        return declaration

    def initializer(self, declaration: Declaration) -> cst.BaseExpression | None:
        owner = declaration.owner
        if isinstance(owner, cst.Param):
            return owner.default
        if isinstance(owner, cst.Assign):
            return owner.value
        return None

    def bindings(self, declaration: Declaration) -> list[Binding]:
        """Every binding of the declared name other than the declaration itself."""
        found: list[Binding] = []
        assignments = sorted(
            (
                item
                for item in declaration.scope.assignments[declaration.name]
                if isinstance(item, Assignment)
            ),
            key=self._assignment_order,
        )
        for assignment in assignments:
            node = assignment.node
            if node is declaration.owner or node is declaration.name_node:
                continue
            value = None
            if isinstance(node, cst.Name):
                statement = self.plain_assign(node)
                if statement is not None:
                    value = statement.value
            if value is None:
                found.append(Binding(BindingKind.OTHER, node))
            else:
                found.append(Binding(BindingKind.PLAIN, node, value))
        return found

    # Call sites

    def call_sites(self, function_def: cst.FunctionDef) -> list[CallSite]:
        """Calls of ``function_def`` here and in project modules importing it."""
        sites = self._local_call_sites(function_def)
        scope = self.scope_of(function_def)
        if isinstance(scope, ClassScope):
            sites.extend(self._receiver_call_sites(function_def, scope))
        elif isinstance(scope, GlobalScope):
            sites.extend(self._foreign_call_sites(function_def))
        return sites

    def _local_call_sites(self, function_def: cst.FunctionDef) -> list[CallSite]:
        scope = self.scope_of(function_def)
        if scope is None:
            return []
        sites: list[CallSite] = []
        for assignment in scope.assignments[function_def.name.value]:
            if not (isinstance(assignment, Assignment) and assignment.node is function_def):
                continue
            for access in assignment.references:
                call = self._call_of(access.node)
                if call is not None:
                    sites.append(CallSite(self, call))
        return sorted(sites, key=lambda site: self.offset(site.call))

    def _receiver_call_sites(
        self, function_def: cst.FunctionDef, scope: ClassScope
    ) -> list[CallSite]:
        receiver_offset = 0 if _is_staticmethod(function_def) else 1
        name = function_def.name.value
        sites: list[CallSite] = []
        for node in self.walk(scope.node):
            if not isinstance(node, cst.Call):
                continue
            func = node.func
            if (
                isinstance(func, cst.Attribute)
                and isinstance(func.value, cst.Name)
                and func.value.value in RECEIVER_NAMES
                and func.attr.value == name
            ):
                sites.append(CallSite(self, node, receiver_offset=receiver_offset))
        return sites

    def _foreign_call_sites(self, function_def: cst.FunctionDef) -> list[CallSite]:
        project = self.source_file.project
        if project is None:
            return []
        module_name = project.module_name(self.source_file)
        sites: list[CallSite] = []
        for other in project.files:
            if other is self.source_file or other.module is None:
                continue
            sites.extend(
                other.semantics().imported_call_sites(module_name, function_def.name.value)
            )
        return sites

    def imported_call_sites(self, module_name: str, function_name: str) -> list[CallSite]:
        """Calls of ``function_name`` bound by ``from <module_name> import ...``."""
        sites: list[CallSite] = []
        for node in self.walk():
            if not isinstance(node, cst.ImportFrom) or isinstance(node.names, cst.ImportStar):
                continue
            if self._import_source(node) != module_name:
                continue
            scope = self.scope_of(node)
            if scope is None:
                continue
            for alias in node.names:
                if get_full_name_for_node(alias.name) != function_name:
                    continue
                local = alias.asname.name if alias.asname is not None else alias.name
                local_name = get_full_name_for_node(local)
                if local_name is None:
                    continue
                for assignment in scope.assignments[local_name]:
                    if not (isinstance(assignment, ImportAssignment) and assignment.node is node):
                        continue
                    for access in assignment.references:
                        call = self._call_of(access.node)
                        if call is not None:
                            sites.append(CallSite(self, call, foreign=True))
        return sorted(sites, key=lambda site: self.offset(site.call))

    def _import_source(self, node: cst.ImportFrom) -> str | None:
        module_part = get_full_name_for_node(node.module) if node.module is not None else ""
        level = len(node.relative)
        if level == 0:
            return module_part
        project = self.source_file.project
        if project is None:
            return None
        parts = project.module_name(self.source_file).split(".")
        if self.source_file.path.stem != "__init__":
            parts = parts[:-1]
        if level > 1:
            parts = parts[: len(parts) - (level - 1)]
        if module_part:
            parts.append(module_part)
        return ".".join(part for part in parts if part)

    def _call_of(self, node: cst.CSTNode) -> cst.Call | None:
        parent = self.parent(node)
        if isinstance(parent, cst.Call) and parent.func is node:
            return parent
        return None

    # Types

    def expression_type(self, node: cst.BaseExpression) -> str:
        return self.types.witness(node)

    def expression_witnesses(self, node: cst.BaseExpression) -> list[str]:
        return self.types.witnesses(node)


def _binds(assignment: Assignment, name: cst.Name) -> bool:
    node = assignment.node
    if node is name:
        return True
    return isinstance(node, cst.Param) and node.name is name


def _is_staticmethod(function_def: cst.FunctionDef) -> bool:
    return any(
        isinstance(decorator.decorator, cst.Name)
        and decorator.decorator.value == "staticmethod"
        for decorator in function_def.decorators
    )


def positional_params(function_def: cst.FunctionDef) -> Sequence[cst.Param]:
    params = function_def.params
    return [*params.posonly_params, *params.params]
