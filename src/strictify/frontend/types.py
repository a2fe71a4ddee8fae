"""Type witnesses: textual annotation expressions inferred for expressions.

A witness is a string such as ``int``, ``list[str]`` or ``int | None``. Two
witnesses are special: ``Any`` is the untyped fallback (the expression's type
could not be determined) and ``Never`` marks the element type of an empty
container literal.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable

import libcst as cst
from libcst.metadata import Assignment, BuiltinAssignment

if TYPE_CHECKING:
    from strictify.frontend.semantics import SemanticModel

UNTYPED = "Any"
EMPTY = "Never"

BUILTIN_TYPE_NAMES: frozenset[str] = frozenset(
    {
        "bool",
        "bytearray",
        "bytes",
        "complex",
        "dict",
        "float",
        "frozenset",
        "int",
        "list",
        "object",
        "range",
        "set",
        "slice",
        "str",
        "tuple",
        "type",
    }
)

_SPECIAL_NAMES: frozenset[str] = frozenset({UNTYPED, EMPTY, "None"})

_BUILTIN_CALL_RESULTS: dict[str, str] = {
    "abs": UNTYPED,
    "ascii": "str",
    "bin": "str",
    "bool": "bool",
    "bytearray": "bytearray",
    "bytes": "bytes",
    "callable": "bool",
    "chr": "str",
    "complex": "complex",
    "float": "float",
    "format": "str",
    "hash": "int",
    "hex": "str",
    "id": "int",
    "input": "str",
    "int": "int",
    "isinstance": "bool",
    "issubclass": "bool",
    "len": "int",
    "oct": "str",
    "ord": "int",
    "repr": "str",
    "str": "str",
}

_EMPTY_CONSTRUCTORS: dict[str, str] = {
    "dict": f"dict[{EMPTY}, {EMPTY}]",
    "frozenset": f"frozenset[{EMPTY}]",
    "list": f"list[{EMPTY}]",
    "set": f"set[{EMPTY}]",
}

_TRANSPARENT_DECORATORS: frozenset[str] = frozenset({"staticmethod", "classmethod"})

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


def _has_token(witness: str, token: str) -> bool:
    return re.search(rf"\b{token}\b", witness) is not None


def is_untyped(witness: str) -> bool:
    """True for witnesses that carry no usable type (``Any`` or ``Never``)."""
    return _has_token(witness, UNTYPED) or _has_token(witness, EMPTY)


def referenced_names(witness: str) -> set[str]:
    """Leading identifiers of the non-builtin names a witness mentions."""
    return {
        name.split(".")[0]
        for name in _IDENTIFIER_RE.findall(witness)
        if name not in BUILTIN_TYPE_NAMES and name not in _SPECIAL_NAMES
    }


def is_portable(witness: str) -> bool:
    """True when the witness only names builtin types."""
    return not referenced_names(witness)


def _split_top_level(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return [part for part in parts if part]


def split_union(witness: str) -> list[str]:
    """Decompose a union witness into its members.

    Handles ``a | b`` as well as ``Optional[a]`` and ``Union[a, b]`` spellings.
    """
    members: list[str] = []
    for part in _split_top_level(witness, "|"):
        match = re.fullmatch(r"(?:typing\.)?(Optional|Union)\[(.*)\]", part, re.DOTALL)
        if match is None:
            members.append(part)
            continue
        inner = _split_top_level(match.group(2), ",")
        for item in inner:
            members.extend(split_union(item))
        if match.group(1) == "Optional":
            members.append("None")
    deduped: list[str] = []
    for member in members:
        if member not in deduped:
            deduped.append(member)
    return deduped


def sort_witnesses(witnesses: Iterable[str]) -> list[str]:
    return sorted(set(witnesses), key=lambda item: (item.lower(), item))


def join_union(witnesses: Iterable[str]) -> str:
    flat: list[str] = []
    for witness in witnesses:
        flat.extend(split_union(witness))
    if not flat:
        return UNTYPED
    return " | ".join(sort_witnesses(flat))


def filter_unnecessary_types(witnesses: Iterable[str]) -> set[str]:
    """Drop ``Never`` placeholders subsumed by a concrete witness of the same shape.

    ``{"list[Never]", "list[int]"}`` becomes ``{"list[int]"}``; a lone
    ``list[Never]`` is kept (and is later treated as untyped).
    """
    pool = set(witnesses)
    kept: set[str] = set()
    for witness in pool:
        if not _has_token(witness, EMPTY):
            kept.add(witness)
            continue
        pattern = re.compile(
            ".+".join(re.escape(piece) for piece in re.split(rf"\b{EMPTY}\b", witness))
        )
        subsumed = any(
            other != witness and pattern.fullmatch(other) for other in pool
        )
        if not subsumed:
            kept.add(witness)
    return kept


def _is_none_literal(node: cst.BaseExpression | None) -> bool:
    return isinstance(node, cst.Name) and node.value == "None"


def _numeric_join(left: str, right: str, operator: cst.BaseBinaryOp) -> str:
    numeric = ("bool", "int", "float", "complex")
    if left not in numeric or right not in numeric:
        return UNTYPED
    if isinstance(operator, cst.Divide):
        return "complex" if "complex" in (left, right) else "float"
    rank = max(numeric.index(left), numeric.index(right), 1)
    return numeric[rank]


class TypeEvaluator:
    """Computes witnesses for expressions of one parse generation."""

    def __init__(self, model: SemanticModel) -> None:
        self.model = model
        self._in_progress: set[int] = set()

    def witnesses(self, node: cst.BaseExpression) -> list[str]:
        return split_union(self.witness(node))

    def witness(self, node: cst.BaseExpression) -> str:
        marker = id(node)
        if marker in self._in_progress:
            return UNTYPED
        self._in_progress.add(marker)
        try:
            return self._evaluate(node)
        finally:
            self._in_progress.discard(marker)

    def annotation_text(self, annotation: cst.Annotation) -> str:
        expression = annotation.annotation
        if isinstance(expression, (cst.SimpleString, cst.ConcatenatedString)):
            # Forward reference: the quoted text is the annotation.
            value = expression.evaluated_value
            return value.strip() if isinstance(value, str) and value.strip() else UNTYPED
        return self.model.module.code_for_node(expression).strip()

    def _evaluate(self, node: cst.BaseExpression) -> str:
        if isinstance(node, cst.Integer):
            return "int"
        if isinstance(node, cst.Float):
            return "float"
        if isinstance(node, cst.Imaginary):
            return "complex"
        if isinstance(node, cst.SimpleString):
            return "bytes" if "b" in node.prefix.lower() else "str"
        if isinstance(node, cst.ConcatenatedString):
            return self._evaluate(node.left)
        if isinstance(node, cst.FormattedString):
            return "bytes" if "b" in node.prefix.lower() else "str"
        if isinstance(node, cst.Name):
            return self._name(node)
        if isinstance(node, (cst.List, cst.Set)):
            return self._sequence(node)
        if isinstance(node, cst.Tuple):
            return self._tuple(node)
        if isinstance(node, cst.Dict):
            return self._dict(node)
        if isinstance(node, cst.Comparison):
            return "bool"
        if isinstance(node, cst.UnaryOperation):
            return self._unary(node)
        if isinstance(node, cst.BinaryOperation):
            return self._binary(node)
        if isinstance(node, cst.BooleanOperation):
            return join_union([self.witness(node.left), self.witness(node.right)])
        if isinstance(node, cst.IfExp):
            return join_union([self.witness(node.body), self.witness(node.orelse)])
        if isinstance(node, cst.Call):
            return self._call(node)
        return UNTYPED

    def _sequence(self, node: cst.List | cst.Set) -> str:
        container = "list" if isinstance(node, cst.List) else "set"
        if not node.elements:
            return f"{container}[{EMPTY}]"
        members: list[str] = []
        for element in node.elements:
            if isinstance(element, cst.StarredElement):
                return f"{container}[{UNTYPED}]"
            members.append(self.witness(element.value))
        return f"{container}[{join_union(members)}]"

    def _tuple(self, node: cst.Tuple) -> str:
        if not node.elements:
            return "tuple[()]"
        members: list[str] = []
        for element in node.elements:
            if isinstance(element, cst.StarredElement):
                return f"tuple[{UNTYPED}, ...]"
            members.append(self.witness(element.value))
        return f"tuple[{', '.join(members)}]"

    def _dict(self, node: cst.Dict) -> str:
        if not node.elements:
            return f"dict[{EMPTY}, {EMPTY}]"
        keys: list[str] = []
        values: list[str] = []
        for element in node.elements:
            if not isinstance(element, cst.DictElement):
                return f"dict[{UNTYPED}, {UNTYPED}]"
            keys.append(self.witness(element.key))
            values.append(self.witness(element.value))
        return f"dict[{join_union(keys)}, {join_union(values)}]"

    def _unary(self, node: cst.UnaryOperation) -> str:
        if isinstance(node.operator, cst.Not):
            return "bool"
        operand = self.witness(node.expression)
        if isinstance(node.operator, cst.BitInvert):
            return "int" if operand in ("bool", "int") else UNTYPED
        if operand == "bool":
            return "int"
        return operand if operand in ("int", "float", "complex") else UNTYPED

    def _binary(self, node: cst.BinaryOperation) -> str:
        left = self.witness(node.left)
        right = self.witness(node.right)
        operator = node.operator
        if isinstance(operator, cst.Modulo) and left in ("str", "bytes"):
            return left
        if isinstance(operator, cst.Add) and left == right and left in ("str", "bytes"):
            return left
        if isinstance(operator, cst.Add) and left == right and left.startswith(("list[", "tuple[")):
            return left
        if isinstance(operator, cst.Multiply):
            if left in ("str", "bytes") and right in ("bool", "int"):
                return left
            if right in ("str", "bytes") and left in ("bool", "int"):
                return right
        if isinstance(operator, (cst.FloorDivide, cst.Power, cst.Modulo)) and "float" not in (left, right):
            if left in ("bool", "int") and right in ("bool", "int"):
                return "int" if not isinstance(operator, cst.Power) else UNTYPED
        if isinstance(operator, (cst.BitAnd, cst.BitOr, cst.BitXor, cst.LeftShift, cst.RightShift)):
            if left in ("bool", "int") and right in ("bool", "int"):
                return "bool" if left == right == "bool" and not isinstance(
                    operator, (cst.LeftShift, cst.RightShift)
                ) else "int"
            return UNTYPED
        if isinstance(operator, cst.MatrixMultiply):
            return UNTYPED
        return _numeric_join(left, right, operator)

    def _call(self, node: cst.Call) -> str:
        func = node.func
        if not isinstance(func, cst.Name):
            return UNTYPED
        referents = self.model.assignments_for(func)
        if len(referents) != 1:
            return UNTYPED
        (referent,) = referents
        if isinstance(referent, BuiltinAssignment):
            if not node.args and referent.name in _EMPTY_CONSTRUCTORS:
                return _EMPTY_CONSTRUCTORS[referent.name]
            return _BUILTIN_CALL_RESULTS.get(referent.name, UNTYPED)
        if not isinstance(referent, Assignment):
            return UNTYPED
        definition = referent.node
        if isinstance(definition, cst.ClassDef):
            return definition.name.value
        if isinstance(definition, cst.FunctionDef):
            if definition.asynchronous is not None or definition.returns is None:
                return UNTYPED
            for decorator in definition.decorators:
                target = decorator.decorator
                if not (isinstance(target, cst.Name) and target.value in _TRANSPARENT_DECORATORS):
                    return UNTYPED
            return join_union([self.annotation_text(definition.returns)])
        return UNTYPED

    def _name(self, node: cst.Name) -> str:
        if node.value in ("True", "False"):
            return "bool"
        if node.value == "None":
            return "None"
        referents = self.model.assignments_for(node)
        if not referents:
            return UNTYPED
        members: list[str] = []
        for referent in referents:
            members.append(self._referent(referent))
        return join_union(members)

    def _referent(self, referent: object) -> str:
        if isinstance(referent, BuiltinAssignment):
            if referent.name in BUILTIN_TYPE_NAMES:
                return f"type[{referent.name}]"
            return UNTYPED
        if not isinstance(referent, Assignment):
            return UNTYPED
        definition = referent.node
        if isinstance(definition, cst.Param):
            return self._parameter(definition)
        if isinstance(definition, cst.ClassDef):
            return f"type[{definition.name.value}]"
        if isinstance(definition, cst.Name):
            return self._declared(referent)
        return UNTYPED

    def _parameter(self, param: cst.Param) -> str:
        if param.annotation is not None:
            return join_union([self.annotation_text(param.annotation)])
        if param.default is None or _is_none_literal(param.default):
            return UNTYPED
        inferred = self.witness(param.default)
        return UNTYPED if is_untyped(inferred) else inferred

    def _declared(self, referent: Assignment) -> str:
        """Declared type of a variable: its annotation or its first binding's value."""
        annotated = self.model.annotation_for_binding(referent)
        if annotated is not None:
            return join_union([self.annotation_text(annotated)])
        first = self.model.first_binding(referent.scope, referent.name)
        if first is None:
            return UNTYPED
        annotated = self.model.annotation_for_binding(first)
        if annotated is not None:
            return join_union([self.annotation_text(annotated)])
        value = self.model.assigned_value(first)
        if value is None or _is_none_literal(value):
            return UNTYPED
        inferred = self.witness(value)
        return UNTYPED if _has_token(inferred, EMPTY) else inferred
