from __future__ import annotations

import libcst as cst
import pytest

from strictify.frontend.types import (
    filter_unnecessary_types,
    is_portable,
    is_untyped,
    join_union,
    referenced_names,
    split_union,
)


def _value_of(project, name: str) -> cst.BaseExpression:
    model = project.files[0].semantics()
    for node in model.walk():
        if isinstance(node, cst.Assign):
            target = node.targets[0].target
            if isinstance(target, cst.Name) and target.value == name:
                return node.value
    raise AssertionError(f"no assignment to {name}")


SOURCE = """
import os


class Point:
    pass


def make() -> list[int]:
    return []


a = 1
b = 2.5
c = "s"
d = b"raw"
e = [1, "x"]
f = {"k": 1.0}
g = (1, "x")
h = Point()
i = make()
j = a + b
k = 1 if a else "no"
m = os.getcwd()
n = len(c)
o = []
p = {}
q = ()
r = c * 2
s = a // 2
t = a / 2
u = None
v = a < b
w = not a
x = f"{a}"
y = {1, 2}
z = c + c
"""


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("a", "int"),
        ("b", "float"),
        ("c", "str"),
        ("d", "bytes"),
        ("e", "list[int | str]"),
        ("f", "dict[str, float]"),
        ("g", "tuple[int, str]"),
        ("h", "Point"),
        ("i", "list[int]"),
        ("j", "float"),
        ("k", "int | str"),
        ("m", "Any"),
        ("n", "int"),
        ("o", "list[Never]"),
        ("p", "dict[Never, Never]"),
        ("q", "tuple[()]"),
        ("r", "str"),
        ("s", "int"),
        ("t", "float"),
        ("u", "None"),
        ("v", "bool"),
        ("w", "bool"),
        ("x", "str"),
        ("y", "set[int]"),
        ("z", "str"),
    ],
)
def test_expression_witnesses(make_project, name: str, expected: str) -> None:
    project = make_project({"sample.py": SOURCE})
    model = project.files[0].semantics()
    assert model.expression_type(_value_of(project, name)) == expected


def test_unannotated_parameter_reads_as_any(make_project) -> None:
    project = make_project(
        {
            "sample.py": """
            def f(a, b: str, c=3):
                x = a
                y = b
                z = c
            """
        }
    )
    model = project.files[0].semantics()
    assert model.expression_type(_value_of(project, "x")) == "Any"
    assert model.expression_type(_value_of(project, "y")) == "str"
    assert model.expression_type(_value_of(project, "z")) == "int"


def test_split_union_handles_all_spellings() -> None:
    assert split_union("int | str") == ["int", "str"]
    assert split_union("Optional[int]") == ["int", "None"]
    assert split_union("Union[int, dict[str, int]]") == ["int", "dict[str, int]"]
    assert split_union("dict[str, int | None]") == ["dict[str, int | None]"]


def test_join_union_sorts_case_insensitively_and_dedupes() -> None:
    assert join_union(["str", "int", "None", "int"]) == "int | None | str"
    assert join_union([]) == "Any"


def test_filter_unnecessary_types_drops_subsumed_never() -> None:
    assert filter_unnecessary_types({"list[Never]", "list[int]"}) == {"list[int]"}
    assert filter_unnecessary_types({"dict[Never, Never]", "dict[str, int]", "int"}) == {
        "dict[str, int]",
        "int",
    }
    assert filter_unnecessary_types({"list[Never]", "str"}) == {"list[Never]", "str"}


def test_untyped_and_portable_predicates() -> None:
    assert is_untyped("Any")
    assert is_untyped("list[Never]")
    assert not is_untyped("list[int]")
    assert not is_untyped("Anything")
    assert is_portable("dict[str, list[int]]")
    assert is_portable("None")
    assert not is_portable("Point")


def test_quoted_annotations_are_unquoted(make_project) -> None:
    project = make_project(
        {
            "sample.py": """
            class Node:
                pass


            def f(a: "Node", b: 'int | None', c: ""):
                x = a
                y = b
                z = c
            """
        }
    )
    model = project.files[0].semantics()
    assert model.expression_type(_value_of(project, "x")) == "Node"
    assert model.expression_type(_value_of(project, "y")) == "int | None"
    assert model.expression_type(_value_of(project, "z")) == "Any"


def test_referenced_names_skip_builtins() -> None:
    assert referenced_names("dict[str, list[Node]] | None") == {"Node"}
    assert referenced_names("type[pkg.mod.Point]") == {"pkg"}
    assert referenced_names("tuple[int, ...]") == set()
