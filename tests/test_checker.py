from __future__ import annotations

import libcst as cst
import pytest

from strictify.frontend.checker import Frontend, is_implicit_any_initializer
from strictify.frontend.diagnostics import (
    CheckFlag,
    DiagnosticCode,
    parse_check_flags,
)

ALL_FLAGS = (CheckFlag.NO_IMPLICIT_ANY, CheckFlag.NO_IMPLICIT_RETURNS)


def _codes(project, flags=ALL_FLAGS) -> list[tuple[int, int, int]]:
    return [(item.code, item.line, item.column) for item in Frontend(flags).parse(project)]


def test_unannotated_parameters_are_reported(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            def f(a, b: int, c=1, d=None, *args, e, **kwargs):
                pass
            """
        }
    )
    assert _codes(project) == [
        (DiagnosticCode.PARAMETER_IMPLICITLY_ANY, 1, 7),
        (DiagnosticCode.PARAMETER_IMPLICITLY_ANY, 1, 23),
        (DiagnosticCode.PARAMETER_IMPLICITLY_ANY, 1, 38),
    ]


def test_receiver_parameters_are_not_reported(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            class C:
                def method(self, value: int) -> None:
                    pass

                @classmethod
                def build(cls) -> None:
                    pass

                @staticmethod
                def helper(value):
                    pass
            """
        }
    )
    diagnostics = Frontend(ALL_FLAGS).parse(project)
    assert [item.message for item in diagnostics] == [
        "Parameter 'value' implicitly has an 'Any' type."
    ]
    assert diagnostics[0].line == 10


def test_variables_with_untyped_initializers_are_reported(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            total = None
            items = []
            count = 0
            total = 5


            def f() -> None:
                local = {}
                local = {"k": 1}
            """
        }
    )
    diagnostics = Frontend([CheckFlag.NO_IMPLICIT_ANY]).parse(project)
    assert [(item.code, item.line) for item in diagnostics] == [
        (DiagnosticCode.VARIABLE_IMPLICITLY_ANY, 1),
        (DiagnosticCode.VARIABLE_IMPLICITLY_ANY, 2),
        (DiagnosticCode.VARIABLE_IMPLICITLY_ANY, 8),
    ]


def test_implicit_returns(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            def sign(x: int):
                if x > 0:
                    return 1
                elif x < 0:
                    return
                print("zero")


            def always(x: int):
                if x:
                    return 1
                else:
                    raise ValueError(x)


            def spin():
                while True:
                    return 1


            def gen():
                yield 1
                return


            def quiet():
                return
            """
        }
    )
    diagnostics = Frontend([CheckFlag.NO_IMPLICIT_RETURNS]).parse(project)
    assert [(item.code, item.line, item.column) for item in diagnostics] == [
        (DiagnosticCode.CODE_PATH_NO_RETURN, 1, 5),
        (DiagnosticCode.CODE_PATH_NO_RETURN, 5, 9),
    ]


def test_syntax_errors_are_reported_without_flags(make_project) -> None:
    project = make_project({"bad.py": "def f(:\n    pass\n", "good.py": "def g(a):\n    pass\n"})
    diagnostics = Frontend().parse(project)
    assert [item.code for item in diagnostics] == [DiagnosticCode.SYNTAX_ERROR]
    assert diagnostics[0].path.name == "bad.py"
    assert "SF1005" in diagnostics[0].render()


def test_diagnostics_are_sorted_and_rendered(make_project) -> None:
    project = make_project({"b.py": "def g(x):\n    pass\n", "a.py": "def f(y):\n    pass\n"})
    diagnostics = Frontend(ALL_FLAGS).parse(project)
    assert [item.path.name for item in diagnostics] == ["a.py", "b.py"]
    rendered = diagnostics[0].render()
    assert rendered.endswith(":1:7 - error SF7006: Parameter 'y' implicitly has an 'Any' type.")


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("None", True),
        ("[]", True),
        ("()", True),
        ("{}", True),
        ("[1]", False),
        ("0", False),
        ("''", False),
    ],
)
def test_implicit_any_initializers(source: str, expected: bool) -> None:
    assert is_implicit_any_initializer(cst.parse_expression(source)) is expected


def test_parse_check_flags_normalizes_spellings() -> None:
    assert parse_check_flags(["--noImplicitAny", "no_implicit_returns", "no-implicit-any"]) == (
        CheckFlag.NO_IMPLICIT_ANY,
        CheckFlag.NO_IMPLICIT_RETURNS,
    )
    with pytest.raises(ValueError, match="Unknown check flag"):
        parse_check_flags(["strict"])
