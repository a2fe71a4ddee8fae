"""Reachability of the end of a statement block.

The analysis is syntactic: a block terminates when some statement in it
always returns or raises. Loops are considered to terminate only for
``while True`` without a ``break``.
"""

from __future__ import annotations

from typing import Sequence

import libcst as cst


def terminates(statements: Sequence[cst.BaseStatement]) -> bool:
    return any(_statement_terminates(statement) for statement in statements)


def block_terminates(block: cst.BaseSuite) -> bool:
    if isinstance(block, cst.IndentedBlock):
        return terminates(block.body)
    if isinstance(block, cst.SimpleStatementSuite):
        return any(isinstance(item, (cst.Return, cst.Raise)) for item in block.body)
    return False


def _else_terminates(orelse: cst.If | cst.Else | None) -> bool:
    if orelse is None:
        return False
    if isinstance(orelse, cst.If):
        return _statement_terminates(orelse)
    return block_terminates(orelse.body)


def _is_always_true(test: cst.BaseExpression) -> bool:
    if isinstance(test, cst.Name):
        return test.value == "True"
    if isinstance(test, cst.Integer):
        return test.value not in ("0", "0x0", "0o0", "0b0")
    return False


def _statement_terminates(statement: cst.BaseStatement) -> bool:
    if isinstance(statement, cst.SimpleStatementLine):
        return any(isinstance(item, (cst.Return, cst.Raise)) for item in statement.body)
    if isinstance(statement, cst.If):
        return block_terminates(statement.body) and _else_terminates(statement.orelse)
    if isinstance(statement, cst.While):
        if _is_always_true(statement.test) and not contains_break(statement.body):
            return True
        return _loop_else_terminates(statement)
    if isinstance(statement, cst.For):
        return _loop_else_terminates(statement)
    if isinstance(statement, cst.With):
        return block_terminates(statement.body)
    if isinstance(statement, (cst.Try, cst.TryStar)):
        return _try_terminates(statement)
    if isinstance(statement, cst.Match):
        return _match_terminates(statement)
    return False


def _loop_else_terminates(loop: cst.For | cst.While) -> bool:
    if loop.orelse is None or contains_break(loop.body):
        return False
    return block_terminates(loop.orelse.body)


def _try_terminates(statement: cst.Try | cst.TryStar) -> bool:
    if statement.finalbody is not None and block_terminates(statement.finalbody.body):
        return True
    body_done = block_terminates(statement.body)
    if not body_done and statement.orelse is not None:
        body_done = block_terminates(statement.orelse.body)
    return body_done and all(
        block_terminates(handler.body) for handler in statement.handlers
    )


def _match_terminates(statement: cst.Match) -> bool:
    irrefutable = any(
        isinstance(case.pattern, cst.MatchAs)
        and case.pattern.pattern is None
        and case.guard is None
        for case in statement.cases
    )
    return irrefutable and all(block_terminates(case.body) for case in statement.cases)


class _BreakFinder(cst.CSTVisitor):
    def __init__(self) -> None:
        self.found = False

    def visit_Break(self, node: cst.Break) -> bool | None:
        self.found = True
        return False

    def visit_For(self, node: cst.For) -> bool | None:
        return False

    def visit_While(self, node: cst.While) -> bool | None:
        return False

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool | None:
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> bool | None:
        return False


def contains_break(block: cst.BaseSuite) -> bool:
    """True when ``block`` breaks out of the loop that owns it."""
    finder = _BreakFinder()
    block.visit(finder)
    return finder.found


class FunctionExits(cst.CSTVisitor):
    """Return statements and yields owned by one function body."""

    def __init__(self) -> None:
        self.returns: list[cst.Return] = []
        self.is_generator = False

    def visit_Return(self, node: cst.Return) -> bool | None:
        self.returns.append(node)
        return True

    def visit_Yield(self, node: cst.Yield) -> bool | None:
        self.is_generator = True
        return True

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool | None:
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> bool | None:
        return False

    def visit_Lambda(self, node: cst.Lambda) -> bool | None:
        return False

    @classmethod
    def of(cls, function_def: cst.FunctionDef) -> FunctionExits:
        exits = cls()
        function_def.body.visit(exits)
        return exits
