"""Fixed style profile applied to touched files.

Two-space indentation, no whitespace just inside brackets, braces and
parentheses, and a trailing newline. Whitespace containing a newline is left
alone so multi-line layouts survive.
"""

from __future__ import annotations

import libcst as cst

INDENT = "  "
_EMPTY = cst.SimpleWhitespace("")


def _tight(whitespace: cst.BaseParenthesizableWhitespace) -> cst.BaseParenthesizableWhitespace:
    if isinstance(whitespace, cst.SimpleWhitespace):
        return _EMPTY
    return whitespace


def _tight_last_comma(comma: cst.Comma | cst.MaybeSentinel) -> cst.Comma | cst.MaybeSentinel:
    if isinstance(comma, cst.Comma):
        return comma.with_changes(whitespace_after=_tight(comma.whitespace_after))
    return comma


class _StyleTransformer(cst.CSTTransformer):
    def leave_IndentedBlock(
        self, original_node: cst.IndentedBlock, updated_node: cst.IndentedBlock
    ) -> cst.IndentedBlock:
        return updated_node.with_changes(indent=None)

    def leave_LeftParen(
        self, original_node: cst.LeftParen, updated_node: cst.LeftParen
    ) -> cst.LeftParen:
        return updated_node.with_changes(whitespace_after=_tight(updated_node.whitespace_after))

    def leave_RightParen(
        self, original_node: cst.RightParen, updated_node: cst.RightParen
    ) -> cst.RightParen:
        return updated_node.with_changes(whitespace_before=_tight(updated_node.whitespace_before))

    def leave_LeftSquareBracket(
        self, original_node: cst.LeftSquareBracket, updated_node: cst.LeftSquareBracket
    ) -> cst.LeftSquareBracket:
        return updated_node.with_changes(whitespace_after=_tight(updated_node.whitespace_after))

    def leave_RightSquareBracket(
        self, original_node: cst.RightSquareBracket, updated_node: cst.RightSquareBracket
    ) -> cst.RightSquareBracket:
        return updated_node.with_changes(whitespace_before=_tight(updated_node.whitespace_before))

    def leave_LeftCurlyBrace(
        self, original_node: cst.LeftCurlyBrace, updated_node: cst.LeftCurlyBrace
    ) -> cst.LeftCurlyBrace:
        return updated_node.with_changes(whitespace_after=_tight(updated_node.whitespace_after))

    def leave_RightCurlyBrace(
        self, original_node: cst.RightCurlyBrace, updated_node: cst.RightCurlyBrace
    ) -> cst.RightCurlyBrace:
        return updated_node.with_changes(whitespace_before=_tight(updated_node.whitespace_before))

    def leave_Call(self, original_node: cst.Call, updated_node: cst.Call) -> cst.Call:
        args = list(updated_node.args)
        if args:
            last = args[-1]
            args[-1] = last.with_changes(
                comma=_tight_last_comma(last.comma),
                whitespace_after_arg=_tight(last.whitespace_after_arg),
            )
        return updated_node.with_changes(
            whitespace_before_args=_tight(updated_node.whitespace_before_args),
            args=args,
        )

    def leave_FunctionDef(
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.FunctionDef:
        params = updated_node.params
        star_kwarg = params.star_kwarg
        if star_kwarg is not None:
            params = params.with_changes(
                star_kwarg=star_kwarg.with_changes(
                    comma=_tight_last_comma(star_kwarg.comma),
                    whitespace_after_param=_tight(star_kwarg.whitespace_after_param),
                )
            )
        elif params.params and not params.kwonly_params and not isinstance(
            params.star_arg, cst.Param
        ):
            last = params.params[-1]
            tightened = last.with_changes(
                comma=_tight_last_comma(last.comma),
                whitespace_after_param=_tight(last.whitespace_after_param),
            )
            params = _replace_param(params, last, tightened)
        elif params.kwonly_params:
            last = params.kwonly_params[-1]
            tightened = last.with_changes(
                comma=_tight_last_comma(last.comma),
                whitespace_after_param=_tight(last.whitespace_after_param),
            )
            params = _replace_param(params, last, tightened)
        elif isinstance(params.star_arg, cst.Param):
            star_arg = params.star_arg
            params = params.with_changes(
                star_arg=star_arg.with_changes(
                    comma=_tight_last_comma(star_arg.comma),
                    whitespace_after_param=_tight(star_arg.whitespace_after_param),
                )
            )
        return updated_node.with_changes(
            whitespace_before_params=_tight(updated_node.whitespace_before_params),
            params=params,
        )


def _replace_param(params: cst.Parameters, old: cst.Param, new: cst.Param) -> cst.Parameters:
    def swap(items: tuple[cst.Param, ...] | list[cst.Param]) -> list[cst.Param]:
        return [new if item is old else item for item in items]

    return params.with_changes(
        posonly_params=swap(params.posonly_params),
        params=swap(params.params),
        kwonly_params=swap(params.kwonly_params),
    )


def format_module(module: cst.Module) -> cst.Module:
    styled = module.visit(_StyleTransformer())
    return styled.with_changes(default_indent=INDENT, has_trailing_newline=True)


def format_code(code: str) -> str:
    return format_module(cst.parse_module(code)).code
