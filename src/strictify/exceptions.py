"""Error taxonomy for strictify sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from strictify.frontend.diagnostics import CompilerDiagnostic


class StrictifyError(Exception):
    """Base class for every error strictify raises on purpose."""


class ConfigError(StrictifyError):
    pass


class ProjectNotCompilingError(StrictifyError):
    """The project has errors before any stricter check is enabled.

    Raised during the pre-flight check, before any source file is touched.
    """

    def __init__(self, diagnostics: Sequence[CompilerDiagnostic]):
        self.diagnostics = tuple(diagnostics)
        super().__init__(
            "Project does not compile with the original flag set "
            f"({len(self.diagnostics)} error(s))."
        )


class CorrelationMismatchError(StrictifyError):
    """Diagnostics and the syntax tree come from different parse generations.

    Pairing must stop here; continuing would attach edits to unrelated nodes.
    """

    def __init__(
        self,
        *,
        expected: int,
        found: int,
        unmatched: Sequence[CompilerDiagnostic] = (),
    ):
        self.expected = expected
        self.found = found
        self.unmatched = tuple(unmatched)
        super().__init__(
            f"Correlated {found} node(s) for {expected} diagnostic(s); "
            f"{len(self.unmatched)} diagnostic(s) had no matching node."
        )


class NeverThrown(RuntimeError):
    """Raised by :func:`strictify.invariants.never` on an impossible state."""

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})
