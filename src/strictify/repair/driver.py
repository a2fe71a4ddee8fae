"""Fixed-point repair loop: parse, pick one applicable strategy, repair, reparse."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Sequence

from strictify.frontend.checker import Frontend
from strictify.frontend.diagnostics import CompilerDiagnostic
from strictify.frontend.project import Project
from strictify.reporting import Logger, NullLogger
from strictify.repair.strategy import RepairStrategy, UnresolvedDeclaration

DEFAULT_MAX_ITERATIONS = 50


class DriverState(str, Enum):
    PARSING = "parsing"
    SCANNING = "scanning"
    REPAIRING = "repairing"
    DONE = "done"


class StopReason(str, Enum):
    CONVERGED = "converged"
    STALLED = "stalled"
    ITERATION_LIMIT = "iteration-limit"


@dataclass
class DriverResult:
    diagnostics: list[CompilerDiagnostic]
    modified_paths: set[Path]
    iterations: int
    reason: StopReason
    transitions: list[DriverState] = field(default_factory=list)
    unresolved: list[UnresolvedDeclaration] = field(default_factory=list)

    @property
    def stalled(self) -> bool:
        return self.reason is not StopReason.CONVERGED


class ConvergenceDriver:
    """Runs repair strategies until none applies or the diagnostics stop changing.

    Only the modified-path accumulator and the previous diagnostic snapshot
    survive from one iteration to the next. A strategy exception aborts the
    session.
    """

    def __init__(
        self,
        project: Project,
        frontend: Frontend,
        strategies: Sequence[RepairStrategy],
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        logger: Logger | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.project = project
        self.frontend = frontend
        self.strategies = list(strategies)
        self.max_iterations = max_iterations
        self.logger = logger or NullLogger()
        self.state = DriverState.PARSING
        self.transitions: list[DriverState] = []

    def _enter(self, state: DriverState) -> None:
        self.state = state
        self.transitions.append(state)

    def run(self) -> DriverResult:
        self.transitions = []
        strategies = list(self.strategies)
        modified: set[Path] = set()
        iterations = 0

        self._enter(DriverState.PARSING)
        diagnostics = self.frontend.parse(self.project)
        while True:
            self._enter(DriverState.SCANNING)
            index = next(
                (i for i, item in enumerate(strategies) if item.applicable(diagnostics)),
                None,
            )
            if index is None:
                reason = StopReason.CONVERGED
                break
            if iterations >= self.max_iterations:
                self.logger.warning(
                    f"Stopping after {iterations} iteration(s) with "
                    f"{len(diagnostics)} diagnostic(s) left."
                )
                reason = StopReason.ITERATION_LIMIT
                break

            self._enter(DriverState.REPAIRING)
            strategy = strategies[index]
            self.logger.info(
                f"Iteration {iterations + 1}: applying {strategy.name} "
                f"to {len(diagnostics)} diagnostic(s)"
            )
            modified |= strategy.repair(diagnostics)
            iterations += 1
            strategies = strategies[index + 1 :] + strategies[: index + 1]

            self._enter(DriverState.PARSING)
            previous = diagnostics
            diagnostics = self.frontend.parse(self.project)
            if diagnostics == previous:
                self.logger.warning(
                    f"No progress after {strategy.name}; "
                    f"{len(diagnostics)} diagnostic(s) remain."
                )
                reason = StopReason.STALLED
                break

        self._enter(DriverState.DONE)
        unresolved = [
            record for strategy in self.strategies for record in strategy.unresolved
        ]
        return DriverResult(
            diagnostics=diagnostics,
            modified_paths=modified,
            iterations=iterations,
            reason=reason,
            transitions=list(self.transitions),
            unresolved=unresolved,
        )
