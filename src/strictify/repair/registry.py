"""Check flag to repair strategy lookup."""

from __future__ import annotations

from typing import Callable, Iterable

from strictify import never
from strictify.frontend.diagnostics import CheckFlag
from strictify.frontend.project import Project
from strictify.reporting import Logger
from strictify.repair.implicit_any import ImplicitAnyStrategy
from strictify.repair.implicit_returns import ImplicitReturnsStrategy
from strictify.repair.strategy import BaseRepairStrategy, RepairMode, RepairStrategy

StrategyFactory = Callable[..., RepairStrategy]

_FACTORIES: dict[CheckFlag, StrategyFactory] = {}


def register_strategy(flag: CheckFlag, factory: StrategyFactory) -> None:
    _FACTORIES[flag] = factory


def strategy_for(
    flag: CheckFlag,
    *,
    project: Project,
    mode: RepairMode = RepairMode.ALL,
    logger: Logger | None = None,
) -> RepairStrategy:
    factory = _FACTORIES.get(flag)
    if factory is None:
        never("no repair strategy registered for check flag", flag=flag)
    return factory(project, mode=mode, logger=logger)


def build_strategies(
    flags: Iterable[CheckFlag],
    *,
    project: Project,
    mode: RepairMode = RepairMode.ALL,
    logger: Logger | None = None,
) -> list[RepairStrategy]:
    return [
        strategy_for(flag, project=project, mode=mode, logger=logger) for flag in flags
    ]


def _register_builtin(strategy: type[BaseRepairStrategy]) -> None:
    register_strategy(strategy.flag, strategy)


_register_builtin(ImplicitAnyStrategy)
_register_builtin(ImplicitReturnsStrategy)
