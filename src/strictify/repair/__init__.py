from strictify.repair.correlate import NodeDiagnostic, correlate, filter_diagnostics, has_codes
from strictify.repair.driver import ConvergenceDriver, DriverResult, DriverState, StopReason
from strictify.repair.implicit_any import ImplicitAnyStrategy
from strictify.repair.implicit_returns import ImplicitReturnsStrategy
from strictify.repair.registry import build_strategies, strategy_for
from strictify.repair.strategy import RepairMode, RepairStrategy, UnresolvedDeclaration

__all__ = [
    "ConvergenceDriver",
    "DriverResult",
    "DriverState",
    "ImplicitAnyStrategy",
    "ImplicitReturnsStrategy",
    "NodeDiagnostic",
    "RepairMode",
    "RepairStrategy",
    "StopReason",
    "UnresolvedDeclaration",
    "build_strategies",
    "correlate",
    "filter_diagnostics",
    "has_codes",
    "strategy_for",
]
