from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import Iterable


class DiagnosticCategory(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(IntEnum):
    SYNTAX_ERROR = 1005
    VARIABLE_IMPLICITLY_ANY = 7005
    PARAMETER_IMPLICITLY_ANY = 7006
    CODE_PATH_NO_RETURN = 7030


class CheckFlag(str, Enum):
    NO_IMPLICIT_ANY = "no-implicit-any"
    NO_IMPLICIT_RETURNS = "no-implicit-returns"


CHECK_FLAG_CODES: dict[CheckFlag, frozenset[int]] = {
    CheckFlag.NO_IMPLICIT_ANY: frozenset(
        {
            DiagnosticCode.VARIABLE_IMPLICITLY_ANY,
            DiagnosticCode.PARAMETER_IMPLICITLY_ANY,
        }
    ),
    CheckFlag.NO_IMPLICIT_RETURNS: frozenset({DiagnosticCode.CODE_PATH_NO_RETURN}),
}


def parse_check_flags(values: Iterable[str]) -> tuple[CheckFlag, ...]:
    """Normalize flag names such as ``--noImplicitAny`` or ``no_implicit_any``."""
    by_key = {
        flag.value.replace("-", ""): flag for flag in CheckFlag
    }
    flags: list[CheckFlag] = []
    for value in values:
        key = value.strip().lstrip("-").lower().replace("_", "").replace("-", "")
        if not key:
            continue
        flag = by_key.get(key)
        if flag is None:
            known = ", ".join(item.value for item in CheckFlag)
            raise ValueError(f"Unknown check flag '{value}' (known: {known}).")
        if flag not in flags:
            flags.append(flag)
    return tuple(flags)


@dataclass(frozen=True)
class CompilerDiagnostic:
    code: int
    path: Path
    start: int
    length: int
    category: DiagnosticCategory = DiagnosticCategory.ERROR
    message: str = ""
    line: int = 0
    column: int = 0

    def sort_key(self) -> tuple[str, int, int]:
        return (str(self.path), self.start, self.code)

    def render(self) -> str:
        return (
            f"{self.path}:{self.line}:{self.column} - {self.category.value} "
            f"SF{self.code}: {self.message}"
        )


def sort_diagnostics(diagnostics: Iterable[CompilerDiagnostic]) -> list[CompilerDiagnostic]:
    return sorted(diagnostics, key=CompilerDiagnostic.sort_key)
