from __future__ import annotations

from typing import List

from pydantic import BaseModel

from strictify.frontend.diagnostics import CompilerDiagnostic
from strictify.repair.driver import DriverResult
from strictify.repair.strategy import UnresolvedDeclaration


class DiagnosticDTO(BaseModel):
    code: int
    path: str
    start: int
    length: int
    category: str
    message: str = ""
    line: int = 0
    column: int = 0

    @classmethod
    def from_diagnostic(cls, diagnostic: CompilerDiagnostic) -> DiagnosticDTO:
        return cls(
            code=diagnostic.code,
            path=str(diagnostic.path),
            start=diagnostic.start,
            length=diagnostic.length,
            category=diagnostic.category.value,
            message=diagnostic.message,
            line=diagnostic.line,
            column=diagnostic.column,
        )


class UnresolvedDeclarationDTO(BaseModel):
    path: str
    line: int
    column: int
    name: str
    affected: int

    @classmethod
    def from_record(cls, record: UnresolvedDeclaration) -> UnresolvedDeclarationDTO:
        return cls(
            path=str(record.path),
            line=record.line,
            column=record.column,
            name=record.name,
            affected=record.affected,
        )


class UpgradeReportDTO(BaseModel):
    checks: List[str]
    mode: str
    iterations: int
    stop_reason: str
    stalled: bool
    modified_files: List[str] = []
    written_files: List[str] = []
    diagnostics: List[DiagnosticDTO] = []
    unresolved: List[UnresolvedDeclarationDTO] = []

    @classmethod
    def from_result(
        cls,
        result: DriverResult,
        *,
        checks: List[str],
        mode: str,
        written_files: List[str] | None = None,
    ) -> UpgradeReportDTO:
        return cls(
            checks=checks,
            mode=mode,
            iterations=result.iterations,
            stop_reason=result.reason.value,
            stalled=result.stalled,
            modified_files=sorted(str(path) for path in result.modified_paths),
            written_files=list(written_files or []),
            diagnostics=[DiagnosticDTO.from_diagnostic(item) for item in result.diagnostics],
            unresolved=[UnresolvedDeclarationDTO.from_record(item) for item in result.unresolved],
        )
