from strictify.frontend.checker import Frontend
from strictify.frontend.diagnostics import (
    CheckFlag,
    CompilerDiagnostic,
    DiagnosticCategory,
    DiagnosticCode,
)
from strictify.frontend.project import Project, SourceFile

__all__ = [
    "CheckFlag",
    "CompilerDiagnostic",
    "DiagnosticCategory",
    "DiagnosticCode",
    "Frontend",
    "Project",
    "SourceFile",
]
